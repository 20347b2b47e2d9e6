# app/user/services.py
import logging

from sqlalchemy.orm import Session, selectinload
from app.core.database import atomic
from app.core.exceptions import PersistenceError, ValidationError
from app.user.models import AppUser, HelpDeskCategory
from app.user.schemas import UserCreate

logger = logging.getLogger(__name__)


def get_categories(db: Session) -> list[HelpDeskCategory]:
    return db.query(HelpDeskCategory).order_by(HelpDeskCategory.category_id).all()


def get_category(db: Session, category_id: int) -> HelpDeskCategory | None:
    return db.get(HelpDeskCategory, category_id)


def get_category_by_name(db: Session, category_name: str) -> HelpDeskCategory | None:
    if not category_name:
        logger.warning("Invalid or empty category_name provided.")
        return None
    return (
        db.query(HelpDeskCategory)
        .filter(HelpDeskCategory.category_name == category_name)
        .first()
    )


def get_user(db: Session, user_id: str) -> AppUser | None:
    if not user_id:
        return None
    return (
        db.query(AppUser)
        .options(selectinload(AppUser.category))
        .filter(AppUser.id == user_id, AppUser.deleted == 0)
        .first()
    )


def is_existing_user(db: Session, user_id: str) -> bool:
    return get_user(db, user_id) is not None


def create_user(db: Session, payload: UserCreate) -> AppUser | None:
    if payload.help_desk_category_id is not None and get_category(db, payload.help_desk_category_id) is None:
        raise ValidationError(f"Unknown help desk category {payload.help_desk_category_id}")
    user = AppUser(**payload.model_dump())
    try:
        with atomic(db, "creating a user"):
            db.add(user)
    except PersistenceError:
        return None
    db.refresh(user)
    return user
