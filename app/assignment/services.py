# app/assignment/services.py
import logging

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, selectinload
from app.core.database import atomic
from app.core.exceptions import PersistenceError
from app.ticket.models import OPEN_STATUSES, Ticket, UserTicket
from app.user.models import AppUser

logger = logging.getLogger(__name__)


def technician_loads(db: Session, category_id: int) -> list[tuple[str, int]]:
    """(user id, open assignment count) for every technician of a category.

    Least loaded first, ties broken by user id. Counted live from
    user_tickets on every call.
    """
    open_load = (
        select(UserTicket.user_id, func.count().label("load"))
        .join(Ticket, Ticket.ticket_id == UserTicket.ticket_id)
        .where(Ticket.status.in_(OPEN_STATUSES), Ticket.deleted == 0)
        .group_by(UserTicket.user_id)
        .subquery()
    )
    load = func.coalesce(open_load.c.load, 0)
    stmt = (
        select(AppUser.id, load)
        .outerjoin(open_load, open_load.c.user_id == AppUser.id)
        .where(AppUser.help_desk_category_id == category_id, AppUser.deleted == 0)
        .order_by(load, AppUser.id)
    )
    return [(user_id, count) for user_id, count in db.execute(stmt).all()]


def select_technician(db: Session, category_id: int) -> str | None:
    """Pick the technician with the fewest open assignments in the category.

    None means nobody is eligible; the ticket should stay unassigned.
    """
    if category_id is None:
        return None
    loads = technician_loads(db, category_id)
    if not loads:
        return None
    return loads[0][0]


def get_assignable_users(db: Session, ticket_id: str, category_id: int | None) -> list[AppUser]:
    """Technicians not yet on the ticket, same-category ones first."""
    if not ticket_id:
        logger.warning("Invalid or empty ticket_id provided.")
        return []
    return (
        db.query(AppUser)
        .options(selectinload(AppUser.category))
        .filter(AppUser.help_desk_category_id.isnot(None), AppUser.deleted == 0)
        .filter(~AppUser.user_tickets.any(UserTicket.ticket_id == ticket_id))
        .order_by(
            case((AppUser.help_desk_category_id == category_id, 0), else_=1),
            AppUser.help_desk_category_id,
            AppUser.id,
        )
        .all()
    )


def assign_user(db: Session, user_id: str, ticket_id: str) -> bool:
    if not user_id or not ticket_id:
        logger.warning("Invalid or empty ticket_id or user_id provided.")
        return False
    try:
        with atomic(db, "creating a user ticket"):
            ticket = (
                db.query(Ticket)
                .filter(Ticket.ticket_id == ticket_id, Ticket.deleted == 0)
                .with_for_update()
                .first()
            )
            if ticket is None:
                logger.warning("Ticket %s not found or marked as deleted.", ticket_id)
                return False
            if db.get(AppUser, user_id) is None:
                logger.warning("User %s not found.", user_id)
                return False
            db.add(UserTicket(user_id=user_id, ticket_id=ticket_id))
            ticket.assigned = 1
    except PersistenceError:
        return False
    logger.info("User %s assigned to ticket %s.", user_id, ticket_id)
    return True


def unassign_user(db: Session, user_id: str, ticket_id: str) -> bool:
    """Remove one assignment and clear the ticket's flag if it was the last.

    The delete, the recount and the flag update commit together.
    """
    if not user_id or not ticket_id:
        logger.warning("Invalid or empty ticket_id or user_id provided.")
        return False
    try:
        with atomic(db, "deleting an assigned user"):
            ticket = (
                db.query(Ticket)
                .filter(Ticket.ticket_id == ticket_id)
                .with_for_update()
                .first()
            )
            user_ticket = db.get(UserTicket, (user_id, ticket_id))
            if ticket is None or user_ticket is None:
                logger.warning("User %s is not assigned to ticket %s.", user_id, ticket_id)
                return False
            db.delete(user_ticket)
            db.flush()

            remaining = (
                db.query(func.count())
                .select_from(UserTicket)
                .filter(UserTicket.ticket_id == ticket_id)
                .scalar()
            )
            if remaining == 0 and ticket.assigned == 1:
                ticket.assigned = 0
                logger.info("Ticket %s unassigned.", ticket_id)
    except PersistenceError:
        return False
    return True
