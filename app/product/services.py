# app/product/services.py
import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import get_settings
from app.core.database import atomic
from app.core.exceptions import DuplicateCodeError, PersistenceError, ValidationError
from app.product.ids import generate_id
from app.product.models import Product, ProductCode
from app.product.schemas import ProductCreate, ProductUpdate
from app.ticket.models import CLOSED_STATUSES, OPEN_STATUSES

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Product codes
# ---------------------------------------------------------------------------

def get_code(db: Session, product_id: str) -> ProductCode | None:
    if not product_id:
        logger.warning("Invalid or empty product_id provided.")
        return None
    return db.query(ProductCode).filter(ProductCode.product_id == product_id).first()


def create_code(db: Session, product_id: str) -> ProductCode:
    """Persist a fresh unique code for ``product_id`` inside the caller's transaction.

    Each attempt runs in a savepoint so a unique-constraint violation only
    discards that candidate. Raises DuplicateCodeError once the retry limit
    is spent, and ValidationError when the product already has a code. The
    caller commits.
    """
    if not product_id:
        raise ValidationError("product_id is required")
    if get_code(db, product_id) is not None:
        raise ValidationError(f"Product {product_id} already has a code")

    settings = get_settings()
    retrying = Retrying(
        retry=retry_if_exception_type(IntegrityError),
        stop=stop_after_attempt(settings.PRODUCT_CODE_MAX_RETRIES + 1),
        wait=wait_exponential(multiplier=settings.PRODUCT_CODE_BACKOFF_SECONDS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    try:
        for attempt in retrying:
            with attempt:
                product_code = ProductCode(
                    product_id=product_id,
                    code=generate_id(settings.PRODUCT_CODE_LENGTH),
                    count=1,
                )
                with db.begin_nested():
                    db.add(product_code)
                    db.flush()
    except RetryError as exc:
        attempts = exc.last_attempt.attempt_number
        logger.error("Duplicate product code generated %d times for product %s.", attempts, product_id)
        raise DuplicateCodeError(product_id, attempts) from exc
    return product_code


def increment_count(db: Session, product_id: str, commit: bool = True) -> bool:
    """Advance the ticket sequence of a product by one.

    Issued as a single ``UPDATE ... SET count = count + 1`` so concurrent
    callers never lose an increment. Returns False when the product has no
    code. With ``commit=False`` the update joins the caller's transaction.
    """
    stmt = (
        update(ProductCode)
        .where(ProductCode.product_id == product_id)
        .values(count=ProductCode.count + 1)
        .execution_options(synchronize_session=False)
    )
    if not commit:
        return db.execute(stmt).rowcount == 1

    try:
        with atomic(db, "updating the product code count"):
            changed = db.execute(stmt).rowcount
    except PersistenceError:
        return False
    if changed != 1:
        logger.warning("Product code with ID %s not found.", product_id)
        return False
    return True


def reserve_ticket_id(db: Session, product_id: str) -> str | None:
    """Claim the next ``<code>-<n>`` of a product inside the caller's transaction.

    The counter is advanced first, so the write lock is held before the
    number is read and concurrent callers always get distinct ids. None when
    the product has no code.
    """
    if not increment_count(db, product_id, commit=False):
        return None
    row = db.execute(
        select(ProductCode.code, ProductCode.count).where(ProductCode.product_id == product_id)
    ).one()
    return f"{row.code}-{row.count - 1}"


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def get_products(db: Session) -> list[Product]:
    return (
        db.query(Product)
        .options(selectinload(Product.tickets))
        .filter(Product.display == 1, Product.deleted == 0)
        .order_by(Product.release_date.desc())
        .all()
    )


def get_product_select_list(db: Session) -> list[tuple[str, str]]:
    rows = (
        db.query(Product.product_id, Product.product_name)
        .filter(Product.display == 1, Product.deleted == 0)
        .order_by(Product.release_date)
        .all()
    )
    return [(row.product_id, row.product_name) for row in rows]


def get_product_edit(db: Session, product_id: str) -> Product | None:
    if not product_id:
        logger.warning("Invalid or empty product_id provided.")
        return None
    return db.query(Product).filter(Product.product_id == product_id).first()


def get_product_details(db: Session, product_id: str, is_completed: bool = False) -> dict | None:
    """Product plus its tickets in the requested completion group, newest first."""
    product = get_product_edit(db, product_id)
    if product is None:
        return None
    statuses = CLOSED_STATUSES if is_completed else OPEN_STATUSES
    tickets = sorted(
        (t for t in product.tickets if t.status in statuses and t.deleted == 0),
        key=lambda t: t.issue_date or datetime.min,
        reverse=True,
    )
    return {"product": product, "tickets": tickets}


def create_product(db: Session, payload: ProductCreate, user_id: str | None = None) -> Product | None:
    product = Product(
        **payload.model_dump(),
        user_id=user_id,
        release_date=_utcnow(),
    )
    try:
        with atomic(db, "creating a product or product code"):
            db.add(product)
            db.flush()
            create_code(db, product.product_id)
    except (PersistenceError, DuplicateCodeError):
        return None
    db.refresh(product)
    logger.info("Product %s created with code %s.", product.product_id, product.code.code)
    return product


def update_product(db: Session, product_id: str, payload: ProductUpdate, user_id: str | None = None) -> bool:
    product = get_product_edit(db, product_id)
    if product is None:
        return False
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if getattr(product, field) != value
    }
    if not changes:
        logger.warning("No changes detected during product update.")
        return False
    try:
        with atomic(db, "updating the product"):
            for field, value in changes.items():
                setattr(product, field, value)
            product.update_user_id = user_id
            product.update_date = _utcnow()
    except PersistenceError:
        return False
    return True
