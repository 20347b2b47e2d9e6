# app/ticket/services.py
import logging
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from app.core.config import get_settings
from app.core.database import atomic
from app.core.exceptions import NotFoundError, PersistenceError, ValidationError
from app.assignment import services as assignment_service
from app.comment.models import Comment
from app.product import services as product_service
from app.ticket.models import (
    CLOSED_STATUSES,
    OPEN_STATUSES,
    Priority,
    Ticket,
    TicketCompletion,
    TicketStatus,
    UserTicket,
)
from app.ticket.schemas import CompletionCreate, TicketCreate, TicketUpdate
from app.user.models import AppUser

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _details_query(db: Session):
    return db.query(Ticket).options(
        selectinload(Ticket.creator),
        selectinload(Ticket.category),
        selectinload(Ticket.product),
        selectinload(Ticket.user_tickets).selectinload(UserTicket.user).selectinload(AppUser.category),
        selectinload(Ticket.comments).selectinload(Comment.author),
    )


def get_tickets(db: Session, user_id: str, is_completed: bool = False) -> list[Ticket]:
    """The user's own tickets, tickets assigned to them, and unassigned tickets."""
    if not user_id:
        logger.warning("Invalid or empty user_id provided.")
        return []
    statuses = CLOSED_STATUSES if is_completed else OPEN_STATUSES
    return (
        db.query(Ticket)
        .options(selectinload(Ticket.category), selectinload(Ticket.product))
        .filter(Ticket.deleted == 0)
        .filter(
            or_(
                Ticket.user_id == user_id,
                Ticket.user_tickets.any(UserTicket.user_id == user_id),
                Ticket.assigned == 0,
            )
        )
        .filter(Ticket.status.in_(statuses))
        .order_by(Ticket.issue_date.desc())
        .all()
    )


def get_ticket_details(db: Session, ticket_id: str) -> Ticket | None:
    if not ticket_id:
        logger.warning("Invalid or empty ticket_id provided.")
        return None
    return _details_query(db).filter(Ticket.ticket_id == ticket_id).first()


def get_ticket_completion_details(db: Session, ticket_id: str) -> Ticket | None:
    if not ticket_id:
        logger.warning("Invalid or empty ticket_id provided.")
        return None
    return (
        _details_query(db)
        .options(selectinload(Ticket.completion))
        .filter(Ticket.ticket_id == ticket_id)
        .first()
    )


def get_ticket_edit(db: Session, ticket_id: str) -> Ticket | None:
    if not ticket_id:
        logger.warning("Invalid or empty ticket_id provided.")
        return None
    return db.query(Ticket).filter(Ticket.ticket_id == ticket_id).first()


def is_existing_ticket(db: Session, ticket_id: str) -> bool:
    if not ticket_id:
        return False
    query = db.query(Ticket).filter(Ticket.ticket_id == ticket_id, Ticket.deleted == 0)
    return db.query(query.exists()).scalar()


def create_ticket(db: Session, payload: TicketCreate, user_id: str) -> Ticket | None:
    """Claim ``<code>-<n>`` from the product's counter and insert the ticket.

    The counter increment and the insert share one transaction; if the
    insert fails the increment is rolled back with it.
    """
    if payload is None or not user_id:
        raise ValidationError("A ticket and its owning user are required")
    if not payload.title.strip() or not payload.description.strip():
        raise ValidationError("Ticket title and description must not be blank")

    product_id = payload.product_id or get_settings().DEFAULT_PRODUCT_ID
    try:
        with atomic(db, "creating a ticket"):
            ticket_id = product_service.reserve_ticket_id(db, product_id)
            if ticket_id is None:
                raise NotFoundError(f"No product code for product {product_id}")

            ticket = Ticket(
                ticket_id=ticket_id,
                user_id=user_id,
                title=payload.title.strip(),
                description=payload.description.strip(),
                status=TicketStatus.ACTIVE,
                priority=Priority.MEDIUM,
                product_id=product_id,
                issue_date=_utcnow(),
                assigned=0,
                deleted=0,
            )
            db.add(ticket)
            db.flush()
    except PersistenceError as exc:
        logger.error("Ticket creation rolled back: %s", exc)
        return None

    db.refresh(ticket)
    logger.info("Ticket %s created by user %s.", ticket.ticket_id, user_id)
    return ticket


def update_ticket(db: Session, ticket_id: str, payload: TicketUpdate, user_id: str | None = None) -> bool:
    """Apply the changed fields. False when the ticket is missing or nothing changed."""
    ticket = get_ticket_edit(db, ticket_id)
    if ticket is None or ticket.deleted:
        logger.warning("Ticket %s not found or marked as deleted.", ticket_id)
        return False

    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None and getattr(ticket, field) != value
    }
    if not changes:
        logger.warning("No changes detected during ticket update.")
        return False

    try:
        with atomic(db, "updating the ticket"):
            for field, value in changes.items():
                setattr(ticket, field, value)
            ticket.update_user_id = user_id
            ticket.update_date = _utcnow()
    except PersistenceError:
        return False
    return True


def update_classification(db: Session, ticket_id: str, category_id: int, priority: Priority) -> bool:
    """Record predicted category and priority; repeated calls converge on the same state."""
    if not ticket_id:
        logger.warning("Invalid or empty ticket_id provided.")
        return False
    try:
        with atomic(db, "updating the help desk category in ticket"):
            ticket = (
                db.query(Ticket)
                .filter(Ticket.ticket_id == ticket_id, Ticket.deleted == 0)
                .with_for_update()
                .first()
            )
            if ticket is None:
                logger.warning("Ticket %s not found or marked as deleted.", ticket_id)
                return False
            if ticket.help_desk_category_id == category_id and ticket.priority == priority:
                return True
            ticket.help_desk_category_id = category_id
            ticket.priority = priority
            ticket.update_date = _utcnow()
    except PersistenceError:
        return False
    return True


def create_user_ticket(db: Session, ticket_id: str, user_id: str | None = None) -> bool:
    """Assign a technician to the ticket.

    With ``user_id`` the given technician is assigned directly. Without it the
    least loaded technician in the ticket's category is picked; a ticket
    without a category, or a category without technicians, stays unassigned.
    Auto-assignment of an already assigned ticket is a no-op success so a
    redelivered queue message never double-assigns.
    """
    if not ticket_id:
        logger.warning("Invalid or empty ticket_id provided.")
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

            if user_id is None:
                if ticket.assigned == 1:
                    logger.info("Ticket %s is already assigned.", ticket_id)
                    return True
                if ticket.help_desk_category_id is None:
                    logger.warning("Ticket %s has no category assigned.", ticket_id)
                    return False
                user_id = assignment_service.select_technician(db, ticket.help_desk_category_id)
                if user_id is None:
                    logger.warning(
                        "No users found in help desk category %s.", ticket.help_desk_category_id
                    )
                    return False
            elif db.get(AppUser, user_id) is None:
                logger.warning("User %s not found.", user_id)
                return False
            elif db.get(UserTicket, (user_id, ticket_id)) is not None:
                logger.info("User %s is already assigned to ticket %s.", user_id, ticket_id)
                return True

            db.add(UserTicket(user_id=user_id, ticket_id=ticket_id))
            ticket.assigned = 1
    except PersistenceError:
        return False

    logger.info("Ticket %s assigned to user %s.", ticket_id, user_id)
    return True


def delete_ticket(db: Session, ticket_id: str) -> bool:
    ticket = get_ticket_edit(db, ticket_id)
    if ticket is None:
        logger.error("Ticket %s not found.", ticket_id)
        return False
    try:
        with atomic(db, "deleting the ticket"):
            ticket.deleted = 1
    except PersistenceError:
        return False
    return True


def create_ticket_completion(
    db: Session, ticket_id: str, payload: CompletionCreate, user_id: str
) -> TicketCompletion | None:
    """Write the completion record and flip the ticket to Complete atomically."""
    if payload is None or not ticket_id:
        raise ValidationError("A completion and its ticket are required")

    ticket = get_ticket_edit(db, ticket_id)
    if ticket is None or ticket.deleted:
        logger.warning("Ticket %s not found or marked as deleted.", ticket_id)
        return None

    now = _utcnow()
    completion = TicketCompletion(
        ticket_id=ticket_id,
        user_id=user_id,
        question=payload.question or ticket.description,
        answer=payload.answer.strip(),
        category=payload.category if payload.category is not None else ticket.help_desk_category_id,
        difficulty=(payload.difficulty or ticket.priority).value,
        completion_date=now,
    )
    try:
        with atomic(db, "creating a ticket completion"):
            ticket.status = TicketStatus.COMPLETE
            ticket.complete_date = now
            ticket.update_date = now
            ticket.update_user_id = user_id
            db.add(completion)
    except PersistenceError:
        return None

    db.refresh(completion)
    logger.info("Ticket %s completed by user %s.", ticket_id, user_id)
    return completion
