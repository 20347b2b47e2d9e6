# tests/test_ticket_services.py
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.product import services as product_service
from app.product.schemas import ProductCreate
from app.ticket import services as ticket_service
from app.ticket.models import Priority, Ticket, TicketCompletion, TicketStatus, UserTicket
from app.ticket.schemas import CompletionCreate, TicketCreate, TicketUpdate


def _new(title="Printer is offline", description="Nothing prints since this morning", product_id=None):
    return TicketCreate(title=title, description=description, product_id=product_id)


# ---------------------------------------------------------------------------
# create_ticket
# ---------------------------------------------------------------------------

def test_create_ticket_mints_id_from_default_code(db, make_user, default_count):
    make_user("alice", role="EndUser")
    ticket = ticket_service.create_ticket(db, _new(), "alice")

    assert ticket.ticket_id == "DEFAULT-1"
    assert ticket.status == TicketStatus.ACTIVE
    assert ticket.priority == Priority.MEDIUM
    assert ticket.help_desk_category_id is None
    assert ticket.assigned == 0
    assert default_count() == 2

    second = ticket_service.create_ticket(db, _new(), "alice")
    assert second.ticket_id == "DEFAULT-2"
    assert default_count() == 3


def test_create_ticket_uses_product_code(db, make_user):
    make_user("alice", role="EndUser")
    product = product_service.create_product(db, ProductCreate(product_id="CRM", product_name="Customer portal"))
    code = product.code.code

    ticket = ticket_service.create_ticket(db, _new(product_id="CRM"), "alice")

    assert ticket.ticket_id == f"{code}-1"
    db.expire_all()
    assert product_service.get_code(db, "CRM").count == 2


def test_failed_insert_rolls_back_the_counter(db, make_user, default_count):
    make_user("alice", role="EndUser")
    # a row already holding the next id makes the insert fail after the increment
    db.add(Ticket(ticket_id="DEFAULT-1", user_id="alice", title="Leftover", description="x", product_id="DEFAULT"))
    db.commit()

    assert ticket_service.create_ticket(db, _new(), "alice") is None
    assert db.query(Ticket).count() == 1
    assert default_count() == 1


def test_create_ticket_unknown_product(db, make_user):
    make_user("alice", role="EndUser")
    with pytest.raises(NotFoundError):
        ticket_service.create_ticket(db, _new(product_id="MISSING"), "alice")
    assert db.query(Ticket).count() == 0


def test_create_ticket_rejects_blank_input(db):
    with pytest.raises(ValidationError):
        ticket_service.create_ticket(db, _new(title="        "), "alice")
    with pytest.raises(ValidationError):
        ticket_service.create_ticket(db, _new(), "")
    with pytest.raises(ValidationError):
        ticket_service.create_ticket(db, None, "alice")


# ---------------------------------------------------------------------------
# reads
# ---------------------------------------------------------------------------

def test_get_tickets_is_my_work_plus_available_work(db, make_user, make_ticket):
    make_user("alice", role="EndUser")
    make_user("bob", role="EndUser")
    make_user("tech")
    make_user("other-tech")

    own = make_ticket("alice")
    assigned_to_tech = make_ticket("bob", assignees=["tech"])
    unassigned = make_ticket("bob")
    someone_elses = make_ticket("bob", assignees=["other-tech"])
    own_closed = make_ticket("alice", status=TicketStatus.COMPLETE)
    canceled = make_ticket("bob", status=TicketStatus.CANCELED)
    make_ticket("bob", deleted=1)

    def ids(user_id, is_completed=False):
        return {t.ticket_id for t in ticket_service.get_tickets(db, user_id, is_completed)}

    assert ids("alice") == {own.ticket_id, unassigned.ticket_id}
    assert ids("tech") == {assigned_to_tech.ticket_id, unassigned.ticket_id}
    assert ids("other-tech") == {someone_elses.ticket_id, unassigned.ticket_id}
    assert ids("alice", is_completed=True) == {own_closed.ticket_id, canceled.ticket_id}
    assert ticket_service.get_tickets(db, "") == []


def test_get_tickets_newest_first(db, make_user, make_ticket):
    make_user("alice", role="EndUser")
    first, second, third = make_ticket("alice"), make_ticket("alice"), make_ticket("alice")
    base = datetime(2025, 1, 1)
    first.issue_date = base + timedelta(days=2)
    second.issue_date = base
    third.issue_date = base + timedelta(days=1)
    db.commit()

    ordered = [t.ticket_id for t in ticket_service.get_tickets(db, "alice")]
    assert ordered == [first.ticket_id, third.ticket_id, second.ticket_id]


def test_ticket_details_loads_related_rows(db, make_user, make_ticket, categories):
    make_user("alice", role="EndUser")
    make_user("tech", categories["Authentication"])
    ticket = make_ticket("alice", category_id=categories["Authentication"], assignees=["tech"])
    db.expunge_all()

    details = ticket_service.get_ticket_details(db, ticket.ticket_id)
    assert details.category.category_name == "Authentication"
    assert details.product.product_id == "DEFAULT"
    assert [ut.user.category.category_name for ut in details.user_tickets] == ["Authentication"]
    assert details.comments == []

    assert ticket_service.get_ticket_details(db, "NOPE-1") is None
    assert ticket_service.get_ticket_edit(db, "") is None


# ---------------------------------------------------------------------------
# updates
# ---------------------------------------------------------------------------

def test_update_ticket_reports_noop(db, make_user, make_ticket):
    make_user("alice", role="EndUser")
    ticket = make_ticket("alice")

    assert ticket_service.update_ticket(db, ticket.ticket_id, TicketUpdate(title="Fixture ticket")) is False
    assert ticket_service.update_ticket(db, ticket.ticket_id, TicketUpdate(status=TicketStatus.PAUSED), "alice")

    stored = ticket_service.get_ticket_edit(db, ticket.ticket_id)
    assert stored.status == TicketStatus.PAUSED
    assert stored.update_user_id == "alice"
    assert stored.update_date is not None
    assert ticket_service.update_ticket(db, "NOPE-1", TicketUpdate(title="Anything new")) is False


def test_update_classification_is_idempotent(db, make_user, make_ticket, categories):
    make_user("alice", role="EndUser")
    ticket = make_ticket("alice")
    category_id = categories["Malware Protection"]

    assert ticket_service.update_classification(db, ticket.ticket_id, category_id, Priority.HIGH)
    db.expire_all()
    once = ticket_service.get_ticket_edit(db, ticket.ticket_id)
    snapshot = (once.help_desk_category_id, once.priority, once.update_date)

    assert ticket_service.update_classification(db, ticket.ticket_id, category_id, Priority.HIGH)
    db.expire_all()
    twice = ticket_service.get_ticket_edit(db, ticket.ticket_id)
    assert (twice.help_desk_category_id, twice.priority, twice.update_date) == snapshot
    assert snapshot[:2] == (category_id, Priority.HIGH)


def test_update_classification_missing_ticket(db):
    assert ticket_service.update_classification(db, "NOPE-1", 1, Priority.LOW) is False


# ---------------------------------------------------------------------------
# assignment
# ---------------------------------------------------------------------------

def test_auto_assign_picks_least_loaded_technician(db, make_user, make_ticket, categories):
    category = categories["Incident Response"]
    make_user("alice", role="EndUser")
    make_user("busy", category)
    make_user("light", category)
    for _ in range(5):
        make_ticket("alice", category_id=category, assignees=["busy"])
    for _ in range(2):
        make_ticket("alice", category_id=category, assignees=["light"])
    ticket = make_ticket("alice", category_id=category)

    assert ticket_service.create_user_ticket(db, ticket.ticket_id) is True

    rows = db.query(UserTicket).filter(UserTicket.ticket_id == ticket.ticket_id).all()
    assert [r.user_id for r in rows] == ["light"]
    db.expire_all()
    assert ticket_service.get_ticket_edit(db, ticket.ticket_id).assigned == 1


def test_auto_assign_stays_inside_category(db, make_user, make_ticket, categories):
    category = categories["Mobile Security"]
    make_user("alice", role="EndUser")
    make_user("idle-elsewhere", categories["Authentication"])
    make_user("mobile", category)
    for _ in range(3):
        make_ticket("alice", category_id=category, assignees=["mobile"])
    ticket = make_ticket("alice", category_id=category)

    assert ticket_service.create_user_ticket(db, ticket.ticket_id)
    assert db.get(UserTicket, ("mobile", ticket.ticket_id)) is not None
    assert db.get(UserTicket, ("idle-elsewhere", ticket.ticket_id)) is None


def test_auto_assign_without_technicians_leaves_ticket_unassigned(db, make_user, make_ticket, categories):
    make_user("alice", role="EndUser")
    make_user("auth-tech", categories["Authentication"])
    ticket = make_ticket("alice", category_id=categories["Data Backup and Recovery"])

    assert ticket_service.create_user_ticket(db, ticket.ticket_id) is False
    db.expire_all()
    assert ticket_service.get_ticket_edit(db, ticket.ticket_id).assigned == 0
    assert db.query(UserTicket).count() == 0


def test_auto_assign_requires_category(db, make_user, make_ticket, categories):
    make_user("alice", role="EndUser")
    make_user("tech", categories["Authentication"])
    ticket = make_ticket("alice")

    assert ticket_service.create_user_ticket(db, ticket.ticket_id) is False
    assert db.query(UserTicket).count() == 0


def test_auto_assign_twice_does_not_double_assign(db, make_user, make_ticket, categories):
    category = categories["Authentication"]
    make_user("alice", role="EndUser")
    make_user("tech-a", category)
    make_user("tech-b", category)
    ticket = make_ticket("alice", category_id=category)

    assert ticket_service.create_user_ticket(db, ticket.ticket_id)
    assert ticket_service.create_user_ticket(db, ticket.ticket_id)
    assert db.query(UserTicket).filter(UserTicket.ticket_id == ticket.ticket_id).count() == 1


def test_manual_assignment(db, make_user, make_ticket):
    make_user("alice", role="EndUser")
    make_user("tech")
    ticket = make_ticket("alice")

    assert ticket_service.create_user_ticket(db, ticket.ticket_id, "tech")
    assert ticket_service.create_user_ticket(db, ticket.ticket_id, "tech")
    assert db.query(UserTicket).count() == 1
    db.expire_all()
    assert ticket_service.get_ticket_edit(db, ticket.ticket_id).assigned == 1

    assert ticket_service.create_user_ticket(db, ticket.ticket_id, "ghost") is False
    assert ticket_service.create_user_ticket(db, "NOPE-1", "tech") is False


# ---------------------------------------------------------------------------
# delete / completion
# ---------------------------------------------------------------------------

def test_delete_is_soft(db, make_user, make_ticket):
    make_user("alice", role="EndUser")
    ticket = make_ticket("alice")

    assert ticket_service.is_existing_ticket(db, ticket.ticket_id)
    assert ticket_service.delete_ticket(db, ticket.ticket_id)

    assert not ticket_service.is_existing_ticket(db, ticket.ticket_id)
    assert ticket_service.get_ticket_edit(db, ticket.ticket_id).deleted == 1
    assert db.query(Ticket).count() == 1
    assert ticket_service.get_tickets(db, "alice") == []
    assert ticket_service.delete_ticket(db, "NOPE-1") is False


def test_completion_closes_ticket(db, make_user, make_ticket, categories):
    make_user("alice", role="EndUser")
    make_user("tech", categories["Authentication"])
    ticket = make_ticket("alice", category_id=categories["Authentication"], assignees=["tech"])

    completion = ticket_service.create_ticket_completion(
        db, ticket.ticket_id, CompletionCreate(answer="Reset the password"), "tech"
    )

    assert completion.answer == "Reset the password"
    assert completion.question == "Created by a test fixture"
    assert completion.category == categories["Authentication"]
    assert completion.difficulty == "Medium"
    db.expire_all()
    stored = ticket_service.get_ticket_edit(db, ticket.ticket_id)
    assert stored.status == TicketStatus.COMPLETE
    assert stored.complete_date is not None
    assert stored.update_user_id == "tech"

    details = ticket_service.get_ticket_completion_details(db, ticket.ticket_id)
    assert details.completion.completion_id == completion.completion_id


def test_completion_failure_leaves_status_untouched(db, make_user, make_ticket):
    make_user("alice", role="EndUser")
    ticket = make_ticket("alice")
    # a stray completion row makes the unique ticket_id insert fail
    db.add(TicketCompletion(ticket_id=ticket.ticket_id, answer="stale"))
    db.commit()

    result = ticket_service.create_ticket_completion(
        db, ticket.ticket_id, CompletionCreate(answer="Fixed it"), "alice"
    )

    assert result is None
    db.expire_all()
    assert ticket_service.get_ticket_edit(db, ticket.ticket_id).status == TicketStatus.ACTIVE
    assert db.query(TicketCompletion).count() == 1


def test_completion_for_missing_ticket(db):
    assert ticket_service.create_ticket_completion(db, "NOPE-1", CompletionCreate(answer="x"), "alice") is None
