# tests/conftest.py
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.core.seed import seed_database
from app.comment.storage import LocalBlobStorage, get_blob_storage
from app.prediction.dependencies import get_orchestrator
from app.prediction.orchestrator import PredictionOrchestrator
from app.prediction.predictor import KeywordPredictionService
from app.prediction.queue import InMemoryTicketQueue, get_ticket_queue
from app.product.models import ProductCode
from app.ticket.models import Ticket, TicketStatus, UserTicket
from app.user.models import AppUser, HelpDeskCategory


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(get_settings(), "PRODUCT_CODE_BACKOFF_SECONDS", 0.0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_database(session)
    yield session
    session.close()


@pytest.fixture
def categories(db):
    return {c.category_name: c.category_id for c in db.query(HelpDeskCategory).all()}


@pytest.fixture
def make_user(db):
    def _make(user_id, category_id=None, role="Technician"):
        user = AppUser(
            id=user_id,
            email=f"{user_id}@example.com",
            first_name=user_id.title(),
            last_name="Tester",
            role=role,
            help_desk_category_id=category_id,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_ticket(db):
    """Insert a ticket row directly, bypassing the product code sequence."""
    counter = {"n": 0}

    def _make(owner_id, status=TicketStatus.ACTIVE, category_id=None, assignees=(), deleted=0):
        counter["n"] += 1
        ticket = Ticket(
            ticket_id=f"FIX-{counter['n']}",
            user_id=owner_id,
            title="Fixture ticket",
            description="Created by a test fixture",
            status=status,
            help_desk_category_id=category_id,
            product_id="DEFAULT",
            assigned=1 if assignees else 0,
            deleted=deleted,
        )
        db.add(ticket)
        for user_id in assignees:
            db.add(UserTicket(user_id=user_id, ticket_id=ticket.ticket_id))
        db.commit()
        db.refresh(ticket)
        return ticket

    return _make


@pytest.fixture
def default_count(db):
    def _count():
        db.expire_all()
        return db.get(ProductCode, "DEFAULT").count

    return _count


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorage(tmp_path / "blobs", "/files", "test-key", ttl_seconds=60)


@pytest.fixture
def ticket_queue():
    return InMemoryTicketQueue("test-queue")


@pytest.fixture
def orchestrator(session_factory):
    return PredictionOrchestrator(session_factory, KeywordPredictionService())


@pytest.fixture
def client(db, session_factory, storage, ticket_queue, orchestrator):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_storage] = lambda: storage
    app.dependency_overrides[get_ticket_queue] = lambda: ticket_queue
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()
