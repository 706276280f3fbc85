"""Pytest fixtures for the document lifecycle service.

Provides reusable test fixtures for:
- In-memory SQLite database with a fresh schema per test
- Seeded action kinds, users and user groups
- A Policy → Loss → Claimant hierarchy plus a producer
- A document wired into the hierarchy
- Lifecycle/audit services with a recording notifier
- FastAPI TestClient bound to the test session

Usage:
    def test_trash(lifecycle_service, document, users):
        lifecycle_service.trash_document(document.id, users["alice"].id)
"""

import os

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Generator, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from insuredocs.audit.action_types import ensure_action_types
from insuredocs.audit.service import AuditTrailService
from insuredocs.database import build_engine, get_db
from insuredocs.documents.notifications import NotificationEvent, NotificationPort
from insuredocs.documents.service import DocumentLifecycleService
from insuredocs.models import (
    Base,
    Claimant,
    Document,
    DocumentStatus,
    Loss,
    MapLossClaimant,
    MapPolicyLoss,
    MapProducerPolicy,
    Policy,
    PolicyPrefix,
    Producer,
    User,
    UserGroup,
)


BASE_TIME = datetime(2025, 1, 6, 9, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier(NotificationPort):
    """Notifier that remembers every dispatch."""

    def __init__(self):
        self.events: List[Tuple[NotificationEvent, int, int]] = []

    def notify(self, event: NotificationEvent, document_id: int, actor_id: int) -> None:
        self.events.append((event, document_id, actor_id))

    @property
    def event_kinds(self) -> List[NotificationEvent]:
        return [event for event, _, _ in self.events]


class FailingNotifier(NotificationPort):
    """Notifier whose delivery always fails."""

    def notify(self, event: NotificationEvent, document_id: int, actor_id: int) -> None:
        raise RuntimeError("SMTP server unavailable")


class StepClock:
    """Clock advancing by a fixed step on every call (step 0 = frozen)."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now


@pytest.fixture
def engine():
    """Fresh in-memory schema for each test."""
    test_engine = build_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Database session bound to the per-test engine."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def action_types(db_session):
    """Seeded lifecycle action kinds keyed by name."""
    seeded = ensure_action_types(db_session)
    db_session.commit()
    return {action_type.name: action_type for action_type in seeded}


@pytest.fixture
def users(db_session):
    """Three active users keyed by username."""
    rows = [
        User(username="alice", email="alice@insurepilot.test", first_name="Alice", last_name="Moreno"),
        User(username="bob", email="bob@insurepilot.test", first_name="Bob", last_name="Kline"),
        User(username="carol", email="carol@insurepilot.test"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {user.username: user for user in rows}


@pytest.fixture
def groups(db_session):
    """Two user groups keyed by name."""
    rows = [UserGroup(name="Claims"), UserGroup(name="Underwriting")]
    db_session.add_all(rows)
    db_session.commit()
    return {group.name: group for group in rows}


@pytest.fixture
def hierarchy(db_session):
    """Policy → Loss → Claimant hierarchy.

    P1 has losses L1 (first) and L2 (second); P2 has none. L1 has claimants
    C1 (first) and C2 (second). Producer PR1 wrote P1.
    """
    prefix = PolicyPrefix(name="PLC")
    p1 = Policy(policy_prefix=prefix, number="10001")
    p2 = Policy(policy_prefix=prefix, number="10002")
    l1 = Loss(name="Water Damage", date=date(2024, 3, 14))
    l2 = Loss(name="Kitchen Fire", date=date(2024, 5, 2))
    c1 = Claimant(first_name="Jane", last_name="Doe")
    c2 = Claimant(organization_name="Acme Plumbing LLC")
    pr1 = Producer(number="AG-001", name="Acme Brokers")
    db_session.add_all([prefix, p1, p2, l1, l2, c1, c2, pr1])
    db_session.flush()

    db_session.add_all([
        MapPolicyLoss(policy_id=p1.id, loss_id=l1.id, created_at=BASE_TIME),
        MapPolicyLoss(policy_id=p1.id, loss_id=l2.id, created_at=BASE_TIME + timedelta(hours=1)),
        MapLossClaimant(loss_id=l1.id, claimant_id=c1.id, created_at=BASE_TIME),
        MapLossClaimant(loss_id=l1.id, claimant_id=c2.id, created_at=BASE_TIME + timedelta(hours=1)),
        MapProducerPolicy(producer_id=pr1.id, policy_id=p1.id),
    ])
    db_session.commit()

    return SimpleNamespace(prefix=prefix, p1=p1, p2=p2, l1=l1, l2=l2, c1=c1, c2=c2, pr1=pr1)


@pytest.fixture
def document(db_session, hierarchy, users, action_types):
    """Unprocessed document linked to P1 / L1 / C1 / PR1."""
    doc = Document(
        name="fnol-report.pdf",
        description="First notice of loss",
        date_received=date(2025, 1, 3),
        policy_id=hierarchy.p1.id,
        loss_id=hierarchy.l1.id,
        claimant_id=hierarchy.c1.id,
        producer_id=hierarchy.pr1.id,
        status=DocumentStatus.UNPROCESSED,
        created_by=users["alice"].id,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )
    db_session.add(doc)
    db_session.commit()
    return doc


@pytest.fixture
def make_document(db_session, users):
    """Factory for additional documents."""

    def _make(name: str = "scan.pdf", **kwargs) -> Document:
        kwargs.setdefault("status", DocumentStatus.UNPROCESSED)
        kwargs.setdefault("created_by", users["alice"].id)
        doc = Document(name=name, **kwargs)
        db_session.add(doc)
        db_session.commit()
        return doc

    return _make


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def frozen_clock():
    """Clock that returns the same instant on every call."""
    return StepClock(step=timedelta(0))


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def audit_service(db_session, clock):
    return AuditTrailService(db_session, clock=clock)


@pytest.fixture
def lifecycle_service(db_session, audit_service, notifier, clock):
    return DocumentLifecycleService(db_session, audit=audit_service, notifier=notifier, clock=clock)


@pytest.fixture
def client(db_session) -> Generator[TestClient, None, None]:
    """TestClient whose requests share the test session."""
    from insuredocs.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def history_kinds(audit_service):
    """Action kind names of a document's full history, oldest first."""

    def _kinds(document_id: int) -> List[str]:
        page = audit_service.get_history(document_id, per_page=100, direction="asc")
        return [entry.action_type for entry in page.entries]

    return _kinds
