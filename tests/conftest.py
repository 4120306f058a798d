"""Pytest fixtures for testing"""

import pytest
import httpx
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from agency_ledger.api import dependencies
from agency_ledger.api.main import create_app
from agency_ledger.infrastructure.clients.storage import StorageClient
from agency_ledger.infrastructure.database.models import Base
from agency_ledger.infrastructure.database.session import get_db
from agency_ledger.domain.models import Actor, Notification, Project, UserRole
from agency_ledger.services.payments import PaymentSubmissionStore
from agency_ledger.services.projects import ProjectService
from agency_ledger.utils.clock import FixedClock


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STORAGE_BASE = "http://storage.test"
ADMIN_IDS = ["admin-1", "admin-2"]


class RecordingNotifier:
    """Collects notifications instead of sending them"""

    def __init__(self):
        self.sent: List[Notification] = []

    def enqueue_notification(self, user_id, type, title, message, data) -> None:
        self.sent.append(Notification(user_id=user_id, type=type, title=title, message=message, data=data))

    def for_user(self, user_id: str) -> List[Notification]:
        return [n for n in self.sent if n.user_id == user_id]


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at 2025-01-15 12:00 UTC"""
    return FixedClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def storage_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def storage(storage_requests: List[httpx.Request]) -> StorageClient:
    """Storage client backed by an in-memory transport that records every call"""

    def handler(request: httpx.Request) -> httpx.Response:
        storage_requests.append(request)
        if request.method == "PUT":
            return httpx.Response(200, json={"url": str(request.url)})
        return httpx.Response(204)

    return StorageClient(base_url=STORAGE_BASE, bucket="payment-receipts", transport=httpx.MockTransport(handler))


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role=UserRole.ADMIN)


@pytest.fixture
def collaborator() -> Actor:
    return Actor(user_id="collab-1", role=UserRole.COLLABORATOR)


@pytest.fixture
def outsider() -> Actor:
    return Actor(user_id="client-9", role=UserRole.CLIENT)


@pytest.fixture
def project_service(db: Session, clock: FixedClock) -> ProjectService:
    return ProjectService(db, clock)


@pytest.fixture
def store(db: Session, notifier: RecordingNotifier, clock: FixedClock, storage: StorageClient) -> PaymentSubmissionStore:
    return PaymentSubmissionStore(db, notifier, clock, storage)


@pytest.fixture
def project(project_service: ProjectService, admin: Actor, collaborator: Actor) -> Project:
    """1500.00 budget split into 3 monthly installments of 500.00, collab-1 is a member"""
    return project_service.create_project(
        admin,
        name="Website redesign",
        budget=Decimal("1500.00"),
        installment_count=3,
        member_ids=[collaborator.user_id],
    )


@pytest.fixture
def client(db: Session, clock: FixedClock, notifier: RecordingNotifier, storage: StorageClient) -> TestClient:
    """Create FastAPI test client with test database and in-memory collaborators"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_clock] = lambda: clock
    app.dependency_overrides[dependencies.get_notifier] = lambda: notifier
    app.dependency_overrides[dependencies.get_storage_client] = lambda: storage
    app.dependency_overrides[dependencies.get_admin_user_ids] = lambda: list(ADMIN_IDS)
    return TestClient(app)


@pytest.fixture
def auth():
    """Builds identity headers as set by the auth gateway"""

    def _headers(user_id: str = "admin-1", role: str = "admin") -> dict:
        return {"X-User-Id": user_id, "X-User-Role": role}

    return _headers
