"""
Test configuration for the Askfield accounts service.
"""
import os

# Settings are read on first use; set the environment before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from askfield.auth.dependencies import get_notifier
from askfield.auth.exceptions import UpstreamNotificationError
from askfield.config import Settings, get_settings
from askfield.core import audit_models  # noqa: F401
from askfield.database import Base, get_db
from askfield.main import app
from askfield.notifications import NotificationKind, NotificationSink

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret1"


class RecordingNotificationSink(NotificationSink):
    """Keeps every notification in memory instead of sending it."""

    def __init__(self):
        self.sent = []

    async def send(self, notification):
        self.sent.append(notification)

    def for_recipient(self, email, kind=None):
        return [
            n for n in self.sent
            if n.recipient == email and (kind is None or n.kind == kind)
        ]

    def last_token(self, email):
        verifications = self.for_recipient(email, NotificationKind.VERIFICATION)
        assert verifications, f"no verification email sent to {email}"
        return verifications[-1].token


class FailingNotificationSink(RecordingNotificationSink):
    """Records the attempt, then fails like an unreachable SMTP server."""

    async def send(self, notification):
        self.sent.append(notification)
        raise UpstreamNotificationError(error="Email service temporarily unavailable")


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def notifier():
    return RecordingNotificationSink()


@pytest.fixture
def failing_notifier():
    return FailingNotificationSink()


def override_get_db():
    """One session per request, as in production, on the shared test connection."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def request_db():
    """Dependency override for ``get_db``; usable by apps other than the main one."""
    return override_get_db


@pytest.fixture(scope="function")
def client(db, settings, notifier):
    """
    Create a test client with a test database and an in-memory notifier.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    # Remove dependency overrides
    app.dependency_overrides = {}


@pytest.fixture
def registration_payload():
    """Build a valid stage 1 payload; keyword arguments override fields."""
    def build(**overrides):
        payload = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "a@x.com",
            "password": PASSWORD,
            "role": "contributor",
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def register(client, registration_payload):
    """Register an account through the API and return the response."""
    def do_register(**overrides):
        return client.post("/api/auth/register", json=registration_payload(**overrides))
    return do_register


@pytest.fixture
def verified_account(client, register, notifier):
    """Register and verify an account, returning its email."""
    def create(**overrides):
        response = register(**overrides)
        assert response.status_code == 201, response.json()
        email = response.json()["user"]["email"]
        verify = client.get(f"/api/auth/verify-email/{notifier.last_token(email)}")
        assert verify.status_code == 200, verify.json()
        return email
    return create


@pytest.fixture
def auth_headers(client, verified_account):
    """Register, verify and log in; return the bearer header."""
    def login(**overrides):
        email = verified_account(**overrides)
        response = client.post("/api/auth/login", json={"email": email, "password": overrides.get("password", PASSWORD)})
        assert response.status_code == 200, response.json()
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return login
