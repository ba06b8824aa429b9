"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import AuthConfig
from app.database import Base, get_db
from app.models.auth_token import AuthToken  # noqa: F401
from app.models.password_reset_otp import PasswordResetOtp  # noqa: F401
from app.models.user import User  # noqa: F401
from app.services.auth import AuthService, get_auth_service
from app.services.mailer import Mailer


class RecordingMailer(Mailer):
    """Keeps every reset email in memory instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def send_password_reset_otp(self, email: str, otp: str, first_name: str) -> None:
        if self.fail:
            raise ConnectionRefusedError("smtp down")
        self.sent.append({"email": email, "otp": otp, "first_name": first_name})

    @property
    def last_otp(self) -> str:
        return self.sent[-1]["otp"]


class FakeClock:
    """Manually advanced replacement for datetime.utcnow."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="mailer")
def mailer_fixture() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(name="auth_config")
def auth_config_fixture() -> AuthConfig:
    return AuthConfig()


@pytest.fixture(name="auth_service")
def auth_service_fixture(auth_config: AuthConfig, mailer: RecordingMailer) -> AuthService:
    return AuthService(config=auth_config, mailer=mailer)


@pytest.fixture(name="client")
def client_fixture(db_session: Session, auth_service: AuthService):
    """Create a test client with overridden DB and auth service, and rate limiting disabled."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session, auth_service: AuthService):
    """Create a test user and return its details plus a bearer token."""
    result = auth_service.signup(db_session, "Test", "User", "test@example.com", "password123")
    return {
        "user_id": result.user.id,
        "email": result.user.email,
        "name": result.user.name,
        "token": result.token,
    }
