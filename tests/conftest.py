"""
Pytest configuration and fixtures.
"""

from datetime import datetime, timedelta

import pytest
from click.testing import CliRunner
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from secretsync.config import Settings, set_settings
from secretsync.dashboard import deps
from secretsync.dashboard.main import app
from secretsync.database import Base, SessionLocal, configure_database, get_db, init_db
from secretsync.models import tables  # noqa: F401
from secretsync.services import (
    AccessService,
    MemberService,
    ProjectService,
    SearchService,
    SecretService,
    UserService,
)
from secretsync.store import SecretStore

ADMIN_EMAIL = "admin@example.com"
MEMBER_EMAIL = "dev@example.com"


class FakeClock:
    """Deterministic clock: every call returns a time one second after the last."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def settings(tmp_path):
    """Test settings (no .env lookup, logs under tmp_path)."""
    test_settings = Settings(
        database_url="sqlite://",
        admin_email=ADMIN_EMAIL,
        log_dir=tmp_path / "logs",
    )
    set_settings(test_settings)
    yield test_settings
    set_settings(None)


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine shared by every session of a test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_database(engine=test_engine)
    init_db()
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    """Create a test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(db_session):
    return SecretStore(db_session)


@pytest.fixture
def secret_service(store, clock):
    return SecretService(store, clock=clock)


@pytest.fixture
def project_service(store):
    return ProjectService(store)


@pytest.fixture
def member_service(store):
    return MemberService(store)


@pytest.fixture
def user_service(store, settings):
    return UserService(store, settings=settings)


@pytest.fixture
def access_service(store):
    return AccessService(store)


@pytest.fixture
def search_service(store):
    return SearchService(store)


@pytest.fixture
def project(project_service):
    """Project 'growth' with development, staging and production."""
    return project_service.create_project("Growth", "Growth team services")


@pytest.fixture
def envs(store, project):
    """Environments of the test project keyed by slug."""
    return {env.slug: env for env in store.list_environments(project.id)}


@pytest.fixture
def admin_user(user_service):
    return user_service.register_user(ADMIN_EMAIL, "Admin")


@pytest.fixture
def member_user(user_service):
    return user_service.register_user(MEMBER_EMAIL, "Dev")


@pytest.fixture
def client(db_session, clock):
    """Create a test client sharing the test session and clock."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return {"X-User-Id": admin_user.id}


@pytest.fixture
def member_headers(member_user) -> dict:
    return {"X-User-Id": member_user.id}


@pytest.fixture
def runner():
    return CliRunner()
