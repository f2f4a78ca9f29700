"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CONFIG_PATH"] = str(Path(__file__).parent / "config.yaml")

import npo_calendar.models  # noqa: E402,F401
from npo_calendar.database import Base, get_db  # noqa: E402
from npo_calendar.main import app  # noqa: E402
from npo_calendar.models.profile import Profile, Role  # noqa: E402
from npo_calendar.services.access import Principal  # noqa: E402


@pytest.fixture
def engine():
    """Create an in-memory test database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Create a new database session for a test."""
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database session override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_principal(db: Session, role: Role, name: str) -> Principal:
    """Insert a profile with ``role`` and return it as a principal."""
    profile = Profile(email=f"{name}@example.org", display_name=name.title(), role=role.value)
    db.add(profile)
    db.commit()
    return Principal.from_profile(profile)


@pytest.fixture
def admin(db_session: Session) -> Principal:
    return make_principal(db_session, Role.ADMIN, "ada")


@pytest.fixture
def manager(db_session: Session) -> Principal:
    return make_principal(db_session, Role.MANAGER, "mona")


@pytest.fixture
def other_manager(db_session: Session) -> Principal:
    return make_principal(db_session, Role.MANAGER, "otto")


@pytest.fixture
def member(db_session: Session) -> Principal:
    return make_principal(db_session, Role.MEMBER, "nico")


def auth(principal: Principal) -> dict[str, str]:
    """Request headers identifying ``principal``."""
    return {"X-Principal-Id": str(principal.id)}
