"""
Test configuration and fixtures.

Provides:
- Fresh schema on an in-memory SQLite engine per test
- User / household factories
- JWT header minting for authenticated requests
- Capture of push deliveries
- HTTPX AsyncClient bound to the app with get_db overridden
"""
import os
import uuid
from typing import AsyncGenerator, Callable, Generator

# Must be set before any krisefikser import reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ["SENTRY_DSN"] = ""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from krisefikser.main import app
from krisefikser.core.deps import get_db
from krisefikser.core.security import create_access_token
from krisefikser.db.base import Base
from krisefikser.db.enums import Role
from krisefikser.db.models import Household, Scenario, User
from krisefikser.db.session import SessionLocal, engine
from krisefikser.services import household_service, notification_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates all tables, yields a session, drops everything afterwards.

    App code commits freely; isolation comes from rebuilding the schema.
    """
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    """Factory for committed users."""

    def _make(
        full_name: str = "Test User",
        email: str | None = None,
        role: Role = Role.USER,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email or f"user-{uuid.uuid4().hex[:8]}@test.no",
            full_name=full_name,
            role=role.value,
            latitude=latitude,
            longitude=longitude,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture(scope="function")
def owner(make_user) -> User:
    return make_user(full_name="Olav Owner")


@pytest.fixture(scope="function")
def household(db: Session, owner: User) -> Household:
    """Household owned by ``owner`` (sole member)."""
    return household_service.create_household(db, owner, "Test Home", "Storgata 1")


@pytest.fixture(scope="function")
def admin(make_user) -> User:
    return make_user(full_name="Ada Admin", role=Role.ADMIN)


@pytest.fixture(scope="function")
def scenario(db: Session) -> Scenario:
    scenario = Scenario(name="Flood", description="River flooding", icon_name="flood")
    db.add(scenario)
    db.commit()
    db.refresh(scenario)
    return scenario


# =============================================================================
# Push capture
# =============================================================================

@pytest.fixture(scope="function")
def pushed(monkeypatch: pytest.MonkeyPatch) -> list[tuple]:
    """
    Replace push delivery with a recorder.

    Entries are ("user", user_id, payload) or ("topic", topic, payload).
    """
    deliveries: list[tuple] = []

    def _push_to_user(user_id, payload):
        deliveries.append(("user", user_id, payload))
        return True

    def _push_to_topic(topic, payload):
        deliveries.append(("topic", topic, payload))
        return True

    monkeypatch.setattr(notification_service, "push_to_user", _push_to_user)
    monkeypatch.setattr(notification_service, "push_to_topic", _push_to_topic)
    return deliveries


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build an Authorization header for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient sharing the test session with the app."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
