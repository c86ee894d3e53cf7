"""
FittedIn Backend — Test Configuration (conftest.py)
====================================================

What:  Shared fixtures: a throwaway SQLite database per test, user
       factories, service builders and an HTTP client for the app.
How:   Environment variables are set before anything from `fittedin` is
       imported, so the module-level `settings` and singletons pick them up.

Fixture Hierarchy (all function-scoped):
    db_engine ──▶ session_factory ──▶ db_session
                                 ├──▶ make_user
                                 └──▶ test_client (get_db_session overridden)
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./fittedin_test_unused.db"
os.environ["DB_CREATE_TABLES"] = "false"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["BCRYPT_ROUNDS"] = "4"

from typing import AsyncGenerator, Optional  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from fittedin.config import ConnectionPolicy  # noqa: E402
from fittedin.database import get_db_session, init_models  # noqa: E402
from fittedin.models.user import User  # noqa: E402
from fittedin.security import create_access_token  # noqa: E402
from fittedin.services.auth_service import AuthService  # noqa: E402
from fittedin.services.auto_accept_service import SeededAccountPolicy  # noqa: E402
from fittedin.services.connection_service import ConnectionService  # noqa: E402
from fittedin.services.notification_service import NotificationService  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    A fresh SQLite file with the full schema.

    The driver's implicit transaction handling is switched off so that
    SQLAlchemy emits BEGIN itself; SAVEPOINT and ROLLBACK then behave the
    way they do on PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fittedin.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    await init_models(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for the code under test; callers commit explicitly."""
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(session_factory):
    """
    Factory creating and committing a user (with an empty profile).

    Usage:
        alice = await make_user("alice@fittedin-seeded.com", "Alice")
        bob = await make_user("bob@fittedin.dev", "Bob", is_seeded=True)
    """
    auth = AuthService()

    async def _make(
        email: str,
        display_name: Optional[str] = None,
        is_seeded: bool = False,
        password: str = "correct-horse-battery",
    ) -> User:
        async with session_factory() as session:
            user = await auth.create_user(
                session,
                email=email,
                password=password,
                display_name=display_name or email.split("@")[0].title(),
                is_seeded=is_seeded,
            )
            await session.commit()
            return user

    return _make


@pytest.fixture
def auth_headers():
    """Builds an Authorization header for a user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def notifier() -> NotificationService:
    return NotificationService()


@pytest.fixture
def failing_notifier() -> NotificationService:
    """A notifier whose every delivery raises."""
    broken = NotificationService()
    broken.notify_connection_request = AsyncMock(side_effect=RuntimeError("smtp down"))
    broken.notify_connection_accepted = AsyncMock(side_effect=RuntimeError("smtp down"))
    return broken


class _RejectedByDatabaseNotifier(NotificationService):
    """Writes notifications the database refuses: `title` is NOT NULL."""

    async def create_notification(self, db, user_id, notification_type, title, **kwargs):
        return await super().create_notification(db, user_id, notification_type, None, **kwargs)


@pytest.fixture
def db_rejecting_notifier() -> NotificationService:
    """A notifier whose INSERT fails at flush time with an IntegrityError."""
    return _RejectedByDatabaseNotifier()


@pytest.fixture
def build_services(notifier):
    """
    Builds a (ConnectionService, SeededAccountPolicy) pair for a policy.

    Usage:
        connections, seeded = build_services(allow_retry_after_reject=True)
    """

    def _build(notification_sink: Optional[NotificationService] = None, **policy_overrides):
        policy = ConnectionPolicy(**policy_overrides)
        sink = notification_sink or notifier
        seeded = SeededAccountPolicy(policy, notifier=sink)
        return ConnectionService(policy, auto_accept=seeded, notifier=sink), seeded

    return _build


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app in-process.

    Request sessions come from the per-test SQLite database.
    """
    from fittedin.main import app

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
