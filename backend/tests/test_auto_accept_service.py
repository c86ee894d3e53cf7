"""
FittedIn Backend — Seeded-Account Auto-Accept Tests
====================================================

What:  Seeded detection (flag, domain list, optional recent-signup window),
       idempotency of the auto-accept transition and the maintenance sweep.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy import select

from fittedin.config import ConnectionPolicy
from fittedin.models.connection import Connection, ConnectionStatus
from fittedin.models.notification import Notification
from fittedin.models.user import User
from fittedin.services.auto_accept_service import SeededAccountPolicy


def user_stub(email: str, is_seeded: bool = False, created_at=None) -> User:
    return User(
        id=uuid4(),
        email=email,
        display_name="Stub",
        password_hash="x",
        is_seeded=is_seeded,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestSeededDetection:
    """is_seeded_user: pure checks on an in-memory User."""

    def setup_method(self):
        self.policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock())

    def test_explicit_flag(self):
        assert self.policy.is_seeded_user(user_stub("coach@fittedin.dev", is_seeded=True))

    @pytest.mark.parametrize(
        "email",
        [
            "alice@fittedin-seeded.com",
            "ALICE@FittedIn-Seeded.com",
            "demo@example.com",
            "fake@faker.com",
            "t@test.com",
        ],
    )
    def test_seeded_domains(self, email):
        assert self.policy.is_seeded_user(user_stub(email))

    @pytest.mark.parametrize(
        "email",
        ["real@fittedin.dev", "alice@notfittedin-seeded.com", "example.com@gmail.com"],
    )
    def test_other_domains_are_not_seeded(self, email):
        assert not self.policy.is_seeded_user(user_stub(email))

    def test_custom_domain_list(self):
        policy = SeededAccountPolicy(
            ConnectionPolicy(seeded_email_domains=("Demo.Fit",)), notifier=AsyncMock()
        )
        assert policy.is_seeded_user(user_stub("x@demo.fit"))
        assert not policy.is_seeded_user(user_stub("x@example.com"))

    def test_recent_signup_ignored_by_default(self):
        now = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock(), clock=lambda: now)
        fresh = user_stub("new@fittedin.dev", created_at=now - timedelta(hours=1))

        assert not policy.is_seeded_user(fresh)

    def test_recent_signup_window_when_enabled(self):
        now = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
        policy = SeededAccountPolicy(
            ConnectionPolicy(treat_recent_signups_as_seeded=True, seeded_recent_window_hours=24),
            notifier=AsyncMock(),
            clock=lambda: now,
        )

        assert policy.is_seeded_user(user_stub("new@fittedin.dev", created_at=now - timedelta(hours=23)))
        assert not policy.is_seeded_user(
            user_stub("old@fittedin.dev", created_at=now - timedelta(hours=25))
        )
        # Naive timestamps (SQLite) are read as UTC
        assert policy.is_seeded_user(
            user_stub("naive@fittedin.dev", created_at=datetime(2024, 6, 1, 11))
        )
        assert not policy.is_seeded_user(user_stub("not-an-email", created_at=now))


class TestIsSeededAccount:

    @pytest.mark.asyncio
    async def test_unknown_user_is_not_seeded(self, db_session):
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock())

        assert await policy.is_seeded_account(db_session, uuid4()) is False

    @pytest.mark.asyncio
    async def test_loads_user_by_id(self, db_session, make_user):
        seeded = await make_user("alice@fittedin-seeded.com")
        real = await make_user("bob@fittedin.dev")
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock())

        assert await policy.is_seeded_account(db_session, seeded.id) is True
        assert await policy.is_seeded_account(db_session, real.id) is False


async def insert_pending(session_factory, requester, receiver) -> Connection:
    async with session_factory() as session:
        connection = Connection.between(requester.id, receiver.id)
        session.add(connection)
        await session.commit()
        return connection


class TestAutoAcceptIfSeeded:

    @pytest.mark.asyncio
    async def test_second_call_is_a_no_op(
        self, db_session, session_factory, make_user, notifier
    ):
        a = await make_user("a@fittedin.dev")
        b = await make_user("alice@fittedin-seeded.com")
        pending = await insert_pending(session_factory, a, b)
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=notifier)

        first = await policy.auto_accept_if_seeded(db_session, pending.id, b.id)
        second = await policy.auto_accept_if_seeded(db_session, pending.id, b.id)
        await db_session.commit()

        assert first is True
        assert second is False

        async with session_factory() as session:
            row = await session.get(Connection, pending.id)
            assert row.status == ConnectionStatus.ACCEPTED.value
            result = await session.execute(
                select(Notification).where(Notification.user_id == a.id)
            )
            assert len(result.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_non_seeded_receiver_is_untouched(self, db_session, session_factory, make_user):
        a = await make_user("a@fittedin.dev")
        b = await make_user("b@fittedin.dev")
        pending = await insert_pending(session_factory, a, b)
        notifier = AsyncMock()
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=notifier)

        assert await policy.auto_accept_if_seeded(db_session, pending.id, b.id) is False
        notifier.notify_connection_accepted.assert_not_called()

    @pytest.mark.asyncio
    async def test_receiver_mismatch_is_refused(self, db_session, session_factory, make_user):
        """A seeded user cannot auto-accept a request addressed to someone else."""
        a = await make_user("a@fittedin.dev")
        b = await make_user("b@fittedin.dev")
        seeded = await make_user("alice@fittedin-seeded.com")
        pending = await insert_pending(session_factory, a, b)
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock())

        assert await policy.auto_accept_if_seeded(db_session, pending.id, seeded.id) is False

    @pytest.mark.asyncio
    async def test_unknown_connection(self, db_session, make_user):
        seeded = await make_user("alice@fittedin-seeded.com")
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock())

        assert await policy.auto_accept_if_seeded(db_session, uuid4(), seeded.id) is False

    @pytest.mark.asyncio
    async def test_disabled_policy(self, db_session, session_factory, make_user):
        a = await make_user("a@fittedin.dev")
        b = await make_user("alice@fittedin-seeded.com")
        pending = await insert_pending(session_factory, a, b)
        policy = SeededAccountPolicy(
            ConnectionPolicy(auto_accept_enabled=False), notifier=AsyncMock()
        )

        assert await policy.auto_accept_if_seeded(db_session, pending.id, b.id) is False

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_acceptance(
        self, db_session, session_factory, make_user, failing_notifier
    ):
        a = await make_user("a@fittedin.dev")
        b = await make_user("alice@fittedin-seeded.com")
        pending = await insert_pending(session_factory, a, b)
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=failing_notifier)

        assert await policy.auto_accept_if_seeded(db_session, pending.id, b.id) is True
        await db_session.commit()

        async with session_factory() as session:
            row = await session.get(Connection, pending.id)
            assert row.status == ConnectionStatus.ACCEPTED.value


class TestSweep:

    @pytest.mark.asyncio
    async def test_counts_pending_and_accepted(self, db_session, session_factory, make_user, notifier):
        a = await make_user("a@fittedin.dev")
        b = await make_user("b@fittedin.dev")
        seeded_one = await make_user("one@fittedin-seeded.com")
        seeded_two = await make_user("two@fittedin.dev", is_seeded=True)
        await insert_pending(session_factory, a, seeded_one)
        await insert_pending(session_factory, b, seeded_two)
        await insert_pending(session_factory, a, b)
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=notifier)

        first = await policy.process_pending_for_seeded_accounts(db_session)
        await db_session.commit()
        second = await policy.process_pending_for_seeded_accounts(db_session)

        assert (first.total_pending, first.auto_accepted) == (3, 2)
        assert (second.total_pending, second.auto_accepted) == (1, 0)
        assert first.model_dump(by_alias=True) == {"totalPending": 3, "autoAccepted": 2}

    @pytest.mark.asyncio
    async def test_empty_table(self, db_session):
        policy = SeededAccountPolicy(ConnectionPolicy(), notifier=AsyncMock())

        result = await policy.process_pending_for_seeded_accounts(db_session)

        assert (result.total_pending, result.auto_accepted) == (0, 0)
