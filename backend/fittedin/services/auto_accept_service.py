"""
FittedIn Backend — Seeded-Account Auto-Accept
==============================================

What:  Demo ("seeded") accounts behave as if perpetually online and
       agreeable: every inbound connection request is accepted at once, so
       new users immediately see a populated network.
How:   `SeededAccountPolicy` decides whether an account is seeded and moves
       pending requests addressed to such accounts to 'accepted'.
Who:   ConnectionService (after each new request) and the
       POST /api/connections/auto-accept-pending maintenance sweep.

Seeded detection, in order:
    1. `users.is_seeded` is true (set once at creation)
    2. the email domain is in `ConnectionPolicy.seeded_email_domains`
    3. only if `treat_recent_signups_as_seeded` is on: the account was
       created within the last `seeded_recent_window_hours` and has a valid
       email address. Off by default: with it on, every brand-new real
       signup auto-accepts requests during its first day.

Idempotency:
    The pending → accepted transition is a conditional UPDATE
    (`WHERE status = 'pending'`). Whichever caller changes the row sends
    the notification; everyone else gets False.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.config import ConnectionPolicy, settings
from fittedin.models.connection import Connection, ConnectionStatus
from fittedin.models.user import User, utcnow
from fittedin.schemas.connection import AutoAcceptSweepResponse
from fittedin.services.notification_service import (
    NotificationService,
    deliver_best_effort,
    notification_service,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _has_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class SeededAccountPolicy:
    """
    Seeded-account detection and the auto-accept transition.

    Args:
        policy: Frozen connection rules (domains, toggles, window).
        notifier: Sink for the "request accepted" notification.
        clock: Returns the current UTC time; replaceable in tests.
    """

    def __init__(
        self,
        policy: ConnectionPolicy,
        notifier: NotificationService = notification_service,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.policy = policy
        self._notifier = notifier
        self._clock = clock

    # ── Detection ─────────────────────────────────────────────────────────

    def is_seeded_user(self, user: User) -> bool:
        """Seeded check for an already-loaded User row."""
        if user.is_seeded:
            return True

        email = (user.email or "").lower()
        _, at, domain = email.rpartition("@")
        if at and domain in self.policy.seeded_email_domains:
            return True

        if self.policy.treat_recent_signups_as_seeded and user.created_at is not None:
            window = timedelta(hours=self.policy.seeded_recent_window_hours)
            if _as_utc(user.created_at) > self._clock() - window:
                return _has_valid_email(email)

        return False

    async def is_seeded_account(self, db: AsyncSession, user_id: UUID) -> bool:
        """False for unknown users."""
        user = await db.get(User, user_id)
        if user is None:
            return False
        return self.is_seeded_user(user)

    # ── Transition ────────────────────────────────────────────────────────

    async def auto_accept_if_seeded(
        self, db: AsyncSession, connection_id: UUID, receiver_id: UUID
    ) -> bool:
        """
        Accept `connection_id` on behalf of a seeded receiver.

        Returns:
            True only if this call moved the row from pending to accepted.
            False if auto-accept is disabled, the receiver is not seeded,
            the row is gone, addressed to someone else, or already resolved.
        """
        if not self.policy.auto_accept_enabled:
            return False

        receiver = await db.get(User, receiver_id)
        if receiver is None or not self.is_seeded_user(receiver):
            return False

        result = await db.execute(
            update(Connection)
            .where(
                Connection.id == connection_id,
                Connection.receiver_id == receiver_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
            .values(status=ConnectionStatus.ACCEPTED.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.debug(
                "Auto-accept skipped for connection %s: not pending for receiver %s",
                connection_id,
                receiver_id,
            )
            return False

        connection = await db.get(Connection, connection_id, populate_existing=True)
        logger.info(
            "Auto-accepted connection %s for seeded user %s (requester %s)",
            connection_id,
            receiver_id,
            connection.requester_id,
        )

        await deliver_best_effort(
            self._notifier.notify_connection_accepted(
                db, connection.requester_id, receiver, connection.id
            ),
            "auto-accept",
        )
        return True

    async def process_pending_for_seeded_accounts(
        self, db: AsyncSession
    ) -> AutoAcceptSweepResponse:
        """
        Apply `auto_accept_if_seeded` to every pending row.

        Safe to run repeatedly: rows that are no longer pending are skipped.
        """
        logger.info("Processing pending requests for seeded accounts")
        result = await db.execute(
            select(Connection.id, Connection.receiver_id)
            .where(Connection.status == ConnectionStatus.PENDING.value)
            .order_by(Connection.created_at)
        )
        pending = result.all()

        auto_accepted = 0
        for connection_id, receiver_id in pending:
            if await self.auto_accept_if_seeded(db, connection_id, receiver_id):
                auto_accepted += 1

        logger.info(
            "Auto-accept sweep completed: %d pending, %d auto-accepted",
            len(pending),
            auto_accepted,
        )
        return AutoAcceptSweepResponse(total_pending=len(pending), auto_accepted=auto_accepted)


# ── Singleton Instance ────────────────────────────────────────────────────
seeded_account_policy = SeededAccountPolicy(settings.connection_policy())
