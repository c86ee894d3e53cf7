"""
FittedIn Backend — Connection Service (Connection Lifecycle Manager)
=====================================================================

What:  Sending, resolving and removing connection requests, plus the
       read-side queries behind the network pages.
How:   Stateless methods over the request's AsyncSession. The rules that
       vary by deployment arrive frozen in a ConnectionPolicy at construction.
Who:   routes/connections.py.

State machine (one row per unordered pair of users):

                 send_request
    (no row) ───────────────────▶ pending ──accept / seeded──▶ accepted
        ▲                            │                            │
        │                            └──reject──▶ rejected        │
        │                                           │             │
        └──── remove_connection (either party) ─────┼─────────────┘
        └──── send_request when allow_retry_after_reject ┘

Duplicate handling:
    The existing-row lookup is symmetric and happens before the insert, but
    two opposite-direction requests can still race past it. The insert is
    optimistic: a uniqueness violation is reported exactly like a row found
    by the lookup, as ConflictError, never as a 500.

Notifications:
    Written through `deliver_best_effort`; a failure is logged and never
    fails or rolls back the connection change.
"""

import enum
import logging
import math
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittedin.config import ConnectionPolicy, settings
from fittedin.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
)
from fittedin.models.connection import Connection, ConnectionStatus
from fittedin.models.user import User
from fittedin.schemas.connection import (
    ConnectableUser,
    ConnectableUsersResponse,
    ConnectionListItem,
    ConnectionListResponse,
    ConnectionResponse,
    ConnectionStatusResponse,
    Pagination,
    PendingRequestsResponse,
)
from fittedin.services.activity_service import ActivityService, activity_service
from fittedin.services.auto_accept_service import SeededAccountPolicy, seeded_account_policy
from fittedin.services.notification_service import (
    NotificationService,
    deliver_best_effort,
    notification_service,
)
from fittedin.services.user_service import to_public_user

logger = logging.getLogger(__name__)


class ConnectionDecision(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ConnectionService:
    """
    Business logic for the connection lifecycle.

    Args:
        policy: Frozen connection rules (re-request after rejection, ...).
        auto_accept: Seeded-account policy run after every new request.
        notifier: Sink for request/accepted notifications.
        activities: Activity log for sent and accepted requests.
    """

    def __init__(
        self,
        policy: ConnectionPolicy,
        auto_accept: SeededAccountPolicy = seeded_account_policy,
        notifier: NotificationService = notification_service,
        activities: ActivityService = activity_service,
    ):
        self.policy = policy
        self._auto_accept = auto_accept
        self._notifier = notifier
        self._activities = activities

    # ══════════════════════════════════════════════════════════════════════
    # Commands
    # ══════════════════════════════════════════════════════════════════════

    async def send_request(
        self, db: AsyncSession, requester_id: UUID, receiver_id: UUID
    ) -> ConnectionResponse:
        """
        Create a pending request from `requester_id` to `receiver_id`.

        If the receiver is seeded the request is accepted before returning
        and the requester is notified; otherwise the receiver is notified.

        Raises:
            InvalidOperationError: requester and receiver are the same user
            NotFoundError: receiver (or requester) does not exist
            ConflictError: already connected, already pending, previously
                rejected (unless retries are allowed), or lost an insert race
            ForbiddenError: the pair is blocked
        """
        logger.info("Sending connection request %s -> %s", requester_id, receiver_id)

        if requester_id == receiver_id:
            raise InvalidOperationError("Cannot send connection request to yourself")

        receiver = await db.get(User, receiver_id)
        if receiver is None:
            raise NotFoundError(resource="user", message="User not found")
        requester = await db.get(User, requester_id)
        if requester is None:
            raise NotFoundError(resource="user", message="User not found")

        existing = await self._find_between(db, requester_id, receiver_id)
        if existing is not None:
            await self._clear_or_reject_existing(db, existing)

        connection = Connection.between(requester_id, receiver_id)
        db.add(connection)
        try:
            await db.flush()
        except IntegrityError:
            # Lost the race with a concurrent request for the same pair
            await db.rollback()
            logger.info(
                "Duplicate connection insert for pair %s / %s", requester_id, receiver_id
            )
            raise ConflictError("Connection already exists")

        await self._activities.connection_requested(db, requester_id, receiver_id, connection.id)
        auto_accepted = await self._auto_accept.auto_accept_if_seeded(
            db, connection.id, receiver_id
        )
        if not auto_accepted:
            await deliver_best_effort(
                self._notifier.notify_connection_request(
                    db, receiver_id, requester, connection.id
                ),
                "connection request",
            )
        else:
            await self._activities.connection_accepted(
                db, receiver_id, requester_id, connection.id
            )

        logger.info(
            "Connection request %s sent (auto_accepted=%s)", connection.id, auto_accepted
        )
        return ConnectionResponse.model_validate(connection)

    async def _clear_or_reject_existing(self, db: AsyncSession, existing: Connection) -> None:
        status = existing.status
        if status == ConnectionStatus.ACCEPTED.value:
            raise ConflictError("Already connected")
        if status == ConnectionStatus.PENDING.value:
            raise ConflictError("Connection request already pending")
        if status == ConnectionStatus.BLOCKED.value:
            raise ForbiddenError("Connection is blocked")

        # rejected
        if not self.policy.allow_retry_after_reject:
            raise ConflictError("Connection request was rejected")
        logger.info("Replacing rejected connection %s with a fresh request", existing.id)
        await db.delete(existing)
        await db.flush()

    async def resolve_request(
        self,
        db: AsyncSession,
        acting_user_id: UUID,
        connection_id: UUID,
        decision: ConnectionDecision,
    ) -> ConnectionResponse:
        """
        Accept or reject a pending request addressed to `acting_user_id`.

        Only the receiver may resolve; the requester gets the same 404 as for
        a missing id.

        Raises:
            NotFoundError: no pending request with this id for this receiver
        """
        logger.info(
            "Resolving connection %s as %s by %s", connection_id, decision.value, acting_user_id
        )
        result = await db.execute(
            select(Connection).where(
                Connection.id == connection_id,
                Connection.receiver_id == acting_user_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
        )
        connection = result.scalar_one_or_none()
        if connection is None:
            raise NotFoundError(
                resource="connection request", message="Connection request not found"
            )

        if decision is ConnectionDecision.ACCEPT:
            connection.status = ConnectionStatus.ACCEPTED.value
            await db.flush()
            receiver = await db.get(User, acting_user_id)
            if receiver is not None:
                await deliver_best_effort(
                    self._notifier.notify_connection_accepted(
                        db, connection.requester_id, receiver, connection.id
                    ),
                    "connection accepted",
                )
            await self._activities.connection_accepted(
                db, acting_user_id, connection.requester_id, connection.id
            )
        else:
            connection.status = ConnectionStatus.REJECTED.value
            await db.flush()

        logger.info("Connection %s is now %s", connection.id, connection.status)
        return ConnectionResponse.model_validate(connection)

    async def accept_request(
        self, db: AsyncSession, acting_user_id: UUID, connection_id: UUID
    ) -> ConnectionResponse:
        return await self.resolve_request(
            db, acting_user_id, connection_id, ConnectionDecision.ACCEPT
        )

    async def reject_request(
        self, db: AsyncSession, acting_user_id: UUID, connection_id: UUID
    ) -> ConnectionResponse:
        return await self.resolve_request(
            db, acting_user_id, connection_id, ConnectionDecision.REJECT
        )

    async def remove_connection(
        self, db: AsyncSession, user_id: UUID, connection_id: UUID
    ) -> None:
        """
        Delete an accepted connection. Either party may do this.

        Raises:
            NotFoundError: no accepted connection with this id involving the user
        """
        result = await db.execute(
            select(Connection).where(
                Connection.id == connection_id,
                or_(Connection.requester_id == user_id, Connection.receiver_id == user_id),
                Connection.status == ConnectionStatus.ACCEPTED.value,
            )
        )
        connection = result.scalar_one_or_none()
        if connection is None:
            raise NotFoundError(resource="connection", message="Connection not found")

        await db.delete(connection)
        await db.flush()
        logger.info("Connection %s removed by %s", connection_id, user_id)

    # ══════════════════════════════════════════════════════════════════════
    # Queries
    # ══════════════════════════════════════════════════════════════════════

    async def list_connections(
        self,
        db: AsyncSession,
        user_id: UUID,
        status: ConnectionStatus = ConnectionStatus.ACCEPTED,
    ) -> ConnectionListResponse:
        """Rows in `status` involving the user, each showing the counterpart."""
        query = (
            select(Connection)
            .where(
                or_(Connection.requester_id == user_id, Connection.receiver_id == user_id),
                Connection.status == ConnectionStatus(status).value,
            )
            .options(
                selectinload(Connection.requester).selectinload(User.profile),
                selectinload(Connection.receiver).selectinload(User.profile),
            )
            .order_by(Connection.created_at.desc())
        )
        connections = await self._fetch_all(db, query, "connections")
        return ConnectionListResponse(
            connections=[self._as_list_item(c, user_id) for c in connections]
        )

    async def list_pending_requests(
        self, db: AsyncSession, user_id: UUID
    ) -> PendingRequestsResponse:
        """Pending requests the user sent and those they received."""
        base = (
            select(Connection)
            .where(Connection.status == ConnectionStatus.PENDING.value)
            .order_by(Connection.created_at.desc())
        )
        sent = await self._fetch_all(
            db,
            base.where(Connection.requester_id == user_id).options(
                selectinload(Connection.receiver).selectinload(User.profile)
            ),
            "sent requests",
        )
        received = await self._fetch_all(
            db,
            base.where(Connection.receiver_id == user_id).options(
                selectinload(Connection.requester).selectinload(User.profile)
            ),
            "received requests",
        )
        return PendingRequestsResponse(
            sent=[self._as_list_item(c, user_id) for c in sent],
            received=[self._as_list_item(c, user_id) for c in received],
        )

    async def get_connection_status(
        self, db: AsyncSession, user_id: UUID, other_user_id: UUID
    ) -> ConnectionStatusResponse:
        connection = await self._find_between(db, user_id, other_user_id)
        if connection is None:
            return ConnectionStatusResponse(status="none")
        return ConnectionStatusResponse(
            status=connection.status,
            is_requester=connection.requester_id == user_id,
        )

    async def search_connectable_users(
        self,
        db: AsyncSession,
        user_id: UUID,
        term: str = "",
        limit: int = 20,
        offset: int = 0,
    ) -> ConnectableUsersResponse:
        """
        Users the acting user could send a request to.

        Excludes the user themself and anyone sharing a Connection row with
        them in any status. `term` matches display name or email,
        case-insensitively.
        """
        sent_to = select(Connection.receiver_id).where(Connection.requester_id == user_id)
        received_from = select(Connection.requester_id).where(Connection.receiver_id == user_id)

        filters = [
            User.id != user_id,
            User.id.not_in(sent_to),
            User.id.not_in(received_from),
        ]
        term = (term or "").strip()
        if term:
            pattern = f"%{_escape_like(term.lower())}%"
            filters.append(
                or_(
                    func.lower(User.display_name).like(pattern, escape="\\"),
                    func.lower(User.email).like(pattern, escape="\\"),
                )
            )

        try:
            count_result = await db.execute(select(func.count(User.id)).where(*filters))
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error counting users: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not search users. Please try again.",
                context={"error_type": type(e).__name__},
            )

        users = await self._fetch_all(
            db,
            select(User)
            .where(*filters)
            .options(selectinload(User.profile))
            .order_by(User.created_at.desc(), User.id)
            .limit(limit)
            .offset(offset),
            "users",
        )

        statuses = await self._statuses_with(db, user_id, [u.id for u in users])
        return ConnectableUsersResponse(
            users=[
                ConnectableUser(
                    **to_public_user(u).model_dump(),
                    connection_status=statuses.get(u.id, ConnectionStatusResponse(status="none")),
                )
                for u in users
            ],
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    async def _find_between(
        self, db: AsyncSession, user_a: UUID, user_b: UUID
    ) -> Optional[Connection]:
        """The row for the unordered pair {user_a, user_b}, in either direction."""
        low, high = sorted((user_a, user_b))
        result = await db.execute(
            select(Connection).where(
                Connection.user_low_id == low,
                Connection.user_high_id == high,
            )
        )
        return result.scalar_one_or_none()

    async def _statuses_with(
        self, db: AsyncSession, user_id: UUID, other_ids: List[UUID]
    ) -> Dict[UUID, ConnectionStatusResponse]:
        if not other_ids:
            return {}
        connections = await self._fetch_all(
            db,
            select(Connection).where(
                or_(
                    (Connection.requester_id == user_id) & Connection.receiver_id.in_(other_ids),
                    (Connection.receiver_id == user_id) & Connection.requester_id.in_(other_ids),
                )
            ),
            "connection statuses",
        )
        return {
            c.counterpart_id(user_id): ConnectionStatusResponse(
                status=c.status, is_requester=c.requester_id == user_id
            )
            for c in connections
        }

    @staticmethod
    def _as_list_item(connection: Connection, user_id: UUID) -> ConnectionListItem:
        other = connection.receiver if connection.requester_id == user_id else connection.requester
        return ConnectionListItem(
            id=connection.id,
            status=connection.status,
            created_at=connection.created_at,
            updated_at=connection.updated_at,
            user=to_public_user(other) if other is not None else None,
        )

    @staticmethod
    async def _fetch_all(db: AsyncSession, query, what: str) -> list:
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error fetching %s: %s", what, str(e), exc_info=True)
            raise DatabaseError(
                message=f"Could not retrieve {what}. Please try again.",
                context={"error_type": type(e).__name__},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
connection_service = ConnectionService(settings.connection_policy())
