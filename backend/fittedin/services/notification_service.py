"""
FittedIn Backend — Notification Service
========================================

What:  Creates connection-event notifications and serves the user's inbox.
How:   Writers run inside a SAVEPOINT on the caller's session, so a failed
       insert rolls back only the notification and leaves the caller's
       connection change intact. Callers go through `deliver_best_effort`,
       which logs and swallows any failure.
Who:   ConnectionService and SeededAccountPolicy (writers);
       routes/notifications.py (readers).
"""

import logging
from typing import Any, Awaitable, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittedin.exceptions import DatabaseError, NotFoundError
from fittedin.models.notification import Notification, NotificationType
from fittedin.models.user import User, utcnow
from fittedin.schemas.notification import NotificationListResponse, NotificationResponse

logger = logging.getLogger(__name__)

CONNECTION_ENTITY = "connection"


async def deliver_best_effort(delivery: Awaitable[Any], description: str) -> bool:
    """
    Await a notification write, never letting it fail the caller.

    Returns:
        True if the notification was written, False if it failed (logged).
    """
    try:
        await delivery
        return True
    except Exception:
        logger.warning("Failed to deliver %s notification", description, exc_info=True)
        return False


class NotificationService:
    """
    Notification writer and inbox queries.

    Stateless: every method receives the request's session.
    """

    # ── Writers ───────────────────────────────────────────────────────────

    async def create_notification(
        self,
        db: AsyncSession,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: Optional[str] = None,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[UUID] = None,
        from_user_id: Optional[UUID] = None,
    ) -> Notification:
        """Insert one notification inside a savepoint of `db`."""
        logger.debug("Creating %s notification for user %s", notification_type.value, user_id)
        notification = Notification(
            user_id=user_id,
            type=notification_type.value,
            title=title,
            message=message,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
            from_user_id=from_user_id,
        )
        async with db.begin_nested():
            db.add(notification)
        return notification

    async def notify_connection_request(
        self,
        db: AsyncSession,
        receiver_id: UUID,
        requester: User,
        connection_id: UUID,
    ) -> Notification:
        return await self.create_notification(
            db,
            user_id=receiver_id,
            notification_type=NotificationType.CONNECTION_REQUEST,
            title=f"{requester.display_name} wants to connect",
            message=f"{requester.display_name} sent you a connection request",
            related_entity_type=CONNECTION_ENTITY,
            related_entity_id=connection_id,
            from_user_id=requester.id,
        )

    async def notify_connection_accepted(
        self,
        db: AsyncSession,
        requester_id: UUID,
        receiver: User,
        connection_id: UUID,
    ) -> Notification:
        return await self.create_notification(
            db,
            user_id=requester_id,
            notification_type=NotificationType.CONNECTION_ACCEPTED,
            title=f"{receiver.display_name} accepted your connection request",
            message=f"You are now connected with {receiver.display_name}",
            related_entity_type=CONNECTION_ENTITY,
            related_entity_id=connection_id,
            from_user_id=receiver.id,
        )

    # ── Inbox ─────────────────────────────────────────────────────────────

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
        unread_only: bool = False,
    ) -> NotificationListResponse:
        """
        The user's notifications, newest first, with the sender attached.

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .options(selectinload(Notification.from_user))
        )
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = (
            query.order_by(Notification.created_at.desc(), Notification.id)
            .limit(limit)
            .offset(offset)
        )

        try:
            result = await db.execute(query)
            notifications = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing notifications: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notifications. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in notifications]
        )

    async def unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_as_read(
        self, db: AsyncSession, notification_id: UUID, user_id: UUID
    ) -> NotificationResponse:
        """Mark one of the user's notifications read; 404 if it isn't theirs."""
        notification = await self._get_owned(db, notification_id, user_id)
        if not notification.is_read:
            notification.mark_as_read()
            await db.flush()
        return NotificationResponse.model_validate(notification)

    async def mark_all_as_read(self, db: AsyncSession, user_id: UUID) -> int:
        """Returns the number of notifications that changed."""
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        logger.debug("Marked %d notifications read for user %s", result.rowcount, user_id)
        return result.rowcount or 0

    async def delete_notification(
        self, db: AsyncSession, notification_id: UUID, user_id: UUID
    ) -> None:
        notification = await self._get_owned(db, notification_id, user_id)
        await db.delete(notification)
        await db.flush()

    async def _get_owned(
        self, db: AsyncSession, notification_id: UUID, user_id: UUID
    ) -> Notification:
        result = await db.execute(
            select(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .options(selectinload(Notification.from_user))
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError(resource="notification", message="Notification not found")
        return notification


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
