"""
FittedIn Backend — Notification Service Tests
==============================================

What:  Inbox queries, ownership checks and best-effort delivery.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from fittedin.exceptions import NotFoundError
from fittedin.models.notification import NotificationType
from fittedin.services.notification_service import deliver_best_effort


async def seed_inbox(session_factory, notifier, owner, sender, count):
    async with session_factory() as session:
        for _ in range(count):
            await notifier.notify_connection_request(session, owner.id, sender, uuid4())
        await session.commit()


class TestDeliverBestEffort:

    @pytest.mark.asyncio
    async def test_success(self):
        delivery = AsyncMock(return_value="ok")

        assert await deliver_best_effort(delivery(), "test") is True

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_swallowed(self, caplog):
        delivery = AsyncMock(side_effect=RuntimeError("boom"))

        assert await deliver_best_effort(delivery(), "connection request") is False
        assert "Failed to deliver connection request notification" in caplog.text


class TestInbox:

    @pytest.mark.asyncio
    async def test_list_newest_first_with_sender(
        self, db_session, session_factory, make_user, notifier
    ):
        owner = await make_user("owner@fittedin.dev")
        sender = await make_user("sender@fittedin.dev", "Sender")
        await seed_inbox(session_factory, notifier, owner, sender, 3)

        inbox = await notifier.list_notifications(db_session, owner.id)

        assert len(inbox.notifications) == 3
        first = inbox.notifications[0]
        assert first.type == NotificationType.CONNECTION_REQUEST.value
        assert first.from_user.display_name == "Sender"
        assert first.is_read is False
        created = [n.created_at for n in inbox.notifications]
        assert created == sorted(created, reverse=True)

    @pytest.mark.asyncio
    async def test_limit_offset_and_unread_only(
        self, db_session, session_factory, make_user, notifier
    ):
        owner = await make_user("owner@fittedin.dev")
        sender = await make_user("sender@fittedin.dev")
        await seed_inbox(session_factory, notifier, owner, sender, 4)

        page = await notifier.list_notifications(db_session, owner.id, limit=3, offset=2)
        assert len(page.notifications) == 2

        await notifier.mark_as_read(db_session, page.notifications[0].id, owner.id)
        unread = await notifier.list_notifications(db_session, owner.id, unread_only=True)
        assert len(unread.notifications) == 3

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_all(
        self, db_session, session_factory, make_user, notifier
    ):
        owner = await make_user("owner@fittedin.dev")
        sender = await make_user("sender@fittedin.dev")
        await seed_inbox(session_factory, notifier, owner, sender, 2)

        assert await notifier.unread_count(db_session, owner.id) == 2
        assert await notifier.mark_all_as_read(db_session, owner.id) == 2
        assert await notifier.unread_count(db_session, owner.id) == 0
        assert await notifier.mark_all_as_read(db_session, owner.id) == 0

    @pytest.mark.asyncio
    async def test_mark_as_read_sets_timestamp(
        self, db_session, session_factory, make_user, notifier
    ):
        owner = await make_user("owner@fittedin.dev")
        sender = await make_user("sender@fittedin.dev")
        await seed_inbox(session_factory, notifier, owner, sender, 1)
        inbox = await notifier.list_notifications(db_session, owner.id)

        updated = await notifier.mark_as_read(db_session, inbox.notifications[0].id, owner.id)

        assert updated.is_read is True
        assert updated.read_at is not None

    @pytest.mark.asyncio
    async def test_other_users_notification_is_not_found(
        self, db_session, session_factory, make_user, notifier
    ):
        owner = await make_user("owner@fittedin.dev")
        intruder = await make_user("intruder@fittedin.dev")
        await seed_inbox(session_factory, notifier, owner, intruder, 1)
        inbox = await notifier.list_notifications(db_session, owner.id)
        notification_id = inbox.notifications[0].id

        with pytest.raises(NotFoundError):
            await notifier.mark_as_read(db_session, notification_id, intruder.id)
        with pytest.raises(NotFoundError):
            await notifier.delete_notification(db_session, notification_id, intruder.id)

    @pytest.mark.asyncio
    async def test_delete(self, db_session, session_factory, make_user, notifier):
        owner = await make_user("owner@fittedin.dev")
        sender = await make_user("sender@fittedin.dev")
        await seed_inbox(session_factory, notifier, owner, sender, 1)
        inbox = await notifier.list_notifications(db_session, owner.id)

        await notifier.delete_notification(db_session, inbox.notifications[0].id, owner.id)

        assert (await notifier.list_notifications(db_session, owner.id)).notifications == []
