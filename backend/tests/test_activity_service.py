"""
FittedIn Backend — Activity Service Tests
==========================================

What:  Best-effort recording, the entries left by profile and connection
       changes, the network feed and per-type statistics.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from fittedin.models.activity import Activity, ActivityEntity, ActivityType
from fittedin.models.post import Post
from fittedin.models.user import utcnow
from fittedin.schemas.user import ProfileUpdateRequest
from fittedin.services.activity_service import ActivityService
from fittedin.services.connection_service import ConnectionDecision
from fittedin.services.profile_service import ProfileService


@pytest.fixture
def activities() -> ActivityService:
    return ActivityService()


class TestRecord:

    @pytest.mark.asyncio
    async def test_record_fields(self, db_session, make_user, activities):
        alice = await make_user("alice@fittedin.dev", "Alice")

        entry = await activities.record(
            db_session,
            alice.id,
            ActivityType.PROFILE_UPDATED,
            {"changes": ["bio"]},
            ActivityEntity.PROFILE,
            alice.id,
        )
        await db_session.commit()

        page = await activities.list_user_activities(db_session, alice.id)
        assert entry is not None
        assert len(page.activities) == 1
        stored = page.activities[0]
        assert stored.activity_type == "profile_updated"
        assert stored.related_entity_type == "profile"
        assert stored.activity_data == {"changes": ["bio"]}
        assert stored.user.display_name == "Alice"

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_callers_work(self, db_session, make_user, activities, caplog):
        alice = await make_user("alice@fittedin.dev")
        db_session.add(Post(user_id=alice.id, content="kept"))
        await db_session.flush()

        # user_id is NOT NULL: the INSERT fails inside the savepoint
        entry = await activities.record(db_session, None, ActivityType.GOAL_CREATED)
        await db_session.commit()

        assert entry is None
        assert "Failed to record goal_created activity" in caplog.text
        posts = await db_session.execute(select(Post.content))
        assert posts.scalars().all() == ["kept"]
        assert (await db_session.execute(select(Activity.id))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_filter_by_type(self, db_session, make_user, activities):
        alice = await make_user("alice@fittedin.dev")
        await activities.record(db_session, alice.id, ActivityType.PROFILE_UPDATED)
        await activities.record(db_session, alice.id, ActivityType.GOAL_CREATED)
        await activities.record(db_session, alice.id, ActivityType.GOAL_CREATED)
        await db_session.commit()

        page = await activities.list_user_activities(
            db_session, alice.id, activity_type=ActivityType.GOAL_CREATED
        )
        limited = await activities.list_user_activities(db_session, alice.id, limit=1, offset=1)

        assert len(page.activities) == 2
        assert len(limited.activities) == 1


class TestRecordedByOtherServices:

    @pytest.mark.asyncio
    async def test_profile_update_lists_changed_fields(self, db_session, make_user, activities):
        alice = await make_user("alice@fittedin.dev")
        profiles = ProfileService(activities=activities)

        await profiles.update_profile(
            db_session, alice.id, ProfileUpdateRequest(bio="Runner", location="Oslo")
        )
        # Same values again: nothing changes, nothing is recorded
        await profiles.update_profile(db_session, alice.id, ProfileUpdateRequest(bio="Runner"))
        await db_session.commit()

        page = await activities.list_user_activities(db_session, alice.id)
        assert len(page.activities) == 1
        assert sorted(page.activities[0].activity_data["changes"]) == ["bio", "location"]

    @pytest.mark.asyncio
    async def test_pending_request_is_logged_for_requester(
        self, db_session, make_user, build_services, activities
    ):
        alice = await make_user("alice@fittedin.dev")
        bob = await make_user("bob@fittedin.dev")
        connections, _ = build_services()

        connection = await connections.send_request(db_session, alice.id, bob.id)
        await db_session.commit()

        mine = await activities.list_user_activities(db_session, alice.id)
        theirs = await activities.list_user_activities(db_session, bob.id)
        assert [a.activity_type for a in mine.activities] == ["connection_request"]
        assert mine.activities[0].related_entity_id == connection.id
        assert mine.activities[0].activity_data == {"receiver_id": str(bob.id)}
        assert theirs.activities == []

    @pytest.mark.asyncio
    async def test_auto_accept_is_logged_for_seeded_receiver(
        self, db_session, make_user, build_services, activities
    ):
        alice = await make_user("alice@fittedin.dev")
        coach = await make_user("coach@fittedin-seeded.com")
        connections, _ = build_services()

        await connections.send_request(db_session, alice.id, coach.id)
        await db_session.commit()

        theirs = await activities.list_user_activities(db_session, coach.id)
        assert [a.activity_type for a in theirs.activities] == ["connection_accepted"]
        assert theirs.activities[0].activity_data == {"other_user_id": str(alice.id)}

    @pytest.mark.asyncio
    async def test_manual_accept_is_logged_for_receiver(
        self, db_session, session_factory, make_user, build_services, activities
    ):
        alice = await make_user("alice@fittedin.dev")
        bob = await make_user("bob@fittedin.dev")
        connections, _ = build_services()
        async with session_factory() as session:
            connection = await connections.send_request(session, alice.id, bob.id)
            await session.commit()

        await connections.resolve_request(
            db_session, bob.id, connection.id, ConnectionDecision.ACCEPT
        )
        await db_session.commit()

        page = await activities.list_user_activities(
            db_session, bob.id, activity_type=ActivityType.CONNECTION_ACCEPTED
        )
        assert len(page.activities) == 1
        assert page.activities[0].related_entity_id == connection.id


class TestFeedAndStats:

    @pytest.mark.asyncio
    async def test_feed_covers_accepted_connections_only(
        self, db_session, make_user, build_services, activities
    ):
        alice = await make_user("alice@fittedin.dev")
        coach = await make_user("coach@fittedin-seeded.com")
        bob = await make_user("bob@fittedin.dev")
        stranger = await make_user("stranger@fittedin.dev")
        connections, _ = build_services()
        await connections.send_request(db_session, alice.id, coach.id)
        await connections.send_request(db_session, bob.id, alice.id)
        await activities.record(db_session, stranger.id, ActivityType.GOAL_CREATED)
        await db_session.commit()

        feed = await activities.get_feed(db_session, alice.id)

        # Bob's request to Alice is still pending
        authors = {a.user.id for a in feed.activities}
        assert authors == {alice.id, coach.id}

    @pytest.mark.asyncio
    async def test_stats_window(self, db_session, make_user, activities):
        alice = await make_user("alice@fittedin.dev")
        await activities.record(db_session, alice.id, ActivityType.GOAL_CREATED)
        await activities.record(db_session, alice.id, ActivityType.GOAL_CREATED)
        await activities.record(db_session, alice.id, ActivityType.GOAL_PROGRESS)
        db_session.add(
            Activity(
                user_id=alice.id,
                activity_type=ActivityType.GOAL_DELETED.value,
                activity_data={},
                created_at=utcnow() - timedelta(days=40),
            )
        )
        await db_session.commit()

        recent = await activities.get_stats(db_session, alice.id)
        wider = await activities.get_stats(db_session, alice.id, days=60)

        assert recent.total == 3
        assert recent.by_type == {"goal_created": 2, "goal_progress": 1}
        assert recent.period_days == 30
        assert wider.total == 4
        assert wider.by_type["goal_deleted"] == 1
