"""
FittedIn Backend — Activity Service
====================================

What:  Records what users do (goal, profile and connection events) and
       serves the activity timeline, the network feed and per-type stats.
How:   `record` writes inside a SAVEPOINT and never raises: an activity
       entry is a by-product of the caller's change, so a failed insert is
       logged and the caller's transaction carries on.
Who:   GoalService, ProfileService, ConnectionService (writers);
       routes/activities.py (readers).
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittedin.exceptions import DatabaseError
from fittedin.models.activity import Activity, ActivityEntity, ActivityType
from fittedin.models.connection import Connection
from fittedin.models.goal import Goal
from fittedin.models.user import utcnow
from fittedin.schemas.activity import (
    ActivityListResponse,
    ActivityResponse,
    ActivityStatsResponse,
)

logger = logging.getLogger(__name__)


def _goal_snapshot(goal: Goal) -> Dict[str, Any]:
    return {
        "goal_title": goal.title,
        "goal_category": goal.category,
        "target_value": goal.target_value,
        "unit": goal.unit,
    }


class ActivityService:

    # ── Writers ───────────────────────────────────────────────────────────

    async def record(
        self,
        db: AsyncSession,
        user_id: UUID,
        activity_type: ActivityType,
        activity_data: Optional[Dict[str, Any]] = None,
        related_entity_type: Optional[ActivityEntity] = None,
        related_entity_id: Optional[UUID] = None,
    ) -> Optional[Activity]:
        """
        Append one entry to `user_id`'s activity log.

        Returns:
            The new Activity, or None if the insert failed (logged).
        """
        logger.debug("Recording %s activity for user %s", activity_type.value, user_id)
        activity = Activity(
            user_id=user_id,
            activity_type=activity_type.value,
            activity_data=activity_data or {},
            related_entity_type=related_entity_type.value if related_entity_type else None,
            related_entity_id=related_entity_id,
        )
        try:
            async with db.begin_nested():
                db.add(activity)
        except SQLAlchemyError:
            logger.warning(
                "Failed to record %s activity for user %s",
                activity_type.value,
                user_id,
                exc_info=True,
            )
            return None
        return activity

    async def goal_created(self, db: AsyncSession, goal: Goal) -> Optional[Activity]:
        return await self.record(
            db, goal.user_id, ActivityType.GOAL_CREATED,
            _goal_snapshot(goal), ActivityEntity.GOAL, goal.id,
        )

    async def goal_updated(
        self, db: AsyncSession, goal: Goal, changes: Dict[str, Any]
    ) -> Optional[Activity]:
        return await self.record(
            db, goal.user_id, ActivityType.GOAL_UPDATED,
            {"goal_title": goal.title, "changes": changes}, ActivityEntity.GOAL, goal.id,
        )

    async def goal_progress(
        self, db: AsyncSession, goal: Goal, previous_value: float
    ) -> Optional[Activity]:
        data = _goal_snapshot(goal)
        data.update(
            previous_value=previous_value,
            current_value=goal.current_value,
            progress_percent=goal.progress_percentage,
        )
        return await self.record(
            db, goal.user_id, ActivityType.GOAL_PROGRESS, data, ActivityEntity.GOAL, goal.id
        )

    async def goal_completed(self, db: AsyncSession, goal: Goal) -> Optional[Activity]:
        data = _goal_snapshot(goal)
        data["final_value"] = goal.current_value
        return await self.record(
            db, goal.user_id, ActivityType.GOAL_COMPLETED, data, ActivityEntity.GOAL, goal.id
        )

    async def goal_deleted(
        self, db: AsyncSession, user_id: UUID, goal_id: UUID, title: str
    ) -> Optional[Activity]:
        return await self.record(
            db, user_id, ActivityType.GOAL_DELETED,
            {"goal_title": title}, ActivityEntity.GOAL, goal_id,
        )

    async def profile_updated(
        self, db: AsyncSession, user_id: UUID, changed_fields: list
    ) -> Optional[Activity]:
        return await self.record(
            db, user_id, ActivityType.PROFILE_UPDATED,
            {"changes": changed_fields}, ActivityEntity.PROFILE, user_id,
        )

    async def connection_requested(
        self, db: AsyncSession, requester_id: UUID, receiver_id: UUID, connection_id: UUID
    ) -> Optional[Activity]:
        return await self.record(
            db, requester_id, ActivityType.CONNECTION_REQUEST,
            {"receiver_id": str(receiver_id)}, ActivityEntity.CONNECTION, connection_id,
        )

    async def connection_accepted(
        self, db: AsyncSession, user_id: UUID, other_user_id: UUID, connection_id: UUID
    ) -> Optional[Activity]:
        return await self.record(
            db, user_id, ActivityType.CONNECTION_ACCEPTED,
            {"other_user_id": str(other_user_id)}, ActivityEntity.CONNECTION, connection_id,
        )

    # ── Readers ───────────────────────────────────────────────────────────

    async def list_user_activities(
        self,
        db: AsyncSession,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
        activity_type: Optional[ActivityType] = None,
    ) -> ActivityListResponse:
        """The user's own entries, newest first."""
        query = select(Activity).where(Activity.user_id == user_id)
        if activity_type is not None:
            query = query.where(Activity.activity_type == ActivityType(activity_type).value)
        return await self._page(db, query, limit, offset)

    async def get_feed(
        self, db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> ActivityListResponse:
        """Entries of the user and of everyone they are connected with."""
        query = select(Activity).where(Connection.in_network_of(Activity.user_id, user_id))
        return await self._page(db, query, limit, offset)

    async def get_stats(
        self, db: AsyncSession, user_id: UUID, days: int = 30
    ) -> ActivityStatsResponse:
        since = utcnow() - timedelta(days=days)
        try:
            result = await db.execute(
                select(Activity.activity_type, func.count(Activity.id))
                .where(Activity.user_id == user_id, Activity.created_at >= since)
                .group_by(Activity.activity_type)
            )
            by_type = {activity_type: count for activity_type, count in result.all()}
        except SQLAlchemyError as e:
            logger.error("Database error computing activity stats: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve activity statistics. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return ActivityStatsResponse(
            total=sum(by_type.values()), by_type=by_type, period_days=days
        )

    async def _page(self, db: AsyncSession, query, limit: int, offset: int) -> ActivityListResponse:
        query = (
            query.options(selectinload(Activity.user))
            .order_by(Activity.created_at.desc(), Activity.id)
            .limit(limit)
            .offset(offset)
        )
        try:
            result = await db.execute(query)
            activities = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing activities: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve activities. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return ActivityListResponse(
            activities=[ActivityResponse.model_validate(a) for a in activities]
        )


# ── Singleton Instance ────────────────────────────────────────────────────
activity_service = ActivityService()
