"""
FittedIn Backend — Goal Service
================================

What:  CRUD over the acting user's goals plus progress reporting.
How:   Every lookup is scoped to the owner; someone else's goal id gets the
       same 404 as a missing one. Each change is mirrored into the activity
       log through ActivityService.

Completion:
    Reporting progress (`update_progress`) that reaches `target_value`
    moves an active goal to `completed` and records both a goal_progress
    and a goal_completed entry. Paused or cancelled goals keep their status.
"""

import enum
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.exceptions import DatabaseError, NotFoundError, ValidationError
from fittedin.models.goal import Goal, GoalCategory, GoalStatus
from fittedin.schemas.goal import (
    GoalCreateRequest,
    GoalListResponse,
    GoalProgressRequest,
    GoalResponse,
    GoalUpdateRequest,
)
from fittedin.services.activity_service import ActivityService, activity_service

logger = logging.getLogger(__name__)

# Columns a partial update may change but never clear
_REQUIRED_FIELDS = frozenset(
    {"title", "category", "target_value", "current_value", "unit", "status", "priority", "is_public"}
)


class GoalService:

    def __init__(self, activities: ActivityService = activity_service):
        self._activities = activities

    async def list_goals(
        self,
        db: AsyncSession,
        user_id: UUID,
        status: Optional[GoalStatus] = None,
        category: Optional[GoalCategory] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> GoalListResponse:
        """The user's goals, newest first, optionally filtered."""
        filters = [Goal.user_id == user_id]
        if status is not None:
            filters.append(Goal.status == GoalStatus(status).value)
        if category is not None:
            filters.append(Goal.category == GoalCategory(category).value)

        try:
            total = (await db.execute(select(func.count(Goal.id)).where(*filters))).scalar() or 0
            result = await db.execute(
                select(Goal)
                .where(*filters)
                .order_by(Goal.created_at.desc(), Goal.id)
                .limit(limit)
                .offset(offset)
            )
            goals = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing goals: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve goals. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return GoalListResponse(
            goals=[GoalResponse.model_validate(g) for g in goals],
            limit=limit,
            offset=offset,
            total=total,
        )

    async def get_goal(self, db: AsyncSession, user_id: UUID, goal_id: UUID) -> GoalResponse:
        return GoalResponse.model_validate(await self._get_owned(db, user_id, goal_id))

    async def create_goal(
        self, db: AsyncSession, user_id: UUID, data: GoalCreateRequest
    ) -> GoalResponse:
        values = data.model_dump(mode="json", exclude={"start_date", "target_date"})
        goal = Goal(user_id=user_id, target_date=data.target_date, **values)
        if data.start_date is not None:
            goal.start_date = data.start_date
        db.add(goal)
        await db.flush()
        await db.refresh(goal)
        logger.info("Goal %s created by user %s", goal.id, user_id)

        await self._activities.goal_created(db, goal)
        return GoalResponse.model_validate(goal)

    async def update_goal(
        self, db: AsyncSession, user_id: UUID, goal_id: UUID, changes: GoalUpdateRequest
    ) -> GoalResponse:
        """
        Apply only the fields the client sent.

        Raises:
            NotFoundError: no such goal for this user
            ValidationError: a required field sent as null, or target_date
                would fall before start_date
        """
        goal = await self._get_owned(db, user_id, goal_id)
        sent = changes.model_dump(exclude_unset=True)

        for field in _REQUIRED_FIELDS.intersection(sent):
            if sent[field] is None:
                raise ValidationError(f"{field} cannot be null", field=field)
        target_date = sent.get("target_date", goal.target_date)
        if target_date is not None and target_date < goal.start_date:
            raise ValidationError("Target date must be after start date", field="target_date")

        applied = []
        for field, value in sent.items():
            if isinstance(value, enum.Enum):
                value = value.value
            if field == "milestones" and value is None:
                value = []
            if getattr(goal, field) != value:
                setattr(goal, field, value)
                applied.append(field)

        if applied:
            await db.flush()
            await db.refresh(goal)
            await self._activities.goal_updated(
                db, goal, changes.model_dump(mode="json", include=set(applied))
            )
            logger.info("Goal %s updated: %s", goal.id, ", ".join(sorted(applied)))
        return GoalResponse.model_validate(goal)

    async def update_progress(
        self, db: AsyncSession, user_id: UUID, goal_id: UUID, progress: GoalProgressRequest
    ) -> GoalResponse:
        goal = await self._get_owned(db, user_id, goal_id)
        previous = goal.current_value

        goal.current_value = progress.current_value
        if progress.notes:
            goal.notes = progress.notes
        completed = (
            goal.status == GoalStatus.ACTIVE.value
            and progress.current_value >= goal.target_value
        )
        if completed:
            goal.status = GoalStatus.COMPLETED.value

        await db.flush()
        await db.refresh(goal)
        await self._activities.goal_progress(db, goal, previous)
        if completed:
            logger.info("Goal %s completed by user %s", goal.id, user_id)
            await self._activities.goal_completed(db, goal)
        return GoalResponse.model_validate(goal)

    async def delete_goal(self, db: AsyncSession, user_id: UUID, goal_id: UUID) -> None:
        goal = await self._get_owned(db, user_id, goal_id)
        title = goal.title
        await db.delete(goal)
        await db.flush()
        logger.info("Goal %s deleted by user %s", goal_id, user_id)
        await self._activities.goal_deleted(db, user_id, goal_id, title)

    async def _get_owned(self, db: AsyncSession, user_id: UUID, goal_id: UUID) -> Goal:
        result = await db.execute(
            select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
        )
        goal = result.scalar_one_or_none()
        if goal is None:
            raise NotFoundError(resource="goal", message="Goal not found")
        return goal


# ── Singleton Instance ────────────────────────────────────────────────────
goal_service = GoalService()
