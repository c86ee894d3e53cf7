"""
FittedIn Backend — Goal Routes
===============================

What:  The authenticated user's goals: CRUD and progress reporting.
How:   Goals are private to their owner; another user's goal id is a 404.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.models.goal import GoalCategory, GoalStatus
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.goal import (
    GoalCreateRequest,
    GoalListResponse,
    GoalProgressRequest,
    GoalResponse,
    GoalUpdateRequest,
)
from fittedin.security import get_current_user_id
from fittedin.services.goal_service import goal_service

router = APIRouter(prefix="/api/goals", tags=["Goals"])

_NOT_FOUND = {404: {"description": "Goal not found", "model": ErrorResponse}}


@router.get("", response_model=GoalListResponse, summary="List my goals, newest first")
async def list_goals(
    status: Optional[GoalStatus] = Query(default=None),
    category: Optional[GoalCategory] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> GoalListResponse:
    return await goal_service.list_goals(
        db, user_id, status=status, category=category, limit=limit, offset=offset
    )


@router.post("", response_model=GoalResponse, status_code=201, summary="Create a goal")
async def create_goal(
    body: GoalCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> GoalResponse:
    return await goal_service.create_goal(db, user_id, body)


@router.get("/{goal_id}", response_model=GoalResponse, responses=_NOT_FOUND, summary="Get a goal")
async def get_goal(
    goal_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> GoalResponse:
    return await goal_service.get_goal(db, user_id, goal_id)


@router.put(
    "/{goal_id}",
    response_model=GoalResponse,
    responses={
        **_NOT_FOUND,
        400: {"description": "Target date before start date", "model": ErrorResponse},
    },
    summary="Update a goal",
)
async def update_goal(
    goal_id: UUID,
    body: GoalUpdateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> GoalResponse:
    return await goal_service.update_goal(db, user_id, goal_id, body)


@router.patch(
    "/{goal_id}/progress",
    response_model=GoalResponse,
    responses=_NOT_FOUND,
    summary="Report progress",
    description="Reaching the target completes an active goal.",
)
async def update_progress(
    goal_id: UUID,
    body: GoalProgressRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> GoalResponse:
    return await goal_service.update_progress(db, user_id, goal_id, body)


@router.delete(
    "/{goal_id}",
    status_code=204,
    response_class=Response,
    responses=_NOT_FOUND,
    summary="Delete a goal",
)
async def delete_goal(
    goal_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await goal_service.delete_goal(db, user_id, goal_id)
    return Response(status_code=204)
