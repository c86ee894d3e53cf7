"""
FittedIn Backend — Activity Routes
===================================

What:  My activity timeline, my network's feed and per-type statistics.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.models.activity import ActivityType
from fittedin.schemas.activity import ActivityListResponse, ActivityStatsResponse
from fittedin.security import get_current_user_id
from fittedin.services.activity_service import activity_service

router = APIRouter(prefix="/api/activities", tags=["Activities"])


@router.get("", response_model=ActivityListResponse, summary="My activities, newest first")
async def list_activities(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    activity_type: Optional[ActivityType] = Query(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ActivityListResponse:
    return await activity_service.list_user_activities(
        db, user_id, limit=limit, offset=offset, activity_type=activity_type
    )


@router.get(
    "/feed",
    response_model=ActivityListResponse,
    summary="Activities of me and my connections, newest first",
)
async def get_feed(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ActivityListResponse:
    return await activity_service.get_feed(db, user_id, limit=limit, offset=offset)


@router.get("/stats", response_model=ActivityStatsResponse, summary="My activity counts by type")
async def get_stats(
    days: int = Query(default=30, ge=1, le=365),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ActivityStatsResponse:
    return await activity_service.get_stats(db, user_id, days=days)
