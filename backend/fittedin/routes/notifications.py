"""
FittedIn Backend — Notification Routes
=======================================

What:  The authenticated user's notification inbox.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.notification import (
    CountResponse,
    NotificationListResponse,
    NotificationResponse,
)
from fittedin.security import get_current_user_id
from fittedin.services.notification_service import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List my notifications, newest first",
)
async def list_notifications(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    unread_only: bool = Query(default=False),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    return await notification_service.list_notifications(
        db, user_id, limit=limit, offset=offset, unread_only=unread_only
    )


@router.get("/unread-count", response_model=CountResponse, summary="Number of unread notifications")
async def unread_count(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=await notification_service.unread_count(db, user_id))


@router.put(
    "/read-all",
    response_model=CountResponse,
    summary="Mark all my notifications read",
    description="`count` is the number of notifications that were unread.",
)
async def mark_all_as_read(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=await notification_service.mark_all_as_read(db, user_id))


@router.put(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    responses={404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Mark one notification read",
)
async def mark_as_read(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    return await notification_service.mark_as_read(db, notification_id, user_id)


@router.delete(
    "/{notification_id}",
    status_code=204,
    response_class=Response,
    responses={404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Delete one notification",
)
async def delete_notification(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await notification_service.delete_notification(db, notification_id, user_id)
    return Response(status_code=204)
