"""
FittedIn Backend — User Routes
===============================

What:  Public view of another user's account and profile, and edits to
       one's own display name and avatar.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.user import PublicUser, UserResponse, UserUpdateRequest
from fittedin.security import get_current_user_id
from fittedin.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "/{user_id}",
    response_model=PublicUser,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user's public profile",
)
async def get_user(
    user_id: UUID,
    _acting_user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PublicUser:
    return await user_service.get_public_user(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"description": "No valid fields to update", "model": ErrorResponse},
        403: {"description": "Not your account", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Update my display name or avatar",
)
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    acting_user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.update_user(db, acting_user_id, user_id, body)
