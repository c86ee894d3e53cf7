"""
FittedIn Backend — Profile Routes
==================================

What:  Read and edit the authenticated user's fitness profile, and view
       another user's.
How:   PUT is a partial update: only fields present in the body change.
       /me is declared before /{user_id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.user import ProfileResponse, ProfileUpdateRequest, PublicProfileResponse
from fittedin.security import get_current_user_id
from fittedin.services.profile_service import profile_service

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Get my profile",
)
async def get_my_profile(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.get_profile(db, user_id)


@router.put(
    "/me",
    response_model=ProfileResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        422: {"description": "Invalid field values"},
    },
    summary="Update my profile",
)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.update_profile(db, user_id, body)


@router.get(
    "/{user_id}",
    response_model=PublicProfileResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get another user's profile",
)
async def get_profile(
    user_id: UUID,
    _acting_user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PublicProfileResponse:
    return await profile_service.get_public_profile(db, user_id)
