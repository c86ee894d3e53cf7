"""
FittedIn Backend — Profile Service
===================================

What:  Read and partially update the acting user's fitness profile, and
       show another user's profile.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.exceptions import NotFoundError
from fittedin.models.profile import Profile
from fittedin.models.user import User
from fittedin.schemas.user import (
    ProfileResponse,
    ProfileUpdateRequest,
    PublicProfileResponse,
    UserSummary,
)
from fittedin.services.activity_service import ActivityService, activity_service

logger = logging.getLogger(__name__)


class ProfileService:

    def __init__(self, activities: ActivityService = activity_service):
        self._activities = activities

    async def _get_or_create(self, db: AsyncSession, user_id: UUID) -> Profile:
        result = await db.execute(select(Profile).where(Profile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is not None:
            return profile

        # Accounts created outside AuthService may not have one yet
        if await db.get(User, user_id) is None:
            raise NotFoundError(resource="user", message="User not found")
        profile = Profile(user_id=user_id, primary_goals=[])
        db.add(profile)
        await db.flush()
        return profile

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> ProfileResponse:
        profile = await self._get_or_create(db, user_id)
        return ProfileResponse.model_validate(profile)

    async def get_public_profile(self, db: AsyncSession, user_id: UUID) -> PublicProfileResponse:
        """
        Another user's profile with their name and avatar.

        Raises:
            NotFoundError: no such user (→ 404)
        """
        profile = await self._get_or_create(db, user_id)
        user = await db.get(User, user_id)
        return PublicProfileResponse(
            **ProfileResponse.model_validate(profile).model_dump(),
            user=UserSummary.model_validate(user),
        )

    async def update_profile(
        self, db: AsyncSession, user_id: UUID, changes: ProfileUpdateRequest
    ) -> ProfileResponse:
        """Apply only the fields the client sent."""
        profile = await self._get_or_create(db, user_id)
        changed = []
        for field, value in changes.model_dump(exclude_unset=True, mode="json").items():
            if field == "primary_goals" and value is None:
                value = []
            if getattr(profile, field) != value:
                setattr(profile, field, value)
                changed.append(field)
        await db.flush()
        await db.refresh(profile)

        if changed:
            logger.info("Profile updated for user %s: %s", user_id, ", ".join(changed))
            await self._activities.profile_updated(db, user_id, changed)
        return ProfileResponse.model_validate(profile)


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()
