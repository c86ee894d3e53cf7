"""
FittedIn Backend — User Directory
==================================

What:  Lookups of User rows by id or email, the public projection of a
       user that other accounts are allowed to see, and self-service edits.
Who:   AuthService, ConnectionService, SeededAccountPolicy, routes/users.py.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittedin.exceptions import ForbiddenError, NotFoundError, ValidationError
from fittedin.models.user import User
from fittedin.schemas.user import ProfileSummary, PublicUser, UserResponse, UserUpdateRequest

logger = logging.getLogger(__name__)


def to_public_user(user: User) -> PublicUser:
    """
    Project a User (with its profile already loaded) onto PublicUser.

    `user.profile` must have been eager-loaded; async sessions cannot lazy-load.
    """
    profile = user.profile
    return PublicUser(
        id=user.id,
        display_name=user.display_name,
        email=user.email,
        avatar_url=user.avatar_url,
        profile=ProfileSummary.model_validate(profile) if profile is not None else None,
    )


class UserService:
    """Read access to the users table."""

    async def find_user(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        return await db.get(User, user_id)

    async def get_user(self, db: AsyncSession, user_id: UUID) -> User:
        """
        Raises:
            NotFoundError: no such user (→ 404)
        """
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        return user

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def get_public_user(self, db: AsyncSession, user_id: UUID) -> PublicUser:
        result = await db.execute(
            select(User).where(User.id == user_id).options(selectinload(User.profile))
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        return to_public_user(user)

    async def update_user(
        self,
        db: AsyncSession,
        acting_user_id: UUID,
        user_id: UUID,
        changes: UserUpdateRequest,
    ) -> UserResponse:
        """
        Change the acting user's own display name or avatar.

        Raises:
            ForbiddenError: `user_id` is someone else (→ 403)
            ValidationError: no field sent (→ 400)
            NotFoundError: the account no longer exists (→ 404)
        """
        if acting_user_id != user_id:
            raise ForbiddenError("Access denied")

        values = changes.model_dump(exclude_none=True, mode="json")
        if not values:
            raise ValidationError("No valid fields to update")

        user = await self.get_user(db, user_id)
        for field, value in values.items():
            setattr(user, field, value)
        await db.flush()
        await db.refresh(user)
        logger.info("User %s updated: %s", user_id, ", ".join(sorted(values)))
        return UserResponse.model_validate(user)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
