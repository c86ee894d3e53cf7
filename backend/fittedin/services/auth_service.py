"""
FittedIn Backend — Auth Service
================================

What:  Registration and login.
How:   Passwords are hashed with bcrypt; a successful register or login
       returns a signed JWT together with the account.
Who:   routes/auth.py.

Seeded accounts:
    `register` never marks an account as seeded. Demo accounts are created
    with `is_seeded=True` through `create_user(..., is_seeded=True)` by
    fixtures and seeding scripts.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.exceptions import AuthenticationError, ConflictError
from fittedin.models.profile import Profile
from fittedin.models.user import User
from fittedin.schemas.user import TokenResponse, UserResponse
from fittedin.security import create_access_token, hash_password, verify_password
from fittedin.services.user_service import UserService, user_service

logger = logging.getLogger(__name__)


class AuthService:
    """Account creation and credential checks."""

    def __init__(self, users: UserService = user_service):
        self._users = users

    async def create_user(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        display_name: str,
        is_seeded: bool = False,
        avatar_url: Optional[str] = None,
    ) -> User:
        """
        Insert a user together with an empty profile.

        Raises:
            ConflictError: email already registered (→ 409)
            ValidationError: password longer than bcrypt accepts (→ 400)
        """
        email = email.strip().lower()
        if await self._users.find_by_email(db, email) is not None:
            raise ConflictError("User with this email already exists", context={"field": "email"})

        user = User(
            email=email,
            display_name=display_name.strip(),
            password_hash=await hash_password(password),
            avatar_url=avatar_url,
            is_seeded=is_seeded,
        )
        user.profile = Profile(primary_goals=[])
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User with this email already exists", context={"field": "email"})

        logger.info("User registered: %s (seeded=%s)", user.id, is_seeded)
        return user

    async def register(
        self, db: AsyncSession, email: str, password: str, display_name: str
    ) -> TokenResponse:
        user = await self.create_user(db, email, password, display_name)
        return self._token_for(user)

    async def login(self, db: AsyncSession, email: str, password: str) -> TokenResponse:
        """
        Raises:
            AuthenticationError: unknown email or wrong password (→ 401)
        """
        user = await self._users.find_by_email(db, email)
        if user is None or not await verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", email.strip().lower())
            raise AuthenticationError("Invalid email or password")
        logger.info("User logged in: %s", user.id)
        return self._token_for(user)

    @staticmethod
    def _token_for(user: User) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(user.id),
            user=UserResponse.model_validate(user),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
