"""
FittedIn Backend — Auth Routes
===============================

What:  Account registration, login and the "who am I" lookup.
Who:   The web client's sign-up and sign-in screens.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from fittedin.security import get_current_user_id
from fittedin.services.auth_service import auth_service
from fittedin.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=201,
    responses={
        409: {"description": "Email already registered", "model": ErrorResponse},
        422: {"description": "Malformed body"},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return await auth_service.register(
        db, email=body.email, password=body.password, display_name=body.display_name
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for an access token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return await auth_service.login(db, email=body.email, password=body.password)


@router.get(
    "/me",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
    summary="The authenticated account",
)
async def me(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.get_user(db, user_id)
    return UserResponse.model_validate(user)
