"""
FittedIn Backend — Connection Routes
=====================================

What:  The /api/connections endpoints: sending, accepting, rejecting and
       removing connections, and the listings behind the network pages.
How:   Every endpoint requires a bearer token. The acting user always comes
       from the token, never from the body or path.
Who:   The web client's Network, Requests and Discover screens.

Status codes:
    "Already connected", "Connection request already pending" and "Connection
    request was rejected" are 409 Conflict, not 400: the request is well
    formed but collides with the row the pair already has. Web clients that
    branched on 400 for these must read 409. Self-requests stay 400 and
    blocked pairs are 403.

Route order:
    Static paths (/pending, /search, /status/..., /auto-accept-pending) are
    declared before /{connection_id} so they are not captured as ids.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.models.connection import ConnectionStatus
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.connection import (
    AutoAcceptSweepResponse,
    ConnectableUsersResponse,
    ConnectionCreateRequest,
    ConnectionListResponse,
    ConnectionResponse,
    ConnectionStatusResponse,
    PendingRequestsResponse,
)
from fittedin.security import get_current_user_id
from fittedin.services.auto_accept_service import seeded_account_policy
from fittedin.services.connection_service import connection_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["Connections"])

_AUTH_ERRORS = {401: {"description": "Not authenticated", "model": ErrorResponse}}


# ── Listings ──────────────────────────────────────────────────────────────


@router.get(
    "",
    response_model=ConnectionListResponse,
    responses=_AUTH_ERRORS,
    summary="List my connections",
    description="Connections in the given status (accepted by default), newest first.",
)
async def list_connections(
    status: ConnectionStatus = Query(default=ConnectionStatus.ACCEPTED),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionListResponse:
    return await connection_service.list_connections(db, user_id, status)


@router.get(
    "/pending",
    response_model=PendingRequestsResponse,
    responses=_AUTH_ERRORS,
    summary="Pending requests I sent and received",
)
async def list_pending_requests(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PendingRequestsResponse:
    return await connection_service.list_pending_requests(db, user_id)


@router.get(
    "/search",
    response_model=ConnectableUsersResponse,
    responses=_AUTH_ERRORS,
    summary="Find users I can connect with",
    description=(
        "Users with no connection row of any status with the caller, "
        "optionally filtered by a case-insensitive match on name or email."
    ),
)
async def search_connectable_users(
    q: str = Query(default="", max_length=100, description="Name or email fragment"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectableUsersResponse:
    return await connection_service.search_connectable_users(
        db, user_id, term=q, limit=limit, offset=offset
    )


@router.get(
    "/status/{other_user_id}",
    response_model=ConnectionStatusResponse,
    response_model_exclude_none=True,
    responses=_AUTH_ERRORS,
    summary="My connection status with another user",
)
async def get_connection_status(
    other_user_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionStatusResponse:
    return await connection_service.get_connection_status(db, user_id, other_user_id)


# ── Maintenance ───────────────────────────────────────────────────────────


@router.post(
    "/auto-accept-pending",
    response_model=AutoAcceptSweepResponse,
    responses=_AUTH_ERRORS,
    summary="Accept every pending request addressed to a seeded account",
)
async def auto_accept_pending(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> AutoAcceptSweepResponse:
    logger.info("Seeded-account sweep requested by %s", user_id)
    return await seeded_account_policy.process_pending_for_seeded_accounts(db)


# ── Commands ──────────────────────────────────────────────────────────────


@router.post(
    "",
    response_model=ConnectionResponse,
    status_code=201,
    responses={
        **_AUTH_ERRORS,
        400: {"description": "Request to yourself", "model": ErrorResponse},
        403: {"description": "Connection is blocked", "model": ErrorResponse},
        404: {"description": "Receiver not found", "model": ErrorResponse},
        409: {"description": "Already connected, pending or rejected", "model": ErrorResponse},
    },
    summary="Send a connection request",
    description=(
        "Creates a pending request. If the receiver is a seeded demo account "
        "the request comes back already accepted."
    ),
)
async def send_request(
    body: ConnectionCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionResponse:
    return await connection_service.send_request(db, user_id, body.receiver_id)


@router.put(
    "/{connection_id}/accept",
    response_model=ConnectionResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "No pending request for you with this id", "model": ErrorResponse},
    },
    summary="Accept a request addressed to me",
)
async def accept_request(
    connection_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionResponse:
    return await connection_service.accept_request(db, user_id, connection_id)


@router.put(
    "/{connection_id}/reject",
    response_model=ConnectionResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "No pending request for you with this id", "model": ErrorResponse},
    },
    summary="Reject a request addressed to me",
)
async def reject_request(
    connection_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionResponse:
    return await connection_service.reject_request(db, user_id, connection_id)


@router.delete(
    "/{connection_id}",
    status_code=204,
    response_class=Response,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "No accepted connection with this id", "model": ErrorResponse},
    },
    summary="Remove an accepted connection",
)
async def remove_connection(
    connection_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await connection_service.remove_connection(db, user_id, connection_id)
    return Response(status_code=204)
