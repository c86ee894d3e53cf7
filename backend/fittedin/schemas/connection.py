"""
FittedIn Backend — Connection Schemas
======================================

What:  Request/response models for the /api/connections endpoints.
How:   Fields are snake_case in Python. The handful of keys the web client
       reads in camelCase (isRequester, connectionStatus, totalPending, ...)
       are declared as serialization aliases; FastAPI serializes by alias.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from fittedin.schemas.user import PublicUser

_ALIASED = {"from_attributes": True, "populate_by_name": True}


class ConnectionCreateRequest(BaseModel):
    """Body of POST /api/connections."""
    receiver_id: uuid.UUID = Field(description="User to send the request to")


class ConnectionResponse(BaseModel):
    """A Connection row as stored."""
    id: uuid.UUID
    requester_id: uuid.UUID
    receiver_id: uuid.UUID
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ConnectionListItem(BaseModel):
    """
    A connection seen from one side: `user` is always the counterpart,
    never the querying user.
    """
    id: uuid.UUID
    status: str
    created_at: datetime
    updated_at: datetime
    user: Optional[PublicUser] = None


class ConnectionListResponse(BaseModel):
    connections: List[ConnectionListItem]


class PendingRequestsResponse(BaseModel):
    """Disjoint lists of outgoing and incoming pending requests."""
    sent: List[ConnectionListItem]
    received: List[ConnectionListItem]


class ConnectionStatusResponse(BaseModel):
    """
    Relationship between the querying user and another user.

    `{"status": "none"}` when no row exists; otherwise the row's status and
    whether the querying user sent the request.
    """
    status: str
    is_requester: Optional[bool] = Field(default=None, serialization_alias="isRequester")

    model_config = _ALIASED


class ConnectableUser(PublicUser):
    connection_status: ConnectionStatusResponse = Field(
        default_factory=lambda: ConnectionStatusResponse(status="none"),
        serialization_alias="connectionStatus",
    )

    model_config = _ALIASED


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    total_pages: int = Field(serialization_alias="totalPages")

    model_config = _ALIASED


class ConnectableUsersResponse(BaseModel):
    users: List[ConnectableUser]
    pagination: Pagination


class AutoAcceptSweepResponse(BaseModel):
    """Counts reported by the seeded-account maintenance sweep."""
    total_pending: int = Field(serialization_alias="totalPending")
    auto_accepted: int = Field(serialization_alias="autoAccepted")

    model_config = _ALIASED
