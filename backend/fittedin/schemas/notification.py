"""
FittedIn Backend — Notification Schemas
========================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class NotificationSender(BaseModel):
    id: uuid.UUID
    display_name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: Optional[str] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[uuid.UUID] = None
    from_user: Optional[NotificationSender] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]


class CountResponse(BaseModel):
    """Unread count, or the number of rows touched by mark-all-read."""
    count: int
