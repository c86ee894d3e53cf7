"""
FittedIn Backend — Activity Schemas
====================================
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fittedin.schemas.user import UserSummary


class ActivityResponse(BaseModel):
    id: uuid.UUID
    activity_type: str
    activity_data: Dict[str, Any] = Field(default_factory=dict)
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[uuid.UUID] = None
    user: UserSummary
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityListResponse(BaseModel):
    activities: List[ActivityResponse]


class ActivityStatsResponse(BaseModel):
    """Entries per type over the last `period_days` days."""
    total: int
    by_type: Dict[str, int]
    period_days: int
