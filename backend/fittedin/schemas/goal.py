"""
FittedIn Backend — Goal Schemas
================================

What:  Request/response models for /api/goals.
How:   Create validates the date range itself; update checks it in
       GoalService against the stored start date.
"""

import uuid
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from fittedin.models.goal import GoalCategory, GoalPriority, GoalStatus
from fittedin.models.user import utcnow


def _strip_required(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    stripped = v.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


class GoalCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: GoalCategory = GoalCategory.OTHER
    target_value: float = Field(ge=0)
    current_value: float = Field(default=0, ge=0)
    unit: str = Field(default="units", min_length=1, max_length=50)
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    priority: GoalPriority = GoalPriority.MEDIUM
    is_public: bool = True
    milestones: List[Any] = Field(default_factory=list, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("title", "unit")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)

    @model_validator(mode="after")
    def target_not_before_start(self) -> "GoalCreateRequest":
        start = self.start_date or utcnow().date()
        if self.target_date is not None and self.target_date < start:
            raise ValueError("target_date must not be before start_date")
        return self


class GoalUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[GoalCategory] = None
    target_value: Optional[float] = Field(default=None, ge=0)
    current_value: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=50)
    target_date: Optional[date] = None
    status: Optional[GoalStatus] = None
    priority: Optional[GoalPriority] = None
    is_public: Optional[bool] = None
    milestones: Optional[List[Any]] = Field(default=None, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("title", "unit")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v)


class GoalProgressRequest(BaseModel):
    current_value: float = Field(ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)


class GoalResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: str
    target_value: float
    current_value: float
    unit: str
    start_date: date
    target_date: Optional[date] = None
    status: str
    priority: str
    is_public: bool
    milestones: List[Any] = Field(default_factory=list)
    notes: Optional[str] = None
    progress_percentage: int
    is_overdue: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GoalListResponse(BaseModel):
    goals: List[GoalResponse]
    limit: int
    offset: int
    total: int
