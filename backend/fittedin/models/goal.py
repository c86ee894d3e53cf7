"""
FittedIn Backend — Goal SQLAlchemy Model
=========================================

What:  A measurable fitness goal owned by one user (`goals` table).
Who:   GoalService; the activity feed points at goals through
       `related_entity_id`.

Progress:
    `current_value` moves towards `target_value`. Reporting progress that
    reaches the target completes an active goal. `progress_percentage` is
    capped at 100 and is 0 for a zero target.
"""

import enum
import uuid
from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from fittedin.database import Base
from fittedin.models.user import utcnow


class GoalCategory(str, enum.Enum):
    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MUSCLE_GAIN = "muscle_gain"
    CARDIO = "cardio"
    FLEXIBILITY = "flexibility"
    NUTRITION = "nutrition"
    MENTAL_HEALTH = "mental_health"
    SLEEP = "sleep"
    HYDRATION = "hydration"
    OTHER = "other"


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class GoalPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Goal(Base):
    """One goal; only its owner can read or change it."""

    __tablename__ = "goals"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category: Mapped[str] = mapped_column(
        String(30), nullable=False, default=GoalCategory.OTHER.value
    )

    # Stored as NUMERIC(10, 2), handled as float in Python
    target_value: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    current_value: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False, default=0
    )
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="units")

    start_date: Mapped[date] = mapped_column(Date, nullable=False, default=lambda: utcnow().date())
    target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=GoalStatus.ACTIVE.value
    )
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=GoalPriority.MEDIUM.value
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    milestones: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint("target_value >= 0", name="ck_goals_target_non_negative"),
        CheckConstraint("current_value >= 0", name="ck_goals_current_non_negative"),
        Index("idx_goals_status", "status"),
        Index("idx_goals_category", "category"),
    )

    @property
    def progress_percentage(self) -> int:
        if not self.target_value or self.target_value <= 0:
            return 0
        return min(100, round((self.current_value or 0) / self.target_value * 100))

    @property
    def is_overdue(self) -> bool:
        if self.target_date is None or self.status != GoalStatus.ACTIVE.value:
            return False
        return utcnow().date() > self.target_date

    def __repr__(self) -> str:
        return f"<Goal(id={self.id}, user_id={self.user_id}, status='{self.status}')>"
