"""
FittedIn Backend — Activity SQLAlchemy Model
=============================================

What:  One entry of a user's activity log (`activities` table), shown on the
       user's own timeline and on their connections' feeds.
Who:   Written by ActivityService on goal, profile and connection events.

`activity_data` holds a snapshot of what the entry is about (goal title,
progress values, changed fields), so the entry still reads correctly after
the goal is edited or deleted.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fittedin.database import Base
from fittedin.models.user import utcnow

if TYPE_CHECKING:
    from fittedin.models.user import User


class ActivityType(str, enum.Enum):
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_PROGRESS = "goal_progress"
    GOAL_COMPLETED = "goal_completed"
    GOAL_DELETED = "goal_deleted"
    PROFILE_UPDATED = "profile_updated"
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"


class ActivityEntity(str, enum.Enum):
    GOAL = "goal"
    PROFILE = "profile"
    CONNECTION = "connection"
    USER = "user"


class Activity(Base):
    __tablename__ = "activities"

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

    activity_type: Mapped[str] = mapped_column(String(30), nullable=False)
    activity_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    related_entity_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    related_entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped["User"] = relationship()

    __table_args__ = (
        Index("idx_activities_type", "activity_type"),
        Index("idx_activities_created_at", "created_at"),
        Index("idx_activities_related", "related_entity_type", "related_entity_id"),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, user_id={self.user_id}, type='{self.activity_type}')>"
