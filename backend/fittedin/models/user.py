"""
FittedIn Backend — User SQLAlchemy Model
=========================================

What:  ORM model representing the `users` table.
Who:   Read by nearly every service; written by AuthService at registration.

Table Design:
    - UUID primary key: non-sequential, safe to expose in URLs
    - email: unique, always stored lower-cased so lookups are case-insensitive
    - password_hash: bcrypt output, never serialized
    - is_seeded: set once when a demo/fixture account is created, never inferred
    - created_at / updated_at: UTC with timezone

Lifecycle:
    Created at registration; never hard-deleted in normal flow. Deleting a
    user cascades to their profile, connections and notifications.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fittedin.database import Base

if TYPE_CHECKING:
    from fittedin.models.profile import Profile


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email, stored lower-cased",
    )

    display_name: Mapped[str] = mapped_column(String(100), nullable=False)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # ── Seeded Flag ───────────────────────────────────────────────────────
    # Demo/fixture accounts auto-accept every inbound connection request.
    is_seeded: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        comment="Demo account that auto-accepts connection requests",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
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

    profile: Mapped[Optional["Profile"]] = relationship(
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', seeded={self.is_seeded})>"
