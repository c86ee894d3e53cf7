"""
FittedIn Backend — Connection SQLAlchemy Model
===============================================

What:  A directed request between two users that resolves into an undirected
       relationship once accepted (`connections` table).
Who:   Owned by ConnectionService and SeededAccountPolicy.

Lifecycle:
    1. Created as 'pending' by the requester
    2. Receiver accepts → 'accepted', or rejects → 'rejected'
    3. Seeded receivers move it to 'accepted' automatically
    4. Either party may delete an 'accepted' row (removal is not rejection)

Uniqueness:
    At most one row may exist per unordered pair of users. Two constraints
    back this up at insert time:
        uq_connections_requester_receiver  (requester_id, receiver_id)
        uq_connections_pair                (user_low_id, user_high_id)
    The pair columns hold the two user ids sorted, so a request racing in
    the opposite direction collides on the second constraint.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    or_,
    select,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fittedin.database import Base
from fittedin.models.user import utcnow

if TYPE_CHECKING:
    from fittedin.models.user import User


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BLOCKED = "blocked"


class Connection(Base):
    """A connection request and, once accepted, the relationship it forms."""

    __tablename__ = "connections"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # ── Unordered Pair Key ────────────────────────────────────────────────
    # min/max of (requester_id, receiver_id); set by Connection.between()
    user_low_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    user_high_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    # Values: pending → accepted | rejected; blocked is set administratively
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ConnectionStatus.PENDING.value,
        server_default=text("'pending'"),
    )

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

    requester: Mapped["User"] = relationship(foreign_keys=[requester_id])
    receiver: Mapped["User"] = relationship(foreign_keys=[receiver_id])

    __table_args__ = (
        UniqueConstraint("requester_id", "receiver_id", name="uq_connections_requester_receiver"),
        UniqueConstraint("user_low_id", "user_high_id", name="uq_connections_pair"),
        CheckConstraint("requester_id <> receiver_id", name="ck_connections_not_self"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'blocked')",
            name="ck_connections_status",
        ),
        Index("idx_connections_status", "status"),
    )

    @classmethod
    def between(
        cls,
        requester_id: uuid.UUID,
        receiver_id: uuid.UUID,
        status: ConnectionStatus = ConnectionStatus.PENDING,
    ) -> "Connection":
        """Builds a new row with the pair key filled in."""
        low, high = sorted((requester_id, receiver_id))
        return cls(
            requester_id=requester_id,
            receiver_id=receiver_id,
            user_low_id=low,
            user_high_id=high,
            status=status.value,
        )

    def counterpart_id(self, user_id: uuid.UUID) -> uuid.UUID:
        """The other party's id from the point of view of `user_id`."""
        return self.receiver_id if self.requester_id == user_id else self.requester_id

    @classmethod
    def in_network_of(cls, column, user_id: uuid.UUID):
        """
        SQL filter: `column` is `user_id` or one of their accepted connections.

        Used by the activity and post feeds.
        """
        accepted = cls.status == ConnectionStatus.ACCEPTED.value
        return or_(
            column == user_id,
            column.in_(select(cls.receiver_id).where(cls.requester_id == user_id, accepted)),
            column.in_(select(cls.requester_id).where(cls.receiver_id == user_id, accepted)),
        )

    def __repr__(self) -> str:
        return (
            f"<Connection(id={self.id}, requester={self.requester_id}, "
            f"receiver={self.receiver_id}, status='{self.status}')>"
        )
