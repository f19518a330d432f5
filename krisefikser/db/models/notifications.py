"""Notification ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from krisefikser.db.base import Base, utcnow

if TYPE_CHECKING:
    from krisefikser.db.models import User


class Notification(Base):
    """
    In-app notification for one user.

    Persisted before any push attempt, so a failed push never loses it.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notif_user_timestamp", "user_id", "timestamp"),
        Index("idx_notif_user_unread", "user_id", "is_read"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Notification type (enum)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        default=utcnow, nullable=False
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship()
