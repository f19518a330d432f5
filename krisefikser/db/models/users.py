"""User ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from krisefikser.db.base import Base, utcnow
from krisefikser.db.enums import Role

if TYPE_CHECKING:
    from krisefikser.db.models import Household


class User(Base):
    """
    A registered account.

    Coordinates are optional; NULL means position unknown and such users are
    never matched by radius queries. A user belongs to at most one household.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_household", "household_id"),
        Index("idx_users_position", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=Role.USER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # users <-> households is a cycle (owner_id points back here)
    household_id: Mapped[str | None] = mapped_column(
        String(8),
        ForeignKey("households.id", use_alter=True, name="fk_users_household_id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    household: Mapped[Optional["Household"]] = relationship(
        foreign_keys=[household_id], back_populates="members", post_update=True
    )

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None
