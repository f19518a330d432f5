"""Household aggregate ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from krisefikser.db.base import Base, utcnow
from krisefikser.db.enums import RequestStatus

if TYPE_CHECKING:
    from krisefikser.db.models import User


class Household(Base):
    """
    A group of users (and unregistered members) sharing preparedness resources.

    ``number_of_members`` is a denormalized cache of registered plus
    unregistered members; household_service recomputes it on every write.
    """

    __tablename__ = "households"

    # Short shareable code, e.g. "3FA85F64"
    id: Mapped[str] = mapped_column(String(8), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    number_of_members: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    owner: Mapped["User"] = relationship(foreign_keys=[owner_id])
    members: Mapped[list["User"]] = relationship(
        foreign_keys="User.household_id", back_populates="household", viewonly=True
    )
    unregistered_members: Mapped[list["UnregisteredHouseholdMember"]] = relationship(
        back_populates="household", viewonly=True
    )


class UnregisteredHouseholdMember(Base):
    """A household member tracked by name only (child, elderly relative, ...)."""

    __tablename__ = "unregistered_household_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    household_id: Mapped[str] = mapped_column(
        String(8), ForeignKey("households.id"), nullable=False, index=True
    )

    household: Mapped["Household"] = relationship(back_populates="unregistered_members")


class MembershipRequest(Base):
    """
    Invitation (household -> user) or join request (user -> household).

    Status moves one way out of PENDING. Rows are only deleted by the
    household delete cascade.
    """

    __tablename__ = "membership_requests"
    __table_args__ = (
        Index("idx_mreq_household_type_status", "household_id", "type", "status"),
        Index("idx_mreq_receiver_type_status", "receiver_id", "type", "status"),
        Index("idx_mreq_sender_status", "sender_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[str] = mapped_column(
        String(8), ForeignKey("households.id"), nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    receiver_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=RequestStatus.PENDING.value, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    household: Mapped["Household"] = relationship()
    sender: Mapped["User"] = relationship(foreign_keys=[sender_id])
    receiver: Mapped["User"] = relationship(foreign_keys=[receiver_id])
