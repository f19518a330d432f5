"""Scenario and incident ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from krisefikser.db.base import Base, utcnow
from krisefikser.db.enums import Severity


class Scenario(Base):
    """Crisis type (flood, power outage, ...) with preparedness guidance."""

    __tablename__ = "scenarios"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    to_do: Mapped[str | None] = mapped_column(Text, nullable=True)
    packing_list: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon_name: Mapped[str | None] = mapped_column(String(100), nullable=True)


class Incident(Base):
    """
    An ongoing or closed event at a location.

    ``impact_radius`` is in kilometers; ``ended_at`` is NULL while ongoing.
    """

    __tablename__ = "incidents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    impact_radius: Mapped[float] = mapped_column(Float, nullable=False)
    severity: Mapped[str] = mapped_column(String(20), default=Severity.GREEN.value, nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        default=utcnow, nullable=False
    )
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)
    scenario_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("scenarios.id"), nullable=False
    )

    scenario: Mapped["Scenario"] = relationship()

    @property
    def is_ongoing(self) -> bool:
        return self.ended_at is None
