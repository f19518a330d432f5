"""Storage ORM models (read side only: the expiry scan)."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from krisefikser.db.base import Base, utcnow
from krisefikser.db.enums import ItemType


class Item(Base):
    """Catalog item (water, canned food, bandages, ...)."""

    __tablename__ = "items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), default=ItemType.OTHER.value, nullable=False)
    caloric_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class StorageItem(Base):
    """An amount of an item stored by a household."""

    __tablename__ = "storage_items"
    __table_args__ = (
        Index("idx_storage_expiration", "expiration_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    household_id: Mapped[str] = mapped_column(
        String(8), ForeignKey("households.id"), nullable=False, index=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("items.id"), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    expiration_date: Mapped[datetime | None] = mapped_column(nullable=True)
    date_added: Mapped[datetime] = mapped_column(
        default=utcnow, nullable=False
    )

    item: Mapped["Item"] = relationship()
