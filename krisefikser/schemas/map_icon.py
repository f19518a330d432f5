"""Map icon schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from krisefikser.db.enums import MapIconType


class MapIconCreate(BaseModel):
    type: MapIconType
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    address: str | None = None
    description: str | None = None
    opening_hours: str | None = None
    contact_info: str | None = None


class MapIconUpdate(BaseModel):
    type: MapIconType | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    address: str | None = None
    description: str | None = None
    opening_hours: str | None = None
    contact_info: str | None = None


class MapIconRead(MapIconCreate):
    id: UUID

    model_config = {"from_attributes": True}
