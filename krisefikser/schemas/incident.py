"""Incident and scenario schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from krisefikser.db.enums import Severity


class ScenarioCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    to_do: str | None = None
    packing_list: str | None = None
    icon_name: str | None = None


class ScenarioUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    to_do: str | None = None
    packing_list: str | None = None
    icon_name: str | None = None


class ScenarioRead(ScenarioCreate):
    id: UUID

    model_config = {"from_attributes": True}


class IncidentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    impact_radius: float = Field(gt=0, description="Kilometers")
    severity: Severity = Severity.GREEN
    started_at: datetime | None = None
    scenario_id: UUID | None = None


class IncidentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    impact_radius: float | None = Field(default=None, gt=0)
    severity: Severity | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    scenario_id: UUID | None = None


class IncidentRead(BaseModel):
    id: UUID
    name: str
    description: str | None
    latitude: float
    longitude: float
    impact_radius: float
    severity: Severity
    started_at: datetime
    ended_at: datetime | None
    scenario_id: UUID

    model_config = {"from_attributes": True}
