"""Household-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class HouseholdCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address: str | None = Field(default=None, max_length=500)


class HouseholdUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, max_length=500)


class HouseholdRead(BaseModel):
    id: str
    name: str
    address: str | None
    number_of_members: int
    owner_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class HouseholdBasicRead(BaseModel):
    """What non-members may see when looking a household up by code."""
    id: str
    name: str


class HouseholdMemberRead(BaseModel):
    id: UUID
    full_name: str
    email: str

    model_config = {"from_attributes": True}


class UnregisteredMemberCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)


class UnregisteredMemberRead(BaseModel):
    id: UUID
    full_name: str
    household_id: str

    model_config = {"from_attributes": True}


class HouseholdDetailsRead(HouseholdRead):
    members: list[HouseholdMemberRead]
    unregistered_members: list[UnregisteredMemberRead]


class OwnerChange(BaseModel):
    new_owner_id: UUID


class HouseholdMemberAdd(BaseModel):
    """Admin placement of a user in a household."""
    household_id: str = Field(min_length=8, max_length=8)
    user_id: UUID
