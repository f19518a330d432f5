"""User-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from krisefikser.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    role: str


class UserRead(BaseModel):
    """Response schema for GET /users/me."""
    id: UUID
    email: str
    full_name: str
    phone: str | None
    role: Role
    household_id: str | None
    latitude: float | None
    longitude: float | None

    model_config = {"from_attributes": True}


class PositionUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class MemberPosition(BaseModel):
    """Position of a household member, as shared on the household map."""
    user_id: UUID = Field(validation_alias="id")
    full_name: str
    latitude: float
    longitude: float

    model_config = {"from_attributes": True, "populate_by_name": True}
