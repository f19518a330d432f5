"""Membership request schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from krisefikser.db.enums import RequestStatus, RequestType


class InvitationCreate(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower()


class JoinRequestCreate(BaseModel):
    household_id: str = Field(min_length=8, max_length=8)


class RequestParty(BaseModel):
    id: UUID
    full_name: str
    email: str

    model_config = {"from_attributes": True}


class MembershipRequestRead(BaseModel):
    id: UUID
    household_id: str
    household_name: str
    sender: RequestParty
    receiver: RequestParty
    type: RequestType
    status: RequestStatus
    created_at: datetime
    resolved_at: datetime | None

    @classmethod
    def from_model(cls, request) -> "MembershipRequestRead":
        return cls(
            id=request.id,
            household_id=request.household_id,
            household_name=request.household.name,
            sender=RequestParty.model_validate(request.sender),
            receiver=RequestParty.model_validate(request.receiver),
            type=RequestType(request.type),
            status=RequestStatus(request.status),
            created_at=request.created_at,
            resolved_at=request.resolved_at,
        )
