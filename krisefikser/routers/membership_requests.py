"""Membership Requests Router - invitations and join requests."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_current_user, get_db
from krisefikser.core.errors import ValidationError
from krisefikser.db.enums import RequestType
from krisefikser.db.models import MembershipRequest
from krisefikser.schemas.membership_request import (
    InvitationCreate,
    JoinRequestCreate,
    MembershipRequestRead,
)
from krisefikser.services import membership_request_service

router = APIRouter(prefix="/membership-requests", tags=["membership-requests"])


def _read(db: Session, request: MembershipRequest) -> MembershipRequestRead:
    db.refresh(request)
    return MembershipRequestRead.from_model(request)


def _read_all(requests: list[MembershipRequest]) -> list[MembershipRequestRead]:
    return [MembershipRequestRead.from_model(r) for r in requests]


def _household_of(user) -> str:
    if user.household_id is None:
        raise ValidationError("You are not a member of any household.")
    return user.household_id


@router.post("/invitations", response_model=MembershipRequestRead, status_code=201)
def send_invitation(
    data: InvitationCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = membership_request_service.send_invitation(db, user, data.email)
    return _read(db, request)


@router.post("/join-requests", response_model=MembershipRequestRead, status_code=201)
def send_join_request(
    data: JoinRequestCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = membership_request_service.send_join_request(db, user, data.household_id)
    return _read(db, request)


@router.get("/invitations/received", response_model=list[MembershipRequestRead])
def received_invitations(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return _read_all(membership_request_service.get_received_invitations_by_user(db, user.id))


@router.get("/invitations/sent", response_model=list[MembershipRequestRead])
def sent_invitations(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return _read_all(
        membership_request_service.get_invitations_sent_by_household(db, _household_of(user))
    )


@router.get("/join-requests/received", response_model=list[MembershipRequestRead])
def received_join_requests(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return _read_all(
        membership_request_service.get_received_join_requests_by_household(
            db, _household_of(user)
        )
    )


@router.get("/join-requests/accepted", response_model=list[MembershipRequestRead])
def accepted_join_requests(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return _read_all(
        membership_request_service.get_accepted_received_join_requests_by_household(
            db, _household_of(user)
        )
    )


@router.post("/{request_id}/accept", response_model=MembershipRequestRead)
def accept_request(
    request_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Accept a pending invitation (as invitee) or join request (as household member)."""
    existing = db.get(MembershipRequest, request_id)
    if existing is not None and existing.type == RequestType.INVITATION.value:
        request = membership_request_service.accept_invitation_request(db, user, request_id)
    else:
        request = membership_request_service.accept_join_request(db, user, request_id)
    return _read(db, request)


@router.post("/{request_id}/decline", response_model=MembershipRequestRead)
def decline_request(
    request_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = membership_request_service.decline_request(db, user, request_id)
    return _read(db, request)


@router.post("/{request_id}/cancel", response_model=MembershipRequestRead)
def cancel_request(
    request_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = membership_request_service.cancel_request(db, user, request_id)
    return _read(db, request)
