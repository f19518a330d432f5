"""Households Router - household aggregate endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_current_user, get_db, require_roles
from krisefikser.db.enums import ROLES_CAN_ASSIGN_HOUSEHOLDS
from krisefikser.schemas.household import (
    HouseholdBasicRead,
    HouseholdCreate,
    HouseholdDetailsRead,
    HouseholdMemberAdd,
    HouseholdRead,
    HouseholdUpdate,
    OwnerChange,
    UnregisteredMemberCreate,
    UnregisteredMemberRead,
)
from krisefikser.schemas.user import MemberPosition
from krisefikser.services import household_service

router = APIRouter(prefix="/households", tags=["households"])


@router.post("", response_model=HouseholdRead, status_code=201)
def create_household(
    data: HouseholdCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a household; the caller becomes owner and sole member."""
    return household_service.create_household(db, user, data.name, data.address)


@router.get("/me", response_model=HouseholdDetailsRead)
def get_my_household(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return household_service.get_household_details(db, user)


@router.patch("/me", response_model=HouseholdRead)
def edit_my_household(
    data: HouseholdUpdate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return household_service.edit_household(db, user, data.name, data.address)


@router.delete("/me", status_code=204)
def delete_my_household(user=Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete the household (owner only) and release all members."""
    household_service.delete_household(db, user)
    return Response(status_code=204)


@router.post("/me/leave", status_code=204)
def leave_my_household(user=Depends(get_current_user), db: Session = Depends(get_db)):
    household_service.leave_household(db, user)
    return Response(status_code=204)


@router.post("/me/owner", response_model=HouseholdRead)
def change_owner(
    data: OwnerChange,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return household_service.change_household_owner(db, user, data.new_owner_id)


@router.delete("/me/members/{user_id}", status_code=204)
def remove_member(
    user_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    household_service.remove_user_from_household(db, user, user_id)
    return Response(status_code=204)


@router.get("/me/positions", response_model=list[MemberPosition])
def list_positions(user=Depends(get_current_user), db: Session = Depends(get_db)):
    members = household_service.list_member_positions(db, user)
    return [MemberPosition.model_validate(member) for member in members]


@router.post("/members", status_code=204)
def add_member(
    data: HouseholdMemberAdd,
    admin=Depends(require_roles(ROLES_CAN_ASSIGN_HOUSEHOLDS)),
    db: Session = Depends(get_db),
):
    """Place a user directly in a household, bypassing the request flow."""
    household_service.add_user_to_household(db, data.household_id, data.user_id)
    return Response(status_code=204)


@router.get("/search/{household_id}", response_model=HouseholdBasicRead)
def search_household(
    household_id: str,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return household_service.search_household_by_id(db, household_id)


# =============================================================================
# Unregistered members
# =============================================================================


@router.post("/me/unregistered-members", response_model=UnregisteredMemberRead, status_code=201)
def add_unregistered_member(
    data: UnregisteredMemberCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return household_service.add_unregistered_member_to_household(db, user, data.full_name)


@router.patch("/me/unregistered-members/{member_id}", response_model=UnregisteredMemberRead)
def edit_unregistered_member(
    member_id: UUID,
    data: UnregisteredMemberCreate,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return household_service.edit_unregistered_member_in_household(
        db, user, member_id, data.full_name
    )


@router.delete("/me/unregistered-members/{member_id}", status_code=204)
def remove_unregistered_member(
    member_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    household_service.remove_unregistered_member_from_household(db, user, member_id)
    return Response(status_code=204)
