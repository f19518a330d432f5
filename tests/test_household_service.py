"""Household aggregate: lifecycle, ownership, member-count bookkeeping."""

import uuid

import pytest
from sqlalchemy import func, update

from krisefikser.core.errors import (
    InvariantViolation,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from krisefikser.db.enums import ItemType, RequestStatus, RequestType
from krisefikser.db.models import (
    Household,
    Item,
    MembershipRequest,
    Notification,
    StorageItem,
    UnregisteredHouseholdMember,
    User,
)
from krisefikser.services import household_service, membership_request_service


def _actual_members(db, household_id):
    registered = db.query(func.count(User.id)).filter(User.household_id == household_id).scalar()
    unregistered = (
        db.query(func.count(UnregisteredHouseholdMember.id))
        .filter(UnregisteredHouseholdMember.household_id == household_id)
        .scalar()
    )
    return registered + unregistered


def _messages(db, user):
    return [n.message for n in db.query(Notification).filter(Notification.user_id == user.id)]


@pytest.fixture
def member(db, household, make_user):
    user = make_user(full_name="Mia Member")
    household_service.add_user_to_household(db, household.id, user.id)
    db.refresh(user)
    return user


# =============================================================================
# Creation / lookup
# =============================================================================


def test_create_household_makes_actor_owner_and_sole_member(db, owner, household):
    db.refresh(owner)
    assert household.owner_id == owner.id
    assert owner.household_id == household.id
    assert household.number_of_members == 1
    assert len(household.id) == 8
    assert household.id == household.id.upper()
    assert "Household created successfully" in _messages(db, owner)


def test_create_household_rejected_when_already_member(db, owner, household):
    with pytest.raises(ValidationError, match="already belongs"):
        household_service.create_household(db, owner, "Second Home")


def test_failed_create_leaves_nothing_in_the_session(db, make_user, monkeypatch):
    actor = make_user()

    def _lost_race(db, household, user_id, accepted_request_id=None):
        raise ValidationError("User already belongs to a household")

    monkeypatch.setattr(household_service, "join_household", _lost_race)

    with pytest.raises(ValidationError, match="already belongs"):
        household_service.create_household(db, actor, "Ghost Home")
    db.commit()

    assert db.query(Household).count() == 0


def test_search_exposes_only_id_and_name(db, household):
    result = household_service.search_household_by_id(db, f" {household.id.lower()} ")
    assert result == {"id": household.id, "name": "Test Home"}


def test_search_unknown_household(db):
    with pytest.raises(NotFoundError):
        household_service.search_household_by_id(db, "NOPE1234")


def test_details_require_membership(db, make_user):
    with pytest.raises(ValidationError, match="not a member"):
        household_service.get_household_details(db, make_user())


# =============================================================================
# Member count invariant
# =============================================================================


def test_member_count_tracks_every_change(db, owner, household, make_user):
    joiner = make_user(full_name="Jon Joiner")
    invitee = make_user(full_name="Ina Invitee", email="ina@test.no")

    household_service.add_user_to_household(db, household.id, joiner.id)
    extra = household_service.add_unregistered_member_to_household(db, owner, "Baby Bo")
    invitation = membership_request_service.send_invitation(db, owner, invitee.email)
    membership_request_service.accept_invitation_request(db, invitee, invitation.id)
    db.refresh(household)
    assert household.number_of_members == 4 == _actual_members(db, household.id)

    household_service.remove_unregistered_member_from_household(db, owner, extra.id)
    household_service.remove_user_from_household(db, owner, joiner.id)
    db.refresh(invitee)
    household_service.leave_household(db, invitee)

    db.refresh(household)
    assert household.number_of_members == 1 == _actual_members(db, household.id)


def test_add_user_to_household_twice_fails(db, household, member):
    with pytest.raises(ValidationError, match="already a member"):
        household_service.add_user_to_household(db, household.id, member.id)


def test_add_user_in_another_household_fails(db, household, make_user):
    other_owner = make_user()
    other = household_service.create_household(db, other_owner, "Other Home")

    with pytest.raises(ValidationError, match="already belongs"):
        household_service.add_user_to_household(db, household.id, other_owner.id)
    db.rollback()
    db.refresh(other)
    db.refresh(household)
    assert other.number_of_members == 1
    assert household.number_of_members == 1


def test_add_user_cancels_their_pending_requests(db, owner, household, make_user):
    other_owner = make_user()
    other = household_service.create_household(db, other_owner, "Other Home")
    joiner = make_user()
    request = membership_request_service.send_join_request(db, joiner, other.id)

    household_service.add_user_to_household(db, household.id, joiner.id)

    db.refresh(request)
    assert request.status == RequestStatus.CANCELED.value


def test_sync_detects_owner_outside_household(db, owner, household):
    db.execute(update(User).where(User.id == owner.id).values(household_id=None))
    with pytest.raises(InvariantViolation):
        household_service.sync_member_count(db, household)
    db.rollback()


# =============================================================================
# Leaving / removal
# =============================================================================


def test_owner_cannot_leave(db, owner, household):
    with pytest.raises(ValidationError, match="Transfer ownership first"):
        household_service.leave_household(db, owner)


def test_leave_without_household(db, make_user):
    with pytest.raises(ValidationError, match="not a member"):
        household_service.leave_household(db, make_user())


def test_leave_notifies_remaining_members(db, owner, household, member):
    household_service.leave_household(db, member)

    db.refresh(member)
    assert member.household_id is None
    assert "Mia Member has left the household." in _messages(db, owner)


def test_owner_cannot_be_removed(db, owner, household):
    with pytest.raises(ValidationError, match="Owner cannot be removed"):
        household_service.remove_user_from_household(db, owner, owner.id)


def test_only_owner_removes_members(db, owner, household, member):
    with pytest.raises(PermissionDeniedError):
        household_service.remove_user_from_household(db, member, owner.id)


def test_remove_stranger(db, owner, household, make_user):
    with pytest.raises(ValidationError, match="not a member of any household"):
        household_service.remove_user_from_household(db, owner, make_user().id)


def test_remove_notifies_both_sides(db, owner, household, member):
    household_service.remove_user_from_household(db, owner, member.id)

    assert "Mia Member has been removed from household." in _messages(db, owner)
    assert "You have been removed from household Test Home." in _messages(db, member)


# =============================================================================
# Ownership
# =============================================================================


def test_transfer_ownership_then_delete(db, owner, household, member, make_user):
    household_service.change_household_owner(db, owner, member.id)
    db.refresh(owner)
    db.refresh(member)
    assert "You are now the owner of household Test Home" in _messages(db, member)

    with pytest.raises(PermissionDeniedError):
        household_service.delete_household(db, owner)
    db.rollback()

    household_id = household.id
    invitee = make_user()
    membership_request_service.send_invitation(db, member, invitee.email)
    household_service.add_unregistered_member_to_household(db, member, "Baby Bo")
    item = Item(name="Water", item_type=ItemType.LIQUIDS.value, caloric_amount=0)
    db.add(item)
    db.flush()
    db.add(StorageItem(household_id=household_id, item_id=item.id, unit="L", amount=10))
    db.commit()

    household_service.delete_household(db, member)

    db.expire_all()
    assert db.get(Household, household_id) is None
    assert db.get(User, owner.id).household_id is None
    assert db.get(User, member.id).household_id is None
    assert db.query(MembershipRequest).filter(
        MembershipRequest.household_id == household_id
    ).count() == 0
    assert db.query(UnregisteredHouseholdMember).count() == 0
    assert db.query(StorageItem).count() == 0
    assert "Household Test Home has been deleted." in _messages(db, owner)


def test_delete_locks_members_before_household(db, owner, household, member, monkeypatch):
    taken = []
    real_lock_members = household_service._lock_members
    real_lock_household = household_service.lock_household

    def _lock_members(db, household_id):
        taken.append("members")
        return real_lock_members(db, household_id)

    def _lock_household(db, household_id):
        taken.append("household")
        return real_lock_household(db, household_id)

    monkeypatch.setattr(household_service, "_lock_members", _lock_members)
    monkeypatch.setattr(household_service, "lock_household", _lock_household)

    household_service.delete_household(db, owner)

    assert taken == ["members", "household"]


def test_transfer_to_self_rejected(db, owner, household):
    with pytest.raises(ValidationError, match="already the owner"):
        household_service.change_household_owner(db, owner, owner.id)


def test_transfer_to_non_member_rejected(db, owner, household, make_user):
    with pytest.raises(ValidationError, match="not a member of this household"):
        household_service.change_household_owner(db, owner, make_user().id)


def test_transfer_to_unknown_user(db, owner, household):
    with pytest.raises(NotFoundError):
        household_service.change_household_owner(db, owner, uuid.uuid4())


def test_edit_household_is_owner_only(db, owner, household, member):
    with pytest.raises(PermissionDeniedError):
        household_service.edit_household(db, member, name="Mine now")

    edited = household_service.edit_household(db, owner, name="Hytta")
    assert edited.name == "Hytta"
    assert edited.address == "Storgata 1"


# =============================================================================
# Unregistered members
# =============================================================================


def test_unregistered_member_crud(db, owner, household, member):
    created = household_service.add_unregistered_member_to_household(db, member, "Baby Bo")
    assert created.household_id == household.id

    edited = household_service.edit_unregistered_member_in_household(
        db, owner, created.id, "Bo Junior"
    )
    assert edited.full_name == "Bo Junior"

    household_service.remove_unregistered_member_from_household(db, owner, created.id)
    assert db.get(UnregisteredHouseholdMember, created.id) is None


def test_unregistered_member_of_other_household_is_off_limits(db, owner, household, make_user):
    other_owner = make_user()
    household_service.create_household(db, other_owner, "Other Home")
    foreign = household_service.add_unregistered_member_to_household(db, other_owner, "Neighbour kid")

    with pytest.raises(PermissionDeniedError, match="not authorized to edit"):
        household_service.edit_unregistered_member_in_household(db, owner, foreign.id, "Mine")
    with pytest.raises(PermissionDeniedError, match="not authorized to remove"):
        household_service.remove_unregistered_member_from_household(db, owner, foreign.id)


def test_unknown_unregistered_member(db, owner, household):
    with pytest.raises(NotFoundError, match="Unregistered member not found"):
        household_service.edit_unregistered_member_in_household(db, owner, uuid.uuid4(), "X")


def test_member_positions_only_include_known_coordinates(db, owner, household, make_user):
    placed = make_user(full_name="Per Placed", latitude=59.91, longitude=10.75)
    household_service.add_user_to_household(db, household.id, placed.id)

    positions = household_service.list_member_positions(db, owner)

    assert [u.id for u in positions] == [placed.id]


def test_membership_request_types_are_stored_lower_case(db, household, make_user):
    request = membership_request_service.send_join_request(db, make_user(), household.id)
    assert request.type == RequestType.JOIN_REQUEST.value == "join_request"
