"""Invitation / join-request state machine."""

import uuid

import pytest
from sqlalchemy import and_, or_, update

from krisefikser.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from krisefikser.db.enums import NotificationType, RequestStatus, RequestType
from krisefikser.db.models import MembershipRequest, Notification, User
from krisefikser.services import household_service, membership_request_service as mrs


@pytest.fixture
def other_household(db, make_user):
    other_owner = make_user(full_name="Oda Other")
    return household_service.create_household(db, other_owner, "Other Home")


@pytest.fixture
def candidate(make_user):
    return make_user(full_name="Kari Candidate", email="kari@test.no")


def _pending_for(db, user):
    """Pending requests in which the user is the one asking or being asked to join."""
    return db.query(MembershipRequest).filter(
        MembershipRequest.status == RequestStatus.PENDING.value,
        or_(
            and_(
                MembershipRequest.type == RequestType.JOIN_REQUEST.value,
                MembershipRequest.sender_id == user.id,
            ),
            and_(
                MembershipRequest.type == RequestType.INVITATION.value,
                MembershipRequest.receiver_id == user.id,
            ),
        ),
    ).count()


# =============================================================================
# Sending
# =============================================================================


def test_send_invitation_creates_pending_and_notifies_invitee(
    db, owner, household, candidate, pushed
):
    request = mrs.send_invitation(db, owner, "KARI@test.no")

    assert request.type == RequestType.INVITATION.value
    assert request.status == RequestStatus.PENDING.value
    assert request.sender_id == owner.id
    assert request.receiver_id == candidate.id
    notification = db.query(Notification).filter(Notification.user_id == candidate.id).one()
    assert notification.type == NotificationType.MEMBERSHIP_REQUEST.value
    assert notification.message == (
        "You have received an invitation to join the household: Test Home"
    )


def test_cannot_invite_user_who_has_a_household(db, owner, household, other_household):
    other_owner = db.get(User, other_household.owner_id)
    with pytest.raises(ValidationError, match="already belongs"):
        mrs.send_invitation(db, owner, other_owner.email)


def test_duplicate_pending_invitation_rejected(db, owner, household, candidate):
    mrs.send_invitation(db, owner, candidate.email)
    with pytest.raises(ValidationError, match="already pending"):
        mrs.send_invitation(db, owner, candidate.email)


def test_new_invitation_allowed_after_decline(db, owner, household, candidate):
    first = mrs.send_invitation(db, owner, candidate.email)
    mrs.decline_request(db, candidate, first.id)

    second = mrs.send_invitation(db, owner, candidate.email)
    assert second.status == RequestStatus.PENDING.value


def test_invite_unknown_email(db, owner, household):
    with pytest.raises(NotFoundError):
        mrs.send_invitation(db, owner, "nobody@test.no")


def test_send_join_request_addressed_to_owner(db, owner, household, candidate, pushed):
    request = mrs.send_join_request(db, candidate, household.id.lower())

    assert request.receiver_id == owner.id
    assert request.sender_id == candidate.id
    messages = [n.message for n in db.query(Notification).filter(Notification.user_id == owner.id)]
    assert "Kari Candidate has requested to join the household: Test Home" in messages


def test_join_request_rejected_when_requester_has_household(
    db, owner, household, other_household
):
    with pytest.raises(ValidationError, match="already belongs"):
        mrs.send_join_request(db, owner, other_household.id)


def test_join_request_to_missing_household(db, candidate):
    with pytest.raises(NotFoundError, match="Household not found"):
        mrs.send_join_request(db, candidate, "ZZZZZZZZ")


def test_duplicate_pending_join_request_rejected(db, household, candidate):
    mrs.send_join_request(db, candidate, household.id)
    with pytest.raises(ValidationError, match="already pending"):
        mrs.send_join_request(db, candidate, household.id)


# =============================================================================
# Accepting
# =============================================================================


def test_accept_join_request_adds_member(db, owner, household, candidate, pushed):
    request = mrs.send_join_request(db, candidate, household.id)

    accepted = mrs.accept_join_request(db, owner, request.id)

    assert accepted.status == RequestStatus.ACCEPTED.value
    assert accepted.resolved_at is not None
    db.refresh(candidate)
    db.refresh(household)
    assert candidate.household_id == household.id
    assert household.number_of_members == 2
    messages = [n.message for n in db.query(Notification).filter(Notification.user_id == candidate.id)]
    assert "You have been added to household Test Home." in messages


def test_accepting_twice_fails(db, owner, household, candidate):
    request = mrs.send_join_request(db, candidate, household.id)
    mrs.accept_join_request(db, owner, request.id)

    with pytest.raises(ValidationError, match="Request is not pending"):
        mrs.accept_join_request(db, owner, request.id)
    db.refresh(household)
    assert household.number_of_members == 2


def test_accept_invitation_cancels_every_other_pending_request(
    db, owner, household, other_household, candidate
):
    other_owner = db.get(User, other_household.owner_id)
    invitation = mrs.send_invitation(db, owner, candidate.email)
    other_invitation = mrs.send_invitation(db, other_owner, candidate.email)
    join_request = mrs.send_join_request(db, candidate, other_household.id)

    mrs.accept_invitation_request(db, candidate, invitation.id)

    assert _pending_for(db, candidate) == 0
    db.refresh(other_invitation)
    db.refresh(join_request)
    db.refresh(invitation)
    assert other_invitation.status == RequestStatus.CANCELED.value
    assert join_request.status == RequestStatus.CANCELED.value
    assert invitation.status == RequestStatus.ACCEPTED.value


def test_accept_fails_when_user_joined_elsewhere_in_the_meantime(
    db, owner, household, other_household, candidate
):
    invitation = mrs.send_invitation(db, owner, candidate.email)
    # Another transaction placed the candidate first
    db.execute(
        update(User).where(User.id == candidate.id).values(household_id=other_household.id)
    )
    db.commit()

    with pytest.raises(ValidationError, match="already belongs"):
        mrs.accept_invitation_request(db, candidate, invitation.id)

    db.refresh(household)
    db.refresh(invitation)
    assert household.number_of_members == 1
    assert invitation.status == RequestStatus.PENDING.value


def test_accept_locks_user_then_household_then_request(
    db, owner, household, candidate, monkeypatch
):
    request = mrs.send_join_request(db, candidate, household.id)
    taken = []
    real_lock_user = household_service.lock_user
    real_lock_household = household_service.lock_household
    real_lock_request = mrs._lock_request

    def _lock_user(db, user_id):
        taken.append("user")
        return real_lock_user(db, user_id)

    def _lock_household(db, household_id):
        taken.append("household")
        return real_lock_household(db, household_id)

    def _lock_request(db, request_id):
        taken.append("request")
        return real_lock_request(db, request_id)

    monkeypatch.setattr(household_service, "lock_user", _lock_user)
    monkeypatch.setattr(household_service, "lock_household", _lock_household)
    monkeypatch.setattr(mrs, "_lock_request", _lock_request)

    mrs.accept_join_request(db, owner, request.id)

    assert taken == ["user", "household", "request"]


def test_accept_rechecks_request_once_locked(db, owner, household, candidate, monkeypatch):
    invitation = mrs.send_invitation(db, owner, candidate.email)
    real_lock_user = household_service.lock_user

    def _canceled_meanwhile(db, user_id):
        # The owner withdraws the invitation between the unlocked read and the locks
        db.execute(
            update(MembershipRequest)
            .where(MembershipRequest.id == invitation.id)
            .values(status=RequestStatus.CANCELED.value)
        )
        return real_lock_user(db, user_id)

    monkeypatch.setattr(household_service, "lock_user", _canceled_meanwhile)

    with pytest.raises(ValidationError, match="not pending"):
        mrs.accept_invitation_request(db, candidate, invitation.id)

    db.refresh(candidate)
    db.refresh(household)
    assert candidate.household_id is None
    assert household.number_of_members == 1


def test_accept_checks_request_type(db, owner, household, candidate):
    invitation = mrs.send_invitation(db, owner, candidate.email)
    with pytest.raises(ValidationError, match="not a join request"):
        mrs.accept_join_request(db, owner, invitation.id)


def test_only_invitee_may_accept_invitation(db, owner, household, candidate, make_user):
    invitation = mrs.send_invitation(db, owner, candidate.email)
    with pytest.raises(PermissionDeniedError):
        mrs.accept_invitation_request(db, make_user(), invitation.id)


def test_only_household_members_may_accept_join_request(db, household, candidate, make_user):
    request = mrs.send_join_request(db, candidate, household.id)
    with pytest.raises(PermissionDeniedError):
        mrs.accept_join_request(db, make_user(), request.id)


def test_accept_unknown_request(db, owner, household):
    with pytest.raises(NotFoundError, match="Request not found"):
        mrs.accept_join_request(db, owner, uuid.uuid4())


def test_former_owner_joining_elsewhere_keeps_household_join_requests(
    db, owner, household, candidate, make_user
):
    member = make_user(full_name="Mia Member")
    household_service.add_user_to_household(db, household.id, member.id)
    request = mrs.send_join_request(db, candidate, household.id)
    assert request.receiver_id == owner.id

    household_service.change_household_owner(db, owner, member.id)
    household_service.leave_household(db, owner)
    household_service.create_household(db, owner, "New Home")

    db.refresh(request)
    assert request.status == RequestStatus.PENDING.value
    db.refresh(member)
    accepted = mrs.accept_join_request(db, member, request.id)
    assert accepted.status == RequestStatus.ACCEPTED.value


def test_inviter_joining_elsewhere_keeps_household_invitations(
    db, owner, household, candidate, make_user
):
    member = make_user(full_name="Mia Member")
    household_service.add_user_to_household(db, household.id, member.id)
    invitation = mrs.send_invitation(db, member, candidate.email)

    household_service.leave_household(db, member)
    household_service.create_household(db, member, "Member Home")

    db.refresh(invitation)
    assert invitation.status == RequestStatus.PENDING.value
    assert [r.id for r in mrs.get_invitations_sent_by_household(db, household.id)] == [
        invitation.id
    ]
    assert _pending_for(db, candidate) == 1


# =============================================================================
# Declining / canceling
# =============================================================================


def test_decline_is_terminal(db, owner, household, candidate):
    request = mrs.send_join_request(db, candidate, household.id)
    declined = mrs.decline_request(db, owner, request.id)
    assert declined.status == RequestStatus.REJECTED.value

    with pytest.raises(ValidationError, match="not pending"):
        mrs.accept_join_request(db, owner, request.id)
    with pytest.raises(ValidationError, match="not pending"):
        mrs.cancel_request(db, candidate, request.id)


def test_cancel_by_sender(db, household, candidate):
    request = mrs.send_join_request(db, candidate, household.id)
    canceled = mrs.cancel_request(db, candidate, request.id)
    assert canceled.status == RequestStatus.CANCELED.value

    with pytest.raises(ValidationError):
        mrs.decline_request(db, candidate, request.id)


def test_stranger_cannot_cancel_or_decline(db, owner, household, candidate, make_user):
    request = mrs.send_invitation(db, owner, candidate.email)
    stranger = make_user()
    with pytest.raises(PermissionDeniedError):
        mrs.cancel_request(db, stranger, request.id)
    with pytest.raises(PermissionDeniedError):
        mrs.decline_request(db, stranger, request.id)


# =============================================================================
# Queries
# =============================================================================


def test_query_views(db, owner, household, candidate, make_user):
    joiner = make_user(full_name="Jon Joiner")
    refused = make_user(full_name="Rita Refused")
    invitation = mrs.send_invitation(db, owner, candidate.email)
    declined_invitation = mrs.send_invitation(db, owner, refused.email)
    mrs.decline_request(db, refused, declined_invitation.id)
    join_request = mrs.send_join_request(db, joiner, household.id)

    assert [r.id for r in mrs.get_received_invitations_by_user(db, candidate.id)] == [invitation.id]
    assert [r.id for r in mrs.get_received_join_requests_by_household(db, household.id)] == [
        join_request.id
    ]
    assert mrs.get_accepted_received_join_requests_by_household(db, household.id) == []
    assert [r.id for r in mrs.get_invitations_sent_by_household(db, household.id)] == [
        invitation.id
    ]

    mrs.accept_join_request(db, owner, join_request.id)

    assert mrs.get_received_join_requests_by_household(db, household.id) == []
    assert [
        r.id for r in mrs.get_accepted_received_join_requests_by_household(db, household.id)
    ] == [join_request.id]
