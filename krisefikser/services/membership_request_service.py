"""
Membership Request Service - invitation / join-request state machine.

    PENDING -> ACCEPTED | REJECTED | CANCELED   (all terminal)

Acceptance is the only transition with side effects. Inside one transaction
the joining user, the household and the request are locked in that order,
the user is attached with a conditional update (fails if they gained a
household in the meantime), every other PENDING request in which they are the
candidate is canceled, and the member count is recomputed.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from krisefikser.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from krisefikser.core.structured_logging import build_log_context
from krisefikser.db.enums import NotificationType, RequestStatus, RequestType
from krisefikser.db.models import MembershipRequest, User
from krisefikser.services import household_service, notification_service

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def _lock_request(db: Session, request_id: UUID) -> MembershipRequest:
    request = (
        db.query(MembershipRequest)
        .filter(MembershipRequest.id == request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not request:
        raise NotFoundError("Request not found")
    return request


def _ensure_pending(request: MembershipRequest, expected_type: RequestType | None = None) -> None:
    if request.status != RequestStatus.PENDING.value:
        raise ValidationError("Request is not pending")
    if expected_type is not None and request.type != expected_type.value:
        raise ValidationError(f"Request is not a {expected_type.value.replace('_', ' ')}")


def _resolve(request: MembershipRequest, status: RequestStatus) -> None:
    request.status = status.value
    request.resolved_at = datetime.now(timezone.utc)


def _has_pending(db: Session, household_id: str, user_id: UUID, type: RequestType) -> bool:
    """Pending request of this type between household and user (either direction)."""
    user_column = (
        MembershipRequest.receiver_id
        if type == RequestType.INVITATION
        else MembershipRequest.sender_id
    )
    return db.query(MembershipRequest.id).filter(
        MembershipRequest.household_id == household_id,
        user_column == user_id,
        MembershipRequest.type == type.value,
        MembershipRequest.status == RequestStatus.PENDING.value,
    ).first() is not None


def _query_requests(db: Session):
    return db.query(MembershipRequest).options(
        selectinload(MembershipRequest.household),
        selectinload(MembershipRequest.sender),
        selectinload(MembershipRequest.receiver),
    )


# =============================================================================
# Sending
# =============================================================================


def send_invitation(db: Session, actor: User, invitee_email: str) -> MembershipRequest:
    """Invite a household-less user into the actor's household."""
    if actor.household_id is None:
        raise ValidationError("You are not a member of any household.")
    household = household_service.get_household(db, actor.household_id)

    invitee = db.query(User).filter(User.email == invitee_email.strip().lower()).first()
    if not invitee:
        raise NotFoundError("User not found")
    if invitee.household_id is not None:
        raise ValidationError("User already belongs to a household")
    if _has_pending(db, household.id, invitee.id, RequestType.INVITATION):
        raise ValidationError("An invitation is already pending for this user")

    request = MembershipRequest(
        household_id=household.id,
        sender_id=actor.id,
        receiver_id=invitee.id,
        type=RequestType.INVITATION.value,
        status=RequestStatus.PENDING.value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)

    logger.info(
        "Invitation %s sent",
        request.id,
        extra=build_log_context(user_id=actor.id, household_id=household.id),
    )
    notification_service.notify_user(
        db, invitee.id, NotificationType.MEMBERSHIP_REQUEST,
        f"You have received an invitation to join the household: {household.name}",
    )
    return request


def send_join_request(db: Session, actor: User, household_id: str) -> MembershipRequest:
    """Ask to join a household. The request is addressed to its owner."""
    if actor.household_id is not None:
        raise ValidationError("User already belongs to a household")
    household = household_service.get_household(db, household_id.strip().upper())
    if _has_pending(db, household.id, actor.id, RequestType.JOIN_REQUEST):
        raise ValidationError("A join request is already pending for this household")

    request = MembershipRequest(
        household_id=household.id,
        sender_id=actor.id,
        receiver_id=household.owner_id,
        type=RequestType.JOIN_REQUEST.value,
        status=RequestStatus.PENDING.value,
    )
    db.add(request)
    db.commit()
    db.refresh(request)

    logger.info(
        "Join request %s sent",
        request.id,
        extra=build_log_context(user_id=actor.id, household_id=household.id),
    )
    notification_service.notify_user(
        db, household.owner_id, NotificationType.MEMBERSHIP_REQUEST,
        f"{actor.full_name} has requested to join the household: {household.name}",
    )
    return request


# =============================================================================
# Transitions
# =============================================================================


def _get_request(db: Session, request_id: UUID) -> MembershipRequest:
    request = db.get(MembershipRequest, request_id)
    if not request:
        raise NotFoundError("Request not found")
    return request


def _accept(
    db: Session,
    request: MembershipRequest,
    joining_user_id: UUID,
    expected_type: RequestType,
) -> MembershipRequest:
    """
    Lock the joining user, then the household, then the request, and re-check.

    The caller has only read the request unlocked; it may have been resolved
    in the meantime.
    """
    try:
        user = household_service.lock_user(db, joining_user_id)
        if user.household_id is not None:
            raise ValidationError("User already belongs to a household")
        household = household_service.lock_household(db, request.household_id)
        request = _lock_request(db, request.id)
        _ensure_pending(request, expected_type)

        household_service.join_household(
            db, household, joining_user_id, accepted_request_id=request.id
        )
        _resolve(request, RequestStatus.ACCEPTED)
        household_service.sync_member_count(db, household)
    except ValidationError:
        db.rollback()
        raise
    db.commit()
    db.refresh(request)

    logger.info(
        "Request %s accepted",
        request.id,
        extra=build_log_context(user_id=joining_user_id, household_id=household.id),
    )
    household_service.announce_join(db, household, user)
    return request


def accept_join_request(db: Session, actor: User, request_id: UUID) -> MembershipRequest:
    """A member of the target household accepts a join request; the sender joins."""
    request = _get_request(db, request_id)
    _ensure_pending(request, RequestType.JOIN_REQUEST)
    if actor.household_id != request.household_id:
        raise PermissionDeniedError("Only household members can accept join requests")
    return _accept(db, request, request.sender_id, RequestType.JOIN_REQUEST)


def accept_invitation_request(db: Session, actor: User, request_id: UUID) -> MembershipRequest:
    """The invitee accepts an invitation and joins the inviting household."""
    request = _get_request(db, request_id)
    _ensure_pending(request, RequestType.INVITATION)
    if request.receiver_id != actor.id:
        raise PermissionDeniedError("Only the invited user can accept this invitation")
    return _accept(db, request, request.receiver_id, RequestType.INVITATION)


def decline_request(db: Session, actor: User, request_id: UUID) -> MembershipRequest:
    """The receiving side rejects a pending request."""
    request = _lock_request(db, request_id)
    _ensure_pending(request)
    if request.type == RequestType.INVITATION.value:
        allowed = request.receiver_id == actor.id
    else:
        allowed = actor.household_id == request.household_id
    if not allowed:
        raise PermissionDeniedError("You are not allowed to decline this request")

    _resolve(request, RequestStatus.REJECTED)
    db.commit()
    db.refresh(request)
    logger.info("Request %s declined", request.id, extra=build_log_context(user_id=actor.id))
    return request


def cancel_request(db: Session, actor: User, request_id: UUID) -> MembershipRequest:
    """The sending side withdraws a pending request."""
    request = _lock_request(db, request_id)
    _ensure_pending(request)
    allowed = request.sender_id == actor.id or (
        request.type == RequestType.INVITATION.value
        and actor.household_id == request.household_id
    )
    if not allowed:
        raise PermissionDeniedError("You are not allowed to cancel this request")

    _resolve(request, RequestStatus.CANCELED)
    db.commit()
    db.refresh(request)
    logger.info("Request %s canceled", request.id, extra=build_log_context(user_id=actor.id))
    return request


# =============================================================================
# Queries (read-only)
# =============================================================================


def get_received_invitations_by_user(db: Session, user_id: UUID) -> list[MembershipRequest]:
    return (
        _query_requests(db)
        .filter(
            MembershipRequest.receiver_id == user_id,
            MembershipRequest.type == RequestType.INVITATION.value,
            MembershipRequest.status == RequestStatus.PENDING.value,
        )
        .order_by(MembershipRequest.created_at.desc())
        .all()
    )


def get_received_join_requests_by_household(
    db: Session, household_id: str
) -> list[MembershipRequest]:
    return (
        _query_requests(db)
        .filter(
            MembershipRequest.household_id == household_id,
            MembershipRequest.type == RequestType.JOIN_REQUEST.value,
            MembershipRequest.status == RequestStatus.PENDING.value,
        )
        .order_by(MembershipRequest.created_at.desc())
        .all()
    )


def get_accepted_received_join_requests_by_household(
    db: Session, household_id: str
) -> list[MembershipRequest]:
    return (
        _query_requests(db)
        .filter(
            MembershipRequest.household_id == household_id,
            MembershipRequest.type == RequestType.JOIN_REQUEST.value,
            MembershipRequest.status == RequestStatus.ACCEPTED.value,
        )
        .order_by(MembershipRequest.created_at.desc())
        .all()
    )


def get_invitations_sent_by_household(
    db: Session, household_id: str
) -> list[MembershipRequest]:
    """Pending and accepted invitations (declined/canceled are hidden)."""
    return (
        _query_requests(db)
        .filter(
            MembershipRequest.household_id == household_id,
            MembershipRequest.type == RequestType.INVITATION.value,
            MembershipRequest.status.in_(
                [RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value]
            ),
        )
        .order_by(MembershipRequest.created_at.desc())
        .all()
    )
