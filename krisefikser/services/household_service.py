"""
Household Service - the household aggregate and its invariants.

Every membership change runs inside one transaction that holds the household
row lock, and ends with ``sync_member_count`` recomputing the cached
``number_of_members`` from the real member rows. A user's household reference
is only ever set through a conditional UPDATE (``household_id IS NULL``), so
two concurrent joins for the same user cannot both succeed.

Row locks are always taken in the same order: user rows first (ascending id
when there are several), then the household, then membership requests.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, update
from sqlalchemy.orm import Session, selectinload

from krisefikser.core.errors import (
    InvariantViolation,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from krisefikser.core.structured_logging import build_log_context
from krisefikser.db.enums import NotificationType, RequestStatus, RequestType
from krisefikser.db.models import (
    Household,
    MembershipRequest,
    StorageItem,
    UnregisteredHouseholdMember,
    User,
)
from krisefikser.services import notification_service

logger = logging.getLogger(__name__)


# =============================================================================
# Lookups and locking
# =============================================================================


def generate_household_id(db: Session) -> str:
    """Short upper-case code users can share to find a household."""
    while True:
        code = uuid.uuid4().hex[:8].upper()
        if db.get(Household, code) is None:
            return code


def get_household(db: Session, household_id: str) -> Household:
    household = db.get(Household, household_id)
    if not household:
        raise NotFoundError("Household not found")
    return household


def lock_household(db: Session, household_id: str) -> Household:
    """Load the household row with a row lock held until commit/rollback."""
    household = (
        db.query(Household)
        .filter(Household.id == household_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not household:
        raise NotFoundError("Household not found")
    return household


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def lock_user(db: Session, user_id: UUID) -> User:
    """Load the user row with a row lock. Take it before any household lock."""
    user = (
        db.query(User)
        .filter(User.id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user:
        raise NotFoundError("User not found")
    return user


def _lock_members(db: Session, household_id: str) -> list[User]:
    return (
        db.query(User)
        .filter(User.household_id == household_id)
        .order_by(User.id)
        .with_for_update()
        .populate_existing()
        .all()
    )


def _require_household(db: Session, actor: User) -> Household:
    if actor.household_id is None:
        raise ValidationError("You are not a member of any household.")
    return lock_household(db, actor.household_id)


def _require_owner(db: Session, actor: User, message: str) -> Household:
    household = _require_household(db, actor)
    if household.owner_id != actor.id:
        raise PermissionDeniedError(message)
    return household


# =============================================================================
# Invariant helpers (no commit)
# =============================================================================


def sync_member_count(db: Session, household: Household) -> int:
    """
    Recompute number_of_members from registered + unregistered members.

    Must run in the same transaction as the membership change.

    Raises:
        InvariantViolation: the owner is no longer a member
    """
    db.flush()
    registered = (
        db.query(func.count(User.id)).filter(User.household_id == household.id).scalar()
    )
    unregistered = (
        db.query(func.count(UnregisteredHouseholdMember.id))
        .filter(UnregisteredHouseholdMember.household_id == household.id)
        .scalar()
    )
    owner_household = (
        db.query(User.household_id).filter(User.id == household.owner_id).scalar()
    )
    if owner_household != household.id:
        raise InvariantViolation(
            f"Owner {household.owner_id} is not a member of household {household.id}"
        )

    household.number_of_members = registered + unregistered
    db.flush()
    return household.number_of_members


def cancel_pending_requests_for_user(
    db: Session,
    user_id: UUID,
    exclude_request_id: Optional[UUID] = None,
) -> int:
    """
    Cancel every PENDING request in which the user is the candidate. Returns count.

    That is join requests the user sent and invitations the user received.
    Requests the user handled on behalf of a household (as inviter or as the
    owner a join request was addressed to) belong to that household and stay.
    """
    stmt = update(MembershipRequest).where(
        MembershipRequest.status == RequestStatus.PENDING.value,
        or_(
            and_(
                MembershipRequest.type == RequestType.JOIN_REQUEST.value,
                MembershipRequest.sender_id == user_id,
            ),
            and_(
                MembershipRequest.type == RequestType.INVITATION.value,
                MembershipRequest.receiver_id == user_id,
            ),
        ),
    )
    if exclude_request_id is not None:
        stmt = stmt.where(MembershipRequest.id != exclude_request_id)
    result = db.execute(
        stmt.values(
            status=RequestStatus.CANCELED.value,
            resolved_at=datetime.now(timezone.utc),
        ).execution_options(synchronize_session="fetch")
    )
    return result.rowcount


def join_household(
    db: Session,
    household: Household,
    user_id: UUID,
    accepted_request_id: Optional[UUID] = None,
) -> None:
    """
    Atomically point a household-less user at this household.

    The caller holds the user and household locks, and commits (or rolls back
    on error). The user's other pending requests are canceled in the same
    transaction.

    Raises:
        NotFoundError: user does not exist
        ValidationError: user already belongs to a household (lost a race)
    """
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.household_id.is_(None))
        .values(household_id=household.id)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        get_user(db, user_id)
        raise ValidationError("User already belongs to a household")

    cancel_pending_requests_for_user(db, user_id, exclude_request_id=accepted_request_id)


def _detach_user(db: Session, household: Household, user_id: UUID) -> None:
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.household_id == household.id)
        .values(household_id=None)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise ValidationError("User is not a member of this household")


def announce_join(db: Session, household: Household, user: User) -> None:
    """Tell existing members about the newcomer, and the newcomer where they landed."""
    others = [
        row.id
        for row in db.query(User.id)
        .filter(User.household_id == household.id, User.id != user.id)
        .all()
    ]
    notification_service.notify_users(
        db, others, NotificationType.HOUSEHOLD, f"{user.full_name} has joined your household."
    )
    notification_service.notify_user(
        db, user.id, NotificationType.INFO, f"You have been added to household {household.name}."
    )


# =============================================================================
# Household lifecycle
# =============================================================================


def create_household(
    db: Session,
    actor: User,
    name: str,
    address: Optional[str] = None,
) -> Household:
    """Create a household owned by actor, who becomes its sole member."""
    if lock_user(db, actor.id).household_id is not None:
        db.rollback()
        raise ValidationError("User already belongs to a household")

    household = Household(
        id=generate_household_id(db),
        name=name,
        address=address,
        number_of_members=1,
        owner_id=actor.id,
    )
    try:
        db.add(household)
        db.flush()
        join_household(db, household, actor.id)
        sync_member_count(db, household)
    except ValidationError:
        db.rollback()
        raise
    db.commit()
    db.refresh(household)

    logger.info(
        "Household created",
        extra=build_log_context(user_id=actor.id, household_id=household.id),
    )
    notification_service.notify_user(
        db, actor.id, NotificationType.HOUSEHOLD, "Household created successfully"
    )
    return household


def edit_household(
    db: Session,
    actor: User,
    name: Optional[str] = None,
    address: Optional[str] = None,
) -> Household:
    household = _require_owner(db, actor, "Only the owner can edit the household")
    if name is not None:
        household.name = name
    if address is not None:
        household.address = address
    db.commit()
    db.refresh(household)

    notification_service.notify_user(
        db, actor.id, NotificationType.HOUSEHOLD, f"Household {household.name} has been updated."
    )
    return household


def delete_household(db: Session, actor: User) -> None:
    """
    Delete the actor's household (owner only).

    Cascade: membership requests, unregistered members and stored items are
    deleted, every member's household reference is cleared.
    """
    if actor.household_id is None:
        raise ValidationError("You are not a member of any household.")
    members = _lock_members(db, actor.household_id)
    household = _require_owner(db, actor, "Only the owner can delete the household")
    household_id = household.id
    name = household.name
    member_ids = [member.id for member in members]

    db.query(MembershipRequest).filter(
        MembershipRequest.household_id == household_id
    ).delete(synchronize_session="fetch")
    db.query(UnregisteredHouseholdMember).filter(
        UnregisteredHouseholdMember.household_id == household_id
    ).delete(synchronize_session="fetch")
    db.query(StorageItem).filter(
        StorageItem.household_id == household_id
    ).delete(synchronize_session="fetch")
    db.execute(
        update(User)
        .where(User.household_id == household_id)
        .values(household_id=None)
        .execution_options(synchronize_session="fetch")
    )
    db.delete(household)
    db.commit()

    logger.info(
        "Household deleted (%d member(s) released)",
        len(member_ids),
        extra=build_log_context(user_id=actor.id, household_id=household_id),
    )
    notification_service.notify_users(
        db, member_ids, NotificationType.HOUSEHOLD, f"Household {name} has been deleted."
    )


def get_household_details(db: Session, actor: User) -> Household:
    """The actor's household with members and unregistered members loaded."""
    if actor.household_id is None:
        raise ValidationError("You are not a member of any household.")
    household = (
        db.query(Household)
        .options(
            selectinload(Household.members),
            selectinload(Household.unregistered_members),
        )
        .filter(Household.id == actor.household_id)
        .first()
    )
    if not household:
        raise NotFoundError("Household not found")
    return household


def search_household_by_id(db: Session, household_id: str) -> dict:
    """Public lookup by code. Only id and name are exposed to non-members."""
    household = get_household(db, household_id.strip().upper())
    return {"id": household.id, "name": household.name}


def list_member_positions(db: Session, actor: User) -> list[User]:
    """Members of the actor's household whose position is known."""
    if actor.household_id is None:
        raise ValidationError("You are not a member of any household.")
    return (
        db.query(User)
        .filter(
            User.household_id == actor.household_id,
            User.latitude.is_not(None),
            User.longitude.is_not(None),
        )
        .order_by(User.full_name)
        .all()
    )


# =============================================================================
# Registered members
# =============================================================================


def add_user_to_household(db: Session, household_id: str, user_id: UUID) -> User:
    """Place a household-less user directly in a household (admin path)."""
    user = lock_user(db, user_id)
    household = lock_household(db, household_id)
    if user.household_id == household.id:
        db.rollback()
        raise ValidationError("User is already a member of this household")

    try:
        join_household(db, household, user.id)
        sync_member_count(db, household)
    except ValidationError:
        db.rollback()
        raise
    db.commit()

    logger.info(
        "User added to household",
        extra=build_log_context(user_id=user.id, household_id=household.id),
    )
    announce_join(db, household, user)
    return user


def remove_user_from_household(db: Session, actor: User, user_id: UUID) -> None:
    """Owner removes another registered member."""
    user = lock_user(db, user_id)
    household = _require_owner(db, actor, "Only the owner can remove members")
    if user.household_id is None:
        raise ValidationError("User is not a member of any household")
    if user.household_id != household.id:
        raise ValidationError("User is not a member of this household")
    if user.id == household.owner_id:
        raise ValidationError(
            "Owner cannot be removed from the household. Transfer ownership first."
        )

    _detach_user(db, household, user.id)
    sync_member_count(db, household)
    db.commit()

    logger.info(
        "User removed from household",
        extra=build_log_context(user_id=user.id, household_id=household.id),
    )
    notification_service.notify_household(
        db, household.id, NotificationType.HOUSEHOLD,
        f"{user.full_name} has been removed from household.",
    )
    notification_service.notify_user(
        db, user.id, NotificationType.INFO,
        f"You have been removed from household {household.name}.",
    )


def leave_household(db: Session, actor: User) -> None:
    """Actor leaves their household. The owner must transfer ownership first."""
    lock_user(db, actor.id)
    household = _require_household(db, actor)
    if household.owner_id == actor.id:
        raise ValidationError("Owner cannot leave the household. Transfer ownership first.")

    _detach_user(db, household, actor.id)
    sync_member_count(db, household)
    db.commit()

    logger.info(
        "User left household",
        extra=build_log_context(user_id=actor.id, household_id=household.id),
    )
    notification_service.notify_household(
        db, household.id, NotificationType.HOUSEHOLD,
        f"{actor.full_name} has left the household.",
    )


def change_household_owner(db: Session, actor: User, new_owner_id: UUID) -> Household:
    """Transfer ownership to another registered member."""
    new_owner = lock_user(db, new_owner_id)
    household = _require_owner(db, actor, "Only the owner can transfer ownership")
    if new_owner.id == household.owner_id:
        raise ValidationError("User is already the owner of this household")
    if new_owner.household_id != household.id:
        raise ValidationError("User is not a member of this household")

    household.owner_id = new_owner.id
    sync_member_count(db, household)
    db.commit()
    db.refresh(household)

    logger.info(
        "Household ownership transferred",
        extra=build_log_context(user_id=new_owner.id, household_id=household.id),
    )
    notification_service.notify_user(
        db, new_owner.id, NotificationType.HOUSEHOLD,
        f"You are now the owner of household {household.name}",
    )
    return household


# =============================================================================
# Unregistered members
# =============================================================================


def _get_unregistered_member(
    db: Session,
    household: Household,
    member_id: UUID,
    denied_message: str,
) -> UnregisteredHouseholdMember:
    member = db.get(UnregisteredHouseholdMember, member_id)
    if not member:
        raise NotFoundError("Unregistered member not found")
    if member.household_id != household.id:
        raise PermissionDeniedError(denied_message)
    return member


def add_unregistered_member_to_household(
    db: Session,
    actor: User,
    full_name: str,
) -> UnregisteredHouseholdMember:
    household = _require_household(db, actor)
    member = UnregisteredHouseholdMember(full_name=full_name, household_id=household.id)
    db.add(member)
    sync_member_count(db, household)
    db.commit()
    db.refresh(member)
    return member


def edit_unregistered_member_in_household(
    db: Session,
    actor: User,
    member_id: UUID,
    full_name: str,
) -> UnregisteredHouseholdMember:
    household = _require_household(db, actor)
    member = _get_unregistered_member(
        db, household, member_id, "You are not authorized to edit this member"
    )
    member.full_name = full_name
    db.commit()
    db.refresh(member)
    return member


def remove_unregistered_member_from_household(
    db: Session,
    actor: User,
    member_id: UUID,
) -> None:
    household = _require_household(db, actor)
    member = _get_unregistered_member(
        db, household, member_id, "You are not authorized to remove this member"
    )
    db.delete(member)
    sync_member_count(db, household)
    db.commit()
