"""
Notification Service - persisted in-app notifications plus best-effort push.

Every producer (incident fan-out, membership events, expiry scan) goes through
``notify_users``: one Notification row per recipient is committed first, then a
push to each recipient's private websocket channel is attempted. Push failures
are logged and swallowed; persistence is never rolled back because of them.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from krisefikser.core.async_utils import run_async
from krisefikser.core.config import settings
from krisefikser.core.errors import DeliveryError, NotFoundError
from krisefikser.core.structured_logging import build_log_context
from krisefikser.core.websocket import manager
from krisefikser.db.enums import NotificationType
from krisefikser.db.models import Notification, User

logger = logging.getLogger(__name__)


# =============================================================================
# Notification CRUD
# =============================================================================


def create_notification(
    db: Session,
    user_id: UUID,
    type: NotificationType,
    message: str,
    timestamp: Optional[datetime] = None,
) -> Notification:
    """Persist a single notification (no push)."""
    notification = Notification(
        user_id=user_id,
        type=type.value,
        message=message,
        timestamp=timestamp or datetime.now(timezone.utc),
        is_read=False,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def get_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications for user, newest first."""
    query = db.query(Notification).filter(Notification.user_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    return (
        query.order_by(Notification.timestamp.desc())
        .offset(offset)
        .limit(min(limit, settings.NOTIFICATION_PAGE_SIZE_MAX))
        .all()
    )


def get_unread_count(db: Session, user_id: UUID) -> int:
    """Get count of unread notifications."""
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).count()


def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
    """
    Mark a notification as read.

    Scoped by owner: another user's notification is reported as not found.
    """
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        raise NotFoundError("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)

    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return count


# =============================================================================
# Push channel (best effort)
# =============================================================================


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": str(notification.id),
        "type": notification.type,
        "message": notification.message,
        "timestamp": notification.timestamp.isoformat(),
        "is_read": notification.is_read,
    }


def push_to_user(user_id: UUID, payload: dict) -> bool:
    """
    Push a payload to the user's private channel.

    Returns False when delivery failed. Never raises: a failed push must not
    abort the operation that produced the notification.
    """
    try:
        run_async(manager.send_to_user(user_id, payload), timeout=settings.PUSH_TIMEOUT_SECONDS)
    except DeliveryError as exc:
        logger.warning(
            "Push delivery failed: %s", exc, extra=build_log_context(user_id=user_id)
        )
        return False
    except Exception:
        logger.warning(
            "Push delivery errored", exc_info=True, extra=build_log_context(user_id=user_id)
        )
        return False
    return True


def push_to_topic(topic: str, payload: dict) -> bool:
    """Push a payload to every subscriber of a topic. Never raises."""
    try:
        run_async(manager.send_to_topic(topic, payload), timeout=settings.PUSH_TIMEOUT_SECONDS)
    except Exception:
        logger.warning("Topic push to %s errored", topic, exc_info=True)
        return False
    return True


def push_notification(notification: Notification) -> bool:
    return push_to_user(
        notification.user_id,
        {"type": "notification", "data": serialize_notification(notification)},
    )


# =============================================================================
# Fan-out (persist, then push)
# =============================================================================


def notify_users(
    db: Session,
    user_ids: Iterable[UUID],
    type: NotificationType,
    message: str,
) -> list[Notification]:
    """
    Persist one notification per distinct recipient, then push each.

    All rows are committed before the first push, so completion means
    "every notification stored, every push attempted".
    """
    now = datetime.now(timezone.utc)
    notifications: list[Notification] = []
    seen: set[UUID] = set()
    for user_id in user_ids:
        if user_id in seen:
            continue
        seen.add(user_id)
        notification = Notification(
            user_id=user_id,
            type=type.value,
            message=message,
            timestamp=now,
            is_read=False,
        )
        db.add(notification)
        notifications.append(notification)

    if not notifications:
        return []

    db.commit()

    failed = 0
    for notification in notifications:
        if not push_notification(notification):
            failed += 1

    logger.info(
        "Sent %s notification to %d user(s), %d push failure(s)",
        type.value,
        len(notifications),
        failed,
    )
    return notifications


def notify_user(
    db: Session,
    user_id: UUID,
    type: NotificationType,
    message: str,
) -> Notification:
    """Persist and push a notification to a single user."""
    return notify_users(db, [user_id], type, message)[0]


def notify_household(
    db: Session,
    household_id: str,
    type: NotificationType,
    message: str,
) -> list[Notification]:
    """Persist and push a notification to every registered member of a household."""
    member_ids = [
        row.id
        for row in db.query(User.id).filter(User.household_id == household_id).all()
    ]
    return notify_users(db, member_ids, type, message)
