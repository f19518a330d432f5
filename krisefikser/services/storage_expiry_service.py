"""
Storage Expiry Service - daily scan for items close to their expiration date.

Triggered by cron via ``POST /internal/scheduled/storage-expiry`` or the
``krisefikser check-expiring-items`` CLI command. Each expiring item produces
one ``stock_control`` notification per household member. A failure on one
item is logged and the scan moves on.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from krisefikser.core.config import settings
from krisefikser.core.structured_logging import build_log_context
from krisefikser.db.enums import NotificationType
from krisefikser.db.models import StorageItem
from krisefikser.services import notification_service

logger = logging.getLogger(__name__)

EXPIRY_TEMPLATE = "Your item '{name}' is expiring in {days} days."


@dataclass
class ExpiryScanResult:
    items_found: int = 0
    items_notified: int = 0
    notifications_sent: int = 0
    failed_item_ids: list[str] = field(default_factory=list)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def find_expiring_items(
    db: Session,
    now: datetime,
    window_days: int,
) -> list[StorageItem]:
    """Items whose expiration date falls within [now, now + window_days]."""
    until = now + timedelta(days=window_days)
    return (
        db.query(StorageItem)
        .options(selectinload(StorageItem.item))
        .filter(
            StorageItem.expiration_date.is_not(None),
            StorageItem.expiration_date >= now,
            StorageItem.expiration_date <= until,
        )
        .order_by(StorageItem.expiration_date)
        .all()
    )


def days_until_expiry(storage_item: StorageItem, now: datetime) -> int:
    return (_as_utc(storage_item.expiration_date).date() - now.date()).days


def send_expiry_notification(db: Session, storage_item: StorageItem, now: datetime) -> int:
    """Notify every member of the owning household. Returns notifications stored."""
    message = EXPIRY_TEMPLATE.format(
        name=storage_item.item.name,
        days=days_until_expiry(storage_item, now),
    )
    notifications = notification_service.notify_household(
        db, storage_item.household_id, NotificationType.STOCK_CONTROL, message
    )
    return len(notifications)


def check_for_expiring_items(
    db: Session,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
) -> ExpiryScanResult:
    """Run one expiry scan. Safe to run concurrently with request handling."""
    now = now or datetime.now(timezone.utc)
    window_days = settings.STORAGE_EXPIRY_WINDOW_DAYS if window_days is None else window_days

    items = find_expiring_items(db, now, window_days)
    result = ExpiryScanResult(items_found=len(items))
    logger.info("Expiry scan started: %d item(s) expire within %d days", len(items), window_days)

    for storage_item in items:
        item_id = str(storage_item.id)
        household_id = storage_item.household_id
        try:
            result.notifications_sent += send_expiry_notification(db, storage_item, now)
            result.items_notified += 1
        except Exception:
            db.rollback()
            result.failed_item_ids.append(item_id)
            logger.exception(
                "Failed to send expiry notification for storage item %s",
                item_id,
                extra=build_log_context(household_id=household_id),
            )

    logger.info(
        "Expiry scan finished: %d notified, %d failed",
        result.items_notified,
        len(result.failed_item_ids),
    )
    return result
