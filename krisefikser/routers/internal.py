"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from external cron once a day (08:00 local time).
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from krisefikser.core.config import settings
from krisefikser.core.deps import get_db
from krisefikser.services import storage_expiry_service


router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str = Header(...)):
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != expected:
        raise HTTPException(status_code=403, detail="Invalid internal secret")


class StorageExpiryResponse(BaseModel):
    items_found: int
    items_notified: int
    notifications_sent: int
    failed_item_ids: list[str]


@router.post(
    "/storage-expiry",
    response_model=StorageExpiryResponse,
    dependencies=[Depends(verify_internal_secret)],
)
def check_storage_expiry(db: Session = Depends(get_db)):
    """
    Daily sweep for stored items expiring within STORAGE_EXPIRY_WINDOW_DAYS.

    Notifies every member of the owning household once per item.
    """
    result = storage_expiry_service.check_for_expiring_items(db)
    return StorageExpiryResponse(
        items_found=result.items_found,
        items_notified=result.items_notified,
        notifications_sent=result.notifications_sent,
        failed_item_ids=result.failed_item_ids,
    )
