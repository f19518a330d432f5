"""
Notifications Router - /me/notifications endpoints.

Provides notification listing and read status.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_current_user, get_db
from krisefikser.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationRead,
    UnreadCountResponse,
)
from krisefikser.services import notification_service

router = APIRouter(prefix="/me", tags=["notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get user's notifications, newest first."""
    notifications = notification_service.get_notifications(
        db=db,
        user_id=user.id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    unread_count = notification_service.get_unread_count(db=db, user_id=user.id)
    return NotificationListResponse(
        items=[NotificationRead.model_validate(n) for n in notifications],
        unread_count=unread_count,
    )


@router.get("/notifications/count", response_model=UnreadCountResponse)
def get_unread_count(user=Depends(get_current_user), db: Session = Depends(get_db)):
    """Get unread notification count (for polling)."""
    return UnreadCountResponse(count=notification_service.get_unread_count(db, user.id))


@router.patch("/notifications/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notification_service.mark_read(db, notification_id, user.id)


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return MarkAllReadResponse(updated=notification_service.mark_all_read(db, user.id))
