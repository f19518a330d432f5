"""User Service - directory lookups, radius search and position updates."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from krisefikser.core.errors import NotFoundError, ValidationError
from krisefikser.core.geo import GeoPoint, bounding_box, within_radius
from krisefikser.core.structured_logging import build_log_context
from krisefikser.db.enums import Role
from krisefikser.db.models import User
from krisefikser.services import notification_service

logger = logging.getLogger(__name__)


def position_topic(household_id: str) -> str:
    return f"position/{household_id}"


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(
    db: Session,
    email: str,
    full_name: str,
    role: Role = Role.USER,
    phone: Optional[str] = None,
) -> User:
    """Create an account row (admin/CLI path; self-registration lives elsewhere)."""
    normalized = email.strip().lower()
    if get_user_by_email(db, normalized):
        raise ValidationError("Email is already registered")
    user = User(email=normalized, full_name=full_name, role=role.value, phone=phone)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def find_users_within_radius(db: Session, center: GeoPoint, radius_km: float) -> list[User]:
    """
    Users whose stored position is within radius_km (inclusive) of center.

    A bounding box narrows candidates in SQL; the exact haversine distance
    decides. Users without a position are never returned.
    """
    box = bounding_box(center, radius_km)
    query = db.query(User).filter(
        User.latitude.is_not(None),
        User.longitude.is_not(None),
        User.latitude.between(box.min_lat, box.max_lat),
    )
    if box.min_lon is not None:
        query = query.filter(User.longitude.between(box.min_lon, box.max_lon))

    return [
        user
        for user in query.all()
        if within_radius(center, GeoPoint(user.latitude, user.longitude), radius_km)
    ]


def update_position(db: Session, user: User, latitude: float, longitude: float) -> User:
    """Store the user's position and share it with their household."""
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValidationError("Coordinates out of range")

    user.latitude = latitude
    user.longitude = longitude
    db.commit()
    db.refresh(user)

    logger.debug("Position updated", extra=build_log_context(user_id=user.id))

    if user.household_id:
        notification_service.push_to_topic(
            position_topic(user.household_id),
            {
                "type": "position_update",
                "data": {
                    "user_id": str(user.id),
                    "full_name": user.full_name,
                    "latitude": user.latitude,
                    "longitude": user.longitude,
                },
            },
        )
    return user
