"""Map Icon Service - points of interest and radius lookup."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from krisefikser.core.errors import NotFoundError, ValidationError
from krisefikser.core.geo import GeoPoint, bounding_box, within_radius
from krisefikser.db.enums import MapIconType
from krisefikser.db.models import MapIcon

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "type",
    "address",
    "latitude",
    "longitude",
    "description",
    "opening_hours",
    "contact_info",
)


def _check_location(
    latitude: Optional[float],
    longitude: Optional[float],
    address: Optional[str],
) -> None:
    has_coordinates = latitude is not None and longitude is not None
    if not has_coordinates and not (address and address.strip()):
        raise ValidationError("Either coordinates or address must be provided.")
    if (latitude is None) != (longitude is None):
        raise ValidationError("Latitude and longitude must be provided together.")


def get_map_icon(db: Session, icon_id: UUID) -> MapIcon:
    icon = db.get(MapIcon, icon_id)
    if not icon:
        raise NotFoundError("Map icon not found")
    return icon


def create_map_icon(
    db: Session,
    type: MapIconType,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    address: Optional[str] = None,
    description: Optional[str] = None,
    opening_hours: Optional[str] = None,
    contact_info: Optional[str] = None,
) -> MapIcon:
    _check_location(latitude, longitude, address)
    icon = MapIcon(
        type=type.value,
        latitude=latitude,
        longitude=longitude,
        address=address,
        description=description,
        opening_hours=opening_hours,
        contact_info=contact_info,
    )
    db.add(icon)
    db.commit()
    db.refresh(icon)
    return icon


def update_map_icon(db: Session, icon_id: UUID, updates: dict) -> MapIcon:
    icon = get_map_icon(db, icon_id)
    for key, value in updates.items():
        if key not in _UPDATABLE_FIELDS:
            continue
        if key == "type" and isinstance(value, MapIconType):
            value = value.value
        setattr(icon, key, value)
    _check_location(icon.latitude, icon.longitude, icon.address)
    db.commit()
    db.refresh(icon)
    return icon


def delete_map_icon(db: Session, icon_id: UUID) -> None:
    icon = get_map_icon(db, icon_id)
    db.delete(icon)
    db.commit()


def _matches(icon: MapIcon, needle: str) -> bool:
    haystack = (icon.type, icon.address, icon.description)
    return any(value and needle in value.lower() for value in haystack)


def get_map_icons(
    db: Session,
    latitude: float,
    longitude: float,
    radius_km: float,
    query: Optional[str] = None,
) -> list[MapIcon]:
    """Icons with coordinates within radius_km, optionally filtered by a text query."""
    if radius_km <= 0:
        raise ValidationError("Radius must be positive")
    center = GeoPoint(latitude, longitude)
    box = bounding_box(center, radius_km)
    candidates = db.query(MapIcon).filter(
        MapIcon.latitude.is_not(None),
        MapIcon.longitude.is_not(None),
        MapIcon.latitude.between(box.min_lat, box.max_lat),
    )
    if box.min_lon is not None:
        candidates = candidates.filter(MapIcon.longitude.between(box.min_lon, box.max_lon))

    needle = query.strip().lower() if query else ""
    return [
        icon
        for icon in candidates.all()
        if within_radius(center, GeoPoint(icon.latitude, icon.longitude), radius_km)
        and (not needle or _matches(icon, needle))
    ]
