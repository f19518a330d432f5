"""Map Icons Router - public lookup, admin CRUD."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_db, require_roles
from krisefikser.db.enums import ROLES_CAN_MANAGE_MAP_ICONS
from krisefikser.schemas.map_icon import MapIconCreate, MapIconRead, MapIconUpdate
from krisefikser.services import map_icon_service

router = APIRouter(prefix="/map-icons", tags=["map-icons"])


@router.get("", response_model=list[MapIconRead])
def get_map_icons(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(..., gt=0, le=1000),
    query: str | None = Query(None, max_length=100),
    db: Session = Depends(get_db),
):
    """Icons within radius_km of a point, optionally matching a search string."""
    return map_icon_service.get_map_icons(db, latitude, longitude, radius_km, query)


@router.post("", response_model=MapIconRead, status_code=201)
def create_map_icon(
    data: MapIconCreate,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_MAP_ICONS)),
    db: Session = Depends(get_db),
):
    return map_icon_service.create_map_icon(db, **data.model_dump())


@router.patch("/{icon_id}", response_model=MapIconRead)
def update_map_icon(
    icon_id: UUID,
    data: MapIconUpdate,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_MAP_ICONS)),
    db: Session = Depends(get_db),
):
    return map_icon_service.update_map_icon(db, icon_id, data.model_dump(exclude_unset=True))


@router.delete("/{icon_id}", status_code=204)
def delete_map_icon(
    icon_id: UUID,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_MAP_ICONS)),
    db: Session = Depends(get_db),
):
    map_icon_service.delete_map_icon(db, icon_id)
    return Response(status_code=204)
