"""Incidents Router - incident CRUD (writes trigger the geo fan-out)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_current_user, get_db, require_roles
from krisefikser.db.enums import ROLES_CAN_MANAGE_INCIDENTS
from krisefikser.schemas.incident import IncidentCreate, IncidentRead, IncidentUpdate
from krisefikser.services import incident_service

router = APIRouter(prefix="/incidents", tags=["incidents"])


@router.get("", response_model=list[IncidentRead])
def list_incidents(
    ongoing_only: bool = Query(False),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return incident_service.list_incidents(db, ongoing_only=ongoing_only)


@router.get("/{incident_id}", response_model=IncidentRead)
def get_incident(
    incident_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return incident_service.get_incident(db, incident_id)


@router.post("", response_model=IncidentRead, status_code=201)
def create_incident(
    data: IncidentCreate,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_INCIDENTS)),
    db: Session = Depends(get_db),
):
    """Create an incident and alert every user within the search radius."""
    return incident_service.create_incident(
        db,
        name=data.name,
        description=data.description,
        latitude=data.latitude,
        longitude=data.longitude,
        impact_radius=data.impact_radius,
        severity=data.severity,
        started_at=data.started_at,
        scenario_id=data.scenario_id,
    )


@router.patch("/{incident_id}", response_model=IncidentRead)
def update_incident(
    incident_id: UUID,
    data: IncidentUpdate,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_INCIDENTS)),
    db: Session = Depends(get_db),
):
    """Update an incident. Setting ended_at closes it."""
    return incident_service.update_incident(
        db, incident_id, data.model_dump(exclude_unset=True)
    )


@router.delete("/{incident_id}", status_code=204)
def delete_incident(
    incident_id: UUID,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_INCIDENTS)),
    db: Session = Depends(get_db),
):
    incident_service.delete_incident(db, incident_id)
    return Response(status_code=204)
