"""
Incident Service - incident CRUD and the geo-radius notification fan-out.

Each lifecycle event (create, update, close) notifies every user whose stored
position lies within ``impact_radius * RADIUS_SAFETY_FACTOR`` km of the
incident. One notification is persisted per user, then pushed; push failures
never stop the fan-out.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from krisefikser.core.errors import NotFoundError, ValidationError
from krisefikser.core.geo import GeoPoint
from krisefikser.db.enums import IncidentEvent, NotificationType, Severity
from krisefikser.db.models import Incident, Notification, User
from krisefikser.services import notification_service, scenario_service, user_service

logger = logging.getLogger(__name__)

# Warn users slightly outside the nominal radius as well
RADIUS_SAFETY_FACTOR = 1.4

CREATED_TEMPLATE = (
    "[EMERGENCY ALERT]: {scenario_name} is in progress near you. "
    "Specific instructions can be found in the app."
)
UPDATED_TEMPLATE = "{incident_name} har utviklet seg. Les mer på nyhetssiden."
CLOSED_TEMPLATE = "{incident_name} har avsluttet. Ta kontakt med dine nermeste."

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "latitude",
    "longitude",
    "impact_radius",
    "severity",
    "started_at",
    "ended_at",
    "scenario_id",
)


# =============================================================================
# Fan-out
# =============================================================================


def search_radius_km(incident: Incident) -> float:
    return incident.impact_radius * RADIUS_SAFETY_FACTOR


def build_incident_message(incident: Incident, event: IncidentEvent) -> str:
    if event == IncidentEvent.CREATED:
        return CREATED_TEMPLATE.format(scenario_name=incident.scenario.name)
    if event == IncidentEvent.CLOSED:
        return CLOSED_TEMPLATE.format(incident_name=incident.name)
    return UPDATED_TEMPLATE.format(incident_name=incident.name)


def find_users_within_incident_radius(db: Session, incident: Incident) -> list[User]:
    return user_service.find_users_within_radius(
        db, GeoPoint(incident.latitude, incident.longitude), search_radius_km(incident)
    )


def notify_incident(db: Session, incident: Incident, event: IncidentEvent) -> list[Notification]:
    """Notify every affected user once for this event. Returns the stored notifications."""
    message = build_incident_message(incident, event)
    users = find_users_within_incident_radius(db, incident)
    logger.info(
        "Incident %s %s: %d user(s) within %.2f km",
        incident.id,
        event.value,
        len(users),
        search_radius_km(incident),
    )
    return notification_service.notify_users(
        db, [user.id for user in users], NotificationType.INCIDENT, message
    )


# =============================================================================
# CRUD
# =============================================================================


def _validate(latitude: float, longitude: float, impact_radius: float) -> None:
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValidationError("Coordinates out of range")
    if impact_radius <= 0:
        raise ValidationError("Impact radius must be positive")


def list_incidents(db: Session, ongoing_only: bool = False) -> list[Incident]:
    query = db.query(Incident).options(selectinload(Incident.scenario))
    if ongoing_only:
        query = query.filter(Incident.ended_at.is_(None))
    return query.order_by(Incident.started_at.desc()).all()


def get_incident(db: Session, incident_id: UUID) -> Incident:
    incident = db.get(Incident, incident_id)
    if not incident:
        raise NotFoundError("Incident not found")
    return incident


def create_incident(
    db: Session,
    name: str,
    latitude: float,
    longitude: float,
    impact_radius: float,
    scenario_id: Optional[UUID],
    severity: Severity = Severity.GREEN,
    description: Optional[str] = None,
    started_at: Optional[datetime] = None,
) -> Incident:
    """Create an incident and alert everyone nearby."""
    if scenario_id is None:
        raise ValidationError("Scenario ID is required to create an incident")
    scenario = scenario_service.get_scenario(db, scenario_id)
    _validate(latitude, longitude, impact_radius)

    incident = Incident(
        name=name,
        description=description,
        latitude=latitude,
        longitude=longitude,
        impact_radius=impact_radius,
        severity=severity.value,
        scenario_id=scenario.id,
    )
    if started_at is not None:
        incident.started_at = started_at
    db.add(incident)
    db.commit()
    db.refresh(incident)

    notify_incident(db, incident, IncidentEvent.CREATED)
    return incident


def update_incident(db: Session, incident_id: UUID, updates: dict) -> Incident:
    """
    Apply field updates and notify nearby users.

    Setting ended_at on an ongoing incident sends the closure message; any
    other change to an ongoing incident sends the update message. Edits to an
    already closed incident are stored without a new alert.
    """
    incident = get_incident(db, incident_id)
    was_ongoing = incident.is_ongoing

    if updates.get("scenario_id") is not None:
        scenario_service.get_scenario(db, updates["scenario_id"])
    if "scenario_id" in updates and updates["scenario_id"] is None:
        raise ValidationError("Scenario ID is required")

    for key, value in updates.items():
        if key not in _UPDATABLE_FIELDS:
            continue
        if key == "severity" and isinstance(value, Severity):
            value = value.value
        setattr(incident, key, value)
    _validate(incident.latitude, incident.longitude, incident.impact_radius)

    db.commit()
    db.refresh(incident)

    if was_ongoing and not incident.is_ongoing:
        notify_incident(db, incident, IncidentEvent.CLOSED)
    elif incident.is_ongoing:
        notify_incident(db, incident, IncidentEvent.UPDATED)
    else:
        logger.info("Incident %s edited after closure; no alert sent", incident.id)
    return incident


def delete_incident(db: Session, incident_id: UUID) -> None:
    incident = get_incident(db, incident_id)
    db.delete(incident)
    db.commit()
    logger.info("Incident %s deleted", incident_id)
