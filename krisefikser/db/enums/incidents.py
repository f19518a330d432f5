"""Incident enums."""

from enum import Enum


class Severity(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class IncidentEvent(str, Enum):
    """Lifecycle event that triggers a geo fan-out."""

    CREATED = "created"
    UPDATED = "updated"
    CLOSED = "closed"
