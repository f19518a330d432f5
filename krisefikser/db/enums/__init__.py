"""Enum definitions for application constants."""

from krisefikser.db.enums.auth import Role
from krisefikser.db.enums.households import RequestStatus, RequestType
from krisefikser.db.enums.incidents import IncidentEvent, Severity
from krisefikser.db.enums.map_icons import MapIconType
from krisefikser.db.enums.notifications import NotificationType
from krisefikser.db.enums.permissions import (
    ROLES_CAN_ASSIGN_HOUSEHOLDS,
    ROLES_CAN_MANAGE_INCIDENTS,
    ROLES_CAN_MANAGE_MAP_ICONS,
    ROLES_CAN_MANAGE_SCENARIOS,
)
from krisefikser.db.enums.storage import ItemType

__all__ = [
    "IncidentEvent",
    "ItemType",
    "MapIconType",
    "NotificationType",
    "RequestStatus",
    "RequestType",
    "Role",
    "ROLES_CAN_ASSIGN_HOUSEHOLDS",
    "ROLES_CAN_MANAGE_INCIDENTS",
    "ROLES_CAN_MANAGE_MAP_ICONS",
    "ROLES_CAN_MANAGE_SCENARIOS",
    "Severity",
]
