"""Map icon enums."""

from enum import Enum


class MapIconType(str, Enum):
    INCIDENT = "incident"
    MEETINGPLACE = "meetingplace"
    HOSPITAL = "hospital"
    HEARTSTARTER = "heartstarter"
    SHELTER = "shelter"
    FOODSTATION = "foodstation"
