"""Storage enums."""

from enum import Enum


class ItemType(str, Enum):
    LIQUIDS = "liquids"
    FOOD = "food"
    FIRST_AID = "first_aid"
    TOOL = "tool"
    OTHER = "other"
