"""SQLAlchemy ORM models. Importing this package registers every table on Base.metadata."""

from krisefikser.db.models.users import User
from krisefikser.db.models.households import (
    Household,
    MembershipRequest,
    UnregisteredHouseholdMember,
)
from krisefikser.db.models.incidents import Incident, Scenario
from krisefikser.db.models.notifications import Notification
from krisefikser.db.models.storage import Item, StorageItem
from krisefikser.db.models.map_icons import MapIcon

__all__ = [
    "Household",
    "Incident",
    "Item",
    "MapIcon",
    "MembershipRequest",
    "Notification",
    "Scenario",
    "StorageItem",
    "UnregisteredHouseholdMember",
    "User",
]
