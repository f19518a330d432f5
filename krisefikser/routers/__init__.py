"""API routers."""

from krisefikser.routers.households import router as households_router
from krisefikser.routers.incidents import router as incidents_router
from krisefikser.routers.internal import router as internal_router
from krisefikser.routers.map_icons import router as map_icons_router
from krisefikser.routers.membership_requests import router as membership_requests_router
from krisefikser.routers.notifications import router as notifications_router
from krisefikser.routers.scenarios import router as scenarios_router
from krisefikser.routers.users import router as users_router
from krisefikser.routers.websocket import router as websocket_router

__all__ = [
    "households_router",
    "incidents_router",
    "internal_router",
    "map_icons_router",
    "membership_requests_router",
    "notifications_router",
    "scenarios_router",
    "users_router",
    "websocket_router",
]
