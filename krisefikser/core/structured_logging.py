"""Structured logging helpers (PII-safe: ids only, never names or emails)."""

import logging
from typing import Any
from uuid import UUID

from krisefikser.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the API process and the CLI."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    household_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict for ``logger.info(..., extra=...)``."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if household_id:
        context["household_id"] = household_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
