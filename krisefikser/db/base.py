from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timestamp default for every model. Instants are stored in UTC."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Base class for Krisefikser models.

    Every ``Mapped[datetime]`` column is timezone-aware; expiry and incident
    times are compared against aware ``now`` values in the services.
    """
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
