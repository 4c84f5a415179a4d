import math
from datetime import datetime, timezone

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def naive_utc(value: datetime | None) -> datetime | None:
    """Stored datetimes are naive UTC; aware input is converted first."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
