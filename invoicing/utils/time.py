"""Time utilities (UTC now, epoch conversion for API payloads)."""
from __future__ import annotations
from datetime import datetime, date, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch(value: datetime | None) -> int:
    """Seconds since the epoch; ``None`` maps to 0.

    Naive datetimes are read back from sqlite without tzinfo and are UTC.
    """
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def to_date_string(value: date | None) -> str:
    if value is None:
        return ""
    return value.isoformat()


__all__ = ["utc_now", "to_epoch", "to_date_string"]
