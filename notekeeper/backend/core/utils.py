"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as a timezone-aware datetime.

    Note timestamps are persisted as ISO-8601 instants, so every datetime
    in the application carries an explicit UTC offset.

    Returns:
        Current UTC time with tzinfo set
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def backup_stamp(moment: datetime | None = None) -> str:
    """Compact UTC timestamp used in backup file names."""
    moment = ensure_utc(moment or utc_now())
    return moment.strftime("%Y%m%dT%H%M%S%fZ")
