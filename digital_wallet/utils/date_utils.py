"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the storage convention for all timestamps)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def expires_after(seconds: int, from_time: datetime | None = None) -> datetime:
    """Expiry timestamp `seconds` after from_time (default: now)"""
    return (from_time or utc_now()) + timedelta(seconds=seconds)
