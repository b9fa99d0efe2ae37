"""
Timestamp helpers.

Everything is stored and compared in UTC. SQLite drops tzinfo on the way
back, so naive values read from the store are treated as UTC.
"""

import uuid
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime for either a naive (UTC) or aware value."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())
