"""Identifier and timestamp helpers shared by the domain and the analytics.

Event ids, audit record ids and correlation ids are UUID4 strings.
User ids are opaque strings issued outside the core.

Every ``datetime`` the core stores or compares carries a UTC offset;
naive values are rejected at the boundary with :func:`is_aware`.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Wall-clock UTC.  Services take an ``IClock`` instead of calling this."""
    return datetime.now(timezone.utc)


def is_aware(value: datetime) -> bool:
    """True if *value* carries a usable UTC offset."""
    return value.tzinfo is not None and value.utcoffset() is not None


def as_utc(value: datetime) -> datetime:
    """Normalise an aware datetime to UTC (e.g. readings exported with +02:00)."""
    if not is_aware(value):
        raise ValueError("expected a timezone-aware datetime")
    return value.astimezone(timezone.utc)
