"""Duration selectors and default query windows."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from glyloop.core.errors import InvalidPagination, InvalidRange


def resolve_range_hours(value: int | str, allowed: Iterable[int]) -> int:
    """Validate a duration selector against the canonical allow-list.

    Accepts an ``int`` or a decimal string (``"3"``).  Raises
    :class:`InvalidRange` for anything else, including bools and
    non-members such as ``"7"``.
    """
    allowed_set = tuple(sorted(allowed))
    hours: int | None = None
    if isinstance(value, bool):
        hours = None
    elif isinstance(value, int):
        hours = value
    elif isinstance(value, str) and value.strip().isdigit():
        hours = int(value.strip())
    if hours is None or hours not in allowed_set:
        raise InvalidRange(value, allowed_set)
    return hours


def trailing_window(now: datetime, hours: int) -> tuple[datetime, datetime]:
    """``(now - hours, now)``."""
    return now - timedelta(hours=hours), now


def history_window(
    now: datetime,
    from_date: datetime | None,
    to_date: datetime | None,
    default_days: int,
) -> tuple[datetime, datetime]:
    """Resolve history bounds: ``to`` defaults to now, ``from`` to ``to - days``.

    Only an explicit pair is checked for order.  A lone ``from_date`` after
    now gives an empty window, not an error.
    """
    if from_date is not None and to_date is not None and from_date > to_date:
        raise InvalidPagination("From date must be before or equal to To date.")
    end = to_date if to_date is not None else now
    start = from_date if from_date is not None else end - timedelta(days=default_days)
    return start, end
