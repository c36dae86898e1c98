"""Injected time source.

Event creation stamps ``created_at`` from a clock, the future-time check
compares against it, and the chart and TIR windows end at it.  Nothing
in the domain or analytics reads the system time itself.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

from .ids import as_utc, utc_now

_EPOCH_DEFAULT = datetime(2024, 1, 1, tzinfo=timezone.utc)


class IClock(Protocol):
    def now(self) -> datetime:
        """Timezone-aware UTC."""
        ...


class WallClock:
    def now(self) -> datetime:
        return utc_now()


class FixedClock:
    """Stands still until moved; moves forward only.

    Used by tests and when re-deriving results for a past instant.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._current = as_utc(start) if start is not None else _EPOCH_DEFAULT

    def now(self) -> datetime:
        return self._current

    def set_time(self, t: datetime) -> None:
        t = as_utc(t)
        if t < self._current:
            raise ValueError(f"FixedClock cannot go backwards ({t.isoformat()} is before {self._current.isoformat()})")
        self._current = t

    def advance(self, **delta: float) -> None:
        """``clock.advance(minutes=5)``"""
        self.set_time(self._current + timedelta(**delta))
