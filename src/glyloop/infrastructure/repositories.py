"""In-memory collaborators: event repository, glucose source, preferences.

Good for: unit tests, local development, offline analysis of exports.
Production wiring swaps these for ORM repositories and the CGM vendor
client behind the same protocols.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from glyloop.core.enums import EventType
from glyloop.core.models import GlucoseReading
from glyloop.domain.aggregates import AnyEvent
from glyloop.domain.value_objects import TirRange, UserId

logger = logging.getLogger(__name__)


class InMemoryEventRepository:
    """Dict-backed event repository keyed by ``event_id``.

    Events are never updated: adding an id that already exists is ignored.
    """

    def __init__(self, events: Iterable[AnyEvent] = ()) -> None:
        self._events: dict[str, AnyEvent] = {}
        for event in events:
            self._events.setdefault(event.event_id, event)

    async def add(self, event: AnyEvent) -> None:
        if event.event_id in self._events:
            logger.debug("Event %s already stored, ignoring", event.event_id)
            return
        self._events[event.event_id] = event

    async def get_by_id(self, event_id: str) -> AnyEvent | None:
        return self._events.get(event_id)

    def _select(
        self,
        user_id: UserId,
        event_type: EventType | None,
        start: datetime | None,
        end: datetime | None,
    ) -> list[AnyEvent]:
        out = [
            e for e in self._events.values()
            if e.user_id == user_id
            and (event_type is None or e.event_type == event_type)
            and (start is None or e.event_time >= start)
            and (end is None or e.event_time <= end)
        ]
        out.sort(key=lambda e: e.event_time, reverse=True)
        return out

    async def get_by_user_id(
        self,
        user_id: UserId,
        event_type: EventType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AnyEvent]:
        return self._select(user_id, event_type, start, end)

    async def count_by_user_id(
        self,
        user_id: UserId,
        start: datetime,
        end: datetime,
        event_type: EventType | None = None,
    ) -> int:
        return len(self._select(user_id, event_type, start, end))

    async def get_paged(
        self,
        user_id: UserId,
        start: datetime,
        end: datetime,
        page: int,
        page_size: int,
        event_type: EventType | None = None,
    ) -> list[AnyEvent]:
        offset = (page - 1) * page_size
        return self._select(user_id, event_type, start, end)[offset:offset + page_size]

    def __len__(self) -> int:
        return len(self._events)


class InMemoryGlucoseSource:
    """Serves pre-loaded readings per user, filtered by inclusive bounds."""

    def __init__(self) -> None:
        self._readings: dict[UserId, list[GlucoseReading]] = {}

    def load(self, user_id: UserId, readings: Iterable[GlucoseReading]) -> None:
        merged = self._readings.setdefault(user_id, [])
        merged.extend(readings)
        merged.sort(key=lambda r: r.system_time)

    async def get_readings_in_range(
        self,
        user_id: UserId,
        start: datetime,
        end: datetime,
    ) -> list[GlucoseReading]:
        readings = [
            r for r in self._readings.get(user_id, [])
            if start <= r.system_time <= end
        ]
        logger.debug(
            "Serving %d readings for %s between %s and %s",
            len(readings), user_id, start, end,
        )
        return readings


class StaticTirPreferences:
    """Fixed per-user target ranges with a shared default."""

    def __init__(
        self,
        default: TirRange | None = None,
        per_user: dict[UserId, TirRange] | None = None,
    ) -> None:
        self._default = default or TirRange.standard()
        self._per_user = dict(per_user or {})

    def set_range(self, user_id: UserId, tir_range: TirRange) -> None:
        self._per_user[user_id] = tir_range

    async def get_tir_range(self, user_id: UserId) -> TirRange:
        return self._per_user.get(user_id, self._default)
