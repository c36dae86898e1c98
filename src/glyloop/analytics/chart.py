"""Chart assembly: glucose series plus event overlays for one window.

The readings and the events are fetched concurrently inside an
``asyncio.TaskGroup``.  The first failure cancels the sibling fetch and
is re-raised unchanged (not as an ``ExceptionGroup``); a cancelled fetch
surfaces as ``asyncio.CancelledError`` and also cancels its sibling.  No
partial chart is ever built.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime
from typing import TypeVar

from glyloop.core.clock import IClock
from glyloop.core.config import ChartConfig
from glyloop.core.interfaces import IEventRepository, IGlucoseSource
from glyloop.core.models import GlucoseReading
from glyloop.domain.aggregates import AnyEvent
from glyloop.domain.value_objects import UserId

from .models import ChartResult, EventOverlay, GlucosePoint
from .summaries import chart_tooltip
from .windows import resolve_range_hours, trailing_window

logger = logging.getLogger(__name__)

A = TypeVar("A")
B = TypeVar("B")


class _FetchCancelled(Exception):
    """A fetch cancelled itself; reported to the group as a failure."""


async def _cancel_as_failure(aw: Awaitable[A]) -> A:
    try:
        return await aw
    except asyncio.CancelledError:
        task = asyncio.current_task()
        # Cancelled by the group or the caller: let it through.
        if task is not None and task.cancelling():
            raise
        raise _FetchCancelled from None


async def gather_both(first: Awaitable[A], second: Awaitable[B]) -> tuple[A, B]:
    """Await two coroutines concurrently; all-or-nothing.

    Unlike ``asyncio.gather`` the sibling is cancelled as soon as either
    side fails or cancels itself, and the original exception is raised
    rather than an ``ExceptionGroup``.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            t1 = tg.create_task(_cancel_as_failure(first))
            t2 = tg.create_task(_cancel_as_failure(second))
    except BaseExceptionGroup as eg:
        exc = eg.exceptions[0]
        if isinstance(exc, _FetchCancelled):
            raise asyncio.CancelledError() from None
        raise exc from None
    return t1.result(), t2.result()


class ChartAssembler:
    """Builds the dashboard chart for a trailing window."""

    def __init__(
        self,
        glucose: IGlucoseSource,
        events: IEventRepository,
        clock: IClock,
        config: ChartConfig | None = None,
    ) -> None:
        self._glucose = glucose
        self._events = events
        self._clock = clock
        self._config = config or ChartConfig()

    @property
    def allowed_ranges(self) -> tuple[int, ...]:
        return tuple(self._config.allowed_ranges_hours)

    async def assemble_chart(self, user_id: UserId, range_hours: int | str) -> ChartResult:
        """Chart for the last *range_hours* hours.

        Raises :class:`InvalidRange` without touching either collaborator
        when the selector is not in the allow-list.
        """
        hours = resolve_range_hours(range_hours, self.allowed_ranges)
        start, end = trailing_window(self._clock.now(), hours)

        readings, events = await gather_both(
            self._glucose.get_readings_in_range(user_id, start, end),
            self._events.get_by_user_id(user_id, None, start, end),
        )
        logger.debug(
            "Chart %dh for %s: %d readings, %d events",
            hours, user_id, len(readings), len(events),
        )
        return build_chart(start, end, readings, events, self._config.tooltip_note_limit)


def build_chart(
    start: datetime,
    end: datetime,
    readings: list[GlucoseReading],
    events: list[AnyEvent],
    note_limit: int,
) -> ChartResult:
    """Pure combination step: sort both series ascending and attach tooltips."""
    glucose = [
        GlucosePoint(timestamp=r.system_time, value_mg_dl=r.value_mg_dl, trend=r.trend)
        for r in sorted(readings, key=lambda r: r.system_time)
    ]
    overlays = [
        EventOverlay(
            event_id=e.event_id,
            event_type=e.event_type,
            event_time=e.event_time,
            tooltip=chart_tooltip(e, note_limit),
        )
        for e in sorted(events, key=lambda e: e.event_time)
    ]
    return ChartResult(start_time=start, end_time=end, glucose=glucose, events=overlays)
