"""Tests for chart assembly and the concurrent dual fetch."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from glyloop.analytics.chart import ChartAssembler, gather_both
from glyloop.core.config import ChartConfig
from glyloop.core.enums import AbsorptionHint, EventType
from glyloop.core.errors import GlucoseSourceError, InvalidRange
from glyloop.core.models import GlucoseReading
from glyloop.domain.aggregates import create_food_event, create_note_event
from glyloop.domain.value_objects import Carbohydrate, MealTagId, NoteText
from glyloop.infrastructure.repositories import InMemoryEventRepository

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class RecordingGlucoseSource:
    def __init__(self, readings=(), error: BaseException | None = None, delay: float = 0):
        self.calls = 0
        self.cancelled = False
        self._readings = list(readings)
        self._error = error
        self._delay = delay

    async def get_readings_in_range(self, user_id, start, end):
        self.calls += 1
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        return [r for r in self._readings if start <= r.system_time <= end]


class RecordingEventRepository(InMemoryEventRepository):
    def __init__(self, events=(), error: BaseException | None = None, delay: float = 0):
        super().__init__(events)
        self.calls = 0
        self.cancelled = False
        self._error = error
        self._delay = delay

    async def get_by_user_id(self, user_id, event_type=None, start=None, end=None):
        self.calls += 1
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        return await super().get_by_user_id(user_id, event_type, start, end)


def _reading(minutes_ago: int, value: int) -> GlucoseReading:
    return GlucoseReading(system_time=NOW - timedelta(minutes=minutes_ago), value_mg_dl=value)


class TestGatherBoth:
    @pytest.mark.asyncio
    async def test_returns_both(self):
        async def one():
            return 1

        async def two():
            return "two"

        assert await gather_both(one(), two()) == (1, "two")

    @pytest.mark.asyncio
    async def test_first_error_raised_unwrapped(self):
        async def boom():
            raise GlucoseSourceError("down")

        async def slow():
            await asyncio.sleep(10)

        with pytest.raises(GlucoseSourceError, match="down"):
            await gather_both(boom(), slow())

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        async def cancelled():
            raise asyncio.CancelledError()

        async def fine():
            return 1

        with pytest.raises(asyncio.CancelledError):
            await gather_both(cancelled(), fine())

    @pytest.mark.asyncio
    async def test_self_cancelled_fetch_cancels_sibling(self):
        sibling = RecordingGlucoseSource(delay=10)

        async def cancelled():
            raise asyncio.CancelledError()

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(asyncio.CancelledError):
            await gather_both(cancelled(), sibling.get_readings_in_range("u", NOW, NOW))
        assert sibling.cancelled is True
        assert loop.time() - started < 5

    @pytest.mark.asyncio
    async def test_self_cancellation_not_replaced_by_sibling_error(self):
        async def cancelled():
            raise asyncio.CancelledError()

        async def fails_later():
            await asyncio.sleep(0.05)
            raise GlucoseSourceError("down")

        with pytest.raises(asyncio.CancelledError):
            await gather_both(cancelled(), fails_later())


class TestChartAssembler:
    @pytest.mark.asyncio
    async def test_assembles_sorted_series(self, fixed_clock, user_id):
        readings = [_reading(5, 130), _reading(60, 110), _reading(30, 120)]
        food, _ = create_food_event(
            user_id=user_id,
            event_time=NOW - timedelta(minutes=90),
            carbohydrates=Carbohydrate(45),
            meal_tag=MealTagId(1),
            absorption_hint=AbsorptionHint.NORMAL,
            clock=fixed_clock,
        )
        note, _ = create_note_event(
            user_id=user_id,
            event_time=NOW - timedelta(minutes=10),
            text=NoteText("n" * 31),
            clock=fixed_clock,
        )
        assembler = ChartAssembler(
            RecordingGlucoseSource(readings),
            RecordingEventRepository([note, food]),
            fixed_clock,
        )
        chart = await assembler.assemble_chart(user_id, 3)
        assert chart.start_time == NOW - timedelta(hours=3)
        assert chart.end_time == NOW
        assert [p.value_mg_dl for p in chart.glucose] == [110, 120, 130]
        assert [o.event_type for o in chart.events] == [EventType.FOOD, EventType.NOTE]
        assert chart.events[0].tooltip == "45g carbs"
        assert chart.events[1].tooltip == "n" * 27 + "..."

    @pytest.mark.asyncio
    async def test_excludes_out_of_window(self, fixed_clock, user_id):
        assembler = ChartAssembler(
            RecordingGlucoseSource([_reading(61, 100), _reading(59, 101)]),
            RecordingEventRepository(),
            fixed_clock,
        )
        chart = await assembler.assemble_chart(user_id, 1)
        assert [p.value_mg_dl for p in chart.glucose] == [101]
        assert chart.events == []

    @pytest.mark.asyncio
    async def test_invalid_range_touches_nothing(self, fixed_clock, user_id):
        glucose = RecordingGlucoseSource()
        events = RecordingEventRepository()
        assembler = ChartAssembler(glucose, events, fixed_clock)
        with pytest.raises(InvalidRange) as exc_info:
            await assembler.assemble_chart(user_id, "7")
        assert "1, 3, 5, 8, 12, 24" in exc_info.value.message
        assert glucose.calls == 0
        assert events.calls == 0

    @pytest.mark.asyncio
    async def test_glucose_failure_cancels_event_fetch(self, fixed_clock, user_id):
        glucose = RecordingGlucoseSource(error=GlucoseSourceError())
        events = RecordingEventRepository(delay=10)
        assembler = ChartAssembler(glucose, events, fixed_clock)
        with pytest.raises(GlucoseSourceError):
            await assembler.assemble_chart(user_id, 24)
        assert events.cancelled is True

    @pytest.mark.asyncio
    async def test_event_failure_propagates(self, fixed_clock, user_id):
        glucose = RecordingGlucoseSource(delay=10)
        events = RecordingEventRepository(error=RuntimeError("db gone"))
        assembler = ChartAssembler(glucose, events, fixed_clock)
        with pytest.raises(RuntimeError, match="db gone"):
            await assembler.assemble_chart(user_id, 24)
        assert glucose.cancelled is True

    @pytest.mark.asyncio
    async def test_caller_cancellation(self, fixed_clock, user_id):
        assembler = ChartAssembler(
            RecordingGlucoseSource(delay=10), RecordingEventRepository(delay=10), fixed_clock,
        )
        task = asyncio.create_task(assembler.assemble_chart(user_id, 1))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_custom_allow_list(self, fixed_clock, user_id):
        assembler = ChartAssembler(
            RecordingGlucoseSource(), RecordingEventRepository(), fixed_clock,
            ChartConfig(allowed_ranges_hours=[2, 6]),
        )
        chart = await assembler.assemble_chart(user_id, 6)
        assert chart.start_time == NOW - timedelta(hours=6)
        with pytest.raises(InvalidRange):
            await assembler.assemble_chart(user_id, 3)
