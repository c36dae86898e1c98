"""Tests for the reading model and the result models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from glyloop.analytics.models import EventSummary, OutcomeResult, PagedResult
from glyloop.core.enums import EventType
from glyloop.core.ids import as_utc, is_aware
from glyloop.core.models import GlucoseReading

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestGlucoseReading:
    def test_offset_normalised_to_utc(self):
        local = datetime(2024, 6, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        reading = GlucoseReading(system_time=local, value_mg_dl=110)
        assert reading.system_time == T0
        assert reading.system_time.tzinfo == timezone.utc

    def test_iso_string_accepted(self):
        reading = GlucoseReading(system_time="2024-06-01T12:00:00Z", value_mg_dl=110)
        assert reading.system_time == T0

    def test_naive_rejected(self):
        with pytest.raises(ValidationError):
            GlucoseReading(system_time=datetime(2024, 6, 1), value_mg_dl=110)

    def test_frozen(self):
        reading = GlucoseReading(system_time=T0, value_mg_dl=110)
        with pytest.raises(ValidationError):
            reading.value_mg_dl = 120


class TestIds:
    def test_is_aware(self):
        assert is_aware(T0)
        assert not is_aware(datetime(2024, 1, 1))

    def test_as_utc_rejects_naive(self):
        with pytest.raises(ValueError):
            as_utc(datetime(2024, 1, 1))


class TestPagedResult:
    def _page(self, total, page, size):
        return PagedResult[EventSummary](items=[], total_count=total, page=page, page_size=size)

    @pytest.mark.parametrize(
        "total,page,size,pages,has_next,has_prev",
        [
            (0, 1, 20, 0, False, False),
            (20, 1, 20, 1, False, False),
            (21, 1, 20, 2, True, False),
            (21, 2, 20, 2, False, True),
        ],
    )
    def test_paging_fields(self, total, page, size, pages, has_next, has_prev):
        result = self._page(total, page, size)
        assert result.total_pages == pages
        assert result.has_next_page is has_next
        assert result.has_previous_page is has_prev

    def test_dump_includes_computed_fields(self):
        item = EventSummary(event_id="e", event_type=EventType.FOOD, event_time=T0, summary="5g carbs")
        dumped = PagedResult[EventSummary](items=[item], total_count=1).model_dump(mode="json")
        assert dumped["total_pages"] == 1
        assert dumped["items"][0]["event_type"] == "food"


class TestOutcomeResult:
    def test_has_reading(self):
        result = OutcomeResult(
            event_id="e", target_time=T0, reading_time=T0,
            glucose_value_mg_dl=None, is_approximate=True, message="No reading available",
        )
        assert result.has_reading is False
