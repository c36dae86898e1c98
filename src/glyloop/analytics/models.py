"""Result models returned by the analytics and journal queries.

Pydantic models so outer layers can ``model_dump(mode="json")`` them
straight into responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from glyloop.core.enums import EventType

T = TypeVar("T")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

class OutcomeResult(_Frozen):
    """Glucose reading nearest to two hours after a food event.

    ``is_approximate`` is True iff no reading was found; then
    ``reading_time`` is the target time and the value is ``None``.
    """

    event_id: str
    target_time: datetime
    reading_time: datetime
    glucose_value_mg_dl: int | None = None
    is_approximate: bool
    message: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_reading(self) -> bool:
        return not self.is_approximate


# ---------------------------------------------------------------------------
# Time in range
# ---------------------------------------------------------------------------

class TirStats(_Frozen):
    """Counts always satisfy ``in_range + below + above == total``."""

    total: int = 0
    in_range: int = 0
    below: int = 0
    above: int = 0
    percentage: Decimal = Decimal("0")


class TirResult(_Frozen):
    stats: TirStats
    lower_bound: int
    upper_bound: int
    start_time: datetime
    end_time: datetime


# ---------------------------------------------------------------------------
# Chart
# ---------------------------------------------------------------------------

class GlucosePoint(_Frozen):
    timestamp: datetime
    value_mg_dl: int
    trend: str | None = None


class EventOverlay(_Frozen):
    event_id: str
    event_type: EventType
    event_time: datetime
    tooltip: str


class ChartResult(_Frozen):
    start_time: datetime
    end_time: datetime
    glucose: list[GlucosePoint] = Field(default_factory=list)
    events: list[EventOverlay] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class EventSummary(_Frozen):
    event_id: str
    event_type: EventType
    event_time: datetime
    summary: str


class PagedResult(_Frozen, Generic[T]):
    items: list[T] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 20

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        return -(-self.total_count // self.page_size) if self.page_size else 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_previous_page(self) -> bool:
        return self.page > 1
