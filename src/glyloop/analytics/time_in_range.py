"""Time-in-range (TIR) statistics.

``percentage = 100 * in_range / total`` rounded to one decimal place
(banker's rounding), and ``0`` for an empty reading set.  Readings
strictly below ``lower`` count as *below*, strictly above ``upper`` as
*above*; both bounds are inside the range.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_EVEN, Decimal

from glyloop.core.clock import IClock
from glyloop.core.config import ChartConfig, TirConfig
from glyloop.core.interfaces import IGlucoseSource, ITirPreferences
from glyloop.core.models import GlucoseReading
from glyloop.domain.value_objects import TirRange, UserId

from .models import TirResult, TirStats
from .windows import resolve_range_hours, trailing_window

logger = logging.getLogger(__name__)

_ONE_PLACE = Decimal("0.1")


def calculate_time_in_range(
    readings: Iterable[GlucoseReading],
    tir_range: TirRange,
) -> TirStats:
    total = in_range = below = above = 0
    for reading in readings:
        total += 1
        if reading.value_mg_dl < tir_range.lower:
            below += 1
        elif reading.value_mg_dl > tir_range.upper:
            above += 1
        else:
            in_range += 1

    if total == 0:
        percentage = Decimal("0")
    else:
        percentage = (Decimal(in_range) * 100 / Decimal(total)).quantize(
            _ONE_PLACE, rounding=ROUND_HALF_EVEN,
        )
    return TirStats(
        total=total,
        in_range=in_range,
        below=below,
        above=above,
        percentage=percentage,
    )


class TimeInRangeService:
    """TIR over a trailing window chosen from the chart allow-list."""

    def __init__(
        self,
        glucose: IGlucoseSource,
        clock: IClock,
        preferences: ITirPreferences | None = None,
        chart_config: ChartConfig | None = None,
        tir_config: TirConfig | None = None,
    ) -> None:
        self._glucose = glucose
        self._clock = clock
        self._preferences = preferences
        self._chart_config = chart_config or ChartConfig()
        tir_config = tir_config or TirConfig()
        self._default_range = TirRange.create(tir_config.default_lower, tir_config.default_upper)

    async def _target_range(self, user_id: UserId) -> TirRange:
        if self._preferences is None:
            return self._default_range
        return await self._preferences.get_tir_range(user_id)

    async def compute_time_in_range(self, user_id: UserId, range_hours: int | str) -> TirResult:
        """Raises :class:`InvalidRange` before any I/O for a bad selector."""
        hours = resolve_range_hours(range_hours, self._chart_config.allowed_ranges_hours)
        start, end = trailing_window(self._clock.now(), hours)
        tir_range = await self._target_range(user_id)
        readings = await self._glucose.get_readings_in_range(user_id, start, end)
        stats = calculate_time_in_range(readings, tir_range)
        logger.debug(
            "TIR for %s over %dh: %s%% of %d readings in %s",
            user_id, hours, stats.percentage, stats.total, tir_range,
        )
        return TirResult(
            stats=stats,
            lower_bound=tir_range.lower,
            upper_bound=tir_range.upper,
            start_time=start,
            end_time=end,
        )
