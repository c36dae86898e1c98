"""Analytics over glucose readings and journal events.

Submodules
----------
summaries      Per-variant tooltip and history summaries.
outcome        Post-meal outcome matching (nearest reading to +2h).
time_in_range  Time-in-range statistics.
chart          Chart assembly (readings + event overlays).
windows        Duration selectors and default query windows.
"""

from glyloop.analytics.chart import ChartAssembler
from glyloop.analytics.outcome import OutcomeMatcher, find_nearest_reading
from glyloop.analytics.time_in_range import TimeInRangeService, calculate_time_in_range

__all__ = [
    "ChartAssembler",
    "OutcomeMatcher",
    "TimeInRangeService",
    "calculate_time_in_range",
    "find_nearest_reading",
]
