"""Post-meal outcome: the glucose reading nearest to two hours after food.

Algorithm
---------
``target = event_time + offset`` (120 min by default).  Readings are
requested for ``[target - tolerance, target + tolerance]`` (±15 min) and
the one minimising ``|system_time - target|`` wins; ties go to the
earlier reading.  Every reading inside the search window is eligible;
there is no narrower acceptance filter.

An empty window is a *successful* approximate result, not an error, so
the UI can show "N/A" rather than a failure banner.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from glyloop.core.config import OutcomeConfig
from glyloop.core.errors import AuthorizationForbidden, EventInvalidType, EventNotFound
from glyloop.core.interfaces import IEventRepository, IGlucoseSource
from glyloop.core.models import GlucoseReading
from glyloop.domain.aggregates import FoodEvent
from glyloop.domain.value_objects import UserId

from .models import OutcomeResult

logger = logging.getLogger(__name__)

MESSAGE_RECORDED = "Outcome recorded"
MESSAGE_UNAVAILABLE = "No reading available"


def find_nearest_reading(
    readings: Iterable[GlucoseReading],
    target: datetime,
) -> GlucoseReading | None:
    """Closest reading to *target*; earliest wins on equal distance."""
    return min(
        readings,
        key=lambda r: (abs(r.system_time - target), r.system_time),
        default=None,
    )


class OutcomeMatcher:
    """Computes the outcome of a food event for its owner."""

    def __init__(
        self,
        events: IEventRepository,
        glucose: IGlucoseSource,
        config: OutcomeConfig | None = None,
    ) -> None:
        self._events = events
        self._glucose = glucose
        self._config = config or OutcomeConfig()

    @property
    def offset(self) -> timedelta:
        return timedelta(minutes=self._config.offset_minutes)

    @property
    def tolerance(self) -> timedelta:
        return timedelta(minutes=self._config.tolerance_minutes)

    async def compute_outcome(self, event_id: str, caller: UserId) -> OutcomeResult:
        """Outcome for *event_id* as seen by *caller*.

        Raises:
            EventNotFound: no such event.
            AuthorizationForbidden: *caller* does not own the event.
            EventInvalidType: the event is not a food event.

        Glucose source errors propagate unchanged.
        """
        event = await self._events.get_by_id(event_id)
        if event is None:
            raise EventNotFound()
        if not event.is_owned_by(caller):
            raise AuthorizationForbidden()
        if not isinstance(event, FoodEvent):
            raise EventInvalidType()

        target = event.event_time + self.offset
        readings = await self._glucose.get_readings_in_range(
            caller, target - self.tolerance, target + self.tolerance,
        )
        nearest = find_nearest_reading(readings, target)

        if nearest is None:
            logger.info("No reading near %s for event %s", target.isoformat(), event_id)
            return OutcomeResult(
                event_id=event.event_id,
                target_time=target,
                reading_time=target,
                glucose_value_mg_dl=None,
                is_approximate=True,
                message=MESSAGE_UNAVAILABLE,
            )

        logger.debug(
            "Outcome for event %s: %d mg/dL at %s (%d candidates)",
            event_id, nearest.value_mg_dl, nearest.system_time.isoformat(), len(readings),
        )
        return OutcomeResult(
            event_id=event.event_id,
            target_time=target,
            reading_time=nearest.system_time,
            glucose_value_mg_dl=nearest.value_mg_dl,
            is_approximate=False,
            message=MESSAGE_RECORDED,
        )
