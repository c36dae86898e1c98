"""Commands that create journal events.

Each ``add_*`` method:

1.  builds value objects from raw input (raising ``InvalidInput``
    subclasses),
2.  calls the variant factory with the injected clock,
3.  stores the event in the repository, and
4.  appends the single audit record to the audit log.

The correlation id defaults to the active
:func:`~glyloop.observability.logger.correlation_scope`, else a fresh
UUID; the causation id defaults to a fresh UUID.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from glyloop.core.clock import IClock
from glyloop.core.enums import AbsorptionHint, InsulinType, IntensityType, SourceType
from glyloop.core.interfaces import IEventRepository
from glyloop.domain.aggregates import (
    AnyEvent,
    ExerciseEvent,
    FoodEvent,
    InsulinEvent,
    NoteEvent,
    create_exercise_event,
    create_food_event,
    create_insulin_event,
    create_note_event,
)
from glyloop.domain.events import DomainEvent
from glyloop.domain.value_objects import (
    Carbohydrate,
    ExerciseDuration,
    ExerciseTypeId,
    InsulinDose,
    MealTagId,
    NoteText,
    UserId,
)
from glyloop.infrastructure.event_store import IAuditLog
from glyloop.observability.logger import current_correlation_id

logger = logging.getLogger(__name__)


class EventJournal:
    """Write side of the journal."""

    def __init__(
        self,
        events: IEventRepository,
        audit_log: IAuditLog,
        clock: IClock,
    ) -> None:
        self._events = events
        self._audit_log = audit_log
        self._clock = clock

    async def _commit(self, event: AnyEvent, record: DomainEvent) -> None:
        # Never store an event that has no creation record.
        await self._audit_log.append(record)
        await self._events.add(event)
        logger.info(
            "Logged %s event %s (correlation=%s)",
            event.event_type.value, event.event_id, record.correlation_id,
        )

    async def add_food_event(
        self,
        user_id: UserId,
        event_time: datetime,
        carbohydrates_g: int,
        meal_tag_id: int,
        absorption_hint: AbsorptionHint = AbsorptionHint.NORMAL,
        note: str | None = None,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> FoodEvent:
        event, record = create_food_event(
            user_id=user_id,
            event_time=event_time,
            carbohydrates=Carbohydrate.create(carbohydrates_g),
            meal_tag=MealTagId.create(meal_tag_id),
            absorption_hint=AbsorptionHint(absorption_hint),
            note=NoteText.create_optional(note),
            source=source,
            clock=self._clock,
            correlation_id=correlation_id or current_correlation_id() or None,
            causation_id=causation_id,
        )
        await self._commit(event, record)
        return event

    async def add_insulin_event(
        self,
        user_id: UserId,
        event_time: datetime,
        insulin_type: InsulinType,
        units: Decimal | float | str,
        preparation: str | None = None,
        delivery: str | None = None,
        timing: str | None = None,
        note: str | None = None,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> InsulinEvent:
        event, record = create_insulin_event(
            user_id=user_id,
            event_time=event_time,
            insulin_type=InsulinType(insulin_type),
            dose=InsulinDose.create(units),
            preparation=preparation,
            delivery=delivery,
            timing=timing,
            note=NoteText.create_optional(note),
            source=source,
            clock=self._clock,
            correlation_id=correlation_id or current_correlation_id() or None,
            causation_id=causation_id,
        )
        await self._commit(event, record)
        return event

    async def add_exercise_event(
        self,
        user_id: UserId,
        event_time: datetime,
        exercise_type_id: int,
        duration_minutes: int,
        intensity: IntensityType = IntensityType.MODERATE,
        note: str | None = None,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> ExerciseEvent:
        event, record = create_exercise_event(
            user_id=user_id,
            event_time=event_time,
            exercise_type=ExerciseTypeId.create(exercise_type_id),
            duration=ExerciseDuration.create(duration_minutes),
            intensity=IntensityType(intensity),
            note=NoteText.create_optional(note),
            source=source,
            clock=self._clock,
            correlation_id=correlation_id or current_correlation_id() or None,
            causation_id=causation_id,
        )
        await self._commit(event, record)
        return event

    async def add_note_event(
        self,
        user_id: UserId,
        event_time: datetime,
        text: str,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> NoteEvent:
        event, record = create_note_event(
            user_id=user_id,
            event_time=event_time,
            text=NoteText.create(text),
            source=source,
            clock=self._clock,
            correlation_id=correlation_id or current_correlation_id() or None,
            causation_id=causation_id,
        )
        await self._commit(event, record)
        return event
