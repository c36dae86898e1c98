"""The Event aggregate: a closed union of four immutable variants.

``Event`` is the shared base; ``FoodEvent``, ``InsulinEvent``,
``ExerciseEvent`` and ``NoteEvent`` are the only variants, collected in
the ``AnyEvent`` alias.  Consumers dispatch with ``match`` and finish
with ``assert_never`` so a fifth variant fails type-checking at every
consumption site.

Lifecycle
---------
Created exactly once by a variant factory, never updated.  A factory

1.  rejects naive or future ``event_time`` (``EventTimeInFuture``),
2.  stamps a fresh id and ``created_at`` from the injected clock,
3.  builds exactly one flattened audit record, and
4.  returns ``(event, audit_record)``.

Nothing is buffered on the aggregate for later dispatch; the caller
appends the record to the audit log.

Identity equality: two events are equal iff their ``event_id`` match.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, TypeAlias, assert_never

from glyloop.core.clock import IClock
from glyloop.core.enums import (
    AbsorptionHint,
    EventType,
    InsulinType,
    IntensityType,
    SourceType,
)
from glyloop.core.errors import EventTimeInFuture, InvalidInput, InvalidInsulinDetail
from glyloop.core.ids import is_aware, new_id

from .events import (
    JOURNAL_SOURCE,
    DomainEvent,
    ExerciseEventCreated,
    FoodEventCreated,
    InsulinEventCreated,
    NoteEventCreated,
)
from .value_objects import (
    Carbohydrate,
    ExerciseDuration,
    ExerciseTypeId,
    InsulinDose,
    MealTagId,
    NoteText,
    UserId,
)

INSULIN_DETAIL_MAX_CHARS = 200


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True, eq=False)
class Event:
    """Fields shared by every journal event."""

    event_type: ClassVar[EventType]

    event_id: str
    user_id: UserId
    event_time: datetime
    created_at: datetime
    source: SourceType = SourceType.MANUAL
    note: NoteText | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self.event_id == other.event_id

    def __hash__(self) -> int:
        return hash(self.event_id)

    def __post_init__(self) -> None:
        if type(self) is Event:
            raise TypeError("Event is abstract; build one of its variants")

    def is_owned_by(self, user_id: UserId) -> bool:
        return self.user_id == user_id


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True, eq=False)
class FoodEvent(Event):
    """Meal or snack with its carbohydrate content."""

    event_type: ClassVar[EventType] = EventType.FOOD

    carbohydrates: Carbohydrate
    meal_tag: MealTagId
    absorption_hint: AbsorptionHint = AbsorptionHint.NORMAL

    @classmethod
    def create(
        cls,
        *,
        user_id: UserId,
        event_time: datetime,
        carbohydrates: Carbohydrate,
        meal_tag: MealTagId,
        absorption_hint: AbsorptionHint,
        clock: IClock,
        note: NoteText | None = None,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> tuple[FoodEvent, FoodEventCreated]:
        """Same as :func:`create_food_event`."""
        return create_food_event(
            user_id=user_id, event_time=event_time, carbohydrates=carbohydrates,
            meal_tag=meal_tag, absorption_hint=absorption_hint, clock=clock,
            note=note, source=source,
            correlation_id=correlation_id, causation_id=causation_id,
        )


@dataclass(frozen=True, kw_only=True, eq=False)
class InsulinEvent(Event):
    """Bolus or basal insulin administration."""

    event_type: ClassVar[EventType] = EventType.INSULIN

    insulin_type: InsulinType
    dose: InsulinDose
    preparation: str | None = None  # Brand, pen id
    delivery: str | None = None  # Injection site, pump settings
    timing: str | None = None  # "Before meal", "Bedtime"

    @classmethod
    def create(
        cls,
        *,
        user_id: UserId,
        event_time: datetime,
        insulin_type: InsulinType,
        dose: InsulinDose,
        clock: IClock,
        preparation: str | None = None,
        delivery: str | None = None,
        timing: str | None = None,
        note: NoteText | None = None,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> tuple[InsulinEvent, InsulinEventCreated]:
        return create_insulin_event(
            user_id=user_id, event_time=event_time, insulin_type=insulin_type,
            dose=dose, clock=clock, preparation=preparation, delivery=delivery,
            timing=timing, note=note, source=source,
            correlation_id=correlation_id, causation_id=causation_id,
        )


@dataclass(frozen=True, kw_only=True, eq=False)
class ExerciseEvent(Event):
    """Physical activity session."""

    event_type: ClassVar[EventType] = EventType.EXERCISE

    exercise_type: ExerciseTypeId
    duration: ExerciseDuration
    intensity: IntensityType = IntensityType.MODERATE

    @classmethod
    def create(
        cls,
        *,
        user_id: UserId,
        event_time: datetime,
        exercise_type: ExerciseTypeId,
        duration: ExerciseDuration,
        intensity: IntensityType,
        clock: IClock,
        note: NoteText | None = None,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> tuple[ExerciseEvent, ExerciseEventCreated]:
        return create_exercise_event(
            user_id=user_id, event_time=event_time, exercise_type=exercise_type,
            duration=duration, intensity=intensity, clock=clock,
            note=note, source=source,
            correlation_id=correlation_id, causation_id=causation_id,
        )


@dataclass(frozen=True, kw_only=True, eq=False)
class NoteEvent(Event):
    """Standalone observation.  ``text`` is the payload; ``note`` stays unset."""

    event_type: ClassVar[EventType] = EventType.NOTE

    text: NoteText

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.note is not None:
            raise InvalidInput("Note events carry their text in 'text', not 'note'.")

    @classmethod
    def create(
        cls,
        *,
        user_id: UserId,
        event_time: datetime,
        text: NoteText,
        clock: IClock,
        source: SourceType = SourceType.MANUAL,
        correlation_id: str | None = None,
        causation_id: str | None = None,
    ) -> tuple[NoteEvent, NoteEventCreated]:
        return create_note_event(
            user_id=user_id, event_time=event_time, text=text, clock=clock,
            source=source, correlation_id=correlation_id, causation_id=causation_id,
        )


AnyEvent: TypeAlias = FoodEvent | InsulinEvent | ExerciseEvent | NoteEvent


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def validate_event_time(event_time: datetime, clock: IClock) -> datetime:
    """Reject naive timestamps and timestamps after ``clock.now()``."""
    if not isinstance(event_time, datetime) or not is_aware(event_time):
        raise InvalidInput("Event time must be a timezone-aware datetime.")
    if event_time > clock.now():
        raise EventTimeInFuture()
    return event_time


def _insulin_detail(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > INSULIN_DETAIL_MAX_CHARS:
        raise InvalidInsulinDetail()
    return value


# ---------------------------------------------------------------------------
# Audit flattening
# ---------------------------------------------------------------------------

def audit_record_for(
    event: AnyEvent,
    *,
    correlation_id: str,
    causation_id: str,
) -> DomainEvent:
    """Flatten *event* into its creation audit record."""
    common = dict(
        timestamp=event.created_at,
        correlation_id=correlation_id,
        causation_id=causation_id,
        source=JOURNAL_SOURCE,
        aggregate_id=event.event_id,
        user_id=event.user_id.value,
        event_time=event.event_time,
    )
    note = event.note.text if event.note is not None else None
    match event:
        case FoodEvent():
            return FoodEventCreated(
                **common,
                carbohydrates_g=event.carbohydrates.grams,
                meal_tag_id=event.meal_tag.value,
                absorption_hint=event.absorption_hint.value,
                note=note,
            )
        case InsulinEvent():
            return InsulinEventCreated(
                **common,
                insulin_type=event.insulin_type.value,
                dose_units=event.dose.units,
                preparation=event.preparation,
                delivery=event.delivery,
                timing=event.timing,
                note=note,
            )
        case ExerciseEvent():
            return ExerciseEventCreated(
                **common,
                exercise_type_id=event.exercise_type.value,
                duration_minutes=event.duration.minutes,
                intensity=event.intensity.value,
                note=note,
            )
        case NoteEvent():
            return NoteEventCreated(**common, text=event.text.text)
        case _:
            assert_never(event)


def _base_fields(user_id: UserId, event_time: datetime, clock: IClock) -> dict:
    validate_event_time(event_time, clock)
    return dict(
        event_id=new_id(),
        user_id=user_id,
        event_time=event_time,
        created_at=clock.now(),
    )


def _trace_ids(correlation_id: str | None, causation_id: str | None) -> dict:
    return dict(
        correlation_id=correlation_id or new_id(),
        causation_id=causation_id or new_id(),
    )


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_food_event(
    *,
    user_id: UserId,
    event_time: datetime,
    carbohydrates: Carbohydrate,
    meal_tag: MealTagId,
    absorption_hint: AbsorptionHint,
    clock: IClock,
    note: NoteText | None = None,
    source: SourceType = SourceType.MANUAL,
    correlation_id: str | None = None,
    causation_id: str | None = None,
) -> tuple[FoodEvent, FoodEventCreated]:
    event = FoodEvent(
        **_base_fields(user_id, event_time, clock),
        source=source,
        note=note,
        carbohydrates=carbohydrates,
        meal_tag=meal_tag,
        absorption_hint=absorption_hint,
    )
    record = audit_record_for(event, **_trace_ids(correlation_id, causation_id))
    return event, record  # type: ignore[return-value]


def create_insulin_event(
    *,
    user_id: UserId,
    event_time: datetime,
    insulin_type: InsulinType,
    dose: InsulinDose,
    clock: IClock,
    preparation: str | None = None,
    delivery: str | None = None,
    timing: str | None = None,
    note: NoteText | None = None,
    source: SourceType = SourceType.MANUAL,
    correlation_id: str | None = None,
    causation_id: str | None = None,
) -> tuple[InsulinEvent, InsulinEventCreated]:
    event = InsulinEvent(
        **_base_fields(user_id, event_time, clock),
        source=source,
        note=note,
        insulin_type=insulin_type,
        dose=dose,
        preparation=_insulin_detail(preparation),
        delivery=_insulin_detail(delivery),
        timing=_insulin_detail(timing),
    )
    record = audit_record_for(event, **_trace_ids(correlation_id, causation_id))
    return event, record  # type: ignore[return-value]


def create_exercise_event(
    *,
    user_id: UserId,
    event_time: datetime,
    exercise_type: ExerciseTypeId,
    duration: ExerciseDuration,
    intensity: IntensityType,
    clock: IClock,
    note: NoteText | None = None,
    source: SourceType = SourceType.MANUAL,
    correlation_id: str | None = None,
    causation_id: str | None = None,
) -> tuple[ExerciseEvent, ExerciseEventCreated]:
    event = ExerciseEvent(
        **_base_fields(user_id, event_time, clock),
        source=source,
        note=note,
        exercise_type=exercise_type,
        duration=duration,
        intensity=intensity,
    )
    record = audit_record_for(event, **_trace_ids(correlation_id, causation_id))
    return event, record  # type: ignore[return-value]


def create_note_event(
    *,
    user_id: UserId,
    event_time: datetime,
    text: NoteText,
    clock: IClock,
    source: SourceType = SourceType.MANUAL,
    correlation_id: str | None = None,
    causation_id: str | None = None,
) -> tuple[NoteEvent, NoteEventCreated]:
    event = NoteEvent(
        **_base_fields(user_id, event_time, clock),
        source=source,
        text=text,
    )
    record = audit_record_for(event, **_trace_ids(correlation_id, causation_id))
    return event, record  # type: ignore[return-value]
