"""Tests for the Event aggregate factories and audit flattening."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from glyloop.core.enums import (
    AbsorptionHint,
    EventType,
    InsulinType,
    IntensityType,
    SourceType,
)
from glyloop.core.errors import EventTimeInFuture, InvalidInput, InvalidInsulinDetail
from glyloop.domain.aggregates import (
    Event,
    ExerciseEvent,
    FoodEvent,
    InsulinEvent,
    NoteEvent,
    audit_record_for,
    create_exercise_event,
    create_food_event,
    create_insulin_event,
    create_note_event,
)
from glyloop.domain.events import (
    JOURNAL_SOURCE,
    ExerciseEventCreated,
    FoodEventCreated,
    InsulinEventCreated,
    NoteEventCreated,
)
from glyloop.domain.value_objects import (
    Carbohydrate,
    ExerciseDuration,
    ExerciseTypeId,
    InsulinDose,
    MealTagId,
    NoteText,
)


def _food(user_id, clock, **kw):
    defaults = dict(
        user_id=user_id,
        event_time=clock.now() - timedelta(hours=1),
        carbohydrates=Carbohydrate(45),
        meal_tag=MealTagId(1),
        absorption_hint=AbsorptionHint.NORMAL,
        clock=clock,
    )
    defaults.update(kw)
    return create_food_event(**defaults)


class TestFoodEvent:
    def test_creates_event_and_record(self, user_id, fixed_clock):
        event, record = _food(user_id, fixed_clock, note=NoteText("pasta"))
        assert isinstance(event, FoodEvent)
        assert event.event_type is EventType.FOOD
        assert event.created_at == fixed_clock.now()
        assert event.source is SourceType.MANUAL
        assert isinstance(record, FoodEventCreated)
        assert record.aggregate_id == event.event_id
        assert record.user_id == "user-1"
        assert record.carbohydrates_g == 45
        assert record.meal_tag_id == 1
        assert record.absorption_hint == "normal"
        assert record.note == "pasta"
        assert record.source == JOURNAL_SOURCE
        assert record.timestamp == event.created_at

    def test_event_time_equal_to_now_allowed(self, user_id, fixed_clock):
        event, _ = _food(user_id, fixed_clock, event_time=fixed_clock.now())
        assert event.event_time == fixed_clock.now()

    def test_future_event_time_rejected(self, user_id, fixed_clock):
        with pytest.raises(EventTimeInFuture) as exc_info:
            _food(user_id, fixed_clock, event_time=fixed_clock.now() + timedelta(seconds=1))
        assert exc_info.value.code == "Event.EventInFuture"

    def test_naive_event_time_rejected(self, user_id, fixed_clock):
        with pytest.raises(InvalidInput):
            _food(user_id, fixed_clock, event_time=datetime(2024, 1, 1))

    def test_class_create_delegates(self, user_id, fixed_clock):
        event, record = FoodEvent.create(
            user_id=user_id,
            event_time=fixed_clock.now(),
            carbohydrates=Carbohydrate(10),
            meal_tag=MealTagId(2),
            absorption_hint=AbsorptionHint.RAPID,
            clock=fixed_clock,
        )
        assert event.absorption_hint is AbsorptionHint.RAPID
        assert record.absorption_hint == "rapid"

    def test_trace_ids_passed_through(self, user_id, fixed_clock):
        _, record = _food(user_id, fixed_clock, correlation_id="req-1", causation_id="cmd-1")
        assert record.correlation_id == "req-1"
        assert record.causation_id == "cmd-1"

    def test_trace_ids_default_fresh(self, user_id, fixed_clock):
        _, r1 = _food(user_id, fixed_clock)
        _, r2 = _food(user_id, fixed_clock)
        assert r1.correlation_id and r2.correlation_id
        assert r1.correlation_id != r2.correlation_id


class TestInsulinEvent:
    def test_details_trimmed_and_blank_dropped(self, user_id, fixed_clock):
        event, record = create_insulin_event(
            user_id=user_id,
            event_time=fixed_clock.now(),
            insulin_type=InsulinType.FAST,
            dose=InsulinDose.create("4.5"),
            preparation="  NovoRapid ",
            delivery="   ",
            timing="Before meal",
            clock=fixed_clock,
        )
        assert isinstance(event, InsulinEvent)
        assert event.preparation == "NovoRapid"
        assert event.delivery is None
        assert isinstance(record, InsulinEventCreated)
        assert record.dose_units == Decimal("4.5")
        assert record.insulin_type == "fast"
        assert record.timing == "Before meal"

    def test_detail_too_long(self, user_id, fixed_clock):
        with pytest.raises(InvalidInsulinDetail):
            create_insulin_event(
                user_id=user_id,
                event_time=fixed_clock.now(),
                insulin_type=InsulinType.LONG,
                dose=InsulinDose.create(10),
                preparation="x" * 201,
                clock=fixed_clock,
            )


class TestExerciseEvent:
    def test_create(self, user_id, fixed_clock):
        event, record = create_exercise_event(
            user_id=user_id,
            event_time=fixed_clock.now(),
            exercise_type=ExerciseTypeId(3),
            duration=ExerciseDuration(30),
            intensity=IntensityType.VIGOROUS,
            clock=fixed_clock,
        )
        assert isinstance(event, ExerciseEvent)
        assert isinstance(record, ExerciseEventCreated)
        assert record.duration_minutes == 30
        assert record.exercise_type_id == 3
        assert record.intensity == "vigorous"


class TestNoteEvent:
    def test_create(self, user_id, fixed_clock):
        event, record = create_note_event(
            user_id=user_id,
            event_time=fixed_clock.now(),
            text=NoteText.create("  hello  "),
            clock=fixed_clock,
        )
        assert isinstance(event, NoteEvent)
        assert event.text.text == "hello"
        assert event.note is None
        assert isinstance(record, NoteEventCreated)
        assert record.text == "hello"

    def test_note_slot_must_stay_empty(self, user_id, fixed_clock):
        with pytest.raises(InvalidInput):
            NoteEvent(
                event_id="e1",
                user_id=user_id,
                event_time=fixed_clock.now(),
                created_at=fixed_clock.now(),
                text=NoteText("a"),
                note=NoteText("b"),
            )


class TestIdentity:
    def test_equality_by_id(self, user_id, fixed_clock):
        e1, _ = _food(user_id, fixed_clock)
        e2, _ = _food(user_id, fixed_clock)
        assert e1 != e2
        assert e1 == e1
        same_id = FoodEvent(
            event_id=e1.event_id,
            user_id=user_id,
            event_time=fixed_clock.now(),
            created_at=fixed_clock.now(),
            carbohydrates=Carbohydrate(1),
            meal_tag=MealTagId(9),
        )
        assert same_id == e1
        assert hash(same_id) == hash(e1)

    def test_ownership(self, user_id, other_user, fixed_clock):
        event, _ = _food(user_id, fixed_clock)
        assert event.is_owned_by(user_id)
        assert not event.is_owned_by(other_user)

    def test_audit_record_regenerated_matches(self, user_id, fixed_clock):
        event, record = _food(user_id, fixed_clock, correlation_id="c", causation_id="k")
        again = audit_record_for(event, correlation_id="c", causation_id="k")
        assert again.aggregate_id == record.aggregate_id
        assert again.carbohydrates_g == record.carbohydrates_g

    def test_variants_cover_every_event_type(self):
        variants = {FoodEvent, InsulinEvent, ExerciseEvent, NoteEvent}
        assert {cls.event_type for cls in variants} == set(EventType)

    def test_base_event_cannot_be_built(self, user_id, fixed_clock):
        with pytest.raises(TypeError, match="variant"):
            Event(
                event_id="e",
                user_id=user_id,
                event_time=fixed_clock.now(),
                created_at=fixed_clock.now(),
            )
