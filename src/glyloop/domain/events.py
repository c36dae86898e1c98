"""Audit records raised when a journal event is created.

Design invariants
-----------------
1.  Every record is **immutable** (``frozen=True``).
2.  Every record type has exactly **one writer**; see ``WRITE_OWNERSHIP``.
3.  ``event_id`` is a UUID4 generated at creation time; it serves as the
    idempotency / dedup key in the audit log.
4.  ``correlation_id`` links all records that originate from the *same
    inbound request*.
5.  ``causation_id`` points to whatever *directly caused* this record
    (the command id supplied by the caller).
6.  Payloads are **flattened scalars**; no value objects, no nested
    references, so a record serialises without touching the aggregate.

Records are produced by the factories in :mod:`glyloop.domain.aggregates`,
never by mutating an aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from glyloop.core.ids import new_id as _uuid
from glyloop.core.ids import utc_now as _now

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every audit record.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity of the record (UUID4).  Idempotency key.
    timestamp       When the transition occurred (clock time, UTC).
    correlation_id  Groups records from the same request.
    causation_id    Identifier of whatever directly caused this record.
    source          Writer module that produced this record.
    """

    event_id: str = field(default_factory=_uuid)
    timestamp: datetime = field(default_factory=_now)
    correlation_id: str = ""
    causation_id: str = ""
    source: str = ""


# =========================================================================
# Journal events  (writer: journal)
# =========================================================================

@dataclass(frozen=True)
class FoodEventCreated(DomainEvent):
    """A food event was logged."""

    aggregate_id: str = ""
    user_id: str = ""
    event_time: datetime | None = None
    carbohydrates_g: int = 0
    meal_tag_id: int = 0
    absorption_hint: str = ""
    note: str | None = None


@dataclass(frozen=True)
class InsulinEventCreated(DomainEvent):
    """An insulin administration was logged."""

    aggregate_id: str = ""
    user_id: str = ""
    event_time: datetime | None = None
    insulin_type: str = ""       # fast | long
    dose_units: Decimal = Decimal("0")
    preparation: str | None = None
    delivery: str | None = None
    timing: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class ExerciseEventCreated(DomainEvent):
    """An exercise session was logged."""

    aggregate_id: str = ""
    user_id: str = ""
    event_time: datetime | None = None
    exercise_type_id: int = 0
    duration_minutes: int = 0
    intensity: str = ""
    note: str | None = None


@dataclass(frozen=True)
class NoteEventCreated(DomainEvent):
    """A standalone note was logged."""

    aggregate_id: str = ""
    user_id: str = ""
    event_time: datetime | None = None
    text: str = ""


# =========================================================================
# Write-ownership registry
# =========================================================================

JOURNAL_SOURCE = "journal"

#: Maps each audit record type to the *only* ``source`` value that is
#: allowed to produce it.
WRITE_OWNERSHIP: dict[type[DomainEvent], str] = {
    FoodEventCreated: JOURNAL_SOURCE,
    InsulinEventCreated: JOURNAL_SOURCE,
    ExerciseEventCreated: JOURNAL_SOURCE,
    NoteEventCreated: JOURNAL_SOURCE,
}


#: All audit record types in a deterministic order.
ALL_DOMAIN_EVENTS: tuple[type[DomainEvent], ...] = tuple(WRITE_OWNERSHIP.keys())
