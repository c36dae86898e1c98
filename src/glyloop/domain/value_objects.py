"""Self-validating value objects for the event journal.

Design invariants
-----------------
1.  Every value object is **immutable** (``frozen=True``).
2.  Equality is **structural**: same underlying value, equal objects.
3.  An invalid instance cannot exist; ``__post_init__`` runs the same
    checks as the ``create()`` factory and raises a typed
    :class:`~glyloop.core.errors.InvalidInput` subclass.

``create()`` is the preferred entry point: it also coerces raw input
(strings, floats) into the canonical representation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from glyloop.core.errors import (
    InvalidCarbohydrate,
    InvalidExerciseDuration,
    InvalidIdentifier,
    InvalidInsulinDose,
    InvalidNoteText,
    InvalidTirRange,
)
from glyloop.core.ids import new_id

CARBS_MAX_GRAMS = 300
INSULIN_MAX_UNITS = Decimal("100")
EXERCISE_MIN_MINUTES = 1
EXERCISE_MAX_MINUTES = 300
NOTE_MAX_CHARS = 500
TIR_MIN = 0
TIR_MAX = 1000


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _to_decimal(value: Any) -> Decimal | None:
    """Exact decimal for *value*; floats go through ``str`` to avoid binary noise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


# ---------------------------------------------------------------------------
# Event payload scalars
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Carbohydrate:
    """Carbohydrate content in whole grams (0–300)."""

    grams: int

    def __post_init__(self) -> None:
        if not _is_int(self.grams) or not 0 <= self.grams <= CARBS_MAX_GRAMS:
            raise InvalidCarbohydrate()

    @classmethod
    def create(cls, grams: int) -> Carbohydrate:
        return cls(grams)

    def __str__(self) -> str:
        return f"{self.grams}g"


@dataclass(frozen=True)
class InsulinDose:
    """Insulin dose in units (0–100, 0.5 unit increments).

    The increment check is ``(units * 2) % 1 == 0`` on :class:`Decimal`,
    so ``10.25`` fails and ``10.5`` passes without float rounding.
    """

    units: Decimal

    def __post_init__(self) -> None:
        units = self.units
        if not isinstance(units, Decimal) or not units.is_finite():
            raise InvalidInsulinDose()
        if units < 0 or units > INSULIN_MAX_UNITS:
            raise InvalidInsulinDose()
        if (units * 2) % 1 != 0:
            raise InvalidInsulinDose()

    @classmethod
    def create(cls, units: Decimal | float | int | str) -> InsulinDose:
        value = _to_decimal(units)
        if value is None:
            raise InvalidInsulinDose()
        return cls(value)

    def __str__(self) -> str:
        return f"{self.units}U"


@dataclass(frozen=True)
class ExerciseDuration:
    """Exercise duration in whole minutes (1–300)."""

    minutes: int

    def __post_init__(self) -> None:
        if not _is_int(self.minutes) or not (
            EXERCISE_MIN_MINUTES <= self.minutes <= EXERCISE_MAX_MINUTES
        ):
            raise InvalidExerciseDuration()

    @classmethod
    def create(cls, minutes: int) -> ExerciseDuration:
        return cls(minutes)

    def __str__(self) -> str:
        return f"{self.minutes}min"


@dataclass(frozen=True)
class NoteText:
    """Free text, trimmed, 1–500 characters after trimming."""

    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise InvalidNoteText()
        trimmed = self.text.strip()
        if not 1 <= len(trimmed) <= NOTE_MAX_CHARS:
            raise InvalidNoteText()
        if trimmed != self.text:
            object.__setattr__(self, "text", trimmed)

    @classmethod
    def create(cls, text: str | None) -> NoteText:
        if text is None:
            raise InvalidNoteText()
        return cls(text)

    @classmethod
    def create_optional(cls, text: str | None) -> NoteText | None:
        """Like :meth:`create`, but returns ``None`` instead of raising.

        Used for annotations that are not mandatory (the ``note`` slot on
        food, insulin and exercise events).
        """
        if text is None or not text.strip():
            return None
        try:
            return cls(text)
        except InvalidNoteText:
            return None

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class TirRange:
    """Time-in-range target band in mg/dL (inclusive on both ends)."""

    lower: int
    upper: int

    def __post_init__(self) -> None:
        for bound in (self.lower, self.upper):
            if not _is_int(bound) or not TIR_MIN <= bound <= TIR_MAX:
                raise InvalidTirRange()
        if self.lower >= self.upper:
            raise InvalidTirRange()

    @classmethod
    def create(cls, lower: int, upper: int) -> TirRange:
        return cls(lower, upper)

    @classmethod
    def standard(cls) -> TirRange:
        """Clinical consensus target of 70–180 mg/dL."""
        return cls(70, 180)

    def is_in_range(self, value_mg_dl: int) -> bool:
        return self.lower <= value_mg_dl <= self.upper

    def __str__(self) -> str:
        return f"{self.lower}-{self.upper} mg/dL"


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserId:
    """Opaque reference to a user owned by the identity collaborator."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidIdentifier("User ID cannot be empty.")

    @classmethod
    def create(cls, value: Any) -> UserId:
        if value is None:
            raise InvalidIdentifier("User ID cannot be empty.")
        return cls(str(value))

    @classmethod
    def new(cls) -> UserId:
        return cls(new_id())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MealTagId:
    """Reference to a meal tag (breakfast, lunch, …) in reference data."""

    value: int

    def __post_init__(self) -> None:
        if not _is_int(self.value) or self.value <= 0:
            raise InvalidIdentifier("Meal tag ID must be positive.")

    @classmethod
    def create(cls, value: int) -> MealTagId:
        return cls(value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ExerciseTypeId:
    """Reference to an exercise type in reference data."""

    value: int

    def __post_init__(self) -> None:
        if not _is_int(self.value) or self.value <= 0:
            raise InvalidIdentifier("Exercise type ID must be positive.")

    @classmethod
    def create(cls, value: int) -> ExerciseTypeId:
        return cls(value)

    def __str__(self) -> str:
        return str(self.value)
