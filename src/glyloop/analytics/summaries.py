"""Short per-event texts for chart tooltips and the history list.

The two call sites use deliberately separate rules:

=========  ====================  =======================
variant    chart tooltip         history summary
=========  ====================  =======================
Food       ``45g carbs``         ``45g carbs``
Insulin    ``4.5U Fast``         ``4.5U Fast``
Exercise   ``30min exercise``    ``30min``
Note       >30 chars: 27 + ...   >50 chars: 47 + ...
=========  ====================  =======================
"""

from __future__ import annotations

from typing import assert_never

from glyloop.domain.aggregates import (
    AnyEvent,
    ExerciseEvent,
    FoodEvent,
    InsulinEvent,
    NoteEvent,
)

ELLIPSIS = "..."
TOOLTIP_NOTE_LIMIT = 30
HISTORY_NOTE_LIMIT = 50


def truncate(text: str, limit: int) -> str:
    """Return *text* unchanged up to *limit* chars, else cut to fit with ``...``."""
    if len(text) > limit:
        return text[: limit - len(ELLIPSIS)] + ELLIPSIS
    return text


def chart_tooltip(event: AnyEvent, note_limit: int = TOOLTIP_NOTE_LIMIT) -> str:
    match event:
        case FoodEvent():
            return f"{event.carbohydrates.grams}g carbs"
        case InsulinEvent():
            return f"{event.dose.units}U {event.insulin_type.label}"
        case ExerciseEvent():
            return f"{event.duration.minutes}min exercise"
        case NoteEvent():
            return truncate(event.text.text, note_limit)
        case _:
            assert_never(event)


def history_summary(event: AnyEvent, note_limit: int = HISTORY_NOTE_LIMIT) -> str:
    match event:
        case FoodEvent():
            return f"{event.carbohydrates.grams}g carbs"
        case InsulinEvent():
            return f"{event.dose.units}U {event.insulin_type.label}"
        case ExerciseEvent():
            return f"{event.duration.minutes}min"
        case NoteEvent():
            return truncate(event.text.text, note_limit)
        case _:
            assert_never(event)
