"""Enumerations used across the event journal and analytics."""

from enum import Enum


class EventType(str, Enum):
    FOOD = "food"
    INSULIN = "insulin"
    EXERCISE = "exercise"
    NOTE = "note"


class SourceType(str, Enum):
    MANUAL = "manual"
    IMPORTED = "imported"
    SYSTEM = "system"  # Detected or suggested by the system


class AbsorptionHint(str, Enum):
    """Expected absorption rate of consumed food."""

    RAPID = "rapid"  # Simple sugars, glucose tablets
    NORMAL = "normal"
    SLOW = "slow"  # High-fat or high-fibre meals
    OTHER = "other"


class InsulinType(str, Enum):
    FAST = "fast"  # Bolus
    LONG = "long"  # Basal

    @property
    def label(self) -> str:
        return self.value.capitalize()


class IntensityType(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    VIGOROUS = "vigorous"
