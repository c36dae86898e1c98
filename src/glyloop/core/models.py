"""Core data models shared by the analytics and the collaborators.

Glucose readings are external data: the core never owns or mutates them.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from .ids import as_utc, is_aware


class GlucoseReading(BaseModel):
    """One CGM sample (roughly every 5 minutes, may have gaps)."""

    model_config = ConfigDict(frozen=True)

    system_time: datetime
    value_mg_dl: int
    trend: str | None = None  # e.g. "flat", "singleUp"

    @field_validator("system_time")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        if not is_aware(v):
            raise ValueError("system_time must be timezone-aware")
        return as_utc(v)
