"""Protocol interfaces for the collaborators of the core.

The core consumes glucose readings and persisted events only through
these protocols.  Implementations (Dexcom client, ORM repositories,
in-memory fakes) can be swapped without changing callers.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .enums import EventType
from .models import GlucoseReading

if TYPE_CHECKING:
    from glyloop.domain.aggregates import AnyEvent
    from glyloop.domain.value_objects import TirRange, UserId


# ---------------------------------------------------------------------------
# Glucose source
# ---------------------------------------------------------------------------

@runtime_checkable
class IGlucoseSource(Protocol):
    """CGM readings provider.

    Failures are raised as exceptions and reach the caller unchanged; the
    core performs no retry.
    """

    async def get_readings_in_range(
        self,
        user_id: UserId,
        start: datetime,
        end: datetime,
    ) -> list[GlucoseReading]: ...


# ---------------------------------------------------------------------------
# Event repository
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventRepository(Protocol):
    """Persistence of journal events.

    Events are immutable: ``add`` is the only write.  List methods return
    events ordered by ``event_time`` descending; bounds are inclusive.
    """

    async def get_by_id(self, event_id: str) -> AnyEvent | None: ...

    async def get_by_user_id(
        self,
        user_id: UserId,
        event_type: EventType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AnyEvent]: ...

    async def count_by_user_id(
        self,
        user_id: UserId,
        start: datetime,
        end: datetime,
        event_type: EventType | None = None,
    ) -> int: ...

    async def get_paged(
        self,
        user_id: UserId,
        start: datetime,
        end: datetime,
        page: int,
        page_size: int,
        event_type: EventType | None = None,
    ) -> list[AnyEvent]: ...

    async def add(self, event: AnyEvent) -> None: ...


# ---------------------------------------------------------------------------
# User preferences
# ---------------------------------------------------------------------------

@runtime_checkable
class ITirPreferences(Protocol):
    """Per-user target range lookup (owned by the account collaborator)."""

    async def get_tir_range(self, user_id: UserId) -> TirRange: ...
