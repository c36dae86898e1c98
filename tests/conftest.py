"""Shared fixtures for the glyloop test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from glyloop.core.clock import FixedClock
from glyloop.domain.value_objects import UserId
from glyloop.infrastructure.event_store import InMemoryEventStore
from glyloop.infrastructure.repositories import (
    InMemoryEventRepository,
    InMemoryGlucoseSource,
    StaticTirPreferences,
)
from glyloop.journal.commands import EventJournal

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock / identity
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock frozen at 2024-06-01 12:00 UTC."""
    return FixedClock(NOW)


@pytest.fixture
def user_id() -> UserId:
    return UserId("user-1")


@pytest.fixture
def other_user() -> UserId:
    return UserId("user-2")


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def event_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def glucose_source() -> InMemoryGlucoseSource:
    return InMemoryGlucoseSource()


@pytest.fixture
def audit_log() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def preferences() -> StaticTirPreferences:
    return StaticTirPreferences()


@pytest.fixture
def journal(event_repo, audit_log, fixed_clock) -> EventJournal:
    return EventJournal(event_repo, audit_log, fixed_clock)
