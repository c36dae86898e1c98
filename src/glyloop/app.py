"""Wiring: build the core services from settings and collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from glyloop.analytics.chart import ChartAssembler
from glyloop.analytics.models import ChartResult, EventSummary, OutcomeResult, PagedResult, TirResult
from glyloop.analytics.outcome import OutcomeMatcher
from glyloop.analytics.time_in_range import TimeInRangeService
from glyloop.core.clock import IClock, WallClock
from glyloop.core.config import Settings
from glyloop.core.interfaces import IEventRepository, IGlucoseSource, ITirPreferences
from glyloop.infrastructure.event_store import IAuditLog, InMemoryEventStore, JsonFileEventStore
from glyloop.journal.commands import EventJournal
from glyloop.journal.queries import EventHistory

logger = logging.getLogger(__name__)


@dataclass
class GlyloopCore:
    """The exposed operations of the core, bound to one set of collaborators."""

    outcomes: OutcomeMatcher
    time_in_range: TimeInRangeService
    chart: ChartAssembler
    history: EventHistory
    journal: EventJournal
    audit_log: IAuditLog

    async def compute_outcome(self, event_id, caller) -> OutcomeResult:
        return await self.outcomes.compute_outcome(event_id, caller)

    async def compute_time_in_range(self, user_id, range_hours) -> TirResult:
        return await self.time_in_range.compute_time_in_range(user_id, range_hours)

    async def assemble_chart(self, user_id, range_hours) -> ChartResult:
        return await self.chart.assemble_chart(user_id, range_hours)

    async def list_events(self, user_id, **filters) -> PagedResult[EventSummary]:
        return await self.history.list_events(user_id, **filters)


def build_audit_log(settings: Settings) -> IAuditLog:
    if settings.audit_log_path:
        logger.info("Audit log: %s", settings.audit_log_path)
        return JsonFileEventStore(settings.audit_log_path)
    return InMemoryEventStore()


def build_core(
    settings: Settings,
    glucose: IGlucoseSource,
    events: IEventRepository,
    clock: IClock | None = None,
    preferences: ITirPreferences | None = None,
    audit_log: IAuditLog | None = None,
) -> GlyloopCore:
    clock = clock or WallClock()
    audit_log = audit_log or build_audit_log(settings)
    return GlyloopCore(
        outcomes=OutcomeMatcher(events, glucose, settings.outcome),
        time_in_range=TimeInRangeService(
            glucose, clock, preferences, settings.chart, settings.tir,
        ),
        chart=ChartAssembler(glucose, events, clock, settings.chart),
        history=EventHistory(events, clock, settings.history),
        journal=EventJournal(events, audit_log, clock),
        audit_log=audit_log,
    )
