"""Audit log: the append-only trail of event creation records.

Every journal command appends exactly one record (see
:mod:`glyloop.domain.events`).  The log never updates or deletes;
appending a record whose ``event_id`` is already stored does nothing.
Reads return records in the order they were appended.

Two implementations share the query side through ``_AuditLogBase``:

``InMemoryEventStore``
    list-backed, for tests and the in-process wiring.
``JsonFileEventStore``
    one JSON object per line, for durable local use.  Lines that cannot
    be decoded (truncated writes, unknown record types) are skipped.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import typing
from collections.abc import AsyncIterator, Iterator
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Protocol

from glyloop.domain.events import ALL_DOMAIN_EVENTS, DomainEvent

logger = logging.getLogger(__name__)

RECORD_TYPE_KEY = "record_type"


class IAuditLog(Protocol):
    async def append(self, record: DomainEvent) -> None: ...

    async def read(
        self,
        record_type: type[DomainEvent] | None = None,
        correlation_id: str | None = None,
        limit: int = 10_000,
    ) -> list[DomainEvent]: ...

    def replay(
        self,
        record_type: type[DomainEvent] | None = None,
        from_timestamp: datetime | None = None,
    ) -> AsyncIterator[DomainEvent]: ...

    async def get_by_correlation(self, correlation_id: str) -> list[DomainEvent]: ...


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _json_default(o: Any) -> Any:
    if isinstance(o, Decimal):
        return str(o)  # Exact, never a float
    if isinstance(o, datetime):
        return o.isoformat()
    raise TypeError(f"{type(o).__name__} is not JSON serialisable")


def encode_record(record: DomainEvent) -> str:
    """One JSONL line (without the newline) for *record*."""
    payload = dataclasses.asdict(record)
    payload[RECORD_TYPE_KEY] = type(record).__name__
    return json.dumps(payload, default=_json_default, sort_keys=True)


def _hinted(hint: Any, target: type) -> bool:
    return hint is target or target in typing.get_args(hint)


def decode_record(
    payload: dict[str, Any],
    registry: dict[str, type[DomainEvent]],
) -> DomainEvent | None:
    """Rebuild a record from a decoded JSON object; ``None`` if the type is unknown."""
    cls = registry.get(payload.get(RECORD_TYPE_KEY, ""))
    if cls is None:
        return None
    hints = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.name not in payload:
            continue
        value = payload[f.name]
        if value is not None and _hinted(hints[f.name], Decimal):
            value = Decimal(value)
        elif isinstance(value, str) and _hinted(hints[f.name], datetime):
            value = datetime.fromisoformat(value)
        kwargs[f.name] = value
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Shared query side
# ---------------------------------------------------------------------------

class _AuditLogBase:
    def _records(self) -> Iterator[DomainEvent]:
        raise NotImplementedError

    @staticmethod
    def _wanted(
        record: DomainEvent,
        record_type: type[DomainEvent] | None,
        correlation_id: str | None,
        from_timestamp: datetime | None,
    ) -> bool:
        return (
            (record_type is None or type(record) is record_type)
            and (correlation_id is None or record.correlation_id == correlation_id)
            and (from_timestamp is None or record.timestamp >= from_timestamp)
        )

    async def read(
        self,
        record_type: type[DomainEvent] | None = None,
        correlation_id: str | None = None,
        limit: int = 10_000,
    ) -> list[DomainEvent]:
        out: list[DomainEvent] = []
        for record in self._records():
            if len(out) >= limit:
                break
            if self._wanted(record, record_type, correlation_id, None):
                out.append(record)
        return out

    async def replay(
        self,
        record_type: type[DomainEvent] | None = None,
        from_timestamp: datetime | None = None,
    ) -> AsyncIterator[DomainEvent]:
        for record in self._records():
            if self._wanted(record, record_type, None, from_timestamp):
                yield record

    async def get_by_correlation(self, correlation_id: str) -> list[DomainEvent]:
        return await self.read(correlation_id=correlation_id)


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------

class InMemoryEventStore(_AuditLogBase):
    def __init__(self) -> None:
        self._log: list[DomainEvent] = []
        self._ids: set[str] = set()

    async def append(self, record: DomainEvent) -> None:
        if record.event_id in self._ids:
            return
        self._ids.add(record.event_id)
        self._log.append(record)

    def _records(self) -> Iterator[DomainEvent]:
        return iter(list(self._log))

    def clear(self) -> None:
        """Testing only."""
        self._log.clear()
        self._ids.clear()

    def __len__(self) -> int:
        return len(self._log)


class JsonFileEventStore(_AuditLogBase):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._registry = {cls.__name__: cls for cls in ALL_DOMAIN_EVENTS}
        self._ids: set[str] = {
            payload["event_id"] for payload in self._payloads() if payload.get("event_id")
        }

    @property
    def path(self) -> Path:
        return self._path

    def _payloads(self) -> Iterator[dict[str, Any]]:
        if not self._path.exists():
            return
        with self._path.open(encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("%s:%d: unreadable audit line skipped", self._path, lineno)

    def _records(self) -> Iterator[DomainEvent]:
        for payload in self._payloads():
            record = decode_record(payload, self._registry)
            if record is not None:
                yield record

    async def append(self, record: DomainEvent) -> None:
        if record.event_id in self._ids:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(encode_record(record) + "\n")
        self._ids.add(record.event_id)

    def __len__(self) -> int:
        return len(self._ids)
