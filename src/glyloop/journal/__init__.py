"""Event journal: logging new events and reading the history.

``EventJournal`` turns raw request values into value objects, runs the
aggregate factories, stores the event and appends its audit record.
``EventHistory`` serves ownership-checked lookups and the paged list.
"""

from glyloop.journal.commands import EventJournal
from glyloop.journal.queries import EventHistory

__all__ = ["EventHistory", "EventJournal"]
