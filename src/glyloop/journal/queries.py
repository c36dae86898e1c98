"""Read side of the journal: single-event lookup and the history list."""

from __future__ import annotations

import logging
from datetime import datetime

from glyloop.analytics.models import EventSummary, PagedResult
from glyloop.analytics.summaries import history_summary
from glyloop.analytics.windows import history_window
from glyloop.core.clock import IClock
from glyloop.core.config import HistoryConfig
from glyloop.core.enums import EventType
from glyloop.core.errors import AuthorizationForbidden, EventNotFound, InvalidPagination
from glyloop.core.interfaces import IEventRepository
from glyloop.domain.aggregates import AnyEvent
from glyloop.domain.value_objects import UserId

logger = logging.getLogger(__name__)


class EventHistory:
    def __init__(
        self,
        events: IEventRepository,
        clock: IClock,
        config: HistoryConfig | None = None,
    ) -> None:
        self._events = events
        self._clock = clock
        self._config = config or HistoryConfig()

    async def get_event(self, event_id: str, caller: UserId) -> AnyEvent:
        """The event, if *caller* owns it.

        Raises:
            EventNotFound: no such event.
            AuthorizationForbidden: owned by someone else.
        """
        event = await self._events.get_by_id(event_id)
        if event is None:
            raise EventNotFound()
        if not event.is_owned_by(caller):
            raise AuthorizationForbidden()
        return event

    def _check_paging(self, page: int, page_size: int) -> None:
        if page < 1:
            raise InvalidPagination("Page must be at least 1.")
        if not 1 <= page_size <= self._config.max_page_size:
            raise InvalidPagination(
                f"Page size must be between 1 and {self._config.max_page_size}."
            )

    async def list_events(
        self,
        user_id: UserId,
        event_type: EventType | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> PagedResult[EventSummary]:
        """Newest-first page of *user_id*'s events.

        Without bounds the window is the last ``default_window_days`` days
        ending now.
        """
        self._check_paging(page, page_size)
        start, end = history_window(
            self._clock.now(), from_date, to_date, self._config.default_window_days,
        )

        total = await self._events.count_by_user_id(user_id, start, end, event_type)
        events = await self._events.get_paged(
            user_id, start, end, page, page_size, event_type,
        )
        items = [
            EventSummary(
                event_id=e.event_id,
                event_type=e.event_type,
                event_time=e.event_time,
                summary=history_summary(e, self._config.summary_note_limit),
            )
            for e in events
        ]
        logger.debug("History page %d for %s: %d of %d", page, user_id, len(items), total)
        return PagedResult[EventSummary](
            items=items, total_count=total, page=page, page_size=page_size,
        )
