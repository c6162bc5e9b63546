"""
Tool: In-Memory Calendar Gateway
Purpose: Process-local CalendarGateway for CLI runs and tests

Events live in a dict keyed by ID and are copied on the way in and out, so
callers never share state with the store. Busy spans for other people's
calendars are seeded with ``add_busy``; the primary calendar's busy spans
are derived from its timed events.

Usage:
    from koyomi.providers.in_memory import InMemoryCalendarGateway

    gateway = InMemoryCalendarGateway(owner_email="me@example.com")
    gateway.add_event(event)
    gateway.add_busy("bob@example.com", BusySpan(start, end, "bob@example.com"))
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from koyomi.calendar.availability import PRIMARY_CALENDAR, busy_spans_from_events
from koyomi.calendar.matching import filter_events_by_query
from koyomi.calendar.models import (
    BusySpan,
    CalendarEvent,
    CallerIdentity,
    EventDraft,
    EventPatch,
)
from koyomi.errors import GatewayError
from koyomi.providers.base import CalendarGateway


class InMemoryCalendarGateway(CalendarGateway):
    """Dict-backed gateway. Deterministic IDs: ``evt-1``, ``evt-2``, ..."""

    def __init__(
        self,
        owner_email: str = "me@example.com",
        timezone: str = "Asia/Tokyo",
        events: Iterable[CalendarEvent] = (),
    ):
        self.owner_email = owner_email
        self.timezone = timezone
        self.tz = ZoneInfo(timezone)
        self._events: dict[str, CalendarEvent] = {}
        self._busy: dict[str, list[BusySpan]] = {}
        self._ids = itertools.count(1)
        self.updates: list[tuple[str, EventPatch]] = []

        for event in events:
            self.add_event(event)

    @property
    def provider_name(self) -> str:
        return "memory"

    # =========================================================================
    # Seeding
    # =========================================================================

    def add_event(self, event: CalendarEvent) -> CalendarEvent:
        stored = event.snapshot()
        if not stored.id:
            stored.id = self._next_id()
        self._events[stored.id] = stored
        return stored.snapshot()

    def add_busy(self, calendar_id: str, *spans: BusySpan) -> None:
        self._busy.setdefault(calendar_id, []).extend(spans)

    def all_events(self) -> list[CalendarEvent]:
        return self._sorted(e.snapshot() for e in self._events.values())

    def _next_id(self) -> str:
        while True:
            event_id = f"evt-{next(self._ids)}"
            if event_id not in self._events:
                return event_id

    def _sorted(self, events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
        return sorted(events, key=lambda e: e.start_at(self.tz))

    def _in_range(self, event: CalendarEvent, start: datetime, end: datetime) -> bool:
        return event.start_at(self.tz) < end and start < event.end_at(self.tz)

    def _require(self, event_id: str) -> CalendarEvent:
        event = self._events.get(event_id)
        if event is None:
            raise GatewayError("イベントが見つかりません。", status=404)
        return event

    # =========================================================================
    # CalendarGateway
    # =========================================================================

    async def get_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        return self._sorted(
            e.snapshot() for e in self._events.values() if e.status != "cancelled" and self._in_range(e, start, end)
        )

    async def get_event(self, event_id: str) -> CalendarEvent:
        return self._require(event_id).snapshot()

    async def create_event(self, draft: EventDraft) -> CalendarEvent:
        event = CalendarEvent(
            id=self._next_id(),
            title=draft.title,
            start=draft.start,
            end=draft.end,
            attendees=list(draft.attendees),
            description=draft.description,
            location=draft.location,
            recurrence=list(draft.recurrence),
        )
        return self.add_event(event)

    async def update_event(self, event_id: str, patch: EventPatch) -> CalendarEvent:
        event = self._require(event_id)
        if patch.title is not None:
            event.title = patch.title
        if patch.description is not None:
            event.description = patch.description
        if patch.location is not None:
            event.location = patch.location
        if patch.start is not None:
            event.start = patch.start
        if patch.end is not None:
            event.end = patch.end
        if patch.attendees is not None:
            event.attendees = list(patch.attendees)
        if patch.reminders is not None:
            event.use_default_reminders = False
            event.reminders = list(patch.reminders)
        self.updates.append((event_id, patch))
        self._events[event_id] = event.snapshot()
        return event.snapshot()

    async def delete_event(self, event_id: str) -> None:
        self._require(event_id)
        del self._events[event_id]

    async def get_free_busy(
        self,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str],
    ) -> dict[str, list[BusySpan]]:
        result: dict[str, list[BusySpan]] = {}
        for calendar_id in dict.fromkeys(calendar_ids):
            spans = [s for s in self._busy.get(calendar_id, []) if s.start < end and start < s.end]
            if calendar_id in (PRIMARY_CALENDAR, self.owner_email):
                events = await self.get_events(start, end)
                spans.extend(busy_spans_from_events(events, calendar_id))
            result[calendar_id] = spans
        return result

    async def search_events(self, start: datetime, end: datetime, keyword: str) -> list[CalendarEvent]:
        return filter_events_by_query(await self.get_events(start, end), keyword)

    async def get_caller_identity(self) -> CallerIdentity:
        return CallerIdentity(email=self.owner_email, timezone=self.timezone)


__all__ = ["InMemoryCalendarGateway"]
