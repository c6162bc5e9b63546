"""Gateway decorator that wraps every remote call in a trace span."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from koyomi.calendar.models import (
    BusySpan,
    CalendarEvent,
    CallerIdentity,
    EventDraft,
    EventPatch,
)
from koyomi.logging_config import trace_span
from koyomi.providers.base import CalendarGateway


class TracingGateway(CalendarGateway):
    """Delegates to ``inner``; each call is logged as ``gateway.<operation>``."""

    def __init__(self, inner: CalendarGateway):
        self.inner = inner

    @property
    def provider_name(self) -> str:
        return self.inner.provider_name

    def _span(self, operation: str, **fields):
        return trace_span(f"gateway.{operation}", provider=self.inner.provider_name, **fields)

    async def get_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        with self._span("get_events", start=start.isoformat(), end=end.isoformat()):
            return await self.inner.get_events(start, end)

    async def get_event(self, event_id: str) -> CalendarEvent:
        with self._span("get_event", event_id=event_id):
            return await self.inner.get_event(event_id)

    async def create_event(self, draft: EventDraft) -> CalendarEvent:
        with self._span("create_event"):
            return await self.inner.create_event(draft)

    async def update_event(self, event_id: str, patch: EventPatch) -> CalendarEvent:
        with self._span("update_event", event_id=event_id, fields=sorted(patch.to_dict())):
            return await self.inner.update_event(event_id, patch)

    async def delete_event(self, event_id: str) -> None:
        with self._span("delete_event", event_id=event_id):
            await self.inner.delete_event(event_id)

    async def get_free_busy(
        self,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str],
    ) -> dict[str, list[BusySpan]]:
        with self._span("get_free_busy", calendars=len(calendar_ids)):
            return await self.inner.get_free_busy(start, end, calendar_ids)

    async def search_events(self, start: datetime, end: datetime, keyword: str) -> list[CalendarEvent]:
        with self._span("search_events", keyword=keyword):
            return await self.inner.search_events(start, end, keyword)

    async def get_caller_identity(self) -> CallerIdentity:
        with self._span("get_caller_identity"):
            return await self.inner.get_caller_identity()


__all__ = ["TracingGateway"]
