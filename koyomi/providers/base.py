"""
Tool: Calendar Gateway Base
Purpose: Abstract contract for the remote calendar service

Defines the eight operations the scheduling core consumes. The assistant
only ever talks to a CalendarGateway, so the Google implementation, the
in-memory one and test doubles are interchangeable.

Every failure of the remote side is raised as GatewayError; a successful
call always returns model objects, never raw JSON.

Usage:
    from koyomi.providers.base import CalendarGateway
    from koyomi.providers.google_calendar import GoogleCalendarGateway

    gateway: CalendarGateway = GoogleCalendarGateway(access_token=token)
    events = await gateway.get_events(start, end)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from koyomi.calendar.models import (
    BusySpan,
    CalendarEvent,
    CallerIdentity,
    EventDraft,
    EventPatch,
)


class CalendarGateway(ABC):
    """
    Remote calendar contract.

    Implementations must raise koyomi.errors.GatewayError for transport or
    API failures.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'google', 'memory')."""

    @abstractmethod
    async def get_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        """
        Get events overlapping ``[start, end)`` on the primary calendar.

        Recurring events are expanded into single instances and the result is
        ordered by start time.
        """

    @abstractmethod
    async def get_event(self, event_id: str) -> CalendarEvent:
        """Get a single event by ID."""

    @abstractmethod
    async def create_event(self, draft: EventDraft) -> CalendarEvent:
        """
        Create an event.

        Returns:
            The created event, carrying its server-assigned ID
        """

    @abstractmethod
    async def update_event(self, event_id: str, patch: EventPatch) -> CalendarEvent:
        """
        Apply a partial update.

        Only fields set on ``patch`` change. ``patch.send_updates`` controls
        whether attendees are notified.
        """

    @abstractmethod
    async def delete_event(self, event_id: str) -> None:
        """Delete an event."""

    @abstractmethod
    async def get_free_busy(
        self,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str],
    ) -> dict[str, list[BusySpan]]:
        """
        Get busy spans per calendar.

        Args:
            start: Start of range
            end: End of range
            calendar_ids: Calendars to query ("primary" for the caller's own)

        Returns:
            Mapping of calendar ID to its busy spans. Calendars the provider
            cannot see may be missing or empty.
        """

    @abstractmethod
    async def search_events(self, start: datetime, end: datetime, keyword: str) -> list[CalendarEvent]:
        """Full-text search for events in a range."""

    @abstractmethod
    async def get_caller_identity(self) -> CallerIdentity:
        """Get the email and timezone of the calendar owner."""


__all__ = ["CalendarGateway"]
