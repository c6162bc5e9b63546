"""Shared plumbing for intent handlers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

from koyomi.assistant.collaborators import ConversationalResponder, Turn
from koyomi.assistant.context import ConversationContext
from koyomi.assistant.suggestions import SuggestionWriter
from koyomi.assistant.undo import UndoLedger
from koyomi.calendar.availability import AvailabilityEngine, SearchOptions
from koyomi.calendar.holidays import DAY_NAMES
from koyomi.calendar.matching import filter_events_by_query
from koyomi.calendar.models import CalendarEvent
from koyomi.config import SchedulerConfig
from koyomi.errors import NotFoundError
from koyomi.providers.base import CalendarGateway


@dataclass
class Services:
    """Everything a handler may touch, owned by one session."""

    gateway: CalendarGateway
    engine: AvailabilityEngine
    context: ConversationContext
    undo_ledger: UndoLedger
    suggestion_writer: SuggestionWriter
    responder: ConversationalResponder
    config: SchedulerConfig
    history: list[Turn] = field(default_factory=list)
    clock: Callable[[], datetime] | None = None

    @property
    def tz(self) -> tzinfo:
        return self.config.tzinfo

    def now(self) -> datetime:
        if self.clock is not None:
            return self.clock()
        return datetime.now(self.tz)

    def search_options(self, include_holidays: bool = False) -> SearchOptions:
        return SearchOptions.from_config(self.config, exclude_non_working_days=not include_holidays)


def day_start(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def day_range(day: date, tz: tzinfo, days: int = 1) -> tuple[datetime, datetime]:
    start = day_start(day, tz)
    return start, start + timedelta(days=days)


def format_month_day(day: date) -> str:
    """``3月5日``"""
    return f"{day.month}月{day.day}日"


def format_short_day(day: date) -> str:
    """``3/5(木)``"""
    return f"{day.month}/{day.day}({DAY_NAMES[day.weekday()]})"


def format_start_time(event: CalendarEvent, tz: tzinfo) -> str:
    """``09:30``, or ``終日`` for all-day events."""
    if event.is_all_day:
        return "終日"
    return event.start_at(tz).strftime("%H:%M")


async def find_event(services: Services, day: date, query: str) -> CalendarEvent:
    """
    First event on ``day`` whose title matches ``query``, in calendar order.

    Raises:
        NotFoundError: when nothing on that day matches
    """
    start, end = day_range(day, services.tz)
    events = await services.gateway.get_events(start, end)
    matches = filter_events_by_query(events, query)
    if not matches:
        raise NotFoundError(f"{day.isoformat()}に「{query}」に該当するイベントが見つかりませんでした。")
    return matches[0]


__all__ = [
    "Services",
    "day_range",
    "day_start",
    "find_event",
    "format_month_day",
    "format_short_day",
    "format_start_time",
]
