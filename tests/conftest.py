"""Shared test fixtures for Koyomi tests.

This module provides common fixtures used across all test modules:
- Scheduler configuration and a fixed clock
- Event and time factories in Asia/Tokyo
- In-memory calendar gateway and per-session service bundles
- A scripted intent producer for session tests

Reference week (2026):
    Wed 3/4 (today), Thu 3/5, Fri 3/6, Sat 3/7, Sun 3/8, Mon 3/9
    Fri 3/20 is a national holiday (春分の日).

Usage:
    def test_something(gateway, make_event):
        gateway.add_event(make_event("定例", "2026-03-05", "10:00", "11:00"))
"""

from collections.abc import Callable, Sequence
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from koyomi.assistant.collaborators import IntentProducer, StaticResponder, Turn
from koyomi.assistant.context import ConversationContext
from koyomi.assistant.handlers.common import Services
from koyomi.assistant.session import AssistantSession
from koyomi.assistant.suggestions import DefaultSuggestionWriter
from koyomi.assistant.undo import UndoLedger
from koyomi.calendar.availability import AvailabilityEngine
from koyomi.calendar.models import Attendee, CalendarEvent, EventTime
from koyomi.config import SchedulerConfig
from koyomi.providers.in_memory import InMemoryCalendarGateway


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

TOKYO = ZoneInfo("Asia/Tokyo")
OWNER = "me@example.com"
TODAY = date(2026, 3, 4)
THURSDAY = date(2026, 3, 5)


def at(day: str | date, hhmm: str) -> datetime:
    """Local Tokyo datetime for a day and ``HH:MM``."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return datetime.combine(day, time.fromisoformat(hhmm), tzinfo=TOKYO)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def config() -> SchedulerConfig:
    """Default settings: Asia/Tokyo, 09:00-18:00, three suggestions."""
    return SchedulerConfig()


@pytest.fixture
def tz() -> ZoneInfo:
    return TOKYO


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    """Clock pinned to Wednesday 2026-03-04 08:00 JST."""
    return lambda: at(TODAY, "08:00")


# ─────────────────────────────────────────────────────────────────────────────
# Event Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_event() -> Callable[..., CalendarEvent]:
    """Factory for timed events.

    Returns:
        function(title, day, start, end, attendees=(), event_id="") -> CalendarEvent
    """

    def _make(
        title: str,
        day: str,
        start: str,
        end: str,
        attendees: Sequence[Attendee | str] = (),
        event_id: str = "",
        **fields: Any,
    ) -> CalendarEvent:
        return CalendarEvent(
            id=event_id,
            title=title,
            start=EventTime.at(at(day, start), "Asia/Tokyo"),
            end=EventTime.at(at(day, end), "Asia/Tokyo"),
            attendees=[a if isinstance(a, Attendee) else Attendee(email=a) for a in attendees],
            **fields,
        )

    return _make


@pytest.fixture
def make_all_day_event() -> Callable[..., CalendarEvent]:
    def _make(title: str, day: str, event_id: str = "") -> CalendarEvent:
        first = date.fromisoformat(day)
        return CalendarEvent(
            id=event_id,
            title=title,
            start=EventTime(day=first),
            end=EventTime(day=date.fromordinal(first.toordinal() + 1)),
        )

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# Gateway and Service Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def gateway() -> InMemoryCalendarGateway:
    """Empty in-memory calendar owned by me@example.com."""
    return InMemoryCalendarGateway(owner_email=OWNER)


@pytest.fixture
def undo_ledger(gateway: InMemoryCalendarGateway) -> UndoLedger:
    return UndoLedger(gateway)


@pytest.fixture
def writer(config: SchedulerConfig) -> DefaultSuggestionWriter:
    return DefaultSuggestionWriter(config.max_suggestions)


@pytest.fixture
def context(gateway, undo_ledger, writer, config) -> ConversationContext:
    return ConversationContext(gateway, undo_ledger, writer, config, responder=StaticResponder("雑談です"))


@pytest.fixture
def services(gateway, undo_ledger, writer, context, config, fixed_now) -> Services:
    """Handler service bundle wired like a session, without tracing."""
    return Services(
        gateway=gateway,
        engine=AvailabilityEngine(),
        context=context,
        undo_ledger=undo_ledger,
        suggestion_writer=writer,
        responder=StaticResponder("雑談です"),
        config=config,
        clock=fixed_now,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Session Fixtures
# ─────────────────────────────────────────────────────────────────────────────


class ScriptedIntentProducer(IntentProducer):
    """Returns queued intents in order and records what it was given."""

    def __init__(self, intents: Sequence[dict[str, Any]] = ()):
        self.intents = list(intents)
        self.calls: list[dict[str, Any]] = []

    def queue(self, *intents: dict[str, Any]) -> None:
        self.intents.extend(intents)

    async def produce(
        self,
        utterance: str,
        recent_events: Sequence[CalendarEvent],
        history: Sequence[Turn],
    ) -> dict[str, Any]:
        self.calls.append(
            {"utterance": utterance, "recent_events": list(recent_events), "history": list(history)}
        )
        if not self.intents:
            return {"action": "other"}
        return self.intents.pop(0)


@pytest.fixture
def producer() -> ScriptedIntentProducer:
    return ScriptedIntentProducer()


@pytest.fixture
def session(gateway, producer, config, fixed_now) -> AssistantSession:
    """Full session over the in-memory gateway with a fixed clock."""
    return AssistantSession(
        gateway=gateway,
        intent_producer=producer,
        responder=StaticResponder("雑談です"),
        config=config,
        clock=fixed_now,
    )
