"""
Tool: Calendar Models
Purpose: Data structures for availability search and calendar events

Usage:
    from koyomi.calendar.models import TimeInterval, BusySpan, FreeSlot, CalendarEvent

Intervals (TimeInterval, BusySpan, FreeSlot) are immutable values used by the
availability engine. Event types mirror the Google Calendar v3 resource shape
so gateways can round-trip them with to_dict()/from_dict().
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any


# =============================================================================
# Intervals
# =============================================================================


@dataclass(frozen=True)
class TimeInterval:
    """Half-open time range ``[start, end)``. Always ``start < end``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(f"Interval start must be before end: {self.start} >= {self.end}")

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: TimeInterval) -> bool:
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class BusySpan(TimeInterval):
    """Occupied interval on one calendar."""

    calendar_id: str = "primary"

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["calendar_id"] = self.calendar_id
        return d


@dataclass(frozen=True)
class FreeSlot(TimeInterval):
    """Free interval produced by the availability engine."""

    @property
    def date(self) -> date:
        return self.start.date()

    def can_fit(self, start: datetime, duration_minutes: int) -> bool:
        """Check whether ``[start, start + duration)`` lies inside this slot."""
        return self.start <= start and start + timedelta(minutes=duration_minutes) <= self.end

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["duration_minutes"] = self.duration_minutes
        return d


# =============================================================================
# Events
# =============================================================================


@dataclass
class EventTime:
    """
    Start or end of an event.

    Either a timed instant (``date_time``) or an all-day date (``day``).
    """

    date_time: datetime | None = None
    day: date | None = None
    time_zone: str | None = None

    @property
    def is_all_day(self) -> bool:
        return self.date_time is None

    def as_datetime(self, tz: tzinfo | None = None) -> datetime:
        """Resolve to an instant; all-day dates map to local midnight."""
        if self.date_time is not None:
            if tz is not None and self.date_time.tzinfo is not None:
                return self.date_time.astimezone(tz)
            return self.date_time
        if self.day is None:
            raise ValueError("EventTime has neither date_time nor day")
        return datetime.combine(self.day, time.min, tzinfo=tz)

    def to_dict(self) -> dict[str, Any]:
        if self.date_time is not None:
            d: dict[str, Any] = {"dateTime": self.date_time.isoformat()}
            if self.time_zone:
                d["timeZone"] = self.time_zone
            return d
        return {"date": self.day.isoformat() if self.day else None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventTime":
        if data.get("dateTime"):
            return cls(
                date_time=datetime.fromisoformat(data["dateTime"].replace("Z", "+00:00")),
                time_zone=data.get("timeZone"),
            )
        if data.get("date"):
            return cls(day=date.fromisoformat(data["date"]))
        raise ValueError(f"Unrecognised event time: {data!r}")

    @classmethod
    def at(cls, instant: datetime, time_zone: str | None = None) -> "EventTime":
        return cls(date_time=instant, time_zone=time_zone)


@dataclass
class Attendee:
    """
    Calendar event attendee.
    """

    email: str
    response_status: str = "needsAction"  # needsAction, accepted, declined, tentative
    resource: bool = False
    optional: bool = False
    organizer: bool = False
    is_self: bool = False
    display_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"email": self.email, "responseStatus": self.response_status}
        if self.resource:
            d["resource"] = True
        if self.optional:
            d["optional"] = True
        if self.organizer:
            d["organizer"] = True
        if self.is_self:
            d["self"] = True
        if self.display_name:
            d["displayName"] = self.display_name
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Attendee":
        return cls(
            email=data.get("email", ""),
            response_status=data.get("responseStatus") or "needsAction",
            resource=bool(data.get("resource", False)),
            optional=bool(data.get("optional", False)),
            organizer=bool(data.get("organizer", False)),
            is_self=bool(data.get("self", False)),
            display_name=data.get("displayName"),
        )


@dataclass
class Reminder:
    method: str = "popup"
    minutes: int = 30

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method, "minutes": self.minutes}


@dataclass
class CalendarEvent:
    """
    Calendar event as held by the remote calendar.

    Fetched from a gateway, changed through EventPatch, never mutated in place
    by the assistant.
    """

    id: str
    title: str = ""
    start: EventTime = field(default_factory=EventTime)
    end: EventTime = field(default_factory=EventTime)
    attendees: list[Attendee] = field(default_factory=list)
    description: str = ""
    location: str = ""

    # Reminders
    use_default_reminders: bool = True
    reminders: list[Reminder] = field(default_factory=list)

    # Recurrence
    recurrence: list[str] = field(default_factory=list)  # RRULE lines

    calendar_id: str = "primary"
    status: str = "confirmed"  # confirmed, tentative, cancelled

    @property
    def is_all_day(self) -> bool:
        return self.start.is_all_day

    def start_at(self, tz: tzinfo | None = None) -> datetime:
        return self.start.as_datetime(tz)

    def end_at(self, tz: tzinfo | None = None) -> datetime:
        return self.end.as_datetime(tz)

    @property
    def duration_minutes(self) -> int:
        """Get event duration in minutes."""
        delta = self.end_at() - self.start_at()
        return int(round(delta.total_seconds() / 60))

    def find_attendee(self, email: str) -> Attendee | None:
        for attendee in self.attendees:
            if attendee.email == email:
                return attendee
        return None

    def snapshot(self) -> "CalendarEvent":
        """Deep copy, detached from any later changes."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Google Calendar style resource."""
        d: dict[str, Any] = {
            "id": self.id,
            "summary": self.title,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "status": self.status,
        }
        if self.description:
            d["description"] = self.description
        if self.location:
            d["location"] = self.location
        if self.attendees:
            d["attendees"] = [a.to_dict() for a in self.attendees]
        if self.recurrence:
            d["recurrence"] = list(self.recurrence)
        d["reminders"] = {
            "useDefault": self.use_default_reminders,
            "overrides": [r.to_dict() for r in self.reminders],
        }
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any], calendar_id: str = "primary") -> "CalendarEvent":
        """Create from a Google Calendar style resource."""
        reminders = data.get("reminders") or {}
        return cls(
            id=data.get("id", ""),
            title=data.get("summary", ""),
            start=EventTime.from_dict(data.get("start") or {}),
            end=EventTime.from_dict(data.get("end") or {}),
            attendees=[Attendee.from_dict(a) for a in data.get("attendees") or []],
            description=data.get("description") or "",
            location=data.get("location") or "",
            use_default_reminders=reminders.get("useDefault", True),
            reminders=[
                Reminder(method=r.get("method", "popup"), minutes=int(r.get("minutes", 0)))
                for r in reminders.get("overrides") or []
            ],
            recurrence=list(data.get("recurrence") or []),
            calendar_id=calendar_id,
            status=data.get("status", "confirmed"),
        )


@dataclass
class EventDraft:
    """New event to be created by a gateway."""

    title: str
    start: EventTime
    end: EventTime
    description: str = ""
    location: str = ""
    attendees: list[Attendee] = field(default_factory=list)
    recurrence: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "summary": self.title,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
        }
        if self.description:
            d["description"] = self.description
        if self.location:
            d["location"] = self.location
        if self.attendees:
            d["attendees"] = [a.to_dict() for a in self.attendees]
        if self.recurrence:
            d["recurrence"] = list(self.recurrence)
        return d

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "EventDraft":
        """Rebuild a draft from an event snapshot (used to restore deletions)."""
        return cls(
            title=event.title,
            start=copy.deepcopy(event.start),
            end=copy.deepcopy(event.end),
            description=event.description,
            location=event.location,
            attendees=copy.deepcopy(event.attendees),
        )


@dataclass
class EventPatch:
    """
    Partial update. Only fields that are not None are sent.

    ``send_updates`` is a delivery hint ("all", "externalOnly", "none"),
    not part of the event body.
    """

    title: str | None = None
    description: str | None = None
    location: str | None = None
    start: EventTime | None = None
    end: EventTime | None = None
    attendees: list[Attendee] | None = None
    reminders: list[Reminder] | None = None
    send_updates: str | None = None

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.title is not None:
            d["summary"] = self.title
        if self.description is not None:
            d["description"] = self.description
        if self.location is not None:
            d["location"] = self.location
        if self.start is not None:
            d["start"] = self.start.to_dict()
        if self.end is not None:
            d["end"] = self.end.to_dict()
        if self.attendees is not None:
            d["attendees"] = [a.to_dict() for a in self.attendees]
        if self.reminders is not None:
            d["reminders"] = {
                "useDefault": False,
                "overrides": [r.to_dict() for r in self.reminders],
            }
        return d


@dataclass
class CallerIdentity:
    email: str
    timezone: str = "Asia/Tokyo"


# Valid values for validation
VALID_RESPONSE_STATUSES = {"needsAction", "accepted", "declined", "tentative"}
VALID_EVENT_STATUSES = {"confirmed", "tentative", "cancelled"}
