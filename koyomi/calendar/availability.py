"""
Tool: Availability Engine
Purpose: Compute free slots from busy spans within business hours

Walks the searched range one calendar day at a time, clips each day to the
business-hours window, merges that day's busy spans and emits every gap at
least ``duration_minutes`` long. Non-working days (weekends and holidays)
are skipped when requested. Multi-calendar search unions every attendee's
busy spans first, so a slot is free only when everyone is free.

Greedy and deterministic: output is chronological, with no ranking and no
partial fits.

Usage:
    from koyomi.calendar.availability import AvailabilityEngine, SearchOptions

    engine = AvailabilityEngine()
    slots = engine.find_free_slots(
        start, end, 30, SearchOptions(business_hours_start=9, business_hours_end=18), busy,
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from koyomi.calendar.holidays import HolidayPolicy
from koyomi.calendar.intervals import clip, merge
from koyomi.calendar.models import BusySpan, CalendarEvent, FreeSlot, TimeInterval
from koyomi.errors import InputError
from koyomi.logging_config import trace_span

logger = logging.getLogger(__name__)

PRIMARY_CALENDAR = "primary"


@dataclass(frozen=True)
class SearchOptions:
    """Constraints applied to every searched day."""

    business_hours_start: int = 9
    business_hours_end: int = 18
    exclude_non_working_days: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.business_hours_start < self.business_hours_end <= 24:
            raise InputError(
                f"営業時間の指定が不正です: {self.business_hours_start}時〜{self.business_hours_end}時"
            )

    @classmethod
    def from_config(cls, config, exclude_non_working_days: bool = True) -> "SearchOptions":
        return cls(
            business_hours_start=config.business_hours_start,
            business_hours_end=config.business_hours_end,
            exclude_non_working_days=exclude_non_working_days,
        )


def busy_spans_from_events(
    events: Iterable[CalendarEvent],
    calendar_id: str = PRIMARY_CALENDAR,
) -> list[BusySpan]:
    """Convert timed events to busy spans. All-day and zero-length events are dropped."""
    spans = []
    for event in events:
        if event.is_all_day or event.end.is_all_day:
            continue
        if event.status == "cancelled":
            continue
        start, end = event.start_at(), event.end_at()
        if start >= end:
            continue
        spans.append(BusySpan(start=start, end=end, calendar_id=calendar_id))
    return spans


class AvailabilityEngine:
    """Free-slot search over one or many calendars."""

    def __init__(self, holiday_policy: HolidayPolicy | None = None):
        self.holiday_policy = holiday_policy or HolidayPolicy()

    def find_free_slots(
        self,
        start: datetime,
        end: datetime,
        duration_minutes: int,
        options: SearchOptions,
        busy_spans: Iterable[TimeInterval],
    ) -> list[FreeSlot]:
        """
        Find free slots on a single calendar.

        Args:
            start: First day searched (its calendar date, inclusive)
            end: Search stops at this instant (exclusive)
            duration_minutes: Minimum slot length; must be positive
            options: Business hours and working-day handling
            busy_spans: Occupied intervals; all-day events must already be excluded

        Returns:
            Chronological list of FreeSlot, each at least duration_minutes long
        """
        self._validate(start, end, duration_minutes)
        spans = list(busy_spans)

        with trace_span("availability.find_free_slots", duration_minutes=duration_minutes, busy=len(spans)):
            slots = self._search(start, end, duration_minutes, options, spans)

        logger.debug(f"Found {len(slots)} free slots between {start.isoformat()} and {end.isoformat()}")
        return slots

    def find_free_slots_across_calendars(
        self,
        start: datetime,
        end: datetime,
        duration_minutes: int,
        attendee_calendar_ids: Sequence[str],
        options: SearchOptions,
        busy_spans_by_calendar: Mapping[str, Iterable[TimeInterval]],
        primary_calendar_id: str = PRIMARY_CALENDAR,
    ) -> list[FreeSlot]:
        """
        Find slots that are free on the primary calendar and every attendee's.

        Calendars missing from ``busy_spans_by_calendar`` count as fully free.
        Entries for calendars not in the attendee list are ignored.
        """
        self._validate(start, end, duration_minutes)

        calendar_ids = list(dict.fromkeys([primary_calendar_id, *attendee_calendar_ids]))
        combined: list[TimeInterval] = []
        for calendar_id in calendar_ids:
            spans = list(busy_spans_by_calendar.get(calendar_id) or [])
            logger.debug(f"Calendar {calendar_id}: {len(spans)} busy spans")
            combined.extend(spans)

        with trace_span(
            "availability.find_free_slots_across_calendars",
            duration_minutes=duration_minutes,
            calendars=len(calendar_ids),
            busy=len(combined),
        ):
            slots = self._search(start, end, duration_minutes, options, combined)

        logger.debug(f"Found {len(slots)} common free slots across {len(calendar_ids)} calendars")
        return slots

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _validate(start: datetime, end: datetime, duration_minutes: int) -> None:
        if duration_minutes is None or duration_minutes <= 0:
            raise InputError(f"所要時間は1分以上を指定してください（指定値: {duration_minutes}）")
        if end <= start:
            raise InputError("検索範囲の終了が開始より前になっています。")

    def _search(
        self,
        start: datetime,
        end: datetime,
        duration_minutes: int,
        options: SearchOptions,
        spans: list[TimeInterval],
    ) -> list[FreeSlot]:
        slots: list[FreeSlot] = []
        for day in self._iter_days(start, end):
            if options.exclude_non_working_days and not self.holiday_policy.is_working_day(day):
                info = self.holiday_policy.describe(day)
                reason = "holiday" if info["is_holiday"] else "weekend"
                logger.debug(f"Skipping {day.isoformat()} ({reason})")
                continue

            day_start, day_end = self._day_window(day, start, options)
            slots.extend(self._day_slots(day_start, day_end, duration_minutes, spans))
        return slots

    @staticmethod
    def _iter_days(start: datetime, end: datetime) -> Iterator[date]:
        cursor = start
        while cursor < end:
            yield cursor.date()
            cursor += timedelta(days=1)

    @staticmethod
    def _day_window(day: date, reference: datetime, options: SearchOptions) -> tuple[datetime, datetime]:
        midnight = datetime.combine(day, time.min, tzinfo=reference.tzinfo)
        return (
            midnight + timedelta(hours=options.business_hours_start),
            midnight + timedelta(hours=options.business_hours_end),
        )

    @staticmethod
    def _day_slots(
        day_start: datetime,
        day_end: datetime,
        duration_minutes: int,
        spans: list[TimeInterval],
    ) -> list[FreeSlot]:
        duration = timedelta(minutes=duration_minutes)

        clipped = []
        for span in spans:
            piece = clip(span, day_start, day_end)
            if piece is not None:
                clipped.append(piece)

        slots = []
        candidate_start = day_start
        for busy in merge(clipped):
            if busy.start - candidate_start >= duration:
                slots.append(FreeSlot(start=candidate_start, end=busy.start))
            candidate_start = max(candidate_start, busy.end)

        if day_end - candidate_start >= duration:
            slots.append(FreeSlot(start=candidate_start, end=day_end))

        return slots


__all__ = ["AvailabilityEngine", "PRIMARY_CALENDAR", "SearchOptions", "busy_spans_from_events"]
