"""RFC 5545 recurrence rules for recurring events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo

FREQUENCIES = ("daily", "weekly", "monthly", "yearly")
WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")
END_OF_DAY = time(23, 59, 59)

FREQUENCY_LABELS = {
    "daily": "毎日",
    "weekly": "毎週",
    "monthly": "毎月",
    "yearly": "毎年",
}


@dataclass
class RecurrenceSpec:
    frequency: str
    interval: int | None = None
    count: int | None = None
    until: date | datetime | None = None
    by_day: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return FREQUENCY_LABELS.get(self.frequency, self.frequency)


def format_until(until: date | datetime, tz: tzinfo | None = None) -> str:
    """UTC basic format, e.g. ``20261231T150000Z``.

    A bare date means the last second of that day in ``tz``, so
    occurrences on the until-date itself are kept.
    """
    if not isinstance(until, datetime):
        until = datetime.combine(until, END_OF_DAY, tzinfo=tz)
    if until.tzinfo is None:
        until = until.replace(tzinfo=tz or timezone.utc)
    return until.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def build_rrule(spec: RecurrenceSpec, tz: tzinfo | None = None) -> str:
    """
    Build an ``RRULE:`` line.

    Example:
        >>> build_rrule(RecurrenceSpec("weekly", interval=2, by_day=["MO", "WE"]))
        'RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE'
    """
    if spec.frequency not in FREQUENCIES:
        raise ValueError(f"Unknown frequency: {spec.frequency}")

    parts = [f"RRULE:FREQ={spec.frequency.upper()}"]

    if spec.interval and spec.interval > 1:
        parts.append(f"INTERVAL={spec.interval}")

    if spec.count:
        parts.append(f"COUNT={spec.count}")

    if spec.until:
        parts.append(f"UNTIL={format_until(spec.until, tz)}")

    if spec.by_day:
        parts.append(f"BYDAY={','.join(d.upper() for d in spec.by_day)}")

    return ";".join(parts)


__all__ = ["FREQUENCIES", "FREQUENCY_LABELS", "RecurrenceSpec", "WEEKDAY_CODES", "build_rrule", "format_until"]
