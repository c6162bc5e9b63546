"""Calendar domain: intervals, holidays, availability, matching, recurrence."""

from koyomi.calendar.availability import AvailabilityEngine, SearchOptions
from koyomi.calendar.holidays import HolidayPolicy
from koyomi.calendar.intervals import merge, overlaps

__all__ = [
    "AvailabilityEngine",
    "HolidayPolicy",
    "SearchOptions",
    "merge",
    "overlaps",
]
