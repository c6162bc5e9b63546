"""
Tool: Holiday Policy
Purpose: Decide whether a calendar date counts as a working day

Saturdays, Sundays and Japanese national holidays are non-working days.
Years with a full table (2026, 2027) are checked against it; any other year
falls back to the non-movable holidays by month/day. The fallback is
approximate (no equinoxes, Happy Monday holidays or substitute days), so
deployments should feed authoritative dates through ``extra_holidays``.

Usage:
    from koyomi.calendar.holidays import HolidayPolicy

    policy = HolidayPolicy()
    policy.is_working_day(date(2026, 5, 6))   # False (substitute holiday)
    policy.describe(date(2026, 5, 9))         # {... "day_name": "土"}
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any


HOLIDAYS_BY_YEAR: dict[int, frozenset[date]] = {
    2026: frozenset(
        date.fromisoformat(d)
        for d in (
            "2026-01-01",  # 元日
            "2026-01-12",  # 成人の日
            "2026-02-11",  # 建国記念の日
            "2026-02-23",  # 天皇誕生日
            "2026-03-20",  # 春分の日
            "2026-04-29",  # 昭和の日
            "2026-05-03",  # 憲法記念日
            "2026-05-04",  # みどりの日
            "2026-05-05",  # こどもの日
            "2026-05-06",  # 振替休日
            "2026-07-20",  # 海の日
            "2026-08-11",  # 山の日
            "2026-09-21",  # 敬老の日
            "2026-09-22",  # 秋分の日
            "2026-10-12",  # スポーツの日
            "2026-11-03",  # 文化の日
            "2026-11-23",  # 勤労感謝の日
        )
    ),
    2027: frozenset(
        date.fromisoformat(d)
        for d in (
            "2027-01-01",  # 元日
            "2027-01-11",  # 成人の日
            "2027-02-11",  # 建国記念の日
            "2027-02-23",  # 天皇誕生日
            "2027-03-20",  # 春分の日
            "2027-04-29",  # 昭和の日
            "2027-05-03",  # 憲法記念日
            "2027-05-04",  # みどりの日
            "2027-05-05",  # こどもの日
            "2027-07-19",  # 海の日
            "2027-08-11",  # 山の日
            "2027-09-20",  # 敬老の日
            "2027-09-23",  # 秋分の日
            "2027-10-11",  # スポーツの日
            "2027-11-03",  # 文化の日
            "2027-11-23",  # 勤労感謝の日
        )
    ),
}

# (month, day) of holidays that never move
FIXED_HOLIDAYS: frozenset[tuple[int, int]] = frozenset({
    (1, 1),    # 元日
    (2, 11),   # 建国記念の日
    (2, 23),   # 天皇誕生日
    (4, 29),   # 昭和の日
    (5, 3),    # 憲法記念日
    (5, 4),    # みどりの日
    (5, 5),    # こどもの日
    (8, 11),   # 山の日
    (11, 3),   # 文化の日
    (11, 23),  # 勤労感謝の日
})

DAY_NAMES = ["月", "火", "水", "木", "金", "土", "日"]  # date.weekday() order


class HolidayPolicy:
    """Working-day rule: weekday and not a known holiday."""

    def __init__(self, extra_holidays: Iterable[date] = ()):
        self.extra_holidays = frozenset(extra_holidays)

    def is_weekend(self, day: date) -> bool:
        return day.weekday() >= 5  # Saturday=5, Sunday=6

    def is_holiday(self, day: date) -> bool:
        if day in self.extra_holidays:
            return True

        table = HOLIDAYS_BY_YEAR.get(day.year)
        if table is not None:
            return day in table

        return (day.month, day.day) in FIXED_HOLIDAYS

    def is_working_day(self, day: date) -> bool:
        return not (self.is_weekend(day) or self.is_holiday(day))

    def describe(self, day: date) -> dict[str, Any]:
        """Holiday info for logging and display."""
        is_holiday = self.is_holiday(day)
        is_weekend = self.is_weekend(day)
        return {
            "is_holiday": is_holiday,
            "is_weekend": is_weekend,
            "is_non_working_day": is_holiday or is_weekend,
            "day_name": DAY_NAMES[day.weekday()],
        }


__all__ = ["DAY_NAMES", "FIXED_HOLIDAYS", "HOLIDAYS_BY_YEAR", "HolidayPolicy"]
