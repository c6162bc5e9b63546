"""Interval primitives: overlap test, merge, clip."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TypeVar

from koyomi.calendar.models import TimeInterval

T = TypeVar("T", bound=TimeInterval)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True when the two half-open intervals share any instant."""
    return a.start < b.end and b.start < a.end


def merge(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Fold overlapping and touching intervals into spanning ones.

    Sorted by start first, so the result does not depend on input order.
    Back-to-back intervals (``a.end == b.start``) merge. The output is a
    list of plain TimeInterval values, chronological and pairwise disjoint.
    """
    ordered = sorted(intervals, key=lambda i: (i.start, i.end))
    if not ordered:
        return []

    merged: list[TimeInterval] = []
    current_start, current_end = ordered[0].start, ordered[0].end

    for interval in ordered[1:]:
        if interval.start <= current_end:
            if interval.end > current_end:
                current_end = interval.end
        else:
            merged.append(TimeInterval(current_start, current_end))
            current_start, current_end = interval.start, interval.end

    merged.append(TimeInterval(current_start, current_end))
    return merged


def clip(interval: TimeInterval, window_start: datetime, window_end: datetime) -> TimeInterval | None:
    """Intersect ``interval`` with ``[window_start, window_end)``; None if empty."""
    start = max(interval.start, window_start)
    end = min(interval.end, window_end)
    if start >= end:
        return None
    return TimeInterval(start, end)


__all__ = ["clip", "merge", "overlaps"]
