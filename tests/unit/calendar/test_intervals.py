"""Tests for interval merge, overlap and clip."""

import itertools
import random
from datetime import timedelta

from koyomi.calendar.intervals import clip, merge, overlaps
from koyomi.calendar.models import BusySpan, TimeInterval
from tests.conftest import at


def span(start: str, end: str, day: str = "2026-03-05") -> TimeInterval:
    return TimeInterval(at(day, start), at(day, end))


class TestOverlaps:
    def test_overlapping(self):
        assert overlaps(span("09:00", "10:30"), span("10:00", "11:00"))

    def test_contained(self):
        assert overlaps(span("09:00", "12:00"), span("10:00", "11:00"))

    def test_touching_is_not_overlap(self):
        assert not overlaps(span("09:00", "10:00"), span("10:00", "11:00"))

    def test_disjoint(self):
        assert not overlaps(span("09:00", "10:00"), span("13:00", "14:00"))


class TestMerge:
    """merge() folds overlapping and touching spans."""

    def test_empty(self):
        assert merge([]) == []

    def test_overlapping_and_touching_spans_fold(self):
        result = merge([span("09:00", "10:00"), span("10:00", "11:00"), span("10:30", "12:00")])
        assert result == [span("09:00", "12:00")]

    def test_disjoint_spans_stay_separate_and_sorted(self):
        result = merge([span("14:00", "15:00"), span("09:00", "10:00")])
        assert result == [span("09:00", "10:00"), span("14:00", "15:00")]

    def test_contained_span_is_absorbed(self):
        assert merge([span("09:00", "17:00"), span("10:00", "11:00")]) == [span("09:00", "17:00")]

    def test_accepts_busy_spans_from_many_calendars(self):
        result = merge([
            BusySpan(at("2026-03-05", "09:00"), at("2026-03-05", "10:00"), "a@example.com"),
            BusySpan(at("2026-03-05", "09:30"), at("2026-03-05", "11:00"), "b@example.com"),
        ])
        assert result == [span("09:00", "11:00")]

    def test_idempotent(self):
        spans = [span("09:00", "10:00"), span("09:30", "11:00"), span("13:00", "14:00"), span("14:00", "14:30")]
        once = merge(spans)
        assert merge(once) == once

    def test_order_independent(self):
        spans = [span("09:00", "10:00"), span("09:30", "11:00"), span("13:00", "14:00"), span("16:00", "17:00")]
        expected = merge(spans)
        for permutation in itertools.permutations(spans):
            assert merge(permutation) == expected

    def test_result_is_pairwise_disjoint(self):
        rng = random.Random(7)
        spans = []
        for _ in range(40):
            start = rng.randrange(0, 20 * 60)
            length = rng.randrange(5, 180)
            begin = at("2026-03-05", "00:00") + timedelta(minutes=start)
            spans.append(TimeInterval(begin, begin + timedelta(minutes=length)))
        result = merge(spans)
        for a, b in zip(result, result[1:]):
            assert a.end < b.start


class TestClip:
    def test_clip_inside(self):
        assert clip(span("08:00", "10:00"), at("2026-03-05", "09:00"), at("2026-03-05", "18:00")) == span("09:00", "10:00")

    def test_clip_outside(self):
        assert clip(span("07:00", "08:00"), at("2026-03-05", "09:00"), at("2026-03-05", "18:00")) is None
