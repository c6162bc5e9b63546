"""Recognisers for follow-up utterances while a proposal is open.

Patterns are applied to NFKC-normalised text, so full-width digits
("１４時以降") read the same as ASCII ones.

    "14時以降" / "10時まで" / "午前中" / "夕方"   -> time window refinement
    "翌日"                                       -> day after the original event
    "2番目" / "3つ目" / "2"                      -> numbered pick
    "それでお願い" / "ok"                         -> accept the first proposal
    "キャンセル" / "やめて"                        -> abandon the proposal
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

AFFIRMATIVE_PHRASES = (
    "それで",
    "お願い",
    "はい",
    "いいよ",
    "それでいい",
    "1番目",
    "最初",
    "やって",
    "頼む",
    "よろしく",
    "了解",
)
AFFIRMATIVE_WORDS = ("ok", "yes")

NEGATIVE_PHRASES = ("いいえ", "やめて", "キャンセル", "だめ", "違う")
NEGATIVE_WORDS = ("no",)

NEXT_DAY_PHRASE = "翌日"

_ORDINAL = re.compile(r"(\d+)\s*(番目|番|つ目)")
_BARE_NUMBER = re.compile(r"^(\d+)$")

_AFTER = re.compile(r"(\d+)時以降")
_BEFORE = re.compile(r"(\d+)時以前")
_FROM = re.compile(r"(\d+)時から")
_UNTIL = re.compile(r"(\d+)時まで")

# Named parts of the day as (min_hour, max_hour)
_DAY_PARTS: tuple[tuple[str, int | None, int | None], ...] = (
    ("午前中", None, 12),
    ("午後", 12, None),
    ("朝", 6, 10),
    ("昼", 11, 14),
    ("夕方", 16, 19),
)


def _normalize(text: str) -> str:
    return unicodedata.normalize("NFKC", text or "").strip().lower()


def _has_word(text: str, words: tuple[str, ...]) -> bool:
    return any(re.search(rf"(?<![a-z]){re.escape(w)}(?![a-z])", text) for w in words)


@dataclass(frozen=True)
class TimeWindow:
    """Start-hour filter ``min_hour <= hour < max_hour``; None means open."""

    min_hour: int | None = None
    max_hour: int | None = None

    def contains(self, hour: int) -> bool:
        if self.min_hour is not None and hour < self.min_hour:
            return False
        if self.max_hour is not None and hour >= self.max_hour:
            return False
        return True

    def describe(self) -> str:
        if self.min_hour is not None and self.max_hour is not None:
            return f"{self.min_hour}時〜{self.max_hour}時"
        if self.min_hour is not None:
            return f"{self.min_hour}時以降"
        return f"{self.max_hour}時より前"


def parse_time_constraint(text: str) -> TimeWindow | None:
    """
    Extract a start-hour window from an utterance.

    Rules apply in a fixed order and a later rule overwrites the bound an
    earlier one set, so "朝" wins over "9時以降" in the same sentence.
    """
    text = _normalize(text)
    min_hour: int | None = None
    max_hour: int | None = None
    matched = False

    for pattern, bound in ((_AFTER, "min"), (_BEFORE, "max"), (_FROM, "min"), (_UNTIL, "max")):
        match = pattern.search(text)
        if not match:
            continue
        matched = True
        if bound == "min":
            min_hour = int(match.group(1))
        else:
            max_hour = int(match.group(1))

    for phrase, low, high in _DAY_PARTS:
        if phrase in text:
            matched = True
            if low is not None:
                min_hour = low
            if high is not None:
                max_hour = high

    if not matched:
        return None
    return TimeWindow(min_hour=min_hour, max_hour=max_hour)


def mentions_next_day(text: str) -> bool:
    return NEXT_DAY_PHRASE in _normalize(text)


def parse_selection_number(text: str, count: int) -> int | None:
    """
    Return the 1-based number the user picked, or None.

    An explicit ordinal ("2番目") is returned as written even when out of
    range so the caller can say so; a bare number only counts when it is
    within ``1..count``.
    """
    text = _normalize(text)
    match = _ORDINAL.search(text)
    if match:
        return int(match.group(1))
    match = _BARE_NUMBER.match(text)
    if match:
        number = int(match.group(1))
        if 1 <= number <= count:
            return number
    return None


def is_negative(text: str) -> bool:
    text = _normalize(text)
    return any(p in text for p in NEGATIVE_PHRASES) or _has_word(text, NEGATIVE_WORDS)


def is_affirmative(text: str) -> bool:
    """Acceptance without a number. "キャンセルお願い" is not acceptance."""
    text = _normalize(text)
    if is_negative(text):
        return False
    return any(p in text for p in AFFIRMATIVE_PHRASES) or _has_word(text, AFFIRMATIVE_WORDS)


__all__ = [
    "AFFIRMATIVE_PHRASES",
    "NEGATIVE_PHRASES",
    "TimeWindow",
    "is_affirmative",
    "is_negative",
    "mentions_next_day",
    "parse_selection_number",
    "parse_time_constraint",
]
