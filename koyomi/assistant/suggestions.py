"""
Tool: Suggestion Writer
Purpose: Turn a free-slot pool into a short numbered proposal

The default writer is deterministic and greedy:

    1. the exact preferred time, when one was asked for and it fits a slot
    2. the first slot of each distinct day, earliest day first
    3. remaining slots in chronological order

until ``max_suggestions`` are picked. Picks after the preferred time are
shown in chronological order. Any other writer (for example one backed by
a language model) can be plugged in by subclassing SuggestionWriter.

Usage:
    from koyomi.assistant.suggestions import DefaultSuggestionWriter, SuggestionRequest

    writer = DefaultSuggestionWriter(max_suggestions=3)
    proposal = await writer.write(slots, SuggestionRequest(kind="move", title="定例"))
    proposal.message, proposal.suggestions
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo

from koyomi.assistant.results import Suggestion
from koyomi.calendar.holidays import DAY_NAMES
from koyomi.calendar.models import FreeSlot


@dataclass
class SuggestionRequest:
    """What the proposal is for."""

    kind: str  # "move" or "create"
    title: str = ""
    duration_minutes: int = 60
    preferred_date: date | None = None
    preferred_time: time | None = None
    tz: tzinfo | None = None


@dataclass
class Proposal:
    suggestions: list[Suggestion] = field(default_factory=list)
    message: str = ""


def format_day(day: date) -> str:
    """``3月5日(木)``"""
    return f"{day.month}月{day.day}日({DAY_NAMES[day.weekday()]})"


class SuggestionWriter(ABC):
    """Chooses which free slots to propose and words the proposal."""

    @abstractmethod
    async def write(self, slots: Sequence[FreeSlot], request: SuggestionRequest) -> Proposal:
        """
        Build a proposal.

        Args:
            slots: Free slots, chronological, each long enough for the request
            request: Title, duration and preferences

        Returns:
            Proposal with at least one suggestion when ``slots`` is not empty
        """


class DefaultSuggestionWriter(SuggestionWriter):
    def __init__(self, max_suggestions: int = 3):
        self.max_suggestions = max(1, max_suggestions)

    async def write(self, slots: Sequence[FreeSlot], request: SuggestionRequest) -> Proposal:
        starts = self.pick_starts(slots, request)
        suggestions = [Suggestion.at(start, reason) for start, reason in starts]
        return Proposal(suggestions=suggestions, message=self.compose_message(suggestions, request))

    def pick_starts(self, slots: Sequence[FreeSlot], request: SuggestionRequest) -> list[tuple[datetime, str]]:
        tz = request.tz
        ordered = sorted(slots, key=lambda s: s.start)
        local_starts = [s.start.astimezone(tz) if tz else s.start for s in ordered]

        preferred: tuple[datetime, str] | None = None
        if request.preferred_time is not None:
            preferred = self._preferred_start(ordered, request)

        picked: list[int] = []
        budget = self.max_suggestions - (1 if preferred else 0)

        seen_days: set[date] = set()
        for i, start in enumerate(local_starts):
            if len(picked) >= budget:
                break
            if start.date() not in seen_days and not self._same_as(start, preferred):
                seen_days.add(start.date())
                picked.append(i)

        for i, start in enumerate(local_starts):
            if len(picked) >= budget:
                break
            if i not in picked and not self._same_as(start, preferred):
                picked.append(i)

        picks = []
        first_of_day: set[date] = set()
        for i in sorted(picked):
            start = local_starts[i]
            if start.date() not in first_of_day:
                first_of_day.add(start.date())
                reason = f"{format_day(start.date())}の最初の空き時間です"
            else:
                reason = f"{ordered[i].duration_minutes}分の空きがあります"
            picks.append((start, reason))

        if preferred:
            picks.insert(0, preferred)
        return picks

    @staticmethod
    def _same_as(start: datetime, preferred: tuple[datetime, str] | None) -> bool:
        return preferred is not None and preferred[0] == start

    @staticmethod
    def _preferred_start(slots: Sequence[FreeSlot], request: SuggestionRequest) -> tuple[datetime, str] | None:
        tz = request.tz
        days = sorted({(s.start.astimezone(tz) if tz else s.start).date() for s in slots})
        if request.preferred_date is not None:
            days = [d for d in days if d >= request.preferred_date]

        for day in days:
            candidate = datetime.combine(day, request.preferred_time, tzinfo=tz)
            for slot in slots:
                if slot.can_fit(candidate, request.duration_minutes):
                    return candidate, "ご希望の時刻です"
        return None

    @staticmethod
    def compose_message(suggestions: Sequence[Suggestion], request: SuggestionRequest) -> str:
        verb = "移動先" if request.kind == "move" else "候補"
        title = f"「{request.title}」の" if request.title else ""
        lines = [f"{title}{verb}として{len(suggestions)}件の空き時間が見つかりました。"]
        for i, suggestion in enumerate(suggestions, 1):
            lines.append(f"{i}. {format_day(suggestion.day)} {suggestion.time}")
        lines.append("番号で選ぶか、「14時以降」のように条件を追加してください。")
        return "\n".join(lines)


__all__ = [
    "DefaultSuggestionWriter",
    "Proposal",
    "SuggestionRequest",
    "SuggestionWriter",
    "format_day",
]
