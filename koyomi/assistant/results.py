"""Assistant result types.

Every handler, the conversation resolver and undo return a DispatchResult:

    success      a calendar change was made
    message      information, or an expected dead end (nothing found)
    error        invalid input or a failed remote call
    suggestions  candidate slots were proposed and a negotiation is open
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, time, tzinfo
from enum import Enum
from typing import Any


class ResultType(str, Enum):
    SUCCESS = "success"
    MESSAGE = "message"
    ERROR = "error"
    SUGGESTIONS = "suggestions"


@dataclass
class Suggestion:
    """A proposed start time, as shown to the user."""

    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    reason: str = ""

    @classmethod
    def at(cls, start: datetime, reason: str = "") -> "Suggestion":
        return cls(date=start.strftime("%Y-%m-%d"), time=start.strftime("%H:%M"), reason=reason)

    @property
    def day(self) -> date_type:
        return date_type.fromisoformat(self.date)

    def start_at(self, tz: tzinfo | None) -> datetime:
        return datetime.combine(self.day, time.fromisoformat(self.time), tzinfo=tz)

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "time": self.time, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Suggestion":
        return cls(date=data["date"], time=data["time"], reason=data.get("reason", ""))


@dataclass
class DispatchResult:
    """Result of handling one utterance or intent."""

    type: ResultType
    message: str
    event: dict[str, Any] | None = None
    suggestions: list[Suggestion] = field(default_factory=list)
    undone: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, message: str, **data: Any) -> "DispatchResult":
        return cls(type=ResultType.SUCCESS, message=message, data=data)

    @classmethod
    def info(cls, message: str, **data: Any) -> "DispatchResult":
        return cls(type=ResultType.MESSAGE, message=message, data=data)

    @classmethod
    def error(cls, message: str, **data: Any) -> "DispatchResult":
        return cls(type=ResultType.ERROR, message=message, data=data)

    @classmethod
    def suggest(
        cls,
        message: str,
        suggestions: list[Suggestion],
        event: dict[str, Any] | None = None,
    ) -> "DispatchResult":
        return cls(type=ResultType.SUGGESTIONS, message=message, suggestions=list(suggestions), event=event)

    @property
    def ok(self) -> bool:
        return self.type != ResultType.ERROR

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.type == ResultType.SUGGESTIONS:
            d["suggestions"] = [s.to_dict() for s in self.suggestions]
            if self.event is not None:
                d["event"] = self.event
        if self.undone:
            d["undone"] = True
        if self.data:
            d["data"] = self.data
        return d


__all__ = ["DispatchResult", "ResultType", "Suggestion"]
