"""
External collaborators of an assistant session.

IntentProducer turns an utterance into a raw intent dict (typically a
language-model classifier). ConversationalResponder produces free-form
replies for small talk and for follow-ups the resolver does not understand.
Both live outside this package; these ABCs are the contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from koyomi.calendar.models import CalendarEvent


@dataclass
class Turn:
    """One entry of the conversation history."""

    role: str  # "user" or "assistant"
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


class IntentProducer(ABC):
    @abstractmethod
    async def produce(
        self,
        utterance: str,
        recent_events: Sequence[CalendarEvent],
        history: Sequence[Turn],
    ) -> dict[str, Any]:
        """
        Classify an utterance.

        Args:
            utterance: What the user said
            recent_events: Upcoming events, to resolve references like "the standup"
            history: Earlier turns, oldest first

        Returns:
            Raw intent with an ``action`` key and camelCase fields
        """


class ConversationalResponder(ABC):
    @abstractmethod
    async def respond(self, utterance: str, history: Sequence[Turn]) -> str:
        """Reply to an utterance that is not a calendar operation."""


class StaticResponder(ConversationalResponder):
    """Fixed reply; used when no responder is configured."""

    def __init__(self, reply: str = "カレンダーの操作をお手伝いします。予定の移動・作成・確認などをお申し付けください。"):
        self.reply = reply

    async def respond(self, utterance: str, history: Sequence[Turn]) -> str:
        return self.reply


__all__ = ["ConversationalResponder", "IntentProducer", "StaticResponder", "Turn"]
