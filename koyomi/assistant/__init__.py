"""Conversational layer: intents, dispatch, proposals, undo and sessions."""

from koyomi.assistant.collaborators import ConversationalResponder, IntentProducer, StaticResponder, Turn
from koyomi.assistant.results import DispatchResult, ResultType, Suggestion
from koyomi.assistant.session import AssistantSession

__all__ = [
    "AssistantSession",
    "ConversationalResponder",
    "DispatchResult",
    "IntentProducer",
    "ResultType",
    "StaticResponder",
    "Suggestion",
    "Turn",
]
