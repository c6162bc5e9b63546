"""Conversational handlers: confirm and other."""

from __future__ import annotations

from koyomi.assistant.handlers.common import Services
from koyomi.assistant.intents import ConfirmIntent, OtherIntent
from koyomi.assistant.results import DispatchResult


async def handle_confirm(intent: ConfirmIntent, services: Services, utterance: str = "") -> DispatchResult:
    """Feed the classifier's reading of the reply back into the open proposal."""
    return await services.context.resolve(intent.user_response or utterance, services.history)


async def handle_other(intent: OtherIntent, services: Services, utterance: str = "") -> DispatchResult:
    reply = await services.responder.respond(utterance, services.history)
    return DispatchResult.info(reply)


__all__ = ["handle_confirm", "handle_other"]
