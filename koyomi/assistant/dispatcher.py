"""Route validated intents to their handlers.

The dispatcher validates the raw intent once, runs the registered handler
inside a trace span and turns every KoyomiError into a result, so callers
always get exactly one DispatchResult back.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from koyomi.assistant.handlers.common import Services
from koyomi.assistant.intents import parse_intent
from koyomi.assistant.results import DispatchResult
from koyomi.errors import GatewayError, InputError, KoyomiError, NotFoundError, StateError
from koyomi.logging_config import trace_span

logger = logging.getLogger(__name__)

# Handler type: async function(intent, services, utterance) -> DispatchResult
HandlerFn = Callable[[Any, Services, str], Awaitable[DispatchResult]]

UNEXPECTED_ERROR = "予期しないエラーが発生しました。もう一度お試しください。"


def result_for_error(error: KoyomiError) -> DispatchResult:
    """Map the error taxonomy onto result kinds."""
    if isinstance(error, (NotFoundError, StateError)):
        return DispatchResult.info(error.message)
    if isinstance(error, GatewayError):
        return DispatchResult.error(error.message, status=error.status)
    return DispatchResult.error(error.message)


class IntentDispatcher:
    """Routes intents to registered handlers."""

    def __init__(self, services: Services):
        self.services = services
        self._handlers: dict[str, HandlerFn] = {}

    def register(self, action: str, handler: HandlerFn) -> None:
        """Register a handler for an intent action."""
        self._handlers[action] = handler

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    async def dispatch(self, raw_intent: dict[str, Any] | BaseModel, utterance: str = "") -> DispatchResult:
        """Validate and handle one intent.

        Never raises for expected failures; unexpected exceptions are
        logged with a traceback and reported as an error result.
        """
        start = time.monotonic()

        try:
            intent = parse_intent(raw_intent)
        except InputError as e:
            logger.info(f"Rejected intent: {e.message}")
            return DispatchResult.error(e.message)

        action = intent.action
        handler = self._handlers.get(action)
        if handler is None:
            logger.warning(f"No handler registered for '{action}'")
            return DispatchResult.error(f"「{action}」には対応していません。")

        try:
            with trace_span("assistant.dispatch", action=action):
                result = await handler(intent, self.services, utterance)
        except GatewayError as e:
            logger.warning(f"Calendar call failed during '{action}' (status={e.status}): {e.message}")
            result = result_for_error(e)
        except KoyomiError as e:
            logger.info(f"'{action}' ended with {type(e).__name__}: {e.message}")
            result = result_for_error(e)
        except Exception as e:
            logger.exception(f"Intent handler for '{action}' failed: {e}")
            result = DispatchResult.error(UNEXPECTED_ERROR)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug(f"Dispatched '{action}' -> {result.type.value} in {elapsed_ms}ms")
        return result


def create_default_dispatcher(services: Services) -> IntentDispatcher:
    """Create a dispatcher with every intent handler registered."""
    from koyomi.assistant.handlers.conversation import handle_confirm, handle_other
    from koyomi.assistant.handlers.events import (
        handle_add_attendees,
        handle_delete,
        handle_remove_attendees,
        handle_set_reminder,
        handle_update,
    )
    from koyomi.assistant.handlers.queries import handle_query
    from koyomi.assistant.handlers.responses import handle_bulk_respond, handle_respond
    from koyomi.assistant.handlers.scheduling import (
        handle_create,
        handle_create_recurring,
        handle_move,
    )

    dispatcher = IntentDispatcher(services)

    # Slot search
    dispatcher.register("move", handle_move)
    dispatcher.register("create", handle_create)
    dispatcher.register("create_recurring", handle_create_recurring)

    # Single-event changes
    dispatcher.register("delete", handle_delete)
    dispatcher.register("update", handle_update)
    dispatcher.register("set_reminder", handle_set_reminder)
    dispatcher.register("add_attendees", handle_add_attendees)
    dispatcher.register("remove_attendees", handle_remove_attendees)

    # Invitations
    dispatcher.register("respond", handle_respond)
    dispatcher.register("bulk_respond", handle_bulk_respond)

    # Read-only and conversational
    dispatcher.register("query", handle_query)
    dispatcher.register("confirm", handle_confirm)
    dispatcher.register("other", handle_other)

    return dispatcher


__all__ = ["IntentDispatcher", "create_default_dispatcher", "result_for_error"]
