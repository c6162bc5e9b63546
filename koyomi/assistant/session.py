"""
Tool: Assistant Session
Purpose: Per-conversation composition root for the scheduling assistant

One session owns one ConversationContext, one UndoLedger and the
conversation history. Nothing is shared between sessions.

Flow of process_message:

    proposal open?  -> ConversationContext.resolve(utterance)
    otherwise       -> recent events -> IntentProducer -> IntentDispatcher

Usage:
    from koyomi.assistant.session import AssistantSession
    from koyomi.providers import InMemoryCalendarGateway

    session = AssistantSession(InMemoryCalendarGateway(), producer)
    result = await session.process_message("明日の定例を午後に移動して")
    result = await session.process_message("2")
    result = await session.undo()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from koyomi.assistant.collaborators import ConversationalResponder, IntentProducer, StaticResponder, Turn
from koyomi.assistant.context import ConversationContext
from koyomi.assistant.dispatcher import IntentDispatcher, create_default_dispatcher, result_for_error
from koyomi.assistant.handlers.common import Services
from koyomi.assistant.results import DispatchResult
from koyomi.assistant.suggestions import DefaultSuggestionWriter, SuggestionWriter
from koyomi.assistant.undo import UndoLedger
from koyomi.calendar.availability import AvailabilityEngine
from koyomi.calendar.holidays import HolidayPolicy
from koyomi.calendar.models import CalendarEvent
from koyomi.config import SchedulerConfig, load_config
from koyomi.errors import GatewayError, KoyomiError
from koyomi.logging_config import trace_span
from koyomi.providers.base import CalendarGateway
from koyomi.providers.tracing import TracingGateway

logger = logging.getLogger(__name__)

PRODUCER_FAILED = "ご依頼の内容を解析できませんでした。もう一度お試しください。"
UNEXPECTED_ERROR = "予期しないエラーが発生しました。もう一度お試しください。"


class AssistantSession:
    """A single user's conversation with the scheduling assistant."""

    def __init__(
        self,
        gateway: CalendarGateway,
        intent_producer: IntentProducer,
        responder: ConversationalResponder | None = None,
        config: SchedulerConfig | None = None,
        suggestion_writer: SuggestionWriter | None = None,
        holiday_policy: HolidayPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
        trace: bool = True,
    ):
        self.config = config or load_config()
        self.gateway = TracingGateway(gateway) if trace else gateway
        self.intent_producer = intent_producer
        self.responder = responder or StaticResponder()

        if holiday_policy is None:
            holiday_policy = HolidayPolicy(self.config.extra_holidays)
        writer = suggestion_writer or DefaultSuggestionWriter(self.config.max_suggestions)

        self.undo_ledger = UndoLedger(self.gateway)
        self.context = ConversationContext(
            self.gateway,
            self.undo_ledger,
            writer,
            self.config,
            responder=self.responder,
        )
        self.services = Services(
            gateway=self.gateway,
            engine=AvailabilityEngine(holiday_policy),
            context=self.context,
            undo_ledger=self.undo_ledger,
            suggestion_writer=writer,
            responder=self.responder,
            config=self.config,
            clock=clock,
        )
        self.dispatcher: IntentDispatcher = create_default_dispatcher(self.services)

    @property
    def history(self) -> list[Turn]:
        return self.services.history

    def can_undo(self) -> bool:
        return self.undo_ledger.can_undo()

    async def undo(self) -> DispatchResult:
        with trace_span("assistant.undo"):
            return await self.undo_ledger.undo()

    async def process_message(self, utterance: str) -> DispatchResult:
        """Handle one user utterance and record the exchange in the history."""
        if self.context.pending is not None:
            result = await self._resolve(utterance)
        else:
            result = await self._classify_and_dispatch(utterance)

        self._remember(Turn(role="user", content=utterance))
        self._remember(Turn(role="assistant", content=result.message))
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    async def _resolve(self, utterance: str) -> DispatchResult:
        try:
            with trace_span("assistant.resolve", kind=self.context.pending.kind):
                return await self.context.resolve(utterance, self.history)
        except GatewayError as e:
            logger.warning(f"Calendar call failed while resolving a proposal: {e.message}")
            return result_for_error(e)
        except KoyomiError as e:
            return result_for_error(e)
        except Exception as e:
            logger.exception(f"Resolving proposal failed: {e}")
            return DispatchResult.error(UNEXPECTED_ERROR)

    async def _classify_and_dispatch(self, utterance: str) -> DispatchResult:
        recent = await self._recent_events()
        try:
            raw_intent = await self.intent_producer.produce(utterance, recent, list(self.history))
        except Exception as e:
            logger.exception(f"Intent producer failed: {e}")
            return DispatchResult.error(PRODUCER_FAILED)

        logger.debug(f"Intent for '{utterance}': {raw_intent.get('action') if isinstance(raw_intent, dict) else raw_intent}")
        return await self.dispatcher.dispatch(raw_intent, utterance)

    async def _recent_events(self) -> list[CalendarEvent]:
        """Upcoming events passed to the producer to resolve references."""
        now = self.services.now()
        end = now + timedelta(days=self.config.recent_events_window_days)
        try:
            events = await self.gateway.get_events(now, end)
        except GatewayError as e:
            logger.warning(f"Could not load recent events, classifying without them: {e.message}")
            return []
        return events[: self.config.recent_events_limit]

    def _remember(self, turn: Turn) -> None:
        history = self.services.history
        history.append(turn)
        limit = self.config.history_limit
        if len(history) > limit:
            del history[: len(history) - limit]


__all__ = ["AssistantSession"]
