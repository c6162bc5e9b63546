"""
Tool: Conversation Context
Purpose: Hold one open slot proposal and resolve the user's follow-up

States:
    idle                 nothing pending
    awaiting_selection   a move or create proposal is open

While a proposal is open, each utterance is checked in this order:

    1. time-of-day refinement ("14時以降", "午前中") -> re-propose from the
       full slot pool, stay open
    2. "翌日"            -> pick the proposal on the day after the event
    3. number or yes     -> pick that proposal (yes picks the first)
    4. no / cancel       -> drop the proposal
    5. anything else     -> conversational reply, proposal stays open

Picking commits the change through the gateway, records it in the undo
ledger and returns to idle.

Usage:
    from koyomi.assistant.context import ConversationContext, Negotiation

    context = ConversationContext(gateway, ledger, writer, config)
    context.open(Negotiation(kind="move", suggestions=..., free_slots=..., event=event))
    result = await context.resolve("2")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

from koyomi.assistant.collaborators import ConversationalResponder, StaticResponder, Turn
from koyomi.assistant.phrases import (
    is_affirmative,
    is_negative,
    mentions_next_day,
    parse_selection_number,
    parse_time_constraint,
)
from koyomi.assistant.results import DispatchResult, Suggestion
from koyomi.assistant.suggestions import SuggestionRequest, SuggestionWriter
from koyomi.assistant.undo import CreateRecord, MoveRecord, UndoLedger
from koyomi.calendar.models import CalendarEvent, EventDraft, EventPatch, EventTime, FreeSlot
from koyomi.config import SchedulerConfig
from koyomi.errors import StateError
from koyomi.providers.base import CalendarGateway

logger = logging.getLogger(__name__)

MOVE = "move"
CREATE = "create"


class ContextState(str, Enum):
    IDLE = "idle"
    AWAITING_SELECTION = "awaiting_selection"


@dataclass
class Negotiation:
    """An open proposal."""

    kind: str  # MOVE or CREATE
    suggestions: list[Suggestion]
    free_slots: list[FreeSlot]

    # move
    event: CalendarEvent | None = None
    human_attendees: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)

    # create
    title: str = ""
    duration_minutes: int = 60

    @property
    def display_title(self) -> str:
        return self.event.title if self.event is not None else self.title

    @property
    def event_duration_minutes(self) -> int:
        return self.event.duration_minutes if self.event is not None else self.duration_minutes

    def event_summary(self) -> dict[str, Any] | None:
        """Event details shown next to a move proposal."""
        if self.event is None:
            return None
        start = self.event.start
        return {
            "summary": self.event.title,
            "start": start.date_time.isoformat() if start.date_time else start.day.isoformat(),
            "attendees": [a.email for a in self.event.attendees if a.email],
            "humanAttendees": list(self.human_attendees),
            "roomResources": list(self.resources),
        }


class ConversationContext:
    """At most one open negotiation per session."""

    def __init__(
        self,
        gateway: CalendarGateway,
        undo_ledger: UndoLedger,
        suggestion_writer: SuggestionWriter,
        config: SchedulerConfig,
        responder: ConversationalResponder | None = None,
    ):
        self.gateway = gateway
        self.undo_ledger = undo_ledger
        self.suggestion_writer = suggestion_writer
        self.config = config
        self.tz = config.tzinfo
        self.responder = responder or StaticResponder()
        self._pending: Negotiation | None = None

    @property
    def state(self) -> ContextState:
        return ContextState.IDLE if self._pending is None else ContextState.AWAITING_SELECTION

    @property
    def pending(self) -> Negotiation | None:
        return self._pending

    def open(self, negotiation: Negotiation) -> None:
        if self._pending is not None:
            logger.warning(
                f"Discarding unresolved {self._pending.kind} proposal for "
                f"'{self._pending.display_title}' in favour of a new {negotiation.kind} proposal"
            )
        self._pending = negotiation

    def clear(self) -> None:
        self._pending = None

    async def resolve(self, utterance: str, history: Sequence[Turn] = ()) -> DispatchResult:
        """
        Resolve a follow-up against the open proposal.

        Raises:
            StateError: when nothing is pending
            GatewayError: when committing the pick fails (the proposal stays open)
        """
        negotiation = self._pending
        if negotiation is None:
            raise StateError("確認待ちの提案がありません。")

        window = parse_time_constraint(utterance)
        if window is not None:
            return await self._refine(negotiation, window)

        if mentions_next_day(utterance) and negotiation.event is not None:
            target = (negotiation.event.start_at(self.tz).date() + timedelta(days=1)).isoformat()
            for index, suggestion in enumerate(negotiation.suggestions):
                if suggestion.date == target:
                    logger.debug(f"Next-day reference picked proposal {index + 1}")
                    return await self._commit(negotiation, index)

        count = len(negotiation.suggestions)
        number = parse_selection_number(utterance, count)
        if number is not None:
            if not 1 <= number <= count:
                return DispatchResult.info(f"1〜{count}の番号で選んでください。")
            return await self._commit(negotiation, number - 1)

        # A negative word vetoes acceptance here, so "キャンセルお願い" reaches
        # the cancel branch below instead of picking the first proposal.
        if is_affirmative(utterance):
            return await self._commit(negotiation, 0)

        if is_negative(utterance):
            self.clear()
            logger.info(f"{negotiation.kind} proposal cancelled")
            return DispatchResult.info("わかりました。キャンセルしました。")

        reply = await self.responder.respond(utterance, history)
        return DispatchResult.info(reply)

    # =========================================================================
    # Transitions
    # =========================================================================

    async def _refine(self, negotiation: Negotiation, window) -> DispatchResult:
        filtered = [s for s in negotiation.free_slots if window.contains(s.start.astimezone(self.tz).hour)]
        logger.debug(f"Refined {len(negotiation.free_slots)} slots to {len(filtered)} ({window.describe()})")

        if not filtered:
            return DispatchResult.info("その時間帯には空きがありませんでした。他の条件をお試しください。")

        proposal = await self.suggestion_writer.write(
            filtered,
            SuggestionRequest(
                kind=negotiation.kind,
                title=negotiation.display_title,
                duration_minutes=negotiation.event_duration_minutes,
                tz=self.tz,
            ),
        )
        negotiation.suggestions = proposal.suggestions
        return DispatchResult.suggest(proposal.message, proposal.suggestions, event=negotiation.event_summary())

    async def _commit(self, negotiation: Negotiation, index: int) -> DispatchResult:
        suggestion = negotiation.suggestions[index]
        start = suggestion.start_at(self.tz)
        end = start + timedelta(minutes=negotiation.event_duration_minutes)
        when = f"{suggestion.date} {suggestion.time}"

        if negotiation.kind == MOVE:
            event = negotiation.event
            await self.gateway.update_event(
                event.id,
                EventPatch(
                    start=EventTime.at(start, self.config.timezone),
                    end=EventTime.at(end, self.config.timezone),
                ),
            )
            self.undo_ledger.record(
                MoveRecord(
                    event_id=event.id,
                    title=event.title,
                    original_start=event.start,
                    original_end=event.end,
                )
            )
            self.clear()
            logger.info(f"Moved event {event.id} to {when}")
            return DispatchResult.success(f"「{event.title}」を{when}に移動しました！")

        created = await self.gateway.create_event(
            EventDraft(
                title=negotiation.title,
                start=EventTime.at(start, self.config.timezone),
                end=EventTime.at(end, self.config.timezone),
            )
        )
        self.undo_ledger.record(CreateRecord(event_id=created.id, title=negotiation.title))
        self.clear()
        logger.info(f"Created event {created.id} at {when}")
        return DispatchResult.success(f"「{negotiation.title}」を{when}に作成しました！")


__all__ = ["CREATE", "ContextState", "ConversationContext", "MOVE", "Negotiation"]
