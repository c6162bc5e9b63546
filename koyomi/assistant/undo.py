"""
Tool: Undo Ledger
Purpose: Remember the last calendar change and reverse it once

Holds at most one record. Each mutating action overwrites it; a successful
undo clears it, so a second undo reports that there is nothing to undo.
A failed undo keeps the record so the user can try again.

    create -> delete the created event
    move   -> patch the event back to its original start/end
    delete -> recreate the event from its snapshot (gets a new ID)

Usage:
    from koyomi.assistant.undo import UndoLedger, MoveRecord

    ledger = UndoLedger(gateway)
    ledger.record(MoveRecord(event_id="abc", title="定例", original_start=s, original_end=e))
    result = await ledger.undo()
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Union

from koyomi.assistant.results import DispatchResult
from koyomi.calendar.models import CalendarEvent, EventDraft, EventPatch, EventTime
from koyomi.errors import GatewayError
from koyomi.providers.base import CalendarGateway

logger = logging.getLogger(__name__)

NOTHING_TO_UNDO = "取り消せる操作がありません。"


@dataclass
class CreateRecord:
    event_id: str
    title: str
    kind: str = "create"


@dataclass
class MoveRecord:
    event_id: str
    title: str
    original_start: EventTime
    original_end: EventTime
    kind: str = "move"


@dataclass
class DeleteRecord:
    event: CalendarEvent
    kind: str = "delete"

    @property
    def title(self) -> str:
        return self.event.title


UndoRecord = Union[CreateRecord, MoveRecord, DeleteRecord]


class UndoLedger:
    """Single-slot undo for one session."""

    def __init__(self, gateway: CalendarGateway):
        self.gateway = gateway
        self._record: UndoRecord | None = None

    @property
    def last(self) -> UndoRecord | None:
        return self._record

    def can_undo(self) -> bool:
        return self._record is not None

    def record(self, record: UndoRecord) -> None:
        if isinstance(record, DeleteRecord):
            record = DeleteRecord(event=record.event.snapshot())
        elif isinstance(record, MoveRecord):
            record = MoveRecord(
                event_id=record.event_id,
                title=record.title,
                original_start=copy.deepcopy(record.original_start),
                original_end=copy.deepcopy(record.original_end),
            )
        if self._record is not None:
            logger.debug(f"Undo record replaced: {self._record.kind} -> {record.kind}")
        self._record = record

    def clear(self) -> None:
        self._record = None

    async def undo(self) -> DispatchResult:
        """Reverse the last change. Never raises for an empty ledger."""
        record = self._record
        if record is None:
            return DispatchResult.info(NOTHING_TO_UNDO)

        try:
            if isinstance(record, CreateRecord):
                await self.gateway.delete_event(record.event_id)
                message = f"「{record.title}」の作成を取り消しました。"
            elif isinstance(record, MoveRecord):
                await self.gateway.update_event(
                    record.event_id,
                    EventPatch(start=record.original_start, end=record.original_end),
                )
                message = f"「{record.title}」の移動を取り消しました。"
            else:
                restored = await self.gateway.create_event(EventDraft.from_event(record.event))
                logger.info(f"Restored deleted event {record.event.id} as {restored.id}")
                message = f"「{record.title}」の削除を取り消しました。"
        except GatewayError as e:
            logger.warning(f"Undo of {record.kind} failed: {e.message}")
            return DispatchResult.error(f"取り消し処理でエラーが発生しました: {e.message}")

        self._record = None
        result = DispatchResult.success(message)
        result.undone = True
        return result


__all__ = ["CreateRecord", "DeleteRecord", "MoveRecord", "NOTHING_TO_UNDO", "UndoLedger", "UndoRecord"]
