"""Handlers that change a single existing event."""

from __future__ import annotations

import logging

from koyomi.assistant.handlers.common import Services, find_event
from koyomi.assistant.intents import (
    AddAttendeesIntent,
    DeleteIntent,
    RemoveAttendeesIntent,
    SetReminderIntent,
    UpdateIntent,
)
from koyomi.assistant.results import DispatchResult
from koyomi.assistant.undo import DeleteRecord
from koyomi.calendar.models import Attendee, EventPatch, Reminder

logger = logging.getLogger(__name__)


async def handle_delete(intent: DeleteIntent, services: Services, utterance: str = "") -> DispatchResult:
    event = await find_event(services, intent.date, intent.event_query)
    snapshot = event.snapshot()

    await services.gateway.delete_event(event.id)
    services.undo_ledger.record(DeleteRecord(event=snapshot))
    logger.info(f"Deleted event {event.id}: {event.title}")

    return DispatchResult.success(f"「{event.title}」を削除しました。")


async def handle_update(intent: UpdateIntent, services: Services, utterance: str = "") -> DispatchResult:
    """Patch only the provided subset of title, description and location."""
    event = await find_event(services, intent.date, intent.event_query)

    patch = EventPatch(title=intent.title, description=intent.description, location=intent.location)
    await services.gateway.update_event(event.id, patch)

    parts = []
    if intent.title:
        parts.append(f"タイトル: {intent.title}")
    if intent.description:
        parts.append(f"説明: {intent.description}")
    if intent.location:
        parts.append(f"場所: {intent.location}")

    return DispatchResult.success(f"「{event.title}」を更新しました。\n" + "\n".join(parts))


async def handle_set_reminder(intent: SetReminderIntent, services: Services, utterance: str = "") -> DispatchResult:
    """Replace reminder overrides with one popup reminder."""
    event = await find_event(services, intent.date, intent.event_query)
    minutes = intent.reminder_minutes
    if minutes is None:
        minutes = services.config.default_reminder_minutes

    await services.gateway.update_event(event.id, EventPatch(reminders=[Reminder(method="popup", minutes=minutes)]))

    return DispatchResult.success(f"「{event.title}」にリマインダーを設定しました（{minutes}分前）。")


async def handle_add_attendees(intent: AddAttendeesIntent, services: Services, utterance: str = "") -> DispatchResult:
    event = await find_event(services, intent.date, intent.event_query)

    new_emails = [
        email for email in dict.fromkeys(intent.attendees) if event.find_attendee(email) is None
    ]
    if not new_emails:
        return DispatchResult.info(f"指定された参加者はすでに「{event.title}」に含まれています。")

    attendees = [*event.attendees, *(Attendee(email=email) for email in new_emails)]
    await services.gateway.update_event(event.id, EventPatch(attendees=attendees, send_updates="all"))
    logger.info(f"Added {len(new_emails)} attendees to {event.id}")

    return DispatchResult.success(f"「{event.title}」に{len(new_emails)}名の参加者を追加しました。")


async def handle_remove_attendees(
    intent: RemoveAttendeesIntent,
    services: Services,
    utterance: str = "",
) -> DispatchResult:
    event = await find_event(services, intent.date, intent.event_query)

    to_remove = set(intent.attendees)
    remaining = [a for a in event.attendees if a.email not in to_remove]
    removed = len(event.attendees) - len(remaining)
    if removed == 0:
        return DispatchResult.info(f"指定された参加者は「{event.title}」に含まれていません。")

    await services.gateway.update_event(event.id, EventPatch(attendees=remaining, send_updates="all"))
    logger.info(f"Removed {removed} attendees from {event.id}")

    return DispatchResult.success(f"「{event.title}」から{removed}名の参加者を削除しました。")


__all__ = [
    "handle_add_attendees",
    "handle_delete",
    "handle_remove_attendees",
    "handle_set_reminder",
    "handle_update",
]
