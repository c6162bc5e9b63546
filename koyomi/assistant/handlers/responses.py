"""Invitation replies: respond (one event) and bulk_respond (a date range).

bulk_respond issues one update per event concurrently and collects
failures instead of stopping at the first one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from koyomi.assistant.handlers.common import (
    Services,
    day_range,
    find_event,
    format_short_day,
    format_start_time,
)
from koyomi.assistant.intents import (
    FILTER_ALL,
    FILTER_TENTATIVE,
    FILTER_UNANSWERED,
    RESPONSE_LABELS,
    BulkRespondIntent,
    RespondIntent,
)
from koyomi.assistant.results import DispatchResult
from koyomi.calendar.models import Attendee, CalendarEvent, EventPatch
from koyomi.errors import GatewayError, NotFoundError

logger = logging.getLogger(__name__)


def response_patch(event: CalendarEvent, email: str, status: str) -> EventPatch:
    """Set the caller's response status, adding the caller as an attendee if absent."""
    attendees = []
    found = False
    for attendee in event.attendees:
        if attendee.email == email:
            attendee = replace(attendee, response_status=status)
            found = True
        attendees.append(attendee)
    if not found:
        attendees.append(Attendee(email=email, response_status=status, is_self=True))
    return EventPatch(attendees=attendees)


def matches_filter(status: str | None, condition: str | None) -> bool:
    """Apply a bulk_respond filter condition to the caller's current status."""
    if condition == FILTER_UNANSWERED:
        return status == "needsAction"
    if condition == FILTER_TENTATIVE:
        return status == "tentative"
    if condition == FILTER_ALL:
        return True
    return not status or status == "needsAction"


async def handle_respond(intent: RespondIntent, services: Services, utterance: str = "") -> DispatchResult:
    identity = await services.gateway.get_caller_identity()
    event = await find_event(services, intent.date, intent.event_query)

    await services.gateway.update_event(event.id, response_patch(event, identity.email, intent.response_status))
    label = RESPONSE_LABELS[intent.response_status]

    return DispatchResult.success(f"「{event.title}」に「{label}」で回答しました。")


async def handle_bulk_respond(intent: BulkRespondIntent, services: Services, utterance: str = "") -> DispatchResult:
    """
    Reply to every event in the range where the caller is invited.

    The end date is inclusive. Only events where the caller is already an
    attendee are touched, further narrowed by ``filterCondition``.
    """
    tz = services.tz
    date_range = intent.date_range
    start, _ = day_range(date_range.start, tz)
    _, end = day_range(date_range.end, tz)

    events = await services.gateway.get_events(start, end)
    identity = await services.gateway.get_caller_identity()

    targets = []
    for event in events:
        me = event.find_attendee(identity.email)
        if me is not None and matches_filter(me.response_status, intent.filter_condition):
            targets.append(event)

    logger.info(f"bulk_respond: {len(targets)} of {len(events)} events match '{intent.filter_condition}'")

    if not targets:
        condition = intent.filter_condition or "未回答"
        raise NotFoundError(f"指定期間内に{condition}のイベントが見つかりませんでした。")

    async def respond_one(event: CalendarEvent) -> GatewayError | None:
        try:
            await services.gateway.update_event(event.id, response_patch(event, identity.email, intent.response_status))
        except GatewayError as e:
            logger.warning(f"bulk_respond failed for {event.id} ({event.title}): {e.message}")
            return e
        return None

    outcomes = await asyncio.gather(*(respond_one(event) for event in targets))

    processed = []
    failures = []
    for event, error in zip(targets, outcomes):
        if error is None:
            processed.append(event)
        else:
            failures.append(event.title)

    label = RESPONSE_LABELS[intent.response_status]
    lines = [f"{len(processed)}件のイベントに「{label}」で回答しました。", "", "【処理したイベント】"]
    for i, event in enumerate(processed, 1):
        day = event.start_at(tz).date()
        lines.append(f"{i}. {event.title} ({format_short_day(day)} {format_start_time(event, tz)})")
    message = "\n".join(lines)
    if failures:
        message += "\n\n【失敗】\n" + "\n".join(failures)

    return DispatchResult.success(
        message,
        success_count=len(processed),
        processed=[e.title for e in processed],
        failures=failures,
    )


__all__ = ["handle_bulk_respond", "handle_respond", "matches_filter", "response_patch"]
