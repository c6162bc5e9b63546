"""Handlers that search for free time: move, create, create_recurring.

Search windows:

    move, new date + time   7 days from the new date
    move, new date only     that day
    move, no new date       14 days from the day after the event
    create, with time       7 days from the date
    create, date only       that day
    create_recurring        the date itself, first free slot (unless a time is given)
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta

from koyomi.assistant.context import CREATE, MOVE, Negotiation
from koyomi.assistant.handlers.common import Services, day_range, find_event, format_month_day
from koyomi.assistant.intents import CreateIntent, CreateRecurringIntent, MoveIntent
from koyomi.assistant.results import DispatchResult
from koyomi.assistant.suggestions import SuggestionRequest
from koyomi.assistant.undo import CreateRecord
from koyomi.calendar.availability import PRIMARY_CALENDAR, busy_spans_from_events
from koyomi.calendar.matching import partition_attendees
from koyomi.calendar.models import EventDraft, EventTime, FreeSlot
from koyomi.calendar.recurrence import build_rrule
from koyomi.errors import NotFoundError

logger = logging.getLogger(__name__)


def _no_slots_message(day) -> str:
    return f"申し訳ありません。{format_month_day(day)}に空き時間が見つかりませんでした。別の日付をご指定いただけますか？"


async def _own_free_slots(
    services: Services,
    start: datetime,
    end: datetime,
    duration_minutes: int,
    include_holidays: bool,
) -> list[FreeSlot]:
    events = await services.gateway.get_events(start, end)
    return services.engine.find_free_slots(
        start,
        end,
        duration_minutes,
        services.search_options(include_holidays),
        busy_spans_from_events(events),
    )


async def handle_move(intent: MoveIntent, services: Services, utterance: str = "") -> DispatchResult:
    """Find the event, search for new slots and open a move proposal."""
    tz = services.tz
    config = services.config
    event = await find_event(services, intent.date, intent.event_query)

    humans, resources = partition_attendees(event.attendees, config.resource_domains)
    attendee_ids = [a.email for a in event.attendees if a.email]
    duration = event.duration_minutes

    if intent.new_date is not None:
        days = config.flexible_search_days if intent.new_time is not None else 1
        search_start, search_end = day_range(intent.new_date, tz, days)
    else:
        first_day = event.start_at(tz).date() + timedelta(days=1)
        search_start, search_end = day_range(first_day, tz, config.reschedule_window_days)

    options = services.search_options(intent.include_holidays)
    logger.info(
        f"Move '{event.title}': searching {search_start.date()}..{search_end.date()} "
        f"for {duration} min, {len(humans)} people, {len(resources)} rooms"
    )

    if attendee_ids:
        busy = await services.gateway.get_free_busy(search_start, search_end, [PRIMARY_CALENDAR, *attendee_ids])
        slots = services.engine.find_free_slots_across_calendars(
            search_start, search_end, duration, attendee_ids, options, busy
        )
    else:
        slots = await _own_free_slots(services, search_start, search_end, duration, intent.include_holidays)

    if not slots:
        raise NotFoundError(_no_slots_message(search_start.date()))

    proposal = await services.suggestion_writer.write(
        slots,
        SuggestionRequest(
            kind=MOVE,
            title=event.title,
            duration_minutes=duration,
            preferred_date=intent.new_date,
            preferred_time=intent.new_time,
            tz=tz,
        ),
    )
    negotiation = Negotiation(
        kind=MOVE,
        suggestions=proposal.suggestions,
        free_slots=slots,
        event=event,
        human_attendees=humans,
        resources=resources,
    )
    services.context.open(negotiation)
    return DispatchResult.suggest(proposal.message, proposal.suggestions, event=negotiation.event_summary())


async def handle_create(intent: CreateIntent, services: Services, utterance: str = "") -> DispatchResult:
    """Search the requested day (or week, when a time is given) and open a create proposal."""
    tz = services.tz
    duration = intent.duration or services.config.default_duration_minutes
    days = services.config.flexible_search_days if intent.new_time is not None else 1
    search_start, search_end = day_range(intent.date, tz, days)

    slots = await _own_free_slots(services, search_start, search_end, duration, intent.include_holidays)
    if not slots:
        raise NotFoundError(_no_slots_message(intent.date))

    proposal = await services.suggestion_writer.write(
        slots,
        SuggestionRequest(
            kind=CREATE,
            title=intent.event_title,
            duration_minutes=duration,
            preferred_date=intent.date,
            preferred_time=intent.new_time,
            tz=tz,
        ),
    )
    services.context.open(
        Negotiation(
            kind=CREATE,
            suggestions=proposal.suggestions,
            free_slots=slots,
            title=intent.event_title,
            duration_minutes=duration,
        )
    )
    return DispatchResult.suggest(proposal.message, proposal.suggestions)


async def handle_create_recurring(
    intent: CreateRecurringIntent,
    services: Services,
    utterance: str = "",
) -> DispatchResult:
    tz = services.tz
    config = services.config
    duration = intent.duration or config.default_duration_minutes
    spec = intent.recurrence.to_spec()
    rrule = build_rrule(spec, tz)

    if intent.new_time is not None:
        start = datetime.combine(intent.date, time(intent.new_time.hour, intent.new_time.minute), tzinfo=tz)
    else:
        search_start, search_end = day_range(intent.date, tz)
        slots = await _own_free_slots(services, search_start, search_end, duration, intent.include_holidays)
        if not slots:
            raise NotFoundError(f"{intent.date.isoformat()}に空き時間が見つかりませんでした。時刻を指定してください。")
        start = slots[0].start

    end = start + timedelta(minutes=duration)
    draft = EventDraft(
        title=intent.event_title,
        start=EventTime.at(start, config.timezone),
        end=EventTime.at(end, config.timezone),
        description=intent.description or "",
        location=intent.location or "",
        recurrence=[rrule],
    )
    created = await services.gateway.create_event(draft)
    services.undo_ledger.record(CreateRecord(event_id=created.id, title=created.title))
    logger.info(f"Created recurring event {created.id}: {rrule}")

    return DispatchResult.success(f"「{created.title}」を{spec.label}で作成しました。", recurrence=rrule)


__all__ = ["handle_create", "handle_create_recurring", "handle_move"]
