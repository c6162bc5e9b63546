"""Read-only handler: query."""

from __future__ import annotations

import logging
from datetime import timedelta

from koyomi.assistant.handlers.common import Services, day_range, format_start_time
from koyomi.assistant.intents import QueryIntent
from koyomi.assistant.results import DispatchResult
from koyomi.assistant.suggestions import format_day
from koyomi.calendar.models import CalendarEvent

logger = logging.getLogger(__name__)


def group_by_day(events: list[CalendarEvent], tz) -> str:
    """
    Format events as day blocks:

        3月5日(木)
          09:00: 定例
          終日: 出張
    """
    blocks: dict[str, list[str]] = {}
    for event in events:
        key = format_day(event.start_at(tz).date())
        blocks.setdefault(key, []).append(f"  {format_start_time(event, tz)}: {event.title}")
    return "\n\n".join(f"{day}\n" + "\n".join(lines) for day, lines in blocks.items())


async def handle_query(intent: QueryIntent, services: Services, utterance: str = "") -> DispatchResult:
    """List events on a date, or from today for ``query_window_days``; search when a keyword is given."""
    tz = services.tz
    window_days = services.config.query_window_days

    if intent.date is not None:
        start, end = day_range(intent.date, tz)
        label = intent.date.isoformat()
    else:
        start, end = day_range(services.now().date(), tz, window_days)
        label = "今後1週間" if window_days == 7 else f"今後{window_days}日間"

    keyword = (intent.event_query or "").strip()
    if keyword:
        events = await services.gateway.search_events(start, end, keyword)
    else:
        events = await services.gateway.get_events(start, end)

    logger.debug(f"query '{keyword}' {start.date()}..{end.date() - timedelta(days=1)}: {len(events)} events")

    if not events:
        matching = f"「{keyword}」に該当する" if keyword else ""
        return DispatchResult.info(f"{label}には{matching}予定がありません。", count=0)

    heading = f"「{keyword}」の予定" if keyword else "予定"
    return DispatchResult.info(f"{heading}:\n\n{group_by_day(events, tz)}", count=len(events))


__all__ = ["group_by_day", "handle_query"]
