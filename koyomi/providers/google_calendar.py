"""
Tool: Google Calendar Gateway
Purpose: Google Calendar v3 REST implementation of CalendarGateway

The caller supplies a bearer token; acquiring and refreshing it is the
embedding application's job. Non-2xx responses and transport errors are
raised as GatewayError with the HTTP status when there is one.

Usage:
    from koyomi.providers.google_calendar import GoogleCalendarGateway

    gateway = GoogleCalendarGateway(access_token=token, timeout_seconds=10)
    events = await gateway.get_events(start, end)
    busy = await gateway.get_free_busy(start, end, ["primary", "bob@example.com"])

Dependencies:
    - aiohttp (pip install aiohttp)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import aiohttp

from koyomi.calendar.models import (
    BusySpan,
    CalendarEvent,
    CallerIdentity,
    EventDraft,
    EventPatch,
)
from koyomi.errors import GatewayError
from koyomi.providers.base import CalendarGateway

logger = logging.getLogger(__name__)

# Google API endpoints
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
FREEBUSY_URL = f"{CALENDAR_API_BASE}/freeBusy"
TIMEZONE_SETTING_URL = f"{CALENDAR_API_BASE}/users/me/settings/timezone"
PRIMARY_CALENDAR_URL = f"{CALENDAR_API_BASE}/users/me/calendarList/primary"


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class GoogleCalendarGateway(CalendarGateway):
    """Google Calendar gateway bound to one access token and calendar."""

    def __init__(
        self,
        access_token: str,
        calendar_id: str = "primary",
        timeout_seconds: float | None = 30,
        max_results: int = 250,
    ):
        self.access_token = access_token
        self.calendar_id = calendar_id
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_results = max_results

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def _events_url(self) -> str:
        return f"{CALENDAR_API_BASE}/calendars/{quote(self.calendar_id, safe='')}/events"

    def _event_url(self, event_id: str) -> str:
        return f"{self._events_url}/{quote(event_id, safe='')}"

    def _get_headers(self) -> dict[str, str]:
        """Get authorization headers for API requests."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        data: dict | None = None,
        params: dict | None = None,
    ) -> dict[str, Any]:
        """
        Make an authenticated API request.

        Args:
            method: HTTP method
            url: Full API URL
            data: JSON request body
            params: Query parameters

        Returns:
            Decoded JSON body ({} for 204 No Content)

        Raises:
            GatewayError: on transport failure or non-2xx status
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, url, headers=self._get_headers(), json=data, params=params
                ) as resp:
                    return await self._handle_response(resp)
        except GatewayError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Google Calendar request failed: {method} {url}: {e}")
            raise GatewayError(f"カレンダーへの接続に失敗しました: {e}") from e

    async def _handle_response(self, resp: aiohttp.ClientResponse) -> dict[str, Any]:
        """Decode a response or raise GatewayError."""
        if resp.status == 204:
            return {}

        try:
            data = await resp.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            data = {}
        data = data or {}

        if 200 <= resp.status < 300:
            return data
        if resp.status == 401:
            raise GatewayError("認証に失敗しました。トークンの期限が切れている可能性があります。", status=401)
        if resp.status == 403:
            raise GatewayError("カレンダーへのアクセス権限がありません。", status=403)
        if resp.status == 404:
            raise GatewayError("イベントが見つかりません。", status=404)

        error = data.get("error")
        detail = error.get("message") if isinstance(error, dict) else None
        raise GatewayError(f"API Error: {detail or resp.status}", status=resp.status)

    def _parse_events(self, data: dict[str, Any]) -> list[CalendarEvent]:
        return [CalendarEvent.from_dict(item, calendar_id=self.calendar_id) for item in data.get("items") or []]

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_events(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        params = {
            "timeMin": _rfc3339(start),
            "timeMax": _rfc3339(end),
            "maxResults": self.max_results,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        data = await self._make_request("GET", self._events_url, params=params)
        return self._parse_events(data)

    async def get_event(self, event_id: str) -> CalendarEvent:
        data = await self._make_request("GET", self._event_url(event_id))
        return CalendarEvent.from_dict(data, calendar_id=self.calendar_id)

    async def search_events(self, start: datetime, end: datetime, keyword: str) -> list[CalendarEvent]:
        params = {
            "timeMin": _rfc3339(start),
            "timeMax": _rfc3339(end),
            "q": keyword or None,
            "maxResults": self.max_results,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        data = await self._make_request("GET", self._events_url, params=params)
        return self._parse_events(data)

    async def get_free_busy(
        self,
        start: datetime,
        end: datetime,
        calendar_ids: Sequence[str],
    ) -> dict[str, list[BusySpan]]:
        body = {
            "timeMin": _rfc3339(start),
            "timeMax": _rfc3339(end),
            "items": [{"id": cid} for cid in dict.fromkeys(calendar_ids) if cid],
        }
        data = await self._make_request("POST", FREEBUSY_URL, data=body)

        result: dict[str, list[BusySpan]] = {}
        for calendar_id, calendar in (data.get("calendars") or {}).items():
            if calendar.get("errors"):
                # Calendar not shared with the caller; treated as free
                logger.info(f"Free/busy unavailable for {calendar_id}: {calendar['errors']}")
            spans = []
            for busy in calendar.get("busy") or []:
                span_start = datetime.fromisoformat(busy["start"].replace("Z", "+00:00"))
                span_end = datetime.fromisoformat(busy["end"].replace("Z", "+00:00"))
                if span_start < span_end:
                    spans.append(BusySpan(start=span_start, end=span_end, calendar_id=calendar_id))
            result[calendar_id] = spans
        return result

    async def get_caller_identity(self) -> CallerIdentity:
        setting = await self._make_request("GET", TIMEZONE_SETTING_URL)
        primary = await self._make_request("GET", PRIMARY_CALENDAR_URL)
        return CallerIdentity(
            email=primary.get("id", ""),
            timezone=setting.get("value") or "UTC",
        )

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_event(self, draft: EventDraft) -> CalendarEvent:
        data = await self._make_request("POST", self._events_url, data=draft.to_dict())
        event = CalendarEvent.from_dict(data, calendar_id=self.calendar_id)
        logger.info(f"Created event {event.id}: {event.title}")
        return event

    async def update_event(self, event_id: str, patch: EventPatch) -> CalendarEvent:
        params = {"sendUpdates": patch.send_updates}
        data = await self._make_request("PATCH", self._event_url(event_id), data=patch.to_dict(), params=params)
        return CalendarEvent.from_dict(data, calendar_id=self.calendar_id)

    async def delete_event(self, event_id: str) -> None:
        await self._make_request("DELETE", self._event_url(event_id))
        logger.info(f"Deleted event {event_id}")


__all__ = ["CALENDAR_API_BASE", "GoogleCalendarGateway"]
