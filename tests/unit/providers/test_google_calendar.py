"""Tests for the Google Calendar gateway.

HTTP is not exercised: ``_make_request`` is replaced with an AsyncMock and
``_handle_response`` is fed stand-in response objects.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from koyomi.calendar.models import EventPatch
from koyomi.errors import GatewayError
from koyomi.providers.google_calendar import CALENDAR_API_BASE, FREEBUSY_URL, GoogleCalendarGateway
from tests.conftest import at


@pytest.fixture
def google() -> GoogleCalendarGateway:
    return GoogleCalendarGateway(access_token="token-123")


def fake_response(status: int, body=None):
    resp = MagicMock()
    resp.status = status
    resp.json = AsyncMock(return_value=body)
    return resp


class TestRequests:
    @pytest.mark.asyncio
    async def test_get_events_params(self, google):
        google._make_request = AsyncMock(return_value={
            "items": [{
                "id": "e1",
                "summary": "定例",
                "start": {"dateTime": "2026-03-05T10:00:00+09:00"},
                "end": {"dateTime": "2026-03-05T11:00:00+09:00"},
            }]
        })

        events = await google.get_events(at("2026-03-05", "00:00"), at("2026-03-06", "00:00"))

        method, url = google._make_request.call_args.args
        params = google._make_request.call_args.kwargs["params"]
        assert method == "GET"
        assert url == f"{CALENDAR_API_BASE}/calendars/primary/events"
        assert params["timeMin"] == "2026-03-05T00:00:00+09:00"
        assert params["singleEvents"] == "true"
        assert params["orderBy"] == "startTime"
        assert [e.title for e in events] == ["定例"]

    @pytest.mark.asyncio
    async def test_search_sends_keyword(self, google):
        google._make_request = AsyncMock(return_value={})
        result = await google.search_events(at("2026-03-05", "00:00"), at("2026-03-06", "00:00"), "定例")
        assert google._make_request.call_args.kwargs["params"]["q"] == "定例"
        assert result == []

    @pytest.mark.asyncio
    async def test_free_busy(self, google):
        google._make_request = AsyncMock(return_value={
            "calendars": {
                "primary": {"busy": [{"start": "2026-03-05T01:00:00Z", "end": "2026-03-05T02:00:00Z"}]},
                "bob@example.com": {"errors": [{"reason": "notFound"}], "busy": []},
            }
        })

        busy = await google.get_free_busy(
            at("2026-03-05", "00:00"), at("2026-03-06", "00:00"), ["primary", "bob@example.com", "primary"]
        )

        method, url = google._make_request.call_args.args
        body = google._make_request.call_args.kwargs["data"]
        assert (method, url) == ("POST", FREEBUSY_URL)
        assert body["items"] == [{"id": "primary"}, {"id": "bob@example.com"}]
        assert busy["primary"][0].start == at("2026-03-05", "10:00")
        assert busy["bob@example.com"] == []

    @pytest.mark.asyncio
    async def test_update_passes_send_updates(self, google):
        google._make_request = AsyncMock(return_value={
            "id": "e1",
            "start": {"dateTime": "2026-03-05T10:00:00+09:00"},
            "end": {"dateTime": "2026-03-05T11:00:00+09:00"},
        })
        await google.update_event("e1", EventPatch(attendees=[], send_updates="all"))
        call = google._make_request.call_args
        assert call.args[0] == "PATCH"
        assert call.kwargs["params"] == {"sendUpdates": "all"}
        assert call.kwargs["data"] == {"attendees": []}

    @pytest.mark.asyncio
    async def test_caller_identity(self, google):
        google._make_request = AsyncMock(side_effect=[{"value": "Asia/Tokyo"}, {"id": "me@example.com"}])
        identity = await google.get_caller_identity()
        assert identity.email == "me@example.com"
        assert identity.timezone == "Asia/Tokyo"


class TestResponses:
    @pytest.mark.asyncio
    async def test_no_content(self, google):
        assert await google._handle_response(fake_response(204)) == {}

    @pytest.mark.asyncio
    async def test_ok(self, google):
        assert await google._handle_response(fake_response(200, {"id": "e1"})) == {"id": "e1"}

    @pytest.mark.parametrize("status", [401, 403, 404])
    @pytest.mark.asyncio
    async def test_known_statuses(self, google, status):
        with pytest.raises(GatewayError) as exc_info:
            await google._handle_response(fake_response(status, {}))
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_error_body_message(self, google):
        resp = fake_response(500, {"error": {"message": "Backend Error"}})
        with pytest.raises(GatewayError, match="Backend Error") as exc_info:
            await google._handle_response(resp)
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_transport_error_becomes_gateway_error(self, google):
        with patch("koyomi.providers.google_calendar.aiohttp.ClientSession", side_effect=aiohttp.ClientError("refused")):
            with pytest.raises(GatewayError, match="接続に失敗しました"):
                await google.get_event("e1")
