"""Tests for the tracing gateway decorator."""

from unittest.mock import AsyncMock

import pytest
import structlog

from koyomi.errors import GatewayError
from koyomi.providers.tracing import TracingGateway
from tests.conftest import at


class TestTracingGateway:
    @pytest.mark.asyncio
    async def test_delegates(self, gateway, make_event):
        gateway.add_event(make_event("定例", "2026-03-05", "10:00", "11:00"))
        traced = TracingGateway(gateway)

        events = await traced.get_events(at("2026-03-05", "00:00"), at("2026-03-06", "00:00"))

        assert [e.title for e in events] == ["定例"]
        assert traced.provider_name == "memory"

    @pytest.mark.asyncio
    async def test_logs_span(self, gateway):
        traced = TracingGateway(gateway)
        with structlog.testing.capture_logs() as logs:
            await traced.get_caller_identity()
        finished = [e for e in logs if e["event"] == "span.finished"]
        assert finished[0]["status"] == "ok"
        assert "duration_ms" in finished[0]

    @pytest.mark.asyncio
    async def test_errors_propagate_unchanged(self, gateway):
        gateway.delete_event = AsyncMock(side_effect=GatewayError("gone", status=404))
        traced = TracingGateway(gateway)
        with structlog.testing.capture_logs() as logs:
            with pytest.raises(GatewayError) as exc_info:
                await traced.delete_event("evt-1")
        assert exc_info.value.status == 404
        assert [e["status"] for e in logs if e["event"] == "span.finished"] == ["error"]
