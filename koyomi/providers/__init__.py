"""
Remote calendar gateways.

CalendarGateway is the contract; GoogleCalendarGateway talks to Google
Calendar v3, InMemoryCalendarGateway keeps events in process, and
TracingGateway wraps any of them with trace spans.
"""

from koyomi.providers.base import CalendarGateway
from koyomi.providers.in_memory import InMemoryCalendarGateway
from koyomi.providers.tracing import TracingGateway

__all__ = ["CalendarGateway", "InMemoryCalendarGateway", "TracingGateway"]
