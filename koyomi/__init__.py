"""Koyomi: Conversational scheduling assistant core

Philosophy:
    Rescheduling a meeting should take one sentence and one pick, not a
    tour through four calendars. Koyomi turns a structured intent into
    calendar operations, proposes concrete free slots when a choice is
    needed, and lets the user take the last change back.

Components:
    calendar/: Interval model, holiday policy, availability engine,
        event matching, recurrence rules
    providers/: Remote calendar gateway contract and implementations
    assistant/: Intent union, dispatcher and handlers, conversation
        context, undo ledger, per-session composition
    config.py: Scheduler settings (args/scheduler.yaml)
    errors.py: Error taxonomy shared by every layer
    logging_config.py: structlog setup and trace spans

Usage:
    from koyomi.assistant.session import AssistantSession
    from koyomi.providers.google_calendar import GoogleCalendarGateway

    session = AssistantSession(
        gateway=GoogleCalendarGateway(access_token=token),
        intent_producer=producer,
        responder=responder,
    )
    result = await session.process_message("明日の定例を別の日に移動して")
"""

from pathlib import Path


__version__ = "0.3.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"
