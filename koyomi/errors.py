"""Error taxonomy for the scheduling core.

Every layer raises one of these; the dispatcher maps them to result kinds:

    InputError     -> error    (bad or missing intent fields, invalid dates)
    NotFoundError  -> message  (no matching event, no free slot)
    GatewayError   -> error    (remote calendar call failed)
    StateError     -> message  (nothing to undo, nothing pending)
"""

from __future__ import annotations


class KoyomiError(Exception):
    """Base class. ``message`` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(KoyomiError):
    """Intent or argument failed validation."""


class NotFoundError(KoyomiError):
    """An expected lookup came back empty."""


class GatewayError(KoyomiError):
    """A remote calendar call failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class StateError(KoyomiError):
    """Operation not valid in the current session state."""


__all__ = [
    "GatewayError",
    "InputError",
    "KoyomiError",
    "NotFoundError",
    "StateError",
]
