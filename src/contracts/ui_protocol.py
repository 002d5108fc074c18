"""Websocket event types exchanged with overlay and tray clients."""

from __future__ import annotations

# Server -> client event types
EVENT_HELLO = "hello"
EVENT_SESSION = "session"
EVENT_PROGRESS = "progress"
EVENT_COMMAND_RESULT = "command_result"
EVENT_ERROR = "error"

# Client -> server message fields
FIELD_COMMAND = "command"
FIELD_TITLE = "title"

STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_SESSION,
        EVENT_PROGRESS,
        EVENT_COMMAND_RESULT,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_SESSION,
    EVENT_COMMAND_RESULT,
    EVENT_PROGRESS,
)
