"""Websocket message encoding plus the replay cache for late-joining clients."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from contracts.ui_protocol import (
    EVENT_PROGRESS,
    EVENT_SESSION,
    FIELD_COMMAND,
    STICKY_EVENT_ORDER,
    STICKY_EVENT_TYPES,
)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def make_event(event_type: str, *, now_fn: Optional[Clock] = None, **payload: Any) -> str:
    """Encode one server event as JSON with `type` and ISO `timestamp` keys."""
    envelope: dict[str, Any] = {
        "type": event_type,
        "timestamp": (now_fn or _utc_now)().isoformat(),
    }
    envelope.update(payload)
    return json.dumps(envelope)


def parse_client_message(raw: str | bytes) -> Optional[dict[str, Any]]:
    """Decode a client command message; returns None for anything malformed."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(message, dict):
        return None
    command = message.get(FIELD_COMMAND)
    if not isinstance(command, str) or not command.strip():
        return None
    return message


class StickyEventStore:
    """Latest message per sticky type, replayed to clients when they connect.

    A new `session` event discards the cached `progress` event, since
    progress always refers to the phase the last session event announced.
    """

    def __init__(self):
        self._latest: dict[str, str] = {}
        self._lock = threading.Lock()

    def remember(self, event_type: str, message: str) -> None:
        if event_type not in STICKY_EVENT_TYPES:
            return
        with self._lock:
            if event_type == EVENT_SESSION:
                self._latest.pop(EVENT_PROGRESS, None)
            self._latest[event_type] = message

    def snapshot(self) -> list[str]:
        with self._lock:
            return [
                self._latest[event_type]
                for event_type in STICKY_EVENT_ORDER
                if event_type in self._latest
            ]
