"""Translate session events and command results into websocket messages."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from contracts.ui_protocol import EVENT_COMMAND_RESULT, EVENT_PROGRESS, EVENT_SESSION
from worktimer import SessionEvent, SessionSnapshot
from worktimer.constants import EVENT_PROGRESS as SESSION_EVENT_PROGRESS

from .messages import session_status_message


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...


def snapshot_payload(snapshot: SessionSnapshot) -> dict[str, Any]:
    return {
        "status": snapshot.status,
        "phase": snapshot.phase,
        "task": snapshot.task_title,
        "completed_work_units": snapshot.completed_work_units,
        "completed_short_breaks": snapshot.completed_short_breaks,
        "completed_long_breaks": snapshot.completed_long_breaks,
        "duration_ms": snapshot.phase_duration_ms,
        "remaining_ms": snapshot.remaining_ms,
        "elapsed_ms": snapshot.elapsed_ms,
        "progress": snapshot.progress,
        "message": session_status_message(snapshot),
    }


class RuntimeUIPublisher:
    """Forwards session events and command results to the UI server."""

    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def handle_session_event(self, event: SessionEvent) -> None:
        if event.name == SESSION_EVENT_PROGRESS:
            self.publish(
                EVENT_PROGRESS,
                progress=event.progress,
                phase=event.snapshot.phase,
                remaining_ms=event.snapshot.remaining_ms,
            )
            return
        self.publish(EVENT_SESSION, event=event.name, **snapshot_payload(event.snapshot))

    def publish_command_result(
        self,
        snapshot: SessionSnapshot,
        *,
        command: str,
        accepted: bool,
        reason: str,
    ) -> None:
        self.publish(
            EVENT_COMMAND_RESULT,
            command=command,
            accepted=accepted,
            reason=reason,
            **snapshot_payload(snapshot),
        )
