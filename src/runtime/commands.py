"""Dispatcher that applies client commands to the session timer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from contracts.ui_protocol import FIELD_COMMAND, FIELD_TITLE
from worktimer import SessionSnapshot, SessionTimer
from worktimer.constants import (
    COMMAND_INVALIDATE,
    COMMAND_PAUSE,
    COMMAND_RESUME,
    COMMAND_SET_TASK,
    COMMAND_START,
    COMMAND_STOP,
    PHASE_STATUSES,
    REASON_INVALIDATED,
    REASON_MISSING_TITLE,
    REASON_NOT_ACTIVE,
    REASON_NOT_PAUSED,
    REASON_NOT_STOPPED,
    REASON_PAUSED,
    REASON_RESUMED,
    REASON_STARTED,
    REASON_STOPPED,
    REASON_TASK_SET,
    REASON_UNSUPPORTED_COMMAND,
    STATUS_PAUSED,
    STATUS_STOPPED,
)

from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class CommandResult:
    """Result envelope returned after applying a client command."""
    command: str
    accepted: bool
    reason: str
    snapshot: SessionSnapshot


class SessionCommandDispatcher:
    """Checks the timer status before each command so races are rejected, not raised."""

    def __init__(
        self,
        timer: SessionTimer,
        *,
        ui: Optional[RuntimeUIPublisher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._timer = timer
        self._ui = ui
        self._logger = logger or logging.getLogger("runtime.commands")

    def handle_message(self, message: Mapping[str, Any]) -> CommandResult:
        command = str(message.get(FIELD_COMMAND, "")).strip().lower()
        raw_title = message.get(FIELD_TITLE)
        title = raw_title.strip() if isinstance(raw_title, str) else None
        return self.apply(command, title=title or None)

    def apply(self, command: str, *, title: Optional[str] = None) -> CommandResult:
        accepted, reason = self._apply(command, title)
        result = CommandResult(
            command=command,
            accepted=accepted,
            reason=reason,
            snapshot=self._timer.snapshot(),
        )
        if accepted:
            self._logger.info("Command %s accepted: %s", command, reason)
        else:
            self._logger.debug("Command %s rejected: %s", command, reason)
        if self._ui is not None:
            self._ui.publish_command_result(
                result.snapshot,
                command=command,
                accepted=accepted,
                reason=reason,
            )
        return result

    def _apply(self, command: str, title: Optional[str]) -> tuple[bool, str]:
        status = self._timer.status

        if command == COMMAND_START:
            if status != STATUS_STOPPED:
                return False, REASON_NOT_STOPPED
            if title:
                self._timer.set_task_title(title)
            self._timer.start()
            return True, REASON_STARTED

        if command == COMMAND_PAUSE:
            if status not in PHASE_STATUSES:
                return False, REASON_NOT_ACTIVE
            self._timer.pause()
            return True, REASON_PAUSED

        if command == COMMAND_RESUME:
            if status != STATUS_PAUSED:
                return False, REASON_NOT_PAUSED
            self._timer.pause()
            return True, REASON_RESUMED

        if command == COMMAND_STOP:
            if status == STATUS_STOPPED:
                return False, REASON_NOT_ACTIVE
            self._timer.stop()
            return True, REASON_STOPPED

        if command == COMMAND_INVALIDATE:
            if status == STATUS_STOPPED:
                return False, REASON_NOT_ACTIVE
            self._timer.invalidate_current()
            return True, REASON_INVALIDATED

        if command == COMMAND_SET_TASK:
            if not title:
                return False, REASON_MISSING_TITLE
            self._timer.set_task_title(title)
            return True, REASON_TASK_SET

        return False, REASON_UNSUPPORTED_COMMAND
