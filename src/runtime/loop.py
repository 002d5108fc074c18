"""Runtime orchestration: session timer on an asyncio loop plus the UI bridge."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass
from typing import Any, Optional

from app_config import AppConfig
from server import UIServer
from worktimer import (
    AsyncioScheduler,
    CuePlayer,
    LoggingCuePlayer,
    SessionConfig,
    SessionEvent,
    SessionTimer,
)
from worktimer.constants import (
    EVENT_PROGRESS,
    EVENT_SESSION_ENDED,
    STATUS_STOPPED,
)

from .commands import SessionCommandDispatcher
from .messages import session_status_message
from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the runtime engine."""
    logger: logging.Logger
    app_config: AppConfig
    ui_server: Optional[UIServer] = None
    player: Optional[CuePlayer] = None
    install_signal_handlers: bool = True


class RuntimeEngine:
    """Owns the session timer and runs it until shutdown is requested."""

    def __init__(self, bootstrap: RuntimeBootstrap):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        self._ui = RuntimeUIPublisher(bootstrap.ui_server)
        self._timer: Optional[SessionTimer] = None
        self._dispatcher: Optional[SessionCommandDispatcher] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown: Optional[asyncio.Event] = None

    @property
    def timer(self) -> Optional[SessionTimer]:
        return self._timer

    async def run(self) -> int:
        self._loop = asyncio.get_running_loop()
        self._shutdown = asyncio.Event()
        app_config = self._bootstrap.app_config

        try:
            session_config = SessionConfig.from_settings(app_config.timer, app_config.sounds)
        except ValueError as error:
            self._logger.error("Invalid session configuration: %s", error)
            return 1

        timer = SessionTimer(
            AsyncioScheduler(self._loop),
            config=session_config,
            player=self._bootstrap.player
            or LoggingCuePlayer(logging.getLogger("worktimer.sounds")),
            logger=logging.getLogger("worktimer"),
        )
        timer.set_task_title(app_config.timer.task)
        timer.add_listener(self._log_session_event)
        timer.add_listener(self._ui.handle_session_event)
        self._timer = timer
        self._dispatcher = SessionCommandDispatcher(
            timer,
            ui=self._ui,
            logger=logging.getLogger("runtime.commands"),
        )

        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            ui_server.set_command_handler(self.submit_command)
        else:
            timer.add_listener(self._shutdown_on_session_end)

        installed_signals = self._install_signal_handlers()
        self._logger.info(
            "Session planned: %d units, %s total",
            session_config.units_in_session,
            timer.session_time(),
        )

        try:
            if app_config.timer.autostart:
                self._dispatcher.apply("start")
            elif ui_server is None:
                self._logger.warning("Autostart disabled and no UI server; nothing to do.")
                return 0
            await self._shutdown.wait()
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            if timer.status != STATUS_STOPPED:
                timer.stop()
            for signum in installed_signals:
                self._loop.remove_signal_handler(signum)
            if ui_server is not None:
                ui_server.set_command_handler(None)

    def request_shutdown(self) -> None:
        if self._shutdown is not None:
            self._shutdown.set()

    def submit_command(self, message: dict[str, Any]) -> None:
        """Thread-safe entry point; the command runs on the timer's loop."""
        loop = self._loop
        dispatcher = self._dispatcher
        if loop is None or dispatcher is None:
            return
        try:
            loop.call_soon_threadsafe(dispatcher.handle_message, message)
        except RuntimeError:
            # Loop already closed.
            return

    def _install_signal_handlers(self) -> list[int]:
        if not self._bootstrap.install_signal_handlers or self._loop is None:
            return []
        installed: list[int] = []
        for signum in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                self._loop.add_signal_handler(signum, self._on_signal, signum)
                installed.append(signum)
        return installed

    def _on_signal(self, signum: int) -> None:
        self._logger.info("%s received, stopping.", signal.Signals(signum).name)
        self.request_shutdown()

    def _shutdown_on_session_end(self, event: SessionEvent) -> None:
        if event.name == EVENT_SESSION_ENDED:
            self.request_shutdown()

    def _log_session_event(self, event: SessionEvent) -> None:
        if event.name == EVENT_PROGRESS:
            self._logger.debug("Progress %d%%", event.progress or 0)
            return
        self._logger.info("%s: %s", event.name, session_status_message(event.snapshot))
