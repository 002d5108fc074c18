"""Single-threaded work/break session state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Callable, Literal, Optional

from .config import SessionConfig
from .constants import (
    BEGIN_EVENTS,
    DEFAULT_TASK_TITLE,
    EVENT_LONG_BREAK_ENDED,
    EVENT_PROGRESS,
    EVENT_SESSION_ENDED,
    EVENT_SHORT_BREAK_ENDED,
    EVENT_WORK_UNIT_ENDED,
    PHASE_STATUSES,
    PROGRESS_INTERVAL_MS,
    STATUS_LONG_BREAK,
    STATUS_MESSAGES,
    STATUS_PAUSED,
    STATUS_SHORT_BREAK,
    STATUS_STOPPED,
    STATUS_WORK,
)
from .errors import SessionStateError
from .scheduler import Scheduler, TimerHandle
from .sounds import ANNOUNCEMENT_CUES, CuePlayer, LoggingCuePlayer, SoundCue, SoundQueue

SessionStatus = Literal["work", "short_break", "long_break", "paused", "stopped"]

_END_EVENTS: dict[str, str] = {
    STATUS_WORK: EVENT_WORK_UNIT_ENDED,
    STATUS_SHORT_BREAK: EVENT_SHORT_BREAK_ENDED,
    STATUS_LONG_BREAK: EVENT_LONG_BREAK_ENDED,
}


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session exposed to listeners and publishers."""
    status: SessionStatus
    phase: Optional[SessionStatus]
    task_title: str
    completed_work_units: int
    completed_short_breaks: int
    completed_long_breaks: int
    phase_duration_ms: int
    remaining_ms: int
    elapsed_ms: int
    progress: int

    @property
    def is_active(self) -> bool:
        return self.status != STATUS_STOPPED


@dataclass(frozen=True)
class SessionEvent:
    """Lifecycle notification delivered to session listeners."""
    name: str
    snapshot: SessionSnapshot
    progress: Optional[int] = None


SessionListener = Callable[[SessionEvent], None]


class SessionTimer:
    """Work unit / short break / long break cycle driven by scheduler callbacks.

    Every method must be called from the scheduler's thread. Commands issued
    in a state where they do not apply are ignored, except `start`, which
    raises `SessionStateError` unless the timer is stopped.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        config: Optional[SessionConfig] = None,
        player: Optional[CuePlayer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._scheduler = scheduler
        self._config = config or SessionConfig()
        self._logger = logger or logging.getLogger("worktimer")
        self._sounds = SoundQueue(
            scheduler,
            player or LoggingCuePlayer(),
            logger=logging.getLogger("worktimer.sounds"),
        )
        self._listeners: list[SessionListener] = []

        self._status: SessionStatus = STATUS_STOPPED
        self._paused_from: Optional[SessionStatus] = None
        self._expiring: Optional[SessionStatus] = None
        self._pause_next_phase = False
        self._countdown: Optional[TimerHandle] = None
        self._progress_timer: Optional[TimerHandle] = None
        self._phase_duration_ms = 0
        self._remaining_ms = 0
        self._task_offset_ms = 0
        self._task_title = DEFAULT_TASK_TITLE
        self._completed_tasks: dict[int, str] = {}
        self._progress = 0
        self._completed_work_units = 0
        self._completed_short_breaks = 0
        self._completed_long_breaks = 0

    # ----- Listeners -----
    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ----- Queries -----
    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def phase(self) -> Optional[SessionStatus]:
        """The running phase, or the phase a pause interrupted."""
        if self._status == STATUS_PAUSED:
            return self._paused_from
        if self._status in PHASE_STATUSES:
            return self._status
        return None

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def task_title(self) -> str:
        return self._task_title

    @property
    def completed_work_units(self) -> int:
        return self._completed_work_units

    @property
    def completed_short_breaks(self) -> int:
        return self._completed_short_breaks

    @property
    def completed_long_breaks(self) -> int:
        return self._completed_long_breaks

    @property
    def sound_queue(self) -> SoundQueue:
        return self._sounds

    def completed_tasks(self) -> dict[int, str]:
        return dict(self._completed_tasks)

    def remaining_ms(self) -> int:
        if self._status == STATUS_STOPPED:
            return 0
        return self._current_remaining_ms()

    def elapsed(self) -> int:
        """Milliseconds of the current phase attributed to the current task."""
        if self._status == STATUS_STOPPED:
            return 0
        return max(0, self._phase_elapsed_ms() - self._task_offset_ms)

    def elapsed_time(self) -> timedelta:
        """Time consumed in the current phase, regardless of task renames."""
        if self._status == STATUS_STOPPED:
            return timedelta(0)
        return timedelta(milliseconds=self._phase_elapsed_ms())

    def session_time(self) -> timedelta:
        """Planned length of a full session; no break follows the last unit."""
        config = self._config
        units = config.units_in_session
        before = config.units_before_long_break
        long_breaks = units // before - (1 if units % before == 0 else 0)
        seconds = units * config.work_unit_ms // 1000
        seconds += long_breaks * config.long_break_ms // 1000
        seconds += (units - long_breaks - 1) * config.short_break_ms // 1000
        return timedelta(seconds=seconds)

    def completed_session_time(self) -> timedelta:
        config = self._config
        milliseconds = self._completed_work_units * config.work_unit_ms
        milliseconds += self._completed_short_breaks * config.short_break_ms
        milliseconds += self._completed_long_breaks * config.long_break_ms
        return timedelta(milliseconds=milliseconds)

    def status_message(self) -> str:
        return STATUS_MESSAGES[self._status]

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self._status,
            phase=self.phase,
            task_title=self._task_title,
            completed_work_units=self._completed_work_units,
            completed_short_breaks=self._completed_short_breaks,
            completed_long_breaks=self._completed_long_breaks,
            phase_duration_ms=self._phase_duration_ms,
            remaining_ms=self.remaining_ms(),
            elapsed_ms=self.elapsed(),
            progress=self._progress,
        )

    # ----- Commands -----
    def start(self) -> None:
        if self._status != STATUS_STOPPED:
            raise SessionStateError(
                f"Session can only start while stopped (status={self._status})"
            )

        self._completed_work_units = 0
        self._completed_short_breaks = 0
        self._completed_long_breaks = 0
        self._completed_tasks.clear()
        self._progress = 0
        self._logger.info(
            "Session started: units=%d long_break_every=%d work=%dms",
            self._config.units_in_session,
            self._config.units_before_long_break,
            self._config.work_unit_ms,
        )
        self._begin_phase(STATUS_WORK)

    def pause(self) -> None:
        """Pause the running phase, or resume it when already paused."""
        if self._status == STATUS_STOPPED:
            return

        if self._status == STATUS_PAUSED:
            self._resume()
            return

        if self._status == self._expiring and self._countdown is None:
            # The phase already ran out; the pause applies to the next one.
            self._pause_next_phase = not self._pause_next_phase
            return

        self._remaining_ms = self._current_remaining_ms()
        self._cancel_timers()
        if self._config.use_sounds:
            if self._tic_tac_enabled():
                self._sounds.queue(SoundCue.NONE)
            self._sounds.queue(SoundCue.CLICK)
        self._paused_from = self._status
        self._status = STATUS_PAUSED
        self._logger.info(
            "Session paused: phase=%s remaining=%dms",
            self._paused_from,
            self._remaining_ms,
        )

    def stop(self) -> None:
        if self._status == STATUS_STOPPED:
            return

        self._cancel_timers()
        self._queue_phase_end_sounds()
        self._status = STATUS_STOPPED
        self._paused_from = None
        self._remaining_ms = 0
        self._task_offset_ms = 0
        self._logger.info(
            "Session stopped: completed_work_units=%d",
            self._completed_work_units,
        )

    def invalidate_current(self) -> None:
        """Restart the current phase from its full duration without counting it."""
        phase = self.phase
        if phase is None:
            return

        self._cancel_timers()
        self._queue_phase_end_sounds()
        self._logger.info("Phase invalidated: %s", phase)
        self._begin_phase(phase)

    def set_task_title(self, title: str) -> None:
        text = (title or "").strip() or DEFAULT_TASK_TITLE
        if text == self._task_title:
            return
        if self._status != STATUS_STOPPED:
            # Time before the rename stays in the phase total only.
            self._task_offset_ms = self._phase_elapsed_ms()
        self._task_title = text
        self._logger.info("Task title set: %s", text)

    # ----- Configuration (effective only while stopped) -----
    def apply_config(self, config: SessionConfig) -> None:
        if self._status != STATUS_STOPPED:
            self._logger.debug("Ignoring configuration while %s", self._status)
            return
        self._config = config
        if not config.use_sounds:
            self._sounds.clear()

    def set_work_duration(self, duration_ms: int) -> None:
        self._update_config(work_unit_ms=int(duration_ms))

    def set_short_break_duration(self, duration_ms: int) -> None:
        self._update_config(short_break_ms=int(duration_ms))

    def set_long_break_duration(self, duration_ms: int) -> None:
        self._update_config(long_break_ms=int(duration_ms))

    def set_session_work_units(self, value: int) -> None:
        self._update_config(units_in_session=int(value))

    def set_work_units_before_long_break(self, value: int) -> None:
        self._update_config(units_before_long_break=int(value))

    def set_use_sounds(self, enabled: bool) -> None:
        if self._update_config(use_sounds=bool(enabled)) and not enabled:
            self._sounds.clear()

    def set_continuous_tic_tac(self, enabled: bool) -> None:
        self._update_config(continuous_tic_tac=bool(enabled))

    def set_use_voice_announcements(self, enabled: bool) -> None:
        self._update_config(use_voice_announcements=bool(enabled))

    # ----- Internals -----
    def _update_config(self, **changes: Any) -> bool:
        if self._status != STATUS_STOPPED:
            self._logger.debug(
                "Ignoring configuration change while %s: %s",
                self._status,
                ", ".join(sorted(changes)),
            )
            return False
        self._config = replace(self._config, **changes)
        return True

    def _begin_phase(self, status: SessionStatus) -> None:
        self._status = status
        self._paused_from = None
        self._phase_duration_ms = self._duration_for(status)
        self._remaining_ms = self._phase_duration_ms
        self._task_offset_ms = 0
        self._progress = 0
        self._start_timers(self._phase_duration_ms)
        self._logger.info("Phase started: %s (%dms)", status, self._phase_duration_ms)

        self._emit(BEGIN_EVENTS[status])
        if self._status != status:
            return
        self._sample_progress()

        if self._config.use_sounds:
            self._sounds.queue(SoundCue.CRANK)
            if self._config.use_voice_announcements:
                self._sounds.queue(ANNOUNCEMENT_CUES[status])
            if self._tic_tac_enabled():
                self._sounds.queue(SoundCue.TIC_TAC, loop=True)

    def _resume(self) -> None:
        status = self._paused_from
        if status is None:
            return
        self._status = status
        self._paused_from = None
        self._start_timers(self._remaining_ms)
        if self._config.use_sounds:
            self._sounds.queue(SoundCue.CLICK)
            if self._tic_tac_enabled():
                self._sounds.queue(SoundCue.TIC_TAC, loop=True)
        self._logger.info(
            "Session resumed: phase=%s remaining=%dms",
            status,
            self._remaining_ms,
        )

    def _on_phase_expired(self) -> None:
        self._countdown = None
        status = self._status
        if status not in PHASE_STATUSES:
            return

        self._remaining_ms = 0
        if status == STATUS_WORK:
            self._completed_tasks[self._completed_work_units] = self._task_title
            self._completed_work_units += 1
        elif status == STATUS_SHORT_BREAK:
            self._completed_short_breaks += 1
        else:
            self._completed_long_breaks += 1
        self._logger.info(
            "Phase completed: %s (work=%d short=%d long=%d)",
            status,
            self._completed_work_units,
            self._completed_short_breaks,
            self._completed_long_breaks,
        )

        self._cancel_timers()
        session_complete = self._completed_work_units >= self._config.units_in_session
        if not session_complete:
            self._queue_phase_end_sounds()

        self._expiring = status
        self._pause_next_phase = False
        try:
            self._emit(_END_EVENTS[status])
        finally:
            self._expiring = None
        pause_next_phase, self._pause_next_phase = self._pause_next_phase, False
        # A listener may have stopped or invalidated the phase.
        if self._status != status or self._countdown is not None:
            return

        if session_complete:
            self._finish_session()
            return
        if status != STATUS_WORK:
            next_status = STATUS_WORK
        elif self._completed_work_units % self._config.units_before_long_break == 0:
            next_status = STATUS_LONG_BREAK
        else:
            next_status = STATUS_SHORT_BREAK
        self._begin_phase(next_status)
        if pause_next_phase and self._status == next_status:
            self.pause()

    def _finish_session(self) -> None:
        if self._config.use_sounds:
            if self._tic_tac_enabled():
                self._sounds.queue(SoundCue.NONE)
            self._sounds.queue(SoundCue.FINISH)
        self._status = STATUS_STOPPED
        self._paused_from = None
        self._task_offset_ms = 0
        self._logger.info(
            "Session ended: work=%d short=%d long=%d",
            self._completed_work_units,
            self._completed_short_breaks,
            self._completed_long_breaks,
        )
        self._emit(EVENT_SESSION_ENDED)

    def _queue_phase_end_sounds(self) -> None:
        if not self._config.use_sounds or self._status not in PHASE_STATUSES:
            return
        if self._tic_tac_enabled():
            self._sounds.queue(SoundCue.NONE)
        self._sounds.queue(SoundCue.RING)

    def _tic_tac_enabled(self) -> bool:
        return self._config.use_sounds and self._config.continuous_tic_tac

    def _start_timers(self, countdown_ms: int) -> None:
        self._cancel_timers()
        self._countdown = self._scheduler.call_later(countdown_ms, self._on_phase_expired)
        self._progress_timer = self._scheduler.call_every(
            PROGRESS_INTERVAL_MS,
            self._sample_progress,
        )

    def _cancel_timers(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        if self._progress_timer is not None:
            self._progress_timer.cancel()
            self._progress_timer = None

    def _sample_progress(self) -> None:
        total = self._phase_duration_ms
        if total <= 0 or self._status not in PHASE_STATUSES:
            return
        remaining = self._current_remaining_ms()
        current = abs(remaining - total) * 100 // total
        if current != self._progress:
            self._progress = current
            self._emit(EVENT_PROGRESS, progress=current)

    def _current_remaining_ms(self) -> int:
        if self._countdown is not None:
            return self._countdown.remaining_ms()
        return self._remaining_ms

    def _phase_elapsed_ms(self) -> int:
        return max(0, self._phase_duration_ms - self._current_remaining_ms())

    def _duration_for(self, status: str) -> int:
        if status == STATUS_WORK:
            return self._config.work_unit_ms
        if status == STATUS_SHORT_BREAK:
            return self._config.short_break_ms
        return self._config.long_break_ms

    def _emit(self, name: str, *, progress: Optional[int] = None) -> None:
        if not self._listeners:
            return
        event = SessionEvent(name=name, snapshot=self.snapshot(), progress=progress)
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception as error:
                self._logger.error(
                    "Session listener failed on %s: %s",
                    name,
                    error,
                    exc_info=True,
                )
