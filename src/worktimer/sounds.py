"""Sound-cue identifiers, cue players, and the FIFO queue that sequences them."""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Optional, Protocol

from .constants import (
    LENGTH_ANNOUNCEMENT_MS,
    LENGTH_CLICK_MS,
    LENGTH_CRANK_MS,
    LENGTH_FINISH_MS,
    LENGTH_RING_MS,
    LENGTH_TIC_TAC_MS,
    STATUS_LONG_BREAK,
    STATUS_SHORT_BREAK,
    STATUS_WORK,
)
from .errors import CuePlayerError
from .scheduler import Scheduler, TimerHandle


class SoundCue(Enum):
    CRANK = "crank"
    TIC_TAC = "tic_tac"
    RING = "ring"
    CLICK = "click"
    FINISH = "finish"
    SHORT_BREAK_ANNOUNCEMENT = "short_break_announcement"
    LONG_BREAK_ANNOUNCEMENT = "long_break_announcement"
    WORK_UNIT_ANNOUNCEMENT = "work_unit_announcement"
    # Pseudo cue: stops a looping tic-tac.
    NONE = "none"


CUE_LENGTHS_MS: dict[SoundCue, int] = {
    SoundCue.CRANK: LENGTH_CRANK_MS,
    SoundCue.TIC_TAC: LENGTH_TIC_TAC_MS,
    SoundCue.RING: LENGTH_RING_MS,
    SoundCue.CLICK: LENGTH_CLICK_MS,
    SoundCue.FINISH: LENGTH_FINISH_MS,
    SoundCue.SHORT_BREAK_ANNOUNCEMENT: LENGTH_ANNOUNCEMENT_MS,
    SoundCue.LONG_BREAK_ANNOUNCEMENT: LENGTH_ANNOUNCEMENT_MS,
    SoundCue.WORK_UNIT_ANNOUNCEMENT: LENGTH_ANNOUNCEMENT_MS,
    SoundCue.NONE: LENGTH_TIC_TAC_MS,
}

ANNOUNCEMENT_CUES: dict[str, SoundCue] = {
    STATUS_WORK: SoundCue.WORK_UNIT_ANNOUNCEMENT,
    STATUS_SHORT_BREAK: SoundCue.SHORT_BREAK_ANNOUNCEMENT,
    STATUS_LONG_BREAK: SoundCue.LONG_BREAK_ANNOUNCEMENT,
}


class CuePlayer(Protocol):
    def play(self, cue: SoundCue, *, loop: bool = False) -> None:
        ...

    def stop(self, cue: SoundCue) -> None:
        ...


class LoggingCuePlayer:
    """Cue player that only reports what would be played."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("worktimer.sounds")

    def play(self, cue: SoundCue, *, loop: bool = False) -> None:
        if loop:
            self._logger.info("Cue started (looping): %s", cue.value)
        else:
            self._logger.info("Cue played: %s", cue.value)

    def stop(self, cue: SoundCue) -> None:
        self._logger.info("Cue stopped: %s", cue.value)


class SoundQueue:
    """Plays queued cues one at a time, timing each by its known length."""

    def __init__(
        self,
        scheduler: Scheduler,
        player: CuePlayer,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._scheduler = scheduler
        self._player = player
        self._logger = logger or logging.getLogger("worktimer.sounds")
        self._pending: deque[tuple[SoundCue, bool]] = deque()
        self._cue_timer: Optional[TimerHandle] = None
        self._tic_tac_looping = False

    @property
    def pending(self) -> tuple[SoundCue, ...]:
        return tuple(cue for cue, _ in self._pending)

    @property
    def tic_tac_looping(self) -> bool:
        return self._tic_tac_looping

    def queue(self, cue: SoundCue, *, loop: bool = False) -> None:
        self._pending.append((cue, loop))
        if len(self._pending) == 1:
            self._play_pending()

    def clear(self) -> None:
        """Drop pending cues and silence a looping tic-tac immediately."""
        if self._cue_timer is not None:
            self._cue_timer.cancel()
            self._cue_timer = None
        self._pending.clear()
        if self._tic_tac_looping:
            self._tic_tac_looping = False
            self._stop_cue(SoundCue.TIC_TAC)

    def _play_pending(self) -> None:
        while self._pending:
            cue, loop = self._pending[0]
            if self._start_cue(cue, loop):
                self._cue_timer = self._scheduler.call_later(
                    CUE_LENGTHS_MS[cue],
                    self._on_cue_finished,
                )
                return
            self._pending.popleft()

    def _start_cue(self, cue: SoundCue, loop: bool) -> bool:
        if cue is SoundCue.NONE:
            if not self._tic_tac_looping:
                return False
            self._tic_tac_looping = False
            self._stop_cue(SoundCue.TIC_TAC)
            return True

        try:
            self._player.play(cue, loop=loop)
        except CuePlayerError as error:
            self._logger.error("Cue playback failed (%s): %s", cue.value, error)
            return False

        if cue is SoundCue.TIC_TAC and loop:
            self._tic_tac_looping = True
        return True

    def _stop_cue(self, cue: SoundCue) -> None:
        try:
            self._player.stop(cue)
        except CuePlayerError as error:
            self._logger.error("Cue stop failed (%s): %s", cue.value, error)

    def _on_cue_finished(self) -> None:
        self._cue_timer = None
        if self._pending:
            self._pending.popleft()
        self._play_pending()
