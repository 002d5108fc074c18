from .config import SessionConfig
from .errors import CuePlayerError, SessionStateError, WorkTimerError
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, TimerHandle
from .service import SessionEvent, SessionListener, SessionSnapshot, SessionStatus, SessionTimer
from .sounds import CuePlayer, LoggingCuePlayer, SoundCue, SoundQueue

__all__ = [
    "AsyncioScheduler",
    "CuePlayer",
    "CuePlayerError",
    "LoggingCuePlayer",
    "ManualScheduler",
    "Scheduler",
    "SessionConfig",
    "SessionEvent",
    "SessionListener",
    "SessionSnapshot",
    "SessionStateError",
    "SessionStatus",
    "SessionTimer",
    "SoundCue",
    "SoundQueue",
    "TimerHandle",
    "WorkTimerError",
]
