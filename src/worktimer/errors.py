class WorkTimerError(Exception):
    """Base exception for session timer components."""


class SessionStateError(WorkTimerError):
    """Raised when a command is issued in a state that forbids it."""


class CuePlayerError(WorkTimerError):
    """Raised by cue players when a cue cannot be played or stopped."""
