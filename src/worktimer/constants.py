"""Status, event, cue, and reason constants used by the session timer."""

from __future__ import annotations

MINUTE_MS = 60 * 1000

DEFAULT_WORK_UNIT_MS = 25 * MINUTE_MS
DEFAULT_SHORT_BREAK_MS = 5 * MINUTE_MS
DEFAULT_LONG_BREAK_MS = 15 * MINUTE_MS
DEFAULT_UNITS_BEFORE_LONG_BREAK = 4
DEFAULT_UNITS_IN_SESSION = 12
DEFAULT_TASK_TITLE = "Undefined task"

PROGRESS_INTERVAL_MS = 1000

STATUS_WORK = "work"
STATUS_SHORT_BREAK = "short_break"
STATUS_LONG_BREAK = "long_break"
STATUS_PAUSED = "paused"
STATUS_STOPPED = "stopped"

PHASE_STATUSES: frozenset[str] = frozenset(
    {STATUS_WORK, STATUS_SHORT_BREAK, STATUS_LONG_BREAK}
)

STATUS_MESSAGES: dict[str, str] = {
    STATUS_STOPPED: "Stopped.",
    STATUS_WORK: "In a work unit.",
    STATUS_SHORT_BREAK: "In a short break.",
    STATUS_LONG_BREAK: "In a long break.",
    STATUS_PAUSED: "Paused.",
}

EVENT_BEGIN_WORK_UNIT = "begin_work_unit"
EVENT_WORK_UNIT_ENDED = "work_unit_ended"
EVENT_BEGIN_SHORT_BREAK = "begin_short_break"
EVENT_SHORT_BREAK_ENDED = "short_break_ended"
EVENT_BEGIN_LONG_BREAK = "begin_long_break"
EVENT_LONG_BREAK_ENDED = "long_break_ended"
EVENT_PROGRESS = "progress"
EVENT_SESSION_ENDED = "session_ended"

BEGIN_EVENTS: dict[str, str] = {
    STATUS_WORK: EVENT_BEGIN_WORK_UNIT,
    STATUS_SHORT_BREAK: EVENT_BEGIN_SHORT_BREAK,
    STATUS_LONG_BREAK: EVENT_BEGIN_LONG_BREAK,
}

# Cue lengths in milliseconds. Cues carry no completion signal, so the queue
# waits this long before playing the next one.
LENGTH_CRANK_MS = 530
LENGTH_TIC_TAC_MS = 450
LENGTH_RING_MS = 1300
LENGTH_CLICK_MS = 440
LENGTH_FINISH_MS = 2000
LENGTH_ANNOUNCEMENT_MS = 1500

COMMAND_START = "start"
COMMAND_PAUSE = "pause"
COMMAND_RESUME = "resume"
COMMAND_STOP = "stop"
COMMAND_INVALIDATE = "invalidate"
COMMAND_SET_TASK = "set_task"

REASON_STARTED = "started"
REASON_PAUSED = "paused"
REASON_RESUMED = "resumed"
REASON_STOPPED = "stopped"
REASON_INVALIDATED = "invalidated"
REASON_TASK_SET = "task_set"
REASON_NOT_STOPPED = "not_stopped"
REASON_NOT_ACTIVE = "not_active"
REASON_NOT_PAUSED = "not_paused"
REASON_MISSING_TITLE = "missing_title"
REASON_UNSUPPORTED_COMMAND = "unsupported_command"
