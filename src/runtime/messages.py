"""Status text builders for log lines and command results."""

from __future__ import annotations

from worktimer import SessionSnapshot
from worktimer.constants import (
    STATUS_LONG_BREAK,
    STATUS_PAUSED,
    STATUS_SHORT_BREAK,
    STATUS_WORK,
)

_PHASE_LABELS: dict[str, str] = {
    STATUS_WORK: "Work unit",
    STATUS_SHORT_BREAK: "Short break",
    STATUS_LONG_BREAK: "Long break",
}


def format_duration(milliseconds: int) -> str:
    """Format milliseconds as `MM:SS`, or `H:MM:SS` past one hour."""
    total_seconds = max(0, int(milliseconds)) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def session_status_message(snapshot: SessionSnapshot) -> str:
    """Build a one-line description of the session snapshot."""
    if not snapshot.is_active:
        return "Stopped."

    label = _PHASE_LABELS[snapshot.phase]
    remaining = format_duration(snapshot.remaining_ms)
    if snapshot.status == STATUS_PAUSED:
        return f"{label} paused ({remaining} remaining)"
    if snapshot.phase == STATUS_WORK:
        return f"{label} '{snapshot.task_title}' ({remaining} remaining)"
    return f"{label} ({remaining} remaining)"
