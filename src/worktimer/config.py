"""Configuration model for session durations, unit counts, and sound toggles."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import (
    DEFAULT_LONG_BREAK_MS,
    DEFAULT_SHORT_BREAK_MS,
    DEFAULT_UNITS_BEFORE_LONG_BREAK,
    DEFAULT_UNITS_IN_SESSION,
    DEFAULT_WORK_UNIT_MS,
    MINUTE_MS,
)


@dataclass(frozen=True)
class SessionConfig:
    """Validated timing and sound settings applied to a session timer."""
    work_unit_ms: int = DEFAULT_WORK_UNIT_MS
    short_break_ms: int = DEFAULT_SHORT_BREAK_MS
    long_break_ms: int = DEFAULT_LONG_BREAK_MS
    units_before_long_break: int = DEFAULT_UNITS_BEFORE_LONG_BREAK
    units_in_session: int = DEFAULT_UNITS_IN_SESSION
    use_sounds: bool = True
    continuous_tic_tac: bool = False
    use_voice_announcements: bool = False

    def __post_init__(self) -> None:
        for field_name in ("work_unit_ms", "short_break_ms", "long_break_ms"):
            if int(getattr(self, field_name)) <= 0:
                raise ValueError(f"{field_name} must be greater than zero")
        if int(self.units_before_long_break) < 1:
            raise ValueError("units_before_long_break must be at least 1")
        if int(self.units_in_session) < 1:
            raise ValueError("units_in_session must be at least 1")

    @classmethod
    def from_settings(cls, timer_settings, sound_settings) -> "SessionConfig":
        return cls(
            work_unit_ms=_minutes_to_ms(timer_settings.work_minutes),
            short_break_ms=_minutes_to_ms(timer_settings.short_break_minutes),
            long_break_ms=_minutes_to_ms(timer_settings.long_break_minutes),
            units_before_long_break=int(timer_settings.units_before_long_break),
            units_in_session=int(timer_settings.units_in_session),
            use_sounds=bool(sound_settings.enabled),
            continuous_tic_tac=bool(sound_settings.continuous_tic_tac),
            use_voice_announcements=bool(sound_settings.voice_announcements),
        )


def _minutes_to_ms(minutes: float) -> int:
    return int(round(float(minutes) * MINUTE_MS))
