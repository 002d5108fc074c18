"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONFIG_FILE = "config.toml"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class TimerSettings:
    """Session durations and unit counts from `[timer]`."""
    work_minutes: float = 25.0
    short_break_minutes: float = 5.0
    long_break_minutes: float = 15.0
    units_in_session: int = 12
    units_before_long_break: int = 4
    task: str = "Undefined task"
    autostart: bool = True


@dataclass(frozen=True)
class SoundSettings:
    """Cue toggles from `[sounds]`."""
    enabled: bool = True
    continuous_tic_tac: bool = False
    voice_announcements: bool = False


@dataclass(frozen=True)
class UIServerSettings:
    """Websocket event server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    websocket_path: str = "/ws"
    index_file: str = ""


@dataclass(frozen=True)
class LoggingSettings:
    """Log verbosity from `[logging]`."""
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    timer: TimerSettings
    sounds: SoundSettings
    ui_server: UIServerSettings
    logging: LoggingSettings
    source_file: str
