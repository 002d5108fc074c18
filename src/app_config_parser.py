"""Typed parser turning config.toml tables into frozen settings objects."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

from app_config_schema import (
    AppConfig,
    AppConfigurationError,
    LoggingSettings,
    SoundSettings,
    TimerSettings,
    UIServerSettings,
)

_ALLOWED_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})

_TIMER_DEFAULTS = TimerSettings()
_SOUND_DEFAULTS = SoundSettings()
_UI_SERVER_DEFAULTS = UIServerSettings()
_LOGGING_DEFAULTS = LoggingSettings()


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    return AppConfig(
        timer=_parse_timer(_Table.of(raw, "timer")),
        sounds=_parse_sounds(_Table.of(raw, "sounds")),
        ui_server=_parse_ui_server(_Table.of(raw, "ui_server"), base_dir),
        logging=_parse_logging(_Table.of(raw, "logging")),
        source_file=source_file,
    )


def _parse_timer(table: "_Table") -> TimerSettings:
    defaults = _TIMER_DEFAULTS
    return TimerSettings(
        work_minutes=table.positive_number("work_minutes", defaults.work_minutes),
        short_break_minutes=table.positive_number(
            "short_break_minutes",
            defaults.short_break_minutes,
        ),
        long_break_minutes=table.positive_number(
            "long_break_minutes",
            defaults.long_break_minutes,
        ),
        units_in_session=table.integer(
            "units_in_session",
            defaults.units_in_session,
            minimum=1,
        ),
        units_before_long_break=table.integer(
            "units_before_long_break",
            defaults.units_before_long_break,
            minimum=1,
        ),
        task=table.text("task", defaults.task) or defaults.task,
        autostart=table.flag("autostart", defaults.autostart),
    )


def _parse_sounds(table: "_Table") -> SoundSettings:
    defaults = _SOUND_DEFAULTS
    return SoundSettings(
        enabled=table.flag("enabled", defaults.enabled),
        continuous_tic_tac=table.flag("continuous_tic_tac", defaults.continuous_tic_tac),
        voice_announcements=table.flag(
            "voice_announcements",
            defaults.voice_announcements,
        ),
    )


def _parse_ui_server(table: "_Table", base_dir: Path) -> UIServerSettings:
    defaults = _UI_SERVER_DEFAULTS
    return UIServerSettings(
        enabled=table.flag("enabled", defaults.enabled),
        host=table.text("host", defaults.host),
        port=table.integer("port", defaults.port),
        websocket_path=table.text("websocket_path", defaults.websocket_path),
        index_file=table.path("index_file", base_dir),
    )


def _parse_logging(table: "_Table") -> LoggingSettings:
    level = table.text("level", _LOGGING_DEFAULTS.level).upper() or _LOGGING_DEFAULTS.level
    if level not in _ALLOWED_LOG_LEVELS:
        allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
        raise AppConfigurationError(f"logging.level must be one of: {allowed}.")
    return LoggingSettings(level=level)


class _Table:
    """One `[section]` of the document; accessors prefix errors with its name."""

    def __init__(self, name: str, values: Mapping[str, Any]):
        self.name = name
        self._values = values

    @classmethod
    def of(cls, root: Mapping[str, Any], name: str) -> "_Table":
        values = root.get(name)
        if values is None:
            values = {}
        elif not isinstance(values, Mapping):
            raise AppConfigurationError(f"[{name}] must be a table.")
        return cls(name, values)

    def text(self, key: str, default: str = "") -> str:
        value = self._values.get(key, default)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise self._invalid(key, "a string")
        return value.strip()

    def flag(self, key: str, default: bool) -> bool:
        value = self._values.get(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        raise self._invalid(key, "a boolean")

    def integer(self, key: str, default: int, *, minimum: Optional[int] = None) -> int:
        value = self._values.get(key, default)
        if isinstance(value, str):
            try:
                value = int(value.strip(), 10)
            except ValueError as error:
                raise self._invalid(key, "an integer") from error
        # bool is an int subclass; `true` is not a count.
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._invalid(key, "an integer")
        if minimum is not None and value < minimum:
            raise AppConfigurationError(f"{self.name}.{key} must be at least {minimum}.")
        return value

    def positive_number(self, key: str, default: float) -> float:
        value = self._values.get(key, default)
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError as error:
                raise self._invalid(key, "a number") from error
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._invalid(key, "a number")
        if value <= 0:
            raise AppConfigurationError(f"{self.name}.{key} must be greater than zero.")
        return float(value)

    def path(self, key: str, base_dir: Path) -> str:
        """Resolve a file path relative to the directory holding config.toml."""
        raw = self.text(key)
        if not raw:
            return ""
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = (base_dir / path).resolve()
        return str(path)

    def _invalid(self, key: str, expected: str) -> AppConfigurationError:
        return AppConfigurationError(f"{self.name}.{key} must be {expected}.")
