from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older runtimes
    import tomli as tomllib  # type: ignore

from app_config_parser import parse_app_config
from app_config_schema import (
    DEFAULT_CONFIG_FILE,
    AppConfig,
    AppConfigurationError,
    LoggingSettings,
    SoundSettings,
    TimerSettings,
    UIServerSettings,
)

CONFIG_ENV_VAR = "WORKTIMER_CONFIG_FILE"

__all__ = [
    "CONFIG_ENV_VAR",
    "AppConfig",
    "AppConfigurationError",
    "LoggingSettings",
    "SoundSettings",
    "TimerSettings",
    "UIServerSettings",
    "load_app_config",
    "resolve_config_path",
]


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    """Pick the config file: argument, then environment, then ./config.toml.

    A frozen bundle may ship its own config.toml; it is used only when nothing
    was requested explicitly and the working directory has none.
    """
    requested = config_path or os.getenv(CONFIG_ENV_VAR)
    candidate = _absolute(requested or DEFAULT_CONFIG_FILE)
    if requested or candidate.exists():
        return candidate

    bundle_root = getattr(sys, "_MEIPASS", None)
    if bundle_root:
        bundled = Path(bundle_root) / DEFAULT_CONFIG_FILE
        if bundled.exists():
            return bundled
    return candidate


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    path = resolve_config_path(config_path)
    raw = _read_toml(path)
    return parse_app_config(raw, base_dir=path.parent, source_file=str(path))


def _absolute(raw: str) -> Path:
    path = Path(raw).expanduser()
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


def _read_toml(path: Path) -> Mapping:
    if not path.exists():
        raise AppConfigurationError(f"Config file not found: {path}")
    if not path.is_file():
        raise AppConfigurationError(f"Config path is not a file: {path}")

    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as error:
        raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error

    if not isinstance(raw, Mapping):
        raise AppConfigurationError("Root config TOML object must be a table.")
    return raw
