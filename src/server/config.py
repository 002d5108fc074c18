"""Settings for the websocket server that streams session events."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class ServerConfigurationError(Exception):
    """Raised when UI server configuration is invalid."""


ROOT_PATH = "/"
INDEX_PATH = "/index.html"
HEALTHZ_PATH = "/healthz"
DEFAULT_WEBSOCKET_PATH = "/ws"

_HTTP_PATHS = frozenset({ROOT_PATH, INDEX_PATH, HEALTHZ_PATH})


@dataclass(frozen=True)
class UIServerConfig:
    """Validated `[ui_server]` settings.

    `index_file` is optional; without it the server only answers the
    websocket endpoint and `/healthz`.
    """
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    websocket_path: str = DEFAULT_WEBSOCKET_PATH
    index_file: str = ""

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ServerConfigurationError("ui_server.host cannot be empty")
        if not 1 <= self.port <= 65535:
            raise ServerConfigurationError(
                f"ui_server.port must be in [1, 65535], got: {self.port}"
            )
        if not self.websocket_path.startswith("/") or self.websocket_path in _HTTP_PATHS:
            raise ServerConfigurationError(
                f"ui_server.websocket_path must be an unused absolute path, "
                f"got: {self.websocket_path!r}"
            )
        if self.enabled and self.index_file and not Path(self.index_file).is_file():
            raise ServerConfigurationError(f"UI index file not found: {self.index_file}")

    @classmethod
    def from_settings(cls, settings) -> "UIServerConfig":
        return cls(
            enabled=bool(settings.enabled),
            host=settings.host,
            port=settings.port,
            websocket_path=settings.websocket_path or DEFAULT_WEBSOCKET_PATH,
            index_file=(settings.index_file or "").strip(),
        )
