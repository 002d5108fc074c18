from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from http import HTTPStatus
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import ServerConnection, broadcast, serve
from websockets.datastructures import Headers
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_ERROR, EVENT_HELLO

from .config import HEALTHZ_PATH, INDEX_PATH, ROOT_PATH, UIServerConfig
from .events import StickyEventStore, make_event, parse_client_message

CommandHandler = Callable[[dict[str, Any]], None]

_TEXT_PLAIN = "text/plain; charset=utf-8"
_TEXT_HTML = "text/html; charset=utf-8"


class UIServer:
    """Streams session events to websocket clients from a background thread.

    The server runs its own asyncio loop so that the session timer's loop is
    never blocked by slow clients. Client commands are handed to
    `on_command` on the server thread; the receiver must marshal them to the
    timer's loop.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
        on_command: Optional[CommandHandler] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._on_command = on_command
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_requested: Optional[asyncio.Event] = None
        self._ready = threading.Event()
        self._failure: Optional[BaseException] = None
        self._clients: set[ServerConnection] = set()
        self._sticky_events = StickyEventStore()
        self._routes: dict[str, tuple[bytes, str]] = {HEALTHZ_PATH: (b"ok\n", _TEXT_PLAIN)}
        if config.index_file:
            page = Path(config.index_file).read_bytes()
            self._routes[ROOT_PATH] = (page, _TEXT_HTML)
            self._routes[INDEX_PATH] = (page, _TEXT_HTML)

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._failure is None
        )

    def set_command_handler(self, handler: Optional[CommandHandler]) -> None:
        self._on_command = handler

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._failure = None
        self._ready.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            daemon=True,
            name="ui-server",
        )
        self._thread.start()

        if not self._ready.wait(timeout_seconds):
            raise RuntimeError(f"UI server did not start within {timeout_seconds:.1f}s")
        if self._failure is not None:
            raise RuntimeError(f"UI server startup failed: {self._failure}") from self._failure

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        loop, stop_requested = self._loop, self._stop_requested
        if loop is not None and stop_requested is not None:
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(stop_requested.set)

        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("UI server thread did not stop within %.1fs", timeout_seconds)
        self._thread = None

    def publish(self, event_type: str, **payload: Any) -> None:
        """Send an event to every client; callable from any thread."""
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)

        loop = self._loop
        if loop is None or not self.is_running:
            return
        # Loop may already be closing.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._broadcast, message)

    def _broadcast(self, message: str) -> None:
        if self._clients:
            broadcast(self._clients, message)

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as error:  # pragma: no cover - exercised manually
            self._failure = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
        finally:
            self._loop = None
            self._stop_requested = None
            self._ready.set()

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_requested = asyncio.Event()
        async with serve(
            self._handle_client,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "UI server listening on ws://%s:%d%s",
                self._config.host,
                self._config.port,
                self._config.websocket_path,
            )
            self._ready.set()
            await self._stop_requested.wait()
        # Leaving `serve` closes remaining client connections with 1001.

    async def _handle_client(self, connection: ServerConnection) -> None:
        self._clients.add(connection)
        self._logger.info("Client connected: %s", connection.remote_address)
        try:
            await connection.send(make_event(EVENT_HELLO, message="WorkTimer websocket connected"))
            for message in self._sticky_events.snapshot():
                await connection.send(message)
            async for raw in connection:
                reply = self._handle_client_message(raw)
                if reply is not None:
                    await connection.send(reply)
        except ConnectionClosed:
            self._logger.info("Client disconnected: %s", connection.remote_address)
        finally:
            self._clients.discard(connection)

    def _handle_client_message(self, raw: str | bytes) -> Optional[str]:
        """Forward a command to the handler; returns an error event to send back."""
        command = parse_client_message(raw)
        if command is None:
            self._logger.debug("Ignoring malformed client message: %r", raw)
            return make_event(EVENT_ERROR, message="Malformed command")
        if self._on_command is None:
            self._logger.debug("No command handler; dropping %s", command)
            return None
        try:
            self._on_command(command)
        except Exception as error:
            self._logger.error("Command handler failed: %s", error, exc_info=True)
            return make_event(EVENT_ERROR, message="Command failed")
        return None

    async def _process_request(
        self,
        connection: Optional[ServerConnection],
        request: Request,
    ) -> Optional[Response]:
        del connection  # Routing depends on the path only.
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None

        route = self._routes.get(path)
        if route is None:
            return _response(HTTPStatus.NOT_FOUND, b"not found\n", _TEXT_PLAIN)
        body, content_type = route
        return _response(HTTPStatus.OK, body, content_type)


def _response(status: HTTPStatus, body: bytes, content_type: str) -> Response:
    headers = Headers()
    headers["Content-Type"] = content_type
    headers["Content-Length"] = str(len(body))
    headers["Cache-Control"] = "no-store"
    return Response(status.value, status.phrase, headers, body)
