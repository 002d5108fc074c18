"""Runtime engine exports."""

from .commands import CommandResult, SessionCommandDispatcher
from .loop import RuntimeBootstrap, RuntimeEngine
from .ui import RuntimeUIPublisher

__all__ = [
    "CommandResult",
    "RuntimeBootstrap",
    "RuntimeEngine",
    "RuntimeUIPublisher",
    "SessionCommandDispatcher",
]
