"""Process runtime helpers shared by the query service and bot entry points."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable
from types import FrameType
from typing import Protocol

from insideout.config.logging_config import get_logger, setup_logging
from insideout.config.settings import Settings

logger = get_logger(__name__)


class ShutdownSignal(Protocol):
    def is_set(self) -> bool: ...

    def wait(self, timeout: float) -> bool: ...


class ShutdownController:
    """Shutdown flag set from signal handlers and polled by the main loop."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)

    def request(self, signum: int, frame: FrameType | None) -> None:
        logger.info("shutdown_signal_received", signal=signal.Signals(signum).name)
        self._event.set()


def create_shutdown_controller() -> ShutdownController:
    return ShutdownController()


def install_signal_handlers(controller: ShutdownController) -> None:
    """Route SIGTERM and SIGINT to ``controller.request``."""
    for signum in (signal.SIGTERM, signal.SIGINT):
        signal.signal(signum, controller.request)


def initialize_logging(
    settings: Settings, *, service: str, json_logs: bool = False
) -> None:
    """Initialize structlog-based logging for an entry point."""

    setup_logging(log_level=settings.log_level, json_logs=json_logs, service=service)
    logger.info(
        "logging_initialized",
        service=service,
        level=settings.log_level,
        json_logs=json_logs,
    )


def supervise_connection(
    is_connected: Callable[[], bool],
    controller: ShutdownSignal,
    *,
    on_change: Callable[[bool], None],
    poll_interval: float,
    initially_connected: bool = True,
) -> None:
    """Poll a connection until shutdown, reporting every state change.

    Args:
        is_connected: Returns the current connection state
        controller: Shutdown signal; polling stops once it is set
        on_change: Called with the new state whenever it flips
        poll_interval: Seconds between polls
        initially_connected: State assumed before the first poll
    """
    poll_interval = max(0.1, poll_interval)
    last_state = initially_connected
    logger.info("connection_supervision_started", poll_interval=poll_interval)

    while not controller.wait(poll_interval):
        state = is_connected()
        if state == last_state:
            continue
        logger.info("connection_state_changed", connected=state)
        on_change(state)
        last_state = state

    logger.info("connection_supervision_stopped")


__all__ = [
    "ShutdownController",
    "ShutdownSignal",
    "create_shutdown_controller",
    "initialize_logging",
    "install_signal_handlers",
    "supervise_connection",
]
