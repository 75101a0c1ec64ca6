"""Health monitoring for the Slack bot process."""

import os
import resource
import sys
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Final

from insideout.config.logging_config import get_logger

MEMORY_WARNING_BYTES: Final[int] = 500 * 1024 * 1024
UNHEALTHY_RECONNECT_THRESHOLD: Final[int] = 5
PROC_STATM: Final[Path] = Path("/proc/self/statm")

logger = get_logger(__name__)


class HealthState(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthStatus:
    """Point-in-time health snapshot."""

    status: HealthState
    timestamp: datetime
    uptime_seconds: float
    memory_bytes: int
    socket_mode_connected: bool
    reconnect_attempts: int
    last_error: str | None = None


def current_memory_bytes(statm_path: Path = PROC_STATM) -> int:
    """Current resident set size of this process in bytes.

    Reads the resident page count from procfs. Where procfs is missing
    (macOS) the peak resident size from getrusage is the closest figure.
    """
    try:
        statm = statm_path.read_text()
    except OSError:
        max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        # Linux reports kilobytes, macOS bytes
        return max_rss if sys.platform == "darwin" else max_rss * 1024

    resident_pages = int(statm.split()[1])
    return resident_pages * os.sysconf("SC_PAGE_SIZE")


class HealthMonitor:
    """Tracks connection state and errors, and logs periodic health checks."""

    def __init__(self, memory_probe: Callable[[], int] = current_memory_bytes) -> None:
        self._memory_probe = memory_probe
        self._started_at = time.monotonic()
        self._last_error: str | None = None
        self._reconnect_attempts = 0
        self._socket_mode_connected = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def update_socket_mode_status(self, connected: bool) -> None:
        self._socket_mode_connected = connected
        if connected:
            self._reconnect_attempts = 0
            logger.info("socket_mode_status_updated", connected=True)
        else:
            logger.warning("socket_mode_status_updated", connected=False)

    def record_reconnect_attempt(self) -> None:
        self._reconnect_attempts += 1
        logger.warning("socket_mode_reconnect_attempt", attempt=self._reconnect_attempts)

    def record_error(self, error: BaseException | str) -> None:
        self._last_error = str(error)
        logger.error("health_monitor_recorded_error", error=self._last_error)

    def get_health_status(self) -> HealthStatus:
        memory_bytes = self._memory_probe()

        if (
            not self._socket_mode_connected
            or self._reconnect_attempts > UNHEALTHY_RECONNECT_THRESHOLD
        ):
            state = HealthState.UNHEALTHY
        elif self._reconnect_attempts > 0 or self._last_error:
            state = HealthState.DEGRADED
        else:
            state = HealthState.HEALTHY

        if memory_bytes > MEMORY_WARNING_BYTES:
            state = (
                HealthState.DEGRADED
                if state is HealthState.HEALTHY
                else HealthState.UNHEALTHY
            )

        return HealthStatus(
            status=state,
            timestamp=datetime.now(UTC),
            uptime_seconds=time.monotonic() - self._started_at,
            memory_bytes=memory_bytes,
            socket_mode_connected=self._socket_mode_connected,
            reconnect_attempts=self._reconnect_attempts,
            last_error=self._last_error,
        )

    def perform_health_check(self) -> HealthStatus:
        """Log the current health status and return it."""
        health = self.get_health_status()
        fields = {
            "status": health.status.value,
            "uptime_seconds": round(health.uptime_seconds),
            "memory_mb": health.memory_bytes // (1024 * 1024),
            "socket_mode_connected": health.socket_mode_connected,
            "reconnect_attempts": health.reconnect_attempts,
        }
        if health.status is HealthState.UNHEALTHY:
            logger.error("health_check_unhealthy", last_error=health.last_error, **fields)
        elif health.status is HealthState.DEGRADED:
            logger.warning("health_check_degraded", last_error=health.last_error, **fields)
        else:
            logger.info("health_check", **fields)
        return health

    def start_health_checks(self, interval_seconds: float) -> None:
        """Run ``perform_health_check`` every ``interval_seconds`` on a daemon thread."""
        if self._thread is not None:
            return
        interval_seconds = max(1.0, interval_seconds)
        self._stop_event.clear()

        def _loop() -> None:
            while not self._stop_event.wait(interval_seconds):
                self.perform_health_check()

        self._thread = threading.Thread(target=_loop, name="health-monitor", daemon=True)
        self._thread.start()
        logger.info("health_monitoring_started", interval_seconds=interval_seconds)

    def stop_health_checks(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=5)
        self._thread = None
        logger.info("health_monitoring_stopped")

    def get_health_report(self) -> str:
        """Human-readable report for the ``/health`` slash command."""
        health = self.get_health_status()
        status_text = {
            HealthState.HEALTHY: "✅ Healthy",
            HealthState.DEGRADED: "⚠️ Degraded",
            HealthState.UNHEALTHY: "❌ Unhealthy",
        }[health.status]

        lines = [
            "🏥 *Slack Bot Health Report*",
            f"• Status: {status_text}",
            f"• Uptime: {round(health.uptime_seconds / 60)} minutes",
            f"• Memory Usage: {health.memory_bytes // (1024 * 1024)}MB",
            "• Socket Mode: "
            + ("✅ Connected" if health.socket_mode_connected else "❌ Disconnected"),
            f"• Reconnect Attempts: {health.reconnect_attempts}",
        ]
        if health.last_error:
            lines.append(f"• Last Error: {health.last_error}")
        lines.append(f"• Timestamp: {health.timestamp.isoformat()}")
        return "\n".join(lines)
