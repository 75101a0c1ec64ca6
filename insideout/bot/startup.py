"""Bounded retry of the bot's Socket Mode connection at startup."""

from collections.abc import Callable
from enum import Enum

from insideout.config.logging_config import get_logger

logger = get_logger(__name__)


class StartupState(str, Enum):
    PENDING = "pending"
    RETRYING = "retrying"
    CONNECTED = "connected"
    GAVE_UP = "gave_up"


class StartupRetry:
    """Explicit retry state machine with exponential backoff.

    ``PENDING`` -> ``CONNECTED`` on success. Each failure moves to
    ``RETRYING`` with delay ``min(base * 2**attempt, max_delay)`` until
    ``max_attempts`` failures, which ends in the terminal ``GAVE_UP`` state.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 10,
        base_delay_seconds: float = 1.0,
        max_delay_seconds: float = 30.0,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self.max_attempts = max_attempts
        self.base_delay_seconds = max(base_delay_seconds, 0.0)
        self.max_delay_seconds = max(max_delay_seconds, 0.0)
        self.attempts = 0
        self.state = StartupState.PENDING

    def delay_for(self, attempt: int) -> float:
        """Backoff delay before retry number ``attempt`` (1-based)."""
        return min(self.base_delay_seconds * 2**attempt, self.max_delay_seconds)

    def record_failure(self) -> float | None:
        """Register a failed attempt.

        Returns:
            Seconds to wait before the next attempt, or None once given up
        """
        if self.state is StartupState.GAVE_UP:
            return None

        self.attempts += 1
        if self.attempts >= self.max_attempts:
            self.state = StartupState.GAVE_UP
            return None

        self.state = StartupState.RETRYING
        return self.delay_for(self.attempts)

    def record_success(self) -> None:
        self.state = StartupState.CONNECTED
        self.attempts = 0

    def run(
        self,
        start: Callable[[], None],
        *,
        wait: Callable[[float], bool],
        on_failure: Callable[[Exception], None] | None = None,
    ) -> bool:
        """Call ``start`` until it succeeds, gives up or ``wait`` is interrupted.

        Args:
            start: Connect callable; raising means the attempt failed
            wait: Sleeps for the given seconds, returning True if shutdown
                was requested meanwhile (e.g. ``threading.Event.wait``)
            on_failure: Optional hook receiving each failure

        Returns:
            True once connected, False if retries were exhausted or interrupted
        """
        while True:
            try:
                start()
            except Exception as exc:  # noqa: BLE001 - every startup failure is retried
                if on_failure is not None:
                    on_failure(exc)
                delay = self.record_failure()
                if delay is None:
                    logger.error(
                        "startup_attempts_exhausted",
                        attempts=self.attempts,
                        error=str(exc),
                    )
                    return False
                logger.warning(
                    "startup_retry_scheduled",
                    attempt=self.attempts,
                    max_attempts=self.max_attempts,
                    delay_seconds=delay,
                    error=str(exc),
                )
                if wait(delay):
                    logger.info("startup_retry_interrupted", attempt=self.attempts)
                    return False
                continue

            self.record_success()
            return True
