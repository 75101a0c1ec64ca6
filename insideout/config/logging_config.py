"""Structured logging for the query service and the Slack bot.

Both processes log through structlog: console output while developing, one
JSON object per line in production. Every entry is tagged with the app and
the process (``service``) that emitted it, and values of credential-like keys
are cut down to a short prefix before rendering.
"""

import logging
import sys
from typing import Any, Final

import structlog
from structlog.types import EventDict, Processor

APP_NAME: Final[str] = "insideout"
REDACTED_PREFIX_LENGTH: Final[int] = 8
SENSITIVE_KEYS: Final[frozenset[str]] = frozenset(
    {"signature", "token", "secret", "password", "authorization"}
)
NOISY_LOGGERS: Final[tuple[str, ...]] = (
    "httpx",
    "urllib3",
    "slack_sdk",
    "clickhouse_connect",
    "uvicorn.access",
)


def _tag_service(service: str) -> Processor:
    def processor(
        logger: logging.Logger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict["app"] = APP_NAME
        event_dict["service"] = service
        return event_dict

    return processor


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Truncate values whose key names a credential.

    A key matches when any of its underscore-separated parts is in
    ``SENSITIVE_KEYS`` (``hmac_secret``, ``bot_token``, ``signature``...).
    """
    for key, value in event_dict.items():
        if not isinstance(value, str):
            continue
        if SENSITIVE_KEYS.isdisjoint(key.lower().split("_")):
            continue
        event_dict[key] = f"{value[:REDACTED_PREFIX_LENGTH]}..."
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service: str = APP_NAME,
) -> None:
    """Configure stdlib logging and structlog for one process.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        json_logs: Render JSON lines instead of colored console output
        service: Process name attached to every entry

    Example:
        >>> setup_logging(log_level="INFO", json_logs=True, service="query_service")
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _tag_service(service),
        redact_sensitive_fields,
    ]
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: Any) -> None:
    """Attach key-values to every entry logged in the current context.

    Example:
        >>> bind_context(request_id="abc123", category="monetizer")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
