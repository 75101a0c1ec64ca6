from __future__ import annotations

"""Run the InsideOut query service (HTTP API over ClickHouse)."""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from insideout.api.app import create_app
from insideout.config.logging_config import get_logger
from insideout.config.settings import get_settings
from scripts import runtime

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the InsideOut query service")
    parser.add_argument("--host", default=None, help="Bind address override")
    parser.add_argument("--port", type=int, default=None, help="Bind port override")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs in JSON format",
    )
    args = parser.parse_args(argv)
    if args.port is not None and not 0 < args.port < 65536:
        parser.error("--port must be between 1 and 65535")
    return args


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    settings = get_settings()
    runtime.initialize_logging(
        settings, service="query_service", json_logs=args.json_logs
    )

    host = args.host or settings.service_host
    port = args.port or settings.service_port

    app = create_app(settings)
    logger.info("query_service_starting", host=host, port=port)
    # uvicorn installs its own SIGINT/SIGTERM handlers and runs the app lifespan
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
