from __future__ import annotations

"""Run the InsideOut Slack bot over Socket Mode."""

import argparse
import sys
from pathlib import Path

from pydantic import SecretStr

sys.path.insert(0, str(Path(__file__).parent.parent))

from insideout.adapters.query_service_client import QueryServiceClient
from insideout.adapters.slack_directory import SlackDirectory
from insideout.bot.health_monitor import HealthMonitor
from insideout.bot.socket_mode import SlashCommandListener, create_socket_mode_client
from insideout.bot.startup import StartupRetry
from insideout.config.logging_config import get_logger
from insideout.config.settings import get_settings
from insideout.domain.exceptions import ConfigurationError
from insideout.services.access_control import AccessAuthorizer
from insideout.use_cases.handle_command import InsideOutCommandHandler
from scripts import runtime

logger = get_logger(__name__)

CONNECTION_POLL_SECONDS = 5.0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the InsideOut Slack bot")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs in JSON format",
    )
    parser.add_argument(
        "--health-interval-seconds",
        type=float,
        default=None,
        help="Override the interval between health checks",
    )
    args = parser.parse_args(argv)
    if args.health_interval_seconds is not None and args.health_interval_seconds <= 0:
        parser.error("--health-interval-seconds must be greater than 0")
    return args


def _secret(name: str, value: SecretStr | None) -> str:
    if value is None:
        raise ConfigurationError(f"{name} must be configured")
    return value.get_secret_value()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    settings = get_settings()
    runtime.initialize_logging(
        settings, service="slack_bot", json_logs=args.json_logs
    )

    try:
        bot_token = _secret("SLACK_BOT_TOKEN", settings.slack_bot_token)
        app_token = _secret("SLACK_APP_TOKEN", settings.slack_app_token)
        hmac_secret = _secret("HMAC_SECRET_SHARED", settings.hmac_secret_shared)
        query_client = QueryServiceClient(
            settings.query_service_url,
            hmac_secret,
            timeout_seconds=settings.query_service_timeout_seconds,
        )
    except ConfigurationError as exc:
        logger.error("bot_configuration_invalid", error=str(exc))
        return 1

    logger.info(
        "bot_environment_check",
        allowed_user_ids=settings.allowed_user_id_list or "not set",
        allowed_usergroup_id=settings.allowed_usergroup_id or "not set",
    )

    controller = runtime.create_shutdown_controller()
    runtime.install_signal_handlers(controller)

    authorizer = AccessAuthorizer(
        SlackDirectory(bot_token),
        allowed_user_ids=settings.allowed_user_id_list,
        allowed_usergroup_id=settings.allowed_usergroup_id,
    )
    health_monitor = HealthMonitor()
    listener = SlashCommandListener(
        InsideOutCommandHandler(authorizer, query_client),
        authorizer,
        health_monitor,
    )
    socket_client = create_socket_mode_client(app_token, bot_token, listener)

    retry = StartupRetry(
        max_attempts=settings.startup_max_attempts,
        base_delay_seconds=settings.startup_base_delay_seconds,
        max_delay_seconds=settings.startup_max_delay_seconds,
    )
    connected = retry.run(
        socket_client.connect,
        wait=controller.wait,
        on_failure=health_monitor.record_error,
    )
    if not connected:
        query_client.close()
        return 0 if controller.is_set() else 1

    logger.info("slack_bot_running")
    health_monitor.update_socket_mode_status(True)
    health_monitor.start_health_checks(
        args.health_interval_seconds or settings.health_check_interval_seconds
    )

    def _on_connection_change(connected: bool) -> None:
        if not connected:
            health_monitor.record_reconnect_attempt()
        health_monitor.update_socket_mode_status(connected)

    try:
        runtime.supervise_connection(
            socket_client.is_connected,
            controller,
            on_change=_on_connection_change,
            poll_interval=CONNECTION_POLL_SECONDS,
        )
    finally:
        logger.info("slack_bot_shutting_down")
        health_monitor.stop_health_checks()
        health_monitor.perform_health_check()
        socket_client.close()
        query_client.close()
        logger.info("slack_bot_stopped")

    return 0


if __name__ == "__main__":
    sys.exit(main())
