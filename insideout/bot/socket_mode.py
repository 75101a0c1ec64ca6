"""Slash command transport over Slack Socket Mode."""

from collections.abc import Callable
from typing import Any, Final

from slack_sdk import WebClient
from slack_sdk.socket_mode import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.webhook import WebhookClient

from insideout.bot.health_monitor import HealthMonitor
from insideout.config.logging_config import bind_context, clear_context, get_logger
from insideout.services.access_control import AccessAuthorizer
from insideout.use_cases.handle_command import (
    ACCESS_DENIED_TEXT,
    InsideOutCommandHandler,
    ephemeral,
)

INSIDEOUT_COMMAND: Final[str] = "/insideout"
HEALTH_COMMAND: Final[str] = "/health"
SLASH_COMMANDS_TYPE: Final[str] = "slash_commands"
GENERIC_ERROR_TEXT: Final[str] = (
    "❌ An error occurred while processing your request. Please try again later."
)
HEALTH_ERROR_TEXT: Final[str] = (
    "❌ An error occurred while checking bot health. Please try again later."
)

logger = get_logger(__name__)

Responder = Callable[[str, dict[str, Any]], None]


def respond_via_webhook(response_url: str, payload: dict[str, Any]) -> None:
    """Post a reply to a slash command's ``response_url``."""
    response = WebhookClient(response_url).send_dict(payload)
    if response.status_code != 200:
        logger.warning(
            "slash_command_reply_failed",
            status_code=response.status_code,
            body=response.body,
        )


class SlashCommandListener:
    """Socket Mode listener dispatching ``/insideout`` and ``/health``."""

    def __init__(
        self,
        handler: InsideOutCommandHandler,
        authorizer: AccessAuthorizer,
        health_monitor: HealthMonitor,
        *,
        responder: Responder = respond_via_webhook,
    ) -> None:
        self._handler = handler
        self._authorizer = authorizer
        self._health_monitor = health_monitor
        self._responder = responder

    def __call__(self, client: SocketModeClient, req: SocketModeRequest) -> None:
        if req.type != SLASH_COMMANDS_TYPE:
            return

        # Acknowledge first; Slack expects an ack within 3 seconds
        client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))
        self.dispatch(req.payload)

    def dispatch(self, payload: dict[str, Any]) -> None:
        """Handle one slash command payload and post the reply."""
        command = payload.get("command", "")
        user_id = payload.get("user_id", "")
        response_url = payload.get("response_url")
        if not response_url:
            logger.warning("slash_command_missing_response_url", command=command)
            return

        bind_context(command=command, user_id=user_id)
        try:
            logger.info(
                "slash_command_received",
                text=payload.get("text", ""),
                channel=payload.get("channel_id"),
            )
            if command == INSIDEOUT_COMMAND:
                reply = self._reply_or_error(
                    lambda: self._handler.handle(payload.get("text", ""), user_id),
                    GENERIC_ERROR_TEXT,
                )
            elif command == HEALTH_COMMAND:
                reply = self._reply_or_error(
                    lambda: self._health_reply(user_id), HEALTH_ERROR_TEXT
                )
            else:
                logger.warning("slash_command_unknown")
                return

            self._responder(response_url, reply)
        finally:
            clear_context()

    def _health_reply(self, user_id: str) -> dict[str, Any]:
        if not self._authorizer.is_allowed(user_id):
            return ephemeral(ACCESS_DENIED_TEXT)
        return ephemeral(self._health_monitor.get_health_report())

    def _reply_or_error(
        self, build: Callable[[], dict[str, Any]], error_text: str
    ) -> dict[str, Any]:
        try:
            return build()
        except Exception as exc:  # noqa: BLE001 - the user always gets a reply
            logger.exception("slash_command_failed")
            self._health_monitor.record_error(exc)
            return ephemeral(error_text)


def create_socket_mode_client(
    app_token: str, bot_token: str, listener: SlashCommandListener
) -> SocketModeClient:
    """Build a Socket Mode client with the listener registered."""
    client = SocketModeClient(app_token=app_token, web_client=WebClient(token=bot_token))
    client.socket_mode_request_listeners.append(listener)
    return client
