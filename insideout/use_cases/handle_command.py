"""Handle the ``/insideout`` slash command end to end."""

from collections.abc import Callable
from datetime import date
from typing import Any, Final

from insideout.config.logging_config import get_logger
from insideout.domain.exceptions import InsideOutError
from insideout.domain.protocols import Top5ClientProtocol
from insideout.presentation.block_kit import (
    build_fallback_text,
    build_help_blocks,
    build_top5_blocks,
)
from insideout.services.access_control import AccessAuthorizer
from insideout.services.command_parser import (
    is_help_request,
    parse_command_args,
    validate_command,
)

ACCESS_DENIED_TEXT: Final[str] = (
    "❌ Access denied. This command is restricted to HR team members."
)
FETCH_FAILED_TEXT: Final[str] = (
    "❌ Unable to fetch top 5 data. Please check your parameters and try again.\n\n"
    "Usage: `/insideout top5 [month] [year] [category|all]`\n"
    "Example: `/insideout top5 aug 2025 all`"
)

logger = get_logger(__name__)


def ephemeral(text: str) -> dict[str, Any]:
    """Reply visible only to the invoking user."""
    return {"response_type": "ephemeral", "text": text}


class InsideOutCommandHandler:
    """Authorize, parse, validate, query and render one command invocation."""

    def __init__(
        self,
        authorizer: AccessAuthorizer,
        client: Top5ClientProtocol,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._authorizer = authorizer
        self._client = client
        self._today = today

    def handle(self, text: str, user_id: str) -> dict[str, Any]:
        """Build the reply payload for a command.

        Args:
            text: Raw command text
            user_id: Slack user ID of the invoker

        Returns:
            Slack message payload (``response_type`` plus ``text``/``blocks``)
        """
        has_access = self._authorizer.is_allowed(user_id)
        logger.info("access_check_result", user_id=user_id, has_access=has_access)
        if not has_access:
            return ephemeral(ACCESS_DENIED_TEXT)

        if is_help_request(text):
            return {
                "response_type": "ephemeral",
                "text": "InsideOut Top 5 help",
                "blocks": build_help_blocks(),
            }

        today = self._today()
        validation = validate_command(parse_command_args(text, today=today))
        if not validation.accepted or validation.period is None or validation.selector is None:
            return ephemeral(validation.error or FETCH_FAILED_TEXT)

        try:
            response = self._client.fetch_top5(validation.period, validation.selector)
        except InsideOutError as exc:
            logger.error(
                "top5_fetch_failed",
                user_id=user_id,
                period=str(validation.period),
                error=str(exc),
            )
            return ephemeral(FETCH_FAILED_TEXT)

        logger.info(
            "top5_command_processed",
            user_id=user_id,
            category=str(getattr(validation.selector, "value", validation.selector)),
            period=response.period,
        )
        return {
            "response_type": "in_channel",
            "text": build_fallback_text(response),
            "blocks": build_top5_blocks(response, validation.selector, today=today),
        }
