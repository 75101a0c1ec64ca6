"""Slack usergroup directory adapter."""

from typing import Any

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from insideout.config.logging_config import get_logger
from insideout.domain.exceptions import DirectoryLookupError

logger = get_logger(__name__)


class SlackDirectory:
    """Resolves Slack usergroup membership."""

    def __init__(
        self,
        bot_token: str | None = None,
        *,
        client: Any | None = None,
    ) -> None:
        """Initialize directory.

        Args:
            bot_token: Slack bot user OAuth token (ignored when ``client`` is given)
            client: Optional preconfigured WebClient
        """
        if client is None and not bot_token:
            raise ValueError("Either bot_token or client must be provided")
        self.client = client if client is not None else WebClient(token=bot_token)

    def usergroup_members(self, usergroup_id: str) -> list[str]:
        """Return user IDs of a usergroup.

        Args:
            usergroup_id: Slack usergroup ID (S...)

        Returns:
            Member user IDs

        Raises:
            DirectoryLookupError: On API communication errors
        """
        try:
            response = self.client.usergroups_users_list(usergroup=usergroup_id)
        except SlackApiError as exc:
            raise DirectoryLookupError(
                f"Failed to list usergroup {usergroup_id}: {exc}"
            ) from exc

        if not response.get("ok"):
            raise DirectoryLookupError(
                f"Slack API error listing usergroup {usergroup_id}: "
                f"{response.get('error')}"
            )

        users: list[str] = list(response.get("users") or [])
        logger.debug(
            "usergroup_members_loaded", usergroup_id=usergroup_id, count=len(users)
        )
        return users
