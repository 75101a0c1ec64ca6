"""Authorization of Slack users invoking the bot."""

from collections.abc import Iterable

from insideout.config.logging_config import get_logger
from insideout.domain.protocols import DirectoryProtocol

logger = get_logger(__name__)


class AccessAuthorizer:
    """Decides whether a user may run leaderboard commands.

    An explicit user allowlist, when configured, is authoritative. Otherwise
    membership of the configured usergroup is checked. With neither
    configured every user is denied.
    """

    def __init__(
        self,
        directory: DirectoryProtocol | None,
        *,
        allowed_user_ids: Iterable[str] = (),
        allowed_usergroup_id: str | None = None,
    ) -> None:
        self._directory = directory
        self._allowed_user_ids = frozenset(allowed_user_ids)
        self._allowed_usergroup_id = allowed_usergroup_id or None

    def is_allowed(self, user_id: str) -> bool:
        """Return True if ``user_id`` may run commands."""
        if self._allowed_user_ids:
            return user_id in self._allowed_user_ids

        if self._allowed_usergroup_id:
            return self._is_usergroup_member(user_id, self._allowed_usergroup_id)

        logger.warning("access_control_not_configured", user_id=user_id)
        return False

    def _is_usergroup_member(self, user_id: str, usergroup_id: str) -> bool:
        if self._directory is None:
            logger.error("access_directory_missing", usergroup_id=usergroup_id)
            return False

        try:
            members = self._directory.usergroup_members(usergroup_id)
        except Exception as exc:  # noqa: BLE001 - any lookup failure denies access
            logger.error(
                "access_usergroup_lookup_failed",
                usergroup_id=usergroup_id,
                user_id=user_id,
                error=str(exc),
            )
            return False

        return user_id in members
