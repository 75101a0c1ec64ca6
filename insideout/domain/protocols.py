"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from insideout.domain.models import AggregateResponse, CanonicalPeriod, CategorySelector


class WarehouseProtocol(Protocol):
    """Protocol for the analytical data source."""

    def query_rows(
        self, sql: str, parameters: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        """Execute a parameterized query and return rows as dictionaries.

        Args:
            sql: Query text with bound placeholders
            parameters: Values bound server-side to the placeholders

        Returns:
            Rows keyed by column name, in result order

        Raises:
            QueryExecutionError: On warehouse errors
        """
        ...


class TemplateStoreProtocol(Protocol):
    """Protocol for SQL template lookup."""

    def load(self, name: str) -> str:
        """Return the template text for ``name``.

        Raises:
            TemplateNotFoundError: If no such template exists
        """
        ...


class DirectoryProtocol(Protocol):
    """Protocol for group membership lookups."""

    def usergroup_members(self, usergroup_id: str) -> Sequence[str]:
        """Return user IDs belonging to a usergroup.

        Raises:
            DirectoryLookupError: On API communication errors
        """
        ...


class Top5ClientProtocol(Protocol):
    """Protocol for fetching leaderboards from the query service."""

    def fetch_top5(
        self, period: CanonicalPeriod, selector: CategorySelector
    ) -> AggregateResponse:
        """Fetch the leaderboard for a period.

        Raises:
            QueryServiceError: On transport or service errors
        """
        ...
