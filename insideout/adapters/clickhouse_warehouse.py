"""ClickHouse warehouse adapter using clickhouse-connect."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import clickhouse_connect
from clickhouse_connect.driver.client import Client
from clickhouse_connect.driver.exceptions import ClickHouseError

from insideout.config.logging_config import get_logger
from insideout.domain.exceptions import ConfigurationError, QueryExecutionError

if TYPE_CHECKING:
    from insideout.config.settings import Settings

logger = get_logger(__name__)


class ClickHouseWarehouse:
    """Read-only ClickHouse client with an explicit connect/close lifecycle.

    One instance is created at service startup, connected once, shared by
    every request and closed on shutdown.
    """

    def __init__(
        self,
        host: str,
        *,
        port: int,
        username: str,
        password: str,
        database: str,
        secure: bool = False,
        session_timezone: str = "UTC",
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._database = database
        self._secure = secure
        self._session_timezone = session_timezone
        self._client: Client | None = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ClickHouseWarehouse":
        """Build an (unconnected) warehouse from settings.

        Raises:
            ConfigurationError: If no ClickHouse host is configured
        """
        if not settings.clickhouse_host:
            raise ConfigurationError("CLICKHOUSE_HOST must be configured")

        password = (
            settings.clickhouse_password.get_secret_value()
            if settings.clickhouse_password
            else ""
        )
        return cls(
            settings.clickhouse_host,
            port=settings.clickhouse_port,
            username=settings.clickhouse_user,
            password=password,
            database=settings.clickhouse_database,
            secure=settings.clickhouse_secure,
            session_timezone=settings.clickhouse_session_timezone,
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """Open the connection and verify it with a trivial query.

        Raises:
            QueryExecutionError: If the warehouse is unreachable
        """
        if self._client is not None:
            return

        try:
            client = clickhouse_connect.get_client(
                host=self._host,
                port=self._port,
                username=self._username,
                password=self._password,
                database=self._database,
                secure=self._secure,
                # queries run concurrently on one client; a shared session would lock
                autogenerate_session_id=False,
            )
            client.command("SELECT 1")
        except ClickHouseError as exc:
            raise QueryExecutionError(f"Failed to connect to ClickHouse: {exc}") from exc

        self._client = client
        logger.info(
            "warehouse_connected",
            host=self._host,
            port=self._port,
            database=self._database,
        )

    def query_rows(
        self, sql: str, parameters: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        """Run a query with server-side bound parameters.

        Args:
            sql: Query text using ``{name:Type}`` placeholders
            parameters: Values for the placeholders

        Returns:
            Rows as column-name dictionaries, in result order

        Raises:
            QueryExecutionError: If not connected or the query fails
        """
        if self._client is None:
            raise QueryExecutionError("Warehouse is not connected")

        try:
            result = self._client.query(
                sql,
                parameters=dict(parameters),
                settings={"session_timezone": self._session_timezone},
            )
        except ClickHouseError as exc:
            raise QueryExecutionError(f"ClickHouse query failed: {exc}") from exc

        return list(result.named_results())

    def close(self) -> None:
        """Close the connection (idempotent)."""
        if self._client is None:
            return
        self._client.close()
        self._client = None
        logger.info("warehouse_closed", host=self._host)
