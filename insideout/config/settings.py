"""Application settings with Pydantic Settings validation.

Secrets (HMAC secret, Slack tokens, warehouse password) are loaded from the
environment or a .env file. Non-sensitive configuration is loaded from
config/main.yaml and config/*.yaml files, merged and validated against JSON
schemas.
"""

import json
from pathlib import Path
from typing import Any, Final, cast

import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from insideout.config.logging_config import get_logger

CONFIG_DIR: Final[Path] = Path("config")
SCHEMA_DIR: Final[Path] = CONFIG_DIR / "schemas"

CLICKHOUSE_PORT_DEFAULT: Final[int] = 8123
CLICKHOUSE_SESSION_TIMEZONE_DEFAULT: Final[str] = "UTC"
QUERY_SERVICE_TIMEOUT_SECONDS_DEFAULT: Final[float] = 10.0
SERVICE_PORT_DEFAULT: Final[int] = 8080
HEALTH_CHECK_INTERVAL_SECONDS_DEFAULT: Final[float] = 30.0
STARTUP_MAX_ATTEMPTS_DEFAULT: Final[int] = 10
STARTUP_BASE_DELAY_SECONDS_DEFAULT: Final[float] = 1.0
STARTUP_MAX_DELAY_SECONDS_DEFAULT: Final[float] = 30.0

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str, schema_dir: Path = SCHEMA_DIR) -> dict[str, Any]:
    """Load JSON Schema from config/schemas/.

    Args:
        schema_name: Schema name without extension (e.g., "main")
        schema_dir: Directory holding ``<name>.schema.json`` files

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = schema_dir / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return cast(dict[str, Any], json.load(f))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any],
    schema_name: str,
    file_path: str = "",
    schema_dir: Path = SCHEMA_DIR,
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages
        schema_dir: Directory holding schemas

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name, schema_dir)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def load_all_configs(config_dir: Path = CONFIG_DIR) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    Loading order (later overrides earlier):
    1. config/main.yaml
    2. All other config/*.yaml files (sorted alphabetically)

    Each file is validated against its JSON Schema if available.

    Args:
        config_dir: Directory to load from

    Returns:
        Merged configuration dictionary

    Raises:
        ValueError: If a file fails schema validation
    """
    if not config_dir.is_dir():
        return {}

    schema_dir = config_dir / "schemas"
    merged_config: dict[str, Any] = {}
    yaml_files = sorted(
        config_dir.glob("*.yaml"), key=lambda path: (path.name != "main.yaml", path.name)
    )

    for yaml_file in yaml_files:
        schema_name = yaml_file.stem
        try:
            with open(yaml_file, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "config_file_load_failed",
                path=str(yaml_file),
                error=str(e),
            )
            continue

        try:
            validate_config_section(file_config, schema_name, str(yaml_file), schema_dir)
        except ValueError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        logger.debug("config_file_loaded", path=str(yaml_file), schema=schema_name)

    logger.info("config_load_complete", file_count=len(yaml_files))
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Secrets are loaded from the environment or .env file.
    Non-sensitive config is loaded from config/*.yaml with fallback to defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    hmac_secret_shared: SecretStr | None = Field(
        default=None, description="Shared HMAC secret signing bot -> service requests"
    )
    slack_bot_token: SecretStr | None = Field(
        default=None, description="Slack Bot User OAuth Token (bot only)"
    )
    slack_app_token: SecretStr | None = Field(
        default=None, description="Slack app-level token for Socket Mode (bot only)"
    )
    clickhouse_password: SecretStr | None = Field(
        default=None, description="ClickHouse password (service only)"
    )

    # === NON-SENSITIVE CONFIG (from config/*.yaml or defaults) ===

    # Warehouse
    clickhouse_host: str | None = Field(default=None, description="ClickHouse host")
    clickhouse_port: int = Field(
        default=CLICKHOUSE_PORT_DEFAULT, description="ClickHouse HTTP port"
    )
    clickhouse_user: str = Field(default="default", description="ClickHouse user")
    clickhouse_database: str = Field(
        default="default", description="ClickHouse database holding activity tables"
    )
    clickhouse_secure: bool = Field(default=False, description="Use HTTPS")
    clickhouse_session_timezone: str = Field(
        default=CLICKHOUSE_SESSION_TIMEZONE_DEFAULT,
        description="Fixed session timezone every leaderboard query runs under",
    )
    sql_dir: str = Field(default="sql", description="Directory with SQL templates")

    # Query service
    service_host: str = Field(default="0.0.0.0", description="Bind address")
    service_port: int = Field(default=SERVICE_PORT_DEFAULT, description="Bind port")

    # Bot
    query_service_url: str | None = Field(
        default=None, description="Full URL of the query service top5 endpoint"
    )
    query_service_timeout_seconds: float = Field(
        default=QUERY_SERVICE_TIMEOUT_SECONDS_DEFAULT,
        description="Timeout for requests to the query service",
    )
    allowed_user_ids: str = Field(
        default="", description="Comma-separated Slack user IDs allowed to run commands"
    )
    allowed_usergroup_id: str | None = Field(
        default=None, description="Slack usergroup whose members may run commands"
    )
    health_check_interval_seconds: float = Field(
        default=HEALTH_CHECK_INTERVAL_SECONDS_DEFAULT,
        description="Interval between bot health checks",
    )
    startup_max_attempts: int = Field(
        default=STARTUP_MAX_ATTEMPTS_DEFAULT,
        description="Socket Mode connection attempts before giving up",
    )
    startup_base_delay_seconds: float = Field(
        default=STARTUP_BASE_DELAY_SECONDS_DEFAULT,
        description="Base delay of the exponential startup backoff",
    )
    startup_max_delay_seconds: float = Field(
        default=STARTUP_MAX_DELAY_SECONDS_DEFAULT,
        description="Upper bound of the startup backoff delay",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator(
        "hmac_secret_shared",
        "slack_bot_token",
        "slack_app_token",
        "clickhouse_password",
        mode="before",
    )
    @classmethod
    def _blank_secret_is_unset(
        cls, value: SecretStr | str | None
    ) -> SecretStr | str | None:
        if value is None:
            return None
        raw = value.get_secret_value() if isinstance(value, SecretStr) else str(value)
        return value if raw.strip() else None

    @field_validator("startup_max_attempts")
    @classmethod
    def _positive_attempts(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("startup_max_attempts must be positive")
        return value

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        clickhouse_config = config.get("clickhouse") or {}
        _assign("clickhouse_host", clickhouse_config.get("host"))
        _assign("clickhouse_port", clickhouse_config.get("port"))
        _assign("clickhouse_user", clickhouse_config.get("user"))
        _assign("clickhouse_database", clickhouse_config.get("database"))
        _assign("clickhouse_secure", clickhouse_config.get("secure"))
        _assign(
            "clickhouse_session_timezone", clickhouse_config.get("session_timezone")
        )
        _assign("sql_dir", clickhouse_config.get("sql_dir"))

        service_config = config.get("service") or {}
        _assign("service_host", service_config.get("host"))
        _assign("service_port", service_config.get("port"))

        bot_config = config.get("bot") or {}
        _assign("query_service_url", bot_config.get("query_service_url"))
        _assign(
            "query_service_timeout_seconds", bot_config.get("query_service_timeout_seconds")
        )
        _assign("allowed_usergroup_id", bot_config.get("allowed_usergroup_id"))
        allowed_ids = bot_config.get("allowed_user_ids")
        if isinstance(allowed_ids, list):
            allowed_ids = ",".join(str(user_id) for user_id in allowed_ids)
        _assign("allowed_user_ids", allowed_ids)
        _assign(
            "health_check_interval_seconds",
            bot_config.get("health_check_interval_seconds"),
        )

        startup_config = bot_config.get("startup") or {}
        _assign("startup_max_attempts", startup_config.get("max_attempts"))
        _assign("startup_base_delay_seconds", startup_config.get("base_delay_seconds"))
        _assign("startup_max_delay_seconds", startup_config.get("max_delay_seconds"))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))

    @property
    def allowed_user_id_list(self) -> list[str]:
        """Allowlisted Slack user IDs, trimmed, empty entries dropped."""
        return [
            user_id.strip()
            for user_id in self.allowed_user_ids.split(",")
            if user_id.strip()
        ]


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
