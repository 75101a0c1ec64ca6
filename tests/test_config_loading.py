"""Tests for configuration loading system."""

import json
import shutil
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from insideout.config.settings import (
    Settings,
    deep_merge,
    load_all_configs,
    load_schema,
    validate_config_section,
)

REPO_CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

ENV_VARS = (
    "HMAC_SECRET_SHARED",
    "CLICKHOUSE_HOST",
    "CLICKHOUSE_PORT",
    "ALLOWED_USER_IDS",
    "ALLOWED_USERGROUP_ID",
    "LOG_LEVEL",
    "STARTUP_MAX_ATTEMPTS",
)


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in a temp dir holding a copy of the repository config."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    shutil.copytree(REPO_CONFIG_DIR, tmp_path / "config")
    monkeypatch.chdir(tmp_path)
    return tmp_path / "config"


def _write_yaml(path: Path, content: dict[str, Any]) -> None:
    path.write_text(yaml.safe_dump(content), encoding="utf-8")


def test_deep_merge_nested() -> None:
    """Nested dictionaries merge key by key."""
    base = {"clickhouse": {"port": 8123, "user": "default"}}
    override = {"clickhouse": {"user": "reader"}, "logging": {"level": "DEBUG"}}

    assert deep_merge(base, override) == {
        "clickhouse": {"port": 8123, "user": "reader"},
        "logging": {"level": "DEBUG"},
    }


def test_deep_merge_lists_replaced() -> None:
    """Lists are replaced, not merged."""
    assert deep_merge({"items": [1, 2, 3]}, {"items": [4]}) == {"items": [4]}


def test_load_schema_missing_returns_empty(tmp_path: Path) -> None:
    assert load_schema("nonexistent", tmp_path) == {}


def test_repository_config_is_valid() -> None:
    """Shipped main.yaml validates against its schema."""
    config = load_all_configs(REPO_CONFIG_DIR)

    assert config["clickhouse"]["session_timezone"] == "UTC"
    assert config["bot"]["startup"]["max_attempts"] == 10


def test_validate_config_section_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError, match="Config validation failed for main"):
        validate_config_section(
            {"clickhouse": {"hostname": "db"}},
            "main",
            schema_dir=REPO_CONFIG_DIR / "schemas",
        )


def test_validate_config_section_includes_file_path() -> None:
    with pytest.raises(ValueError, match="file: config/main.yaml"):
        validate_config_section(
            {"service": {"port": 0}},
            "main",
            "config/main.yaml",
            schema_dir=REPO_CONFIG_DIR / "schemas",
        )


def test_load_all_configs_missing_dir_returns_empty(tmp_path: Path) -> None:
    assert load_all_configs(tmp_path / "missing") == {}


def test_load_all_configs_merges_main_first(tmp_path: Path) -> None:
    """main.yaml loads first; other files override it alphabetically."""
    _write_yaml(tmp_path / "main.yaml", {"service": {"port": 8080, "host": "0.0.0.0"}})
    _write_yaml(tmp_path / "a_local.yaml", {"service": {"port": 9090}})

    config = load_all_configs(tmp_path)

    assert config == {"service": {"port": 9090, "host": "0.0.0.0"}}


def test_load_all_configs_raises_on_schema_violation(tmp_path: Path) -> None:
    schema_dir = tmp_path / "schemas"
    schema_dir.mkdir()
    (schema_dir / "main.schema.json").write_text(
        json.dumps({"type": "object", "properties": {"service": {"type": "object"}}}),
        encoding="utf-8",
    )
    _write_yaml(tmp_path / "main.yaml", {"service": "not-an-object"})

    with pytest.raises(ValueError):
        load_all_configs(tmp_path)


def test_settings_apply_yaml_values(isolated_config: Path) -> None:
    _write_yaml(
        isolated_config / "main.yaml",
        {
            "clickhouse": {"host": "warehouse.internal", "port": 8443, "secure": True},
            "bot": {
                "query_service_url": "http://query:8080/api/top5",
                "allowed_user_ids": ["U1", "U2"],
                "allowed_usergroup_id": "S123",
            },
            "logging": {"level": "DEBUG"},
        },
    )

    settings = Settings()

    assert settings.clickhouse_host == "warehouse.internal"
    assert settings.clickhouse_port == 8443
    assert settings.clickhouse_secure is True
    assert settings.query_service_url == "http://query:8080/api/top5"
    assert settings.allowed_user_id_list == ["U1", "U2"]
    assert settings.allowed_usergroup_id == "S123"
    assert settings.log_level == "DEBUG"


def test_environment_overrides_yaml(
    isolated_config: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_yaml(
        isolated_config / "main.yaml",
        {"clickhouse": {"host": "from-yaml", "port": 8123}},
    )
    monkeypatch.setenv("CLICKHOUSE_HOST", "from-env")
    monkeypatch.setenv("CLICKHOUSE_PORT", "9000")

    settings = Settings()

    assert settings.clickhouse_host == "from-env"
    assert settings.clickhouse_port == 9000


def test_defaults_without_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    settings = Settings()

    assert settings.clickhouse_host is None
    assert settings.clickhouse_session_timezone == "UTC"
    assert settings.service_port == 8080
    assert settings.hmac_secret_shared is None
    assert settings.allowed_user_id_list == []


def test_allowed_user_ids_are_trimmed(isolated_config: Path) -> None:
    settings = Settings(allowed_user_ids=" U1, ,U2 ,")

    assert settings.allowed_user_id_list == ["U1", "U2"]


@pytest.mark.parametrize("value", ["", "   "])
def test_blank_secret_is_unset(isolated_config: Path, value: str) -> None:
    settings = Settings(hmac_secret_shared=value)

    assert settings.hmac_secret_shared is None


def test_secret_is_not_exposed_in_repr(isolated_config: Path) -> None:
    settings = Settings(hmac_secret_shared="super-secret")

    assert "super-secret" not in repr(settings)
    assert settings.hmac_secret_shared is not None
    assert settings.hmac_secret_shared.get_secret_value() == "super-secret"


def test_startup_attempts_must_be_positive(isolated_config: Path) -> None:
    with pytest.raises(ValidationError):
        Settings(startup_max_attempts=0)


def test_settings_fixture_ignores_local_config(
    settings: Settings, tmp_path: Path
) -> None:
    assert Path.cwd().resolve() == tmp_path.resolve()
    assert not (tmp_path / "config").exists()
    assert settings.service_port == 8080
    assert settings.clickhouse_host is None
