"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from insideout.config.settings import Settings
from insideout.domain.models import Category, RankedRow
from tests.helpers import TEST_SECRET


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings with a shared secret and no external services.

    Built in an empty directory with the settings environment cleared, so a
    local .env, config/*.yaml or exported variable cannot leak in.
    """
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    monkeypatch.chdir(tmp_path)
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        hmac_secret_shared=TEST_SECRET,
        clickhouse_host=None,
    )


@pytest.fixture
def sample_rows() -> dict[Category, list[RankedRow]]:
    """Ranked rows for every category."""
    return {
        Category.MONETIZER: [
            RankedRow(rank=1, user="Ada", user_id="U1", value=1234.5, unit="USD"),
            RankedRow(rank=2, user="Grace", user_id="U2", value=999.0, unit="USD"),
        ],
        Category.CONTENT_MACHINE: [
            RankedRow(rank=1, user="Linus", user_id="U3", value=42, unit="posts"),
        ],
        Category.EYEBALL_EMPEROR: [
            RankedRow(rank=1, user="Ken", user_id="U4", value=15000, unit="views"),
            RankedRow(rank=1, user="Dennis", user_id="U5", value=15000, unit="views"),
            RankedRow(rank=3, user="Barbara", user_id="U6", value=900, unit="views"),
        ],
        Category.HOST_WITH_THE_MOST: [
            RankedRow(rank=1, user="Margaret", user_id="U7", value=7, unit="sessions"),
        ],
        Category.PRODUCT_WHISPERER: [
            RankedRow(user="Nominated by the product team.", unit=""),
        ],
    }
