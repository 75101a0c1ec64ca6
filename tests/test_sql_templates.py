"""Tests for the SQL template store and shipped templates."""

from pathlib import Path

import pytest

from insideout.adapters.sql_templates import (
    LAST_UPDATED_TEMPLATE,
    SqlTemplateStore,
    top5_template_name,
)
from insideout.domain.categories import DISPLAY_ORDER
from insideout.domain.exceptions import TemplateNotFoundError
from insideout.domain.models import Category

REPO_SQL_DIR = Path(__file__).resolve().parents[1] / "sql"


def test_template_name_convention() -> None:
    assert top5_template_name(Category.MONETIZER) == "monetizer_top5"
    assert top5_template_name(Category.HOST_WITH_THE_MOST) == "host_with_the_most_top5"


def test_load_reads_and_caches(tmp_path: Path) -> None:
    path = tmp_path / "monetizer_top5.sql"
    path.write_text("SELECT 1", encoding="utf-8")
    store = SqlTemplateStore(tmp_path)

    assert store.load("monetizer_top5") == "SELECT 1"

    path.write_text("SELECT 2", encoding="utf-8")
    assert store.load("monetizer_top5") == "SELECT 1"


def test_missing_template_raises(tmp_path: Path) -> None:
    with pytest.raises(TemplateNotFoundError):
        SqlTemplateStore(tmp_path).load("monetizer_top5")


@pytest.mark.parametrize("name", ["../secrets", "Monetizer", "a/b", ""])
def test_malformed_names_are_rejected(tmp_path: Path, name: str) -> None:
    with pytest.raises(TemplateNotFoundError):
        SqlTemplateStore(tmp_path).load(name)


def test_repository_ships_every_template() -> None:
    """Every category and the freshness query have a template."""

    store = SqlTemplateStore(REPO_SQL_DIR)

    for category in DISPLAY_ORDER:
        sql = store.load(top5_template_name(category))
        assert "SELECT" in sql.upper()
    assert "last_updated" in store.load(LAST_UPDATED_TEMPLATE)


@pytest.mark.parametrize(
    "category",
    [category for category in DISPLAY_ORDER if category is not Category.PRODUCT_WHISPERER],
)
def test_ranked_templates_bind_the_month_parameter(category: Category) -> None:
    sql = SqlTemplateStore(REPO_SQL_DIR).load(top5_template_name(category))

    assert "{month:String}" in sql
