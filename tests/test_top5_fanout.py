"""Tests for the concurrent per-category fan-out."""

import asyncio

import pytest

from insideout.domain.categories import DISPLAY_ORDER
from insideout.domain.exceptions import QueryExecutionError
from insideout.domain.models import ALL_CATEGORIES, CanonicalPeriod, Category, RankedRow
from insideout.use_cases.top5_fanout import Top5Orchestrator
from tests.helpers import StubExecutor

PERIOD = CanonicalPeriod(year="2025", month="08")


def test_all_queries_every_category_in_display_order(
    sample_rows: dict[Category, list[RankedRow]],
) -> None:
    executor = StubExecutor(sample_rows)

    results = asyncio.run(Top5Orchestrator(executor).query_top5(PERIOD, ALL_CATEGORIES))

    assert list(results) == list(DISPLAY_ORDER)
    assert results == sample_rows
    assert sorted(executor.calls) == sorted((c, "2025-08") for c in DISPLAY_ORDER)


def test_one_failing_category_is_isolated(
    sample_rows: dict[Category, list[RankedRow]],
) -> None:
    """A single failure empties only that category and never raises."""

    results_by_category: dict = dict(sample_rows)
    results_by_category[Category.EYEBALL_EMPEROR] = QueryExecutionError("boom")
    executor = StubExecutor(results_by_category)

    results = asyncio.run(Top5Orchestrator(executor).query_top5(PERIOD, ALL_CATEGORIES))

    assert set(results) == set(DISPLAY_ORDER)
    assert results[Category.EYEBALL_EMPEROR] == []
    populated = [category for category, rows in results.items() if rows]
    assert len(populated) == 4


def test_unexpected_exceptions_are_isolated_too() -> None:
    executor = StubExecutor(
        {category: RuntimeError("driver crash") for category in DISPLAY_ORDER}
    )

    results = asyncio.run(Top5Orchestrator(executor).query_top5(PERIOD, ALL_CATEGORIES))

    assert results == {category: [] for category in DISPLAY_ORDER}


def test_single_category_issues_one_query(
    sample_rows: dict[Category, list[RankedRow]],
) -> None:
    executor = StubExecutor(sample_rows)

    results = asyncio.run(
        Top5Orchestrator(executor).query_top5(PERIOD, Category.MONETIZER)
    )

    assert results == {Category.MONETIZER: sample_rows[Category.MONETIZER]}
    assert executor.calls == [(Category.MONETIZER, "2025-08")]


def test_single_category_failure_propagates() -> None:
    executor = StubExecutor({Category.MONETIZER: QueryExecutionError("boom")})

    with pytest.raises(QueryExecutionError):
        asyncio.run(Top5Orchestrator(executor).query_top5(PERIOD, Category.MONETIZER))
