"""Fan a top5 request out into per-category queries."""

import asyncio
from typing import Protocol

from insideout.config.logging_config import get_logger
from insideout.domain.categories import expand_selector
from insideout.domain.models import (
    ALL_CATEGORIES,
    CanonicalPeriod,
    Category,
    CategorySelector,
    RankedRow,
)

logger = get_logger(__name__)


class CategoryQueryRunner(Protocol):
    def execute(self, category: Category, month: str) -> list[RankedRow]: ...


class Top5Orchestrator:
    """Runs one query per requested category.

    Under ``all`` every category runs concurrently inside its own failure
    boundary: a failing category maps to an empty list and never affects its
    siblings. A single-category request propagates its failure.
    """

    def __init__(self, executor: CategoryQueryRunner) -> None:
        self._executor = executor

    async def query_top5(
        self, period: CanonicalPeriod, selector: CategorySelector
    ) -> dict[Category, list[RankedRow]]:
        """Query results for ``period``.

        Args:
            period: Canonical month
            selector: A concrete category or ``"all"``

        Returns:
            Mapping of category to ranked rows, in display order

        Raises:
            Exception: Whatever the executor raised, for single-category requests
        """
        month = str(period)
        categories = expand_selector(selector)

        if selector != ALL_CATEGORIES:
            category = categories[0]
            rows = await asyncio.to_thread(self._executor.execute, category, month)
            logger.debug(
                "category_queried", category=category.value, month=month, count=len(rows)
            )
            return {category: rows}

        outcomes = await asyncio.gather(
            *(self._query_isolated(category, month) for category in categories)
        )
        return dict(zip(categories, outcomes, strict=True))

    async def _query_isolated(self, category: Category, month: str) -> list[RankedRow]:
        try:
            rows = await asyncio.to_thread(self._executor.execute, category, month)
        except Exception as exc:  # noqa: BLE001 - one category must not fail the batch
            logger.error(
                "category_query_failed",
                category=category.value,
                month=month,
                error=str(exc),
                exc_info=True,
            )
            return []

        logger.debug(
            "category_queried", category=category.value, month=month, count=len(rows)
        )
        return rows
