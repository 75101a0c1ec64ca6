"""Per-category leaderboard queries against the warehouse."""

import math
from datetime import datetime
from typing import Any, Final

import pytz
from dateutil import parser as dateutil_parser

from insideout.adapters.sql_templates import LAST_UPDATED_TEMPLATE, top5_template_name
from insideout.config.logging_config import get_logger
from insideout.domain.models import Category, RankedRow
from insideout.domain.protocols import TemplateStoreProtocol, WarehouseProtocol
from insideout.services.ranking import competition_ranks

TOP_N: Final[int] = 5
UNKNOWN_USER: Final[str] = "Unknown"
UNKNOWN_TIMESTAMP: Final[str] = "Unknown"
DEFAULT_UNIT: Final[str] = "points"
LAST_UPDATED_FORMAT: Final[str] = "%Y-%m-%d %H:%M UTC"
MONTH_PARAMETER: Final[str] = "month"

logger = get_logger(__name__)


def _parse_metric(raw: Any) -> float:
    """Parse a metric value, defaulting to 0 when absent or unparsable."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(value) else value


def _display_name(row: dict[str, Any]) -> str:
    return str(row.get("display_name") or row.get("user_name") or UNKNOWN_USER)


def _user_id(row: dict[str, Any]) -> str | None:
    user_id = row.get("user_id")
    return str(user_id) if user_id not in (None, "") else None


def normalize_rows(category: Category, rows: list[dict[str, Any]]) -> list[RankedRow]:
    """Convert raw warehouse rows into ranked rows.

    Args:
        category: Category the rows belong to
        rows: Raw rows in data-source order (only the first five are kept)

    Returns:
        Ranked rows; product_whisperer rows carry only the display text
    """
    rows = rows[:TOP_N]
    if category is Category.PRODUCT_WHISPERER:
        return [
            RankedRow(rank=None, user=_display_name(row), user_id=_user_id(row), unit="")
            for row in rows
        ]

    values = [_parse_metric(row.get("metric_value")) for row in rows]
    ranks = competition_ranks(values)
    return [
        RankedRow(
            rank=rank,
            user=_display_name(row),
            user_id=_user_id(row),
            value=value,
            unit=str(row.get("unit") or DEFAULT_UNIT),
        )
        for row, value, rank in zip(rows, values, ranks, strict=True)
    ]


def format_last_updated(raw: Any) -> str:
    """Format a warehouse timestamp as ``YYYY-MM-DD HH:MM UTC``.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, str) and raw.strip():
        moment = dateutil_parser.isoparse(raw)
    else:
        raise ValueError(f"Unsupported timestamp value: {raw!r}")

    if moment.tzinfo is None:
        moment = pytz.UTC.localize(moment)
    return moment.astimezone(pytz.UTC).strftime(LAST_UPDATED_FORMAT)


class QueryExecutor:
    """Runs category templates against the warehouse."""

    def __init__(
        self, warehouse: WarehouseProtocol, templates: TemplateStoreProtocol
    ) -> None:
        self._warehouse = warehouse
        self._templates = templates

    def execute(self, category: Category, month: str) -> list[RankedRow]:
        """Run the top-5 query for one category.

        Args:
            category: Concrete category
            month: Period in ``YYYY-MM`` form

        Returns:
            Up to five ranked rows in display order

        Raises:
            QueryExecutionError: If the template or the query fails
        """
        sql = self._templates.load(top5_template_name(category))
        rows = self._warehouse.query_rows(sql, {MONTH_PARAMETER: month})
        ranked = normalize_rows(category, rows)
        logger.debug(
            "category_query_executed",
            category=category.value,
            month=month,
            result_count=len(ranked),
        )
        return ranked

    def fetch_last_updated(self) -> str:
        """Return the data freshness timestamp, or ``"Unknown"`` on any failure."""
        try:
            sql = self._templates.load(LAST_UPDATED_TEMPLATE)
            rows = self._warehouse.query_rows(sql, {})
            if not rows:
                return UNKNOWN_TIMESTAMP
            first_row = rows[0]
            raw = first_row.get("last_updated", next(iter(first_row.values()), None))
            return format_last_updated(raw)
        except Exception as exc:  # noqa: BLE001 - freshness is advisory
            logger.warning("last_updated_lookup_failed", error=str(exc))
            return UNKNOWN_TIMESTAMP
