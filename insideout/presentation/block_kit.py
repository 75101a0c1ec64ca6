"""Slack Block Kit rendering of top5 leaderboards."""

from datetime import date
from typing import Any, Final

from insideout.domain.categories import DISPLAY_ORDER, expand_selector, get_category_info
from insideout.domain.models import (
    TIE_BREAK_NOTE,
    AggregateResponse,
    CanonicalPeriod,
    CategoryInfo,
    CategorySelector,
    RankedRow,
    ValueFormat,
)

MONTH_NAMES: Final[tuple[str, ...]] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
CURRENCY_UNIT: Final[str] = "USD"
UNKNOWN_TIMESTAMP: Final[str] = "Unknown"
NO_DATA_TEXT: Final[str] = "_No data available for this period_"
MAX_FRACTION_DIGITS: Final[int] = 3

HELP_TEXT: Final[str] = (
    "*Usage:* `/insideout top5 [month] [year] [category|all]`\n"
    "• `month` can be a name (`aug`, `august`), a number (`8`), `YYYY-MM` or `last`\n"
    "• `category` is one of: monetizer, content_machine, eyeball_emperor, "
    "host_with_the_most, product_whisperer, all (default)"
)
HELP_EXAMPLES: Final[tuple[str, ...]] = (
    "`/insideout` – all categories for last month",
    "`/insideout top5 aug 2025 all` – all categories for August 2025",
    "`/insideout top5 2025-08 monetizer` – Monetizer for August 2025",
    "`/insideout top5 last 2025 content_machine` – Content Machine for last month",
)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    text = f"{value:,.{MAX_FRACTION_DIGITS}f}".rstrip("0")
    return text.rstrip(".")


def format_value(value: float | None, unit: str) -> str:
    """Format a metric for display.

    Example:
        >>> format_value(1234.5, "USD")
        '$1,234.50'
        >>> format_value(42, "points")
        '42 points'
    """
    amount = value or 0.0
    if unit == CURRENCY_UNIT:
        return f"${amount:,.2f}"
    return f"{_format_number(amount)} {unit}".rstrip()


def format_display_period(period: str) -> str:
    """Turn ``YYYY-MM`` into ``Month YYYY`` (e.g. ``August 2025``)."""
    canonical = CanonicalPeriod.from_string(period)
    return f"{MONTH_NAMES[int(canonical.month) - 1]} {canonical.year}"


def _format_row(row: RankedRow, position: int) -> str:
    rank = row.rank or position
    return f"{rank}. *{row.user}* - {format_value(row.value, row.unit)}"


def build_category_block(info: CategoryInfo, rows: list[RankedRow]) -> dict[str, Any]:
    """Build the section block for one category."""
    title = f"*{info.emoji} {info.label}*"
    if not rows:
        body = NO_DATA_TEXT
    elif info.value_format is ValueFormat.FREEFORM:
        body = rows[0].user
    else:
        body = "\n".join(
            _format_row(row, position) for position, row in enumerate(rows, start=1)
        )
    return {"type": "section", "text": {"type": "mrkdwn", "text": f"{title}\n{body}"}}


def _format_as_of(today: date) -> str:
    return f"{today.month}/{today.day}/{today.year}"


def build_footer_text(response: AggregateResponse, today: date) -> str:
    """Build the context footer: as-of date, freshness and notes."""
    notes = list(response.notes)
    if TIE_BREAK_NOTE not in notes:
        notes.append(TIE_BREAK_NOTE)

    parts = [f"📊 Data as of {_format_as_of(today)}"]
    if response.last_updated and response.last_updated != UNKNOWN_TIMESTAMP:
        parts.append(f"Last updated: {response.last_updated}")
    parts.append(" ".join(notes))
    return " | ".join(parts)


def build_top5_blocks(
    response: AggregateResponse,
    selector: CategorySelector,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """Build Slack Block Kit blocks for a leaderboard.

    Args:
        response: Aggregate response from the query service
        selector: Category that was requested (or ``"all"``)
        today: Date shown in the footer (defaults to today)

    Returns:
        List of blocks: header, one section per category, context footer
    """
    today = today or date.today()
    blocks: list[dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"🏆 Top 5 Performers – {format_display_period(response.period)}",
            },
        },
        {"type": "divider"},
    ]

    requested = set(expand_selector(selector))
    categories = [category for category in DISPLAY_ORDER if category in requested]

    for index, category in enumerate(categories):
        rows = response.results.get(category, [])
        blocks.append(build_category_block(get_category_info(category), rows))
        if index < len(categories) - 1:
            blocks.append({"type": "divider"})

    blocks.append(
        {
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": build_footer_text(response, today)}
            ],
        }
    )
    return blocks


def build_fallback_text(response: AggregateResponse) -> str:
    """Plain-text fallback used for notifications."""
    return f"Top 5 Performers – {format_display_period(response.period)}"


def build_help_blocks() -> list[dict[str, Any]]:
    """Static usage and examples listing."""
    examples = "\n".join(f"• {example}" for example in HELP_EXAMPLES)
    return [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "🏆 InsideOut Top 5 – Help"},
        },
        {"type": "section", "text": {"type": "mrkdwn", "text": HELP_TEXT}},
        {"type": "divider"},
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"*Examples*\n{examples}"},
        },
    ]
