"""Slash command parsing and validation.

Parsing is permissive and never fails: it turns free text into a best-effort
``ParsedCommand``. ``validate_command`` is the strict second stage that either
accepts the parse as a canonical period plus selector or rejects it with a
user-facing message.
"""

import re
from datetime import date
from typing import Final

from dateutil.relativedelta import relativedelta

from insideout.domain.categories import VALID_CATEGORY_IDS, is_valid_selector, to_selector
from insideout.domain.models import (
    ALL_CATEGORIES,
    CanonicalPeriod,
    CommandValidation,
    ParsedCommand,
)

COMMAND_PREFIX: Final[str] = "top5"
HELP_KEYWORDS: Final[frozenset[str]] = frozenset({"help", "examples"})
LAST_MONTH_KEYWORDS: Final[frozenset[str]] = frozenset({"last", "last-month"})

ISO_MONTH_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{4}-[0-9]{2}$")
YEAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{4}$")
MONTH_NUMBER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{1,2}$")

MONTH_NAMES: Final[dict[str, str]] = {
    "jan": "01",
    "january": "01",
    "feb": "02",
    "february": "02",
    "mar": "03",
    "march": "03",
    "apr": "04",
    "april": "04",
    "may": "05",
    "jun": "06",
    "june": "06",
    "jul": "07",
    "july": "07",
    "aug": "08",
    "august": "08",
    "sep": "09",
    "september": "09",
    "oct": "10",
    "october": "10",
    "nov": "11",
    "november": "11",
    "dec": "12",
    "december": "12",
}
"""Full English month names and 3-letter abbreviations to 2-digit months."""


def _previous_month(today: date) -> tuple[str, str]:
    last_month = today - relativedelta(months=1)
    return str(last_month.month), str(last_month.year)


def _strip_prefix(tokens: list[str]) -> list[str]:
    if tokens and tokens[0].lower() == COMMAND_PREFIX:
        return tokens[1:]
    return tokens


def is_help_request(text: str) -> bool:
    """Check whether command text asks for the help/examples listing."""
    tokens = _strip_prefix(text.split())
    return len(tokens) == 1 and tokens[0].lower() in HELP_KEYWORDS


def parse_command_args(text: str, today: date | None = None) -> ParsedCommand:
    """Parse ``/insideout`` command text.

    Args:
        text: Raw command text from Slack
        today: Reference date (defaults to the current date)

    Returns:
        Parsed month, year and category. Month is returned as given
        (``"8"`` for computed months, ``"08"`` for names and ISO input);
        category is None when not supplied.

    Example:
        >>> parse_command_args("top5 aug 2025")
        ParsedCommand(month='08', year='2025', category=None)
    """
    today = today or date.today()
    tokens = text.split()

    if not tokens:
        month, year = _previous_month(today)
        return ParsedCommand(month=month, year=year, category=ALL_CATEGORIES)

    tokens = _strip_prefix(tokens)

    if len(tokens) < 2:
        return ParsedCommand(month=str(today.month), year=str(today.year))

    month_arg = tokens[0].lower()
    year_arg = tokens[1]
    category = tokens[2].lower() if len(tokens) >= 3 else None

    if month_arg in LAST_MONTH_KEYWORDS:
        month, year = _previous_month(today)
    elif ISO_MONTH_PATTERN.match(month_arg):
        year, month = month_arg.split("-")
        # ISO input carries its own year; a trailing year token is optional
        if not YEAR_PATTERN.match(year_arg):
            category = year_arg.lower()
    else:
        month = MONTH_NAMES.get(month_arg, month_arg)
        year = year_arg

    return ParsedCommand(month=month, year=year, category=category)


def validate_command(parsed: ParsedCommand) -> CommandValidation:
    """Strictly validate a parsed command.

    Args:
        parsed: Output of ``parse_command_args``

    Returns:
        Accepted validation with canonical period and selector, or a
        rejection carrying a user-facing error message
    """
    category = parsed.category or ALL_CATEGORIES
    if not is_valid_selector(category):
        return CommandValidation(
            accepted=False,
            error=f"❌ Invalid category. Valid options: {', '.join(VALID_CATEGORY_IDS)}",
        )

    if (
        not MONTH_NUMBER_PATTERN.fullmatch(parsed.month)
        or not 1 <= int(parsed.month) <= 12
    ):
        return CommandValidation(
            accepted=False,
            error=(
                f"❌ Invalid month `{parsed.month}`. Use a month name (aug, august), "
                "a number (1-12), YYYY-MM or `last`."
            ),
        )

    if not YEAR_PATTERN.fullmatch(parsed.year):
        return CommandValidation(
            accepted=False,
            error=f"❌ Invalid year `{parsed.year}`. Expected four digits (e.g. 2025).",
        )

    period = CanonicalPeriod(year=parsed.year, month=f"{int(parsed.month):02d}")
    return CommandValidation(
        accepted=True, period=period, selector=to_selector(category)
    )
