"""Strict validation of inbound top5 requests."""

from typing import Any

from insideout.domain.categories import VALID_CATEGORY_IDS, is_valid_selector, to_selector
from insideout.domain.exceptions import ValidationError
from insideout.domain.models import CanonicalPeriod, Top5Request


def parse_top5_request(payload: Any) -> Top5Request:
    """Validate a decoded request body.

    Args:
        payload: Decoded JSON body

    Returns:
        Validated request

    Raises:
        ValidationError: With a user-facing message naming the problem
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    month = payload.get("month")
    category = payload.get("category")

    if not month or not category:
        raise ValidationError(
            "Missing required fields: month and category are required"
        )

    if not isinstance(month, str):
        raise ValidationError("Invalid month format. Expected YYYY-MM (e.g., 2025-08)")
    try:
        CanonicalPeriod.from_string(month)
    except ValueError as exc:
        raise ValidationError(
            "Invalid month format. Expected YYYY-MM (e.g., 2025-08)"
        ) from exc

    if not isinstance(category, str) or not is_valid_selector(category):
        raise ValidationError(
            f"Invalid category. Valid options: {', '.join(VALID_CATEGORY_IDS)}"
        )

    return Top5Request(month=month, category=to_selector(category))
