"""Category registry: valid identifiers, display order and metadata."""

from typing import Final

from insideout.domain.models import (
    ALL_CATEGORIES,
    Category,
    CategoryInfo,
    CategorySelector,
    ValueFormat,
)

CATEGORY_REGISTRY: Final[dict[Category, CategoryInfo]] = {
    Category.MONETIZER: CategoryInfo(
        category=Category.MONETIZER,
        emoji="💰",
        label="Monetizer",
        value_format=ValueFormat.CURRENCY,
    ),
    Category.CONTENT_MACHINE: CategoryInfo(
        category=Category.CONTENT_MACHINE,
        emoji="📸",
        label="Content Machine",
        value_format=ValueFormat.COUNT,
    ),
    Category.EYEBALL_EMPEROR: CategoryInfo(
        category=Category.EYEBALL_EMPEROR,
        emoji="👀",
        label="Eyeball Emperor",
        value_format=ValueFormat.COUNT,
    ),
    Category.HOST_WITH_THE_MOST: CategoryInfo(
        category=Category.HOST_WITH_THE_MOST,
        emoji="🎤",
        label="Host With The Most",
        value_format=ValueFormat.COUNT,
    ),
    Category.PRODUCT_WHISPERER: CategoryInfo(
        category=Category.PRODUCT_WHISPERER,
        emoji="🧠",
        label="Product Whisperer",
        value_format=ValueFormat.FREEFORM,
    ),
}

DISPLAY_ORDER: Final[tuple[Category, ...]] = (
    Category.MONETIZER,
    Category.CONTENT_MACHINE,
    Category.EYEBALL_EMPEROR,
    Category.HOST_WITH_THE_MOST,
    Category.PRODUCT_WHISPERER,
)

VALID_CATEGORY_IDS: Final[tuple[str, ...]] = (
    *(category.value for category in DISPLAY_ORDER),
    ALL_CATEGORIES,
)


def get_category_info(category: Category) -> CategoryInfo:
    """Return display metadata for a category."""
    return CATEGORY_REGISTRY[category]


def is_valid_selector(value: str | None) -> bool:
    """Check whether a raw string names a category or ``all``."""
    return value in VALID_CATEGORY_IDS


def to_selector(value: str) -> CategorySelector:
    """Convert a raw identifier into a selector.

    Raises:
        ValueError: If the identifier is unknown
    """
    if value == ALL_CATEGORIES:
        return ALL_CATEGORIES
    return Category(value)


def expand_selector(selector: CategorySelector) -> list[Category]:
    """Expand a selector into concrete categories in display order."""
    if selector == ALL_CATEGORIES:
        return list(DISPLAY_ORDER)
    return [Category(selector)]
