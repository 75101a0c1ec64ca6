"""Domain models for InsideOut.

All models use Pydantic v2 for validation and serialization.
"""

import re
from enum import Enum
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALL_CATEGORIES: Final[Literal["all"]] = "all"
"""Meta-selector expanding to every concrete category at query time."""

PERIOD_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{4}-[0-9]{2}$")

TIE_BREAK_NOTE: Final[str] = "Ties share the same rank; next rank is offset accordingly."


class Category(str, Enum):
    """Leaderboard category."""

    MONETIZER = "monetizer"
    CONTENT_MACHINE = "content_machine"
    EYEBALL_EMPEROR = "eyeball_emperor"
    HOST_WITH_THE_MOST = "host_with_the_most"
    PRODUCT_WHISPERER = "product_whisperer"


CategorySelector = Category | Literal["all"]


class ValueFormat(str, Enum):
    """How a category's values are rendered."""

    CURRENCY = "currency"
    COUNT = "count"
    FREEFORM = "freeform"


class CategoryInfo(BaseModel):
    """Display metadata for a category."""

    model_config = ConfigDict(frozen=True)

    category: Category
    emoji: str
    label: str
    value_format: ValueFormat


class CanonicalPeriod(BaseModel):
    """A validated calendar month, serialized as ``YYYY-MM``."""

    model_config = ConfigDict(frozen=True)

    year: str = Field(..., pattern=r"^[0-9]{4}$")
    month: str = Field(..., pattern=r"^[0-9]{2}$")

    @field_validator("month")
    @classmethod
    def _month_in_range(cls, value: str) -> str:
        if not 1 <= int(value) <= 12:
            raise ValueError("month must be between 01 and 12")
        return value

    @classmethod
    def from_string(cls, value: str) -> "CanonicalPeriod":
        """Parse the ``YYYY-MM`` string form.

        Raises:
            ValueError: If the string is not a valid period
        """
        if not PERIOD_PATTERN.fullmatch(value):
            raise ValueError(f"Invalid period: {value!r}")
        year, month = value.split("-")
        return cls(year=year, month=month)

    def __str__(self) -> str:
        return f"{self.year}-{self.month}"


class ParsedCommand(BaseModel):
    """Best-effort parse of slash command text (not yet validated)."""

    month: str
    year: str
    category: str | None = None


class CommandValidation(BaseModel):
    """Outcome of strict command validation."""

    accepted: bool
    period: CanonicalPeriod | None = None
    selector: CategorySelector | None = None
    error: str | None = None


class RankedRow(BaseModel):
    """One leaderboard entry.

    product_whisperer rows carry a static message in ``user`` and never
    have ``rank`` or ``value``.
    """

    rank: int | None = Field(default=None, ge=1)
    user: str
    user_id: str | None = None
    value: float | None = None
    unit: str = ""


class Top5Request(BaseModel):
    """Authenticated request accepted by the query service."""

    month: str
    category: CategorySelector

    @property
    def period(self) -> CanonicalPeriod:
        return CanonicalPeriod.from_string(self.month)


class AggregateResponse(BaseModel):
    """Combined per-category results for one period."""

    model_config = ConfigDict(populate_by_name=True)

    period: str
    results: dict[Category, list[RankedRow]] = Field(default_factory=dict)
    notes: list[str] = Field(default_factory=list)
    last_updated: str | None = Field(default=None, alias="lastUpdated")

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the wire (camelCase keys, absent optional fields)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
