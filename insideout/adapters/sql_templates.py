"""SQL template storage backed by a directory of ``.sql`` files."""

import re
from pathlib import Path
from typing import Final

from insideout.domain.exceptions import TemplateNotFoundError
from insideout.domain.models import Category

LAST_UPDATED_TEMPLATE: Final[str] = "last_updated"
TEMPLATE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9_]+$")


def top5_template_name(category: Category) -> str:
    """Return the template key holding a category's top-5 query."""
    return f"{category.value}_top5"


class SqlTemplateStore:
    """Loads query templates by name from ``<directory>/<name>.sql``.

    Template text is cached after the first read; query results never are.
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)
        self._cache: dict[str, str] = {}

    def load(self, name: str) -> str:
        """Return template text.

        Raises:
            TemplateNotFoundError: If the name is malformed or the file is missing
        """
        if name in self._cache:
            return self._cache[name]

        if not TEMPLATE_NAME_PATTERN.match(name):
            raise TemplateNotFoundError(f"Invalid template name: {name!r}")

        path = self._directory / f"{name}.sql"
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise TemplateNotFoundError(f"SQL template not found: {path}") from exc

        self._cache[name] = text
        return text
