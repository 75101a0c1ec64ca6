"""Stubs and helpers shared by tests."""

from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import Mapping
from typing import Any

from insideout.domain.exceptions import QueryExecutionError, TemplateNotFoundError
from insideout.domain.models import Category, RankedRow

TEST_SECRET = "test-shared-secret"


class StubWarehouse:
    """Warehouse returning canned rows per SQL text and recording calls."""

    def __init__(self, responses: Mapping[str, list[dict[str, Any]] | Exception]) -> None:
        self._responses = dict(responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def query_rows(
        self, sql: str, parameters: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        self.calls.append((sql, dict(parameters)))
        response = self._responses.get(sql)
        if response is None:
            raise QueryExecutionError(f"No canned response for {sql!r}")
        if isinstance(response, Exception):
            raise response
        return response


class DictTemplateStore:
    """Template store backed by a dictionary."""

    def __init__(self, templates: Mapping[str, str]) -> None:
        self._templates = dict(templates)

    def load(self, name: str) -> str:
        try:
            return self._templates[name]
        except KeyError as exc:
            raise TemplateNotFoundError(name) from exc


class StubExecutor:
    """Executor returning canned ranked rows per category."""

    def __init__(
        self,
        results: Mapping[Category, list[RankedRow] | Exception] | None = None,
        last_updated: str = "2025-09-01 06:00 UTC",
    ) -> None:
        self._results = dict(results or {})
        self._last_updated = last_updated
        self.calls: list[tuple[Category, str]] = []

    def execute(self, category: Category, month: str) -> list[RankedRow]:
        self.calls.append((category, month))
        result = self._results.get(category, [])
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_last_updated(self) -> str:
        return self._last_updated


def sign(body: bytes, secret: str = TEST_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def encode_body(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")
