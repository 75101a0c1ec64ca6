"""Tests for the signed query service HTTP client."""

import json
from typing import Any

import pytest
import requests

from insideout.adapters.query_service_client import (
    QueryServiceClient,
    serialize_request_body,
)
from insideout.domain.exceptions import ConfigurationError, QueryServiceError
from insideout.domain.models import ALL_CATEGORIES, CanonicalPeriod, Category
from insideout.services.request_auth import verify_signature
from tests.helpers import TEST_SECRET

URL = "http://query-service:8080/api/top5"
PERIOD = CanonicalPeriod(year="2025", month="08")


class StubResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class StubSession:
    def __init__(self, response: StubResponse | Exception) -> None:
        self._response = response
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> StubResponse:
        self.calls.append({"url": url, **kwargs})
        if isinstance(self._response, Exception):
            raise self._response
        return self._response

    def close(self) -> None:
        self.closed = True


def _client(session: StubSession) -> QueryServiceClient:
    return QueryServiceClient(URL, TEST_SECRET, timeout_seconds=3.0, session=session)


def test_serialize_request_body_is_compact() -> None:
    assert serialize_request_body(PERIOD, Category.MONETIZER) == (
        b'{"month":"2025-08","category":"monetizer"}'
    )
    assert serialize_request_body(PERIOD, ALL_CATEGORIES) == (
        b'{"month":"2025-08","category":"all"}'
    )


def test_fetch_top5_signs_exact_body() -> None:
    session = StubSession(
        StubResponse(
            200,
            {
                "period": "2025-08",
                "results": {
                    "monetizer": [
                        {"rank": 1, "user": "Ada", "value": 10.5, "unit": "USD"}
                    ],
                    "product_whisperer": [{"user": "Nominated", "unit": ""}],
                },
                "notes": ["Ties share the same rank."],
                "lastUpdated": "2025-09-01 06:00 UTC",
            },
        )
    )

    response = _client(session).fetch_top5(PERIOD, ALL_CATEGORIES)

    call = session.calls[0]
    assert call["url"] == URL
    assert call["timeout"] == 3.0
    assert json.loads(call["data"]) == {"month": "2025-08", "category": "all"}
    verify_signature(call["data"], call["headers"]["X-Signature"], TEST_SECRET)
    assert response.period == "2025-08"
    assert response.last_updated == "2025-09-01 06:00 UTC"
    assert response.results[Category.MONETIZER][0].value == 10.5
    assert response.results[Category.PRODUCT_WHISPERER][0].rank is None


def test_error_status_raises() -> None:
    session = StubSession(StubResponse(401, {"error": "Invalid signature"}))

    with pytest.raises(QueryServiceError, match="401"):
        _client(session).fetch_top5(PERIOD, Category.MONETIZER)


def test_transport_error_raises() -> None:
    session = StubSession(requests.ConnectionError("refused"))

    with pytest.raises(QueryServiceError):
        _client(session).fetch_top5(PERIOD, Category.MONETIZER)


@pytest.mark.parametrize("payload", [None, {"results": {}}, ["not", "an", "object"]])
def test_malformed_body_raises(payload: Any) -> None:
    session = StubSession(StubResponse(200, payload, text="<html>"))

    with pytest.raises(QueryServiceError):
        _client(session).fetch_top5(PERIOD, Category.MONETIZER)


@pytest.mark.parametrize(("url", "secret"), [(None, TEST_SECRET), (URL, None), (URL, "")])
def test_missing_configuration_raises(url: str | None, secret: str | None) -> None:
    with pytest.raises(ConfigurationError):
        QueryServiceClient(url, secret)


def test_close_closes_session() -> None:
    session = StubSession(StubResponse(200, {}))

    _client(session).close()

    assert session.closed
