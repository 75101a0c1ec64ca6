"""HTTP client the Slack bot uses to call the query service."""

import json
from typing import Any, Final

import requests
from pydantic import ValidationError as PydanticValidationError

from insideout.config.logging_config import get_logger
from insideout.domain.exceptions import ConfigurationError, QueryServiceError
from insideout.domain.models import AggregateResponse, CanonicalPeriod, CategorySelector
from insideout.services.request_auth import SIGNATURE_HEADER, compute_signature

DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0

logger = get_logger(__name__)


def serialize_request_body(period: CanonicalPeriod, selector: CategorySelector) -> bytes:
    """Serialize the top5 request exactly as it is signed and sent."""
    body = {"month": str(period), "category": str(getattr(selector, "value", selector))}
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


class QueryServiceClient:
    """Signs and sends top5 requests to the query service."""

    def __init__(
        self,
        url: str | None,
        secret: str | None,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize client.

        Args:
            url: Full URL of the ``/api/top5`` endpoint
            secret: Shared HMAC secret
            timeout_seconds: Request timeout
            session: Optional requests session (for connection reuse / tests)

        Raises:
            ConfigurationError: If URL or secret is missing
        """
        if not url:
            raise ConfigurationError("QUERY_SERVICE_URL not configured")
        if not secret:
            raise ConfigurationError("HMAC_SECRET_SHARED not configured")
        self._url = url
        self._secret = secret
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def fetch_top5(
        self, period: CanonicalPeriod, selector: CategorySelector
    ) -> AggregateResponse:
        """Fetch the leaderboard for ``period``.

        Raises:
            QueryServiceError: On transport failure, non-200 status or a
                malformed response body
        """
        body = serialize_request_body(period, selector)
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: compute_signature(body, self._secret),
        }

        try:
            response = self._session.post(
                self._url, data=body, headers=headers, timeout=self._timeout_seconds
            )
        except requests.RequestException as exc:
            raise QueryServiceError(f"Query service request failed: {exc}") from exc

        if response.status_code != 200:
            logger.warning(
                "query_service_error_status",
                status_code=response.status_code,
                error=_error_message(response),
            )
            raise QueryServiceError(
                f"Query service returned status {response.status_code}"
            )

        try:
            return AggregateResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise QueryServiceError(f"Malformed query service response: {exc}") from exc

    def close(self) -> None:
        self._session.close()


def _error_message(response: requests.Response) -> Any:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    return payload.get("error") if isinstance(payload, dict) else payload
