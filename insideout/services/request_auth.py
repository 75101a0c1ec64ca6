"""HMAC-SHA256 request signing and verification."""

import hashlib
import hmac
from typing import Final

from insideout.config.logging_config import get_logger
from insideout.domain.exceptions import (
    InvalidSignatureError,
    MissingSignatureError,
    ServerConfigurationError,
)

SIGNATURE_HEADER: Final[str] = "X-Signature"
SIGNATURE_LOG_PREFIX_LENGTH: Final[int] = 8

logger = get_logger(__name__)


def compute_signature(body: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def _redact(signature: str) -> str:
    return f"{signature[:SIGNATURE_LOG_PREFIX_LENGTH]}..."


def verify_signature(body: bytes, signature: str | None, secret: str | None) -> None:
    """Verify a request signature against the exact request body.

    Args:
        body: Raw request body as received
        signature: Hex signature from the request header
        secret: Shared secret configured for the service

    Raises:
        MissingSignatureError: If no signature was supplied
        ServerConfigurationError: If the service has no secret configured
        InvalidSignatureError: If the signature does not match
    """
    if not signature:
        logger.warning("signature_missing")
        raise MissingSignatureError("Missing signature")

    if not secret:
        logger.error("hmac_secret_not_configured")
        raise ServerConfigurationError("HMAC secret is not configured")

    expected = compute_signature(body, secret)
    provided = signature.strip().lower()

    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(
            "signature_invalid",
            provided=_redact(provided),
            expected=_redact(expected),
        )
        raise InvalidSignatureError("Invalid signature")

    logger.debug("signature_verified")
