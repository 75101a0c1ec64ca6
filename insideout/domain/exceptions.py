"""Custom exception hierarchy for InsideOut.

Following error taxonomy: configuration, authentication, validation, query.
Errors that cross the HTTP boundary carry the status code and the user-safe
message the query service responds with.
"""


class InsideOutError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    public_message: str = "Internal server error while processing request"


class ConfigurationError(InsideOutError):
    """Required configuration is missing or invalid."""

    pass


class ServerConfigurationError(ConfigurationError):
    """Configuration fault surfaced on a request (e.g. missing HMAC secret)."""

    public_message = "Server configuration error"


class AuthenticationError(InsideOutError):
    """Request could not be authenticated."""

    status_code = 401


class MissingSignatureError(AuthenticationError):
    """Signature header was not supplied."""

    public_message = "Missing signature"


class InvalidSignatureError(AuthenticationError):
    """Signature header does not match the request body."""

    public_message = "Invalid signature"


class ValidationError(InsideOutError):
    """Request parameters failed validation."""

    status_code = 400

    def __init__(self, message: str) -> None:
        """Initialize with a user-facing message."""
        super().__init__(message)
        self.public_message = message


class QueryExecutionError(InsideOutError):
    """A warehouse query failed."""

    pass


class TemplateNotFoundError(QueryExecutionError):
    """No SQL template exists for the requested key."""

    pass


class QueryServiceError(InsideOutError):
    """The query service could not be reached or returned an error."""

    pass


class DirectoryLookupError(InsideOutError):
    """Directory (Slack usergroup) lookup failed."""

    pass
