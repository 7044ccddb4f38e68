"""Exception classes for the Tugboat MCP server."""

from __future__ import annotations


class TugboatError(Exception):
    """Base exception for all tugboat_mcp errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(TugboatError):
    """Raised when process configuration is missing or invalid."""


class TugboatApiError(TugboatError):
    """Raised when a call to the Tugboat API fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class ApiAuthenticationError(TugboatApiError):
    """The API rejected the API key (HTTP 401)."""


class ApiAuthorizationError(TugboatApiError):
    """The API key lacks permission for the request (HTTP 403)."""


class NotFoundError(TugboatApiError):
    """The requested endpoint or entity does not exist (HTTP 404)."""


class NoResponseError(TugboatApiError):
    """The request was sent but no response came back."""


class ResponseFormatError(TugboatApiError):
    """The response body could not be parsed as JSON."""


class UnexpectedResponseError(TugboatApiError):
    """The response was valid JSON but not the expected shape."""


class AuthenticationFailedError(TugboatError):
    """Raised when the auth manager cannot produce a token."""


class ToolInputError(TugboatError):
    """Raised when tool arguments are rejected before any upstream call."""
