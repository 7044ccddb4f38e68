"""Async client for the Tugboat REST API.

Wraps ``httpx.AsyncClient`` with bearer authentication and maps every
failure onto the typed errors in :mod:`tugboat_mcp.exceptions`. Calls are
fire-once: there is no retry, backoff or timeout override.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tugboat_mcp.config import DEFAULT_BASE_URL
from tugboat_mcp.exceptions import (
    ApiAuthenticationError,
    ApiAuthorizationError,
    NoResponseError,
    NotFoundError,
    ResponseFormatError,
    TugboatApiError,
    UnexpectedResponseError,
)
from tugboat_mcp.telemetry import set_span_attributes, trace_span

logger = logging.getLogger("tugboat_mcp.api_client")

_DEBUG_BODY_CHARS = 500


class TugboatApiClient:
    """Thin async wrapper around the Tugboat API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        debug: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Tugboat API key, sent as a bearer token
            base_url: Base URL for API requests
            debug: Log request and response details at DEBUG level
            transport: Optional httpx transport (tests inject ``httpx.MockTransport``)
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.debug = debug
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )
        if debug:
            logger.debug("TugboatApiClient initialized with base URL: %s", self.base_url)

    @property
    def api_key(self) -> str:
        return self._api_key

    def update_auth_headers(self, headers: dict[str, str]) -> None:
        """Replace default headers (e.g. ``Authorization``) on subsequent requests."""
        self._client.headers.update(headers)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TugboatApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def post(
        self,
        endpoint: str,
        data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await self._request("POST", endpoint, params=params, body=data)

    async def patch(self, endpoint: str, data: Any = None) -> Any:
        return await self._request("PATCH", endpoint, body=data)

    async def delete(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("DELETE", endpoint, params=params)

    async def get_list(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> list[Any]:
        """GET an endpoint that must return a JSON array.

        Raises:
            UnexpectedResponseError: If the payload is not a list.
        """
        payload = await self.get(endpoint, params=params)
        if not isinstance(payload, list):
            raise UnexpectedResponseError(
                "Unexpected response format from API", endpoint=endpoint
            )
        return payload

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        if self.debug:
            logger.debug("API %s request to %s params=%s body=%s", method, endpoint, params, body)

        with trace_span(
            f"tugboat_api/{method}",
            attributes={"tugboat.method": method, "tugboat.endpoint": endpoint},
        ) as span:
            try:
                response = await self._client.request(
                    method,
                    endpoint,
                    params=_clean_params(params),
                    json=body,
                )
            except (httpx.UnsupportedProtocol, httpx.LocalProtocolError) as exc:
                logger.debug("API %s %s: request setup failed: %s", method, endpoint, exc)
                raise TugboatApiError(f"Tugboat API Error: {exc}", endpoint=endpoint) from exc
            except httpx.TransportError as exc:
                logger.debug("API %s %s: no response received: %s", method, endpoint, exc)
                raise NoResponseError(
                    "Tugboat API Error: No response received from server", endpoint=endpoint
                ) from exc
            except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as exc:
                logger.debug("API %s %s: request setup failed: %s", method, endpoint, exc)
                raise TugboatApiError(f"Tugboat API Error: {exc}", endpoint=endpoint) from exc

            set_span_attributes(span, {"tugboat.status_code": response.status_code})

            if self.debug:
                logger.debug(
                    "API %s response from %s: status=%s body=%s",
                    method,
                    endpoint,
                    response.status_code,
                    response.text[:_DEBUG_BODY_CHARS],
                )

            if not response.is_success:
                raise self._error_from_response(response, endpoint)
            return self._parse_body(response, endpoint)

    def _parse_body(self, response: httpx.Response, endpoint: str) -> Any:
        if not response.content or not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            if self.debug:
                logger.debug(
                    "Raw response data from %s: %s...",
                    endpoint,
                    response.text[:_DEBUG_BODY_CHARS],
                )
            raise ResponseFormatError(
                f"Failed to parse JSON response from {endpoint}: {exc}",
                status_code=response.status_code,
                endpoint=endpoint,
            ) from exc

    def _error_from_response(
        self, response: httpx.Response, endpoint: str
    ) -> TugboatApiError:
        status = response.status_code
        if self.debug:
            logger.debug(
                "API error response: status=%s body=%s",
                status,
                response.text[:_DEBUG_BODY_CHARS],
            )
        if status == 401:
            return ApiAuthenticationError(
                "Tugboat API Error: Authentication failed. Please check your API key.",
                status_code=status,
                endpoint=endpoint,
            )
        if status == 403:
            return ApiAuthorizationError(
                "Tugboat API Error: Authorization failed. "
                "You do not have permission to perform this action.",
                status_code=status,
                endpoint=endpoint,
            )
        if status == 404:
            return NotFoundError(
                f"Tugboat API Error: Resource not found at {endpoint or 'unknown endpoint'}",
                status_code=status,
                endpoint=endpoint,
            )
        return TugboatApiError(
            f"Tugboat API Error ({status}): {_error_message(response)}",
            status_code=status,
            endpoint=endpoint,
        )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return "Unknown API error"
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
    return "Unknown API error"


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset values and render booleans the way the API expects."""
    if not params:
        return None
    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = value
    return cleaned or None


__all__ = ["TugboatApiClient"]
