"""Authentication and authorization for tool, resource and HTTP calls.

The Tugboat API authenticates with a static API key, so the "token" handed
out here is the key itself with no expiry. Authorization decisions are
delegated to a pluggable :class:`AuthorizationPolicy`; the default policy
grants everything.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Literal, Protocol

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.exceptions import AuthenticationFailedError

logger = logging.getLogger("tugboat_mcp.auth")

Action = Literal["read", "write", "delete"]


@dataclass(frozen=True)
class AuthToken:
    """Bearer token; ``expires`` is a Unix timestamp in seconds."""

    token: str
    expires: float | None = None

    def is_valid(self, now: float | None = None) -> bool:
        if self.expires is None:
            return True
        return self.expires > (time.time() if now is None else now)


class AuthorizationPolicy(Protocol):
    """Decides whether ``action`` is allowed on ``resource``."""

    def is_allowed(self, resource: str, action: Action) -> bool:
        ...


class AllowAllPolicy:
    """Grants every request."""

    def is_allowed(self, resource: str, action: Action) -> bool:
        return True


class DenyAllPolicy:
    """Refuses every request."""

    def is_allowed(self, resource: str, action: Action) -> bool:
        return False


class AuthManager:
    """Caches the bearer token and gates calls through the policy."""

    def __init__(
        self,
        api_client: TugboatApiClient,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        self.api_client = api_client
        self.policy: AuthorizationPolicy = policy or AllowAllPolicy()
        self._token: AuthToken | None = None
        self._refresh_task: asyncio.Task[AuthToken] | None = None

    async def authenticate(self) -> AuthToken:
        """Return a valid token, refreshing it at most once at a time.

        Concurrent callers that arrive while a refresh is running await the
        same task instead of starting their own.

        Raises:
            AuthenticationFailedError: If the refresh fails.
        """
        token = self._token
        if token is not None and token.is_valid():
            logger.debug("Using existing auth token")
            return token

        task = self._refresh_task
        if task is None:
            logger.debug("Refreshing auth token")
            task = asyncio.ensure_future(self._refresh_and_store())
            self._refresh_task = task
        else:
            logger.debug("Token refresh already in progress, waiting")

        try:
            # shield: one cancelled caller must not cancel the shared refresh
            return await asyncio.shield(task)
        except Exception as exc:
            logger.error("Failed to authenticate with Tugboat API: %s", exc or "Unknown error")
            raise AuthenticationFailedError("Authentication failed") from exc

    async def _refresh_and_store(self) -> AuthToken:
        try:
            token = await self._refresh_token()
            self._token = token
            logger.debug("Auth token refreshed successfully")
            return token
        finally:
            self._refresh_task = None

    async def _refresh_token(self) -> AuthToken:
        # API-key auth: nothing to exchange, the key is the token.
        return AuthToken(token=self.api_client.api_key)

    async def is_authorized(self, resource: str, action: Action) -> bool:
        """Authenticate, then ask the policy about ``action`` on ``resource``."""
        await self.authenticate()
        allowed = bool(self.policy.is_allowed(resource, action))
        logger.info(
            "Authorization check for %s on %s: %s",
            action,
            resource,
            "granted" if allowed else "denied",
        )
        return allowed

    async def get_auth_headers(self) -> dict[str, str]:
        token = await self.authenticate()
        return {"Authorization": f"Bearer {token.token}"}


__all__ = [
    "Action",
    "AllowAllPolicy",
    "AuthManager",
    "AuthToken",
    "AuthorizationPolicy",
    "DenyAllPolicy",
]
