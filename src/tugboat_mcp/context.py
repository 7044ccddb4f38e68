"""Per-process state shared by tools, resources and HTTP routes."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.auth import AuthManager, AuthorizationPolicy
from tugboat_mcp.config import Config


@dataclass
class ServerContext:
    """Owns the API client and auth manager for one server instance."""

    config: Config
    client: TugboatApiClient
    auth: AuthManager

    async def aclose(self) -> None:
        await self.client.aclose()


def create_context(
    config: Config,
    *,
    policy: AuthorizationPolicy | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ServerContext:
    client = TugboatApiClient(
        config.api_key,
        config.base_url,
        debug=config.debug,
        transport=transport,
    )
    return ServerContext(config=config, client=client, auth=AuthManager(client, policy))


__all__ = ["ServerContext", "create_context"]
