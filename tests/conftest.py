import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

import httpx
import pytest

from tugboat_mcp.auth import AuthorizationPolicy
from tugboat_mcp.config import Config
from tugboat_mcp.context import ServerContext, create_context
from tugboat_mcp.tool_handlers import handle_tool

API_KEY = "test-api-key"
BASE_URL = "https://api.tugboat.test/v3"

PROJECT_ID = "5e9f8a7b6c5d4e3f2a1b0c9d"
REPO_ID = "60a1b2c3d4e5f60718293a4b"
PREVIEW_ID = "5f0c1e2d3b4a596877665544"


class FakeTugboat:
    """In-memory stand-in for the Tugboat API behind ``httpx.MockTransport``.

    Routes map ``(method, path)`` to a status and JSON payload, or to a
    callable taking the request. Unrouted requests get a 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, payload: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = (status, payload)

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.routes[(method, path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v3")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(route):
            return route(request)
        status, payload = route
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    def calls(self, method: str | None = None) -> list[tuple[str, str]]:
        return [
            (request.method, request.url.path.removeprefix("/v3"))
            for request in self.requests
            if method is None or request.method == method
        ]

    def last_body(self) -> Any:
        return json.loads(self.requests[-1].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeTugboat:
    return FakeTugboat()


@pytest.fixture
def config() -> Config:
    return Config(api_key=API_KEY, base_url=BASE_URL)


@pytest.fixture
def make_context(
    config: Config, fake_api: FakeTugboat
) -> Callable[..., ServerContext]:
    def _make(policy: AuthorizationPolicy | None = None, **overrides: Any) -> ServerContext:
        cfg = replace(config, **overrides)
        return create_context(cfg, policy=policy, transport=fake_api.transport)

    return _make


@pytest.fixture
def context(make_context: Callable[..., ServerContext]) -> ServerContext:
    return make_context()


@pytest.fixture
def call_tool(context: ServerContext) -> Callable[..., Awaitable[list[str]]]:
    """Run a tool against the fake API and return the text of each block."""

    async def _call(name: str, arguments: dict[str, Any] | None = None) -> list[str]:
        content = await handle_tool(
            name,
            arguments,
            context=context,
            logger=logging.getLogger("tests"),
        )
        return [item.text for item in content]

    return _call
