"""HTTP transport: Starlette app serving MCP over streamable HTTP at ``/mcp``."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

import uvicorn
from mcp.server.lowlevel import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send

from tugboat_mcp.auth import Action, AuthManager
from tugboat_mcp.context import ServerContext

logger = logging.getLogger("tugboat_mcp.http")

METHOD_ACTIONS: dict[str, Action] = {
    "GET": "read",
    "POST": "write",
    "PUT": "write",
    "PATCH": "write",
    "DELETE": "delete",
}


def action_for_method(method: str) -> Action:
    return METHOD_ACTIONS.get(method.upper(), "read")


def _reject(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


async def check_request(request: Request, auth: AuthManager) -> Response | None:
    """Return a rejection response, or None if the request may proceed.

    The bearer token must equal the auth manager's current token. When a
    ``resource`` query parameter is present, the HTTP method is mapped to an
    action and checked against the authorization policy.
    """
    header = request.headers.get("authorization")
    if not header:
        return _reject(401, "Authentication required", "No authorization header provided")

    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return _reject(401, "Authentication required", "Invalid authorization header format")

    try:
        valid = await auth.authenticate()
        if token != valid.token:
            return _reject(401, "Authentication failed", "Invalid authentication token")

        resource = request.query_params.get("resource")
        if resource:
            action = action_for_method(request.method)
            if not await auth.is_authorized(resource, action):
                return _reject(
                    403,
                    "Authorization failed",
                    f"You do not have permission to {action} this resource",
                )
    except Exception as exc:
        logger.error("Authentication error: %s", exc)
        return _reject(500, "Authentication error", "An error occurred during authentication")
    return None


class PermissionMiddleware:
    """ASGI middleware gating HTTP requests through :func:`check_request`."""

    def __init__(self, app: ASGIApp, auth: AuthManager) -> None:
        self.app = app
        self.auth = auth

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        rejection = await check_request(Request(scope, receive), self.auth)
        if rejection is not None:
            await rejection(scope, receive, send)
            return
        await self.app(scope, receive, send)


def create_app(context: ServerContext, server: Server) -> Starlette:
    """Build the Starlette application for the HTTP transport."""
    session_manager = StreamableHTTPSessionManager(app=server, json_response=False, stateless=True)

    async def handle_mcp(scope: Scope, receive: Receive, send: Send) -> None:
        await session_manager.handle_request(scope, receive, send)

    async def login(request: Request) -> JSONResponse:
        try:
            token = await context.auth.authenticate()
        except Exception as exc:
            logger.error("Authentication error: %s", exc)
            return JSONResponse(
                {"success": False, "error": "Authentication failed"}, status_code=401
            )
        return JSONResponse({"success": True, "token": token.token, "expires": token.expires})

    async def debug_previews(request: Request) -> JSONResponse:
        logger.info("Debugging previews endpoint called")
        try:
            previews = await context.client.get("/previews")
        except Exception as exc:
            logger.error("Error fetching previews: %s", exc)
            return JSONResponse(
                {"success": False, "error": str(exc) or "Unknown error occurred"},
                status_code=500,
            )
        return JSONResponse(previews)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            logger.info("MCP session manager started")
            yield

    return Starlette(
        routes=[
            Route("/auth/login", login, methods=["POST"]),
            Route("/debug/previews", debug_previews, methods=["GET"]),
            Route(
                "/mcp",
                endpoint=PermissionMiddleware(handle_mcp, context.auth),
                methods=["GET", "POST", "DELETE"],
            ),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["*"],
                allow_headers=["*"],
                expose_headers=["Mcp-Session-Id"],
            )
        ],
        lifespan=lifespan,
    )


async def run_http(context: ServerContext, server: Server) -> None:
    app = create_app(context, server)
    config = uvicorn.Config(
        app,
        host=context.config.host,
        port=context.config.port,
        log_level=context.config.log_level.lower(),
    )
    logger.info(
        "Tugboat MCP server listening on http://%s:%d/mcp",
        context.config.host,
        context.config.port,
    )
    await uvicorn.Server(config).serve()


__all__ = [
    "PermissionMiddleware",
    "action_for_method",
    "check_request",
    "create_app",
    "run_http",
]
