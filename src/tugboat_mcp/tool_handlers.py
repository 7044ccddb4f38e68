"""MCP protocol-layer tool dispatch for tugboat_mcp.server."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from mcp.types import TextContent

from tugboat_mcp.context import ServerContext
from tugboat_mcp.exceptions import ToolInputError
from tugboat_mcp.formatting import text_block
from tugboat_mcp.operations import Operation, get_operation
from tugboat_mcp.telemetry import generate_request_id, set_span_attributes, trace_span
from tugboat_mcp.tools import validate_arguments


def _error_text(exc: BaseException) -> str:
    return str(exc) or "Unknown error"


def enforce_response_limit(
    content: list[TextContent],
    tool_name: str,
    *,
    max_response_bytes: int,
    logger: logging.Logger,
) -> list[TextContent]:
    """Replace oversized MCP responses with a single error block."""
    serialized = json.dumps(
        [{"type": item.type, "text": item.text} for item in content],
        ensure_ascii=True,
    )
    total_bytes = len(serialized)
    if total_bytes <= max_response_bytes:
        return content

    logger.warning(
        "Response payload exceeded limit for %s: %d bytes (max %d)",
        tool_name,
        total_bytes,
        max_response_bytes,
    )
    return text_block(
        f"Error: Response payload too large ({total_bytes} bytes, max {max_response_bytes}). "
        "Narrow the request with filters or a smaller limit."
    )


async def _authorize(
    operation: Operation,
    args: dict[str, Any],
    context: ServerContext,
    logger: logging.Logger,
) -> list[TextContent] | None:
    """Return an error response if the call may not proceed, else None."""
    resource = operation.resource_for(args)
    try:
        allowed = await context.auth.is_authorized(resource, operation.action)
    except Exception as exc:
        logger.error("Authorization check for %s failed: %s", operation.name, exc)
        return text_block("Error: Authentication failed")
    if not allowed:
        logger.warning("Denied %s on %s for %s", operation.action, resource, operation.name)
        return text_block(operation.denial_for(args))
    return None


async def handle_tool(
    name: str,
    arguments: dict[str, Any] | None,
    *,
    context: ServerContext,
    logger: logging.Logger,
    lookup: Callable[[str], Operation | None] = get_operation,
) -> list[TextContent]:
    """Validate, authorize and run one tool call. Never raises."""
    request_id = generate_request_id()
    try:
        with trace_span(
            f"handle_tool/{name}",
            attributes={
                "tugboat.tool": name,
                "tugboat.request_id": request_id,
            },
        ) as span:
            operation = lookup(name)
            if operation is None:
                logger.warning("[%s] Unknown tool: %s", request_id, name)
                return text_block(f"Error: Unknown tool: {name}")

            try:
                args = validate_arguments(operation.tool, arguments)
            except ToolInputError as exc:
                logger.warning("[%s] Validation error for %s: %s", request_id, name, exc)
                return text_block(f"Error: {exc}")

            denial = await _authorize(operation, args, context, logger)
            if denial is not None:
                set_span_attributes(span, {"tugboat.denied": True})
                return denial

            logger.debug("[%s] Running %s", request_id, name)
            try:
                content = await operation.run(context.client, args)
            except ToolInputError as exc:
                logger.warning("[%s] %s rejected input: %s", request_id, name, exc)
                return text_block(f"Error: {exc}")
            except Exception as exc:
                logger.error("[%s] %s: %s", request_id, operation.error_label, _error_text(exc))
                return text_block(f"{operation.error_label}: {_error_text(exc)}")

            return enforce_response_limit(
                content,
                name,
                max_response_bytes=context.config.max_response_bytes,
                logger=logger,
            )
    except Exception as exc:
        logger.error("[%s] Unhandled error in %s: %s", request_id, name, exc)
        return text_block(f"Error: {_error_text(exc)}")


__all__ = ["enforce_response_limit", "handle_tool"]
