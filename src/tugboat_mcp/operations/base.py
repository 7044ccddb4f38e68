"""Generic tool operation: schema, permission gate, upstream call, formatter."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Union

from mcp.types import TextContent

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.auth import Action
from tugboat_mcp.exceptions import ToolInputError
from tugboat_mcp.formatting import format_stat_value, or_unknown, text_block
from tugboat_mcp.models import Statistic
from tugboat_mcp.tools import ToolDef

logger = logging.getLogger("tugboat_mcp.operations")

Arguments = dict[str, Any]
RunFn = Callable[[TugboatApiClient, Arguments], Awaitable[list[TextContent]]]
# A str is formatted with the call arguments, e.g. "preview/{previewId}".
Deriver = Union[str, Callable[[Arguments], str]]

DELETE_CANCELLED = "Operation cancelled. Set confirm=true to confirm deletion."


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""


def _derive(value: Deriver, args: Arguments) -> str:
    if callable(value):
        return value(args)
    return value.format_map(_BlankMissing(args))


@dataclass(frozen=True)
class Operation:
    """One MCP tool backed by the Tugboat API.

    Attributes:
        tool: Input schema and description.
        action: Permission action checked before ``run``.
        resource: Authorization resource name, or a template over the arguments.
        denied: Completes "You do not have permission to ..." on denial.
        error_label: Prefix for failures, e.g. ``Error creating preview``.
        run: Coroutine performing the upstream call(s) and formatting.
    """

    tool: ToolDef
    action: Action
    resource: Deriver
    denied: Deriver
    error_label: str
    run: RunFn

    @property
    def name(self) -> str:
        return self.tool.name

    def resource_for(self, args: Arguments) -> str:
        return _derive(self.resource, args)

    def denial_for(self, args: Arguments) -> str:
        return f"Error: You do not have permission to {_derive(self.denied, args)}"


def pick_fields(args: Arguments, fields: Iterable[str]) -> dict[str, Any]:
    """Return the subset of ``fields`` that were supplied."""
    return {field: args[field] for field in fields if args.get(field) is not None}


def require_updates(args: Arguments, fields: Iterable[str]) -> dict[str, Any]:
    """Build a partial-update body.

    Raises:
        ToolInputError: If none of ``fields`` was supplied.
    """
    updates = pick_fields(args, fields)
    if not updates:
        raise ToolInputError("No fields to update were provided")
    return updates


def confirmed(args: Arguments) -> bool:
    return args.get("confirm") is True


def cancelled() -> list[TextContent]:
    return text_block(DELETE_CANCELLED)


def stats_params(args: Arguments) -> dict[str, Any]:
    return pick_fields(args, ("limit", "before", "after"))


def stat_lines(item: str, stat: Statistic, *, include_repo: bool = True) -> list[str]:
    """Entry lines for one project or repository statistics data point."""
    lines = [
        f"Timestamp: {or_unknown(stat.timestamp)}",
        f"Value: {format_stat_value(item, stat.value)}",
    ]
    if stat.preview:
        lines.append(f"Preview: {stat.preview}")
    if include_repo and stat.repo:
        lines.append(f"Repo: {stat.repo}")
    if stat.service:
        lines.append(f"Service: {stat.service}")
    return lines


def numbered(items: list[Any], render: Callable[[Any], list[str]]) -> str:
    """Render ``items`` as a numbered list; ``render`` returns the entry's lines.

    The first line follows the number, later lines are indented under it and
    each entry ends with a blank line.
    """
    chunks = []
    for index, item in enumerate(items, start=1):
        first, *rest = render(item)
        lines = [f"{index}. {first}"] + [f"   {line}" for line in rest]
        chunks.append("\n".join(lines) + "\n\n")
    return "".join(chunks)


__all__ = [
    "Arguments",
    "DELETE_CANCELLED",
    "Operation",
    "cancelled",
    "confirmed",
    "numbered",
    "pick_fields",
    "require_updates",
    "stat_lines",
    "stats_params",
]
