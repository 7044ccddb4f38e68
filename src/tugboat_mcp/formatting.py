"""Text rendering helpers shared by tools and resources."""

from __future__ import annotations

import json
from typing import Any

from mcp.types import TextContent

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(size: Any) -> str:
    """Render a byte count with a 1024 base and two decimals (``1.50 KB``)."""
    if size is None or isinstance(size, bool):
        return "Unknown"
    try:
        value = float(size)
    except (TypeError, ValueError):
        return str(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.2f} {_SIZE_UNITS[unit_index]}"


def format_stat_value(item: str, value: Any) -> str:
    if item == "size":
        return format_size(value)
    if "time" in item:
        return f"{value} seconds"
    return str(value)


def yes_no(flag: Any) -> str:
    return "Yes" if flag else "No"


def enabled_disabled(flag: Any) -> str:
    return "Enabled" if flag else "Disabled"


def or_unknown(value: Any) -> str:
    return "Unknown" if value is None else str(value)


def pretty_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def text_block(value: str) -> list[TextContent]:
    """Wrap a string as a single MCP text block."""
    return [TextContent(type="text", text=value)]


def text_blocks(*values: str) -> list[TextContent]:
    return [TextContent(type="text", text=value) for value in values]


__all__ = [
    "enabled_disabled",
    "format_size",
    "format_stat_value",
    "or_unknown",
    "pretty_json",
    "text_block",
    "text_blocks",
    "yes_no",
]
