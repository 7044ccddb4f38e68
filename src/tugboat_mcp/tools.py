"""Tool schema definitions for the Tugboat MCP server.

This module provides dataclasses and functions for defining MCP tool schemas
in a reusable, type-safe manner, and for validating incoming arguments
against those schemas.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match
from mcp.types import Tool

from tugboat_mcp.exceptions import ToolInputError

if TYPE_CHECKING:
    from tugboat_mcp.operations.base import Operation

TUGBOAT_ID_LENGTH = 24


@dataclass(frozen=True)
class ParameterDef:
    """Definition for a JSON Schema parameter."""

    type: str  # "string", "integer", "boolean", "array", "object"
    description: str = ""
    default: Any = None
    enum: tuple[str, ...] | None = None
    minimum: int | None = None
    maximum: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    items: dict[str, Any] | None = None  # For array types
    properties: tuple[tuple[str, ParameterDef], ...] | None = None  # For object types
    required: tuple[str, ...] = ()


@dataclass(frozen=True)
class ToolDef:
    """Definition for an MCP tool."""

    name: str
    description: str
    parameters: tuple[tuple[str, ParameterDef], ...] = ()  # Ordered (name, param) pairs
    required: tuple[str, ...] = ()


# =============================================================================
# Reusable parameter definitions
# =============================================================================


def id_param(description: str) -> ParameterDef:
    """A 24-character Tugboat object id."""
    return ParameterDef(
        type="string",
        description=description,
        min_length=TUGBOAT_ID_LENGTH,
        max_length=TUGBOAT_ID_LENGTH,
    )


CONFIRM_PARAM = ParameterDef(
    type="boolean",
    description="Confirmation flag for deletion (must be true to proceed)",
)

LIMIT_PARAM = ParameterDef(
    type="integer",
    description="Maximum number of results to return",
    minimum=1,
)

STATS_AFTER_PARAM = ParameterDef(
    type="string",
    description="Only include data points after this ISO 8601 timestamp",
)

STATS_BEFORE_PARAM = ParameterDef(
    type="string",
    description="Only include data points before this ISO 8601 timestamp",
)

STATS_LIMIT_PARAM = ParameterDef(
    type="integer",
    description="Maximum number of data points to return",
    minimum=1,
)

CONFIG_PARAM = ParameterDef(
    type="object",
    description="Preview configuration overrides",
)


# =============================================================================
# Schema generation functions
# =============================================================================


def _param_to_schema(param: ParameterDef) -> dict[str, Any]:
    """Convert a ParameterDef to a JSON Schema dict."""
    schema: dict[str, Any] = {"type": param.type}

    if param.description:
        schema["description"] = param.description
    if param.default is not None:
        schema["default"] = param.default
    if param.enum is not None:
        schema["enum"] = list(param.enum)
    if param.minimum is not None:
        schema["minimum"] = param.minimum
    if param.maximum is not None:
        schema["maximum"] = param.maximum
    if param.min_length is not None:
        schema["minLength"] = param.min_length
    if param.max_length is not None:
        schema["maxLength"] = param.max_length
    if param.items is not None:
        schema["items"] = param.items
    if param.properties is not None:
        schema["properties"] = {
            name: _param_to_schema(nested) for name, nested in param.properties
        }
        if param.required:
            schema["required"] = list(param.required)

    return schema


def build_input_schema(tool: ToolDef) -> dict[str, Any]:
    """Convert ToolDef to MCP inputSchema dict.

    Args:
        tool: The tool definition to convert.

    Returns:
        A JSON Schema dict suitable for MCP Tool.inputSchema.
    """
    properties = {name: _param_to_schema(param) for name, param in tool.parameters}

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }

    if tool.required:
        schema["required"] = list(tool.required)

    return schema


def validate_arguments(tool: ToolDef, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
    """Check arguments against the tool's input schema.

    Returns:
        The arguments as a plain dict (empty when none were sent).

    Raises:
        ToolInputError: Naming the first offending field.
    """
    args = dict(arguments or {})
    validator = Draft7Validator(build_input_schema(tool))
    error = best_match(validator.iter_errors(args))
    if error is None:
        return args
    field = ".".join(str(part) for part in error.absolute_path)
    detail = f"{field}: {error.message}" if field else error.message
    raise ToolInputError(f"Invalid arguments: {detail}")


def build_tools(operations: Iterable[Operation]) -> list[Tool]:
    """Build all MCP Tool objects from operation definitions."""
    return [
        Tool(
            name=operation.tool.name,
            description=operation.tool.description,
            inputSchema=build_input_schema(operation.tool),
        )
        for operation in operations
    ]


__all__ = [
    "CONFIG_PARAM",
    "CONFIRM_PARAM",
    "LIMIT_PARAM",
    "ParameterDef",
    "STATS_AFTER_PARAM",
    "STATS_BEFORE_PARAM",
    "STATS_LIMIT_PARAM",
    "TUGBOAT_ID_LENGTH",
    "ToolDef",
    "build_input_schema",
    "build_tools",
    "id_param",
    "validate_arguments",
]
