"""Read-only ``tugboat://`` resources returning the raw API payload as JSON."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import Resource, ResourceTemplate

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.context import ServerContext
from tugboat_mcp.exceptions import TugboatApiError
from tugboat_mcp.formatting import pretty_json
from tugboat_mcp.operations.search import aggregate_project_previews
from tugboat_mcp.telemetry import trace_span

logger = logging.getLogger("tugboat_mcp.resources")

SCHEME = "tugboat"
JSON_MIME = "application/json"
TEXT_MIME = "text/plain"

NO_PREVIEWS = (
    "No previews found. This could be due to an API limitation "
    "or because there are no previews available."
)

FetchFn = Callable[[TugboatApiClient, dict[str, str]], Awaitable[Any]]


@dataclass(frozen=True)
class ResourceDef:
    """A ``tugboat://`` URI template and how to serve it."""

    name: str
    uri_template: str
    description: str
    label: str  # "Error fetching <label>: ..."
    auth_resource: str  # formatted with the URI parameters
    fetch: FetchFn

    @property
    def is_template(self) -> bool:
        return "{" in self.uri_template

    @property
    def pattern(self) -> re.Pattern[str]:
        regex = re.sub(r"\\\{(\w+)\\\}", r"(?P<\1>[^/]+)", re.escape(self.uri_template))
        return re.compile(regex)


async def _fetch_previews(client: TugboatApiClient, params: dict[str, str]) -> Any:
    try:
        return await client.get_list("/previews")
    except TugboatApiError as exc:
        logger.warning("Direct previews listing failed, aggregating per project: %s", exc)
    projects = await client.get_list("/projects")
    if not projects:
        return NO_PREVIEWS
    previews = await aggregate_project_previews(client, projects)
    return previews or NO_PREVIEWS


def _get(endpoint: str) -> FetchFn:
    async def fetch(client: TugboatApiClient, params: dict[str, str]) -> Any:
        return await client.get(endpoint.format(**params))

    return fetch


RESOURCE_DEFS: tuple[ResourceDef, ...] = (
    ResourceDef(
        name="projects",
        uri_template=f"{SCHEME}://projects",
        description="All Tugboat projects",
        label="projects",
        auth_resource="projects",
        fetch=_get("/projects"),
    ),
    ResourceDef(
        name="project",
        uri_template=f"{SCHEME}://project/{{id}}",
        description="A single Tugboat project",
        label="project",
        auth_resource="project/{id}",
        fetch=_get("/projects/{id}"),
    ),
    ResourceDef(
        name="previews",
        uri_template=f"{SCHEME}://previews",
        description="All Tugboat previews",
        label="previews",
        auth_resource="previews",
        fetch=_fetch_previews,
    ),
    ResourceDef(
        name="preview",
        uri_template=f"{SCHEME}://preview/{{id}}",
        description="A single Tugboat preview",
        label="preview",
        auth_resource="preview/{id}",
        fetch=_get("/previews/{id}"),
    ),
    ResourceDef(
        name="preview-logs",
        uri_template=f"{SCHEME}://preview/{{id}}/logs",
        description="Logs of a Tugboat preview",
        label="preview logs",
        auth_resource="preview/{id}",
        fetch=_get("/previews/{id}/logs"),
    ),
    ResourceDef(
        name="repositories",
        uri_template=f"{SCHEME}://repositories",
        description="All Tugboat repositories",
        label="repositories",
        auth_resource="repositories",
        fetch=_get("/repos"),
    ),
    ResourceDef(
        name="repository",
        uri_template=f"{SCHEME}://repository/{{id}}",
        description="A single Tugboat repository",
        label="repository",
        auth_resource="repository/{id}",
        fetch=_get("/repos/{id}"),
    ),
)


def list_resources() -> list[Resource]:
    return [
        Resource(
            uri=definition.uri_template,
            name=definition.name,
            description=definition.description,
            mimeType=JSON_MIME,
        )
        for definition in RESOURCE_DEFS
        if not definition.is_template
    ]


def list_resource_templates() -> list[ResourceTemplate]:
    return [
        ResourceTemplate(
            uriTemplate=definition.uri_template,
            name=definition.name,
            description=definition.description,
            mimeType=JSON_MIME,
        )
        for definition in RESOURCE_DEFS
        if definition.is_template
    ]


def match_resource(uri: str) -> tuple[ResourceDef, dict[str, str]] | None:
    """Find the definition serving ``uri``; a trailing slash is ignored."""
    normalized = uri.rstrip("/")
    for definition in RESOURCE_DEFS:
        match = definition.pattern.fullmatch(normalized)
        if match:
            return definition, match.groupdict()
    return None


def _text(text: str) -> ReadResourceContents:
    return ReadResourceContents(content=text, mime_type=TEXT_MIME)


async def read_resource(uri: str, context: ServerContext) -> ReadResourceContents:
    """Serve one resource read. Errors are returned as text, never raised."""
    uri = str(uri)
    found = match_resource(uri)
    if found is None:
        logger.warning("Unknown resource requested: %s", uri)
        return _text(f"Error: Unknown resource: {uri}")
    definition, params = found

    with trace_span(f"read_resource/{definition.name}", attributes={"tugboat.uri": uri}):
        try:
            auth_resource = definition.auth_resource.format(**params)
            if not await context.auth.is_authorized(auth_resource, "read"):
                return _text(
                    f"Error: You do not have permission to access {definition.label}"
                    + (f" {params['id']}" if "id" in params else "")
                )
            logger.info("Fetching %s for %s", definition.label, uri)
            payload = await definition.fetch(context.client, params)
        except Exception as exc:
            message = str(exc) or "Unknown error"
            logger.error("Error fetching %s: %s", definition.label, message)
            return _text(f"Error fetching {definition.label}: {message}")

    if isinstance(payload, str):
        return _text(payload)
    return ReadResourceContents(content=pretty_json(payload), mime_type=JSON_MIME)


__all__ = [
    "RESOURCE_DEFS",
    "ResourceDef",
    "list_resource_templates",
    "list_resources",
    "match_resource",
    "read_resource",
]
