"""Search tools.

The Tugboat API has no search endpoints, so these list a broad collection
and filter it client-side with a case-insensitive substring match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from mcp.types import TextContent

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.exceptions import TugboatApiError
from tugboat_mcp.formatting import text_block, text_blocks, yes_no
from tugboat_mcp.models import Preview, Project, Repository
from tugboat_mcp.operations.base import Arguments, Operation, numbered
from tugboat_mcp.tools import ParameterDef, ToolDef, id_param

logger = logging.getLogger("tugboat_mcp.operations.search")

PREVIEW_STATES = ("all", "ready", "building", "failed")
DEFAULT_REPOSITORY_LIMIT = 10


def matches(query: str, values: Iterable[str | None]) -> bool:
    """True if ``query`` is a case-insensitive substring of any value."""
    needle = query.lower()
    return any(value and needle in value.lower() for value in values)


async def aggregate_project_previews(
    client: TugboatApiClient, projects: list[Any]
) -> list[Any]:
    """Collect previews project by project, skipping projects that fail."""
    previews: list[Any] = []
    for project in projects:
        project_id = Project.from_dict(project).id
        if not project_id:
            continue
        try:
            previews.extend(await client.get_list(f"/projects/{project_id}/previews"))
        except TugboatApiError as exc:
            logger.warning("Skipping previews of project %s: %s", project_id, exc)
    return previews


async def list_all_previews(client: TugboatApiClient) -> list[Any]:
    """List every preview, falling back to per-project aggregation."""
    try:
        return await client.get_list("/previews")
    except TugboatApiError as exc:
        logger.warning("Direct previews listing failed, aggregating per project: %s", exc)
    return await aggregate_project_previews(client, await client.get_list("/projects"))


# =============================================================================
# searchPreviews
# =============================================================================


def _preview_hit(preview: Preview) -> list[str]:
    lines = [
        f"{preview.name or 'Unnamed'} (ID: {preview.id})",
        f"State: {preview.state or 'Unknown'}",
    ]
    if preview.url:
        lines.append(f"URL: {preview.url}")
    if preview.created_at:
        lines.append(f"Created: {preview.created_at}")
    return lines


async def _search_previews(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    query = args["query"]
    state = args.get("state")
    logger.info('Fetching all previews to search for "%s"', query)
    previews = [Preview.from_dict(item) for item in await list_all_previews(client)]
    hits = [
        preview
        for preview in previews
        if (not state or state == "all" or preview.state == state)
        and matches(query, (preview.name, preview.id, preview.ref, preview.url))
    ]
    logger.info(
        'Found %d previews matching "%s" out of %d total', len(hits), query, len(previews)
    )
    body = numbered(hits, _preview_hit) if hits else "No matching previews found."
    return text_block(f'Found {len(hits)} previews matching "{query}":\n\n{body}'.rstrip())


SEARCH_PREVIEWS = Operation(
    tool=ToolDef(
        name="searchPreviews",
        description="Search previews by name, ID, git reference or URL",
        parameters=(
            (
                "query",
                ParameterDef(
                    type="string",
                    description="Search terms to filter previews by name or other properties",
                ),
            ),
            (
                "state",
                ParameterDef(
                    type="string", description="Filter by preview state", enum=PREVIEW_STATES
                ),
            ),
        ),
        required=("query",),
    ),
    action="read",
    resource="previews",
    denied="search previews",
    error_label="Error searching previews",
    run=_search_previews,
)


# =============================================================================
# searchProjects
# =============================================================================


def _project_hit(project: Project) -> list[str]:
    lines = [f"{project.name or 'Unnamed'} (ID: {project.id})"]
    if project.description:
        lines.append(f"Description: {project.description}")
    return lines


async def _search_projects(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    query = args["query"]
    logger.info('Fetching all projects to search for "%s"', query)
    projects = [Project.from_dict(item) for item in await client.get_list("/projects")]
    hits = [
        project
        for project in projects
        if matches(query, (project.name, project.id, project.description))
    ]
    body = numbered(hits, _project_hit) if hits else "No matching projects found."
    return text_block(f'Found {len(hits)} projects matching "{query}":\n\n{body}'.rstrip())


SEARCH_PROJECTS = Operation(
    tool=ToolDef(
        name="searchProjects",
        description="Search projects by name, ID or description",
        parameters=(
            (
                "query",
                ParameterDef(
                    type="string",
                    description="Search terms to filter projects by name or other properties",
                ),
            ),
        ),
        required=("query",),
    ),
    action="read",
    resource="projects",
    denied="search projects",
    error_label="Error searching projects",
    run=_search_projects,
)


# =============================================================================
# searchRepositories
# =============================================================================


def _repository_hit(index: int, repo: Repository) -> str:
    lines = [f"{index}. {repo.name or 'Unnamed'} (ID: {repo.id})"]
    if repo.provider:
        lines.append(f"   Provider: {repo.provider}")
    if repo.url:
        lines.append(f"   URL: {repo.url}")
    if repo.project:
        lines.append(f"   Project: {repo.project_name or 'Unknown'} (ID: {repo.project})")
    if repo.private is not None:
        lines.append(f"   Private: {yes_no(repo.private)}")
    return "\n".join(lines)


async def _search_repositories(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    query = args["query"]
    limit = args.get("limit", DEFAULT_REPOSITORY_LIMIT)
    project_id = args.get("projectId")
    endpoint = f"/projects/{project_id}/repos" if project_id else "/repos"
    logger.info('Fetching repositories from %s to search for "%s"', endpoint, query)
    repos = [Repository.from_dict(item) for item in await client.get_list(endpoint)]
    hits = [
        repo for repo in repos if matches(query, (repo.name, repo.id, repo.url, repo.git))
    ][:limit]
    if not hits:
        return text_block(f'No repositories found matching "{query}".')
    noun = "repository" if len(hits) == 1 else "repositories"
    return text_blocks(
        f'Found {len(hits)} {noun} matching "{query}":',
        *(_repository_hit(index, repo) for index, repo in enumerate(hits, start=1)),
    )


SEARCH_REPOSITORIES = Operation(
    tool=ToolDef(
        name="searchRepositories",
        description="Search repositories by name, ID or URL, optionally within one project",
        parameters=(
            (
                "query",
                ParameterDef(
                    type="string",
                    description="Search query to find matching repositories",
                    min_length=1,
                    max_length=100,
                ),
            ),
            (
                "limit",
                ParameterDef(
                    type="integer",
                    description="Maximum number of repositories to return (default: 10)",
                    default=DEFAULT_REPOSITORY_LIMIT,
                    minimum=1,
                    maximum=100,
                ),
            ),
            ("projectId", id_param("Filter repositories by project ID (optional)")),
        ),
        required=("query",),
    ),
    action="read",
    resource=lambda args: (
        f"project/{args['projectId']}" if args.get("projectId") else "repositories"
    ),
    denied=lambda args: (
        f"search repositories in project {args['projectId']}"
        if args.get("projectId")
        else "search repositories"
    ),
    error_label="Error searching repositories",
    run=_search_repositories,
)


SEARCH_OPERATIONS = (SEARCH_PREVIEWS, SEARCH_PROJECTS, SEARCH_REPOSITORIES)

__all__ = [
    "SEARCH_OPERATIONS",
    "aggregate_project_previews",
    "list_all_previews",
    "matches",
]
