"""Project tools."""

from __future__ import annotations

import logging
from typing import Any

from mcp.types import TextContent

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.formatting import (
    format_size,
    or_unknown,
    text_block,
    text_blocks,
)
from tugboat_mcp.models import Job, Project, Repository, Statistic
from tugboat_mcp.operations.base import (
    Arguments,
    Operation,
    cancelled,
    confirmed,
    numbered,
    pick_fields,
    require_updates,
    stat_lines,
    stats_params,
)
from tugboat_mcp.tools import (
    CONFIRM_PARAM,
    LIMIT_PARAM,
    STATS_AFTER_PARAM,
    STATS_BEFORE_PARAM,
    STATS_LIMIT_PARAM,
    ParameterDef,
    ToolDef,
    id_param,
)

logger = logging.getLogger("tugboat_mcp.operations.projects")

PROJECT_ID_PARAM = id_param("Project ID (24 characters)")

PROJECT_STAT_ITEMS = ("build-time", "refresh-time", "size", "repos", "previews", "services")


def _with_unit(value: Any, unit: str) -> str:
    return "Unknown" if value is None else f"{value} {unit}"


def _names(values: list[str]) -> str:
    return ", ".join(values) if values else "None"


# =============================================================================
# listProjects / createProject
# =============================================================================


def _project_summary(project: Project) -> list[str]:
    return [
        f"{project.name or 'Unnamed'} (ID: {project.id})",
        f"Created: {or_unknown(project.created_at)}",
        f"Updated: {or_unknown(project.updated_at)}",
        f"Size: {format_size(project.size)}",
        f"Quota: {_with_unit(project.quota, 'GB')}",
        f"Repos: {project.repo_count}",
    ]


async def _list_projects(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    logger.info("Fetching projects")
    projects = [Project.from_dict(item) for item in await client.get_list("/projects")]
    if not projects:
        return text_block("No projects found.")
    body = numbered(projects, _project_summary)
    return text_block(f"Found {len(projects)} projects:\n\n{body}".rstrip())


LIST_PROJECTS = Operation(
    tool=ToolDef(
        name="listProjects",
        description="List all Tugboat projects accessible with the configured API key",
    ),
    action="read",
    resource="projects",
    denied="list projects",
    error_label="Error listing projects",
    run=_list_projects,
)


async def _create_project(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    data = pick_fields(args, ("name", "description"))
    logger.info("Creating project %s", data["name"])
    project = Project.from_dict(await client.post("/projects", data))
    return text_blocks(
        f"Project created successfully: {project.name or data['name']} (ID: {project.id})",
        f"Description: {project.description or 'None'}",
    )


CREATE_PROJECT = Operation(
    tool=ToolDef(
        name="createProject",
        description="Create a new Tugboat project",
        parameters=(
            (
                "name",
                ParameterDef(
                    type="string",
                    description="Project name",
                    min_length=1,
                    max_length=100,
                ),
            ),
            (
                "description",
                ParameterDef(
                    type="string",
                    description="Project description (optional)",
                    max_length=500,
                ),
            ),
        ),
        required=("name",),
    ),
    action="write",
    resource="projects",
    denied="create projects",
    error_label="Error creating project",
    run=_create_project,
)


# =============================================================================
# getProject / updateProject / deleteProject
# =============================================================================


def _project_details(project: Project) -> str:
    lines = [
        "Project details:",
        "",
        f"ID: {project.id}",
        f"Name: {project.name or 'Unnamed'}",
    ]
    if project.description:
        lines.append(f"Description: {project.description}")
    lines += [
        f"Created: {or_unknown(project.created_at)}",
        f"Updated: {or_unknown(project.updated_at)}",
        f"Size: {format_size(project.size)}",
        f"Quota: {_with_unit(project.quota, 'GB')}",
        f"Memory: {_with_unit(project.memory, 'MB')}",
        f"Build Memory: {_with_unit(project.build_memory, 'MB')}",
        f"CPUs: {or_unknown(project.cpus)}",
        f"Sleep: {_with_unit(project.sleep, 'minutes')}",
        f"Base Previews: {'Allowed' if project.base else 'Not Allowed'}",
        f"Domain: {project.domain or 'Default'}",
        f"Repos: {project.repo_count}",
        f"Admins: {_names(project.admins)}",
        f"Users: {_names(project.users)}",
        f"Guests: {_names(project.guests)}",
    ]
    return "\n".join(lines)


async def _get_project(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    project_id = args["id"]
    logger.info("Fetching project %s", project_id)
    project = Project.from_dict(await client.get(f"/projects/{project_id}"))
    return text_block(_project_details(project))


GET_PROJECT = Operation(
    tool=ToolDef(
        name="getProject",
        description="Get detailed information about a project",
        parameters=(("id", PROJECT_ID_PARAM),),
        required=("id",),
    ),
    action="read",
    resource="project/{id}",
    denied="view project {id}",
    error_label="Error getting project",
    run=_get_project,
)


async def _update_project(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    project_id = args["id"]
    updates = require_updates(args, ("name", "domain"))
    logger.info("Updating project %s with fields: %s", project_id, ", ".join(updates))
    project = Project.from_dict(await client.patch(f"/projects/{project_id}", updates))
    return text_block(
        "Project updated successfully:\n\n"
        f"ID: {project.id}\n"
        f"Name: {project.name or 'Unnamed'}\n"
        f"Domain: {project.domain or 'Default'}\n"
        f"Updated: {or_unknown(project.updated_at)}"
    )


UPDATE_PROJECT = Operation(
    tool=ToolDef(
        name="updateProject",
        description="Update a project's name or default domain",
        parameters=(
            ("id", PROJECT_ID_PARAM),
            ("name", ParameterDef(type="string", description="New project name")),
            (
                "domain",
                ParameterDef(type="string", description="Default domain for Preview links"),
            ),
        ),
        required=("id",),
    ),
    action="write",
    resource="project/{id}",
    denied="update project {id}",
    error_label="Error updating project",
    run=_update_project,
)


async def _delete_project(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    project_id = args["id"]
    if not confirmed(args):
        return cancelled()
    logger.info("Deleting project %s", project_id)
    await client.delete(f"/projects/{project_id}")
    return text_block(f"Project with ID {project_id} has been deleted successfully.")


DELETE_PROJECT = Operation(
    tool=ToolDef(
        name="deleteProject",
        description="Delete a project and everything in it. Requires confirm=true.",
        parameters=(("id", PROJECT_ID_PARAM), ("confirm", CONFIRM_PARAM)),
        required=("id",),
    ),
    action="delete",
    resource="project/{id}",
    denied="delete project {id}",
    error_label="Error deleting project",
    run=_delete_project,
)


# =============================================================================
# getProjectRepos / getProjectJobs / getProjectStats
# =============================================================================


def _repo_summary(repo: Repository) -> list[str]:
    return [
        f"{repo.name or 'Unnamed'} (ID: {repo.id})",
        f"Provider: {or_unknown(repo.provider)}",
        f"Git: {or_unknown(repo.git)}",
        f"Link: {or_unknown(repo.link)}",
        f"Created: {or_unknown(repo.created_at)}",
        f"Updated: {or_unknown(repo.updated_at)}",
    ]


async def _get_project_repos(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    project_id = args["id"]
    logger.info("Fetching repositories for project %s", project_id)
    payload = await client.get_list(f"/projects/{project_id}/repos")
    repos = [Repository.from_dict(item) for item in payload]
    if not repos:
        return text_block(f"No repositories found for project {project_id}.")
    body = numbered(repos, _repo_summary)
    return text_block(
        f"Found {len(repos)} repositories for project {project_id}:\n\n{body}".rstrip()
    )


GET_PROJECT_REPOS = Operation(
    tool=ToolDef(
        name="getProjectRepos",
        description="List the repositories of a project",
        parameters=(("id", PROJECT_ID_PARAM),),
        required=("id",),
    ),
    action="read",
    resource="project/{id}",
    denied="view repositories of project {id}",
    error_label="Error getting project repositories",
    run=_get_project_repos,
)


def _project_job(job: Job) -> list[str]:
    return [
        f"Job ID: {or_unknown(job.id)}",
        f"Action: {or_unknown(job.action)}",
        f"Target: {or_unknown(job.target)}",
        f"Result: {or_unknown(job.result)}",
        f"Message: {job.message or 'No message'}",
        f"Created: {or_unknown(job.created_at)}",
        f"Started: {or_unknown(job.started_at)}",
        f"Ended: {or_unknown(job.ended_at)}",
    ]


async def _get_project_jobs(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    project_id = args["id"]
    logger.info("Fetching jobs for project %s", project_id)
    payload = await client.get_list(
        f"/projects/{project_id}/jobs", params=pick_fields(args, ("children", "limit"))
    )
    jobs = [Job.from_dict(item) for item in payload]
    if not jobs:
        return text_block(f"No jobs found for project {project_id}.")
    body = numbered(jobs, _project_job)
    return text_block(f"Found {len(jobs)} jobs for project {project_id}:\n\n{body}".rstrip())


GET_PROJECT_JOBS = Operation(
    tool=ToolDef(
        name="getProjectJobs",
        description="List jobs for a project",
        parameters=(
            ("id", PROJECT_ID_PARAM),
            (
                "children",
                ParameterDef(
                    type="boolean",
                    description="Include jobs for repos, previews, and services",
                ),
            ),
            ("limit", LIMIT_PARAM),
        ),
        required=("id",),
    ),
    action="read",
    resource="project/{id}",
    denied="view jobs of project {id}",
    error_label="Error getting project jobs",
    run=_get_project_jobs,
)


async def _get_project_stats(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    project_id, item = args["id"], args["item"]
    logger.info("Fetching %s statistics for project %s", item, project_id)
    payload = await client.get_list(
        f"/projects/{project_id}/statistics/{item}", params=stats_params(args)
    )
    stats = [Statistic.from_dict(entry) for entry in payload]
    if not stats:
        return text_block(f"No {item} statistics found for project {project_id}.")
    body = numbered(stats, lambda stat: stat_lines(item, stat))
    return text_block(
        f"{len(stats)} {item} data points for project {project_id}:\n\n{body}".rstrip()
    )


GET_PROJECT_STATS = Operation(
    tool=ToolDef(
        name="getProjectStats",
        description="Get usage statistics for a project",
        parameters=(
            ("id", PROJECT_ID_PARAM),
            (
                "item",
                ParameterDef(
                    type="string",
                    description="The statistic to retrieve",
                    enum=PROJECT_STAT_ITEMS,
                ),
            ),
            ("after", STATS_AFTER_PARAM),
            ("before", STATS_BEFORE_PARAM),
            ("limit", STATS_LIMIT_PARAM),
        ),
        required=("id", "item"),
    ),
    action="read",
    resource="project/{id}",
    denied="view statistics of project {id}",
    error_label="Error getting project statistics",
    run=_get_project_stats,
)


PROJECT_OPERATIONS = (
    LIST_PROJECTS,
    CREATE_PROJECT,
    GET_PROJECT,
    UPDATE_PROJECT,
    DELETE_PROJECT,
    GET_PROJECT_REPOS,
    GET_PROJECT_JOBS,
    GET_PROJECT_STATS,
)

__all__ = ["PROJECT_OPERATIONS"]
