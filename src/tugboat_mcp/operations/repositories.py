"""Repository tools."""

from __future__ import annotations

import logging

from mcp.types import TextContent

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.formatting import enabled_disabled, format_size, or_unknown, text_block
from tugboat_mcp.models import GitRef, Job, Preview, PullRequest, Registry, Repository, Statistic
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

logger = logging.getLogger("tugboat_mcp.operations.repositories")

REPOSITORY_ID_PARAM = id_param("Repository ID (24 characters)")

PROVIDERS = ("bitbucket", "git", "github", "gitlab", "stash")
SSH_KEY_TYPES = ("rsa", "dsa", "ecdsa", "ed25519")
JOB_ACTIONS = ("keygen", "update")
REPOSITORY_STAT_ITEMS = ("build-time", "refresh-time", "size", "previews", "services")


def _flag(description: str) -> ParameterDef:
    return ParameterDef(type="boolean", description=description)


SETTINGS_PARAMS: tuple[tuple[str, ParameterDef], ...] = (
    ("name", ParameterDef(type="string", description="Human-readable label for the Repository")),
    ("domain", ParameterDef(type="string", description="Default domain for Preview links")),
    (
        "autobuild",
        _flag("Whether to automatically create a Preview when a pull request is created"),
    ),
    ("autobuild_drafts", _flag("Whether to automatically create or update draft pull requests")),
    (
        "autodelete",
        _flag(
            "Whether to automatically delete a Preview when its pull request is merged or closed"
        ),
    ),
    ("autorebuild", _flag("Whether to automatically rebuild a Preview when code is pushed")),
    (
        "autoredeploy",
        _flag("When new code is pushed, deploy the new code without losing non-code changes"),
    ),
    (
        "provider_comment",
        _flag("Whether to add a comment to the pull request after build/rebuild/refresh"),
    ),
    ("provider_deployment", _flag("Whether to update the provider's deployment API")),
    ("provider_forks", _flag("Whether Previews are allowed from forked repositories")),
    ("provider_status", _flag("Whether to update the provider's status API")),
    (
        "build_timeout",
        ParameterDef(
            type="integer",
            description="How long to let a Preview build run before timeout (seconds)",
            minimum=1,
            maximum=18000,
        ),
    ),
)

SETTINGS_FIELDS = tuple(name for name, _ in SETTINGS_PARAMS)

AUTH_PARAM = ParameterDef(
    type="object",
    description="Provider authentication information",
    properties=(
        ("token", ParameterDef(type="string", description="Personal access token")),
        ("access", ParameterDef(type="string", description="OAuth access token")),
        ("user", ParameterDef(type="string", description="Username")),
        ("pass", ParameterDef(type="string", description="Password")),
    ),
)


def _keys_text(repo: Repository) -> str:
    return (
        f"Deploy Key:\n{or_unknown(repo.deploy_public)}\n\n"
        f"SSH Public Key:\n{or_unknown(repo.ssh_public)}"
    )


# =============================================================================
# createRepository
# =============================================================================


async def _create_repository(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    provider, repository = args["provider"], args["repository"]
    full_name = f"{repository['group']}/{repository['name']}"
    payload = {
        "project": args["project"],
        "provider": provider,
        "repository": repository,
        **pick_fields(args, ("auth",)),
        **pick_fields(args, SETTINGS_FIELDS),
    }
    payload.setdefault("name", full_name)
    logger.info(
        "Creating repository %s with provider %s in project %s",
        full_name,
        provider["name"],
        args["project"],
    )
    repo = Repository.from_dict(await client.post("/repos", payload))
    return text_block(
        "Repository created successfully:\n\n"
        f"ID: {repo.id}\n"
        f"Name: {repo.name or payload['name']}\n"
        f"Provider: {or_unknown(repo.provider)}\n"
        f"Git URL: {or_unknown(repo.git)}\n"
        f"Link: {or_unknown(repo.link)}\n"
        f"Webhook URL: {or_unknown(repo.webhook)}\n\n"
        f"{_keys_text(repo)}"
    )


CREATE_REPOSITORY = Operation(
    tool=ToolDef(
        name="createRepository",
        description="Add a git repository to a project",
        parameters=(
            ("project", id_param("Project ID the new repository belongs to")),
            (
                "provider",
                ParameterDef(
                    type="object",
                    description="Information about the provider hosting the repository",
                    properties=(
                        (
                            "name",
                            ParameterDef(
                                type="string", description="Git provider name", enum=PROVIDERS
                            ),
                        ),
                    ),
                    required=("name",),
                ),
            ),
            (
                "repository",
                ParameterDef(
                    type="object",
                    description="Information about the provider repository",
                    properties=(
                        (
                            "group",
                            ParameterDef(
                                type="string",
                                description="Repository owner, organization or group",
                            ),
                        ),
                        ("name", ParameterDef(type="string", description="Repository name")),
                    ),
                    required=("group", "name"),
                ),
            ),
            ("auth", AUTH_PARAM),
            *SETTINGS_PARAMS,
        ),
        required=("project", "provider", "repository"),
    ),
    action="write",
    resource="project/{project}",
    denied="create repositories in project {project}",
    error_label="Error creating repository",
    run=_create_repository,
)


# =============================================================================
# getRepository / updateRepository / deleteRepository
# =============================================================================


def _repository_details(repo: Repository) -> str:
    lines = [
        "Repository details:",
        "",
        f"ID: {repo.id}",
        f"Name: {repo.name or 'Unnamed'}",
        f"Provider: {or_unknown(repo.provider)}",
        f"Project: {repo.project_name or or_unknown(repo.project)}",
        f"Git URL: {or_unknown(repo.git)}",
        f"Link: {or_unknown(repo.link)}",
        f"Created: {or_unknown(repo.created_at)}",
        f"Updated: {or_unknown(repo.updated_at)}",
        f"Size: {format_size(repo.size)}",
        f"Webhooks: {or_unknown(repo.webhook)}",
        f"Previews: {repo.preview_count}",
        f"Domain: {repo.domain or 'Default'}",
        f"Autobuild: {enabled_disabled(repo.autobuild)}",
        f"Autobuild Drafts: {enabled_disabled(repo.autobuild_drafts)}",
        f"Autodelete: {enabled_disabled(repo.autodelete)}",
        f"Autorebuild: {enabled_disabled(repo.autorebuild)}",
        f"Autoredeploy: {enabled_disabled(repo.autoredeploy)}",
    ]
    if repo.envvars:
        lines += ["", "Environment Variables:"]
        lines += [f"- {envvar}" for envvar in repo.envvars]
    return "\n".join(lines)


async def _get_repository(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Fetching repository %s", repo_id)
    repo = Repository.from_dict(await client.get(f"/repos/{repo_id}"))
    return text_block(_repository_details(repo))


GET_REPOSITORY = Operation(
    tool=ToolDef(
        name="getRepository",
        description="Get detailed information about a repository",
        parameters=(("id", REPOSITORY_ID_PARAM),),
        required=("id",),
    ),
    action="read",
    resource="repository/{id}",
    denied="view repository {id}",
    error_label="Error getting repository",
    run=_get_repository,
)


async def _update_repository(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    updates = require_updates(args, SETTINGS_FIELDS)
    logger.info("Updating repository %s with fields: %s", repo_id, ", ".join(updates))
    repo = Repository.from_dict(await client.patch(f"/repos/{repo_id}", updates))
    return text_block(
        "Repository updated successfully:\n\n"
        f"ID: {repo.id}\n"
        f"Name: {repo.name or 'Unnamed'}\n"
        f"Updated fields: {', '.join(updates)}\n"
        f"Last updated: {or_unknown(repo.updated_at)}"
    )


UPDATE_REPOSITORY = Operation(
    tool=ToolDef(
        name="updateRepository",
        description="Update repository build settings",
        parameters=(("id", REPOSITORY_ID_PARAM), *SETTINGS_PARAMS),
        required=("id",),
    ),
    action="write",
    resource="repository/{id}",
    denied="update repository {id}",
    error_label="Error updating repository",
    run=_update_repository,
)


async def _delete_repository(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    if not confirmed(args):
        return cancelled()
    logger.info("Deleting repository %s", repo_id)
    await client.delete(f"/repos/{repo_id}")
    return text_block(f"Repository with ID {repo_id} has been deleted successfully.")


DELETE_REPOSITORY = Operation(
    tool=ToolDef(
        name="deleteRepository",
        description="Delete a repository and its previews. Requires confirm=true.",
        parameters=(("id", REPOSITORY_ID_PARAM), ("confirm", CONFIRM_PARAM)),
        required=("id",),
    ),
    action="delete",
    resource="repository/{id}",
    denied="delete repository {id}",
    error_label="Error deleting repository",
    run=_delete_repository,
)


# =============================================================================
# updateRepositoryAuth / createRepositorySSHKey
# =============================================================================


async def _update_repository_auth(
    client: TugboatApiClient, args: Arguments
) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Updating authentication for repository %s", repo_id)
    repo = Repository.from_dict(
        await client.patch(f"/repos/{repo_id}/auth", {"auth": args["auth"]})
    )
    return text_block(
        f"Authentication updated successfully for repository "
        f"{repo.name or 'Unnamed'} ({repo.id or repo_id})."
    )


UPDATE_REPOSITORY_AUTH = Operation(
    tool=ToolDef(
        name="updateRepositoryAuth",
        description="Replace the provider credentials of a repository",
        parameters=(("id", REPOSITORY_ID_PARAM), ("auth", AUTH_PARAM)),
        required=("id", "auth"),
    ),
    action="write",
    resource="repository/{id}",
    denied="update authentication of repository {id}",
    error_label="Error updating repository authentication",
    run=_update_repository_auth,
)


async def _create_ssh_key(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Generating new SSH key for repository %s", repo_id)
    repo = Repository.from_dict(
        await client.post(f"/repos/{repo_id}/keygen", pick_fields(args, ("type", "bits")))
    )
    return text_block(
        f"SSH key generated successfully for repository {repo.name or repo_id}:\n\n"
        f"{_keys_text(repo)}"
    )


CREATE_REPOSITORY_SSH_KEY = Operation(
    tool=ToolDef(
        name="createRepositorySSHKey",
        description="Generate a new SSH deploy key for a repository",
        parameters=(
            ("id", REPOSITORY_ID_PARAM),
            ("type", ParameterDef(type="string", description="SSH key type", enum=SSH_KEY_TYPES)),
            ("bits", ParameterDef(type="integer", description="SSH key bit length", minimum=1)),
        ),
        required=("id",),
    ),
    action="write",
    resource="repository/{id}",
    denied="generate SSH keys for repository {id}",
    error_label="Error generating SSH key",
    run=_create_ssh_key,
)


# =============================================================================
# Listings: previews, branches, tags, pull requests, jobs, registries, stats
# =============================================================================


def _repository_preview(preview: Preview) -> list[str]:
    lines = [
        f"{preview.name or 'Unnamed'} (ID: {preview.id or 'unknown'})",
        f"State: {preview.state or 'unknown'}",
        f"Reference: {preview.ref or 'unknown'}",
        f"URL: {preview.url or 'unknown'}",
        f"Created: {preview.created_at or 'unknown'}",
    ]
    if preview.build_begin:
        lines.append(f"Build Started: {preview.build_begin}")
    if preview.build_end:
        lines.append(f"Build Completed: {preview.build_end}")
    if preview.size is not None:
        lines.append(f"Size: {format_size(preview.size)}")
    return lines


async def _get_repository_previews(
    client: TugboatApiClient, args: Arguments
) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Fetching previews for repository %s", repo_id)
    payload = await client.get_list(f"/repos/{repo_id}/previews")
    previews = [Preview.from_dict(item) for item in payload]
    if not previews:
        return text_block(f"No previews found for repository {repo_id}.")
    body = numbered(previews, _repository_preview)
    return text_block(
        f"Found {len(previews)} previews for repository {repo_id}:\n\n{body}".rstrip()
    )


GET_REPOSITORY_PREVIEWS = Operation(
    tool=ToolDef(
        name="getRepositoryPreviews",
        description="List the previews of a repository",
        parameters=(("id", REPOSITORY_ID_PARAM),),
        required=("id",),
    ),
    action="read",
    resource="repository/{id}",
    denied="view previews of repository {id}",
    error_label="Error getting repository previews",
    run=_get_repository_previews,
)


def _git_ref_operation(kind: str, path: str) -> Operation:
    async def run(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
        repo_id = args["id"]
        logger.info("Fetching %s for repository %s", kind, repo_id)
        payload = await client.get_list(f"/repos/{repo_id}/{path}")
        refs = [GitRef.from_dict(item) for item in payload]
        if not refs:
            return text_block(f"No {kind} found for repository {repo_id}.")
        body = numbered(
            refs,
            lambda ref: [
                or_unknown(ref.name),
                f"Ref: {or_unknown(ref.ref)}",
                f"URL: {or_unknown(ref.url)}",
            ],
        )
        return text_block(
            f"Found {len(refs)} {kind} for repository {repo_id}:\n\n{body}".rstrip()
        )

    return Operation(
        tool=ToolDef(
            name=f"getRepository{kind.capitalize()}",
            description=f"List the git {kind} of a repository",
            parameters=(("id", REPOSITORY_ID_PARAM),),
            required=("id",),
        ),
        action="read",
        resource="repository/{id}",
        denied=f"view {kind} of repository {{id}}",
        error_label=f"Error getting repository {kind}",
        run=run,
    )


GET_REPOSITORY_BRANCHES = _git_ref_operation("branches", "branches")
GET_REPOSITORY_TAGS = _git_ref_operation("tags", "tags")


def _pull_request(pr: PullRequest) -> list[str]:
    return [
        f"#{or_unknown(pr.number)}: {or_unknown(pr.name)}",
        f"Created: {or_unknown(pr.created)}",
        f"Updated: {or_unknown(pr.updated)}",
        f"URL: {or_unknown(pr.url)}",
    ]


async def _get_pull_requests(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Fetching pull requests for repository %s", repo_id)
    payload = await client.get_list(f"/repos/{repo_id}/pulls")
    pulls = [PullRequest.from_dict(item) for item in payload]
    if not pulls:
        return text_block(f"No pull requests found for repository {repo_id}.")
    body = numbered(pulls, _pull_request)
    return text_block(
        f"Found {len(pulls)} pull requests for repository {repo_id}:\n\n{body}".rstrip()
    )


GET_REPOSITORY_PULL_REQUESTS = Operation(
    tool=ToolDef(
        name="getRepositoryPullRequests",
        description="List the open pull requests of a repository",
        parameters=(("id", REPOSITORY_ID_PARAM),),
        required=("id",),
    ),
    action="read",
    resource="repository/{id}",
    denied="view pull requests of repository {id}",
    error_label="Error getting repository pull requests",
    run=_get_pull_requests,
)


def _repository_job(job: Job) -> list[str]:
    lines = [
        f"Job ID: {or_unknown(job.id)}",
        f"Action: {or_unknown(job.action)}",
        f"Target: {or_unknown(job.target)}",
        f"Result: {or_unknown(job.result)}",
        f"Created: {or_unknown(job.created_at)}",
    ]
    if job.started_at:
        lines.append(f"Started: {job.started_at}")
    if job.ended_at:
        lines.append(f"Ended: {job.ended_at}")
    lines.append(f"Message: {job.message or 'No message'}")
    return lines


async def _get_repository_jobs(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Fetching jobs for repository %s", repo_id)
    payload = await client.get_list(
        f"/repos/{repo_id}/jobs", params=pick_fields(args, ("action", "children", "limit"))
    )
    jobs = [Job.from_dict(item) for item in payload]
    if not jobs:
        return text_block(f"No jobs found for repository {repo_id}.")
    body = numbered(jobs, _repository_job)
    return text_block(f"Found {len(jobs)} jobs for repository {repo_id}:\n\n{body}".rstrip())


GET_REPOSITORY_JOBS = Operation(
    tool=ToolDef(
        name="getRepositoryJobs",
        description="List jobs for a repository",
        parameters=(
            ("id", REPOSITORY_ID_PARAM),
            (
                "action",
                ParameterDef(
                    type="array",
                    description="Filter jobs by action",
                    items={"type": "string", "enum": list(JOB_ACTIONS)},
                ),
            ),
            ("children", _flag("Include jobs for previews and services")),
            ("limit", LIMIT_PARAM),
        ),
        required=("id",),
    ),
    action="read",
    resource="repository/{id}",
    denied="view jobs of repository {id}",
    error_label="Error getting repository jobs",
    run=_get_repository_jobs,
)


def _registry(registry: Registry) -> list[str]:
    return [
        f"Registry ID: {or_unknown(registry.id)}",
        f"Server: {or_unknown(registry.server)}",
        f"Username: {or_unknown(registry.username)}",
        f"Email: {registry.email or 'Not specified'}",
        f"Created: {or_unknown(registry.created_at)}",
        f"Updated: {or_unknown(registry.updated_at)}",
    ]


async def _get_registries(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id = args["id"]
    logger.info("Fetching Docker registries for repository %s", repo_id)
    registries = [
        Registry.from_dict(item) for item in await client.get_list(f"/repos/{repo_id}/registries")
    ]
    if not registries:
        return text_block(f"No Docker registries found for repository {repo_id}.")
    body = numbered(registries, _registry)
    return text_block(
        f"Found {len(registries)} Docker registries for repository {repo_id}:\n\n{body}".rstrip()
    )


GET_REPOSITORY_REGISTRIES = Operation(
    tool=ToolDef(
        name="getRepositoryRegistries",
        description="List the Docker registries configured for a repository",
        parameters=(("id", REPOSITORY_ID_PARAM),),
        required=("id",),
    ),
    action="read",
    resource="repository/{id}",
    denied="view registries of repository {id}",
    error_label="Error getting repository registries",
    run=_get_registries,
)


async def _get_repository_stats(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo_id, item = args["id"], args["item"]
    logger.info("Fetching %s statistics for repository %s", item, repo_id)
    payload = await client.get_list(
        f"/repos/{repo_id}/statistics/{item}", params=stats_params(args)
    )
    stats = [Statistic.from_dict(entry) for entry in payload]
    if not stats:
        return text_block(f"No {item} statistics found for repository {repo_id}.")
    body = numbered(stats, lambda stat: stat_lines(item, stat, include_repo=False))
    return text_block(
        f"{len(stats)} {item} data points for repository {repo_id}:\n\n{body}".rstrip()
    )


GET_REPOSITORY_STATS = Operation(
    tool=ToolDef(
        name="getRepositoryStats",
        description="Get usage statistics for a repository",
        parameters=(
            ("id", REPOSITORY_ID_PARAM),
            (
                "item",
                ParameterDef(
                    type="string",
                    description="The statistic to retrieve",
                    enum=REPOSITORY_STAT_ITEMS,
                ),
            ),
            ("after", STATS_AFTER_PARAM),
            ("before", STATS_BEFORE_PARAM),
            ("limit", STATS_LIMIT_PARAM),
        ),
        required=("id", "item"),
    ),
    action="read",
    resource="repository/{id}",
    denied="view statistics of repository {id}",
    error_label="Error getting repository statistics",
    run=_get_repository_stats,
)


REPOSITORY_OPERATIONS = (
    CREATE_REPOSITORY,
    GET_REPOSITORY,
    UPDATE_REPOSITORY,
    DELETE_REPOSITORY,
    UPDATE_REPOSITORY_AUTH,
    CREATE_REPOSITORY_SSH_KEY,
    GET_REPOSITORY_PREVIEWS,
    GET_REPOSITORY_BRANCHES,
    GET_REPOSITORY_TAGS,
    GET_REPOSITORY_PULL_REQUESTS,
    GET_REPOSITORY_JOBS,
    GET_REPOSITORY_REGISTRIES,
    GET_REPOSITORY_STATS,
)

__all__ = ["REPOSITORY_OPERATIONS"]
