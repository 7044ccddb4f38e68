"""Preview lifecycle tools."""

from __future__ import annotations

import logging
from typing import Any

from mcp.types import TextContent

from tugboat_mcp.api_client import TugboatApiClient
from tugboat_mcp.exceptions import UnexpectedResponseError
from tugboat_mcp.formatting import (
    format_size,
    format_stat_value,
    text_block,
    text_blocks,
    yes_no,
)
from tugboat_mcp.models import Job, LogEntry, Preview, Statistic
from tugboat_mcp.operations.base import (
    Arguments,
    Operation,
    numbered,
    pick_fields,
    require_updates,
    stats_params,
)
from tugboat_mcp.tools import CONFIG_PARAM, ParameterDef, ToolDef, id_param

logger = logging.getLogger("tugboat_mcp.operations.previews")

PREVIEW_STAT_ITEMS = ("build-time", "refresh-time", "size", "services")

UPDATE_FIELDS = ("name", "locked", "anchor", "anchor_type", "config")

DEFAULT_LOG_LINES = 100


# =============================================================================
# createPreview
# =============================================================================


async def _create_preview(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    repo, ref = args["repo"], args["ref"]
    data = {"ref": ref, **pick_fields(args, ("name", "config"))}
    logger.info("Creating preview in repository %s with ref %s", repo, ref)
    preview = Preview.from_dict(await client.post(f"/repos/{repo}/previews", data))
    return text_block(
        "Preview created successfully!\n\n"
        f"ID: {preview.id}\n"
        f"Name: {preview.name or 'Unnamed'}\n"
        f"Repository: {repo}\n"
        f"Reference: {ref}"
    )


CREATE_PREVIEW = Operation(
    tool=ToolDef(
        name="createPreview",
        description="Create a new preview from a git reference in a repository",
        parameters=(
            ("repo", id_param("Repository ID (24 characters) to create the preview in")),
            (
                "ref",
                ParameterDef(
                    type="string",
                    description=(
                        "Git reference to use for the preview "
                        "(pull request number, branch, tag, or commit hash)"
                    ),
                    min_length=1,
                ),
            ),
            (
                "name",
                ParameterDef(
                    type="string",
                    description="Name for the preview (optional, defaults to the reference name)",
                ),
            ),
            ("config", CONFIG_PARAM),
        ),
        required=("repo", "ref"),
    ),
    action="write",
    resource="repository/{repo}",
    denied="create previews in repository {repo}",
    error_label="Error creating preview",
    run=_create_preview,
)


# =============================================================================
# build / refresh / start / stop / suspend
# =============================================================================


def _job_lines(payload: Any) -> str:
    job = Job.from_dict(payload)
    lines = []
    if job.id:
        lines.append(f"Job ID: {job.id}")
    if job.status:
        lines.append(f"Status: {job.status}")
    return "\n\n" + "\n".join(lines) if lines else ""


def _rebuild_operation(verb: str, gerund: str) -> Operation:
    async def run(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
        preview_id = args["previewId"]
        logger.info("Requesting %s of preview %s", verb, preview_id)
        payload = await client.post(f"/previews/{preview_id}/{verb}")
        summary = f"Preview {preview_id} {verb} started successfully"
        return text_block(summary + _job_lines(payload))

    return Operation(
        tool=ToolDef(
            name=f"{verb}Preview",
            description=f"Trigger a {verb} of an existing preview",
            parameters=(("previewId", id_param(f"ID of the preview to {verb}")),),
            required=("previewId",),
        ),
        action="write",
        resource="preview/{previewId}",
        denied=f"{verb} preview {{previewId}}",
        error_label=f"Error {gerund} preview",
        run=run,
    )


def _power_operation(verb: str, gerund: str, description: str) -> Operation:
    async def run(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
        preview_id = args["previewId"]
        logger.info("Requesting %s of preview %s", verb, preview_id)
        job = Job.from_dict(await client.post(f"/previews/{preview_id}/{verb}"))
        return text_block(
            f"Preview {preview_id} {verb} operation initiated\n\n"
            f"Job ID: {job.id or 'Unknown'}\n"
            f"Status: {job.status or 'Unknown'}"
        )

    return Operation(
        tool=ToolDef(
            name=f"{verb}Preview",
            description=description,
            parameters=(("previewId", id_param(f"ID of the preview to {verb}")),),
            required=("previewId",),
        ),
        action="write",
        resource="preview/{previewId}",
        denied=f"{verb} preview {{previewId}}",
        error_label=f"Error {gerund} preview",
        run=run,
    )


BUILD_PREVIEW = _rebuild_operation("build", "building")
REFRESH_PREVIEW = _rebuild_operation("refresh", "refreshing")
START_PREVIEW = _power_operation("start", "starting", "Start a stopped or suspended preview")
STOP_PREVIEW = _power_operation("stop", "stopping", "Stop a running preview")
SUSPEND_PREVIEW = _power_operation(
    "suspend", "suspending", "Suspend a preview, keeping its state for a quick restart"
)


# =============================================================================
# clonePreview
# =============================================================================


async def _clone_preview(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    preview_id = args["previewId"]
    data = pick_fields(args, ("name", "expires"))
    logger.info("Cloning preview %s", preview_id)
    job = Job.from_dict(await client.post(f"/previews/{preview_id}/clone", data))

    text = f"Clone operation started for preview {preview_id}\n\n"
    if job.id:
        text += f"Job ID: {job.id}\n"
    if job.status:
        text += f"Status: {job.status}\n"
    if job.type:
        text += f"Type: {job.type}\n"
    if data.get("name"):
        text += f"\nThe cloned preview will be named: {data['name']}\n"
    if data.get("expires"):
        text += f"The cloned preview will expire at: {data['expires']}\n"
    return text_block(text.rstrip())


CLONE_PREVIEW = Operation(
    tool=ToolDef(
        name="clonePreview",
        description="Clone an existing preview",
        parameters=(
            ("previewId", id_param("ID of the preview to clone")),
            ("name", ParameterDef(type="string", description="Name for the cloned preview")),
            (
                "expires",
                ParameterDef(
                    type="string",
                    description=(
                        "If set, the cloned preview will automatically be deleted "
                        "at this time (ISO date format)"
                    ),
                ),
            ),
        ),
        required=("previewId",),
    ),
    action="write",
    resource="preview/{previewId}",
    denied="clone preview {previewId}",
    error_label="Error cloning preview",
    run=_clone_preview,
)


# =============================================================================
# deletePreview
# =============================================================================


async def _delete_preview(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    preview_id = args["previewId"]
    logger.info("Deleting preview %s", preview_id)
    await client.delete(f"/previews/{preview_id}")
    return text_block(f"Preview {preview_id} deleted successfully")


DELETE_PREVIEW = Operation(
    tool=ToolDef(
        name="deletePreview",
        description="Delete a preview",
        parameters=(("previewId", id_param("ID of the preview to delete")),),
        required=("previewId",),
    ),
    action="delete",
    resource="preview/{previewId}",
    denied="delete preview {previewId}",
    error_label="Error deleting preview",
    run=_delete_preview,
)


# =============================================================================
# getPreview / updatePreview
# =============================================================================


def _preview_details(preview_id: str, preview: Preview) -> str:
    lines = [
        f"Preview Details for ID: {preview_id}",
        "",
        f"Name: {preview.name or 'Unnamed'}",
        f"State: {preview.state or 'Unknown'}",
    ]
    if preview.ref:
        lines.append(f"Reference: {preview.ref}")
    if preview.url:
        lines.append(f"URL: {preview.url}")
    if preview.created_at:
        lines.append(f"Created: {preview.created_at}")
    if preview.size is not None:
        lines.append(f"Size: {format_size(preview.size)}")
    if preview.locked is not None:
        lines.append(f"Locked: {yes_no(preview.locked)}")
    if preview.anchor is not None:
        lines.append(f"Anchor: {yes_no(preview.anchor)}")
    if preview.expires:
        lines.append(f"Expires: {preview.expires}")
    if preview.build_begin:
        lines.append(f"Build Started: {preview.build_begin}")
    if preview.build_end:
        lines.append(f"Build Completed: {preview.build_end}")
    if preview.repository:
        lines.append(f"Repository: {preview.repository}")
    return "\n".join(lines)


async def _get_preview(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    preview_id = args["previewId"]
    preview = Preview.from_dict(await client.get(f"/previews/{preview_id}"))
    return text_block(_preview_details(preview_id, preview))


GET_PREVIEW = Operation(
    tool=ToolDef(
        name="getPreview",
        description="Get detailed information about a preview",
        parameters=(("previewId", id_param("ID of the preview to get information about")),),
        required=("previewId",),
    ),
    action="read",
    resource="preview/{previewId}",
    denied="access preview {previewId}",
    error_label="Error getting preview information",
    run=_get_preview,
)


async def _update_preview(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    preview_id = args["previewId"]
    updates = require_updates(args, UPDATE_FIELDS)
    logger.info("Updating preview %s with properties: %s", preview_id, ", ".join(updates))
    updated = Preview.from_dict(await client.patch(f"/previews/{preview_id}", updates))

    lines = [
        f"Preview {preview_id} updated successfully",
        "",
        f"Updated properties: {', '.join(updates)}",
        "",
        "Current preview details:",
        f"Name: {updated.name or 'Unnamed'}",
    ]
    if updated.locked is not None:
        lines.append(f"Locked: {yes_no(updated.locked)}")
    if updated.anchor is not None:
        lines.append(f"Anchor: {yes_no(updated.anchor)}")
    if updated.anchor_type:
        lines.append(f"Anchor Type: {updated.anchor_type}")
    return text_block("\n".join(lines))


UPDATE_PREVIEW = Operation(
    tool=ToolDef(
        name="updatePreview",
        description="Update preview settings such as name, lock and anchor flags",
        parameters=(
            ("previewId", id_param("ID of the preview to update")),
            ("name", ParameterDef(type="string", description="New name for the preview")),
            (
                "locked",
                ParameterDef(
                    type="boolean", description="Whether the preview is locked from deletion"
                ),
            ),
            (
                "anchor",
                ParameterDef(
                    type="boolean",
                    description="Whether the preview is used as a Base Preview",
                ),
            ),
            (
                "anchor_type",
                ParameterDef(
                    type="string",
                    description=(
                        "When anchor is true, this defines how the preview is used "
                        "as a default Base Preview"
                    ),
                    enum=("repo", "branch"),
                ),
            ),
            ("config", CONFIG_PARAM),
        ),
        required=("previewId",),
    ),
    action="write",
    resource="preview/{previewId}",
    denied="update preview {previewId}",
    error_label="Error updating preview",
    run=_update_preview,
)


# =============================================================================
# getPreviewJobs / getPreviewStatistics
# =============================================================================


def _preview_job(job: Job) -> list[str]:
    lines = [f"Job ID: {job.id or 'Unknown'}"]
    if job.status:
        lines.append(f"Status: {job.status}")
    if job.type:
        lines.append(f"Type: {job.type}")
    if job.result:
        lines.append(f"Result: {job.result}")
    if job.created_at:
        lines.append(f"Created: {job.created_at}")
    if job.updated_at:
        lines.append(f"Updated: {job.updated_at}")
    return lines


async def _get_preview_jobs(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    preview_id = args["previewId"]
    logger.info("Fetching jobs for preview %s", preview_id)
    payload = await client.get_list(
        f"/previews/{preview_id}/jobs", params=pick_fields(args, ("active",))
    )
    jobs = [Job.from_dict(item) for item in payload]
    body = numbered(jobs, _preview_job) if jobs else "No jobs found for this preview."
    return text_block(f"Jobs for Preview {preview_id}:\n\n{body}".rstrip())


GET_PREVIEW_JOBS = Operation(
    tool=ToolDef(
        name="getPreviewJobs",
        description="List jobs (builds, refreshes, ...) for a preview",
        parameters=(
            ("previewId", id_param("ID of the preview to get jobs for")),
            (
                "active",
                ParameterDef(type="boolean", description="Whether to only show active jobs"),
            ),
        ),
        required=("previewId",),
    ),
    action="read",
    resource="preview/{previewId}",
    denied="access jobs for preview {previewId}",
    error_label="Error getting jobs",
    run=_get_preview_jobs,
)


async def _get_preview_statistics(
    client: TugboatApiClient, args: Arguments
) -> list[TextContent]:
    preview_id, item = args["previewId"], args["item"]
    logger.info("Fetching %s statistics for preview %s", item, preview_id)
    payload = await client.get_list(
        f"/previews/{preview_id}/statistics/{item}", params=stats_params(args)
    )
    stats = [Statistic.from_dict(entry) for entry in payload]

    def render(stat: Statistic) -> list[str]:
        lines = [f"Date: {stat.timestamp or 'Unknown'}"]
        if stat.value is not None:
            lines.append(f"Value: {format_stat_value(item, stat.value)}")
        return lines

    title = item[:1].upper() + item[1:]
    body = numbered(stats, render) if stats else "No statistics found for this preview."
    return text_block(f"{title} Statistics for Preview {preview_id}:\n\n{body}".rstrip())


GET_PREVIEW_STATISTICS = Operation(
    tool=ToolDef(
        name="getPreviewStatistics",
        description="Get build time, refresh time, size or service statistics for a preview",
        parameters=(
            ("previewId", id_param("ID of the preview to get statistics for")),
            (
                "item",
                ParameterDef(
                    type="string",
                    description="The type of statistics to retrieve",
                    enum=PREVIEW_STAT_ITEMS,
                ),
            ),
            (
                "limit",
                ParameterDef(
                    type="integer",
                    description="Return this many of the most recent results",
                    minimum=1,
                ),
            ),
            (
                "before",
                ParameterDef(
                    type="string",
                    description="Only return results gathered at or before this date/time",
                ),
            ),
            (
                "after",
                ParameterDef(
                    type="string",
                    description="Only return results gathered at or after this date/time",
                ),
            ),
        ),
        required=("previewId", "item"),
    ),
    action="read",
    resource="preview/{previewId}",
    denied="access statistics for preview {previewId}",
    error_label="Error getting statistics",
    run=_get_preview_statistics,
)


# =============================================================================
# getPreviewLogs
# =============================================================================


def _log_entries(payload: Any) -> list[LogEntry]:
    if payload is None:
        return []
    logs = payload.get("logs") if isinstance(payload, dict) else payload
    if logs is None:
        return []
    if not isinstance(logs, list):
        raise UnexpectedResponseError("Unexpected response format from API")
    return [LogEntry.from_dict(entry) for entry in logs]


async def _get_preview_logs(client: TugboatApiClient, args: Arguments) -> list[TextContent]:
    preview_id = args["id"]
    lines = args.get("lines", DEFAULT_LOG_LINES)
    logger.info("Fetching %s log lines for preview %s", lines, preview_id)
    entries = _log_entries(await client.get(f"/previews/{preview_id}/logs", {"lines": lines}))
    if not entries:
        return text_block("No logs available for this preview.")
    return text_blocks(
        f"Last {len(entries)} log entries for preview {preview_id}:",
        *(f"[{entry.timestamp or 'Unknown time'}] {entry.message}" for entry in entries),
    )


GET_PREVIEW_LOGS = Operation(
    tool=ToolDef(
        name="getPreviewLogs",
        description="Get the most recent log lines of a preview",
        parameters=(
            ("id", id_param("Preview ID (24 characters) to get logs for")),
            (
                "lines",
                ParameterDef(
                    type="integer",
                    description="Number of log lines to retrieve (default: 100, max: 1000)",
                    default=DEFAULT_LOG_LINES,
                    minimum=1,
                    maximum=1000,
                ),
            ),
        ),
        required=("id",),
    ),
    action="read",
    resource="preview/{id}",
    denied="view logs for preview {id}",
    error_label="Error retrieving preview logs",
    run=_get_preview_logs,
)


PREVIEW_OPERATIONS = (
    CREATE_PREVIEW,
    BUILD_PREVIEW,
    REFRESH_PREVIEW,
    START_PREVIEW,
    STOP_PREVIEW,
    SUSPEND_PREVIEW,
    CLONE_PREVIEW,
    DELETE_PREVIEW,
    GET_PREVIEW,
    UPDATE_PREVIEW,
    GET_PREVIEW_JOBS,
    GET_PREVIEW_STATISTICS,
    GET_PREVIEW_LOGS,
)

__all__ = ["PREVIEW_OPERATIONS"]
