"""Tests for the repository tools."""

import logging
from typing import Any

import pytest

from tugboat_mcp.auth import DenyAllPolicy
from tugboat_mcp.tool_handlers import handle_tool

from .conftest import PROJECT_ID, REPO_ID, FakeTugboat


def _create_args(**extra: Any) -> dict[str, Any]:
    return {
        "project": PROJECT_ID,
        "provider": {"name": "github"},
        "repository": {"group": "acme", "name": "site"},
        **extra,
    }


@pytest.mark.asyncio
async def test_create_repository_defaults_name(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "POST",
        "/repos",
        {
            "id": REPO_ID,
            "name": "acme/site",
            "provider": {"name": "github"},
            "ssh_public": "ssh-rsa AAA",
        },
    )

    (text,) = await call_tool("createRepository", _create_args(autobuild=True))

    assert fake_api.last_body() == {
        "project": PROJECT_ID,
        "provider": {"name": "github"},
        "repository": {"group": "acme", "name": "site"},
        "autobuild": True,
        "name": "acme/site",
    }
    assert text.startswith("Repository created successfully:")
    assert f"ID: {REPO_ID}" in text
    assert "Provider: github" in text
    assert "SSH Public Key:\nssh-rsa AAA" in text
    assert "Deploy Key:\nUnknown" in text


@pytest.mark.asyncio
async def test_create_repository_keeps_explicit_name(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add("POST", "/repos", {"id": REPO_ID})

    await call_tool("createRepository", _create_args(name="Marketing site"))

    assert fake_api.last_body()["name"] == "Marketing site"


@pytest.mark.asyncio
async def test_create_repository_requires_known_provider(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    (text,) = await call_tool(
        "createRepository", _create_args(provider={"name": "sourceforge"})
    )

    assert text.startswith("Error: Invalid arguments: provider.name:")
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_create_repository_denied_names_project(
    make_context: Any, fake_api: FakeTugboat
) -> None:
    context = make_context(policy=DenyAllPolicy())

    content = await handle_tool(
        "createRepository", _create_args(), context=context, logger=logging.getLogger("tests")
    )

    assert content[0].text == (
        f"Error: You do not have permission to create repositories in project {PROJECT_ID}"
    )
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_get_repository(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "GET",
        f"/repos/{REPO_ID}",
        {
            "id": REPO_ID,
            "name": "acme/site",
            "project": {"id": PROJECT_ID, "name": "Docs"},
            "autobuild": True,
            "size": 1024,
            "envvars": ["FOO=bar"],
        },
    )

    (text,) = await call_tool("getRepository", {"id": REPO_ID})

    assert "Project: Docs" in text
    assert "Size: 1.00 KB" in text
    assert "Autobuild: Enabled" in text
    assert "Autorebuild: Disabled" in text
    assert "- FOO=bar" in text


@pytest.mark.asyncio
async def test_update_repository(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("PATCH", f"/repos/{REPO_ID}", {"id": REPO_ID, "name": "acme/site"})

    (text,) = await call_tool(
        "updateRepository", {"id": REPO_ID, "autorebuild": False, "build_timeout": 600}
    )

    assert fake_api.last_body() == {"autorebuild": False, "build_timeout": 600}
    assert "Updated fields: autorebuild, build_timeout" in text


@pytest.mark.asyncio
async def test_update_repository_without_fields(fake_api: FakeTugboat, call_tool: Any) -> None:
    assert await call_tool("updateRepository", {"id": REPO_ID}) == [
        "Error: No fields to update were provided"
    ]
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_delete_repository_requires_confirmation(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    (text,) = await call_tool("deleteRepository", {"id": REPO_ID})

    assert text == "Operation cancelled. Set confirm=true to confirm deletion."
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_delete_repository_confirmed(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("DELETE", f"/repos/{REPO_ID}", None, status=204)

    (text,) = await call_tool("deleteRepository", {"id": REPO_ID, "confirm": True})

    assert text == f"Repository with ID {REPO_ID} has been deleted successfully."


@pytest.mark.asyncio
async def test_update_repository_auth(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("PATCH", f"/repos/{REPO_ID}/auth", {"id": REPO_ID, "name": "acme/site"})

    (text,) = await call_tool("updateRepositoryAuth", {"id": REPO_ID, "auth": {"token": "t0k"}})

    assert fake_api.last_body() == {"auth": {"token": "t0k"}}
    assert text == f"Authentication updated successfully for repository acme/site ({REPO_ID})."


@pytest.mark.asyncio
async def test_create_ssh_key(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "POST",
        f"/repos/{REPO_ID}/keygen",
        {"id": REPO_ID, "name": "acme/site", "ssh_public": "ssh-ed25519 KEY"},
    )

    (text,) = await call_tool("createRepositorySSHKey", {"id": REPO_ID, "type": "ed25519"})

    assert fake_api.last_body() == {"type": "ed25519"}
    assert text.startswith("SSH key generated successfully for repository acme/site:")
    assert "ssh-ed25519 KEY" in text


@pytest.mark.asyncio
async def test_repository_previews(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "GET", f"/repos/{REPO_ID}/previews", [{"id": "v1", "name": "main", "state": "ready"}]
    )

    (text,) = await call_tool("getRepositoryPreviews", {"id": REPO_ID})

    assert text.startswith(f"Found 1 previews for repository {REPO_ID}:")
    assert "1. main (ID: v1)\n   State: ready" in text
    assert "   URL: unknown" in text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("tool", "path"),
    [("getRepositoryBranches", "branches"), ("getRepositoryTags", "tags")],
)
async def test_git_refs(fake_api: FakeTugboat, call_tool: Any, tool: str, path: str) -> None:
    fake_api.add("GET", f"/repos/{REPO_ID}/{path}", [{"name": "main", "ref": "abc123"}])

    (text,) = await call_tool(tool, {"id": REPO_ID})

    assert text.startswith(f"Found 1 {path} for repository {REPO_ID}:")
    assert "1. main\n   Ref: abc123\n   URL: Unknown" in text


@pytest.mark.asyncio
async def test_git_refs_empty(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("GET", f"/repos/{REPO_ID}/tags", [])

    assert await call_tool("getRepositoryTags", {"id": REPO_ID}) == [
        f"No tags found for repository {REPO_ID}."
    ]


@pytest.mark.asyncio
async def test_pull_requests(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "GET", f"/repos/{REPO_ID}/pulls", [{"number": 42, "title": "Add login", "url": "u"}]
    )

    (text,) = await call_tool("getRepositoryPullRequests", {"id": REPO_ID})

    assert "1. #42: Add login" in text
    assert "   URL: u" in text


@pytest.mark.asyncio
async def test_repository_jobs_repeat_action_filter(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add("GET", f"/repos/{REPO_ID}/jobs", [])

    (text,) = await call_tool(
        "getRepositoryJobs", {"id": REPO_ID, "action": ["keygen", "update"], "limit": 3}
    )

    params = fake_api.requests[0].url.params
    assert params.get_list("action") == ["keygen", "update"]
    assert params["limit"] == "3"
    assert text == f"No jobs found for repository {REPO_ID}."


@pytest.mark.asyncio
async def test_repository_jobs_rejects_unknown_action(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    (text,) = await call_tool("getRepositoryJobs", {"id": REPO_ID, "action": ["deploy"]})

    assert text.startswith("Error: Invalid arguments: action.0:")
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_registries(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "GET",
        f"/repos/{REPO_ID}/registries",
        [{"id": "g1", "serveraddress": "ghcr.io", "username": "bot"}],
    )

    (text,) = await call_tool("getRepositoryRegistries", {"id": REPO_ID})

    assert text.startswith(f"Found 1 Docker registries for repository {REPO_ID}:")
    assert "   Server: ghcr.io" in text
    assert "   Email: Not specified" in text


@pytest.mark.asyncio
async def test_repository_stats_omit_repo_line(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "GET",
        f"/repos/{REPO_ID}/statistics/refresh-time",
        [{"timestamp": "t", "value": 12, "repo": REPO_ID, "preview": "v1"}],
    )

    (text,) = await call_tool("getRepositoryStats", {"id": REPO_ID, "item": "refresh-time"})

    assert text == (
        f"1 refresh-time data points for repository {REPO_ID}:\n\n"
        "1. Timestamp: t\n"
        "   Value: 12 seconds\n"
        "   Preview: v1"
    )
