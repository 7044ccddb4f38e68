"""Tests for the client-side search tools."""

from typing import Any

import pytest

from tugboat_mcp.operations.search import matches

from .conftest import PROJECT_ID, FakeTugboat

PREVIEWS = [
    {"id": "v1", "name": "Feature Preview", "state": "ready", "ref": "feature/login"},
    {"id": "v2", "name": "Main Branch", "state": "building", "ref": "main"},
]


def test_matches_is_case_insensitive_substring() -> None:
    assert matches("FEAT", ["Feature Preview"])
    assert matches("main", [None, "Main Branch"])
    assert not matches("docs", ["Feature Preview", None])


@pytest.mark.asyncio
async def test_search_previews_returns_only_matching_entry(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add("GET", "/previews", PREVIEWS)

    (text,) = await call_tool("searchPreviews", {"query": "feature"})

    assert text.startswith('Found 1 previews matching "feature":\n\n1. Feature Preview (ID: v1)')
    assert "Main Branch" not in text


@pytest.mark.asyncio
async def test_search_previews_matches_ref(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("GET", "/previews", PREVIEWS)

    (text,) = await call_tool("searchPreviews", {"query": "login"})

    assert "Feature Preview" in text


@pytest.mark.asyncio
async def test_search_previews_state_filter(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("GET", "/previews", PREVIEWS)

    (ready,) = await call_tool("searchPreviews", {"query": "a", "state": "ready"})
    (everything,) = await call_tool("searchPreviews", {"query": "a", "state": "all"})

    assert ready.startswith('Found 1 previews matching "a"')
    assert everything.startswith('Found 2 previews matching "a"')


@pytest.mark.asyncio
async def test_search_previews_no_match(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("GET", "/previews", PREVIEWS)

    (text,) = await call_tool("searchPreviews", {"query": "nothing"})

    assert text == 'Found 0 previews matching "nothing":\n\nNo matching previews found.'


@pytest.mark.asyncio
async def test_search_previews_falls_back_to_projects(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add("GET", "/previews", {"message": "Not allowed"}, status=403)
    fake_api.add("GET", "/projects", [{"id": PROJECT_ID}, {"id": "broken"}, {"name": "no id"}])
    fake_api.add("GET", f"/projects/{PROJECT_ID}/previews", PREVIEWS)
    fake_api.add("GET", "/projects/broken/previews", {"message": "boom"}, status=500)

    (text,) = await call_tool("searchPreviews", {"query": "main"})

    assert text.startswith('Found 1 previews matching "main":\n\n1. Main Branch (ID: v2)')
    assert fake_api.calls() == [
        ("GET", "/previews"),
        ("GET", "/projects"),
        ("GET", f"/projects/{PROJECT_ID}/previews"),
        ("GET", "/projects/broken/previews"),
    ]


@pytest.mark.asyncio
async def test_search_previews_fallback_failure_reported(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add("GET", "/previews", {"message": "nope"}, status=500)
    fake_api.add("GET", "/projects", {"message": "down"}, status=503)

    (text,) = await call_tool("searchPreviews", {"query": "main"})

    assert text == "Error searching previews: Tugboat API Error (503): down"


@pytest.mark.asyncio
async def test_search_projects(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add(
        "GET",
        "/projects",
        [
            {"id": "p1", "name": "Docs", "description": "Marketing website"},
            {"id": "p2", "name": "Shop"},
        ],
    )

    (text,) = await call_tool("searchProjects", {"query": "marketing"})

    assert text == (
        'Found 1 projects matching "marketing":\n\n'
        "1. Docs (ID: p1)\n"
        "   Description: Marketing website"
    )


@pytest.mark.asyncio
async def test_search_repositories_blocks_and_limit(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add(
        "GET",
        "/repos",
        [
            {"id": "r1", "name": "acme/site", "provider": {"name": "github"}, "private": True},
            {"id": "r2", "name": "acme/shop", "url": "https://github.com/acme/shop"},
            {"id": "r3", "name": "other/tool"},
        ],
    )

    blocks = await call_tool("searchRepositories", {"query": "ACME", "limit": 1})

    assert blocks == [
        'Found 1 repository matching "ACME":',
        "1. acme/site (ID: r1)\n   Provider: github\n   Private: Yes",
    ]


@pytest.mark.asyncio
async def test_search_repositories_within_project(
    fake_api: FakeTugboat, call_tool: Any
) -> None:
    fake_api.add(
        "GET",
        f"/projects/{PROJECT_ID}/repos",
        [{"id": "r1", "name": "acme/site"}, {"id": "r2", "git": "git@host:acme/shop.git"}],
    )

    blocks = await call_tool("searchRepositories", {"query": "acme", "projectId": PROJECT_ID})

    assert blocks[0] == 'Found 2 repositories matching "acme":'
    assert len(blocks) == 3
    assert fake_api.calls() == [("GET", f"/projects/{PROJECT_ID}/repos")]


@pytest.mark.asyncio
async def test_search_repositories_none_found(fake_api: FakeTugboat, call_tool: Any) -> None:
    fake_api.add("GET", "/repos", [])

    assert await call_tool("searchRepositories", {"query": "acme"}) == [
        'No repositories found matching "acme".'
    ]
