"""Tests for tugboat_mcp.api_client."""

import httpx
import pytest

from tugboat_mcp.api_client import TugboatApiClient, _clean_params
from tugboat_mcp.exceptions import (
    ApiAuthenticationError,
    ApiAuthorizationError,
    NoResponseError,
    NotFoundError,
    ResponseFormatError,
    TugboatApiError,
    UnexpectedResponseError,
)

from .conftest import API_KEY, BASE_URL, FakeTugboat


def _client(fake_api: FakeTugboat) -> TugboatApiClient:
    return TugboatApiClient(API_KEY, BASE_URL, transport=fake_api.transport)


@pytest.mark.asyncio
async def test_get_returns_parsed_json_and_sends_bearer_key(fake_api: FakeTugboat) -> None:
    fake_api.add("GET", "/projects", [{"id": "p1"}])

    async with _client(fake_api) as client:
        payload = await client.get("/projects")

    assert payload == [{"id": "p1"}]
    request = fake_api.requests[0]
    assert request.headers["Authorization"] == f"Bearer {API_KEY}"
    assert request.headers["Accept"] == "application/json"
    assert str(request.url) == f"{BASE_URL}/projects"


@pytest.mark.asyncio
async def test_not_found_message_names_endpoint(fake_api: FakeTugboat) -> None:
    async with _client(fake_api) as client:
        with pytest.raises(NotFoundError) as excinfo:
            await client.get("/previews/nonexistent")

    assert str(excinfo.value) == "Tugboat API Error: Resource not found at /previews/nonexistent"
    assert excinfo.value.status_code == 404
    assert excinfo.value.endpoint == "/previews/nonexistent"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type", "message"),
    [
        (
            401,
            ApiAuthenticationError,
            "Tugboat API Error: Authentication failed. Please check your API key.",
        ),
        (
            403,
            ApiAuthorizationError,
            "Tugboat API Error: Authorization failed. "
            "You do not have permission to perform this action.",
        ),
    ],
)
async def test_auth_statuses_map_to_typed_errors(
    fake_api: FakeTugboat, status: int, error_type: type, message: str
) -> None:
    fake_api.add("GET", "/projects", {"message": "ignored"}, status=status)

    async with _client(fake_api) as client:
        with pytest.raises(error_type) as excinfo:
            await client.get("/projects")

    assert str(excinfo.value) == message


@pytest.mark.asyncio
async def test_other_status_uses_upstream_message(fake_api: FakeTugboat) -> None:
    fake_api.add("POST", "/projects", {"message": "Quota exceeded"}, status=422)

    async with _client(fake_api) as client:
        with pytest.raises(TugboatApiError) as excinfo:
            await client.post("/projects", {"name": "x"})

    assert str(excinfo.value) == "Tugboat API Error (422): Quota exceeded"
    assert excinfo.value.status_code == 422


@pytest.mark.asyncio
async def test_other_status_without_message(fake_api: FakeTugboat) -> None:
    fake_api.add_handler("GET", "/projects", lambda request: httpx.Response(500, text="oops"))

    async with _client(fake_api) as client:
        with pytest.raises(TugboatApiError, match=r"\(500\): Unknown API error"):
            await client.get("/projects")


@pytest.mark.asyncio
async def test_transport_failure_raises_no_response(fake_api: FakeTugboat) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fake_api.add_handler("GET", "/projects", refuse)

    async with _client(fake_api) as client:
        with pytest.raises(NoResponseError) as excinfo:
            await client.get("/projects")

    assert str(excinfo.value) == "Tugboat API Error: No response received from server"


@pytest.mark.asyncio
async def test_unsupported_scheme_is_a_request_error() -> None:
    async with TugboatApiClient(API_KEY, "ftp://api.tugboat.test/v3") as client:
        with pytest.raises(TugboatApiError) as excinfo:
            await client.get("/previews")

    assert not isinstance(excinfo.value, NoResponseError)
    assert str(excinfo.value).startswith("Tugboat API Error: ")
    assert "No response received" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_local_protocol_error_is_a_request_error(fake_api: FakeTugboat) -> None:
    def malformed(request: httpx.Request) -> httpx.Response:
        raise httpx.LocalProtocolError("Illegal header value")

    fake_api.add_handler("GET", "/projects", malformed)

    async with _client(fake_api) as client:
        with pytest.raises(TugboatApiError) as excinfo:
            await client.get("/projects")

    assert not isinstance(excinfo.value, NoResponseError)
    assert str(excinfo.value) == "Tugboat API Error: Illegal header value"


@pytest.mark.asyncio
async def test_invalid_json_raises_format_error(fake_api: FakeTugboat) -> None:
    fake_api.add_handler(
        "GET", "/projects", lambda request: httpx.Response(200, content=b"<html>")
    )

    async with _client(fake_api) as client:
        with pytest.raises(ResponseFormatError, match="Failed to parse JSON response"):
            await client.get("/projects")


@pytest.mark.asyncio
async def test_empty_body_returns_none(fake_api: FakeTugboat) -> None:
    fake_api.add("DELETE", "/previews/abc", None, status=204)

    async with _client(fake_api) as client:
        assert await client.delete("/previews/abc") is None


@pytest.mark.asyncio
async def test_get_list_rejects_non_array(fake_api: FakeTugboat) -> None:
    fake_api.add("GET", "/projects", {"id": "p1"})

    async with _client(fake_api) as client:
        with pytest.raises(UnexpectedResponseError) as excinfo:
            await client.get_list("/projects")

    assert str(excinfo.value) == "Unexpected response format from API"


@pytest.mark.asyncio
async def test_post_and_patch_send_json_bodies(fake_api: FakeTugboat) -> None:
    fake_api.add("POST", "/projects", {"id": "p1"})
    fake_api.add("PATCH", "/projects/p1", {"id": "p1"})

    async with _client(fake_api) as client:
        await client.post("/projects", {"name": "demo"})
        assert fake_api.last_body() == {"name": "demo"}
        await client.patch("/projects/p1", {"domain": "example.com"})
        assert fake_api.last_body() == {"domain": "example.com"}


@pytest.mark.asyncio
async def test_query_params_drop_unset_and_render_booleans(fake_api: FakeTugboat) -> None:
    fake_api.add("GET", "/repos/r1/jobs", [])

    async with _client(fake_api) as client:
        await client.get(
            "/repos/r1/jobs",
            params={"children": True, "limit": 5, "after": None, "action": ["keygen", "update"]},
        )

    params = fake_api.requests[0].url.params
    assert params["children"] == "true"
    assert params["limit"] == "5"
    assert "after" not in params
    assert params.get_list("action") == ["keygen", "update"]


@pytest.mark.asyncio
async def test_update_auth_headers_applies_to_later_requests(fake_api: FakeTugboat) -> None:
    fake_api.add("GET", "/projects", [])

    async with _client(fake_api) as client:
        client.update_auth_headers({"Authorization": "Bearer rotated"})
        await client.get("/projects")

    assert fake_api.requests[0].headers["Authorization"] == "Bearer rotated"


def test_clean_params_returns_none_when_everything_unset() -> None:
    assert _clean_params({"a": None}) is None
    assert _clean_params(None) is None
    assert _clean_params({"flag": False}) == {"flag": "false"}
