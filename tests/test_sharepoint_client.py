"""Tests for the SharePoint REST client using a mocked transport."""

from __future__ import annotations

import json
from urllib.parse import unquote

import httpx
import pytest

from task_manager.sharepoint import ListStoreError, SharePointClient, quote_odata_literal

SITE = "https://contoso.sharepoint.com/sites/Team"


def _client(settings, handler) -> tuple[SharePointClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    return SharePointClient(settings, http_client=http_client), seen


def test_quote_odata_literal_doubles_quotes() -> None:
    assert quote_odata_literal("High") == "'High'"
    assert quote_odata_literal("Boss's call") == "'Boss''s call'"


@pytest.mark.asyncio
async def test_get_items_sends_query_options(settings) -> None:
    client, seen = _client(
        settings,
        lambda request: httpx.Response(200, json={"value": [{"Id": 1, "Title": "A"}]}),
    )

    items = await client.get_items(
        "TaskManagerList",
        select=("Id", "Priority/Title"),
        expand=("Priority",),
        filter="Title eq 'A'",
    )

    assert items == [{"Id": 1, "Title": "A"}]
    request = seen[0]
    assert request.method == "GET"
    assert unquote(str(request.url)).startswith(
        f"{SITE}/_api/web/lists/getbytitle('TaskManagerList')/items"
    )
    assert request.url.params["$select"] == "Id,Priority/Title"
    assert request.url.params["$expand"] == "Priority"
    assert request.url.params["$filter"] == "Title eq 'A'"
    assert request.headers["Authorization"] == "Bearer test-token"
    assert request.headers["Accept"] == "application/json;odata=nometadata"
    await client.aclose()


@pytest.mark.asyncio
async def test_get_item_addresses_single_item(settings) -> None:
    client, seen = _client(
        settings, lambda request: httpx.Response(200, json={"Id": 7, "Title": "x"})
    )

    item = await client.get_item("TaskManagerList", 7)

    assert item == {"Id": 7, "Title": "x"}
    assert unquote(seen[0].url.path).endswith("getbytitle('TaskManagerList')/items(7)")
    assert "$select" not in seen[0].url.params
    await client.aclose()


@pytest.mark.asyncio
async def test_add_item_posts_fields(settings) -> None:
    client, seen = _client(
        settings, lambda request: httpx.Response(201, json={"Id": 42, "Title": "New"})
    )

    created = await client.add_item("TaskManagerList", {"Title": "New", "PriorityId": 1})

    assert created["Id"] == 42
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"Title": "New", "PriorityId": 1}
    assert "X-HTTP-Method" not in seen[0].headers
    await client.aclose()


@pytest.mark.asyncio
async def test_update_item_uses_merge_with_wildcard_etag(settings) -> None:
    client, seen = _client(settings, lambda request: httpx.Response(204))

    await client.update_item("TaskManagerList", 3, {"Status": "Completed"})

    request = seen[0]
    assert request.method == "POST"
    assert request.headers["X-HTTP-Method"] == "MERGE"
    assert request.headers["IF-MATCH"] == "*"
    assert unquote(request.url.path).endswith("/items(3)")
    assert json.loads(request.content) == {"Status": "Completed"}
    await client.aclose()


@pytest.mark.asyncio
async def test_delete_item_uses_delete_override(settings) -> None:
    client, seen = _client(settings, lambda request: httpx.Response(200))

    await client.delete_item("TaskManagerList", 9)

    assert seen[0].method == "POST"
    assert seen[0].headers["X-HTTP-Method"] == "DELETE"
    assert seen[0].content == b""
    await client.aclose()


@pytest.mark.asyncio
async def test_ensure_user_posts_logon_name(settings) -> None:
    client, seen = _client(
        settings,
        lambda request: httpx.Response(200, json={"Id": 15, "Title": "Alice"}),
    )

    user = await client.ensure_user("alice@x.com")

    assert user["Id"] == 15
    assert seen[0].url.path.endswith("/_api/web/ensureuser")
    assert json.loads(seen[0].content) == {"logonName": "alice@x.com"}
    await client.aclose()


@pytest.mark.asyncio
async def test_ensure_user_requires_logon_name(settings) -> None:
    client, seen = _client(settings, lambda request: httpx.Response(200, json={}))

    with pytest.raises(ValueError):
        await client.ensure_user("")

    assert seen == []
    await client.aclose()


@pytest.mark.asyncio
async def test_error_response_extracts_odata_message(settings) -> None:
    body = {"odata.error": {"code": "-1", "message": {"lang": "en-US", "value": "Item does not exist."}}}
    client, _ = _client(settings, lambda request: httpx.Response(404, json=body))

    with pytest.raises(ListStoreError) as excinfo:
        await client.get_item("TaskManagerList", 999)

    assert excinfo.value.status_code == 404
    assert excinfo.value.is_not_found
    assert excinfo.value.detail == "Item does not exist."
    await client.aclose()


@pytest.mark.asyncio
async def test_plain_text_error_is_kept(settings) -> None:
    client, _ = _client(settings, lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(ListStoreError) as excinfo:
        await client.get_items("TaskManagerList")

    assert excinfo.value.detail == "boom"
    assert not excinfo.value.is_not_found
    await client.aclose()


@pytest.mark.asyncio
async def test_transport_failure_maps_to_bad_gateway(settings) -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client, _ = _client(settings, fail)

    with pytest.raises(ListStoreError) as excinfo:
        await client.get_items("TaskManagerList")

    assert excinfo.value.status_code == 502
    await client.aclose()
