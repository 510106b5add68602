"""Tests for the PostgREST record store client.

All HTTP traffic goes through ``httpx.MockTransport``; no network access.
"""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from tenacity import wait_none

from petrodedupe.store import PostgrestRecordStore, RecordStore, StoreError

BASE_URL = "https://example.supabase.co"


@pytest.fixture(autouse=True)
def _no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Retry transient failures without sleeping."""
    monkeypatch.setattr(PostgrestRecordStore._send.retry, "wait", wait_none())


@pytest.fixture
def make_store() -> Callable[..., tuple[PostgrestRecordStore, list[httpx.Request]]]:
    """Build a store whose requests are answered by ``handler``."""

    def _factory(
        handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any
    ) -> tuple[PostgrestRecordStore, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(_record))
        return PostgrestRecordStore(BASE_URL, "secret", http_client=client, **kwargs), seen

    return _factory


def _rows(start: int, count: int) -> list[dict[str, Any]]:
    return [
        {"id": i, "name": f"Rock {i}", "category": "Igneous"} for i in range(start, start + count)
    ]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"base_url": "", "api_key": "k"}, "base_url"),
        ({"base_url": BASE_URL, "api_key": ""}, "api_key"),
        ({"base_url": BASE_URL, "api_key": "k", "page_size": 0}, "page_size"),
    ],
)
def test_rejects_bad_settings(kwargs: dict[str, Any], match: str) -> None:
    with pytest.raises(ValueError, match=match):
        PostgrestRecordStore(**kwargs)


@pytest.mark.unit
def test_satisfies_protocol(make_store: Callable) -> None:
    store, _ = make_store(lambda r: httpx.Response(200, json=[]))
    assert isinstance(store, RecordStore)


# ---------------------------------------------------------------------------
# select
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_select_sends_auth_and_order(make_store: Callable) -> None:
    store, seen = make_store(lambda r: httpx.Response(200, json=_rows(1, 2)))

    rows = store.select("rocks", order_by="name")

    assert [r["id"] for r in rows] == [1, 2]
    (request,) = seen
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/rocks"
    assert request.headers["apikey"] == "secret"
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.url.params["order"] == "name.asc,id.asc"
    assert request.url.params["select"] == "*"
    assert request.url.params["limit"] == "1000"
    assert request.url.params["offset"] == "0"


@pytest.mark.unit
def test_select_paginates_until_short_page(make_store: Callable) -> None:
    """Pages are requested until one comes back short."""

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        remaining = max(0, 5 - offset)
        return httpx.Response(200, json=_rows(offset + 1, min(2, remaining)))

    store, seen = make_store(handler, page_size=2)

    rows = store.select("rocks", order_by="name")

    assert [r["id"] for r in rows] == [1, 2, 3, 4, 5]
    assert [r.url.params["offset"] for r in seen] == ["0", "2", "4"]


@pytest.mark.unit
def test_select_exact_multiple_needs_empty_page(make_store: Callable) -> None:
    """A full final page triggers one more (empty) request."""

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        return httpx.Response(200, json=_rows(offset + 1, 2) if offset < 4 else [])

    store, seen = make_store(handler, page_size=2)

    assert len(store.select("rocks")) == 4
    assert len(seen) == 3
    assert "order" not in seen[0].url.params


@pytest.mark.unit
def test_select_by_id_and_filters(make_store: Callable) -> None:
    store, seen = make_store(lambda r: httpx.Response(200, json=[]))

    store.select("rocks", order_by="id", filters={"category": "Ore Samples", "name": "a,b"})

    params = seen[0].url.params
    assert params["order"] == "id.asc"
    assert params["category"] == "eq.Ore Samples"
    assert params["name"] == 'eq."a,b"'


@pytest.mark.unit
def test_select_http_error(make_store: Callable) -> None:
    store, _ = make_store(lambda r: httpx.Response(401, text="Invalid API key"))

    with pytest.raises(StoreError, match="HTTP 401") as exc_info:
        store.select("rocks")

    assert exc_info.value.operation == "select"
    assert exc_info.value.entity == "rocks"


@pytest.mark.unit
@pytest.mark.parametrize(
    "response",
    [
        pytest.param(httpx.Response(200, json={"rows": []}), id="object"),
        pytest.param(httpx.Response(200, text="<html>"), id="not_json"),
    ],
)
def test_select_rejects_malformed_payload(make_store: Callable, response: httpx.Response) -> None:
    store, _ = make_store(lambda r: response)

    with pytest.raises(StoreError, match="select rocks returned"):
        store.select("rocks")


@pytest.mark.unit
def test_transient_errors_are_retried(make_store: Callable) -> None:
    """Network errors are retried; the third attempt succeeds."""
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json=_rows(1, 1))

    store, _ = make_store(handler)

    assert len(store.select("rocks")) == 1
    assert attempts["count"] == 3


@pytest.mark.unit
def test_persistent_network_error_becomes_store_error(make_store: Callable) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    store, seen = make_store(handler)

    with pytest.raises(StoreError, match="ConnectTimeout"):
        store.select("rocks")
    assert len(seen) == 3


@pytest.mark.unit
def test_http_status_is_not_retried(make_store: Callable) -> None:
    store, seen = make_store(lambda r: httpx.Response(500, text="boom"))

    with pytest.raises(StoreError):
        store.select("rocks")
    assert len(seen) == 1


# ---------------------------------------------------------------------------
# update / delete
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_update_patches_by_id(make_store: Callable) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json=[{"id": 7, **body}])

    store, seen = make_store(handler)

    row = store.update("rocks", 7, {"color": "Gray"})

    assert row == {"id": 7, "color": "Gray"}
    (request,) = seen
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.7"
    assert request.headers["Prefer"] == "return=representation"


@pytest.mark.unit
def test_update_matching_no_row_fails(make_store: Callable) -> None:
    """An empty representation means the row no longer exists."""
    store, _ = make_store(lambda r: httpx.Response(200, json=[]))

    with pytest.raises(StoreError, match="matched no row") as exc_info:
        store.update("rocks", 7, {"color": "Gray"})
    assert exc_info.value.record_id == 7


@pytest.mark.unit
def test_delete_by_id(make_store: Callable) -> None:
    store, seen = make_store(lambda r: httpx.Response(200, json=[{"id": "a1b2"}]))

    store.delete("rocks", "a1b2")

    assert seen[0].method == "DELETE"
    assert seen[0].url.params["id"] == "eq.a1b2"
    assert seen[0].headers["Prefer"] == "return=representation"


@pytest.mark.unit
@pytest.mark.parametrize(
    "response",
    [
        pytest.param(httpx.Response(200, json=[]), id="empty_list"),
        pytest.param(httpx.Response(204), id="no_content"),
    ],
)
def test_delete_removing_nothing_fails(make_store: Callable, response: httpx.Response) -> None:
    """A delete filtered out by row-level security is not a success."""
    store, _ = make_store(lambda r: response)

    with pytest.raises(StoreError, match="removed no row") as exc_info:
        store.delete("rocks", 3)
    assert exc_info.value.record_id == 3
    assert exc_info.value.operation == "delete"


@pytest.mark.unit
def test_delete_failure_carries_record_id(make_store: Callable) -> None:
    store, _ = make_store(lambda r: httpx.Response(409, text="conflict"))

    with pytest.raises(StoreError) as exc_info:
        store.delete("rocks", 3)
    assert exc_info.value.record_id == 3
    assert exc_info.value.operation == "delete"


@pytest.mark.unit
def test_bulk_delete_uses_in_filter(make_store: Callable) -> None:
    store, seen = make_store(lambda r: httpx.Response(200, json=_rows(1, 3)))

    store.bulk_delete("rocks", [1, 2, 3])

    assert seen[0].method == "DELETE"
    assert seen[0].url.params["id"] == "in.(1,2,3)"
    assert seen[0].headers["Prefer"] == "return=representation"


@pytest.mark.unit
@pytest.mark.parametrize("removed", [0, 2])
def test_bulk_delete_short_count_fails(make_store: Callable, removed: int) -> None:
    """Fewer rows back than ids sent means some rows are still there."""
    store, _ = make_store(lambda r: httpx.Response(200, json=_rows(1, removed)))

    with pytest.raises(StoreError, match=f"removed {removed} of 3 rows") as exc_info:
        store.bulk_delete("rocks", [1, 2, 3])
    assert exc_info.value.operation == "bulk_delete"


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_injected_client_is_left_open(make_store: Callable) -> None:
    store, _ = make_store(lambda r: httpx.Response(200, json=[]))

    with store:
        pass

    assert not store._client.is_closed


@pytest.mark.unit
def test_owned_client_is_closed() -> None:
    with PostgrestRecordStore(BASE_URL, "secret") as store:
        pass

    assert store._client.is_closed
