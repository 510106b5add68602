"""Record store client for the hosted Supabase REST (PostgREST) API.

Provides:
- Paginated reads ordered by a column
- Partial updates and deletes by primary key, checked against the rows returned
- Bulk deletes with an ``in.(...)`` filter
- Automatic retries with exponential backoff on transient network errors
"""

from collections.abc import Sequence
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from petrodedupe.models import RecordId
from petrodedupe.store.base import StoreError, check_bulk_ids

__all__ = ["PostgrestRecordStore", "DEFAULT_PAGE_SIZE"]

# Hosted projects cap a single response at 1000 rows by default.
DEFAULT_PAGE_SIZE = 1000

_TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


def _quote_filter_value(value: RecordId) -> str:
    text = str(value)
    if any(c in text for c in ',()"'):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


class PostgrestRecordStore:
    """PostgREST-backed record store.

    One instance per run: create it at start, close it at the end (or use it
    as a context manager).

    Attributes
    ----------
    base_url : str
        Project URL, e.g. ``https://<project>.supabase.co``.
    page_size : int
        Rows requested per page when listing an entity.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        schema_path: str = "rest/v1",
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Parameters
        ----------
        base_url : str
            Project URL.
        api_key : str
            Project API key; sent as ``apikey`` and bearer token.
        schema_path : str, optional
            REST path prefix, by default "rest/v1".
        timeout : float, optional
            Request timeout in seconds, by default 30.0.
        page_size : int, optional
            Rows per page for ``select``, by default 1000.
        http_client : httpx.Client | None, optional
            Pre-built client (tests inject one with a mock transport).
        """
        if not base_url:
            raise ValueError("base_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._rest_url = f"{self.base_url}/{schema_path.strip('/')}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "PostgrestRecordStore":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this store created it."""
        if self._owns_client:
            self._client.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def _send(
        self,
        method: str,
        entity: str,
        params: dict[str, str],
        *,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        return self._client.request(
            method,
            f"{self._rest_url}/{entity}",
            params=params,
            json=json_body,
            headers=headers,
        )

    def _request(
        self,
        operation: str,
        method: str,
        entity: str,
        params: dict[str, str],
        *,
        record_id: RecordId | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        try:
            response = self._send(method, entity, params, json_body=json_body, prefer=prefer)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"{operation} {entity} failed: HTTP {e.response.status_code} {e.response.text}",
                operation=operation,
                entity=entity,
                record_id=record_id,
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(
                f"{operation} {entity} failed: {type(e).__name__}: {e}",
                operation=operation,
                entity=entity,
                record_id=record_id,
            ) from e
        return response

    @staticmethod
    def _json_rows(response: httpx.Response, operation: str, entity: str) -> list[Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise StoreError(
                f"{operation} {entity} returned a non-JSON payload",
                operation=operation,
                entity=entity,
            ) from e
        if not isinstance(payload, list):
            raise StoreError(
                f"{operation} {entity} returned {type(payload).__name__}, expected a list of rows",
                operation=operation,
                entity=entity,
            )
        return payload

    def select(
        self,
        entity: str,
        order_by: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """List every row of an entity, one page at a time."""
        base_params: dict[str, str] = {"select": "*"}
        if order_by:
            # id as secondary order keeps pagination stable across equal keys.
            base_params["order"] = f"{order_by}.asc,id.asc" if order_by != "id" else "id.asc"
        for column, value in (filters or {}).items():
            base_params[column] = f"eq.{_quote_filter_value(value)}"

        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            params = {**base_params, "limit": str(self.page_size), "offset": str(offset)}
            response = self._request("select", "GET", entity, params)
            page = self._json_rows(response, "select", entity)
            rows.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return rows

    def update(self, entity: str, record_id: RecordId, patch: dict[str, Any]) -> dict[str, Any]:
        """Patch one row and return its new state."""
        response = self._request(
            "update",
            "PATCH",
            entity,
            {"id": f"eq.{_quote_filter_value(record_id)}"},
            record_id=record_id,
            json_body=patch,
            prefer="return=representation",
        )
        rows = self._json_rows(response, "update", entity)
        if not rows:
            raise StoreError(
                f"update {entity} matched no row with id {record_id}",
                operation="update",
                entity=entity,
                record_id=record_id,
            )
        return rows[0]

    def _deleted_rows(self, response: httpx.Response, operation: str, entity: str) -> list[Any]:
        # A DELETE blocked by row-level security still answers 2xx, with no rows.
        if not response.content:
            return []
        return self._json_rows(response, operation, entity)

    def delete(self, entity: str, record_id: RecordId) -> None:
        """Delete one row by id.

        Raises
        ------
        StoreError
            If the request fails or no row was actually removed.
        """
        response = self._request(
            "delete",
            "DELETE",
            entity,
            {"id": f"eq.{_quote_filter_value(record_id)}"},
            record_id=record_id,
            prefer="return=representation",
        )
        if not self._deleted_rows(response, "delete", entity):
            raise StoreError(
                f"delete {entity} removed no row with id {record_id}",
                operation="delete",
                entity=entity,
                record_id=record_id,
            )

    def bulk_delete(self, entity: str, ids: Sequence[RecordId]) -> None:
        """Delete several rows with a single ``id=in.(...)`` request.

        Raises
        ------
        StoreError
            If the request fails or fewer rows were removed than requested.
        """
        id_list = check_bulk_ids(ids)
        id_filter = ",".join(_quote_filter_value(i) for i in id_list)
        response = self._request(
            "bulk_delete",
            "DELETE",
            entity,
            {"id": f"in.({id_filter})"},
            prefer="return=representation",
        )
        removed = self._deleted_rows(response, "bulk_delete", entity)
        if len(removed) < len(id_list):
            raise StoreError(
                f"bulk_delete {entity} removed {len(removed)} of {len(id_list)} rows",
                operation="bulk_delete",
                entity=entity,
            )
