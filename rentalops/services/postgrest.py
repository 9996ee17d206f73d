"""Async client for the hosted database's PostgREST data API.

Rows are addressed as ``/rest/v1/<table>`` with filters expressed as
PostgREST query parameters (``column=op.value``).  Filters are passed as a
sequence of ``(column, expression)`` pairs so the same column can appear
more than once (``rent_amount=gte.1&rent_amount=lte.5``); the small helper
functions below build the expressions.

A single :class:`httpx.AsyncClient` is shared by every
:class:`PostgrestClient`; per-request clients differ only in the bearer
token they send, so row-level security is evaluated for the signed-in user.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import httpx

logger = logging.getLogger(__name__)

Filter = tuple[str, str]

# PostgREST error code for "JSON object requested, multiple (or no) rows returned".
NO_ROWS_CODE = "PGRST116"

# Sentinel UUID used to express "every row" where PostgREST demands a filter.
NIL_UUID = "00000000-0000-0000-0000-000000000000"


class PostgrestError(Exception):
    """Raised when the data API rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def is_not_found(self) -> bool:
        return self.code == NO_ROWS_CODE


# ---------------------------------------------------------------------------
# Filter helpers
# ---------------------------------------------------------------------------


def eq(column: str, value: Any) -> Filter:
    return (column, f"eq.{value}")


def neq(column: str, value: Any) -> Filter:
    return (column, f"neq.{value}")


def gte(column: str, value: Any) -> Filter:
    return (column, f"gte.{value}")


def lte(column: str, value: Any) -> Filter:
    return (column, f"lte.{value}")


def in_(column: str, values: Iterable[Any]) -> Filter:
    joined = ",".join(str(v) for v in values)
    return (column, f"in.({joined})")


def ilike_any(columns: Sequence[str], term: str) -> Filter:
    """Case-insensitive substring match on any of *columns*."""
    clauses = ",".join(f"{column}.ilike.*{term}*" for column in columns)
    return ("or", f"({clauses})")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class PostgrestClient:
    """Row operations against the hosted database.

    Parameters
    ----------
    http:
        Shared connection pool.  Its ``base_url`` must be the project URL.
    api_key:
        Project API key sent as ``apikey`` on every request.
    access_token:
        Bearer token of the acting user.  Defaults to *api_key*, which is
        the anonymous role for the anon key and the privileged role for the
        service-role key.
    """

    def __init__(self, http: httpx.AsyncClient, api_key: str, access_token: str | None = None) -> None:
        self._http = http
        self._api_key = api_key
        self._access_token = access_token or api_key

    def with_access_token(self, access_token: str | None) -> PostgrestClient:
        """Return a client acting as the user that owns *access_token*."""
        return PostgrestClient(self._http, self._api_key, access_token)

    def _headers(self, *, prefer: str | None = None, single: bool = False) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token}",
        }
        if prefer:
            headers["Prefer"] = prefer
        if single:
            headers["Accept"] = "application/vnd.pgrst.object+json"
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(
                method,
                f"/rest/v1/{table}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.RequestError as exc:
            logger.warning("Data API %s %s failed: %s", method, table, exc)
            raise PostgrestError(f"Data API unreachable: {exc}") from exc

        if response.is_error:
            raise _error_from_response(response)
        return response

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        single: bool = False,
    ) -> Any:
        """Fetch rows.

        Returns a list of row dicts, or one dict when *single* is set (a
        :class:`PostgrestError` with ``is_not_found`` is raised when no row
        matches).
        """
        params: list[tuple[str, str]] = [("select", columns), *filters]
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        response = await self._request("GET", table, params=params, headers=self._headers(single=single))
        return _decode(response, table)

    async def insert(self, table: str, rows: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        response = await self._request(
            "POST",
            table,
            params=[("select", "*")],
            json=rows,
            headers=self._headers(prefer="return=representation"),
        )
        return _decode(response, table)

    async def update(
        self,
        table: str,
        changes: dict[str, Any],
        *,
        filters: Sequence[Filter],
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        response = await self._request(
            "PATCH",
            table,
            params=[("select", columns), *filters],
            json=changes,
            headers=self._headers(prefer="return=representation"),
        )
        return _decode(response, table)

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        response = await self._request(
            "DELETE",
            table,
            params=[("select", "*"), *filters],
            headers=self._headers(prefer="return=representation"),
        )
        return _decode(response, table)

    async def count(self, table: str, *, filters: Sequence[Filter] = ()) -> int:
        """Return the exact number of rows matching *filters*."""
        response = await self._request(
            "HEAD",
            table,
            params=[("select", "id"), *filters],
            headers=self._headers(prefer="count=exact"),
        )
        content_range = response.headers.get("content-range", "")
        _, _, total = content_range.partition("/")
        try:
            return int(total)
        except ValueError:
            return 0


def _decode(response: httpx.Response, table: str) -> Any:
    """Parse a successful response body; non-JSON bodies (proxy pages) are errors."""
    try:
        return response.json()
    except ValueError as exc:
        logger.warning("Data API returned a non-JSON body for %s (HTTP %s)", table, response.status_code)
        raise PostgrestError(
            f"Invalid response from data API (HTTP {response.status_code})",
            status_code=response.status_code,
        ) from exc


def _error_from_response(response: httpx.Response) -> PostgrestError:
    """Translate a PostgREST error body into a :class:`PostgrestError`."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or response.reason_phrase or f"HTTP {response.status_code}"
    return PostgrestError(
        message,
        status_code=response.status_code,
        code=body.get("code"),
        details=body.get("details"),
    )
