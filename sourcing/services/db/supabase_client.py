"""
Supabase REST client - talks to PostgREST with httpx directly.

Async port of the simple table query builder: select / filter / paginate,
insert, upsert (on_conflict) and update by filter.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


def is_duplicate_error(error: Exception) -> bool:
    """Check whether a failed write was a unique-constraint violation."""
    if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 409:
        return True
    error_str = str(error).lower()
    if isinstance(error, httpx.HTTPStatusError):
        error_str += " " + error.response.text.lower()
    return "duplicate" in error_str or "unique" in error_str or "23505" in error_str


class SupabaseTable:
    """Simple table query builder."""

    def __init__(self, client: "SupabaseClient", table_name: str):
        self.client = client
        self.table_name = table_name
        self._select_columns = "*"
        self._filters: List[Tuple[str, str]] = []
        self._order_by: Optional[str] = None
        self._order_desc = False
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._operation = "select"
        self._payload: Any = None
        self._on_conflict: Optional[str] = None
        self._ignore_duplicates = False

    def select(self, columns: str = "*") -> "SupabaseTable":
        self._select_columns = columns
        return self

    def eq(self, column: str, value: Any) -> "SupabaseTable":
        self._filters.append((column, f"eq.{_format(value)}"))
        return self

    def neq(self, column: str, value: Any) -> "SupabaseTable":
        self._filters.append((column, f"neq.{_format(value)}"))
        return self

    def is_(self, column: str, value: str) -> "SupabaseTable":
        """IS filter for null/true/false checks."""
        self._filters.append((column, f"is.{value}"))
        return self

    def not_is(self, column: str, value: str) -> "SupabaseTable":
        """NOT IS filter, e.g. ``not_is("email", "null")``."""
        self._filters.append((column, f"not.is.{value}"))
        return self

    def in_(self, column: str, values: List[Any]) -> "SupabaseTable":
        """Filter where column value is in the given list."""
        values_str = ",".join(_quote(v) for v in values)
        self._filters.append((column, f"in.({values_str})"))
        return self

    def contains(self, column: str, values: List[Any]) -> "SupabaseTable":
        """Array column contains every given value."""
        values_str = ",".join(_quote(v) for v in values)
        self._filters.append((column, f"cs.{{{values_str}}}"))
        return self

    def order(self, column: str, desc: bool = False) -> "SupabaseTable":
        self._order_by = column
        self._order_desc = desc
        return self

    def limit(self, count: int) -> "SupabaseTable":
        self._limit = count
        return self

    def offset(self, count: int) -> "SupabaseTable":
        self._offset = count
        return self

    def insert(self, data: Any) -> "SupabaseTable":
        self._payload = data
        self._operation = "insert"
        return self

    def upsert(
        self, data: Any, on_conflict: Optional[str] = None, ignore_duplicates: bool = False
    ) -> "SupabaseTable":
        self._payload = data
        self._on_conflict = on_conflict
        self._ignore_duplicates = ignore_duplicates
        self._operation = "upsert"
        return self

    def update(self, data: Dict[str, Any]) -> "SupabaseTable":
        self._payload = data
        self._operation = "update"
        return self

    def _select_params(self) -> List[Tuple[str, str]]:
        params = [("select", self._select_columns)]
        params.extend(self._filters)
        if self._order_by:
            direction = "desc" if self._order_desc else "asc"
            params.append(("order", f"{self._order_by}.{direction}"))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        if self._offset:
            params.append(("offset", str(self._offset)))
        return params

    async def execute(self) -> "SupabaseResponse":
        url = f"{self.client.rest_url}/{self.table_name}"

        if self._operation == "insert":
            response = await self.client._request("POST", url, json=self._payload)
        elif self._operation == "upsert":
            params = [("on_conflict", self._on_conflict)] if self._on_conflict else None
            resolution = "ignore-duplicates" if self._ignore_duplicates else "merge-duplicates"
            headers = {"Prefer": f"resolution={resolution},return=representation"}
            response = await self.client._request(
                "POST", url, json=self._payload, params=params, extra_headers=headers
            )
        elif self._operation == "update":
            response = await self.client._request(
                "PATCH", url, json=self._payload, params=list(self._filters)
            )
        else:
            response = await self.client._request("GET", url, params=self._select_params())

        return SupabaseResponse(response)


class SupabaseResponse:
    """Response wrapper."""

    def __init__(self, response: httpx.Response):
        self.status_code = response.status_code
        try:
            self.data = response.json() if response.text else []
        except ValueError:
            self.data = []

        # Ensure data is always a list for consistency
        if isinstance(self.data, dict):
            self.data = [self.data]


class SupabaseClient:
    """Simple async Supabase REST client."""

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url or not key:
            raise ValueError("Missing SUPABASE_URL or SUPABASE_KEY environment variables")
        self.url = url.rstrip("/")
        self.key = key
        self.rest_url = f"{self.url}/rest/v1"
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Optional[List[Tuple[str, str]]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        headers = {**self.headers}
        if extra_headers:
            headers.update(extra_headers)

        response = await self._client.request(method, url, json=json, params=params, headers=headers)
        if response.status_code >= 400 and response.status_code != 409:
            logger.error(
                "[Supabase] %s %s -> %s: %s", method, url, response.status_code, response.text[:500]
            )
        response.raise_for_status()
        return response

    def table(self, table_name: str) -> SupabaseTable:
        return SupabaseTable(self, table_name)

    async def aclose(self) -> None:
        await self._client.aclose()


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: Any) -> str:
    """Quote IN-list members that contain PostgREST reserved characters."""
    text = _format(value)
    if any(c in text for c in ',()":'):
        return '"' + text.replace('"', '\\"') + '"'
    return text
