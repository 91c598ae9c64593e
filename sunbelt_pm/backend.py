"""Async client for the hosted Supabase data service (PostgREST API).

All persistence and query execution live in the backend; this module only
builds PostgREST requests and turns failures into :class:`BackendError`.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from sunbelt_pm.config import get_settings
from sunbelt_pm.errors import BackendError
from sunbelt_pm.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class Query:
    """Chainable PostgREST query for a single table.

    Mirrors the shape of the JavaScript client::

        rows = await backend.table("users").select("*").eq("is_active", True).order("name").execute()
    """

    def __init__(self, client: BackendClient, table: str) -> None:
        self._client = client
        self._table = table
        self._columns = "*"
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._limit: Optional[int] = None

    def select(self, columns: str = "*") -> Query:
        self._columns = " ".join(columns.split())
        return self

    def eq(self, column: str, value: Any) -> Query:
        if value is None:
            self._filters.append((column, "is.null"))
        else:
            self._filters.append((column, f"eq.{_encode_value(value)}"))
        return self

    def neq(self, column: str, value: Any) -> Query:
        self._filters.append((column, f"neq.{_encode_value(value)}"))
        return self

    def in_(self, column: str, values: list[Any]) -> Query:
        joined = ",".join(_encode_value(v) for v in values)
        self._filters.append((column, f"in.({joined})"))
        return self

    def gte(self, column: str, value: Any) -> Query:
        self._filters.append((column, f"gte.{_encode_value(value)}"))
        return self

    def lte(self, column: str, value: Any) -> Query:
        self._filters.append((column, f"lte.{_encode_value(value)}"))
        return self

    def order(self, column: str, ascending: bool = True) -> Query:
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> Query:
        self._limit = count
        return self

    @property
    def params(self) -> list[tuple[str, str]]:
        """Query-string parameters in PostgREST syntax."""
        params: list[tuple[str, str]] = [("select", self._columns)]
        params.extend(self._filters)
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    async def execute(self) -> list[dict[str, Any]]:
        """Run the SELECT and return the rows."""
        data = await self._client.request("GET", self._table, params=self.params)
        return data or []

    async def single(self) -> Optional[dict[str, Any]]:
        """Run the SELECT and return the first row, if any."""
        rows = await self.limit(1).execute()
        return rows[0] if rows else None

    async def update(self, values: dict[str, Any]) -> list[dict[str, Any]]:
        """PATCH every row matching the filters."""
        if not self._filters:
            raise ValueError("Refusing to update without a filter")
        return await self._client.request(
            "PATCH", self._table, params=self._filters, json=values, prefer="return=representation",
        ) or []

    async def delete(self) -> None:
        """DELETE every row matching the filters."""
        if not self._filters:
            raise ValueError("Refusing to delete without a filter")
        await self._client.request("DELETE", self._table, params=self._filters)


class BackendClient:
    """Thin PostgREST client over ``httpx.AsyncClient``."""

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: str = "",
        schema: str = "public",
        client_info: str = "sunbelt-pm-cli",
        timeout: float = 15.0,
        retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not url or not api_key:
            raise BackendError("Backend URL and API key must be configured")
        self._rest_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "X-Client-Info": client_info,
            "Accept-Profile": schema,
            "Content-Profile": schema,
        }
        self._timeout = timeout
        self._retries = max(retries, 1)
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @property
    def rest_url(self) -> str:
        return self._rest_url

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._rest_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    def table(self, name: str) -> Query:
        """Start a query against *name*."""
        return Query(self, name)

    async def insert(self, table: str, values: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert one or more rows and return them as stored."""
        return await self.request("POST", table, json=values, prefer="return=representation") or []

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[list[tuple[str, str]]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """Send a request to ``/rest/v1/<table>`` and decode the JSON body."""
        headers = {"Prefer": prefer} if prefer else {}
        try:
            if method == "GET":
                response = await self._send_idempotent(method, f"/{table}", params, headers)
            else:
                response = await self._client().request(
                    method, f"/{table}", params=params, json=json, headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.warning("backend_transport_error", table=table, method=method, error=str(exc))
            raise BackendError(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            raise self._error_from_response(response)

        if not response.content:
            return None
        return response.json()

    async def _send_idempotent(
        self,
        method: str,
        path: str,
        params: Optional[list[tuple[str, str]]],
        headers: dict[str, str],
    ) -> httpx.Response:
        """Send a read, retrying transport failures up to ``retries`` attempts."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(min=0.5, max=5),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await self._client().request(method, path, params=params, headers=headers)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> BackendError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or response.reason_phrase or f"HTTP {response.status_code}"
        return BackendError(
            message=message,
            code=body.get("code"),
            hint=body.get("hint"),
            details=body.get("details"),
            status_code=response.status_code,
        )

    async def close(self) -> None:
        """Release the underlying connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None


async def safe_query(
    query_fn: Callable[[], Awaitable[T]],
    fallback: T,
    context: str = "query",
) -> T:
    """Run *query_fn*; on backend failure log a warning and return *fallback*."""
    try:
        return await query_fn()
    except BackendError as exc:
        logger.warning(
            "backend_query_failed",
            context=context,
            error=exc.message,
            code=exc.code,
            status=exc.status_code,
        )
        return fallback


_backend: Optional[BackendClient] = None


def get_backend() -> BackendClient:
    """Return the singleton backend client built from settings."""
    global _backend
    if _backend is None:
        settings = get_settings()
        _backend = BackendClient(
            url=settings.supabase_url,
            api_key=settings.supabase_anon_key,
            access_token=settings.supabase_access_token,
            schema=settings.supabase_schema,
            client_info=settings.client_info,
            timeout=settings.request_timeout,
            retries=settings.request_retries,
        )
        logger.info("backend_client_created", url=_backend.rest_url)
    return _backend


async def close_backend() -> None:
    """Close and forget the singleton client."""
    global _backend
    if _backend is not None:
        await _backend.close()
        _backend = None
    logger.info("backend_closed")
