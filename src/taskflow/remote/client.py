"""Table-oriented client for the hosted PostgREST API."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from ..errors import RemoteStoreError

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"
SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

TokenProvider = Callable[[], str | None]


def _filter_params(filters: Mapping[str, Any] | None) -> dict[str, str]:
    """Encode equality filters as PostgREST ``column=eq.value`` parameters."""

    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


def _error_message(response: httpx.Response) -> tuple[str, str | None]:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("msg") or body.get("error_description") or body.get("error")
        code = body.get("code")
        if message:
            return str(message), str(code) if code is not None else None
    return f"Remote store responded with HTTP {response.status_code}.", None


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        logger.warning(
            "Remote store returned a non-JSON body",
            extra={"status_code": response.status_code, "content_type": response.headers.get("content-type")},
        )
        raise RemoteStoreError(
            "Remote store returned an unexpected payload.",
            remote_status=response.status_code,
        ) from exc


class RemoteStoreClient:
    """Issue table requests on behalf of one signed-in user.

    The bearer token is read from ``token_provider`` on every request so a
    refreshed token is picked up without rebuilding the client. Row-level
    security on the remote side scopes every request to that token's owner.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        api_key: str,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._token_provider = token_provider

    def _headers(self, *, single: bool = False, representation: bool = False) -> dict[str, str]:
        token = self._token_provider() if self._token_provider is not None else None
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token or self._api_key}",
        }
        if single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        if representation:
            headers["Prefer"] = "return=representation"
        return headers

    async def _send(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str],
        headers: Mapping[str, str],
        json: Any | None = None,
    ) -> httpx.Response:
        url = f"{REST_PATH}/{table}"
        try:
            response = await self._http.request(method, url, params=params, headers=headers, json=json)
        except httpx.HTTPError as exc:
            logger.warning(
                "Remote store unreachable",
                extra={"table": table, "method": method, "error": str(exc)},
            )
            raise RemoteStoreError(f"Could not reach the remote store: {exc}") from exc
        if response.is_success:
            return response
        message, code = _error_message(response)
        logger.info(
            "Remote store rejected request",
            extra={"table": table, "method": method, "status_code": response.status_code, "remote_code": code},
        )
        raise RemoteStoreError(message, remote_status=response.status_code, remote_code=code)

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order: tuple[str, bool] | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Return every visible row matching ``filters``.

        ``order`` is ``(column, descending)``.
        """

        params = {"select": columns, **_filter_params(filters)}
        if order is not None:
            column, descending = order
            params["order"] = f"{column}.{'desc' if descending else 'asc'}"
        response = await self._send("GET", table, params=params, headers=self._headers())
        rows = _decode(response)
        if not isinstance(rows, list):
            raise RemoteStoreError("Remote store returned an unexpected payload.", remote_status=response.status_code)
        return rows

    async def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        """Insert ``row`` and return the canonical stored row."""

        response = await self._send(
            "POST",
            table,
            params={"select": "*"},
            headers=self._headers(single=True, representation=True),
            json=dict(row),
        )
        return self._single(response)

    async def update(
        self,
        table: str,
        patch: Mapping[str, Any],
        *,
        filters: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Apply ``patch`` to exactly one row and return it.

        Matching zero rows (for example a row owned by someone else) is a
        remote failure.
        """

        response = await self._send(
            "PATCH",
            table,
            params={"select": "*", **_filter_params(filters)},
            headers=self._headers(single=True, representation=True),
            json=dict(patch),
        )
        return self._single(response)

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> None:
        """Delete every visible row matching ``filters``."""

        if not filters:
            raise ValueError("Refusing to delete without filters.")
        await self._send("DELETE", table, params=_filter_params(filters), headers=self._headers())

    @staticmethod
    def _single(response: httpx.Response) -> dict[str, Any]:
        body = _decode(response)
        if isinstance(body, list):
            if len(body) != 1:
                raise RemoteStoreError(
                    "JSON object requested, multiple (or no) rows returned",
                    remote_status=response.status_code,
                )
            body = body[0]
        if not isinstance(body, dict):
            raise RemoteStoreError("Remote store returned an unexpected payload.", remote_status=response.status_code)
        return body


__all__ = ["REST_PATH", "RemoteStoreClient", "SINGLE_OBJECT_MEDIA_TYPE"]
