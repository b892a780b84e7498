"""HTTP clients for the hosted backend."""

from __future__ import annotations

import httpx

from ..core.config import Settings
from .auth import AuthClient
from .client import RemoteStoreClient


def build_http_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared ``httpx.AsyncClient`` used for every backend call."""

    kwargs: dict[str, object] = {"base_url": settings.remote_url}
    if settings.remote_timeout_seconds is not None:
        kwargs["timeout"] = settings.remote_timeout_seconds
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)  # type: ignore[arg-type]


__all__ = ["AuthClient", "RemoteStoreClient", "build_http_client"]
