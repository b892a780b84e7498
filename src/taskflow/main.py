"""Entry point for the TaskFlow FastAPI application."""

from __future__ import annotations

from datetime import timedelta

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .api.routers import api_router, health_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .deps import SettingsDependency
from .errors import register_exception_handlers
from .remote import build_http_client
from .schemas.system import RootResponse
from .services import SessionRegistry
from .views import router as views_router


def _normalise_prefix(raw_prefix: str) -> str:
    router_prefix = raw_prefix.strip()
    if router_prefix and not router_prefix.startswith("/"):
        router_prefix = f"/{router_prefix}"
    router_prefix = router_prefix.rstrip("/")
    if router_prefix == "/":
        router_prefix = ""
    return router_prefix


def create_app(
    settings: Settings | None = None,
    *,
    remote_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Instantiate and configure the FastAPI application.

    ``remote_transport`` replaces the network transport of the backend client,
    which is how tests plug in an in-memory backend.
    """

    settings = settings or get_settings()
    configure_logging(settings)

    router_prefix = _normalise_prefix(settings.api_prefix)
    openapi_url = "/openapi.json" if not router_prefix else f"{router_prefix}/openapi.json"

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Task management with a hosted backend, server-rendered dashboard and JSON API.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=openapi_url,
    )

    application.state.settings = settings
    application.state.remote_transport = remote_transport
    application.state.http_client = None
    application.state.session_registry = SessionRegistry(
        idle_timeout=timedelta(seconds=settings.session_idle_timeout),
    )

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age,
        https_only=settings.session_https_only,
        same_site=settings.session_same_site,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    application.include_router(views_router)

    if router_prefix:
        application.include_router(api_router, prefix=router_prefix)
    else:
        application.include_router(api_router)

    application.include_router(health_router)

    @application.get(
        f"{router_prefix}/metadata",
        response_model=RootResponse,
        summary="Service metadata",
    )
    async def read_api_metadata(settings: SettingsDependency) -> RootResponse:
        """Expose minimal service metadata for API clients."""

        return RootResponse(
            name=settings.project_name,
            environment=settings.environment,
            version=settings.version,
            api_prefix=settings.api_prefix,
        )

    register_exception_handlers(application)

    @application.on_event("startup")
    async def _open_http_client() -> None:
        if application.state.http_client is None:
            application.state.http_client = build_http_client(settings, transport=remote_transport)

    @application.on_event("shutdown")
    async def _close_http_client() -> None:
        application.state.session_registry.close_all()
        client: httpx.AsyncClient | None = application.state.http_client
        if client is not None:
            await client.aclose()
            application.state.http_client = None

    return application


app = create_app()


def run() -> None:
    """Convenience entry point for the ``taskflow`` console script."""

    settings: Settings = get_settings()
    uvicorn.run(
        "taskflow.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )
