"""Reusable FastAPI dependencies."""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request

from .core.config import Settings
from .core.context import bind_user_id
from .core.session import clear_session, get_session_id
from .errors import UnauthenticatedError
from .remote import build_http_client
from .services import AuthService, SessionRegistry, UserSession


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""

    return request.app.state.settings


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]


def get_http_client(request: Request, settings: SettingsDependency) -> httpx.AsyncClient:
    """Return the shared backend client, opening it on first use."""

    state = request.app.state
    client = getattr(state, "http_client", None)
    if client is None or client.is_closed:
        client = build_http_client(settings, transport=getattr(state, "remote_transport", None))
        state.http_client = client
    return client


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


HttpClientDependency = Annotated[httpx.AsyncClient, Depends(get_http_client)]
SessionRegistryDependency = Annotated[SessionRegistry, Depends(get_session_registry)]


def get_auth_service(
    http: HttpClientDependency,
    settings: SettingsDependency,
    registry: SessionRegistryDependency,
) -> AuthService:
    return AuthService(http, settings, registry)


AuthServiceDependency = Annotated[AuthService, Depends(get_auth_service)]


async def get_user_session(request: Request, auth_service: AuthServiceDependency) -> UserSession | None:
    """Resolve the browser session cookie to a live ``UserSession``.

    A cookie pointing at a session that no longer exists (server restart,
    failed refresh) is cleared.
    """

    session_id = get_session_id(request.session)
    if session_id is None:
        return None
    user_session = await auth_service.resolve(session_id)
    if user_session is None:
        clear_session(request.session)
        return None
    request.state.user_id = str(user_session.identity.id)
    bind_user_id(request.state.user_id)
    return user_session


OptionalUserSessionDependency = Annotated[UserSession | None, Depends(get_user_session)]


async def require_user_session(user_session: OptionalUserSessionDependency) -> UserSession:
    if user_session is None:
        raise UnauthenticatedError()
    return user_session


UserSessionDependency = Annotated[UserSession, Depends(require_user_session)]


__all__ = [
    "AuthServiceDependency",
    "HttpClientDependency",
    "OptionalUserSessionDependency",
    "SessionRegistryDependency",
    "SettingsDependency",
    "UserSessionDependency",
    "get_app_settings",
    "get_auth_service",
    "get_http_client",
    "get_session_registry",
    "get_user_session",
    "require_user_session",
]
