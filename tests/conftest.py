from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from fakes import ANON_KEY, BASE_URL, JWT_SECRET, FakeBackend
from support import USER_EMAIL, USER_NAME, USER_PASSWORD
from taskflow.core.config import Settings
from taskflow.main import create_app
from taskflow.remote import AuthClient
from taskflow.services import SessionRegistry, UserSession


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        environment="test",
        remote_url=BASE_URL,
        remote_anon_key=ANON_KEY,
        remote_jwt_secret=JWT_SECRET,
        session_secret_key="test-session-secret",
    )


@pytest_asyncio.fixture
async def http(backend: FakeBackend) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(base_url=BASE_URL, transport=backend.transport) as client:
        yield client


@pytest_asyncio.fixture
async def user_session(
    backend: FakeBackend,
    http: httpx.AsyncClient,
    settings: Settings,
) -> UserSession:
    """A signed-in session for a registered user, before anything is loaded."""

    backend.register_user(USER_EMAIL, USER_PASSWORD, USER_NAME)
    auth = await AuthClient(http, api_key=ANON_KEY).sign_in_with_password(
        email=USER_EMAIL,
        password=USER_PASSWORD,
    )
    return SessionRegistry().create(auth, http=http, settings=settings)


@pytest.fixture()
def app(settings: Settings, backend: FakeBackend) -> FastAPI:
    return create_app(settings, remote_transport=backend.transport)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    http_client = app.state.http_client
    if http_client is not None:
        await http_client.aclose()

