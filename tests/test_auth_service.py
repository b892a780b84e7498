from __future__ import annotations

import httpx
import pytest

from fakes import FakeBackend
from support import USER_EMAIL, USER_NAME, USER_PASSWORD
from taskflow.core.config import Settings
from taskflow.errors import AuthError
from taskflow.services import AuthService, SessionRegistry

pytestmark = pytest.mark.asyncio


@pytest.fixture()
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture()
def service(http: httpx.AsyncClient, settings: Settings, registry: SessionRegistry) -> AuthService:
    return AuthService(http, settings, registry)


async def test_sign_in_opens_a_loaded_session(
    service: AuthService,
    registry: SessionRegistry,
    backend: FakeBackend,
) -> None:
    user = backend.register_user(USER_EMAIL, USER_PASSWORD, USER_NAME)
    backend.add_task(user["id"], "Existing task")

    user_session = await service.sign_in(USER_EMAIL, USER_PASSWORD)

    assert user_session.id in registry
    assert str(user_session.identity.id) == user["id"]
    assert user_session.expires_at is not None
    assert [task.title for task in user_session.tasks.items] == ["Existing task"]
    assert user_session.profile.profile.full_name == USER_NAME
    assert service.current_identity(user_session.id) == user_session.identity


async def test_sign_in_with_wrong_password_raises(service: AuthService, backend: FakeBackend) -> None:
    backend.register_user(USER_EMAIL, USER_PASSWORD)

    with pytest.raises(AuthError) as excinfo:
        await service.sign_in(USER_EMAIL, "wrong-password")

    assert excinfo.value.message == "Invalid login credentials"


async def test_sign_up_creates_profile_and_session(service: AuthService, backend: FakeBackend) -> None:
    identity, user_session = await service.sign_up(USER_EMAIL, USER_PASSWORD, USER_NAME)

    assert user_session is not None
    assert user_session.identity == identity
    assert user_session.profile.profile.full_name == USER_NAME
    assert user_session.tasks.items == ()


async def test_sign_up_requiring_confirmation_returns_no_session(
    service: AuthService,
    registry: SessionRegistry,
    backend: FakeBackend,
) -> None:
    backend.require_email_confirmation = True

    identity, user_session = await service.sign_up(USER_EMAIL, USER_PASSWORD, USER_NAME)

    assert user_session is None
    assert identity.email == USER_EMAIL
    assert len(registry) == 0


async def test_duplicate_sign_up_is_an_auth_error(service: AuthService, backend: FakeBackend) -> None:
    backend.register_user(USER_EMAIL, USER_PASSWORD)

    with pytest.raises(AuthError) as excinfo:
        await service.sign_up(USER_EMAIL, USER_PASSWORD, USER_NAME)

    assert "already registered" in excinfo.value.message
    assert excinfo.value.code == "user_already_exists"


async def test_sign_out_tears_down_even_when_remote_logout_fails(
    service: AuthService,
    registry: SessionRegistry,
    backend: FakeBackend,
) -> None:
    backend.register_user(USER_EMAIL, USER_PASSWORD)
    user_session = await service.sign_in(USER_EMAIL, USER_PASSWORD)
    user_session.notifier.info("Pending", "Something to show")
    backend.fail("POST", "/auth/v1/logout", status_code=500, body={"msg": "boom"})

    await service.sign_out(user_session)

    assert user_session.id not in registry
    assert user_session.identity is None
    assert user_session.tasks.items == ()
    assert user_session.profile.profile is None
    assert len(user_session.notifier) == 0
    assert await service.resolve(user_session.id) is None


async def test_expired_session_is_refreshed_once(
    http: httpx.AsyncClient,
    backend: FakeBackend,
    registry: SessionRegistry,
) -> None:
    settings = Settings(
        environment="test",
        remote_url="http://backend.example.com",
        remote_anon_key="test-anon-key",
    )
    service = AuthService(http, settings, registry)
    backend.register_user(USER_EMAIL, USER_PASSWORD)
    backend.token_lifetime = -60
    user_session = await service.sign_in(USER_EMAIL, USER_PASSWORD)
    stale_token = user_session.access_token
    assert user_session.is_expired()

    backend.token_lifetime = 3600
    resolved = await service.resolve(user_session.id)

    assert resolved is user_session
    assert user_session.access_token != stale_token
    assert not user_session.is_expired()
    refreshes = [request for request in backend.requests if request.url.params.get("grant_type") == "refresh_token"]
    assert len(refreshes) == 1


async def test_failed_refresh_signs_the_user_out(
    http: httpx.AsyncClient,
    backend: FakeBackend,
    registry: SessionRegistry,
) -> None:
    settings = Settings(
        environment="test",
        remote_url="http://backend.example.com",
        remote_anon_key="test-anon-key",
    )
    service = AuthService(http, settings, registry)
    backend.register_user(USER_EMAIL, USER_PASSWORD)
    backend.token_lifetime = -60
    user_session = await service.sign_in(USER_EMAIL, USER_PASSWORD)
    backend.fail(
        "POST",
        "/auth/v1/token",
        status_code=400,
        body={"error": "invalid_grant", "error_description": "Invalid Refresh Token"},
    )

    assert await service.resolve(user_session.id) is None
    assert user_session.id not in registry
    assert user_session.identity is None


async def test_token_signed_with_another_secret_is_rejected(
    http: httpx.AsyncClient,
    backend: FakeBackend,
    registry: SessionRegistry,
) -> None:
    settings = Settings(
        environment="test",
        remote_url="http://backend.example.com",
        remote_anon_key="test-anon-key",
        remote_jwt_secret="some-other-secret",
    )
    service = AuthService(http, settings, registry)
    backend.register_user(USER_EMAIL, USER_PASSWORD)

    with pytest.raises(AuthError) as excinfo:
        await service.sign_in(USER_EMAIL, USER_PASSWORD)

    assert excinfo.value.code == "invalid_token"
    assert len(registry) == 0


async def test_malformed_refresh_response_signs_the_user_out(
    http: httpx.AsyncClient,
    backend: FakeBackend,
    registry: SessionRegistry,
) -> None:
    settings = Settings(
        environment="test",
        remote_url="http://backend.example.com",
        remote_anon_key="test-anon-key",
    )
    service = AuthService(http, settings, registry)
    backend.register_user(USER_EMAIL, USER_PASSWORD)
    backend.token_lifetime = -60
    user_session = await service.sign_in(USER_EMAIL, USER_PASSWORD)
    backend.fail("POST", "/auth/v1/token", status_code=200, body={"token_type": "bearer"})

    assert await service.resolve(user_session.id) is None
    assert user_session.id not in registry


async def test_sign_in_through_a_proxy_page_registers_nothing(
    service: AuthService,
    registry: SessionRegistry,
    backend: FakeBackend,
) -> None:
    backend.register_user(USER_EMAIL, USER_PASSWORD)
    backend.fail("POST", "/auth/v1/token", status_code=200, html="<html>gateway</html>")

    with pytest.raises(AuthError) as excinfo:
        await service.sign_in(USER_EMAIL, USER_PASSWORD)

    assert excinfo.value.code == "auth_malformed_response"
    assert len(registry) == 0
