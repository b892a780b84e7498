from __future__ import annotations

from uuid import UUID

import httpx
import pytest

from taskflow.errors import AuthError, RemoteStoreError
from taskflow.remote import AuthClient, RemoteStoreClient
from taskflow.remote.client import SINGLE_OBJECT_MEDIA_TYPE

pytestmark = pytest.mark.asyncio

BASE_URL = "http://remote.example.com"


def _client(handler, *, token: str | None = "user-token") -> tuple[RemoteStoreClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return RemoteStoreClient(http, api_key="anon", token_provider=lambda: token), http


async def test_select_encodes_filters_and_order() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1}])

    store, http = _client(handler)
    async with http:
        rows = await store.select(
            "tasks",
            filters={"user_id": UUID("00000000-0000-0000-0000-000000000001"), "archived": False, "due_date": None},
            order=("created_at", True),
        )

    assert rows == [{"id": 1}]
    request = seen[0]
    assert request.url.path == "/rest/v1/tasks"
    assert request.url.params["select"] == "*"
    assert request.url.params["user_id"] == "eq.00000000-0000-0000-0000-000000000001"
    assert request.url.params["archived"] == "eq.false"
    assert request.url.params["due_date"] == "is.null"
    assert request.url.params["order"] == "created_at.desc"
    assert request.headers["apikey"] == "anon"
    assert request.headers["Authorization"] == "Bearer user-token"


async def test_anon_key_is_the_bearer_without_a_user_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    store, http = _client(handler, token=None)
    async with http:
        await store.select("tasks")

    assert seen[0].headers["Authorization"] == "Bearer anon"


async def test_update_requests_a_single_representation() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "a", "title": "patched"})

    store, http = _client(handler)
    async with http:
        row = await store.update("tasks", {"title": "patched"}, filters={"id": "a", "user_id": "u"})

    assert row == {"id": "a", "title": "patched"}
    request = seen[0]
    assert request.method == "PATCH"
    assert request.headers["Accept"] == SINGLE_OBJECT_MEDIA_TYPE
    assert request.headers["Prefer"] == "return=representation"
    assert request.url.params["id"] == "eq.a"


async def test_error_body_is_mapped_to_remote_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            406,
            json={
                "code": "PGRST116",
                "message": "JSON object requested, multiple (or no) rows returned",
                "details": "The result contains 0 rows",
                "hint": None,
            },
        )

    store, http = _client(handler)
    async with http:
        with pytest.raises(RemoteStoreError) as excinfo:
            await store.update("tasks", {"status": "completed"}, filters={"id": "x"})

    error = excinfo.value
    assert error.message == "JSON object requested, multiple (or no) rows returned"
    assert error.remote_status == 406
    assert error.remote_code == "PGRST116"
    assert error.status_code == 502
    assert error.code == "remote_failure"


async def test_transport_failure_is_a_remote_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store, http = _client(handler)
    async with http:
        with pytest.raises(RemoteStoreError) as excinfo:
            await store.insert("tasks", {"title": "x"})

    assert excinfo.value.remote_status is None


async def test_delete_without_filters_is_refused() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never reached
        return httpx.Response(204)

    store, http = _client(handler)
    async with http:
        with pytest.raises(ValueError):
            await store.delete("tasks", filters={})


async def test_auth_client_maps_invalid_credentials() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["grant_type"] == "password"
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as http:
        client = AuthClient(http, api_key="anon")
        with pytest.raises(AuthError) as excinfo:
            await client.sign_in_with_password(email="a@example.com", password="secret1")

    assert excinfo.value.message == "Invalid login credentials"
    assert excinfo.value.code == "invalid_grant"
    assert excinfo.value.status_code == 400


async def test_auth_client_sign_up_without_session() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"id": "00000000-0000-0000-0000-00000000000a", "email": "new@example.com"},
        )

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as http:
        identity, session = await AuthClient(http, api_key="anon").sign_up(
            email="new@example.com",
            password="secret1",
            full_name="New Person",
        )

    assert session is None
    assert identity.email == "new@example.com"


async def test_auth_client_parses_expires_in_when_expires_at_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "access_token": "opaque",
                "refresh_token": "refresh",
                "expires_in": 60,
                "user": {"id": "00000000-0000-0000-0000-00000000000b", "email": "b@example.com"},
            },
        )

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as http:
        session = await AuthClient(http, api_key="anon").refresh_session("refresh")

    assert session.expires_at is not None
    assert not session.is_expired()


async def test_non_json_success_body_is_a_remote_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, html="<html>gateway</html>")

    store, http = _client(handler)
    async with http:
        with pytest.raises(RemoteStoreError) as listing:
            await store.select("tasks")
        with pytest.raises(RemoteStoreError) as insert:
            await store.insert("tasks", {"title": "x"})

    assert listing.value.message == "Remote store returned an unexpected payload."
    assert listing.value.remote_status == 200
    assert insert.value.remote_status == 200


async def test_auth_client_rejects_non_json_success_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, html="<html>gateway</html>")

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(AuthError) as excinfo:
            await AuthClient(http, api_key="anon").sign_in_with_password(email="a@example.com", password="secret1")

    assert excinfo.value.code == "auth_malformed_response"
    assert excinfo.value.status_code == 502


@pytest.mark.parametrize(
    "payload",
    [
        {"refresh_token": "refresh", "expires_in": 60},
        {"access_token": "opaque", "expires_in": 60},
        {"access_token": "opaque", "user": {"email": "no-id@example.com"}},
        {"access_token": "opaque", "expires_at": "soon", "user": {"id": "00000000-0000-0000-0000-00000000000c"}},
    ],
)
async def test_auth_client_rejects_incomplete_session_payload(payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(AuthError) as excinfo:
            await AuthClient(http, api_key="anon").refresh_session("refresh")

    assert excinfo.value.code == "auth_malformed_response"
