"""Client for the hosted authentication (GoTrue) API."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from fastapi import status

from ..errors import AuthError
from ..models import AuthSession, Identity

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"


def _auth_error(response: httpx.Response) -> AuthError:
    try:
        body = response.json()
    except ValueError:
        body = None
    message = f"Authentication service responded with HTTP {response.status_code}."
    code = "auth_error"
    if isinstance(body, dict):
        message = str(
            body.get("error_description") or body.get("msg") or body.get("message") or body.get("error") or message
        )
        raw_code = body.get("error_code") or body.get("error")
        if isinstance(raw_code, str) and raw_code:
            code = raw_code
    status_code = (
        status.HTTP_401_UNAUTHORIZED
        if response.status_code == status.HTTP_401_UNAUTHORIZED
        else status.HTTP_400_BAD_REQUEST
    )
    return AuthError(message, code=code, status_code=status_code)


def _malformed() -> AuthError:
    return AuthError(
        "Authentication service returned an unexpected payload.",
        code="auth_malformed_response",
        status_code=status.HTTP_502_BAD_GATEWAY,
    )


def _decode(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        logger.warning(
            "Authentication service returned a non-JSON body",
            extra={"status_code": response.status_code, "content_type": response.headers.get("content-type")},
        )
        raise _malformed() from exc
    if not isinstance(body, dict):
        raise _malformed()
    return body


def _parse_session(response: httpx.Response, payload: dict[str, Any]) -> AuthSession:
    try:
        expires_at: datetime | None = None
        if payload.get("expires_at") is not None:
            expires_at = datetime.fromtimestamp(int(payload["expires_at"]), tz=timezone.utc)
        elif payload.get("expires_in") is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(payload["expires_in"]))
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
            user=Identity.model_validate(payload["user"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Authentication service returned an incomplete session", extra={"error": str(exc)})
        raise _malformed() from exc


class AuthClient:
    """Thin wrapper over the sign-up, token and logout endpoints."""

    def __init__(self, http: httpx.AsyncClient, *, api_key: str) -> None:
        self._http = http
        self._api_key = api_key

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
        }

    async def _post(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        try:
            response = await self._http.post(
                f"{AUTH_PATH}{path}",
                json=json,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as exc:
            logger.warning("Authentication service unreachable", extra={"path": path, "error": str(exc)})
            raise AuthError(
                "Could not reach the authentication service.",
                code="auth_unreachable",
                status_code=status.HTTP_502_BAD_GATEWAY,
            ) from exc
        if not response.is_success:
            raise _auth_error(response)
        return response

    async def sign_up(self, *, email: str, password: str, full_name: str | None = None) -> tuple[Identity, AuthSession | None]:
        """Register an account.

        The session is ``None`` when the service requires email confirmation
        before the first sign-in.
        """

        payload: dict[str, Any] = {"email": email, "password": password}
        if full_name:
            payload["data"] = {"full_name": full_name}
        response = await self._post("/signup", json=payload)
        body = _decode(response)
        if "access_token" in body:
            session = _parse_session(response, body)
            return session.user, session
        user_payload = body.get("user", body)
        try:
            return Identity.model_validate(user_payload), None
        except ValueError as exc:
            raise _malformed() from exc

    async def sign_in_with_password(self, *, email: str, password: str) -> AuthSession:
        response = await self._post(
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return _parse_session(response, _decode(response))

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        response = await self._post(
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return _parse_session(response, _decode(response))

    async def sign_out(self, access_token: str) -> None:
        await self._post("/logout", access_token=access_token)


__all__ = ["AUTH_PATH", "AuthClient"]
