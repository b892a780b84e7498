"""Authentication workflows on top of the hosted auth service."""

from __future__ import annotations

import logging

import httpx
from fastapi import status

from ..core.config import Settings
from ..core.security import InvalidTokenError, decode_access_token, token_expiry
from ..errors import AuthError
from ..models import AuthSession, Identity
from ..remote import AuthClient
from .sessions import SessionRegistry, UserSession

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid login credentials"


def friendly_auth_message(message: str) -> str:
    """Rewrite known auth-service messages for display beside a form."""

    if message == INVALID_CREDENTIALS_MESSAGE:
        return "Invalid email or password. Please try again."
    if "already registered" in message:
        return "This email is already registered. Please sign in instead."
    return message


class AuthService:
    """Sign users in and out and keep their ``UserSession`` tokens fresh."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: Settings,
        registry: SessionRegistry,
        *,
        client: AuthClient | None = None,
    ) -> None:
        self._http = http
        self._settings = settings
        self._registry = registry
        self._client = client or AuthClient(http, api_key=settings.remote_anon_key)

    def _prepare(self, auth: AuthSession) -> AuthSession:
        if self._settings.remote_jwt_secret:
            try:
                claims = decode_access_token(auth.access_token, self._settings)
            except InvalidTokenError as exc:
                raise AuthError(
                    "The authentication service issued an invalid token.",
                    code="invalid_token",
                    status_code=status.HTTP_401_UNAUTHORIZED,
                ) from exc
            if claims.sub != str(auth.user.id):
                raise AuthError(
                    "Access token subject does not match the signed-in user.",
                    code="invalid_token",
                    status_code=status.HTTP_401_UNAUTHORIZED,
                )
        if auth.expires_at is None:
            expires_at = token_expiry(auth.access_token, self._settings)
            if expires_at is not None:
                auth = auth.model_copy(update={"expires_at": expires_at})
        return auth

    async def _open(self, auth: AuthSession) -> UserSession:
        user_session = self._registry.create(self._prepare(auth), http=self._http, settings=self._settings)
        await user_session.load()
        return user_session

    async def sign_in(self, email: str, password: str) -> UserSession:
        auth = await self._client.sign_in_with_password(email=email, password=password)
        logger.info("User signed in", extra={"user_id": str(auth.user.id)})
        return await self._open(auth)

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
    ) -> tuple[Identity, UserSession | None]:
        """Register an account.

        The returned session is ``None`` when the account still needs its
        email address confirmed.
        """

        identity, auth = await self._client.sign_up(email=email, password=password, full_name=full_name)
        logger.info(
            "User signed up",
            extra={"user_id": str(identity.id), "confirmation_required": auth is None},
        )
        if auth is None:
            return identity, None
        return identity, await self._open(auth)

    async def sign_out(self, user_session: UserSession) -> None:
        """Tear the session down; the remote logout is best-effort."""

        access_token = user_session.access_token
        if access_token:
            try:
                await self._client.sign_out(access_token)
            except AuthError as exc:
                logger.warning("Remote sign-out failed", extra={"code": exc.code, "error": exc.message})
        self._teardown(user_session)

    def _teardown(self, user_session: UserSession) -> None:
        self._registry.remove(user_session.id)
        user_session.close()

    async def refresh(self, user_session: UserSession) -> bool:
        """Exchange the refresh token once; on failure the session is torn down."""

        refresh_token = user_session.refresh_token
        if not refresh_token:
            self._teardown(user_session)
            return False
        try:
            auth = self._prepare(await self._client.refresh_session(refresh_token))
            user_session.replace_tokens(auth)
        except (AuthError, ValueError) as exc:
            logger.warning("Session refresh failed", extra={"error": str(exc)})
            self._teardown(user_session)
            return False
        return True

    async def resolve(self, session_id: str | None) -> UserSession | None:
        """Return the live session for ``session_id``, refreshing expired tokens."""

        user_session = self._registry.get(session_id)
        if user_session is None or not user_session.active:
            return None
        if user_session.is_expired() and not await self.refresh(user_session):
            return None
        return user_session

    def current_identity(self, session_id: str | None) -> Identity | None:
        user_session = self._registry.get(session_id)
        return user_session.identity if user_session is not None else None


__all__ = ["AuthService", "INVALID_CREDENTIALS_MESSAGE", "friendly_auth_message"]
