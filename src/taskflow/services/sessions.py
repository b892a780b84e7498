"""Explicit per-login context objects and the registry that owns them."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

import httpx

from ..core.config import Settings
from ..core.notifications import Notifier
from ..models import AuthSession, Identity
from ..remote import RemoteStoreClient
from ..repositories import ProfileRepository, TaskRepository
from .task_views import TaskViewCache

logger = logging.getLogger(__name__)


class UserSession:
    """Everything bound to one signed-in user.

    Created at sign-in or sign-up and torn down at sign-out. The repositories
    read the identity from here, so once :meth:`close` runs every repository
    operation becomes an unauthenticated no-op.
    """

    def __init__(
        self,
        session_id: str,
        auth: AuthSession,
        *,
        http: httpx.AsyncClient,
        settings: Settings,
    ) -> None:
        self.id = session_id
        self.last_used_at = datetime.now(timezone.utc)
        self._auth: AuthSession | None = auth
        self.notifier = Notifier(maxlen=settings.notification_queue_size)
        self.store = RemoteStoreClient(
            http,
            api_key=settings.remote_anon_key,
            token_provider=lambda: self.access_token,
        )
        self.tasks = TaskRepository(self, self.store, self.notifier)
        self.profile = ProfileRepository(self, self.store, self.notifier)
        self.views = TaskViewCache(self.tasks)

    @property
    def identity(self) -> Identity | None:
        return self._auth.user if self._auth is not None else None

    @property
    def auth(self) -> AuthSession | None:
        return self._auth

    @property
    def access_token(self) -> str | None:
        return self._auth.access_token if self._auth is not None else None

    @property
    def refresh_token(self) -> str | None:
        return self._auth.refresh_token if self._auth is not None else None

    @property
    def expires_at(self) -> datetime | None:
        return self._auth.expires_at if self._auth is not None else None

    @property
    def active(self) -> bool:
        return self._auth is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        return self._auth is not None and self._auth.is_expired(now)

    def touch(self, now: datetime | None = None) -> None:
        self.last_used_at = now or datetime.now(timezone.utc)

    def is_idle(self, timeout: timedelta, now: datetime | None = None) -> bool:
        """Whether nothing has used this session for longer than ``timeout``."""

        return self.last_used_at + timeout < (now or datetime.now(timezone.utc))

    def replace_tokens(self, auth: AuthSession) -> None:
        """Swap in refreshed tokens for the same user."""

        if self._auth is not None and auth.user.id != self._auth.user.id:
            raise ValueError("Refreshed tokens belong to a different user.")
        self._auth = auth

    async def load(self) -> None:
        """Fetch the user's tasks and profile into the repositories."""

        await self.tasks.refresh()
        await self.profile.refresh()

    def close(self) -> None:
        """Forget identity, mirrored rows and pending notifications."""

        self._auth = None
        self.tasks.reset()
        self.profile.reset()
        self.views.clear()
        self.notifier.clear()


DEFAULT_IDLE_TIMEOUT = timedelta(days=14)
SWEEP_INTERVAL = timedelta(minutes=1)


class SessionRegistry:
    """In-process map from the opaque cookie session id to its ``UserSession``.

    Sessions unused for longer than ``idle_timeout`` are closed and dropped.
    The sweep runs on every ``create`` and at most once per
    ``SWEEP_INTERVAL`` from ``get``.
    """

    def __init__(self, *, idle_timeout: timedelta = DEFAULT_IDLE_TIMEOUT) -> None:
        self._sessions: dict[str, UserSession] = {}
        self._idle_timeout = idle_timeout
        self._last_sweep = datetime.now(timezone.utc)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, auth: AuthSession, *, http: httpx.AsyncClient, settings: Settings) -> UserSession:
        self.evict_idle()
        session_id = secrets.token_urlsafe(32)
        user_session = UserSession(session_id, auth, http=http, settings=settings)
        self._sessions[session_id] = user_session
        logger.info("User session opened", extra={"user_id": str(auth.user.id)})
        return user_session

    def get(self, session_id: str | None) -> UserSession | None:
        now = datetime.now(timezone.utc)
        if now - self._last_sweep >= SWEEP_INTERVAL:
            self.evict_idle(now)
        if not session_id:
            return None
        user_session = self._sessions.get(session_id)
        if user_session is not None:
            user_session.touch(now)
        return user_session

    def remove(self, session_id: str) -> UserSession | None:
        return self._sessions.pop(session_id, None)

    def evict_idle(self, now: datetime | None = None) -> list[str]:
        """Close every idle session and return the evicted ids."""

        current = now or datetime.now(timezone.utc)
        self._last_sweep = current
        idle = [
            session_id
            for session_id, user_session in self._sessions.items()
            if user_session.is_idle(self._idle_timeout, current)
        ]
        for session_id in idle:
            self._sessions.pop(session_id).close()
        if idle:
            logger.info("Evicted idle user sessions", extra={"count": len(idle)})
        return idle

    def close_all(self) -> None:
        for user_session in self._sessions.values():
            user_session.close()
        self._sessions.clear()


__all__ = ["DEFAULT_IDLE_TIMEOUT", "SessionRegistry", "UserSession"]
