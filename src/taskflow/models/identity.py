"""Identity and token models issued by the hosted authentication service."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """The authenticated user as far as this application is concerned."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    email: str | None = None


class AuthSession(BaseModel):
    """Tokens granted by a successful sign-in, sign-up or refresh."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    user: Identity

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(timezone.utc)
        return self.expires_at <= current


__all__ = ["AuthSession", "Identity"]
