"""Profile domain model mirrored from the hosted ``profiles`` table."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

PROFILES_TABLE = "profiles"


class Profile(BaseModel):
    """Single profile row owned by one user."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    full_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = ["PROFILES_TABLE", "Profile"]
