"""Helpers for inspecting access tokens issued by the hosted auth service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from .config import Settings


class TokenClaims(BaseModel):
    """Subset of access-token claims the application relies on."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: datetime
    email: str | None = None
    role: str | None = None


class InvalidTokenError(Exception):
    """Raised when an access token cannot be decoded or verified."""


def decode_access_token(token: str, settings: Settings) -> TokenClaims:
    """Decode ``token``, verifying its signature when a secret is configured."""

    try:
        if settings.remote_jwt_secret:
            payload: dict[str, Any] = jwt.decode(
                token,
                settings.remote_jwt_secret,
                algorithms=[settings.remote_jwt_algorithm],
                audience=settings.remote_jwt_audience,
            )
        else:
            payload = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as exc:
        raise InvalidTokenError("Access token is missing required claims.") from exc


def token_expiry(token: str, settings: Settings) -> datetime | None:
    """Return the expiry encoded in ``token``, or ``None`` for opaque tokens."""

    try:
        claims = decode_access_token(token, settings)
    except InvalidTokenError:
        return None
    expires_at = claims.exp
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


__all__ = [
    "InvalidTokenError",
    "JWTError",
    "TokenClaims",
    "decode_access_token",
    "token_expiry",
]
