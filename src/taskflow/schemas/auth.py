"""Schemas describing authentication forms and payloads."""

from __future__ import annotations

from datetime import datetime

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from ..models import Identity, Profile
from .profile import check_full_name

MIN_PASSWORD_LENGTH = 6


def _check_email(value: object) -> object:
    if not isinstance(value, str):
        return value
    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise PydanticCustomError("email_invalid", "Please enter a valid email address") from exc
    return result.normalized.lower()


def _check_password(value: object) -> object:
    if isinstance(value, str) and len(value) < MIN_PASSWORD_LENGTH:
        raise PydanticCustomError(
            "password_too_short",
            "Password must be at least {min_length} characters",
            {"min_length": MIN_PASSWORD_LENGTH},
        )
    return value


class SignInRequest(BaseModel):
    """Credentials submitted by the sign-in form or API."""

    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, value: object) -> object:
        return _check_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _validate_password(cls, value: object) -> object:
        return _check_password(value)


class SignUpRequest(BaseModel):
    """Registration details; ``confirm_password`` must repeat ``password``."""

    full_name: str
    email: str
    password: str
    confirm_password: str

    @field_validator("full_name", mode="before")
    @classmethod
    def _validate_full_name(cls, value: object) -> object:
        return check_full_name(value)

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, value: object) -> object:
        return _check_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _validate_password(cls, value: object) -> object:
        return _check_password(value)

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and value != password:
            raise PydanticCustomError("password_mismatch", "Passwords don't match")
        return value


class SessionResponse(BaseModel):
    """Public view of the caller's authenticated session."""

    user: Identity
    profile: Profile | None = None
    expires_at: datetime | None = None


class SignUpResponse(BaseModel):
    """Outcome of a registration; ``session`` is absent until the email is confirmed."""

    user: Identity
    confirmation_required: bool = False
    session: SessionResponse | None = None


__all__ = [
    "MIN_PASSWORD_LENGTH",
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "SignUpResponse",
]
