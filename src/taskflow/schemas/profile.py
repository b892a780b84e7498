"""Profile-related Pydantic schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError


def check_full_name(value: object) -> object:
    """Validate a person's name the way every form in the application does."""

    if not isinstance(value, str):
        return value
    value = value.strip()
    if len(value) < 2:
        raise PydanticCustomError("name_too_short", "Name must be at least 2 characters")
    if len(value) > 100:
        raise PydanticCustomError("name_too_long", "Name is too long")
    return value


class ProfileUpdate(BaseModel):
    """Partial update of the current user's profile row."""

    full_name: str | None = None
    avatar_url: str | None = Field(default=None, max_length=2048)

    @field_validator("full_name", mode="before")
    @classmethod
    def _check_full_name(cls, value: object) -> object:
        return check_full_name(value)

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "ProfileUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update.")
        return self

    def to_patch(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


__all__ = ["ProfileUpdate", "check_full_name"]
