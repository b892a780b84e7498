"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from ..models import Task, TaskPriority, TaskStatus

TASK_EXAMPLE = {
    "id": "5f0c7a52-3b8e-4b55-9a55-0d7a3f0b9f11",
    "user_id": "0b9d1c0e-6d53-4a4e-8d0e-7c2f2a1d6c33",
    "title": "Draft product documentation",
    "description": "Outline sections for the public API guide.",
    "status": TaskStatus.PENDING.value,
    "priority": TaskPriority.MEDIUM.value,
    "due_date": "2024-06-01",
    "created_at": "2024-05-01T12:00:00Z",
    "updated_at": "2024-05-02T08:30:00Z",
}

TASK_STATISTICS_EXAMPLE = {"total": 3, "completed": 1, "in_progress": 1, "pending": 1}


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _required_title(value: object) -> object:
    if value is None:
        raise PydanticCustomError("title_required", "Title is required.")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise PydanticCustomError("title_required", "Title is required.")
    return value


class TaskCreate(BaseModel):
    """Payload for creating a new task."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Draft product documentation",
                "description": "Outline sections for the public API guide.",
                "priority": TaskPriority.HIGH.value,
            }
        }
    )

    title: str = Field(max_length=255)
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value: object) -> object:
        return _required_title(value)

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def _normalise_optional(cls, value: object) -> object:
        return _blank_to_none(value)

    def to_row(self, user_id: UUID) -> dict[str, Any]:
        """Return the insert payload for the remote ``tasks`` table."""

        row = self.model_dump(mode="json")
        row["user_id"] = str(user_id)
        return row


class TaskUpdate(BaseModel):
    """Payload for partially updating an existing task.

    Only explicitly supplied fields are sent; ``description`` and ``due_date``
    may be set to ``None`` to clear them.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": TaskStatus.IN_PROGRESS.value,
                "due_date": None,
            }
        }
    )

    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value: object) -> object:
        return _required_title(value)

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def _normalise_optional(cls, value: object) -> object:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _ensure_payload_valid(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update.")
        for name in ("status", "priority"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise PydanticCustomError("missing_value", "{field} cannot be empty.", {"field": name})
        return self

    def to_patch(self) -> dict[str, Any]:
        """Return only the explicitly supplied fields, JSON-ready."""

        return self.model_dump(mode="json", exclude_unset=True)


class TaskStatistics(BaseModel):
    """Counts of tasks per status."""

    model_config = ConfigDict(json_schema_extra={"example": TASK_STATISTICS_EXAMPLE})

    total: int = Field(ge=0)
    completed: int = Field(ge=0)
    in_progress: int = Field(ge=0)
    pending: int = Field(ge=0)

    @model_validator(mode="after")
    def _validate_counts(self) -> "TaskStatistics":
        if self.completed + self.in_progress + self.pending != self.total:
            raise ValueError("Status counts must add up to the total.")
        return self


class TaskListResponse(BaseModel):
    """Filtered view of the current user's tasks."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [TASK_EXAMPLE],
                "total": 1,
                "search": "",
                "status": "all",
                "priority": "all",
                "statistics": TASK_STATISTICS_EXAMPLE,
            }
        }
    )

    items: list[Task]
    total: int
    search: str
    status: str
    priority: str
    statistics: TaskStatistics


__all__ = [
    "TaskCreate",
    "TaskListResponse",
    "TaskStatistics",
    "TaskUpdate",
]
