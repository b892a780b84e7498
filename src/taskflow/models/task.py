"""Task domain models mirrored from the hosted ``tasks`` table."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

TASKS_TABLE = "tasks"


class TaskStatus(str, Enum):
    """Enumeration of possible task states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class TaskPriority(str, Enum):
    """Enumeration of task priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return self.value.title()


class Task(BaseModel):
    """Canonical task row as returned by the remote store.

    Instances are immutable so a mirror snapshot can be hashed and memoized.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    user_id: UUID
    title: str = Field(min_length=1)
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED


__all__ = ["TASKS_TABLE", "Task", "TaskPriority", "TaskStatus"]
