"""Domain models mirrored from the hosted backend."""

from __future__ import annotations

from .identity import AuthSession, Identity
from .profile import PROFILES_TABLE, Profile
from .task import TASKS_TABLE, Task, TaskPriority, TaskStatus

__all__ = [
    "AuthSession",
    "Identity",
    "PROFILES_TABLE",
    "Profile",
    "TASKS_TABLE",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
