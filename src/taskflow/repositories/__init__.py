"""Per-user repositories over the remote tables."""

from __future__ import annotations

from .base import IdentityContext, OwnedRepository, RepositoryResult
from .profiles import ProfileRepository
from .tasks import TaskRepository

__all__ = [
    "IdentityContext",
    "OwnedRepository",
    "ProfileRepository",
    "RepositoryResult",
    "TaskRepository",
]
