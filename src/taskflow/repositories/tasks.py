"""Repository mirroring the current user's rows of the remote ``tasks`` table."""

from __future__ import annotations

import logging
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from ..core.notifications import Notifier
from ..errors import RemoteStoreError, UnauthenticatedError
from ..models import TASKS_TABLE, Task
from ..remote import RemoteStoreClient
from ..schemas import TaskCreate, TaskUpdate
from .base import IdentityContext, OwnedRepository, RepositoryResult

logger = logging.getLogger(__name__)


def _canonical(payload: object) -> Task:
    try:
        return Task.model_validate(payload)
    except PydanticValidationError as exc:
        raise RemoteStoreError("Remote store returned a malformed task row.") from exc


class TaskRepository(OwnedRepository):
    """Mediate reads and writes of the current user's tasks.

    The mirror holds tasks in descending creation order and is only ever
    changed from successful remote responses: ``refresh`` replaces it,
    ``create`` prepends the canonical row, ``update`` swaps the matching row
    and ``delete`` drops it. Failures leave it untouched (a failed refresh
    leaves it empty) and queue an error notification. Nothing is retried.
    """

    def __init__(self, context: IdentityContext, store: RemoteStoreClient, notifier: Notifier) -> None:
        super().__init__(context, store, notifier)
        self._tasks: list[Task] = []
        self._loaded = False
        self._version = 0

    @property
    def items(self) -> tuple[Task, ...]:
        """Immutable snapshot of the mirror, newest first."""
        return tuple(self._tasks)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: UUID) -> Task | None:
        return next((task for task in self._tasks if task.id == task_id), None)

    def reset(self) -> None:
        """Forget every mirrored task."""
        self._replace([])
        self._loaded = False

    def _replace(self, tasks: list[Task]) -> None:
        self._tasks = tasks
        self._version += 1

    async def refresh(self) -> RepositoryResult[list[Task]]:
        """Load all of the user's tasks, newest first, into the mirror."""

        identity = self._identity()
        if identity is None:
            self.reset()
            return RepositoryResult.failure(UnauthenticatedError())

        try:
            rows = await self._store.select(
                TASKS_TABLE,
                filters={"user_id": identity.id},
                order=("created_at", True),
            )
            tasks = [_canonical(row) for row in rows]
        except RemoteStoreError as exc:
            self._replace([])
            self._loaded = True
            return self._report_failure(
                "fetching tasks",
                exc,
                description="Failed to fetch tasks. Please try again.",
            )

        self._replace(tasks)
        self._loaded = True
        logger.debug("Fetched tasks", extra={"count": len(tasks)})
        return RepositoryResult.success(list(tasks))

    async def create(self, payload: TaskCreate) -> RepositoryResult[Task]:
        identity = self._identity()
        if identity is None:
            return RepositoryResult.failure(UnauthenticatedError())

        try:
            row = await self._store.insert(TASKS_TABLE, payload.to_row(identity.id))
            task = _canonical(row)
        except RemoteStoreError as exc:
            return self._report_failure(
                "creating task",
                exc,
                description="Failed to create task. Please try again.",
            )

        self._replace([task, *self._tasks])
        self._notifier.success("Task created", "Your task has been created successfully.")
        return RepositoryResult.success(task)

    async def update(self, task_id: UUID, payload: TaskUpdate) -> RepositoryResult[Task]:
        identity = self._identity()
        if identity is None:
            return RepositoryResult.failure(UnauthenticatedError())

        try:
            row = await self._store.update(
                TASKS_TABLE,
                payload.to_patch(),
                filters={"id": task_id, "user_id": identity.id},
            )
            task = _canonical(row)
        except RemoteStoreError as exc:
            return self._report_failure(
                "updating task",
                exc,
                description="Failed to update task. Please try again.",
            )

        self._replace([task if existing.id == task_id else existing for existing in self._tasks])
        self._notifier.success("Task updated", "Your task has been updated successfully.")
        return RepositoryResult.success(task)

    async def delete(self, task_id: UUID) -> RepositoryResult[UUID]:
        identity = self._identity()
        if identity is None:
            return RepositoryResult.failure(UnauthenticatedError())

        try:
            await self._store.delete(TASKS_TABLE, filters={"id": task_id, "user_id": identity.id})
        except RemoteStoreError as exc:
            return self._report_failure(
                "deleting task",
                exc,
                description="Failed to delete task. Please try again.",
            )

        self._replace([task for task in self._tasks if task.id != task_id])
        self._notifier.success("Task deleted", "Your task has been deleted successfully.")
        return RepositoryResult.success(task_id)


__all__ = ["TaskRepository"]
