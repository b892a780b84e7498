"""Filtering and derivation over a snapshot of the task mirror."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..models import Task, TaskPriority, TaskStatus
from ..repositories import TaskRepository
from ..schemas import TaskStatistics

ALL = "all"
RECENT_TASKS_LIMIT = 6


def _parse_choice(raw: object, enum_type: type[TaskStatus] | type[TaskPriority]):
    if raw is None:
        return None
    if isinstance(raw, enum_type):
        return raw
    value = str(raw).strip().lower()
    if not value or value == ALL:
        return None
    try:
        return enum_type(value)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class TaskFilter:
    """Search text plus optional status and priority restrictions.

    ``None`` for ``status`` or ``priority`` means "all".
    """

    search: str = ""
    status: TaskStatus | None = None
    priority: TaskPriority | None = None

    @classmethod
    def from_query(
        cls,
        search: object = None,
        status: object = None,
        priority: object = None,
    ) -> "TaskFilter":
        """Build a filter from raw query values; unknown values fall back to "all".

        The search text is kept verbatim, surrounding whitespace included.
        """

        return cls(
            search=str(search or ""),
            status=_parse_choice(status, TaskStatus),
            priority=_parse_choice(priority, TaskPriority),
        )

    @property
    def status_value(self) -> str:
        return self.status.value if self.status is not None else ALL

    @property
    def priority_value(self) -> str:
        return self.priority.value if self.priority is not None else ALL

    @property
    def is_empty(self) -> bool:
        return not self.search and self.status is None and self.priority is None


def matches_search(task: Task, search: str) -> bool:
    """Case-insensitive substring match on title or description."""

    if not search:
        return True
    needle = search.lower()
    if needle in task.title.lower():
        return True
    return task.description is not None and needle in task.description.lower()


def by_search(tasks: Iterable[Task], search: str) -> list[Task]:
    return [task for task in tasks if matches_search(task, search)]


def by_status(tasks: Iterable[Task], status: TaskStatus | None) -> list[Task]:
    if status is None:
        return list(tasks)
    return [task for task in tasks if task.status is status]


def by_priority(tasks: Iterable[Task], priority: TaskPriority | None) -> list[Task]:
    if priority is None:
        return list(tasks)
    return [task for task in tasks if task.priority is priority]


def filter_tasks(tasks: Iterable[Task], criteria: TaskFilter) -> tuple[Task, ...]:
    """Apply search, status and priority together, keeping mirror order."""

    narrowed = by_search(tasks, criteria.search)
    narrowed = by_status(narrowed, criteria.status)
    narrowed = by_priority(narrowed, criteria.priority)
    return tuple(narrowed)


def compute_statistics(tasks: Sequence[Task]) -> TaskStatistics:
    """Count tasks per status."""

    completed = sum(1 for task in tasks if task.status is TaskStatus.COMPLETED)
    in_progress = sum(1 for task in tasks if task.status is TaskStatus.IN_PROGRESS)
    pending = sum(1 for task in tasks if task.status is TaskStatus.PENDING)
    return TaskStatistics(
        total=len(tasks),
        completed=completed,
        in_progress=in_progress,
        pending=pending,
    )


class TaskViewCache:
    """Filter results and statistics for one user's mirror.

    Entries are keyed on the repository's ``version``: any mirror change,
    including the reset at sign-out, invalidates them. The cache belongs to a
    single ``UserSession`` so no rows are shared between users.
    """

    def __init__(self, tasks: TaskRepository, maxsize: int = 32) -> None:
        self._tasks = tasks
        self._maxsize = max(maxsize, 1)
        self._version: int | None = None
        self._filtered: dict[TaskFilter, tuple[Task, ...]] = {}
        self._statistics: TaskStatistics | None = None

    def __len__(self) -> int:
        return len(self._filtered) + (1 if self._statistics is not None else 0)

    def _sync(self) -> None:
        if self._version != self._tasks.version:
            self.clear()
            self._version = self._tasks.version

    def filtered(self, criteria: TaskFilter) -> tuple[Task, ...]:
        self._sync()
        cached = self._filtered.get(criteria)
        if cached is None:
            if len(self._filtered) >= self._maxsize:
                self._filtered.pop(next(iter(self._filtered)))
            cached = filter_tasks(self._tasks.items, criteria)
            self._filtered[criteria] = cached
        return cached

    def statistics(self) -> TaskStatistics:
        self._sync()
        if self._statistics is None:
            self._statistics = compute_statistics(self._tasks.items)
        return self._statistics

    def clear(self) -> None:
        self._filtered.clear()
        self._statistics = None
        self._version = None



def recent_tasks(tasks: Sequence[Task], limit: int = RECENT_TASKS_LIMIT) -> list[Task]:
    """Return the first ``limit`` tasks in their current order."""

    return list(tasks[: max(limit, 0)])


def outstanding_count(tasks: Iterable[Task]) -> int:
    return sum(1 for task in tasks if task.status is not TaskStatus.COMPLETED)


def first_name(full_name: str | None) -> str:
    """Name used in the dashboard greeting."""

    if full_name and full_name.strip():
        return full_name.split()[0]
    return "there"


def initials(full_name: str | None) -> str:
    parts = (full_name or "").split()
    if not parts:
        return "U"
    return "".join(part[0] for part in parts[:2]).upper()


__all__ = [
    "ALL",
    "RECENT_TASKS_LIMIT",
    "TaskFilter",
    "TaskViewCache",
    "by_priority",
    "by_search",
    "by_status",
    "compute_statistics",
    "filter_tasks",
    "first_name",
    "initials",
    "matches_search",
    "outstanding_count",
    "recent_tasks",
]
