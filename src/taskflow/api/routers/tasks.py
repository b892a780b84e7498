"""JSON routes over the current user's task repository."""

from __future__ import annotations

from typing import Annotated, TypeVar
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from ...deps import SettingsDependency, UserSessionDependency
from ...models import Task
from ...repositories import RepositoryResult
from ...schemas import TaskCreate, TaskListResponse, TaskStatistics, TaskUpdate
from ...services import TaskFilter, UserSession
from ...services.task_views import recent_tasks

router = APIRouter(prefix="/tasks", tags=["tasks"])

ValueType = TypeVar("ValueType")

SearchQuery = Annotated[
    str,
    Query(
        max_length=255,
        description="Case-insensitive text matched against title or description.",
    ),
]
StatusQuery = Annotated[
    str,
    Query(
        pattern="^(all|pending|in_progress|completed)$",
        description="Restrict results to one status, or `all`.",
    ),
]
PriorityQuery = Annotated[
    str,
    Query(
        pattern="^(all|low|medium|high)$",
        description="Restrict results to one priority, or `all`.",
    ),
]
RefreshQuery = Annotated[
    bool,
    Query(description="Re-list tasks from the remote store before answering."),
]
LimitQuery = Annotated[
    int | None,
    Query(ge=1, le=100, description="Number of most recent tasks to return."),
]


def _unwrap(result: RepositoryResult[ValueType]) -> ValueType:
    if result.error is not None:
        raise result.error
    return result.value  # type: ignore[return-value]


async def _snapshot(user_session: UserSession, *, refresh: bool = False) -> tuple[Task, ...]:
    if refresh or not user_session.tasks.loaded:
        _unwrap(await user_session.tasks.refresh())
    return user_session.tasks.items


@router.get(
    "/",
    response_model=TaskListResponse,
    summary="List the current user's tasks with optional filters",
)
async def list_tasks(
    user_session: UserSessionDependency,
    search: SearchQuery = "",
    status: StatusQuery = "all",
    priority: PriorityQuery = "all",
    refresh: RefreshQuery = False,
) -> TaskListResponse:
    await _snapshot(user_session, refresh=refresh)
    criteria = TaskFilter.from_query(search, status, priority)
    items = user_session.views.filtered(criteria)
    return TaskListResponse(
        items=list(items),
        total=len(items),
        search=criteria.search,
        status=criteria.status_value,
        priority=criteria.priority_value,
        statistics=user_session.views.statistics(),
    )


@router.get(
    "/statistics",
    response_model=TaskStatistics,
    summary="Count the current user's tasks per status",
)
async def read_statistics(user_session: UserSessionDependency) -> TaskStatistics:
    await _snapshot(user_session)
    return user_session.views.statistics()


@router.get(
    "/recent",
    response_model=list[Task],
    summary="Return the most recently created tasks",
)
async def read_recent_tasks(
    user_session: UserSessionDependency,
    settings: SettingsDependency,
    limit: LimitQuery = None,
) -> list[Task]:
    snapshot = await _snapshot(user_session)
    return recent_tasks(snapshot, limit or settings.recent_tasks_limit)


@router.post(
    "/",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(payload: TaskCreate, user_session: UserSessionDependency) -> Task:
    return _unwrap(await user_session.tasks.create(payload))


@router.patch(
    "/{task_id}",
    response_model=Task,
    summary="Partially update a task",
)
async def update_task(task_id: UUID, payload: TaskUpdate, user_session: UserSessionDependency) -> Task:
    return _unwrap(await user_session.tasks.update(task_id, payload))


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a task",
)
async def delete_task(task_id: UUID, user_session: UserSessionDependency) -> Response:
    _unwrap(await user_session.tasks.delete(task_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
