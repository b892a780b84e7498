from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Request, status
from starlette.datastructures import FormData
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message, validate_csrf_token
from ..core.templates import template_response
from ..deps import OptionalUserSessionDependency, SettingsDependency
from ..errors import ValidationError
from ..models import Task, TaskPriority, TaskStatus
from ..schemas import ProfileUpdate, TaskCreate, TaskUpdate
from ..services import TaskFilter, UserSession, validate_payload
from ..services.task_views import (
    first_name,
    initials,
    outstanding_count,
    recent_tasks,
)

router = APIRouter(tags=["dashboard"])

TASK_FIELDS = ("title", "description", "status", "priority", "due_date")
EMPTY_TASK_FORM = {
    "title": "",
    "description": "",
    "status": TaskStatus.PENDING.value,
    "priority": TaskPriority.MEDIUM.value,
    "due_date": "",
}


def _clean_text(raw: object) -> str:
    return str(raw or "").strip()


def _task_form(form: FormData) -> dict[str, str]:
    return {field: _clean_text(form.get(field)) for field in TASK_FIELDS if field in form}


def _sign_in_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(request.url_for("auth:page"), status_code=303)


def _redirect_back(request: Request, form: FormData, default: str) -> RedirectResponse:
    target = _clean_text(form.get("next"))
    if not target.startswith("/dashboard"):
        target = str(request.url_for(default))
    return RedirectResponse(target, status_code=303)


def _expired_form(request: Request, form: FormData, default: str) -> RedirectResponse:
    add_flash_message(request.session, "error", "The form has expired. Please try again.")
    return _redirect_back(request, form, default)


def _shared_context(user_session: UserSession) -> dict[str, Any]:
    profile = user_session.profile.profile
    full_name = profile.full_name if profile is not None else None
    return {
        "user_session": user_session,
        "profile": profile,
        "display_name": full_name or (user_session.identity.email if user_session.identity else ""),
        "initials": initials(full_name),
        "statuses": list(TaskStatus),
        "priorities": list(TaskPriority),
    }


def _render_tasks(
    request: Request,
    user_session: UserSession,
    criteria: TaskFilter,
    *,
    form: dict[str, str] | None = None,
    errors: dict[str, str] | None = None,
    editing: Task | None = None,
    status_code: int = status.HTTP_200_OK,
) -> object:
    return template_response(
        request,
        "dashboard/tasks.html",
        {
            **_shared_context(user_session),
            "title": "Tasks",
            "tasks": user_session.views.filtered(criteria),
            "statistics": user_session.views.statistics(),
            "criteria": criteria,
            "form": form or dict(EMPTY_TASK_FORM),
            "errors": errors or {},
            "editing": editing,
        },
        status_code=status_code,
    )


@router.get("", name="dashboard:overview")
async def overview(
    request: Request,
    user_session: OptionalUserSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Greeting, statistics and the most recent tasks."""

    if user_session is None:
        return _sign_in_redirect(request)
    snapshot = user_session.tasks.items
    profile = user_session.profile.profile
    return template_response(
        request,
        "dashboard/overview.html",
        {
            **_shared_context(user_session),
            "title": "Dashboard",
            "greeting_name": first_name(profile.full_name if profile is not None else None),
            "outstanding": outstanding_count(snapshot),
            "statistics": user_session.views.statistics(),
            "recent_tasks": recent_tasks(snapshot, settings.recent_tasks_limit),
            "form": dict(EMPTY_TASK_FORM),
            "errors": {},
        },
    )


@router.get("/tasks", name="dashboard:tasks")
async def list_tasks(request: Request, user_session: OptionalUserSessionDependency) -> object:
    """Render the task list narrowed by the ``search``, ``status`` and ``priority`` query."""

    if user_session is None:
        return _sign_in_redirect(request)
    params = request.query_params
    criteria = TaskFilter.from_query(params.get("search"), params.get("status"), params.get("priority"))

    editing = None
    form = None
    edit_id = params.get("edit")
    if edit_id:
        try:
            editing = user_session.tasks.get(UUID(edit_id))
        except ValueError:
            editing = None
        if editing is not None:
            form = {
                "title": editing.title,
                "description": editing.description or "",
                "status": editing.status.value,
                "priority": editing.priority.value,
                "due_date": editing.due_date.isoformat() if editing.due_date else "",
            }
    return _render_tasks(request, user_session, criteria, form=form, editing=editing)


@router.post("/tasks", name="dashboard:create_task")
async def create_task(request: Request, user_session: OptionalUserSessionDependency) -> object:
    if user_session is None:
        return _sign_in_redirect(request)
    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        return _expired_form(request, form, "dashboard:tasks")

    values = _task_form(form)
    try:
        payload = validate_payload(TaskCreate, values)
    except ValidationError as exc:
        return _render_tasks(
            request,
            user_session,
            TaskFilter(),
            form={**EMPTY_TASK_FORM, **values},
            errors=exc.field_errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    await user_session.tasks.create(payload)
    return _redirect_back(request, form, "dashboard:tasks")


@router.post("/tasks/{task_id}", name="dashboard:update_task")
async def update_task(task_id: UUID, request: Request, user_session: OptionalUserSessionDependency) -> object:
    if user_session is None:
        return _sign_in_redirect(request)
    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        return _expired_form(request, form, "dashboard:tasks")

    values = _task_form(form)
    try:
        payload = validate_payload(TaskUpdate, values)
    except ValidationError as exc:
        return _render_tasks(
            request,
            user_session,
            TaskFilter(),
            form={**EMPTY_TASK_FORM, **values},
            errors=exc.field_errors,
            editing=user_session.tasks.get(task_id),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    await user_session.tasks.update(task_id, payload)
    return _redirect_back(request, form, "dashboard:tasks")


@router.post("/tasks/{task_id}/status", name="dashboard:update_task_status")
async def update_task_status(
    task_id: UUID,
    request: Request,
    user_session: OptionalUserSessionDependency,
) -> object:
    if user_session is None:
        return _sign_in_redirect(request)
    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        return _expired_form(request, form, "dashboard:tasks")

    try:
        payload = validate_payload(TaskUpdate, {"status": _clean_text(form.get("status"))})
    except ValidationError:
        add_flash_message(request.session, "error", "Please choose a valid status.")
        return _redirect_back(request, form, "dashboard:tasks")

    await user_session.tasks.update(task_id, payload)
    return _redirect_back(request, form, "dashboard:tasks")


@router.post("/tasks/{task_id}/delete", name="dashboard:delete_task")
async def delete_task(task_id: UUID, request: Request, user_session: OptionalUserSessionDependency) -> object:
    if user_session is None:
        return _sign_in_redirect(request)
    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        return _expired_form(request, form, "dashboard:tasks")

    await user_session.tasks.delete(task_id)
    return _redirect_back(request, form, "dashboard:tasks")


@router.post("/refresh", name="dashboard:refresh")
async def refresh(request: Request, user_session: OptionalUserSessionDependency) -> object:
    """Re-list tasks and the profile from the remote store."""

    if user_session is None:
        return _sign_in_redirect(request)
    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        return _expired_form(request, form, "dashboard:tasks")

    await user_session.load()
    return _redirect_back(request, form, "dashboard:tasks")


def _render_profile(
    request: Request,
    user_session: UserSession,
    *,
    form: dict[str, str] | None = None,
    errors: dict[str, str] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> object:
    profile = user_session.profile.profile
    return template_response(
        request,
        "dashboard/profile.html",
        {
            **_shared_context(user_session),
            "title": "Profile",
            "form": form or {"full_name": (profile.full_name if profile else None) or ""},
            "errors": errors or {},
        },
        status_code=status_code,
    )


@router.get("/profile", name="dashboard:profile")
async def profile_page(request: Request, user_session: OptionalUserSessionDependency) -> object:
    if user_session is None:
        return _sign_in_redirect(request)
    return _render_profile(request, user_session)


@router.post("/profile", name="dashboard:update_profile")
async def update_profile(request: Request, user_session: OptionalUserSessionDependency) -> object:
    if user_session is None:
        return _sign_in_redirect(request)
    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        return _expired_form(request, form, "dashboard:profile")

    full_name = _clean_text(form.get("full_name"))
    try:
        payload = validate_payload(ProfileUpdate, {"full_name": full_name})
    except ValidationError as exc:
        return _render_profile(
            request,
            user_session,
            form={"full_name": full_name},
            errors=exc.field_errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    await user_session.profile.update(payload)
    return RedirectResponse(request.url_for("dashboard:profile"), status_code=303)
