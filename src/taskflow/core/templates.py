from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates

from .session import ensure_csrf_token, pop_flash_messages

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _drain_notifications(user_session: Any) -> list[dict[str, str]]:
    if user_session is None:
        return []
    return [
        {
            "category": notification.variant.value,
            "title": notification.title,
            "message": notification.description,
        }
        for notification in user_session.notifier.drain()
    ]


def _base_context(
    request: Request,
    extra: dict[str, Any] | None = None,
    *,
    include_messages: bool = True,
) -> dict[str, Any]:
    context = dict(extra or {})
    session = request.session

    context.setdefault("settings", getattr(request.app.state, "settings", None))
    context.setdefault("user_session", None)
    context["csrf_token"] = ensure_csrf_token(session)

    if include_messages:
        context["messages"] = [
            *pop_flash_messages(session),
            *_drain_notifications(context["user_session"]),
        ]
    else:
        context.setdefault("messages", [])

    return context


def template_response(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    *,
    status_code: int = 200,
) -> Any:
    """Render a full HTML page, consuming queued flash messages and notifications."""

    payload = _base_context(request, context, include_messages=True)
    return _templates.TemplateResponse(request, template_name, payload, status_code=status_code)


__all__ = ["TEMPLATES_DIR", "template_response"]
