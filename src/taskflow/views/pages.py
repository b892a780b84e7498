from __future__ import annotations

from fastapi import APIRouter, Request

from ..core.templates import template_response
from ..deps import OptionalUserSessionDependency

router = APIRouter(tags=["web"])


@router.get("/", name="pages:home")
async def home(request: Request, user_session: OptionalUserSessionDependency) -> object:
    """Render the landing page."""

    return template_response(
        request,
        "pages/home.html",
        {
            "title": "Welcome",
            "user_session": user_session,
        },
    )
