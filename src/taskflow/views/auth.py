from __future__ import annotations

from fastapi import APIRouter, Request, status
from starlette.datastructures import FormData
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message, bind_session_id, clear_session, validate_csrf_token
from ..core.templates import template_response
from ..deps import AuthServiceDependency, OptionalUserSessionDependency
from ..errors import AuthError, ValidationError
from ..schemas import SignInRequest, SignUpRequest
from ..services import friendly_auth_message, validate_payload

router = APIRouter(tags=["auth"])

SIGN_IN = "signin"
SIGN_UP = "signup"


def _clean_text(raw: object) -> str:
    return str(raw or "").strip()


def _form_values(form: FormData) -> dict[str, str]:
    return {
        "email": _clean_text(form.get("email")),
        "full_name": _clean_text(form.get("full_name")),
    }


def _render(
    request: Request,
    *,
    mode: str,
    form: dict[str, str] | None = None,
    errors: dict[str, str] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> object:
    return template_response(
        request,
        "auth/auth.html",
        {
            "title": "Create an account" if mode == SIGN_UP else "Sign in",
            "mode": mode,
            "form": form or {"email": "", "full_name": ""},
            "errors": errors or {},
        },
        status_code=status_code,
    )


def _redirect_to_dashboard(request: Request) -> RedirectResponse:
    return RedirectResponse(request.url_for("dashboard:overview"), status_code=303)


@router.get("", name="auth:page")
async def auth_page(request: Request, user_session: OptionalUserSessionDependency) -> object:
    """Render the sign-in / sign-up page, or skip it when already signed in."""

    if user_session is not None:
        return _redirect_to_dashboard(request)
    mode = SIGN_UP if request.query_params.get("mode") == SIGN_UP else SIGN_IN
    return _render(request, mode=mode)


@router.post("/login", name="auth:login")
async def login_submit(request: Request, auth_service: AuthServiceDependency) -> object:
    form = await request.form()
    values = _form_values(form)
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        add_flash_message(request.session, "error", "The form has expired. Please try again.")
        return _render(request, mode=SIGN_IN, form=values, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        credentials = validate_payload(
            SignInRequest,
            {"email": values["email"], "password": str(form.get("password") or "")},
        )
    except ValidationError as exc:
        return _render(
            request,
            mode=SIGN_IN,
            form=values,
            errors=exc.field_errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        user_session = await auth_service.sign_in(credentials.email, credentials.password)
    except AuthError as exc:
        return _render(
            request,
            mode=SIGN_IN,
            form=values,
            errors={"form": friendly_auth_message(exc.message)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    bind_session_id(request.session, user_session.id)
    add_flash_message(request.session, "success", "Welcome back!")
    return _redirect_to_dashboard(request)


@router.post("/signup", name="auth:signup")
async def signup_submit(request: Request, auth_service: AuthServiceDependency) -> object:
    form = await request.form()
    values = _form_values(form)
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        add_flash_message(request.session, "error", "The form has expired. Please try again.")
        return _render(request, mode=SIGN_UP, form=values, status_code=status.HTTP_400_BAD_REQUEST)

    try:
        registration = validate_payload(
            SignUpRequest,
            {
                "full_name": values["full_name"],
                "email": values["email"],
                "password": str(form.get("password") or ""),
                "confirm_password": str(form.get("confirm_password") or ""),
            },
        )
    except ValidationError as exc:
        return _render(
            request,
            mode=SIGN_UP,
            form=values,
            errors=exc.field_errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        _, user_session = await auth_service.sign_up(
            registration.email,
            registration.password,
            registration.full_name,
        )
    except AuthError as exc:
        return _render(
            request,
            mode=SIGN_UP,
            form=values,
            errors={"form": friendly_auth_message(exc.message)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if user_session is None:
        add_flash_message(
            request.session,
            "info",
            "Check your email to confirm your account, then sign in.",
        )
        return RedirectResponse(request.url_for("auth:page"), status_code=303)

    bind_session_id(request.session, user_session.id)
    add_flash_message(request.session, "success", "Your account has been created.")
    return _redirect_to_dashboard(request)


@router.post("/logout", name="auth:logout")
async def logout(
    request: Request,
    auth_service: AuthServiceDependency,
    user_session: OptionalUserSessionDependency,
) -> RedirectResponse:
    """Sign the user out and clear their browser session."""

    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        add_flash_message(request.session, "error", "Invalid sign out request.")
        target = "dashboard:overview" if user_session is not None else "pages:home"
        return RedirectResponse(request.url_for(target), status_code=303)

    if user_session is not None:
        await auth_service.sign_out(user_session)
    clear_session(request.session)
    add_flash_message(request.session, "info", "You have been signed out.")
    return RedirectResponse(request.url_for("pages:home"), status_code=303)
