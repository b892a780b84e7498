"""Routes handling sign-in, sign-up and sign-out for API clients.

These share the signed cookie session with the server-rendered views.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from ...core.session import bind_session_id, clear_session
from ...deps import AuthServiceDependency, OptionalUserSessionDependency, UserSessionDependency
from ...schemas import SessionResponse, SignInRequest, SignUpRequest, SignUpResponse
from ...services import UserSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(user_session: UserSession) -> SessionResponse:
    identity = user_session.identity
    if identity is None:  # pragma: no cover - resolved sessions always carry an identity
        raise RuntimeError("User session has no identity.")
    return SessionResponse(
        user=identity,
        profile=user_session.profile.profile,
        expires_at=user_session.expires_at,
    )


@router.post(
    "/signin",
    response_model=SessionResponse,
    summary="Authenticate using email and password",
)
async def signin(
    payload: SignInRequest,
    request: Request,
    auth_service: AuthServiceDependency,
) -> SessionResponse:
    user_session = await auth_service.sign_in(payload.email, payload.password)
    bind_session_id(request.session, user_session.id)
    return _session_response(user_session)


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def signup(
    payload: SignUpRequest,
    request: Request,
    auth_service: AuthServiceDependency,
) -> SignUpResponse:
    identity, user_session = await auth_service.sign_up(payload.email, payload.password, payload.full_name)
    if user_session is None:
        return SignUpResponse(user=identity, confirmation_required=True)
    bind_session_id(request.session, user_session.id)
    return SignUpResponse(user=identity, session=_session_response(user_session))


@router.post(
    "/signout",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="End the current session",
)
async def signout(
    request: Request,
    auth_service: AuthServiceDependency,
    user_session: OptionalUserSessionDependency,
) -> Response:
    if user_session is not None:
        await auth_service.sign_out(user_session)
    clear_session(request.session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/session", response_model=SessionResponse, summary="Describe the current session")
async def read_session(user_session: UserSessionDependency) -> SessionResponse:
    return _session_response(user_session)
