"""Per-request values stamped onto every log record."""

from __future__ import annotations

from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"
ANONYMOUS = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=ANONYMOUS)
_user_id: ContextVar[str] = ContextVar("user_id", default=ANONYMOUS)


def get_request_id() -> str:
    return _request_id.get()


def bind_request_id(request_id: str) -> Token[str]:
    return _request_id.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id.reset(token)


def get_user_id() -> str:
    """Return the id of the signed-in user handling this request, or ``"-"``."""

    return _user_id.get()


def bind_user_id(user_id: object | None) -> Token[str]:
    return _user_id.set(str(user_id) if user_id is not None else ANONYMOUS)


def reset_user_id(token: Token[str]) -> None:
    _user_id.reset(token)


__all__ = [
    "ANONYMOUS",
    "REQUEST_ID_HEADER",
    "bind_request_id",
    "bind_user_id",
    "get_request_id",
    "get_user_id",
    "reset_request_id",
    "reset_user_id",
]
