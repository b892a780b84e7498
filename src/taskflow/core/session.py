"""Helpers for state kept in the signed browser session cookie."""

from __future__ import annotations

import secrets
from typing import Any, MutableMapping

SESSION_ID_KEY = "sid"
SESSION_CSRF_KEY = "csrf_token"
SESSION_FLASH_KEY = "flash_messages"


def get_session_id(session: MutableMapping[str, Any]) -> str | None:
    """Return the user-session identifier stored in the cookie, if any."""

    raw = session.get(SESSION_ID_KEY)
    if isinstance(raw, str) and raw:
        return raw
    return None


def bind_session_id(session: MutableMapping[str, Any], session_id: str) -> None:
    """Persist the identifier of a freshly created user session."""

    session[SESSION_ID_KEY] = session_id


def clear_session(session: MutableMapping[str, Any]) -> None:
    """Remove user-specific state from the cookie."""

    session.pop(SESSION_ID_KEY, None)
    session.pop(SESSION_CSRF_KEY, None)


def ensure_csrf_token(session: MutableMapping[str, Any]) -> str:
    """Return a CSRF token, generating one if necessary."""

    token = session.get(SESSION_CSRF_KEY)
    if isinstance(token, str) and token:
        return token
    token = secrets.token_urlsafe(32)
    session[SESSION_CSRF_KEY] = token
    return token


def validate_csrf_token(session: MutableMapping[str, Any], provided: object) -> bool:
    """Validate a CSRF token against the value stored in the session."""

    expected = session.get(SESSION_CSRF_KEY)
    if not expected or not provided:
        return False
    return secrets.compare_digest(str(expected), str(provided))


def add_flash_message(session: MutableMapping[str, Any], category: str, message: str) -> None:
    """Store a one-time flash message in the session."""

    payload = {"category": category, "message": message}
    existing = session.get(SESSION_FLASH_KEY)
    if isinstance(existing, list):
        existing.append(payload)
        session[SESSION_FLASH_KEY] = existing
        return
    session[SESSION_FLASH_KEY] = [payload]


def pop_flash_messages(session: MutableMapping[str, Any]) -> list[dict[str, str]]:
    """Retrieve and clear any queued flash messages from the session."""

    messages = session.pop(SESSION_FLASH_KEY, [])
    if not isinstance(messages, list):
        return []
    cleaned: list[dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            continue
        category = str(item.get("category", "info"))
        message = str(item.get("message", ""))
        if not message:
            continue
        cleaned.append({"category": category, "message": message})
    return cleaned


__all__ = [
    "SESSION_CSRF_KEY",
    "SESSION_FLASH_KEY",
    "SESSION_ID_KEY",
    "add_flash_message",
    "bind_session_id",
    "clear_session",
    "ensure_csrf_token",
    "get_session_id",
    "pop_flash_messages",
    "validate_csrf_token",
]
