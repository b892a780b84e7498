"""Domain service layer package."""

from __future__ import annotations

from .auth import AuthService, friendly_auth_message
from .sessions import SessionRegistry, UserSession
from .task_views import TaskFilter
from .validation import field_errors, validate_payload

__all__ = [
    "AuthService",
    "SessionRegistry",
    "TaskFilter",
    "UserSession",
    "field_errors",
    "friendly_auth_message",
    "validate_payload",
]
