"""Pydantic schemas for forms and public interfaces."""

from __future__ import annotations

from .auth import SessionResponse, SignInRequest, SignUpRequest, SignUpResponse
from .profile import ProfileUpdate
from .system import ErrorResponse, HealthCheckResponse, RootResponse
from .task import TaskCreate, TaskListResponse, TaskStatistics, TaskUpdate

__all__ = [
    "ErrorResponse",
    "HealthCheckResponse",
    "ProfileUpdate",
    "RootResponse",
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "SignUpResponse",
    "TaskCreate",
    "TaskListResponse",
    "TaskStatistics",
    "TaskUpdate",
]
