"""Application settings powered by ``pydantic-settings``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Sequence

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__ as package_version

REPOSITORY_ROOT = Path(__file__).resolve().parents[3]

EnvironmentName = Literal["development", "test", "ci"]

_ENVIRONMENT_ALIASES: dict[str, EnvironmentName] = {
    "development": "development",
    "dev": "development",
    "test": "test",
    "testing": "test",
    "ci": "ci",
}

_ENVIRONMENT_PROFILES: dict[EnvironmentName, dict[str, Any]] = {
    "development": {
        "log_level": "DEBUG",
        "log_format": "text",
        "reload": True,
        "session_https_only": False,
    },
    "test": {
        "log_level": "WARNING",
        "reload": False,
        "session_https_only": False,
    },
    "ci": {
        "log_level": "INFO",
        "reload": False,
        "session_https_only": True,
    },
}


class Settings(BaseSettings):
    """Runtime configuration for the TaskFlow web application."""

    model_config = SettingsConfigDict(
        env_prefix="TASKFLOW_",
        env_file=REPOSITORY_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_name: str = "TaskFlow"
    environment: EnvironmentName = "development"
    api_prefix: str = "/api"
    version: str = package_version
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"])
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    reload: bool = True

    remote_url: str = "http://localhost:54321"
    remote_anon_key: str = "change-me-anon-key"
    remote_jwt_secret: str | None = None
    remote_jwt_algorithm: str = "HS256"
    remote_jwt_audience: str = "authenticated"
    remote_timeout_seconds: float | None = None

    session_secret_key: str = "change-me-session"
    session_cookie_name: str = "taskflow_session"
    session_max_age: int | None = 60 * 60 * 24 * 14
    session_https_only: bool = True
    session_same_site: str = "lax"
    session_idle_timeout: int = 60 * 60 * 24 * 14

    recent_tasks_limit: int = 6
    notification_queue_size: int = 50

    @field_validator("environment", mode="before")
    @classmethod
    def _normalise_environment(cls, value: object) -> EnvironmentName:
        if isinstance(value, str):
            normalized = value.strip().lower()
        else:
            normalized = ""
        return _ENVIRONMENT_ALIASES.get(normalized, "development")

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _coerce_comma_separated(cls, value: object) -> list[str]:
        """Allow comma separated strings for CORS configuration."""

        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Sequence):
            return [str(item) for item in value if str(item).strip()]
        return []

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        if not isinstance(value, str):
            return "INFO"
        return value.upper()

    @field_validator("remote_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("recent_tasks_limit", "notification_queue_size", "session_idle_timeout", mode="before")
    @classmethod
    def _ensure_positive(cls, value: object) -> int:
        try:
            parsed = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 1
        return max(parsed, 1)

    @field_validator("session_same_site", mode="before")
    @classmethod
    def _normalize_same_site(cls, value: object) -> str:
        if not isinstance(value, str):
            return "lax"
        normalized = value.lower()
        if normalized not in {"lax", "strict", "none"}:
            return "lax"
        return normalized

    @model_validator(mode="after")
    def _apply_environment_profile(self) -> "Settings":
        profile = _ENVIRONMENT_PROFILES[self.environment]
        fields_set = set(getattr(self, "model_fields_set", set()))
        for field_name, value in profile.items():
            if field_name not in fields_set:
                setattr(self, field_name, value)
        return self


@lru_cache()
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    return Settings()


__all__ = ["EnvironmentName", "Settings", "get_settings"]
