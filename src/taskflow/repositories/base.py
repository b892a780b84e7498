"""Shared pieces for repositories mirroring remote rows owned by one user."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar, runtime_checkable

from ..core.notifications import Notifier
from ..errors import ApplicationError, RemoteStoreError, UnauthenticatedError
from ..models import Identity
from ..remote import RemoteStoreClient

ValueType = TypeVar("ValueType")

logger = logging.getLogger(__name__)


@runtime_checkable
class IdentityContext(Protocol):
    """Anything that can tell a repository who the current user is."""

    @property
    def identity(self) -> Identity | None:  # pragma: no cover - interface definition
        """Return the signed-in identity, or ``None`` once signed out."""


@dataclass(frozen=True, slots=True)
class RepositoryResult(Generic[ValueType]):
    """Outcome of a repository operation: a value or a typed error, never both."""

    value: ValueType | None = None
    error: ApplicationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def unauthenticated(self) -> bool:
        return isinstance(self.error, UnauthenticatedError)

    @classmethod
    def success(cls, value: ValueType | None = None) -> "RepositoryResult[ValueType]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ApplicationError) -> "RepositoryResult[ValueType]":
        return cls(error=error)


class OwnedRepository:
    """Provide the identity guard and failure reporting for owned-row repositories."""

    def __init__(self, context: IdentityContext, store: RemoteStoreClient, notifier: Notifier) -> None:
        self._context = context
        self._store = store
        self._notifier = notifier

    @property
    def store(self) -> RemoteStoreClient:
        """Return the remote client the repository talks through."""
        return self._store

    def _identity(self) -> Identity | None:
        return self._context.identity

    def _report_failure(
        self,
        action: str,
        exc: RemoteStoreError,
        *,
        description: str,
    ) -> RepositoryResult:
        logger.error(
            "Error %s",
            action,
            extra={
                "repository": type(self).__name__,
                "remote_status": exc.remote_status,
                "remote_code": exc.remote_code,
                "error": exc.message,
            },
        )
        self._notifier.error("Error", description)
        return RepositoryResult.failure(exc)


__all__ = ["IdentityContext", "OwnedRepository", "RepositoryResult"]
