"""Repository for the single ``profiles`` row owned by the current user."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from ..core.notifications import Notifier
from ..errors import RemoteStoreError, UnauthenticatedError
from ..models import PROFILES_TABLE, Profile
from ..remote import RemoteStoreClient
from ..schemas import ProfileUpdate
from .base import IdentityContext, OwnedRepository, RepositoryResult

logger = logging.getLogger(__name__)


def _canonical(payload: object) -> Profile:
    try:
        return Profile.model_validate(payload)
    except PydanticValidationError as exc:
        raise RemoteStoreError("Remote store returned a malformed profile row.") from exc


class ProfileRepository(OwnedRepository):
    """Fetch and update the profile row keyed by the current user's id.

    The row is created by the backend when the account is registered, so
    there is no create or delete here.
    """

    def __init__(self, context: IdentityContext, store: RemoteStoreClient, notifier: Notifier) -> None:
        super().__init__(context, store, notifier)
        self._profile: Profile | None = None
        self._loaded = False

    @property
    def profile(self) -> Profile | None:
        return self._profile

    @property
    def loaded(self) -> bool:
        return self._loaded

    def reset(self) -> None:
        self._profile = None
        self._loaded = False

    async def refresh(self) -> RepositoryResult[Profile]:
        """Load the profile row; a missing row is a successful ``None``."""

        identity = self._identity()
        if identity is None:
            self.reset()
            return RepositoryResult.failure(UnauthenticatedError())

        try:
            rows = await self._store.select(PROFILES_TABLE, filters={"id": identity.id})
            profile = _canonical(rows[0]) if rows else None
        except RemoteStoreError as exc:
            self._profile = None
            self._loaded = True
            return self._report_failure(
                "fetching profile",
                exc,
                description="Failed to fetch profile. Please try again.",
            )

        self._profile = profile
        self._loaded = True
        return RepositoryResult.success(profile)

    async def update(self, payload: ProfileUpdate) -> RepositoryResult[Profile]:
        identity = self._identity()
        if identity is None:
            return RepositoryResult.failure(UnauthenticatedError())

        try:
            row = await self._store.update(
                PROFILES_TABLE,
                payload.to_patch(),
                filters={"id": identity.id},
            )
            profile = _canonical(row)
        except RemoteStoreError as exc:
            return self._report_failure(
                "updating profile",
                exc,
                description="Failed to update profile. Please try again.",
            )

        self._profile = profile
        self._notifier.success("Profile updated", "Your profile has been updated successfully.")
        return RepositoryResult.success(profile)


__all__ = ["ProfileRepository"]
