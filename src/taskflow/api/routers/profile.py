"""JSON routes for the current user's profile."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import UserSessionDependency
from ...errors import NotFoundError
from ...models import Profile
from ...schemas import ProfileUpdate

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/", response_model=Profile, summary="Read the current user's profile")
async def read_profile(user_session: UserSessionDependency) -> Profile:
    repository = user_session.profile
    if not repository.loaded:
        result = await repository.refresh()
        if result.error is not None:
            raise result.error
    if repository.profile is None:
        raise NotFoundError("Profile not found.")
    return repository.profile


@router.patch("/", response_model=Profile, summary="Update the current user's profile")
async def update_profile(payload: ProfileUpdate, user_session: UserSessionDependency) -> Profile:
    result = await user_session.profile.update(payload)
    if result.error is not None:
        raise result.error
    return result.value  # type: ignore[return-value]
