from __future__ import annotations

from fastapi import APIRouter

from . import auth, dashboard, pages

router = APIRouter()
router.include_router(pages.router)
router.include_router(auth.router, prefix="/auth")
router.include_router(dashboard.router, prefix="/dashboard")

__all__ = ["router"]
