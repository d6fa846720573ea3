"""Version 1 API routes for the reminders service."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from remindo.api.v1.notifications import router as notifications_router
from remindo.api.v1.reminders import router as reminders_router
from remindo.core.config import Settings, get_settings

router = APIRouter()
router.include_router(reminders_router)
router.include_router(notifications_router)


@router.get("/health", tags=["health"])
async def health_check(settings: Settings = Depends(get_settings)) -> dict[str, dict[str, str]]:
    """Report the service health information."""
    return {"data": {"status": "ok", "version": settings.version}}
