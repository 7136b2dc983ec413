"""Health and process status endpoints."""

from typing import Any

from fastapi import APIRouter, Request

from conduit.catalog.registry import supported_platforms
from conduit.settings import get_settings

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe (no auth)."""
    return {"status": "ok"}


@router.get("/status")
async def status(request: Request) -> dict[str, Any]:
    """Process role, scheduler state and in-flight runs."""
    settings = get_settings()
    scheduler = getattr(request.app.state, "scheduler", None)
    runner = getattr(request.app.state, "runner", None)
    return {
        "environment": settings.environment,
        "role": settings.conduit_role,
        "scheduler_running": bool(scheduler and scheduler.running),
        "active_runs": runner.active_runs if runner else 0,
        "catalog_platforms": supported_platforms(),
    }
