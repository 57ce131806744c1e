"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["system"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Reports whether the tracker loaded its reading history.
    """
    settings = request.app.state.settings
    tracker = getattr(request.app.state, "tracker", None)

    return {
        "status": "healthy" if tracker is not None else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "readings": len(tracker.readings) if tracker is not None else 0,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
