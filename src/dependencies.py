"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.bbt.service import TrackerService
from src.config import Settings, get_settings


def get_tracker(request: Request) -> TrackerService:
    """Return the TrackerService created during application startup."""
    tracker: TrackerService | None = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Tracker not initialised")
    return tracker


# Annotated shortcuts for route signatures
Tracker = Annotated[TrackerService, Depends(get_tracker)]
AppSettings = Annotated[Settings, Depends(get_settings)]
