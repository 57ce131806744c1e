"""Read-only endpoints over derived state: windows, prediction, snapshot."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.dependencies import Tracker
from src.models.readings import (
    FertileWindowRead,
    PredictionRead,
    SnapshotRead,
    WindowMembership,
)

router = APIRouter(tags=["analysis"])


@router.get("/fertile-windows", response_model=list[FertileWindowRead])
def list_fertile_windows(tracker: Tracker) -> Any:
    return [FertileWindowRead.from_window(w) for w in tracker.fertile_windows]


@router.get("/fertile-windows/contains", response_model=WindowMembership)
def fertile_window_contains(
    tracker: Tracker,
    on: date = Query(alias="date"),
) -> Any:
    return WindowMembership(date=on, in_fertile_window=tracker.is_in_fertile_window(on))


@router.get("/prediction", response_model=PredictionRead)
def get_prediction(tracker: Tracker) -> Any:
    prediction = tracker.prediction
    if prediction is None:
        raise HTTPException(
            status_code=404,
            detail="Not enough data: at least two fertile windows are required",
        )
    return PredictionRead.from_prediction(prediction)


@router.get("/snapshot", response_model=SnapshotRead)
def get_snapshot(tracker: Tracker) -> Any:
    return SnapshotRead.from_snapshot(tracker.snapshot())
