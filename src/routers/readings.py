"""Endpoints for reading entry, CSV import and CSV export."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from src.bbt.base import CSVFormatError, EmptyImportError, PersistenceError, ReadingValidationError
from src.bbt.csv_codec import export_filename
from src.dependencies import Tracker
from src.models.readings import ImportResult, ReadingRead, ReadingUpsert

router = APIRouter(prefix="/readings", tags=["readings"])
logger = logging.getLogger("bbt.routers.readings")


@router.get("", response_model=list[ReadingRead])
def list_readings(tracker: Tracker) -> Any:
    return [ReadingRead.from_reading(r) for r in tracker.readings]


# ---------- CSV ----------

@router.post("/import", response_model=ImportResult)
async def import_readings(request: Request, tracker: Tracker) -> Any:
    """Import raw CSV text from the request body.

    Rows for dates that already have a reading are ignored.
    """
    body = await request.body()
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")

    try:
        imported = await run_in_threadpool(tracker.import_csv, text)
    except CSVFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except EmptyImportError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except PersistenceError as exc:
        logger.error("CSV import not saved: %s", exc)
        raise HTTPException(status_code=503, detail="Readings could not be saved")
    return ImportResult(imported=imported)


@router.get("/export", response_class=PlainTextResponse)
def export_readings(tracker: Tracker) -> PlainTextResponse:
    if not tracker.readings:
        raise HTTPException(status_code=404, detail="No data to download")
    filename = export_filename()
    return PlainTextResponse(
        tracker.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------- Single readings ----------

@router.get("/{reading_date}", response_model=ReadingRead)
def get_reading(reading_date: date, tracker: Tracker) -> Any:
    for reading in tracker.readings:
        if reading.date == reading_date:
            return ReadingRead.from_reading(reading)
    raise HTTPException(status_code=404, detail="Reading not found")


@router.put("/{reading_date}", response_model=ReadingRead)
def upsert_reading(reading_date: date, body: ReadingUpsert, tracker: Tracker) -> Any:
    """Create or replace the reading for ``reading_date``."""
    try:
        stored = tracker.add_reading(
            reading_date,
            body.temperature,
            cervix_height=body.cervix_height,
            ovulation_test=body.ovulation_test,
        )
    except ReadingValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except PersistenceError as exc:
        logger.error("Reading for %s not saved: %s", reading_date, exc)
        raise HTTPException(status_code=503, detail="Reading could not be saved")
    return ReadingRead.from_reading(stored)
