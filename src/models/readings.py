"""Pydantic models for readings, fertile windows, predictions and snapshots."""

from __future__ import annotations

from datetime import date

from src.bbt.analysis import AnnotatedReading, TrackerSnapshot
from src.bbt.base import FertileWindow, Prediction, Reading
from src.models.base import TrackerBase


# ---------- Readings ----------

class ReadingUpsert(TrackerBase):
    # Range checks happen in the record store so direct entry and the API
    # share one set of rules.
    temperature: float
    cervix_height: str | None = None
    ovulation_test: bool = False


class ReadingRead(TrackerBase):
    date: date
    temperature: float
    cervix_height: str | None = None
    ovulation_test: bool = False

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingRead":
        return cls(
            date=reading.date,
            temperature=reading.temperature,
            cervix_height=reading.cervix_height,
            ovulation_test=reading.ovulation_test,
        )


class AnnotatedReadingRead(ReadingRead):
    in_fertile_window: bool = False

    @classmethod
    def from_annotated(cls, annotated: AnnotatedReading) -> "AnnotatedReadingRead":
        r = annotated.reading
        return cls(
            date=r.date,
            temperature=r.temperature,
            cervix_height=r.cervix_height,
            ovulation_test=r.ovulation_test,
            in_fertile_window=annotated.in_fertile_window,
        )


class ImportResult(TrackerBase):
    imported: int


# ---------- Derived state ----------

class FertileWindowRead(TrackerBase):
    month: str
    start_date: date
    end_date: date
    average_temperature: float

    @classmethod
    def from_window(cls, window: FertileWindow) -> "FertileWindowRead":
        return cls(
            month=window.month,
            start_date=window.start_date,
            end_date=window.end_date,
            average_temperature=round(window.average_temperature, 3),
        )


class PredictionRead(TrackerBase):
    start_date: date
    end_date: date
    cycle_length_days: int
    average_cycle_length: float

    @classmethod
    def from_prediction(cls, prediction: Prediction) -> "PredictionRead":
        return cls(
            start_date=prediction.start_date,
            end_date=prediction.end_date,
            cycle_length_days=prediction.cycle_length_days,
            average_cycle_length=prediction.average_cycle_length,
        )


class WindowMembership(TrackerBase):
    date: date
    in_fertile_window: bool


class SnapshotRead(TrackerBase):
    readings: list[AnnotatedReadingRead]
    fertile_windows: list[FertileWindowRead]
    prediction: PredictionRead | None = None
    total_readings: int
    distinct_months: int

    @classmethod
    def from_snapshot(cls, snapshot: TrackerSnapshot) -> "SnapshotRead":
        return cls(
            readings=[AnnotatedReadingRead.from_annotated(a) for a in snapshot.annotated],
            fertile_windows=[FertileWindowRead.from_window(w) for w in snapshot.fertile_windows],
            prediction=(
                PredictionRead.from_prediction(snapshot.prediction)
                if snapshot.prediction
                else None
            ),
            total_readings=snapshot.total_readings,
            distinct_months=snapshot.distinct_months,
        )
