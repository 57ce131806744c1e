"""Recompute and query layer over the record store.

``recompute`` is the single entry point that turns readings into fertile
windows and a prediction; callers invoke it after every store mutation.
``is_in_fertile_window`` is the only window-membership test; export and
the reading annotations both go through it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from src.bbt.base import FertileWindow, Prediction, Reading
from src.bbt.config_loader import AnalysisConfig, get_analysis_config
from src.bbt.cycle_predictor import CyclePredictor
from src.bbt.fertile_window import FertileWindowDetector

logger = logging.getLogger("bbt.analysis")


@dataclass(frozen=True)
class AnalysisResult:
    """Derived state for one snapshot of the record store."""

    fertile_windows: list[FertileWindow] = field(default_factory=list)
    prediction: Prediction | None = None


@dataclass(frozen=True)
class AnnotatedReading:
    """A reading with the flags a chart or table needs to style it."""

    reading: Reading
    in_fertile_window: bool

    @property
    def date(self) -> date:
        return self.reading.date

    @property
    def ovulation_test(self) -> bool:
        return self.reading.ovulation_test


@dataclass(frozen=True)
class TrackerSnapshot:
    """Everything a presentation layer needs, computed in one pass.

    Attributes:
        readings:        All readings in ascending date order.
        fertile_windows: Current windows in month order.
        prediction:      Next-window projection, or None.
        total_readings:  Number of readings.
        distinct_months: Number of ``YYYY-MM`` buckets with data.
        annotated:       Readings with fertile-window flags, same order.
    """

    readings: list[Reading]
    fertile_windows: list[FertileWindow]
    prediction: Prediction | None
    total_readings: int
    distinct_months: int
    annotated: list[AnnotatedReading]


def recompute(readings: list[Reading], config: AnalysisConfig | None = None) -> AnalysisResult:
    """Derive fertile windows and a prediction from ``readings``.

    Pure and idempotent: the same readings always produce the same result.
    """
    config = config or get_analysis_config()
    windows = FertileWindowDetector(config).detect(readings)
    prediction = CyclePredictor(config).predict(windows)
    logger.debug(
        "Recomputed %d windows from %d readings (prediction: %s)",
        len(windows), len(readings), "yes" if prediction else "no",
    )
    return AnalysisResult(fertile_windows=windows, prediction=prediction)


def is_in_fertile_window(d: date, windows: list[FertileWindow]) -> bool:
    """Return True if ``d`` falls inside any window (inclusive bounds)."""
    return any(w.contains(d) for w in windows)


def annotate(readings: list[Reading], windows: list[FertileWindow]) -> list[AnnotatedReading]:
    return [
        AnnotatedReading(reading=r, in_fertile_window=is_in_fertile_window(r.date, windows))
        for r in readings
    ]


def build_snapshot(
    readings: list[Reading],
    config: AnalysisConfig | None = None,
    result: AnalysisResult | None = None,
) -> TrackerSnapshot:
    """Build a TrackerSnapshot, recomputing unless ``result`` is supplied."""
    ordered = sorted(readings, key=lambda r: r.date)
    result = result or recompute(ordered, config)
    return TrackerSnapshot(
        readings=ordered,
        fertile_windows=list(result.fertile_windows),
        prediction=result.prediction,
        total_readings=len(ordered),
        distinct_months=len({r.month for r in ordered}),
        annotated=annotate(ordered, result.fertile_windows),
    )
