"""BBT fertility-cycle analysis engine.

This package turns a daily basal body temperature history into per-month
fertile windows and a prediction of the next one.

Core modules:
    base             Reading / FertileWindow / Prediction models and errors
    config_loader    Load/validate/hot-reload analysis_config.yaml
    store            In-memory record store (one reading per date)
    persistence      load/save port with JSON file and in-memory adapters
    csv_codec        CSV import and annotated export
    fertile_window   Warmest seven-reading span per month
    cycle_predictor  Next fertile window from the last two windows
    analysis         recompute, window membership, snapshots
    service          TrackerService tying the above together
"""

from src.bbt.analysis import TrackerSnapshot, build_snapshot, is_in_fertile_window, recompute
from src.bbt.base import (
    BBTError,
    CSVFormatError,
    EmptyImportError,
    FertileWindow,
    PersistenceError,
    Prediction,
    Reading,
    ReadingValidationError,
)
from src.bbt.config_loader import AnalysisConfig, get_analysis_config
from src.bbt.service import TrackerService
from src.bbt.store import RecordStore

__all__ = [
    "Reading",
    "FertileWindow",
    "Prediction",
    "BBTError",
    "ReadingValidationError",
    "CSVFormatError",
    "EmptyImportError",
    "PersistenceError",
    "AnalysisConfig",
    "get_analysis_config",
    "RecordStore",
    "TrackerService",
    "TrackerSnapshot",
    "build_snapshot",
    "recompute",
    "is_in_fertile_window",
]
