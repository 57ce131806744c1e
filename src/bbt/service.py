"""Tracker service: record store + persistence + recompute.

Every mutation follows the same sequence under a single lock:
validate → mutate store → recompute windows and prediction → save through
the repository.  A failed save restores the previous readings, so readers
never observe unsaved readings or stale derived state.
"""

from __future__ import annotations

import logging
import threading
from datetime import date

from src.bbt.analysis import AnalysisResult, TrackerSnapshot, build_snapshot, is_in_fertile_window, recompute
from src.bbt.base import EmptyImportError, FertileWindow, Prediction, Reading
from src.bbt.config_loader import AnalysisConfig, get_analysis_config
from src.bbt.csv_codec import export_csv, parse_csv
from src.bbt.persistence import InMemoryRepository, ReadingRepository
from src.bbt.store import RecordStore

logger = logging.getLogger("bbt.service")


class TrackerService:
    """Facade used by the API layer and any other consumer.

    Usage::

        service = TrackerService(JsonFileRepository("bbt-data.json"))
        service.add_reading(date(2024, 1, 5), 97.6, cervix_height="Low")
        service.import_csv(text)
        print(service.snapshot().prediction)
    """

    def __init__(
        self,
        repository: ReadingRepository | None = None,
        config: AnalysisConfig | None = None,
    ) -> None:
        self._config = config or get_analysis_config()
        self._repository = repository or InMemoryRepository()
        self._lock = threading.Lock()
        self._store = RecordStore(self._repository.load(), config=self._config)
        self._result: AnalysisResult = recompute(self._store.all(), self._config)
        logger.info(
            "Tracker ready: %d readings, %d fertile windows",
            self._store.count(), len(self._result.fertile_windows),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_reading(
        self,
        reading_date: date | str,
        temperature: float | str,
        cervix_height: str | None = None,
        ovulation_test: bool = False,
    ) -> Reading:
        """Record a reading, replacing any existing reading for the date.

        Raises:
            ReadingValidationError: If the reading is invalid; nothing is stored.
            PersistenceError:       If saving fails; the previous readings are kept.
        """
        with self._lock:
            previous = self._store.all()
            stored = self._store.upsert(
                Reading(
                    date=reading_date,  # type: ignore[arg-type]
                    temperature=temperature,  # type: ignore[arg-type]
                    cervix_height=cervix_height,
                    ovulation_test=ovulation_test,
                )
            )
            self._commit(previous)
        logger.info("Recorded %.1f°F for %s", stored.temperature, stored.date)
        return stored

    def import_csv(self, text: str) -> int:
        """Import readings from CSV text without overwriting existing dates.

        Returns:
            Number of readings added.

        Raises:
            CSVFormatError:   If the header lacks date/temperature columns.
            EmptyImportError: If no new valid rows were found.
            PersistenceError: If saving fails; the previous readings are kept.
        """
        with self._lock:
            parsed = parse_csv(text, self._store.dates(), self._config)
            if not parsed:
                raise EmptyImportError("No valid temperature data found in CSV")
            previous = self._store.all()
            inserted = self._store.extend_new(parsed)
            self._commit(previous)
        logger.info("Imported %d readings from CSV", len(inserted))
        return len(inserted)

    def _commit(self, previous: list[Reading]) -> None:
        readings = self._store.all()
        result = recompute(readings, self._config)
        try:
            self._repository.save(readings)
        except Exception:
            logger.error("Save failed; restoring %d previous readings", len(previous))
            self._store = RecordStore(previous, config=self._config)
            raise
        self._result = result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def readings(self) -> list[Reading]:
        return self._store.all()

    @property
    def fertile_windows(self) -> list[FertileWindow]:
        return list(self._result.fertile_windows)

    @property
    def prediction(self) -> Prediction | None:
        return self._result.prediction

    def is_in_fertile_window(self, d: date) -> bool:
        return is_in_fertile_window(d, self._result.fertile_windows)

    def export_csv(self) -> str:
        with self._lock:
            return export_csv(self._store.all(), self._result.fertile_windows)

    def snapshot(self) -> TrackerSnapshot:
        with self._lock:
            return build_snapshot(self._store.all(), self._config, self._result)
