"""Persistence port for the record store.

The analysis engine only needs ``load()`` and ``save(readings)``; derived
state (fertile windows, predictions) is never persisted and is recomputed
after every load.

Adapters:
    JsonFileRepository  flat JSON array of reading records on disk
    InMemoryRepository  process-local list, for tests and ephemeral use
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

from src.bbt.base import PersistenceError, Reading, ReadingValidationError
from src.bbt.config_loader import AnalysisConfig, get_analysis_config

logger = logging.getLogger("bbt.persistence")


class ReadingRepository(ABC):
    """Abstract load/save port for the flat list of readings."""

    @abstractmethod
    def load(self) -> list[Reading]:
        """Return every persisted reading."""

    @abstractmethod
    def save(self, readings: list[Reading]) -> None:
        """Replace the persisted readings with ``readings``."""


class InMemoryRepository(ReadingRepository):
    """Repository backed by a plain list.  Nothing survives the process."""

    def __init__(self, readings: list[Reading] | None = None) -> None:
        self._readings: list[Reading] = list(readings or [])
        self.save_count = 0

    def load(self) -> list[Reading]:
        return list(self._readings)

    def save(self, readings: list[Reading]) -> None:
        self._readings = list(readings)
        self.save_count += 1


class JsonFileRepository(ReadingRepository):
    """Repository storing readings as a JSON array of records.

    Each record has the layout
    ``{"date", "temperature", "secondarySignal", "ovulationTest"}``.
    Writes go to a temporary sibling file first and are moved into place,
    so a crash mid-write never leaves a truncated file behind.
    """

    def __init__(self, path: Path | str, config: AnalysisConfig | None = None) -> None:
        self._path = Path(path)
        self._config = config or get_analysis_config()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Reading]:
        """Read readings from disk.

        A missing file is an empty history.  Records that fail validation
        are skipped with a warning.

        Raises:
            PersistenceError: If the file is not a JSON array.
        """
        if not self._path.exists():
            logger.info("No reading history at %s; starting empty", self._path)
            return []

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read reading history {self._path}: {exc}") from exc
        if not isinstance(raw, list):
            raise PersistenceError(
                f"Reading history {self._path} must be a JSON array, got {type(raw).__name__}"
            )

        tc = self._config.temperature
        readings: list[Reading] = []
        for i, record in enumerate(raw):
            try:
                readings.append(Reading.from_dict(record, tc.min_f, tc.max_f))
            except ReadingValidationError as exc:
                logger.warning("Skipping invalid stored record #%d: %s", i, exc)

        logger.info("Loaded %d readings from %s", len(readings), self._path)
        return readings

    def save(self, readings: list[Reading]) -> None:
        """Write all readings, replacing the previous file.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        tmp = self._path.with_name(self._path.name + ".tmp")
        payload = json.dumps([r.to_dict() for r in readings], indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write reading history {self._path}: {exc}") from exc
        logger.debug("Saved %d readings to %s", len(readings), self._path)
