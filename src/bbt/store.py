"""In-memory record store for daily BBT readings.

The store holds at most one reading per calendar date and keeps readings in
ascending date order.  Direct entry overwrites an existing date (upsert);
bulk import via ``extend_new`` never does.
"""

from __future__ import annotations

import bisect
import logging
from datetime import date
from typing import Iterable, Iterator

from src.bbt.base import Reading, ReadingValidationError, coerce_temperature, parse_iso_date
from src.bbt.config_loader import AnalysisConfig, get_analysis_config

logger = logging.getLogger("bbt.store")


class RecordStore:
    """Ordered collection of readings keyed by date.

    Usage::

        store = RecordStore()
        store.upsert(Reading(date=date(2024, 1, 1), temperature=97.4))
        store.all()          # [Reading(...)]
        store.distinct_months()  # 1
    """

    def __init__(
        self,
        readings: Iterable[Reading] = (),
        config: AnalysisConfig | None = None,
    ) -> None:
        self._config = config or get_analysis_config()
        self._dates: list[date] = []
        self._readings: list[Reading] = []
        for reading in readings:
            self.upsert(reading)

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(list(self._readings))

    def __contains__(self, d: object) -> bool:
        if not isinstance(d, date):
            return False
        return self._index_of(d) is not None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def validate(self, reading: Reading) -> Reading:
        """Return a normalized copy of ``reading`` or raise.

        Raises:
            ReadingValidationError: If the date or temperature is invalid.
        """
        if not isinstance(reading, Reading):
            raise ReadingValidationError(f"Expected a Reading, got {type(reading).__name__}")
        tc = self._config.temperature
        cervix = reading.cervix_height
        if cervix is not None:
            cervix = str(cervix).strip() or None
        return Reading(
            date=parse_iso_date(reading.date),
            temperature=coerce_temperature(reading.temperature, tc.min_f, tc.max_f),
            cervix_height=cervix,
            ovulation_test=bool(reading.ovulation_test),
        )

    def upsert(self, reading: Reading) -> Reading:
        """Insert ``reading`` or replace the existing reading for its date.

        Returns:
            The stored (normalized) reading.

        Raises:
            ReadingValidationError: If the reading is invalid.  The store is
                left unchanged.
        """
        clean = self.validate(reading)
        idx = self._index_of(clean.date)
        if idx is not None:
            self._readings[idx] = clean
            logger.debug("Replaced reading for %s", clean.date)
        else:
            pos = bisect.bisect_left(self._dates, clean.date)
            self._dates.insert(pos, clean.date)
            self._readings.insert(pos, clean)
            logger.debug("Inserted reading for %s", clean.date)
        return clean

    def extend_new(self, readings: Iterable[Reading]) -> list[Reading]:
        """Insert readings whose date is not yet stored; skip the rest.

        All readings are validated before any is inserted, so an invalid
        reading leaves the store unchanged.

        Returns:
            The readings actually inserted, in input order.
        """
        pending: dict[date, Reading] = {}
        for reading in readings:
            clean = self.validate(reading)
            if clean.date in self or clean.date in pending:
                continue
            pending[clean.date] = clean
        for clean in pending.values():
            self.upsert(clean)
        return list(pending.values())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all(self) -> list[Reading]:
        """Return all readings in ascending date order."""
        return list(self._readings)

    def get(self, d: date) -> Reading | None:
        idx = self._index_of(d)
        return self._readings[idx] if idx is not None else None

    def dates(self) -> set[date]:
        return set(self._dates)

    def count(self) -> int:
        return len(self._readings)

    def distinct_months(self) -> int:
        """Number of distinct ``YYYY-MM`` buckets with at least one reading."""
        return len({r.month for r in self._readings})

    def _index_of(self, d: date) -> int | None:
        pos = bisect.bisect_left(self._dates, d)
        if pos < len(self._dates) and self._dates[pos] == d:
            return pos
        return None
