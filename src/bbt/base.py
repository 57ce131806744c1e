"""Canonical data models and error types for the BBT analysis engine.

Readings are the only persisted state.  FertileWindow and Prediction are
derived from the current set of readings and are never edited in place:
every mutation of the record store is followed by a full recompute.

All dates are civil calendar dates (``datetime.date``), never instants, so
no timezone conversion can shift a reading onto a neighbouring day.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class BBTError(Exception):
    """Base class for all BBT tracker domain errors."""


class ReadingValidationError(BBTError, ValueError):
    """Raised when a single reading fails its range or format checks.

    The offending reading is never stored.
    """


class CSVFormatError(BBTError, ValueError):
    """Raised when a CSV header lacks the required date/temperature columns."""


class EmptyImportError(BBTError):
    """Raised when a CSV import yields zero new valid readings."""


class PersistenceError(BBTError):
    """Raised when persisted reading state cannot be read back."""


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def parse_iso_date(value: date | str) -> date:
    """Coerce a ``date`` or ``YYYY-MM-DD`` string to a civil date.

    Raises:
        ReadingValidationError: If the value is not a valid calendar date.
    """
    # datetime is a date subclass; keep only the calendar part
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ReadingValidationError(f"Invalid date: {value!r}")
    text = value.strip()
    parts = text.split("-")
    if [len(p) for p in parts] != [4, 2, 2] or not all(p.isdigit() for p in parts):
        raise ReadingValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError as exc:
        raise ReadingValidationError(f"Invalid calendar date: {value!r}") from exc


def coerce_temperature(value: Any, min_f: float, max_f: float) -> float:
    """Parse a temperature in °F and check it lies within [min_f, max_f].

    Raises:
        ReadingValidationError: If the value is non-numeric, non-finite or
            out of range.
    """
    if isinstance(value, bool):
        raise ReadingValidationError(f"Temperature must be numeric, got {value!r}")
    try:
        temp = float(value)
    except (TypeError, ValueError) as exc:
        raise ReadingValidationError(
            f"Temperature must be numeric, got {value!r}"
        ) from exc
    if not math.isfinite(temp) or not (min_f <= temp <= max_f):
        raise ReadingValidationError(
            f"Temperature {value!r} is out of range [{min_f}, {max_f}] °F"
        )
    return temp


def month_key(d: date) -> str:
    """Return the ``YYYY-MM`` bucket a date belongs to."""
    return f"{d.year:04d}-{d.month:02d}"


POSITIVE_FLAG_VALUES = frozenset({"true", "1", "yes"})


def coerce_flag(value: Any) -> bool:
    """Interpret a yes/no flag stored as a bool or as text.

    Raises:
        ReadingValidationError: If the value is neither a bool, text nor null.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in POSITIVE_FLAG_VALUES
    raise ReadingValidationError(f"Flag must be a boolean, got {value!r}")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reading:
    """One calendar day's measurements.

    Attributes:
        date:           Civil date; unique key within the record store.
        temperature:    Basal body temperature in °F.
        cervix_height:  Secondary signal ('Low', 'Medium', 'High' or free
                        text).  ``None`` when not recorded.
        ovulation_test: True for a positive ovulation (LH) strip.
    """

    date: date
    temperature: float
    cervix_height: str | None = None
    ovulation_test: bool = False

    @property
    def month(self) -> str:
        return month_key(self.date)

    def to_dict(self) -> dict:
        """Serialise to the persisted record layout."""
        return {
            "date": self.date.isoformat(),
            "temperature": self.temperature,
            "secondarySignal": self.cervix_height,
            "ovulationTest": self.ovulation_test,
        }

    @classmethod
    def from_dict(cls, data: dict, min_f: float = 95.0, max_f: float = 105.0) -> "Reading":
        """Build a validated Reading from a persisted record.

        Raises:
            ReadingValidationError: If the record fails validation.
        """
        if not isinstance(data, dict):
            raise ReadingValidationError(f"Reading record must be an object, got {data!r}")
        cervix = data.get("secondarySignal")
        return cls(
            date=parse_iso_date(data.get("date")),
            temperature=coerce_temperature(data.get("temperature"), min_f, max_f),
            cervix_height=str(cervix) if cervix not in (None, "") else None,
            ovulation_test=coerce_flag(data.get("ovulationTest")),
        )


@dataclass(frozen=True)
class FertileWindow:
    """The warmest seven-reading span of one month.

    Attributes:
        month:               ``YYYY-MM`` bucket the window was derived from.
        start_date:          Date of the first reading in the span.
        end_date:            Date of the seventh reading in the span.
        average_temperature: Mean of the seven temperatures.
        readings:            The readings making up the span.
    """

    month: str
    start_date: date
    end_date: date
    average_temperature: float
    readings: tuple[Reading, ...] = field(default=(), repr=False)

    def contains(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date


@dataclass(frozen=True)
class Prediction:
    """Projected next fertile window.

    Attributes:
        start_date:           First day of the projected window.
        end_date:             Last day of the projected window (inclusive).
        cycle_length_days:    Rounded average cycle length used for the
                              projection.
        average_cycle_length: Unrounded mean of the per-window estimates.
    """

    start_date: date
    end_date: date
    cycle_length_days: int
    average_cycle_length: float

    @classmethod
    def from_start(
        cls,
        start_date: date,
        cycle_length_days: int,
        average_cycle_length: float,
        window_days: int = 7,
    ) -> "Prediction":
        return cls(
            start_date=start_date,
            end_date=start_date + timedelta(days=window_days - 1),
            cycle_length_days=cycle_length_days,
            average_cycle_length=average_cycle_length,
        )
