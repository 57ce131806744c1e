"""CSV import and export for BBT readings.

Import is best-effort: the header must name a date and a temperature
column, but individual rows that cannot be parsed are skipped rather than
reported.  Only the aggregate "nothing imported" condition is an error,
and that is raised by the caller (see ``TrackerService.import_csv``).

Accepted header keywords (case-insensitive substring match, first column wins):
    date                 → reading date (required)
    temp                 → temperature in °F (required)
    cervix / height      → cervix height (optional)
    ovulation / strip    → ovulation test result (optional)

Accepted date shapes:
    YYYY-MM-DD
    M/D/YYYY, M/D/YY     (two-digit years are read as 20YY)
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Container

from src.bbt.analysis import is_in_fertile_window
from src.bbt.base import (
    CSVFormatError,
    FertileWindow,
    Reading,
    ReadingValidationError,
    coerce_flag,
    coerce_temperature,
    parse_iso_date,
)
from src.bbt.config_loader import AnalysisConfig, get_analysis_config

logger = logging.getLogger("bbt.csv")

EXPORT_HEADER = ["Date", "Temperature (°F)", "Cervix Height", "Ovulation Strip", "Fertile Window"]

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_US_DATE_RE = re.compile(r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{2}|\d{4})$")


# ---------------------------------------------------------------------------
# Header resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnMap:
    """Column indices resolved from a CSV header row."""

    date: int
    temperature: int
    cervix: int | None = None
    ovulation: int | None = None

    @property
    def min_fields(self) -> int:
        """Fields a row needs before it can be considered."""
        return max(self.date, self.temperature) + 1


def _find_column(headers: list[str], *keywords: str) -> int | None:
    for i, header in enumerate(headers):
        if any(k in header for k in keywords):
            return i
    return None


def resolve_columns(header_row: list[str]) -> ColumnMap:
    """Map header cells to column indices.

    Raises:
        CSVFormatError: If no date column or no temperature column is present.
    """
    headers = [h.strip().lower() for h in header_row]
    date_idx = _find_column(headers, "date")
    temp_idx = _find_column(headers, "temp")
    if date_idx is None or temp_idx is None:
        raise CSVFormatError(
            'CSV must contain columns with "date" and "temperature" in the headers'
        )
    return ColumnMap(
        date=date_idx,
        temperature=temp_idx,
        cervix=_find_column(headers, "cervix", "height"),
        ovulation=_find_column(headers, "ovulation", "strip"),
    )


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------


def parse_csv_date(text: str) -> date | None:
    """Parse a CSV date cell, returning None for unrecognised or invalid dates."""
    text = text.strip()
    if _ISO_DATE_RE.match(text):
        try:
            return parse_iso_date(text)
        except ReadingValidationError:
            return None

    m = _US_DATE_RE.match(text)
    if m is None:
        return None
    year = m.group("year")
    if len(year) == 2:
        year = "20" + year
    try:
        return date(int(year), int(m.group("month")), int(m.group("day")))
    except ValueError:
        return None


def parse_ovulation(text: str) -> bool:
    return coerce_flag(text)


def _cell(row: list[str], idx: int | None) -> str:
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def parse_csv(
    text: str,
    existing_dates: Container[date] = frozenset(),
    config: AnalysisConfig | None = None,
) -> list[Reading]:
    """Parse CSV text into new readings.

    Rows whose date is already in ``existing_dates`` are dropped, as are
    later rows repeating a date seen earlier in the same file.

    Args:
        text:           Raw CSV text; the first line is the header.
        existing_dates: Dates already stored; these are never overwritten.
        config:         Analysis config (temperature range).

    Returns:
        New readings in file order.  May be empty.

    Raises:
        CSVFormatError: If the header lacks a date or temperature column.
    """
    config = config or get_analysis_config()
    tc = config.temperature

    rows = csv.reader(io.StringIO(text.lstrip("\ufeff").strip()))
    header = next(rows, None)
    if header is None:
        raise CSVFormatError("CSV is empty; a header row is required")
    columns = resolve_columns(header)

    readings: list[Reading] = []
    seen: set[date] = set()
    skipped = 0

    for line_no, row in enumerate(rows, start=2):
        if len(row) < columns.min_fields:
            skipped += 1
            continue

        d = parse_csv_date(row[columns.date])
        if d is None:
            logger.debug("Line %d: unrecognised date %r, skipped", line_no, row[columns.date])
            skipped += 1
            continue

        try:
            temp = coerce_temperature(row[columns.temperature].strip(), tc.min_f, tc.max_f)
        except ReadingValidationError as exc:
            logger.debug("Line %d: %s, skipped", line_no, exc)
            skipped += 1
            continue

        if d in existing_dates or d in seen:
            logger.debug("Line %d: %s already recorded, skipped", line_no, d)
            skipped += 1
            continue

        seen.add(d)
        readings.append(
            Reading(
                date=d,
                temperature=temp,
                cervix_height=_cell(row, columns.cervix) or None,
                ovulation_test=parse_ovulation(_cell(row, columns.ovulation)),
            )
        )

    logger.info("Parsed %d new readings from CSV (%d rows skipped)", len(readings), skipped)
    return readings


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_csv(readings: list[Reading], windows: list[FertileWindow]) -> str:
    """Serialise readings plus their fertile-window flag to CSV text."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for r in readings:
        writer.writerow([
            r.date.isoformat(),
            repr(r.temperature),
            r.cervix_height or "",
            "Yes" if r.ovulation_test else "No",
            "Yes" if is_in_fertile_window(r.date, windows) else "No",
        ])
    return buf.getvalue()


def export_filename(today: date | None = None) -> str:
    """Download filename for an export made on ``today``."""
    return f"bbt-data-{(today or date.today()).isoformat()}.csv"
