"""Per-month fertile window detection from daily BBT readings.

Algorithm:
1. Group readings by ``YYYY-MM``.
2. Skip months with fewer than ``min_readings_per_month`` readings (14).
3. Within each remaining month, slide a ``window_days`` (7) span over the
   readings in date order and compute its mean temperature.  Spans are
   taken by position, so a month with missing days may produce a span
   covering more than seven calendar days.
4. The span with the highest mean is that month's fertile window.  Exact
   ties keep the earliest span.
"""

from __future__ import annotations

import logging
from itertools import groupby

from src.bbt.base import FertileWindow, Reading
from src.bbt.config_loader import AnalysisConfig, get_analysis_config

logger = logging.getLogger("bbt.analysis.fertile_window")


class FertileWindowDetector:
    """Find the warmest seven-reading span of each month.

    Usage::

        detector = FertileWindowDetector()
        windows = detector.detect(store.all())
        for w in windows:
            print(w.month, w.start_date, w.average_temperature)
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or get_analysis_config()

    @property
    def _fw_config(self):
        return self._config.fertile_window

    def detect(self, readings: list[Reading]) -> list[FertileWindow]:
        """Detect one fertile window per month with enough data.

        Args:
            readings: Readings in any order; at most one per date.

        Returns:
            FertileWindows in ascending month order.
        """
        ordered = sorted(readings, key=lambda r: r.date)
        windows: list[FertileWindow] = []

        for month, group in groupby(ordered, key=lambda r: r.month):
            month_readings = list(group)
            window = self.detect_month(month, month_readings)
            if window is not None:
                windows.append(window)

        return windows

    def detect_month(self, month: str, readings: list[Reading]) -> FertileWindow | None:
        """Return the warmest span of a single month, or None if data is short.

        Args:
            month:    ``YYYY-MM`` label of the bucket.
            readings: The month's readings in ascending date order.
        """
        fw = self._fw_config
        if len(readings) < fw.min_readings_per_month:
            logger.debug(
                "Month %s: %d readings (need %d), no window",
                month, len(readings), fw.min_readings_per_month,
            )
            return None

        span = fw.window_days
        best_offset = 0
        best_avg = float("-inf")
        for i in range(len(readings) - span + 1):
            avg = sum(r.temperature for r in readings[i:i + span]) / span
            # Strict comparison keeps the earliest span on ties
            if avg > best_avg:
                best_avg = avg
                best_offset = i

        chosen = tuple(readings[best_offset:best_offset + span])
        logger.debug(
            "Month %s: window %s → %s (avg %.2f°F)",
            month, chosen[0].date, chosen[-1].date, best_avg,
        )
        return FertileWindow(
            month=month,
            start_date=chosen[0].date,
            end_date=chosen[-1].date,
            average_temperature=best_avg,
            readings=chosen,
        )
