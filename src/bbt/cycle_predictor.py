"""Next fertile window prediction.

Uses the two most recent fertile windows.  Each window's cycle length is
estimated from where in its month the window starts: a window starting on
day 14 is read as a canonical 28-day cycle, and every day earlier or later
shortens or lengthens the estimate by one day, clamped to [21, 35].  The
two estimates are averaged and the next window is projected that many days
after the last window's start.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from src.bbt.base import FertileWindow, Prediction
from src.bbt.config_loader import AnalysisConfig, get_analysis_config

logger = logging.getLogger("bbt.analysis.cycle_predictor")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


class CyclePredictor:
    """Project the next fertile window from the last two detected windows.

    Usage::

        predictor = CyclePredictor()
        prediction = predictor.predict(windows)
        if prediction:
            print(prediction.start_date, prediction.cycle_length_days)
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or get_analysis_config()

    def estimate_cycle_length(self, window: FertileWindow) -> int:
        """Estimate the length of the cycle a fertile window belongs to."""
        cl = self._config.cycle_length
        offset = window.start_date.day - cl.reference_day
        return cl.clamp(cl.baseline_days + offset)

    def predict(self, windows: list[FertileWindow]) -> Prediction | None:
        """Predict the next fertile window.

        Args:
            windows: Detected windows in ascending month order.

        Returns:
            A Prediction, or None when fewer than two windows exist.
        """
        if len(windows) < 2:
            return None

        previous, last = windows[-2], windows[-1]
        estimates = [self.estimate_cycle_length(previous), self.estimate_cycle_length(last)]
        average = sum(estimates) / len(estimates)
        cycle_length = round_half_up(average)

        next_start = last.start_date + timedelta(days=cycle_length)
        prediction = Prediction.from_start(
            start_date=next_start,
            cycle_length_days=cycle_length,
            average_cycle_length=average,
            window_days=self._config.fertile_window.window_days,
        )
        logger.debug(
            "Predicted next window %s → %s (cycle estimates %s, avg %.1f)",
            prediction.start_date, prediction.end_date, estimates, average,
        )
        return prediction
