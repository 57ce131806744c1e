"""Tests for per-month fertile window detection."""

from __future__ import annotations

from datetime import date

import pytest

from src.bbt.config_loader import AnalysisConfig
from src.bbt.fertile_window import FertileWindowDetector
from src.bbt.tests.conftest import build_daily, build_month


class TestFertileWindowDetector:
    def test_warm_week_selected(self, analysis_config: AnalysisConfig) -> None:
        readings = build_month(2024, 1, range(1, 21), warm_days=range(10, 17))
        windows = FertileWindowDetector(analysis_config).detect(readings)
        assert len(windows) == 1
        w = windows[0]
        assert w.month == "2024-01"
        assert w.start_date == date(2024, 1, 10)
        assert w.end_date == date(2024, 1, 16)
        assert w.average_temperature == pytest.approx(98.0)
        assert len(w.readings) == 7

    def test_thirteen_readings_yield_no_window(self, analysis_config: AnalysisConfig) -> None:
        readings = build_month(2024, 1, range(1, 14))
        assert FertileWindowDetector(analysis_config).detect(readings) == []

    def test_fourteen_readings_yield_one_window(self, analysis_config: AnalysisConfig) -> None:
        readings = build_month(2024, 1, range(1, 15))
        windows = FertileWindowDetector(analysis_config).detect(readings)
        assert len(windows) == 1

    def test_tie_resolves_to_earliest_span(self, analysis_config: AnalysisConfig) -> None:
        # Two separate warm weeks with identical averages
        readings = build_month(
            2024, 3, range(1, 29),
            warm_days=list(range(3, 10)) + list(range(18, 25)),
        )
        windows = FertileWindowDetector(analysis_config).detect(readings)
        assert windows[0].start_date == date(2024, 3, 3)

    def test_flat_month_picks_first_span(self, analysis_config: AnalysisConfig) -> None:
        readings = build_month(2024, 4, range(1, 31), base=97.3)
        windows = FertileWindowDetector(analysis_config).detect(readings)
        assert windows[0].start_date == date(2024, 4, 1)
        assert windows[0].end_date == date(2024, 4, 7)

    def test_spans_are_by_position_not_calendar(self, analysis_config: AnalysisConfig) -> None:
        # Every other day recorded: seven readings cover thirteen calendar days
        days = list(range(1, 29, 2))  # 14 readings
        readings = build_month(2024, 5, days, warm_days=days[-7:])
        windows = FertileWindowDetector(analysis_config).detect(readings)
        assert len(windows) == 1
        assert windows[0].start_date == date(2024, 5, 15)
        assert windows[0].end_date == date(2024, 5, 27)

    def test_months_are_independent(
        self, analysis_config: AnalysisConfig, two_month_readings: list
    ) -> None:
        sparse_march = build_month(2024, 3, range(1, 10), base=99.5)
        windows = FertileWindowDetector(analysis_config).detect(two_month_readings + sparse_march)
        assert [w.month for w in windows] == ["2024-01", "2024-02"]
        assert windows[1].start_date == date(2024, 2, 8)

    def test_span_never_crosses_month_boundary(self, analysis_config: AnalysisConfig) -> None:
        # Warmest run straddles Jan/Feb but each month is scanned on its own
        temps = [97.0] * 28 + [99.0] * 6 + [97.0] * 24
        readings = build_daily(date(2024, 1, 4), temps)
        windows = FertileWindowDetector(analysis_config).detect(readings)
        for w in windows:
            assert w.start_date.month == w.end_date.month

    def test_input_order_does_not_matter(
        self, analysis_config: AnalysisConfig, two_month_readings: list
    ) -> None:
        detector = FertileWindowDetector(analysis_config)
        assert detector.detect(list(reversed(two_month_readings))) == detector.detect(
            two_month_readings
        )

    def test_empty_input(self, analysis_config: AnalysisConfig) -> None:
        assert FertileWindowDetector(analysis_config).detect([]) == []
