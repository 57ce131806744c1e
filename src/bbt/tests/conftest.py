"""Shared fixtures and reading builders for the BBT engine tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.bbt.base import Reading
from src.bbt.config_loader import AnalysisConfig, load_analysis_config
from src.bbt.persistence import InMemoryRepository
from src.bbt.service import TrackerService


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_reading(
    d: date,
    temperature: float = 97.0,
    cervix_height: str | None = None,
    ovulation_test: bool = False,
) -> Reading:
    return Reading(
        date=d,
        temperature=temperature,
        cervix_height=cervix_height,
        ovulation_test=ovulation_test,
    )


def build_month(
    year: int,
    month: int,
    days: range | list[int],
    base: float = 97.0,
    warm_days: range | list[int] = (),
    warm: float = 98.0,
) -> list[Reading]:
    """One reading per listed day; ``warm_days`` get the ``warm`` temperature."""
    warm_set = set(warm_days)
    return [
        make_reading(date(year, month, day), warm if day in warm_set else base)
        for day in days
    ]


def build_daily(start: date, temperatures: list[float]) -> list[Reading]:
    """Consecutive daily readings starting at ``start``."""
    return [
        make_reading(start + timedelta(days=i), t)
        for i, t in enumerate(temperatures)
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    """Load the bundled analysis config for tests."""
    return load_analysis_config()


@pytest.fixture
def two_month_readings() -> list[Reading]:
    """January warm on days 10–16, February warm on days 8–14."""
    return (
        build_month(2024, 1, range(1, 21), warm_days=range(10, 17))
        + build_month(2024, 2, range(1, 21), warm_days=range(8, 15))
    )


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def tracker(repository: InMemoryRepository, analysis_config: AnalysisConfig) -> TrackerService:
    return TrackerService(repository, config=analysis_config)
