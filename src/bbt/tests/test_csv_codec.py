"""Tests for CSV import parsing and annotated export."""

from __future__ import annotations

from datetime import date

import pytest

from src.bbt.base import CSVFormatError
from src.bbt.config_loader import AnalysisConfig
from src.bbt.csv_codec import (
    EXPORT_HEADER,
    export_csv,
    export_filename,
    parse_csv,
    parse_csv_date,
    resolve_columns,
)
from src.bbt.fertile_window import FertileWindowDetector
from src.bbt.tests.conftest import build_month, make_reading


class TestResolveColumns:
    def test_required_and_optional_columns(self) -> None:
        cols = resolve_columns(["Day Date", "BBT Temp", "Cervix", "LH Strip"])
        assert (cols.date, cols.temperature, cols.cervix, cols.ovulation) == (0, 1, 2, 3)

    def test_keywords_are_case_insensitive(self) -> None:
        cols = resolve_columns(["TEMPERATURE", "DATE", "Height", "Ovulation"])
        assert cols.date == 1
        assert cols.temperature == 0
        assert cols.min_fields == 2

    def test_optional_columns_absent(self) -> None:
        cols = resolve_columns(["date", "temp"])
        assert cols.cervix is None
        assert cols.ovulation is None

    @pytest.mark.parametrize("header", [["when", "temp"], ["date", "value"], []])
    def test_missing_required_column(self, header: list[str]) -> None:
        with pytest.raises(CSVFormatError):
            resolve_columns(header)


class TestParseCsvDate:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2024-02-01", date(2024, 2, 1)),
            (" 2024-12-31 ", date(2024, 12, 31)),
            ("3/7/2024", date(2024, 3, 7)),
            ("03/07/2024", date(2024, 3, 7)),
            ("3/7/24", date(2024, 3, 7)),
        ],
    )
    def test_accepted_shapes(self, text: str, expected: date) -> None:
        assert parse_csv_date(text) == expected

    @pytest.mark.parametrize(
        "text",
        ["13/40/2024", "2/30/2024", "2024-02-30", "20240201", "Feb 1 2024", "", "1/2/024"],
    )
    def test_rejected_shapes(self, text: str) -> None:
        assert parse_csv_date(text) is None


class TestParseCsv:
    def test_skips_bad_date_and_out_of_range_rows(self, analysis_config: AnalysisConfig) -> None:
        text = "Date,Temp\n2024-02-01,98.2\n13/40/2024,99.0\n2024-02-02,150\n"
        readings = parse_csv(text, config=analysis_config)
        assert len(readings) == 1
        assert readings[0].date == date(2024, 2, 1)
        assert readings[0].temperature == pytest.approx(98.2)

    def test_optional_columns_parsed(self, analysis_config: AnalysisConfig) -> None:
        text = (
            "date,temperature,cervix height,ovulation strip\n"
            "1/5/2024,97.4,Medium,YES\n"
            "1/6/2024,97.5,,no\n"
            "1/7/2024,97.6,High,1\n"
            "1/8/2024,97.7,Low,True\n"
        )
        readings = parse_csv(text, config=analysis_config)
        assert [r.cervix_height for r in readings] == ["Medium", None, "High", "Low"]
        assert [r.ovulation_test for r in readings] == [True, False, True, True]

    def test_short_rows_skipped(self, analysis_config: AnalysisConfig) -> None:
        text = "cervix,date,temp\nLow,2024-01-01\nLow,2024-01-02,97.1\n"
        readings = parse_csv(text, config=analysis_config)
        assert [r.date for r in readings] == [date(2024, 1, 2)]

    def test_missing_optional_fields_are_absent(self, analysis_config: AnalysisConfig) -> None:
        text = "date,temp,cervix,ovulation\n2024-01-01,97.1\n"
        readings = parse_csv(text, config=analysis_config)
        assert readings[0].cervix_height is None
        assert readings[0].ovulation_test is False

    def test_existing_dates_dropped(self, analysis_config: AnalysisConfig) -> None:
        text = "date,temp\n2024-01-01,97.1\n2024-01-02,97.2\n"
        readings = parse_csv(text, {date(2024, 1, 1)}, config=analysis_config)
        assert [r.date for r in readings] == [date(2024, 1, 2)]

    def test_duplicate_rows_first_wins(self, analysis_config: AnalysisConfig) -> None:
        text = "date,temp\n2024-01-01,97.1\n1/1/2024,99.9\n"
        readings = parse_csv(text, config=analysis_config)
        assert len(readings) == 1
        assert readings[0].temperature == pytest.approx(97.1)

    def test_blank_lines_and_bom_tolerated(self, analysis_config: AnalysisConfig) -> None:
        text = "\ufeffDate,Temp\r\n\r\n2024-01-01,97.1\r\n\r\n"
        readings = parse_csv(text, config=analysis_config)
        assert [r.date for r in readings] == [date(2024, 1, 1)]

    def test_unparseable_temperature_skipped(self, analysis_config: AnalysisConfig) -> None:
        text = "date,temp\n2024-01-01,warm\n2024-01-02,nan\n2024-01-03,\n"
        assert parse_csv(text, config=analysis_config) == []

    def test_header_only_yields_nothing(self, analysis_config: AnalysisConfig) -> None:
        assert parse_csv("date,temp\n", config=analysis_config) == []

    def test_missing_columns_raise(self, analysis_config: AnalysisConfig) -> None:
        with pytest.raises(CSVFormatError):
            parse_csv("day,reading\n2024-01-01,97.1\n", config=analysis_config)

    def test_empty_text_raises(self, analysis_config: AnalysisConfig) -> None:
        with pytest.raises(CSVFormatError):
            parse_csv("", config=analysis_config)


class TestExportCsv:
    def test_header_and_rows(self, analysis_config: AnalysisConfig) -> None:
        readings = [
            make_reading(date(2024, 1, 1), 97.1, cervix_height="Low", ovulation_test=True),
            make_reading(date(2024, 1, 2), 97.25),
        ]
        lines = export_csv(readings, []).splitlines()
        assert lines[0] == ",".join(EXPORT_HEADER)
        assert lines[1] == "2024-01-01,97.1,Low,Yes,No"
        assert lines[2] == "2024-01-02,97.25,,No,No"

    def test_fertile_window_column(self, analysis_config: AnalysisConfig) -> None:
        readings = build_month(2024, 1, range(1, 21), warm_days=range(10, 17))
        windows = FertileWindowDetector(analysis_config).detect(readings)
        rows = [line.split(",") for line in export_csv(readings, windows).splitlines()[1:]]
        flagged = [row[0] for row in rows if row[4] == "Yes"]
        assert flagged == [f"2024-01-{d:02d}" for d in range(10, 17)]

    def test_export_round_trips_through_import(self, analysis_config: AnalysisConfig) -> None:
        readings = build_month(2024, 1, range(1, 21), warm_days=range(10, 17))
        readings[0] = make_reading(date(2024, 1, 1), 96.85, cervix_height="High, firm", ovulation_test=True)
        windows = FertileWindowDetector(analysis_config).detect(readings)
        restored = parse_csv(export_csv(readings, windows), config=analysis_config)
        assert restored == readings

    def test_empty_export_is_header_only(self) -> None:
        assert export_csv([], []) == ",".join(EXPORT_HEADER) + "\n"

    def test_export_filename(self) -> None:
        assert export_filename(date(2024, 3, 9)) == "bbt-data-2024-03-09.csv"
