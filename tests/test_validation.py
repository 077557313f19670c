"""
Tests for date helpers, entry validation and import logs.
"""

import logging
from datetime import date, datetime

import pytest

from core.dates import first_weekday_sunday_based, smart_parse_date
from core.logging import ImportLog, log_import
from core.validation import validate_entries
from models.pto import PTOType


class TestSmartParseDate:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2023-02-13", "2023-02-13"),
            ("2/13/2023", "2023-02-13"),
            ("2/13/23", "2023-02-13"),
            ("7/1/87", "1987-07-01"),
            (datetime(2021, 5, 3, 9, 30), "2021-05-03"),
            (date(2021, 5, 3), "2021-05-03"),
        ],
    )
    def test_accepted_formats(self, value, expected):
        assert smart_parse_date(value) == expected

    @pytest.mark.parametrize("value", ["2/30/2023", "13/1/23", "Feb 13", "", None, 44970])
    def test_rejected_values(self, value):
        assert smart_parse_date(value) is None


def test_first_weekday_is_sunday_based():
    # 2024-09-01 is a Sunday, 2024-06-01 a Saturday
    assert first_weekday_sunday_based(2024, 9) == 0
    assert first_weekday_sunday_based(2024, 6) == 6


class TestValidateEntries:
    def test_clean_entries(self, make_entry):
        entries = [make_entry("2024-01-15"), make_entry("2024-01-15", PTOType.SICK, 4)]
        assert validate_entries(entries, 2024) == []

    def test_entry_outside_year(self, make_entry):
        (warning,) = validate_entries([make_entry("2023-12-29")], 2024)
        assert "outside sheet year 2024" in warning

    def test_hours_out_of_range(self, make_entry):
        warnings = validate_entries(
            [make_entry("2024-01-15", hours=0), make_entry("2024-01-16", hours=30)], 2024
        )
        assert warnings == [
            "Entry on 2024-01-15 has zero hours",
            "Entry on 2024-01-16 has 30h, more than 24h",
        ]

    def test_duplicate_positive_entries(self, make_entry):
        entries = [
            make_entry("2024-01-15"),
            make_entry("2024-01-15", hours=4),
            make_entry("2024-01-15", hours=-4),
        ]
        assert validate_entries(entries, 2024) == ["2 PTO entries on 2024-01-15"]


def test_log_import_writes_summary_and_errors(caplog):
    log = ImportLog(sheet_name="Jane Doe", employee_name="Jane Doe", year=2024)
    log.details = [("warning", "w1"), ("resolved", "r1"), ("error", "e1")]

    with caplog.at_level(logging.DEBUG, logger="pto_import"):
        log_import(log)

    assert log.count("warning") == 1
    assert "1 warnings, 1 errors, 1 resolved" in caplog.records[0].getMessage()
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert [r.getMessage() for r in errors] == [f"[{log.import_id}] e1"]
