"""
Tests for employee header parsing and accrual rate tiers.
"""

from datetime import datetime

import pytest

from generate_workbook import build_employee_sheet
from models.pto import EmployeeImportInfo
from services.employee import (
    compute_pto_rate,
    first_rate_bump,
    generate_identifier,
    get_effective_pto_rate,
    get_pto_rate_tier,
    get_years_of_service,
    is_employee_sheet,
    parse_employee_info,
    parse_hire_date,
)


class TestSheetDetection:
    def test_employee_sheet(self, employee_sheet):
        assert is_employee_sheet(employee_sheet)

    def test_summary_sheet(self, workbook):
        ws = workbook.create_sheet("Summary")
        ws["A1"] = "Totals"
        assert not is_employee_sheet(ws)


class TestEmployeeInfo:
    def test_basic_header(self, workbook):
        ws = build_employee_sheet(
            workbook, year=2024, name=" Jane Doe ", hire_date="2/13/23", carryover=12, rate=0.68
        )
        info, resolved = parse_employee_info(ws)
        assert info == EmployeeImportInfo(
            name="Jane Doe",
            hire_date="2023-02-13",
            year=2024,
            carryover_hours=12,
            spreadsheet_pto_rate=0.68,
        )
        assert resolved == []

    def test_out_of_range_year(self, workbook):
        ws = build_employee_sheet(workbook)
        ws["B2"] = 24
        info, _ = parse_employee_info(ws)
        assert info.year == 0

    def test_hire_date_as_date_value(self, employee_sheet):
        employee_sheet["R2"] = datetime(2021, 5, 3)
        assert parse_hire_date(employee_sheet) == ("2021-05-03", [])

    def test_parenthetical_suffix_is_resolved(self, workbook):
        ws = build_employee_sheet(workbook, name="Sam Roe", hire_date="3/1/22 (rehired)")
        hire_date, resolved = parse_hire_date(ws)
        assert hire_date == "2022-03-01"
        assert len(resolved) == 1
        assert "parenthetical" in resolved[0]

    def test_hire_date_found_in_neighbouring_cell(self, workbook):
        ws = build_employee_sheet(workbook)
        ws["R2"] = "Hire Date:"
        ws["S2"] = "7/15/2019"
        hire_date, resolved = parse_hire_date(ws)
        assert hire_date == "2019-07-15"
        assert "S2" in resolved[0]

    def test_missing_hire_date(self, workbook):
        ws = build_employee_sheet(workbook)
        ws["R2"] = "Hire Date: unknown"
        assert parse_hire_date(ws) == ("", [])

    def test_missing_pto_calc_defaults(self, workbook):
        ws = build_employee_sheet(workbook, pto_calc=False)
        info, _ = parse_employee_info(ws)
        assert info.carryover_hours == 0
        assert info.spreadsheet_pto_rate == 0


class TestRateTiers:
    def test_years_of_service(self):
        assert get_years_of_service("2020-03-15", "2023-03-14") == 2
        assert get_years_of_service("2020-03-15", "2023-03-15") == 3
        assert get_years_of_service("2020-03-15", "2019-01-01") == 0

    def test_tier_table(self):
        assert get_pto_rate_tier(0).daily_rate == 0.65
        assert get_pto_rate_tier(0).annual_hours == 168
        assert get_pto_rate_tier(5).daily_rate == 0.80
        assert get_pto_rate_tier(40).annual_hours == 240

    def test_first_bump_is_july_after_anniversary(self):
        assert first_rate_bump("2023-02-13").isoformat() == "2024-07-01"
        assert first_rate_bump("2023-09-01").isoformat() == "2025-07-01"
        assert first_rate_bump("2023-07-01").isoformat() == "2024-07-01"

    @pytest.mark.parametrize(
        "as_of,rate",
        [
            ("2024-06-30", 0.65),
            ("2024-07-01", 0.68),
            ("2025-07-01", 0.71),
        ],
    )
    def test_effective_rate(self, as_of, rate):
        assert get_effective_pto_rate("2023-02-13", as_of).daily_rate == rate

    def test_compute_rate_matches_sheet(self):
        info = EmployeeImportInfo("A", "2023-02-13", 2024, spreadsheet_pto_rate=0.68)
        assert compute_pto_rate(info) == (0.68, None)

    def test_compute_rate_mismatch_warns(self):
        info = EmployeeImportInfo("A", "2023-02-13", 2024, spreadsheet_pto_rate=0.71)
        rate, warning = compute_pto_rate(info)
        assert rate == 0.68
        assert "mismatch" in warning

    def test_compute_rate_boundary_warns(self):
        info = EmployeeImportInfo("A", "2020-07-01", 2024)
        _, warning = compute_pto_rate(info)
        assert "boundary" in warning

    def test_compute_rate_without_hire_date(self):
        info = EmployeeImportInfo("A", "", 2024, spreadsheet_pto_rate=0.74)
        assert compute_pto_rate(info) == (0.74, None)


def test_generate_identifier():
    assert generate_identifier("Jane Q Doe") == "jane-doe@example.com"
    assert generate_identifier("Cher") == "cher@example.com"
    assert generate_identifier("") == "unknown@example.com"
