"""
Tests for legend and PTO Calc section parsing.
"""

import pytest

from generate_workbook import (
    DEFAULT_LEGEND,
    FULL_PTO,
    PARTIAL_PTO,
    build_employee_sheet,
    write_pto_calc,
)
from core.exceptions import SheetLayoutError
from models.pto import PTOType
from services.legend import find_legend_header_row, parse_legend, parse_partial_pto_colors
from services.pto_calc import (
    find_pto_calc_start_row,
    parse_carryover_hours,
    parse_pto_calc_used_hours,
)


class TestLegend:
    def test_every_legend_color_maps_to_its_type(self, employee_sheet, legend):
        parsed = parse_legend(employee_sheet)
        assert dict(parsed) == legend

    def test_legend_is_read_only(self, employee_sheet):
        parsed = parse_legend(employee_sheet)
        with pytest.raises(TypeError):
            parsed["FF123456"] = PTOType.PTO

    def test_partial_pto_colors(self, employee_sheet):
        assert parse_partial_pto_colors(employee_sheet) == {f"FF{PARTIAL_PTO}"}

    def test_missing_legend(self, workbook):
        ws = build_employee_sheet(workbook, legend=())
        assert find_legend_header_row(ws) is None
        assert len(parse_legend(ws)) == 0

    def test_unknown_labels_are_ignored(self, workbook):
        ws = build_employee_sheet(workbook, legend=DEFAULT_LEGEND + (("Holiday", "C0C0C0"),))
        assert "FFC0C0C0" not in parse_legend(ws)

    def test_entries_stop_at_blank_label(self, workbook):
        ws = build_employee_sheet(workbook, legend=(("Full PTO", FULL_PTO),))
        ws.cell(row=7, column=26, value="Sick")  # after a blank row
        assert list(parse_legend(ws).values()) == [PTOType.PTO]


class TestPtoCalc:
    def test_start_row_42(self, employee_sheet):
        assert find_pto_calc_start_row(employee_sheet) == 42

    def test_start_row_43(self, workbook):
        ws = build_employee_sheet(workbook, pto_calc=False)
        write_pto_calc(ws, {1: 8}, start_row=43)
        assert find_pto_calc_start_row(ws) == 43
        assert parse_pto_calc_used_hours(ws)[0].used_hours == 8

    def test_missing_section_raises(self, workbook):
        ws = build_employee_sheet(workbook, name="No Calc", pto_calc=False)
        with pytest.raises(SheetLayoutError, match="No Calc"):
            find_pto_calc_start_row(ws)

    def test_used_hours_and_carryover(self, workbook):
        ws = build_employee_sheet(workbook, used_hours={1: 8, 3: 12.5}, carryover=16)
        rows = parse_pto_calc_used_hours(ws)
        assert [r.month for r in rows] == list(range(1, 13))
        assert rows[0].used_hours == 8
        assert rows[1].used_hours == 0
        assert rows[2].used_hours == 12.5
        assert parse_carryover_hours(ws) == 16
