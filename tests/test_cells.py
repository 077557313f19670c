"""
Tests for cell helpers and note hour parsing.
"""

import pytest
from openpyxl.comments import Comment
from openpyxl.styles import GradientFill, PatternFill

from services.cells import (
    collapse_note,
    extract_cell_note_text,
    get_cell_numeric_value,
    get_pattern_fill,
    is_strict_hours_match,
    parse_hours_from_note,
)


@pytest.fixture
def ws(workbook):
    return workbook.create_sheet("Cells")


def test_numeric_value(ws):
    ws["A1"] = 4
    ws["A2"] = " 7.5 "
    ws["A3"] = "n/a"
    ws["A4"] = True
    assert get_cell_numeric_value(ws["A1"]) == 4
    assert get_cell_numeric_value(ws["A2"]) == 7.5
    assert get_cell_numeric_value(ws["A3"]) is None
    assert get_cell_numeric_value(ws["A4"]) is None
    assert get_cell_numeric_value(ws["A5"]) is None


def test_note_text(ws):
    ws["A1"].comment = Comment("left early\n4 hours", "tester")
    assert extract_cell_note_text(ws["A1"]) == "left early\n4 hours"
    assert extract_cell_note_text(ws["A2"]) == ""
    assert collapse_note("left early\r\n4 hours") == "left early 4 hours"


def test_pattern_fill(ws):
    ws["A1"].fill = PatternFill(fill_type="solid", fgColor="FFFF00")
    ws["A2"].fill = GradientFill(stop=("FFFFFF", "000000"))
    assert get_pattern_fill(ws["A1"]) is not None
    assert get_pattern_fill(ws["A2"]) is None
    assert get_pattern_fill(ws["A3"]) is None


@pytest.mark.parametrize(
    "note,expected",
    [
        ("4 hours", 4),
        ("2.5 hrs - dentist", 2.5),
        ("6h", 6),
        ("left at 4", 4),
        ("doctor", None),
        ("30 hours", None),
        ("0 hours", None),
    ],
)
def test_parse_hours_from_note(note, expected):
    assert parse_hours_from_note(note) == expected


def test_strict_hours_match():
    assert is_strict_hours_match("4 hours")
    assert is_strict_hours_match("took 3 hrs")
    assert not is_strict_hours_match("left at 4")
