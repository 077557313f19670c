#!/usr/bin/env python3
"""
Build legacy-layout PTO workbooks in memory for tests.

Each employee sheet carries the year in B2, "Hire Date: ..." in R2, the
12-month calendar grid with day numbers, a legend in column Z and the PTO
Calc section starting at row 42.
"""

import calendar
import io
from datetime import date

from faker import Faker
from openpyxl import Workbook, load_workbook
from openpyxl.comments import Comment
from openpyxl.styles import PatternFill

# Initialize Faker
fake = Faker()

# Layout
COL_STARTS = (2, 10, 18)
ROW_GROUP_STARTS = (4, 13, 22, 31)
PTO_CALC_START_ROW = 42
MONTH_NAMES = [calendar.month_name[m] for m in range(1, 13)]

# Legend label -> fill color
FULL_PTO = "FFFF00"
PARTIAL_PTO = "00B0F0"
SICK = "00B050"
BEREAVEMENT = "7030A0"
JURY_DUTY = "FF0000"

DEFAULT_LEGEND = (
    ("Sick", SICK),
    ("Full PTO", FULL_PTO),
    ("Partial PTO", PARTIAL_PTO),
    ("Bereavement", BEREAVEMENT),
    ("Jury Duty", JURY_DUTY),
)


def solid_fill(rgb: str) -> PatternFill:
    return PatternFill(fill_type="solid", fgColor=rgb)


def first_dow(year: int, month: int) -> int:
    """Sunday-first weekday of the 1st of a month."""
    return (date(year, month, 1).weekday() + 1) % 7


def day_position(year: int, month: int, day: int, row_shift: int = 0) -> tuple[int, int]:
    """(row, column) of a day cell in the calendar grid."""
    m0 = month - 1
    start_col = COL_STARTS[m0 // 4]
    header_row = ROW_GROUP_STARTS[m0 % 4]
    offset = first_dow(year, month) + day - 1
    return header_row + 2 + row_shift + offset // 7, start_col + offset % 7


def write_calendar(ws, year: int, row_shifts: dict[int, int] | None = None):
    """Write month headers and day numbers. row_shifts moves a month's grid."""
    row_shifts = row_shifts or {}
    for month in range(1, 13):
        m0 = month - 1
        ws.cell(row=ROW_GROUP_STARTS[m0 % 4], column=COL_STARTS[m0 // 4], value=MONTH_NAMES[m0])
        for day in range(1, calendar.monthrange(year, month)[1] + 1):
            row, col = day_position(year, month, day, row_shifts.get(month, 0))
            ws.cell(row=row, column=col, value=day)


def write_legend(ws, legend=DEFAULT_LEGEND, header_row: int = 4):
    ws.cell(row=header_row, column=26, value="Legend")
    for i, (label, rgb) in enumerate(legend, start=1):
        cell = ws.cell(row=header_row + i, column=26, value=label)
        cell.fill = solid_fill(rgb)


def write_pto_calc(
    ws,
    used_hours: dict[int, float] | None = None,
    carryover: float = 0.0,
    rate: float | None = None,
    start_row: int = PTO_CALC_START_ROW,
):
    """PTO Calc rows: month names in B, carryover in L, rate in F (December), used hours in S."""
    used_hours = used_hours or {}
    for m0, name in enumerate(MONTH_NAMES):
        ws.cell(row=start_row + m0, column=2, value=name)
        ws.cell(row=start_row + m0, column=19, value=used_hours.get(m0 + 1, 0))
    ws.cell(row=start_row, column=12, value=carryover)
    if rate is not None:
        ws.cell(row=start_row + 11, column=6, value=rate)


def color_day(ws, year: int, month: int, day: int, rgb: str | None = None, note: str | None = None):
    """Fill and/or annotate a day cell."""
    row, col = day_position(year, month, day)
    cell = ws.cell(row=row, column=col)
    if rgb:
        cell.fill = solid_fill(rgb)
    if note:
        cell.comment = Comment(note, "tester")
    return cell


def mark_acknowledgement(ws, month: int, employee: bool = True, admin: bool = False,
                         start_row: int = PTO_CALC_START_ROW):
    row = start_row + month - 1
    if employee:
        ws.cell(row=row, column=24, value="✓")
    if admin:
        ws.cell(row=row, column=25, value="✓")


def build_employee_sheet(
    wb: Workbook,
    year: int = 2024,
    name: str | None = None,
    hire_date: str = "2/13/23",
    used_hours: dict[int, float] | None = None,
    legend=DEFAULT_LEGEND,
    row_shifts: dict[int, int] | None = None,
    carryover: float = 0.0,
    rate: float | None = None,
    pto_calc: bool = True,
):
    """Add a fully laid-out employee sheet to a workbook."""
    ws = wb.create_sheet(title=name or fake.name()[:31])
    ws["B2"] = year
    ws["R2"] = f"Hire Date: {hire_date}"
    write_calendar(ws, year, row_shifts)
    if legend:
        write_legend(ws, legend)
    if pto_calc:
        write_pto_calc(ws, used_hours, carryover=carryover, rate=rate)
    return ws


def new_workbook() -> Workbook:
    """Workbook without the default empty sheet."""
    wb = Workbook()
    wb.remove(wb.active)
    return wb


def to_bytes(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def reload(wb: Workbook) -> Workbook:
    """Save and reopen a workbook the way an uploaded file is read."""
    return load_workbook(io.BytesIO(to_bytes(wb)), data_only=True)
