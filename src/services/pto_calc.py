"""
PTO Calculation section parsing.

The section lists one row per month starting with "January" in column B.
Column S holds the sheet's own used-hours figure, the reference that the
calendar-derived entries are reconciled against.
"""

from core.config import (
    PTO_CALC_CARRYOVER_COL,
    PTO_CALC_MONTH_COL,
    PTO_CALC_START_ROW_CANDIDATES,
    PTO_CALC_USED_HOURS_COL,
)
from core.exceptions import SheetLayoutError
from models.pto import PtoCalcRow
from services.cells import get_cell_numeric_value, get_cell_text


def find_pto_calc_start_row(ws) -> int:
    """
    Row of the January line of the PTO Calc section.

    Raises:
        SheetLayoutError: if "January" is not in column B at any candidate row
    """
    for candidate in PTO_CALC_START_ROW_CANDIDATES:
        cell = ws.cell(row=candidate, column=PTO_CALC_MONTH_COL)
        if get_cell_text(cell).lower() == "january":
            return candidate

    rows = " or ".join(f"B{r}" for r in PTO_CALC_START_ROW_CANDIDATES)
    raise SheetLayoutError(ws.title, "PTO Calc section", f'"January" not at {rows}')


def parse_pto_calc_used_hours(ws) -> list[PtoCalcRow]:
    """Declared used hours for months 1..12 (blank or non-numeric cells count as 0)."""
    start_row = find_pto_calc_start_row(ws)
    rows = []
    for i in range(12):
        cell = ws.cell(row=start_row + i, column=PTO_CALC_USED_HOURS_COL)
        hours = get_cell_numeric_value(cell)
        rows.append(PtoCalcRow(month=i + 1, used_hours=float(hours or 0)))
    return rows


def parse_carryover_hours(ws) -> float:
    """Hours carried over from the prior year (column L of the January row)."""
    start_row = find_pto_calc_start_row(ws)
    value = get_cell_numeric_value(ws.cell(row=start_row, column=PTO_CALC_CARRYOVER_COL))
    return float(value or 0)
