"""
Monthly acknowledgements: the check marks already on the sheet, and the ones
the import derives from how well the calendar matches column S.
"""

from typing import Sequence

from core.config import ACK_MARK, ADMIN_ACK_COL, EMP_ACK_COL, HOURS_TOLERANCE
from core.dates import pad2
from models.pto import (
    COLUMN_S_TRACKED_TYPES,
    ImportedAcknowledgement,
    ImportedPtoEntry,
    PtoCalcRow,
)
from services.cells import get_cell_text
from services.pto_calc import find_pto_calc_start_row

EMPLOYEE = "employee"
ADMIN = "admin"
WARNING = "warning"


def parse_acknowledgements(ws, year: int) -> list[ImportedAcknowledgement]:
    """
    Read "✓" marks from columns X (employee) and Y (admin) of the PTO Calc rows.

    Raises:
        SheetLayoutError: if the PTO Calc section is missing
    """
    start_row = find_pto_calc_start_row(ws)
    acks = []
    for m in range(1, 13):
        row = start_row + m - 1
        month = f"{year}-{pad2(m)}"
        if get_cell_text(ws.cell(row=row, column=EMP_ACK_COL)) == ACK_MARK:
            acks.append(ImportedAcknowledgement(month=month, type=EMPLOYEE))
        if get_cell_text(ws.cell(row=row, column=ADMIN_ACK_COL)) == ACK_MARK:
            acks.append(ImportedAcknowledgement(month=month, type=ADMIN))
    return acks


def generate_import_acknowledgements(
    entries: Sequence[ImportedPtoEntry],
    pto_calc_rows: Sequence[PtoCalcRow],
    year: int,
    sheet_name: str,
) -> list[ImportedAcknowledgement]:
    """
    Acknowledge each month whose calendar total matches column S.

    Matching months (within 0.1h) get employee and admin acknowledgements;
    the others get a single employee acknowledgement flagged for review.
    """
    acks = []
    for calc in pto_calc_rows:
        month = f"{year}-{pad2(calc.month)}"
        calendar_total = sum(
            e.hours for e in entries
            if e.month == calc.month and e.type in COLUMN_S_TRACKED_TYPES
        )
        delta = round(calendar_total - calc.used_hours, 2)

        if abs(delta) <= HOURS_TOLERANCE:
            acks.append(ImportedAcknowledgement(month=month, type=EMPLOYEE))
            acks.append(ImportedAcknowledgement(month=month, type=ADMIN))
            continue

        sign = "+" if delta > 0 else ""
        acks.append(
            ImportedAcknowledgement(
                month=month,
                type=EMPLOYEE,
                status=WARNING,
                note=(
                    f"Calendar shows {round(calendar_total, 2):g}h but column S declares "
                    f"{calc.used_hours:g}h (Δ={sign}{delta:g}h) for {sheet_name} month "
                    f"{calc.month}. Requires manual review."
                ),
            )
        )
    return acks


def merge_acknowledgements(
    generated: Sequence[ImportedAcknowledgement],
    parsed: Sequence[ImportedAcknowledgement],
) -> list[ImportedAcknowledgement]:
    """
    Generated acknowledgements win per (month, type).

    Sheet admin marks are dropped for months the import flagged, so a
    mismatch always goes back to an admin.
    """
    generated_keys = {a.key for a in generated}
    warning_months = {
        a.month for a in generated if a.type == EMPLOYEE and a.status == WARNING
    }
    return list(generated) + [
        a for a in parsed
        if a.key not in generated_keys
        and not (a.type == ADMIN and a.month in warning_months)
    ]
