"""
Employee header parsing and PTO accrual-rate tiers.
"""

import re
from datetime import date, datetime

from core.config import (
    EMPLOYEE_SHEET_MARKER,
    EMPLOYEE_SHEET_MARKER_COLS,
    HIRE_DATE_CELL,
    HIRE_DATE_ROW,
    HIRE_DATE_SCAN_COLS,
    HIRE_DATE_SCAN_ROWS,
    PTO_CALC_RATE_COL,
    PTO_EARNING_SCHEDULE,
    RATE_BUMP_DAY,
    RATE_BUMP_MONTH,
    RATE_MISMATCH_TOLERANCE,
    YEAR_CELL,
)
from core.dates import smart_parse_date
from core.exceptions import SheetLayoutError
from models.pto import EmployeeImportInfo, PtoRateTier
from services.cells import get_cell_numeric_value, get_cell_text
from services.pto_calc import find_pto_calc_start_row, parse_carryover_hours

HIRE_DATE_LABEL_RE = re.compile(r"hire\s*date\s*:?\s*(.*)", re.IGNORECASE)
PARENTHETICAL_SUFFIX_RE = re.compile(r"\s*\(.*\)\s*$")

RATE_TIERS = tuple(PtoRateTier(*tier) for tier in PTO_EARNING_SCHEDULE)


# =============================================================================
# SHEET DETECTION
# =============================================================================


def is_employee_sheet(ws) -> bool:
    """Employee sheets carry a "Hire Date" label somewhere in row 2, columns R..X."""
    for col in EMPLOYEE_SHEET_MARKER_COLS:
        text = get_cell_text(ws.cell(row=HIRE_DATE_ROW, column=col))
        if EMPLOYEE_SHEET_MARKER in text.lower():
            return True
    return False


# =============================================================================
# EMPLOYEE INFO
# =============================================================================


def _parse_year(ws) -> int:
    value = get_cell_numeric_value(ws[YEAR_CELL])
    if value is None:
        return 0
    year = int(value)
    return year if 1900 <= year <= 2100 else 0


def _hire_date_from_label(text: str) -> tuple[str | None, str | None]:
    """
    Parse "Hire Date: <date>" text.

    Returns (iso_date, stripped_part) where stripped_part is the original date
    text when a parenthetical suffix had to be removed first.
    """
    match = HIRE_DATE_LABEL_RE.search(text)
    if not match:
        return None, None

    date_part = match.group(1).strip()
    parsed = smart_parse_date(date_part)
    if parsed:
        return parsed, None

    stripped = PARENTHETICAL_SUFFIX_RE.sub("", date_part).strip()
    if stripped != date_part:
        parsed = smart_parse_date(stripped)
        if parsed:
            return parsed, date_part
    return None, None


def _scan_for_hire_date(ws) -> tuple[str | None, str | None]:
    """Look around the header for a hire date. Returns (iso_date, coordinate)."""
    for row in HIRE_DATE_SCAN_ROWS:
        for col in HIRE_DATE_SCAN_COLS:
            cell = ws.cell(row=row, column=col)
            text = get_cell_text(cell)
            if EMPLOYEE_SHEET_MARKER not in text.lower():
                continue

            parsed, _ = _hire_date_from_label(text)
            if parsed:
                return parsed, cell.coordinate

            # Label alone in this cell, value in the next one
            neighbour = ws.cell(row=row, column=col + 1)
            value = neighbour.value
            if isinstance(value, (date, str)):
                parsed = smart_parse_date(value)
                if parsed:
                    return parsed, neighbour.coordinate
    return None, None


def parse_hire_date(ws) -> tuple[str, list[str]]:
    """Hire date as YYYY-MM-DD ("" when not found) plus resolved narrations."""
    name = ws.title.strip()
    resolved = []
    cell = ws[HIRE_DATE_CELL]

    if isinstance(cell.value, (date, datetime)):
        return smart_parse_date(cell.value), resolved

    text = get_cell_text(cell)
    parsed, original = _hire_date_from_label(text)
    if parsed:
        if original:
            resolved.append(
                f'Sheet "{name}": Hire date "{original}" contained parenthetical '
                f"suffix — parsed as {parsed}"
            )
        return parsed, resolved

    parsed, coordinate = _scan_for_hire_date(ws)
    if parsed:
        found_in = f'"{text}"' if text else "empty"
        resolved.append(
            f'Sheet "{name}": Hire date not readable at {HIRE_DATE_CELL} ({found_in}) '
            f"— found {parsed} at {coordinate}"
        )
        return parsed, resolved

    return "", resolved


def _parse_spreadsheet_rate(ws) -> float:
    """Daily accrual rate the sheet itself uses (column F, December row)."""
    try:
        start_row = find_pto_calc_start_row(ws)
    except SheetLayoutError:
        return 0.0
    value = get_cell_numeric_value(ws.cell(row=start_row + 11, column=PTO_CALC_RATE_COL))
    return float(value or 0)


def parse_employee_info(ws) -> tuple[EmployeeImportInfo, list[str]]:
    """Employee name (sheet title), hire date, year, carryover and sheet rate."""
    hire_date, resolved = parse_hire_date(ws)

    try:
        carryover = parse_carryover_hours(ws)
    except SheetLayoutError:
        carryover = 0.0

    info = EmployeeImportInfo(
        name=ws.title.strip(),
        hire_date=hire_date,
        year=_parse_year(ws),
        carryover_hours=carryover,
        spreadsheet_pto_rate=_parse_spreadsheet_rate(ws),
    )
    return info, resolved


def generate_identifier(name: str) -> str:
    """Placeholder login identifier: first-last@example.com."""
    parts = name.split()
    if not parts:
        return "unknown@example.com"
    first = parts[0].lower()
    if len(parts) == 1:
        return f"{first}@example.com"
    return f"{first}-{parts[-1].lower()}@example.com"


# =============================================================================
# ACCRUAL RATE TIERS
# =============================================================================


def _add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # Feb 29 -> Feb 28
        return d.replace(year=d.year + years, day=28)


def get_years_of_service(hire_date: str, as_of_date: str) -> int:
    """Completed whole years between two ISO dates (0 if as_of precedes hire)."""
    hired = date.fromisoformat(hire_date)
    as_of = date.fromisoformat(as_of_date)
    if as_of < hired:
        return 0
    years = as_of.year - hired.year
    if (as_of.month, as_of.day) < (hired.month, hired.day):
        years -= 1
    return years


def get_pto_rate_tier(years_of_service: int) -> PtoRateTier:
    for tier in RATE_TIERS:
        if tier.min_years <= years_of_service < tier.max_years:
            return tier
    return RATE_TIERS[-1]


def first_rate_bump(hire_date: str) -> date:
    """The first July 1 on or after the first anniversary of hire."""
    anniversary = _add_years(date.fromisoformat(hire_date), 1)
    bump = date(anniversary.year, RATE_BUMP_MONTH, RATE_BUMP_DAY)
    if anniversary > bump:
        bump = date(anniversary.year + 1, RATE_BUMP_MONTH, RATE_BUMP_DAY)
    return bump


def get_effective_pto_rate(hire_date: str, as_of_date: str) -> PtoRateTier:
    """
    Tier in effect on a date under the July 1 rule.

    The rate steps up on the first July 1 on or after the first anniversary,
    then on every following July 1.
    """
    as_of = date.fromisoformat(as_of_date)
    first_bump = first_rate_bump(hire_date)

    last_bump_year = as_of.year
    if as_of < date(as_of.year, RATE_BUMP_MONTH, RATE_BUMP_DAY):
        last_bump_year -= 1

    bumps = max(0, last_bump_year - first_bump.year + 1)
    return get_pto_rate_tier(bumps)


def compute_pto_rate(info: EmployeeImportInfo) -> tuple[float, str | None]:
    """
    Daily accrual rate for the sheet year, plus an optional review warning.

    The warning does not change the rate: it flags a disagreement with the
    rate written in the sheet, or a hire date whose anniversary lands exactly
    on the July 1 tier transition.
    """
    if not info.hire_date or not info.year:
        rate = info.spreadsheet_pto_rate or RATE_TIERS[0].daily_rate
        return rate, None

    as_of = f"{info.year}-12-31"
    computed = get_effective_pto_rate(info.hire_date, as_of).daily_rate

    problems = []
    if (
        info.spreadsheet_pto_rate > 0
        and abs(info.spreadsheet_pto_rate - computed) > RATE_MISMATCH_TOLERANCE
    ):
        problems.append(
            f'PTO rate mismatch for "{info.name}": '
            f"spreadsheet={info.spreadsheet_pto_rate}, "
            f"computed={computed} (hired {info.hire_date}, year {info.year}). "
            f"Using computed value."
        )

    hired = date.fromisoformat(info.hire_date)
    if (hired.month, hired.day) == (RATE_BUMP_MONTH, RATE_BUMP_DAY):
        problems.append(
            f'PTO rate tier for "{info.name}" sits on a tier boundary: hire date '
            f"{info.hire_date} makes each anniversary coincide with the July 1 "
            f"rate change. Applied the change on the anniversary itself."
        )

    return computed, " ".join(problems) if problems else None
