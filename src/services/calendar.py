"""
Calendar grid parsing.

Walks the 12-month calendar of a PTO sheet and classifies every day cell by
its fill color and note. Months are laid out in three column groups of four
(Jan-Apr, May-Aug, Sep-Dec); each month is a Sunday-first week grid starting
two rows under its header.
"""

import logging
from typing import Mapping

from core.config import (
    BLACK_ARGB,
    COL_STARTS,
    DATE_ROW_OFFSET,
    DAY1_SCAN_RANGE,
    DEFAULT_OFFICE_THEME,
    FULL_DAY_HOURS,
    MONTH_NAMES,
    ROW_GROUP_STARTS,
    WHITE_ARGB,
)
from core.dates import (
    days_in_month,
    first_weekday_sunday_based,
    format_date,
    is_weekend_sunday_based,
)
from models.pto import (
    CalendarParseResult,
    ImportedPtoEntry,
    PTOType,
    UnmatchedColoredCell,
    UnmatchedNotedCell,
    WorkedCell,
)
from services.cells import (
    collapse_note,
    extract_cell_note_text,
    get_cell_numeric_value,
    get_pattern_fill,
    is_strict_hours_match,
    parse_hours_from_note,
)
from services.colors import find_closest_legend_color, resolve_color_to_argb

logger = logging.getLogger(__name__)


def month_block_origin(month: int) -> tuple[int, int]:
    """(start column, header row) of a month's block."""
    m0 = month - 1
    return COL_STARTS[m0 // 4], ROW_GROUP_STARTS[m0 % 4]


def locate_day_one(
    ws, year: int, month: int
) -> tuple[int | None, list[str], list[str]]:
    """
    Find the row holding day 1 of a month.

    Day 1 is expected at (header_row + 2, start_col + weekday of the 1st). When
    it is not there, rows within DAY1_SCAN_RANGE above and below are checked in
    the same column.

    Returns:
        (row or None, warnings, resolved)
    """
    start_col, header_row = month_block_origin(month)
    expected_row = header_row + DATE_ROW_OFFSET
    day1_col = start_col + first_weekday_sunday_based(year, month)
    month_name = MONTH_NAMES[month - 1]
    warnings: list[str] = []
    resolved: list[str] = []

    if get_cell_numeric_value(ws.cell(row=expected_row, column=day1_col)) == 1:
        return expected_row, warnings, resolved

    warnings.append(
        f'Sheet "{ws.title}" {month_name}: day 1 not found at expected row '
        f"{expected_row}, col {day1_col}. Scanning nearby rows..."
    )

    for scan_row in range(expected_row - DAY1_SCAN_RANGE, expected_row + DAY1_SCAN_RANGE + 1):
        if scan_row < 1 or scan_row == expected_row:
            continue
        if get_cell_numeric_value(ws.cell(row=scan_row, column=day1_col)) == 1:
            offset = scan_row - expected_row
            direction = "below" if offset > 0 else "above"
            resolved.append(
                f'Sheet "{ws.title}" {month_name}: resolved row anomaly — day 1 found '
                f"{abs(offset)} row(s) {direction} expected position (row {scan_row} "
                f"instead of {expected_row}). Recovered successfully."
            )
            return scan_row, warnings, resolved

    warnings.append(
        f'Sheet "{ws.title}" {month_name}: ERROR — could not locate day 1 within '
        f"±{DAY1_SCAN_RANGE} rows of expected position. Skipping month."
    )
    return None, warnings, resolved


def _match_legend(
    argb: str | None, legend: Mapping[str, PTOType]
) -> tuple[PTOType | None, bool]:
    """(type, is_approximate) for a resolved color."""
    if not argb:
        return None, False
    pto_type = legend.get(argb)
    if pto_type is not None:
        return pto_type, False
    pto_type = find_closest_legend_color(argb, legend)
    return pto_type, pto_type is not None


def _fill_color(fill, theme_colors: Mapping[int, str]) -> str | None:
    """Foreground color of a fill, falling back to its background color."""
    if fill is None:
        return None
    return resolve_color_to_argb(fill.fgColor, theme_colors) or resolve_color_to_argb(
        fill.bgColor, theme_colors
    )


def _is_marked_color(argb: str | None) -> bool:
    return bool(argb) and argb not in (WHITE_ARGB, BLACK_ARGB)


def parse_calendar_grid(
    ws,
    year: int,
    legend: Mapping[str, PTOType],
    theme_colors: Mapping[int, str] = DEFAULT_OFFICE_THEME,
    partial_pto_colors: frozenset[str] = frozenset(),
) -> CalendarParseResult:
    """
    Parse the 12-month calendar grid into raw observations.

    Each day cell is classified as one of:
    - a legend-color match (exact, else nearest legend color) -> entries
    - no match but a note containing "worked" -> worked_cells
    - no match but some other note -> unmatched_noted_cells (and also
      unmatched_colored_cells when the cell has a real fill)
    - no match, no note, real fill -> worked_cells on weekends (inferred,
      with a warning), unmatched_colored_cells on weekdays
    """
    entries: list[ImportedPtoEntry] = []
    unmatched_noted: list[UnmatchedNotedCell] = []
    worked: list[WorkedCell] = []
    unmatched_colored: list[UnmatchedColoredCell] = []
    warnings: list[str] = []
    resolved: list[str] = []

    for month in range(1, 13):
        day1_row, month_warnings, month_resolved = locate_day_one(ws, year, month)
        warnings.extend(month_warnings)
        resolved.extend(month_resolved)
        if day1_row is None:
            continue

        start_col, _ = month_block_origin(month)
        first_dow = first_weekday_sunday_based(year, month)
        row = day1_row
        col = start_col + first_dow

        for day in range(1, days_in_month(year, month) + 1):
            dow = (first_dow + day - 1) % 7
            cell = ws.cell(row=row, column=col)
            date_str = format_date(year, month, day)
            note = extract_cell_note_text(cell)
            fill = get_pattern_fill(cell)

            pto_type, matched_argb, match_method = None, None, ""
            if fill is not None:
                for source, color in (("", fill.fgColor), ("bgColor ", fill.bgColor)):
                    argb = resolve_color_to_argb(color, theme_colors)
                    pto_type, approximate = _match_legend(argb, legend)
                    if pto_type is not None:
                        matched_argb = argb
                        if approximate:
                            match_method = f"{source}approximate (resolved={argb})"
                        elif source:
                            match_method = f"{source}exact"
                        break

            if pto_type is not None:
                entries.append(
                    _build_entry(
                        date_str, pto_type, note, matched_argb, match_method,
                        partial_pto_colors,
                    )
                )
            elif note:
                if "worked" in note.lower():
                    worked.append(WorkedCell(date=date_str, note=note))
                else:
                    unmatched_noted.append(UnmatchedNotedCell(date=date_str, note=note))
                    argb = _fill_color(fill, theme_colors)
                    if _is_marked_color(argb):
                        unmatched_colored.append(
                            UnmatchedColoredCell(date=date_str, color=argb, note=note)
                        )
            else:
                argb = _fill_color(fill, theme_colors)
                if _is_marked_color(argb):
                    if is_weekend_sunday_based(dow):
                        worked.append(
                            WorkedCell(
                                date=date_str,
                                note=f"(inferred weekend work from cell color {argb})",
                            )
                        )
                        warnings.append(
                            f'Sheet "{ws.title}" {MONTH_NAMES[month - 1]}: non-legend '
                            f"colored weekend cell on {date_str} (color={argb}). "
                            f"Treating as potential weekend work."
                        )
                    else:
                        unmatched_colored.append(
                            UnmatchedColoredCell(date=date_str, color=argb)
                        )

            col += 1
            if dow == 6:
                row += 1
                col = start_col

    logger.debug(
        "Sheet %r: %d color-matched days, %d worked, %d unmatched noted, %d unmatched colored",
        ws.title,
        len(entries),
        len(worked),
        len(unmatched_noted),
        len(unmatched_colored),
    )

    return CalendarParseResult(
        entries=tuple(entries),
        unmatched_noted_cells=tuple(unmatched_noted),
        worked_cells=tuple(worked),
        unmatched_colored_cells=tuple(unmatched_colored),
        warnings=tuple(warnings),
        resolved=tuple(resolved),
    )


def _build_entry(
    date_str: str,
    pto_type: PTOType,
    note: str,
    matched_argb: str | None,
    match_method: str,
    partial_pto_colors: frozenset[str],
) -> ImportedPtoEntry:
    hours = FULL_DAY_HOURS
    is_note_derived = False
    if note:
        note_hours = parse_hours_from_note(note)
        if note_hours is not None:
            hours = note_hours
            # Only explicit "<n> hours" notes pin the value against later adjustment
            is_note_derived = is_strict_hours_match(note)

    provenance = []
    if match_method:
        provenance.append(f"Color matched via {match_method}.")
    if note:
        provenance.append(f'Cell note: "{collapse_note(note)}"')

    return ImportedPtoEntry(
        date=date_str,
        type=pto_type,
        hours=hours,
        notes=" ".join(provenance) or None,
        is_note_derived=is_note_derived,
        is_partial_pto_color=matched_argb in partial_pto_colors,
        is_approximate_color="approximate" in match_method,
        cell_note=collapse_note(note),
    )
