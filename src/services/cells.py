"""
Cell value, fill and note helpers.
"""

import re

from openpyxl.styles import PatternFill

from core.config import MAX_SINGLE_ENTRY_HOURS

# "4 hours", "2.5 hrs", "6h", ".5 hr"
STRICT_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?|\.\d+)\s*(?:hours?|hrs?|h)\b", re.IGNORECASE)

# A bare number not glued to letters: "left at 4", "4 - dentist"
BARE_NUMBER_RE = re.compile(r"(?<![A-Za-z])(\d+(?:\.\d+)?|\.\d+)(?![A-Za-z\d])")


def get_cell_numeric_value(cell) -> float | None:
    """Numeric value of a cell; numeric strings are converted, anything else is None."""
    value = cell.value
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def get_cell_text(cell) -> str:
    value = cell.value
    return str(value).strip() if value is not None else ""


def extract_cell_note_text(cell) -> str:
    """Plain text of a cell's note/comment, or an empty string."""
    comment = cell.comment
    if comment is None:
        return ""
    return comment.text or ""


def collapse_note(note: str) -> str:
    return note.replace("\r", "").replace("\n", " ").strip()


def get_pattern_fill(cell) -> PatternFill | None:
    """The cell's pattern fill, or None for unfilled cells and gradient fills."""
    # cell.fill is a StyleProxy, so compare the tag rather than the class
    fill = cell.fill
    if getattr(fill, "tagname", None) != PatternFill.tagname or not fill.fill_type:
        return None
    return fill


def _valid_hours(value: str) -> float | None:
    hours = float(value)
    if 0 < hours <= MAX_SINGLE_ENTRY_HOURS:
        return hours
    return None


def parse_hours_from_note(note: str) -> float | None:
    """
    Hours stated in a note.

    Tries an explicit "<n> hours" form first, then a bare number. Values
    outside (0, MAX_SINGLE_ENTRY_HOURS] are ignored.
    """
    match = STRICT_HOURS_RE.search(note)
    if match:
        hours = _valid_hours(match.group(1))
        if hours is not None:
            return hours

    match = BARE_NUMBER_RE.search(note)
    if match:
        return _valid_hours(match.group(1))
    return None


def is_strict_hours_match(note: str) -> bool:
    """True when the note states hours with an explicit unit ("4 hours", "6h")."""
    match = STRICT_HOURS_RE.search(note)
    return bool(match) and _valid_hours(match.group(1)) is not None
