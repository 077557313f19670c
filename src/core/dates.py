"""
Date helpers shared by the sheet parsers.
"""

import calendar
import re
from datetime import date, datetime

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_US_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")


def format_date(year: int, month: int, day: int) -> str:
    """Build an ISO date string, raising ValueError for impossible dates."""
    return date(year, month, day).isoformat()


def smart_parse_date(value) -> str | None:
    """
    Parse the date formats found in the legacy sheets to YYYY-MM-DD.

    Accepts date/datetime values, ISO strings, M/D/YYYY and M/D/YY
    (00-49 -> 2000s, 50-99 -> 1900s). Returns None when nothing matches.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        match = _ISO_RE.match(text)
        if match:
            year, month, day = (int(g) for g in match.groups())
            return format_date(year, month, day)

        match = _US_RE.match(text)
        if match:
            month, day = int(match.group(1)), int(match.group(2))
            year = int(match.group(3))
            if len(match.group(3)) == 2:
                year = 2000 + year if year < 50 else 1900 + year
            return format_date(year, month, day)
    except ValueError:
        return None

    return None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def first_weekday_sunday_based(year: int, month: int) -> int:
    """Weekday of the 1st with Sunday=0 .. Saturday=6, matching the sheet columns."""
    return (date(year, month, 1).weekday() + 1) % 7


def is_weekend_sunday_based(dow: int) -> bool:
    return dow in (0, 6)


def month_of(iso_date: str) -> int:
    return int(iso_date[5:7])


def pad2(n: int) -> str:
    return f"{n:02d}"
