"""
Entry validation and duplicate detection.
"""

from collections import defaultdict
from typing import Sequence

from core.config import MAX_SINGLE_ENTRY_HOURS
from models.pto import ImportedPtoEntry


def is_in_year(iso_date: str, year: int) -> bool:
    """Check if an ISO date falls inside the sheet year."""
    return iso_date[:4] == str(year)


def validate_entries(entries: Sequence[ImportedPtoEntry], year: int) -> list[str]:
    """
    Validate the final entries of one sheet and return warning messages.

    Checks:
    1. Every entry is dated inside the sheet year
    2. Hours are non-zero and at most a single entry's maximum
    3. No date carries more than one positive entry of the same type
    """
    warnings = []
    # (date, type) -> positive entry count
    positive_by_day: dict[tuple[str, str], int] = defaultdict(int)

    for entry in entries:
        # Check 1: Year
        if not is_in_year(entry.date, year):
            warnings.append(f"Entry on {entry.date} is outside sheet year {year}")

        # Check 2: Hours range
        if entry.hours == 0:
            warnings.append(f"Entry on {entry.date} has zero hours")
        elif abs(entry.hours) > MAX_SINGLE_ENTRY_HOURS:
            warnings.append(
                f"Entry on {entry.date} has {entry.hours:g}h, more than "
                f"{MAX_SINGLE_ENTRY_HOURS}h"
            )

        if entry.hours > 0:
            positive_by_day[(entry.date, entry.type.value)] += 1

    # Check 3: Duplicates
    for (day, type_name), count in sorted(positive_by_day.items()):
        if count > 1:
            warnings.append(f"{count} {type_name} entries on {day}")

    return warnings
