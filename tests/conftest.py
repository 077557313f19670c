"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src and the workbook builders to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent / "fixtures"))

from generate_workbook import (  # noqa: E402
    DEFAULT_LEGEND,
    build_employee_sheet,
    new_workbook,
)
from models.pto import (  # noqa: E402
    LEGEND_LABEL_TO_PTO_TYPE,
    ImportedPtoEntry,
    PtoCalcRow,
    PTOType,
)

YEAR = 2024


@pytest.fixture
def year():
    return YEAR


@pytest.fixture
def workbook():
    """Empty workbook for building sheets."""
    return new_workbook()


@pytest.fixture
def employee_sheet(workbook):
    """Employee sheet with the default legend and no time off."""
    return build_employee_sheet(workbook, year=YEAR, name="Jane Doe")


@pytest.fixture
def legend():
    """Resolved legend mapping for DEFAULT_LEGEND."""
    return {f"FF{rgb}": LEGEND_LABEL_TO_PTO_TYPE[label] for label, rgb in DEFAULT_LEGEND}


@pytest.fixture
def make_entry():
    """Factory for ImportedPtoEntry with sensible defaults."""

    def _make(date: str, type: PTOType = PTOType.PTO, hours: float = 8.0, **kwargs):
        return ImportedPtoEntry(date=date, type=type, hours=hours, **kwargs)

    return _make


@pytest.fixture
def calc_rows():
    """Factory for a full year of PtoCalcRow from a {month: hours} dict."""

    def _rows(declared: dict[int, float]):
        return [PtoCalcRow(month=m, used_hours=declared.get(m, 0.0)) for m in range(1, 13)]

    return _rows
