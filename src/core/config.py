"""
Configuration constants and environment setup.

The sheet layout values below are the contract for the legacy PTO workbooks.
They are not discovered from the sheet; a workbook that moves these blocks
needs new constants here.
"""

import os
from pathlib import Path
from types import MappingProxyType

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
OUTPUT_DIR = Path(os.environ.get("OUTPUT_DIR", PROJECT_ROOT / "output"))

# =============================================================================
# RUNTIME SETTINGS (from environment)
# =============================================================================

LOG_LEVEL = os.environ.get("PTO_IMPORT_LOG_LEVEL", "INFO").upper()
MAX_WORKERS = int(os.environ.get("PTO_IMPORT_MAX_WORKERS", "1"))

# =============================================================================
# CALENDAR GRID LAYOUT (1-indexed rows/columns)
# =============================================================================

# Start column of each column group: Jan-Apr, May-Aug, Sep-Dec
COL_STARTS = (2, 10, 18)

# Month header row of each row group
ROW_GROUP_STARTS = (4, 13, 22, 31)

# Day numbers begin two rows under the month header (header, weekday labels)
DATE_ROW_OFFSET = 2

# Rows scanned above/below the expected position when day 1 is missing
DAY1_SCAN_RANGE = 3

# =============================================================================
# HEADER CELLS
# =============================================================================

YEAR_CELL = "B2"
HIRE_DATE_CELL = "R2"
HIRE_DATE_ROW = 2
HIRE_DATE_SCAN_COLS = range(17, 25)  # Q..X
HIRE_DATE_SCAN_ROWS = range(1, 4)
EMPLOYEE_SHEET_MARKER_COLS = range(18, 25)  # R..X
EMPLOYEE_SHEET_MARKER = "hire date"

# =============================================================================
# LEGEND
# =============================================================================

LEGEND_COL = 26  # Z
LEGEND_SCAN_MAX_ROW = 30
LEGEND_MAX_ENTRIES = 10
PARTIAL_PTO_LABEL = "Partial PTO"

# =============================================================================
# PTO CALC SECTION
# =============================================================================

PTO_CALC_START_ROW_CANDIDATES = (42, 43)  # "January" in column B
PTO_CALC_MONTH_COL = 2  # B
PTO_CALC_RATE_COL = 6  # F (daily accrual rate)
PTO_CALC_CARRYOVER_COL = 12  # L
PTO_CALC_USED_HOURS_COL = 19  # S
EMP_ACK_COL = 24  # X
ADMIN_ACK_COL = 25  # Y
ACK_MARK = "✓"

# =============================================================================
# COLOR MATCHING
# =============================================================================

# Euclidean RGB distance must be strictly below this for an approximate match
MAX_COLOR_DISTANCE = 100

# Colors with less spread between channels (greys) never match approximately
MIN_CHROMA_FOR_APPROX = 40

WHITE_ARGB = "FFFFFFFF"
BLACK_ARGB = "FF000000"

# Standard Office theme palette, theme slot -> ARGB
DEFAULT_OFFICE_THEME = MappingProxyType(
    {
        0: "FFFFFFFF",
        1: "FF000000",
        2: "FFEEECE1",
        3: "FF1F497D",
        4: "FF4F81BD",
        5: "FFC0504D",
        6: "FF9BBB59",
        7: "FF8064A2",
        8: "FF4BACC6",
        9: "FFF79646",
    }
)

# =============================================================================
# HOURS & RECONCILIATION
# =============================================================================

FULL_DAY_HOURS = 8.0
MAX_SINGLE_ENTRY_HOURS = 24
MAX_WORKED_NOTE_HOURS = 12

ANNUAL_SICK_ALLOWANCE = 24

# Tolerance when comparing calendar totals with the PTO Calc column
HOURS_TOLERANCE = 0.1

# Minimum column S gap before unmatched colored cells are considered as PTO
UNMATCHED_COLOR_MIN_GAP = 7.9

# Minimum gap before approximate Bereavement entries are retyped as PTO
BEREAVEMENT_MIN_GAP = 0.5

# =============================================================================
# PTO EARNING SCHEDULE
# =============================================================================

# (min_years, max_years, annual_hours, daily_rate); max_years is exclusive
PTO_EARNING_SCHEDULE = (
    (0, 1, 168, 0.65),
    (1, 2, 176, 0.68),
    (2, 3, 184, 0.71),
    (3, 4, 192, 0.74),
    (4, 5, 200, 0.77),
    (5, 6, 208, 0.80),
    (6, 7, 216, 0.83),
    (7, 8, 224, 0.86),
    (8, 9, 232, 0.89),
    (9, float("inf"), 240, 0.92),
)

# Tier changes take effect on this month/day
RATE_BUMP_MONTH = 7
RATE_BUMP_DAY = 1

RATE_MISMATCH_TOLERANCE = 0.005

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
