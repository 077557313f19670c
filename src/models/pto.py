"""
Data models for parsed PTO sheets.

Frozen dataclasses: every parsing and reconciliation step returns new
instances (``dataclasses.replace``) instead of mutating shared objects.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class PTOType(str, Enum):
    PTO = "PTO"
    SICK = "Sick"
    BEREAVEMENT = "Bereavement"
    JURY_DUTY = "Jury Duty"


# Legend label -> canonical type. "Partial PTO" and "Planned PTO" are PTO
# variants; partial colors are tracked separately by the legend parser.
LEGEND_LABEL_TO_PTO_TYPE = {
    "Sick": PTOType.SICK,
    "Full PTO": PTOType.PTO,
    "Partial PTO": PTOType.PTO,
    "Planned PTO": PTOType.PTO,
    "Bereavement": PTOType.BEREAVEMENT,
    "Jury Duty": PTOType.JURY_DUTY,
}

# Types counted in the PTO Calc "used hours" column (S)
COLUMN_S_TRACKED_TYPES = frozenset({PTOType.PTO})


@dataclass(frozen=True)
class ImportedPtoEntry:
    """One day of recovered time off."""

    date: str  # YYYY-MM-DD
    type: PTOType
    hours: float
    notes: str | None = None
    is_note_derived: bool = False
    is_partial_pto_color: bool = False
    # Provenance used by the reconciliation passes
    is_approximate_color: bool = False
    cell_note: str = ""
    type_from_note: bool = False
    original_type: PTOType | None = None

    @property
    def month(self) -> int:
        return int(self.date[5:7])

    def with_note(self, text: str, **changes) -> "ImportedPtoEntry":
        """Copy with ``text`` appended to the provenance notes."""
        notes = f"{self.notes} {text}" if self.notes else text
        return replace(self, notes=notes, **changes)

    def retyped(self, new_type: PTOType, text: str, **changes) -> "ImportedPtoEntry":
        """Copy with a new type, remembering the first type the cell had."""
        return self.with_note(
            text,
            type=new_type,
            original_type=self.original_type or self.type,
            **changes,
        )


@dataclass(frozen=True)
class PtoCalcRow:
    """Declared used hours for one month (PTO Calc column S)."""

    month: int
    used_hours: float


@dataclass(frozen=True)
class UnmatchedNotedCell:
    """Calendar cell with a note but no legend color match."""

    date: str
    note: str


@dataclass(frozen=True)
class WorkedCell:
    """Calendar cell marked (or inferred) as a worked day."""

    date: str
    note: str


@dataclass(frozen=True)
class UnmatchedColoredCell:
    """Calendar cell with a non-legend, non-white/black fill."""

    date: str
    color: str
    note: str = ""


@dataclass(frozen=True)
class CalendarParseResult:
    """Raw observations from walking the calendar grid, before reconciliation."""

    entries: tuple[ImportedPtoEntry, ...] = ()
    unmatched_noted_cells: tuple[UnmatchedNotedCell, ...] = ()
    worked_cells: tuple[WorkedCell, ...] = ()
    unmatched_colored_cells: tuple[UnmatchedColoredCell, ...] = ()
    warnings: tuple[str, ...] = ()
    resolved: tuple[str, ...] = ()


@dataclass(frozen=True)
class EmployeeImportInfo:
    name: str
    hire_date: str  # YYYY-MM-DD, "" when unknown
    year: int  # 0 when unknown
    carryover_hours: float = 0.0
    spreadsheet_pto_rate: float = 0.0


@dataclass(frozen=True)
class ImportedAcknowledgement:
    month: str  # YYYY-MM
    type: str  # "employee" | "admin"
    note: str | None = None
    status: str | None = None  # "warning" | None

    @property
    def key(self) -> str:
        return f"{self.month}:{self.type}"


@dataclass(frozen=True)
class PtoRateTier:
    min_years: int
    max_years: float
    annual_hours: int
    daily_rate: float


@dataclass(frozen=True)
class PassResult:
    """Output of one reconciliation pass."""

    entries: tuple[ImportedPtoEntry, ...]
    warnings: tuple[str, ...] = ()
    resolved: tuple[str, ...] = ()
    worked_cells: tuple[WorkedCell, ...] = ()
    handled_worked_dates: frozenset[str] = field(default_factory=frozenset)
