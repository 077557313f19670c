"""
Reconciliation of calendar entries against the PTO Calc declarations.

The calendar colors are a noisy record of time off; column S of the PTO Calc
section is the sheet's own monthly total. Each pass below is a pure function
of its inputs that returns a PassResult, and run_reconciliation folds them in
a fixed order over a PipelineState.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Sequence

from core.config import (
    ANNUAL_SICK_ALLOWANCE,
    BEREAVEMENT_MIN_GAP,
    FULL_DAY_HOURS,
    HOURS_TOLERANCE,
    MAX_WORKED_NOTE_HOURS,
    UNMATCHED_COLOR_MIN_GAP,
)
from models.pto import (
    COLUMN_S_TRACKED_TYPES,
    ImportedPtoEntry,
    PassResult,
    PtoCalcRow,
    PTOType,
    UnmatchedColoredCell,
    UnmatchedNotedCell,
    WorkedCell,
)
from services.cells import collapse_note, parse_hours_from_note

logger = logging.getLogger(__name__)

WORKED_RE = re.compile(r"\bworked\b", re.IGNORECASE)
OVERCOLOR_NOTE_KEYWORDS = re.compile(r"worked|make\s*up|makeup|offset", re.IGNORECASE)

# Checked in this order when a note names a type
TYPE_KEYWORDS = (
    (PTOType.PTO, re.compile(r"\bPTO\b", re.IGNORECASE)),
    (PTOType.SICK, re.compile(r"\bsick\b", re.IGNORECASE)),
    (PTOType.BEREAVEMENT, re.compile(r"\b(?:bereavement|funeral)\b", re.IGNORECASE)),
    (PTOType.JURY_DUTY, re.compile(r"\bjury\b", re.IGNORECASE)),
)

# Worked-note hour forms, tried in order
WORKED_CREDIT_RE = re.compile(r"\(\+?\s*(\d+(?:\.\d+)?)\s*hours?\s*(?:PTO)?\s*\)", re.IGNORECASE)
MAKE_UP_RE = re.compile(r"make\s*up\s+(\d+(?:\.\d+)?)", re.IGNORECASE)
WORKED_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)\b", re.IGNORECASE)
WORKED_RANGE_RE = re.compile(
    r"worked\s+(?:from\s+)?(\d{1,2})(?::(\d{2}))?\s*(?:am|pm)?\s*[-–]+\s*"
    r"(\d{1,2})(?::(\d{2}))?\s*(?:am|pm)?",
    re.IGNORECASE,
)


def _r2(value: float) -> float:
    return round(value, 2)


def _h(value: float) -> str:
    return f"{value:g}h"


def _tracked(entries: Iterable[ImportedPtoEntry], month: int) -> list[ImportedPtoEntry]:
    return [e for e in entries if e.month == month and e.type in COLUMN_S_TRACKED_TYPES]


def _tracked_total(entries: Iterable[ImportedPtoEntry], month: int) -> float:
    return sum(e.hours for e in _tracked(entries, month))


def _month(iso_date: str) -> int:
    return int(iso_date[5:7])


def _named_types(note: str) -> list[PTOType]:
    return [pto_type for pto_type, pattern in TYPE_KEYWORDS if pattern.search(note)]


def _adjust_note(old: float, new: float, calc: PtoCalcRow) -> str:
    return (
        f"Adjusted from {_h(old)} to {_h(new)} based on PTO Calc "
        f"(declared {_h(calc.used_hours)} for month {calc.month})."
    )


# =============================================================================
# PASS 1: NOTE-BASED TYPE OVERRIDE
# =============================================================================


def override_type_from_note(
    entries: Sequence[ImportedPtoEntry], sheet_name: str = ""
) -> PassResult:
    """
    Let the cell note correct the color-derived type.

    Approximate color matches are weak evidence: a "worked" note turns the
    cell into a worked cell (the entry is dropped), and a note naming a type
    overrides it. Exact matches are only overridden when the note names
    exactly one other type and does not say "worked".
    """
    result = []
    worked = []
    warnings = []
    resolved = []

    for entry in entries:
        note = entry.cell_note
        if not note:
            result.append(entry)
            continue

        named = _named_types(note)
        says_worked = bool(WORKED_RE.search(note))

        if entry.is_approximate_color:
            if says_worked:
                worked.append(WorkedCell(date=entry.date, note=note))
                warnings.append(
                    f'"{sheet_name}" {entry.date}: approximate-matched {entry.type.value} '
                    f'overridden → Worked cell (note: "{note[:60]}").'
                )
                continue
            if named and entry.type not in named:
                new_type = named[0]
                result.append(
                    entry.retyped(
                        new_type,
                        f"Type overridden from {entry.type.value} to {new_type.value} "
                        f"based on note keyword.",
                        type_from_note=True,
                    )
                )
                warnings.append(
                    f'"{sheet_name}" {entry.date}: approximate-matched {entry.type.value} '
                    f'overridden → {new_type.value} (note: "{note[:60]}").'
                )
                continue
        elif len(named) == 1 and named[0] is not entry.type and not says_worked:
            new_type = named[0]
            result.append(
                entry.retyped(
                    new_type,
                    f"Type overridden from {entry.type.value} to {new_type.value} "
                    f"based on note keyword.",
                    type_from_note=True,
                )
            )
            resolved.append(
                f'"{sheet_name}" {entry.date}: {entry.type.value}-colored cell retyped as '
                f'{new_type.value} from its note ("{note[:60]}").'
            )
            continue

        result.append(entry)

    return PassResult(
        entries=tuple(result),
        warnings=tuple(warnings),
        resolved=tuple(resolved),
        worked_cells=tuple(worked),
    )


# =============================================================================
# PASS 2: SICK ALLOWANCE
# =============================================================================


def reclassify_sick_as_pto(
    entries: Sequence[ImportedPtoEntry], sheet_name: str = ""
) -> PassResult:
    """Sick entries dated after the annual sick allowance is used up become PTO."""
    result = list(entries)
    resolved = []
    used = 0.0

    order = sorted(range(len(result)), key=lambda i: result[i].date)
    for i in order:
        entry = result[i]
        if entry.type is not PTOType.SICK:
            continue
        hours = abs(entry.hours)
        if used >= ANNUAL_SICK_ALLOWANCE and not entry.type_from_note:
            result[i] = entry.retyped(
                PTOType.PTO,
                f"Cell colored as Sick but reclassified as PTO — employee had exhausted "
                f"{_h(ANNUAL_SICK_ALLOWANCE)} sick allowance (used {_h(used)} prior to this date).",
            )
            resolved.append(
                f'"{sheet_name}" {entry.date}: Sick entry reclassified as PTO ({_h(hours)}). '
                f"Employee had used {_h(used)} of {_h(ANNUAL_SICK_ALLOWANCE)} sick allowance."
            )
        used += hours

    return PassResult(entries=tuple(result), resolved=tuple(resolved))


# =============================================================================
# PASS 3: PARTIAL DAYS
# =============================================================================


def adjust_partial_days(
    entries: Sequence[ImportedPtoEntry],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """
    Fit partial-day hours to the declared monthly total.

    Months with Partial PTO colored entries spread the remainder evenly over
    the partials whose hours did not come from a note. Months without
    partials shorten the last entry when the calendar overshoots and warn
    when it undershoots.
    """
    result = list(entries)
    warnings = []

    for calc in pto_calc_rows:
        declared = calc.used_hours
        if declared <= 0:
            continue

        indices = sorted(
            (i for i, e in enumerate(result)
             if e.month == calc.month and e.type in COLUMN_S_TRACKED_TYPES),
            key=lambda i: result[i].date,
        )
        if not indices:
            continue

        calendar_total = sum(result[i].hours for i in indices)
        if _r2(calendar_total) == _r2(declared):
            continue

        partials = [i for i in indices if result[i].is_partial_pto_color]

        if partials:
            pinned = [i for i in partials if result[i].is_note_derived]
            unpinned = [i for i in partials if not result[i].is_note_derived]
            full_total = sum(result[i].hours for i in indices if not result[i].is_partial_pto_color)
            pinned_total = sum(result[i].hours for i in pinned)

            if unpinned:
                remaining = _r2(declared - full_total - pinned_total)
                hours_each = _r2(remaining / len(unpinned))
                if 0 < hours_each <= FULL_DAY_HOURS:
                    for i in unpinned:
                        if result[i].hours != hours_each:
                            result[i] = result[i].with_note(
                                _adjust_note(result[i].hours, hours_each, calc), hours=hours_each
                            )
                else:
                    warnings.append(
                        f'"{sheet_name}" month {calc.month}: partial distribution produced '
                        f"{_h(hours_each)} per entry (out of 0–8 range). "
                        f"Declared={_h(declared)}, fullTotal={_h(full_total)}, "
                        f"pinnedTotal={_h(pinned_total)}, {len(unpinned)} unpinned partial "
                        f"entries. No adjustment applied."
                    )
            else:
                total_with_pinned = _r2(full_total + pinned_total)
                if abs(total_with_pinned - declared) > HOURS_TOLERANCE:
                    warnings.append(
                        f'"{sheet_name}" month {calc.month}: all {len(pinned)} partial entries '
                        f"have note-derived hours (pinned). Declared={_h(declared)}, "
                        f"fullTotal={_h(full_total)}, pinnedTotal={_h(pinned_total)}, "
                        f"total={_h(total_with_pinned)}. Not overriding pinned values."
                    )
        elif calendar_total > declared:
            last = indices[-1]
            target = result[last]
            partial_hours = declared - (calendar_total - target.hours)
            if 0 < partial_hours < target.hours:
                new_hours = _r2(partial_hours)
                result[last] = target.with_note(
                    _adjust_note(target.hours, new_hours, calc), hours=new_hours
                )
        else:
            warnings.append(
                f'"{sheet_name}" month {calc.month}: calendar total ({_h(calendar_total)}) < '
                f"declared ({_h(declared)}) but no Partial PTO entries found. "
                f"Cannot back-calculate."
            )

    return PassResult(entries=tuple(result), warnings=tuple(warnings))


# =============================================================================
# PASS 4: NOTED CELLS WITHOUT A LEGEND COLOR
# =============================================================================


def reconcile_partial_pto(
    entries: Sequence[ImportedPtoEntry],
    unmatched_noted_cells: Sequence[UnmatchedNotedCell],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """Turn noted cells into PTO to close a month's shortfall against column S."""
    result = list(entries)
    warnings = []
    resolved = []

    for calc in pto_calc_rows:
        declared = calc.used_hours
        if declared <= 0:
            continue

        detected = _tracked_total(result, calc.month)
        gap = _r2(declared - detected)
        if gap <= 0:
            continue

        noted = [c for c in unmatched_noted_cells if _month(c.date) == calc.month]
        if not noted:
            warnings.append(
                f'"{sheet_name}" month {calc.month}: PTO hours mismatch. '
                f"Declared={_h(declared)}, detected={_h(detected)}, gap={_h(gap)}. "
                f"No cell notes found for reconciliation."
            )
            continue

        remaining = gap
        for cell in noted:
            if remaining <= 0:
                break
            note_hours = parse_hours_from_note(cell.note)
            assigned = min(note_hours, remaining) if note_hours is not None else remaining
            result.append(
                ImportedPtoEntry(
                    date=cell.date,
                    type=PTOType.PTO,
                    hours=_r2(assigned),
                    notes=(
                        f'Inferred partial PTO from cell note "{collapse_note(cell.note)}". '
                        f"Calendar color not matched as Partial PTO. Reconciled against "
                        f"PTO Calc (declared={_h(declared)}, detected={_h(detected)}, "
                        f"gap={_h(gap)})."
                    ),
                    cell_note=collapse_note(cell.note),
                )
            )
            remaining = _r2(remaining - assigned)

        if remaining > 0:
            resolved.append(
                f'"{sheet_name}" month {calc.month}: partially reconciled. '
                f"Declared={_h(declared)}, detected={_h(detected)}, assigned "
                f"{_h(_r2(gap - remaining))} from notes, {_h(remaining)} still unaccounted for."
            )

    return PassResult(entries=tuple(result), warnings=tuple(warnings), resolved=tuple(resolved))


# =============================================================================
# PASSES 5-6: WORKED DAYS
# =============================================================================


def parse_worked_hours_from_note(note: str) -> float | None:
    """
    Hours of work stated in a "worked" note.

    Recognizes "(+4 hours PTO)", "make up 4", "4 hrs" (up to 12) and time
    ranges such as "worked 9-1" or "worked from 8:30 - 12".
    """
    match = WORKED_CREDIT_RE.search(note)
    if match:
        return float(match.group(1))

    match = MAKE_UP_RE.search(note)
    if match:
        return float(match.group(1))

    match = WORKED_HOURS_RE.search(note)
    if match:
        hours = float(match.group(1))
        if 0 < hours <= MAX_WORKED_NOTE_HOURS:
            return hours

    match = WORKED_RANGE_RE.search(note)
    if match:
        start = int(match.group(1)) + int(match.group(2) or 0) / 60
        end = int(match.group(3)) + int(match.group(4) or 0) / 60
        if end <= start:
            # "worked 9-1" crosses noon on a 12-hour clock
            end += 12
        diff = _r2(end - start)
        if 0 < diff <= MAX_WORKED_NOTE_HOURS:
            return diff

    return None


def infer_weekend_partial_hours(
    entries: Sequence[ImportedPtoEntry],
    worked_cells: Sequence[WorkedCell],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """
    Solve for partial hours p and worked hours w in months that have both.

        declared = full + pinned + credits + n·p − k·w

    Tried in order: w = 8h, then p = 4h, then w clamped to [0.5, 8] around
    the p = 4h solution. Worked cells used here are reported in
    handled_worked_dates so process_worked_cells skips them.
    """
    result = list(entries)
    new_entries = []
    handled = set()
    warnings = []
    resolved = []

    credited_dates = {e.date for e in entries if e.hours < 0}
    worked_by_month = defaultdict(list)
    for cell in worked_cells:
        if cell.date not in credited_dates:
            worked_by_month[_month(cell.date)].append(cell)

    for calc in pto_calc_rows:
        declared = calc.used_hours
        month_indices = [
            i for i, e in enumerate(result)
            if e.month == calc.month and e.type in COLUMN_S_TRACKED_TYPES
        ]
        current_total = sum(result[i].hours for i in month_indices)
        if abs(current_total - declared) < 0.01:
            continue

        partials = [i for i in month_indices if result[i].is_partial_pto_color]
        worked = worked_by_month.get(calc.month, [])
        if not partials or not worked:
            continue

        unpinned = [i for i in partials if not result[i].is_note_derived]
        if not unpinned:
            continue

        pinned_total = sum(result[i].hours for i in partials if result[i].is_note_derived)
        full_total = sum(
            result[i].hours for i in month_indices
            if not result[i].is_partial_pto_color and result[i].hours > 0
        )
        credits = sum(result[i].hours for i in month_indices if result[i].hours < 0)
        n, k = len(unpinned), len(worked)
        target = declared - full_total - pinned_total - credits

        p = w = None
        method = ""
        p1 = _r2((target + k * FULL_DAY_HOURS) / n)
        if 0 < p1 <= FULL_DAY_HOURS:
            p, w, method = p1, FULL_DAY_HOURS, "w assumed 8h"

        if p is None:
            w2 = _r2((n * 4 - target) / k)
            if 0 < w2 <= FULL_DAY_HOURS:
                p, w, method = 4.0, w2, "p assumed 4h"

        if p is None:
            clamped_w = _r2(min(FULL_DAY_HOURS, max(0.5, (n * 4 - target) / k)))
            derived_p = _r2((target + k * clamped_w) / n)
            if 0 < derived_p <= FULL_DAY_HOURS:
                p, w, method = derived_p, clamped_w, "constrained solve"

        if p is None:
            warnings.append(
                f'"{sheet_name}" month {calc.month}: weekend/partial inference failed. '
                f"Could not find valid p and w values. Declared={_h(declared)}, "
                f"fullTotal={_h(full_total)}, {n} unpinned partial(s), {k} worked cell(s). "
                f"No adjustment applied."
            )
            continue

        equation = (
            f"declared({declared:g}) = full({full_total:g}) + pinned({pinned_total:g}) + "
        )
        for i in unpinned:
            result[i] = result[i].with_note(
                f"Inferred p={_h(p)} ({method}). Equation: {equation}{n}×p − {k}×{w:g}",
                hours=p,
            )
        for cell in worked:
            new_entries.append(
                ImportedPtoEntry(
                    date=cell.date,
                    type=PTOType.PTO,
                    hours=-w,
                    notes=(
                        f"Inferred w={_h(w)} ({method}). Equation: {equation}{n}×{p:g} − {k}×w. "
                        f'Cell note: "{collapse_note(cell.note)}"'
                    ),
                    cell_note=collapse_note(cell.note),
                )
            )
            handled.add(cell.date)

        new_total = _r2(full_total + pinned_total + credits + n * p - k * w)
        resolved.append(
            f'"{sheet_name}" month {calc.month}: weekend/partial inference applied. '
            f"p={_h(p)}, w={_h(w)} ({method}). Declared={_h(declared)}, computed={_h(new_total)}."
        )

    return PassResult(
        entries=tuple(result + new_entries),
        warnings=tuple(warnings),
        resolved=tuple(resolved),
        handled_worked_dates=frozenset(handled),
    )


def process_worked_cells(
    worked_cells: Sequence[WorkedCell],
    entries: Sequence[ImportedPtoEntry],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """
    Turn worked cells into negative PTO credits.

    Hours come from the note when it states them. A single unparsed cell in a
    month absorbs the month's deficit against column S; several unparsed
    cells, or no deficit, are reported as warnings.
    """
    result = list(entries)
    warnings = []
    resolved = []
    declared_by_month = {row.month: row.used_hours for row in pto_calc_rows}

    by_month = defaultdict(list)
    for cell in worked_cells:
        by_month[_month(cell.date)].append(cell)

    for month, cells in by_month.items():
        declared = declared_by_month.get(month, 0.0)
        existing = _tracked_total(entries, month)
        parsed_credit = 0.0
        unparsed = []

        for cell in cells:
            note = collapse_note(cell.note)
            hours = parse_worked_hours_from_note(cell.note)
            if hours is None:
                unparsed.append(cell)
                continue
            parsed_credit += hours
            result.append(
                ImportedPtoEntry(
                    date=cell.date,
                    type=PTOType.PTO,
                    hours=-hours,
                    notes=f'Weekend/off-day work credit ({_h(hours)}). Cell note: "{note}"',
                    cell_note=note,
                )
            )
            resolved.append(
                f'"{sheet_name}": detected worked day on {cell.date}. Note: "{note}". '
                f"Assigned -{_h(hours)} PTO credit from note."
            )

        if not unparsed:
            continue

        deficit = _r2(existing - parsed_credit - declared)
        if deficit > 0 and len(unparsed) == 1:
            cell = unparsed[0]
            note = collapse_note(cell.note)
            result.append(
                ImportedPtoEntry(
                    date=cell.date,
                    type=PTOType.PTO,
                    hours=-deficit,
                    notes=(
                        f"Weekend/off-day work credit inferred from PTO Calc. "
                        f"Declared={_h(declared)}, detected={_h(existing)}, other "
                        f"credits={_h(parsed_credit)}, inferred={_h(deficit)}. "
                        f'Cell note: "{note}"'
                    ),
                    cell_note=note,
                )
            )
            resolved.append(
                f'"{sheet_name}": detected worked day on {cell.date}. Note: "{note}". '
                f"Inferred -{_h(deficit)} PTO credit from PTO Calc deficit."
            )
        elif deficit > 0:
            for cell in unparsed:
                warnings.append(
                    f'"{sheet_name}": detected worked day on {cell.date}. '
                    f'Note: "{collapse_note(cell.note)}". Could not determine hours — '
                    f"{len(unparsed)} worked cells in month {month} with {_h(deficit)} "
                    f"total deficit. Skipping."
                )
        else:
            for cell in unparsed:
                warnings.append(
                    f'"{sheet_name}": detected worked day on {cell.date}. '
                    f'Note: "{collapse_note(cell.note)}". Could not determine hours '
                    f"(no PTO Calc deficit). Skipping."
                )

    return PassResult(entries=tuple(result), warnings=tuple(warnings), resolved=tuple(resolved))


# =============================================================================
# PASS 7: NON-LEGEND COLORS
# =============================================================================


def reconcile_unmatched_colored_cells(
    entries: Sequence[ImportedPtoEntry],
    unmatched_colored_cells: Sequence[UnmatchedColoredCell],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """
    Treat non-legend colored cells as PTO when a month is short by a full day or more.

    Noted cells are converted first (hours from the note, else up to 8h);
    the rest share what is left. Any colored cell that ends up neither
    converted nor covered by another entry is reported.
    """
    result = list(entries)
    warnings = []
    resolved = []
    existing_dates = {e.date for e in entries}
    converted = set()

    for calc in pto_calc_rows:
        declared = calc.used_hours
        if declared <= 0:
            continue

        calendar_total = _tracked_total(entries, calc.month)
        gap = _r2(declared - calendar_total)
        if gap < UNMATCHED_COLOR_MIN_GAP:
            continue

        available = [
            c for c in unmatched_colored_cells
            if _month(c.date) == calc.month and c.date not in existing_dates
        ]
        if not available:
            continue

        with_notes = [c for c in available if c.note]
        without_notes = [c for c in available if not c.note]
        month_converted = 0

        for cell in with_notes:
            if gap <= HOURS_TOLERANCE:
                break
            note_hours = parse_hours_from_note(cell.note)
            assigned = min(note_hours if note_hours is not None else FULL_DAY_HOURS, gap)
            result.append(
                ImportedPtoEntry(
                    date=cell.date,
                    type=PTOType.PTO,
                    hours=_r2(assigned),
                    notes=(
                        f"Non-standard color ({cell.color}) treated as PTO — cell color not "
                        f"in legend but PTO Calc discrepancy suggests PTO. "
                        f'Cell note: "{collapse_note(cell.note)}"'
                    ),
                    cell_note=collapse_note(cell.note),
                )
            )
            converted.add(cell.date)
            month_converted += 1
            gap = _r2(gap - assigned)

        if gap > HOURS_TOLERANCE and without_notes:
            hours_each = _r2(gap / len(without_notes))
            if 0 < hours_each <= FULL_DAY_HOURS:
                for cell in without_notes:
                    if gap <= HOURS_TOLERANCE:
                        break
                    assigned = min(hours_each, gap)
                    result.append(
                        ImportedPtoEntry(
                            date=cell.date,
                            type=PTOType.PTO,
                            hours=_r2(assigned),
                            notes=(
                                f"Non-standard color ({cell.color}) treated as PTO — cell "
                                f"color not in legend but PTO Calc discrepancy suggests PTO."
                            ),
                        )
                    )
                    converted.add(cell.date)
                    month_converted += 1
                    gap = _r2(gap - assigned)
            else:
                warnings.append(
                    f'"{sheet_name}" month {calc.month}: {len(without_notes)} unmatched '
                    f"colored cells but distributing {_h(gap)} yields {_h(hours_each)} each "
                    f"(out of 0–8 range). No PTO entries created from unmatched cells."
                )

        if gap > HOURS_TOLERANCE:
            resolved.append(
                f'"{sheet_name}" month {calc.month}: partially reconciled via unmatched '
                f"colored cells. Declared={_h(declared)}, calendar={_h(calendar_total)}, "
                f"assigned {_h(_r2(declared - calendar_total - gap))} from unmatched cells, "
                f"{_h(gap)} still unaccounted for."
            )
        elif month_converted:
            resolved.append(
                f'"{sheet_name}" month {calc.month}: reconciled {month_converted} unmatched '
                f"colored cell(s) as PTO. Declared={_h(declared)}, original "
                f"calendar={_h(calendar_total)}."
            )

    for cell in unmatched_colored_cells:
        if cell.date in converted or cell.date in existing_dates:
            continue
        warnings.append(
            f'"{sheet_name}" {cell.date}: cell colored {cell.color} is not in the legend '
            f"and was not reconciled as PTO. Review manually."
        )

    return PassResult(entries=tuple(result), warnings=tuple(warnings), resolved=tuple(resolved))


# =============================================================================
# PASS 8: COLUMN S RETYPING
# =============================================================================


def _sick_allowance_applied(entries: Sequence[ImportedPtoEntry]) -> bool:
    return any(
        e.original_type is PTOType.SICK and e.type is PTOType.PTO and not e.type_from_note
        for e in entries
    )


def _retype_to_close_gap(
    result: list[ImportedPtoEntry],
    candidates: list[int],
    calc: PtoCalcRow,
    min_gap: float,
    label: str,
    reason: str,
    sheet_name: str,
) -> list[str]:
    """Retype candidates (in order) as PTO while they fit the month's gap. Edits result in place."""
    resolved = []
    declared = calc.used_hours
    pto_total = _tracked_total(result, calc.month)
    gap = declared - pto_total
    if gap < min_gap:
        return resolved

    for i in candidates:
        hours = abs(result[i].hours)
        if hours > gap + HOURS_TOLERANCE:
            continue
        result[i] = result[i].retyped(
            PTOType.PTO,
            f"{reason} Declared={_h(declared)}, PTO before={pto_total:.1f}h, gap={gap:.1f}h.",
        )
        resolved.append(
            f'"{sheet_name}" {result[i].date}: {label} reclassified as PTO ({_h(hours)}) '
            f"based on column S gap. Declared={_h(declared)}, prior PTO={pto_total:.1f}h."
        )
        pto_total += hours
        gap -= hours
        if gap < min_gap:
            break
    return resolved


def reclassify_sick_by_column_s(
    entries: Sequence[ImportedPtoEntry],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """
    Retype Sick entries as PTO where column S declares more PTO than found.

    Only runs when the sick allowance pass already reclassified something,
    which shows the employee's sick time was exhausted.
    """
    if not _sick_allowance_applied(entries):
        return PassResult(entries=tuple(entries))

    result = list(entries)
    resolved = []
    for calc in pto_calc_rows:
        candidates = sorted(
            (i for i, e in enumerate(result)
             if e.month == calc.month and e.type is PTOType.SICK and not e.type_from_note),
            key=lambda i: result[i].date,
        )
        if not candidates:
            continue
        resolved.extend(
            _retype_to_close_gap(
                result, candidates, calc, HOURS_TOLERANCE, "Sick",
                "Sick entry reclassified as PTO based on column S gap "
                "(sick allowance appears exhausted).",
                sheet_name,
            )
        )
    return PassResult(entries=tuple(result), resolved=tuple(resolved))


def reclassify_bereavement_by_column_s(
    entries: Sequence[ImportedPtoEntry],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """Retype approximate-matched Bereavement entries as PTO to close a column S gap."""
    result = list(entries)
    resolved = []
    for calc in pto_calc_rows:
        candidates = sorted(
            (i for i, e in enumerate(result)
             if e.month == calc.month
             and e.type is PTOType.BEREAVEMENT
             and e.is_approximate_color
             and not e.type_from_note),
            key=lambda i: result[i].hours,
        )
        if not candidates:
            continue
        resolved.extend(
            _retype_to_close_gap(
                result, candidates, calc, BEREAVEMENT_MIN_GAP, "Bereavement",
                "Bereavement reclassified as PTO based on column S gap.",
                sheet_name,
            )
        )
    return PassResult(entries=tuple(result), resolved=tuple(resolved))


# =============================================================================
# PASS 9: OVER-COLORING
# =============================================================================


def detect_over_coloring(
    entries: Sequence[ImportedPtoEntry],
    pto_calc_rows: Sequence[PtoCalcRow],
    sheet_name: str = "",
) -> PassResult:
    """Warn for months whose calendar PTO exceeds column S. Entries are not changed."""
    warnings = []
    for calc in pto_calc_rows:
        month_entries = _tracked(entries, calc.month)
        calendar_total = sum(e.hours for e in month_entries)
        delta = _r2(calendar_total - calc.used_hours)
        if delta <= HOURS_TOLERANCE:
            continue

        note_matches = [
            f"{e.date} note: '{collapse_note(e.notes)[:120]}'"
            for e in month_entries
            if e.notes and OVERCOLOR_NOTE_KEYWORDS.search(e.notes)
        ]
        warning = (
            f"Over-coloring detected for {sheet_name} month {calc.month}: "
            f"calendar={_h(_r2(calendar_total))}, declared={_h(calc.used_hours)} "
            f"(Δ=+{_h(delta)})."
        )
        if note_matches:
            warning += f" Relevant notes: {'; '.join(note_matches)}."
        warning += f" Column S is authoritative; calendar over-reports by {_h(delta)}."
        warnings.append(warning)

    return PassResult(entries=tuple(entries), warnings=tuple(warnings))


# =============================================================================
# PIPELINE
# =============================================================================


@dataclass(frozen=True)
class PipelineState:
    """Everything the passes read and produce for one sheet."""

    sheet_name: str
    entries: tuple[ImportedPtoEntry, ...]
    pto_calc_rows: tuple[PtoCalcRow, ...] = ()
    unmatched_noted_cells: tuple[UnmatchedNotedCell, ...] = ()
    unmatched_colored_cells: tuple[UnmatchedColoredCell, ...] = ()
    worked_cells: tuple[WorkedCell, ...] = ()
    handled_worked_dates: frozenset[str] = field(default_factory=frozenset)
    warnings: tuple[str, ...] = ()
    resolved: tuple[str, ...] = ()

    def absorb(self, result: PassResult, **changes) -> "PipelineState":
        return replace(
            self,
            entries=result.entries,
            warnings=self.warnings + result.warnings,
            resolved=self.resolved + result.resolved,
            **changes,
        )


def _step_override_type(state: PipelineState) -> PipelineState:
    result = override_type_from_note(state.entries, state.sheet_name)
    return state.absorb(result, worked_cells=state.worked_cells + result.worked_cells)


def _step_sick_allowance(state: PipelineState) -> PipelineState:
    return state.absorb(reclassify_sick_as_pto(state.entries, state.sheet_name))


def _step_partial_days(state: PipelineState) -> PipelineState:
    return state.absorb(adjust_partial_days(state.entries, state.pto_calc_rows, state.sheet_name))


def _step_noted_cells(state: PipelineState) -> PipelineState:
    return state.absorb(
        reconcile_partial_pto(
            state.entries, state.unmatched_noted_cells, state.pto_calc_rows, state.sheet_name
        )
    )


def _step_weekend_partials(state: PipelineState) -> PipelineState:
    result = infer_weekend_partial_hours(
        state.entries, state.worked_cells, state.pto_calc_rows, state.sheet_name
    )
    return state.absorb(
        result, handled_worked_dates=state.handled_worked_dates | result.handled_worked_dates
    )


def _step_worked_cells(state: PipelineState) -> PipelineState:
    remaining = [c for c in state.worked_cells if c.date not in state.handled_worked_dates]
    return state.absorb(
        process_worked_cells(remaining, state.entries, state.pto_calc_rows, state.sheet_name)
    )


def _step_unmatched_colors(state: PipelineState) -> PipelineState:
    return state.absorb(
        reconcile_unmatched_colored_cells(
            state.entries, state.unmatched_colored_cells, state.pto_calc_rows, state.sheet_name
        )
    )


def _step_sick_by_column_s(state: PipelineState) -> PipelineState:
    return state.absorb(
        reclassify_sick_by_column_s(state.entries, state.pto_calc_rows, state.sheet_name)
    )


def _step_bereavement_by_column_s(state: PipelineState) -> PipelineState:
    return state.absorb(
        reclassify_bereavement_by_column_s(state.entries, state.pto_calc_rows, state.sheet_name)
    )


def _step_over_coloring(state: PipelineState) -> PipelineState:
    return state.absorb(detect_over_coloring(state.entries, state.pto_calc_rows, state.sheet_name))


RECONCILIATION_STEPS: tuple[Callable[[PipelineState], PipelineState], ...] = (
    _step_override_type,
    _step_sick_allowance,
    _step_partial_days,
    _step_noted_cells,
    _step_weekend_partials,
    _step_worked_cells,
    _step_unmatched_colors,
    _step_sick_by_column_s,
    _step_bereavement_by_column_s,
    _step_over_coloring,
)


def run_reconciliation(state: PipelineState) -> PipelineState:
    """Apply every reconciliation step in order."""
    for step in RECONCILIATION_STEPS:
        state = step(state)
        logger.debug(
            "Sheet %r after %s: %d entries", state.sheet_name, step.__name__, len(state.entries)
        )
    return state
