"""
Sheet and workbook import.

Sequences the parsers and reconciliation passes for each employee sheet and
collects every component's warnings and resolved narrations.
"""

import io
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Mapping

from openpyxl import load_workbook

from core.config import DEFAULT_OFFICE_THEME, MAX_WORKERS
from core.exceptions import SheetLayoutError
from core.logging import ImportLog, log_import
from core.validation import validate_entries
from models.results import SheetImportResult, WorkbookImportResult
from services.acknowledgements import (
    generate_import_acknowledgements,
    merge_acknowledgements,
    parse_acknowledgements,
)
from services.calendar import parse_calendar_grid
from services.colors import extract_theme_colors
from services.employee import compute_pto_rate, is_employee_sheet, parse_employee_info
from services.legend import parse_legend, parse_partial_pto_colors
from services.pto_calc import parse_pto_calc_used_hours
from services.reconciliation import PipelineState, run_reconciliation

logger = logging.getLogger(__name__)


def parse_employee_sheet(
    ws, theme_colors: Mapping[int, str] = DEFAULT_OFFICE_THEME
) -> SheetImportResult:
    """
    Import one employee worksheet.

    Data problems in the sheet never raise: they are reported in the
    result's warnings (or errors when nothing usable can be produced).
    """
    name = ws.title.strip()
    warnings: list[str] = []
    errors: list[str] = []
    resolved: list[str] = []

    legend = parse_legend(ws, theme_colors)
    if not legend:
        warnings.append(f'No legend found on sheet "{name}"')

    employee, hire_date_resolved = parse_employee_info(ws)
    resolved.extend(hire_date_resolved)
    if not employee.hire_date:
        warnings.append(f'Could not determine hire date from sheet "{name}"')
    if not employee.year:
        errors.append(f'Could not determine year from sheet "{name}"')
        return SheetImportResult(
            employee=employee, warnings=warnings, errors=errors, resolved=resolved
        )

    _, rate_warning = compute_pto_rate(employee)
    if rate_warning:
        warnings.append(rate_warning)

    partial_pto_colors = parse_partial_pto_colors(ws, theme_colors)
    calendar = parse_calendar_grid(
        ws, employee.year, legend, theme_colors, partial_pto_colors
    )
    warnings.extend(calendar.warnings)
    resolved.extend(calendar.resolved)

    try:
        pto_calc_rows = tuple(parse_pto_calc_used_hours(ws))
    except SheetLayoutError as e:
        warnings.append(f"{e}. Calendar entries were not reconciled against column S.")
        pto_calc_rows = ()

    state = run_reconciliation(
        PipelineState(
            sheet_name=name,
            entries=calendar.entries,
            pto_calc_rows=pto_calc_rows,
            unmatched_noted_cells=calendar.unmatched_noted_cells,
            unmatched_colored_cells=calendar.unmatched_colored_cells,
            worked_cells=calendar.worked_cells,
        )
    )
    warnings.extend(state.warnings)
    resolved.extend(state.resolved)
    warnings.extend(
        f'Sheet "{name}": {message}'
        for message in validate_entries(state.entries, employee.year)
    )

    generated = generate_import_acknowledgements(
        state.entries, pto_calc_rows, employee.year, name
    )
    parsed = parse_acknowledgements(ws, employee.year) if pto_calc_rows else []

    return SheetImportResult(
        employee=employee,
        pto_entries=list(state.entries),
        acknowledgements=merge_acknowledgements(generated, parsed),
        warnings=warnings,
        errors=errors,
        resolved=resolved,
    )


def _import_sheet(ws, theme_colors: Mapping[int, str]) -> SheetImportResult:
    """Parse one sheet and write its import log."""
    start_time = time.time()
    result = parse_employee_sheet(ws, theme_colors)

    log = ImportLog(
        sheet_name=ws.title,
        employee_name=result.employee.name,
        year=result.employee.year,
        processing_time_ms=int((time.time() - start_time) * 1000),
        pto_entries=len(result.pto_entries),
        acknowledgements=len(result.acknowledgements),
    )
    log.details.extend(("warning", m) for m in result.warnings)
    log.details.extend(("error", m) for m in result.errors)
    log.details.extend(("resolved", m) for m in result.resolved)
    log_import(log)
    return result


def _import_sheet_safely(
    ws, theme_colors: Mapping[int, str]
) -> SheetImportResult | str:
    """Parse a sheet, turning an unexpected failure into an error message."""
    try:
        return _import_sheet(ws, theme_colors)
    except Exception as e:
        logger.exception("Failed to import sheet %r", ws.title)
        return f'Sheet "{ws.title}": import failed: {e}'


def load_source_workbook(source):
    """Open a workbook from a path, raw bytes or a binary file object."""
    if isinstance(source, (str, Path)):
        return load_workbook(source, data_only=True)
    if isinstance(source, (bytes, bytearray)):
        return load_workbook(io.BytesIO(source), data_only=True)
    if hasattr(source, "read"):
        return load_workbook(source, data_only=True)
    return source


def import_workbook(source, max_workers: int | None = None) -> WorkbookImportResult:
    """
    Import every employee sheet of a workbook.

    Args:
        source: path, bytes, binary file object or an openpyxl Workbook
        max_workers: parse sheets in a thread pool when greater than 1;
            defaults to PTO_IMPORT_MAX_WORKERS

    Returns:
        WorkbookImportResult with sheets in workbook order
    """
    workbook = load_source_workbook(source)
    theme_colors = extract_theme_colors(workbook)
    workers = max_workers if max_workers is not None else MAX_WORKERS

    result = WorkbookImportResult(sheet_names=list(workbook.sheetnames))
    employee_sheets = []
    for ws in workbook.worksheets:
        if is_employee_sheet(ws):
            employee_sheets.append(ws)
        else:
            logger.debug("Skipping non-employee sheet %r", ws.title)
            result.skipped_sheets.append(ws.title)

    if workers > 1 and len(employee_sheets) > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pto-import") as executor:
            outcomes = list(
                executor.map(lambda ws: _import_sheet_safely(ws, theme_colors), employee_sheets)
            )
    else:
        outcomes = [_import_sheet_safely(ws, theme_colors) for ws in employee_sheets]

    for outcome in outcomes:
        if isinstance(outcome, SheetImportResult):
            result.sheets.append(outcome)
        else:
            result.errors.append(outcome)

    if not employee_sheets:
        result.warnings.append("No employee sheets found in workbook")

    logger.info(
        "Imported %d employee sheet(s), %d PTO entries, skipped %d sheet(s), %d error(s)",
        len(result.sheets),
        result.pto_entry_count,
        len(result.skipped_sheets),
        len(result.errors),
    )
    return result
