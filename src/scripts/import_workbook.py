#!/usr/bin/env python3
"""
Import PTO history from a legacy employee workbook.

Reads every employee sheet, reconciles the calendar against each sheet's
PTO Calc section and prints a per-sheet summary. The full result can be
written as JSON for loading into the PTO tracker.

Usage:
    uv run python src/scripts/import_workbook.py <workbook.xlsx> [--json OUT] [--workers N]

Example:
    uv run python src/scripts/import_workbook.py input/pto_2024.xlsx --json output/pto_2024.json
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import MAX_WORKERS, OUTPUT_DIR
from core.logging import configure_logging
from models.results import WorkbookImportResult
from services.sheets import import_workbook


def print_summary(result: WorkbookImportResult, verbose: bool = False):
    """Print a human-readable summary of an import."""
    print(f"\nSheets in workbook: {len(result.sheet_names)}")
    if result.skipped_sheets:
        print(f"Skipped (not employee sheets): {', '.join(result.skipped_sheets)}")

    for sheet in result.sheets:
        employee = sheet.employee
        print(f"\n{employee.name} ({employee.year or 'unknown year'})")
        print(f"  Hire date: {employee.hire_date or 'unknown'}")
        print(f"  PTO entries: {len(sheet.pto_entries)}")
        print(f"  Acknowledgements: {len(sheet.acknowledgements)}")
        print(f"  Warnings: {len(sheet.warnings)}  Resolved: {len(sheet.resolved)}")
        for error in sheet.errors:
            print(f"  ERROR: {error}")
        if verbose:
            for warning in sheet.warnings:
                print(f"    warning: {warning}")
            for narration in sheet.resolved:
                print(f"    resolved: {narration}")

    for warning in result.warnings:
        print(f"\nWarning: {warning}")
    for error in result.errors:
        print(f"\nError: {error}")

    print(f"\nTotal PTO entries: {result.pto_entry_count}")


def main():
    parser = argparse.ArgumentParser(
        description="Import PTO history from a legacy employee workbook"
    )
    parser.add_argument(
        "input_file",
        type=Path,
        help="Path to the .xlsx workbook",
    )
    parser.add_argument(
        "--json",
        type=Path,
        dest="json_path",
        help=f"Write the full result as JSON (relative paths go under {OUTPUT_DIR})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=MAX_WORKERS,
        help="Number of sheets to parse in parallel",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print every warning and resolved narration",
    )

    args = parser.parse_args()
    configure_logging("DEBUG" if args.verbose else None)

    try:
        result = import_workbook(args.input_file, max_workers=args.workers)
        print_summary(result, verbose=args.verbose)

        if args.json_path:
            output_path = args.json_path
            if not output_path.is_absolute():
                output_path = OUTPUT_DIR / output_path
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
            print(f"\nResult written: {output_path}")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)

    if result.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
