"""
Legend parsing.

The legend sits in column Z under a "Legend" header: each row is a label
("Full PTO", "Sick", ...) whose own fill is the color used in the calendar.
"""

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

from core.config import (
    DEFAULT_OFFICE_THEME,
    LEGEND_COL,
    LEGEND_MAX_ENTRIES,
    LEGEND_SCAN_MAX_ROW,
    PARTIAL_PTO_LABEL,
)
from models.pto import LEGEND_LABEL_TO_PTO_TYPE, PTOType
from services.cells import get_cell_text, get_pattern_fill
from services.colors import resolve_color_to_argb

logger = logging.getLogger(__name__)


def find_legend_header_row(ws) -> int | None:
    """Row holding the "Legend" header in column Z, or None."""
    for row in range(1, LEGEND_SCAN_MAX_ROW + 1):
        if get_cell_text(ws.cell(row=row, column=LEGEND_COL)).lower() == "legend":
            return row
    return None


def _legend_rows(
    ws, theme_colors: Mapping[int, str]
) -> Iterator[tuple[str, str]]:
    """Yield (label, resolved ARGB) for each colored legend row."""
    header_row = find_legend_header_row(ws)
    if header_row is None:
        return

    for row in range(header_row + 1, header_row + LEGEND_MAX_ENTRIES + 1):
        cell = ws.cell(row=row, column=LEGEND_COL)
        label = get_cell_text(cell)
        if not label:
            break

        fill = get_pattern_fill(cell)
        if fill is None:
            continue
        argb = resolve_color_to_argb(fill.fgColor, theme_colors)
        if argb:
            yield label, argb


def parse_legend(
    ws, theme_colors: Mapping[int, str] = DEFAULT_OFFICE_THEME
) -> Mapping[str, PTOType]:
    """
    Build the read-only color -> PTOType legend for a sheet.

    Keys are resolved ARGB values, so theme-colored and direct-colored
    calendar cells hit the same entry. Returns an empty mapping when the
    legend is missing; the orchestrator reports that.
    """
    legend: dict[str, PTOType] = {}
    for label, argb in _legend_rows(ws, theme_colors):
        pto_type = LEGEND_LABEL_TO_PTO_TYPE.get(label)
        if pto_type is None:
            logger.debug("Sheet %r: ignoring legend label %r", ws.title, label)
            continue
        legend[argb] = pto_type
    return MappingProxyType(legend)


def parse_partial_pto_colors(
    ws, theme_colors: Mapping[int, str] = DEFAULT_OFFICE_THEME
) -> frozenset[str]:
    """ARGB colors of the legend rows labelled "Partial PTO"."""
    return frozenset(
        argb for label, argb in _legend_rows(ws, theme_colors)
        if label == PARTIAL_PTO_LABEL
    )
