"""
Theme color resolution and color matching.

Cell fills in the legacy sheets reference colors three ways: a direct ARGB
value, an index into the legacy 64-color palette, or a theme slot plus tint.
Everything is normalized to a canonical ARGB string (8 uppercase hex digits,
alpha forced to FF) so legend lookups are plain dictionary hits.
"""

import logging
import math
import re
from types import MappingProxyType
from typing import Mapping
from xml.etree import ElementTree

from openpyxl.styles.colors import COLOR_INDEX, Color

from core.config import (
    DEFAULT_OFFICE_THEME,
    MAX_COLOR_DISTANCE,
    MIN_CHROMA_FOR_APPROX,
)
from models.pto import PTOType

logger = logging.getLogger(__name__)

DRAWINGML_NS = "{http://schemas.openxmlformats.org/drawingml/2006/main}"

# Excel swaps the light/dark pairs relative to their order in the XML
THEME_ELEMENT_TO_SLOT = {
    "lt1": 0,
    "dk1": 1,
    "lt2": 2,
    "dk2": 3,
    "accent1": 4,
    "accent2": 5,
    "accent3": 6,
    "accent4": 7,
    "accent5": 8,
    "accent6": 9,
    "hlink": 10,
    "folHlink": 11,
}

_HEX_RE = re.compile(r"^[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?$")


# =============================================================================
# THEME PALETTE
# =============================================================================


def parse_theme_colors(theme_xml: str | bytes | None) -> Mapping[int, str]:
    """
    Parse the color scheme of a workbook theme (xl/theme/theme1.xml).

    Returns the default Office palette when the XML is missing, malformed,
    or carries no usable colors. Never raises.
    """
    if not theme_xml:
        return DEFAULT_OFFICE_THEME

    try:
        root = ElementTree.fromstring(theme_xml)
    except ElementTree.ParseError as e:
        logger.warning("Unparseable theme XML, using default Office theme: %s", e)
        return DEFAULT_OFFICE_THEME

    scheme = root.find(f".//{DRAWINGML_NS}clrScheme")
    if scheme is None:
        return DEFAULT_OFFICE_THEME

    colors: dict[int, str] = {}
    for element in scheme:
        name = element.tag.replace(DRAWINGML_NS, "")
        slot = THEME_ELEMENT_TO_SLOT.get(name)
        if slot is None:
            continue

        hex_value = None
        sys_clr = element.find(f"{DRAWINGML_NS}sysClr")
        if sys_clr is not None:
            hex_value = sys_clr.get("lastClr")
        if not hex_value:
            srgb_clr = element.find(f"{DRAWINGML_NS}srgbClr")
            if srgb_clr is not None:
                hex_value = srgb_clr.get("val")

        argb = normalize_argb(hex_value) if hex_value else None
        if argb:
            colors[slot] = argb

    if not colors:
        return DEFAULT_OFFICE_THEME
    return MappingProxyType(colors)


def extract_theme_colors(workbook) -> Mapping[int, str]:
    """Theme palette of an openpyxl workbook, or the default palette."""
    theme_xml = getattr(workbook, "loaded_theme", None)
    if not theme_xml:
        logger.debug("Workbook carries no theme; using default Office theme")
        return DEFAULT_OFFICE_THEME
    colors = parse_theme_colors(theme_xml)
    logger.debug("Parsed %d theme colors from workbook", len(colors))
    return colors


# =============================================================================
# RESOLUTION
# =============================================================================


def normalize_argb(value: str) -> str | None:
    """Canonical ARGB for a 6- or 8-digit hex string; alpha is always FF."""
    if not isinstance(value, str) or not _HEX_RE.match(value.strip()):
        return None
    value = value.strip().upper()
    rgb = value[2:] if len(value) == 8 else value
    return f"FF{rgb}"


def apply_tint(argb: str, tint: float) -> str:
    """Lighten (tint > 0) or darken (tint < 0) a color channel-wise."""
    r, g, b = _rgb(argb)

    def adjust(c: int) -> int:
        if tint > 0:
            value = round(c + (255 - c) * tint)
        else:
            value = round(c * (1 + tint))
        return max(0, min(255, value))

    return f"FF{adjust(r):02X}{adjust(g):02X}{adjust(b):02X}"


def resolve_color_to_argb(
    color: Color | str | None,
    theme_colors: Mapping[int, str] = DEFAULT_OFFICE_THEME,
) -> str | None:
    """
    Resolve a fill color reference to canonical ARGB.

    Accepts an openpyxl ``Color`` or a raw hex string. Returns None for
    references that cannot be resolved (auto/system colors, unknown theme
    slots), which callers treat as "no color".
    """
    if color is None:
        return None
    if isinstance(color, str):
        return normalize_argb(color)

    # Color.rgb holds an error string for non-rgb colors, so branch on type
    color_type = getattr(color, "type", None)
    if color_type == "rgb":
        return normalize_argb(color.rgb)
    if color_type == "indexed":
        index = color.indexed
        if index is None or not 0 <= index < len(COLOR_INDEX):
            return None
        return normalize_argb(COLOR_INDEX[index])
    if color_type == "theme":
        base = theme_colors.get(color.theme)
        if base is None:
            return None
        tint = color.tint or 0.0
        return apply_tint(base, tint) if tint else base
    return None


# =============================================================================
# MATCHING
# =============================================================================


def _rgb(argb: str) -> tuple[int, int, int]:
    hex_value = argb[2:] if len(argb) == 8 else argb
    return (
        int(hex_value[0:2], 16),
        int(hex_value[2:4], 16),
        int(hex_value[4:6], 16),
    )


def color_distance(argb1: str, argb2: str) -> float:
    """Euclidean distance in RGB space (alpha ignored)."""
    r1, g1, b1 = _rgb(argb1)
    r2, g2, b2 = _rgb(argb2)
    return math.sqrt((r1 - r2) ** 2 + (g1 - g2) ** 2 + (b1 - b2) ** 2)


def chroma(argb: str) -> int:
    channels = _rgb(argb)
    return max(channels) - min(channels)


def find_closest_legend_color(
    cell_argb: str, legend: Mapping[str, PTOType]
) -> PTOType | None:
    """
    Nearest legend type for a color with no exact legend entry.

    Greys (chroma below MIN_CHROMA_FOR_APPROX) never match. The closest legend
    color strictly within MAX_COLOR_DISTANCE wins; equal distances are broken
    by the legend ARGB string so the result is independent of legend order.
    """
    if chroma(cell_argb) < MIN_CHROMA_FOR_APPROX:
        return None

    candidates = sorted(
        (color_distance(cell_argb, legend_argb), legend_argb)
        for legend_argb in legend
    )
    if not candidates:
        return None
    distance, legend_argb = candidates[0]
    return legend[legend_argb] if distance < MAX_COLOR_DISTANCE else None
