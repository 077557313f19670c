"""
Tests for theme parsing, color resolution and nearest-color matching.
"""

from openpyxl.styles.colors import Color

from core.config import DEFAULT_OFFICE_THEME
from models.pto import PTOType
from services.colors import (
    apply_tint,
    color_distance,
    extract_theme_colors,
    find_closest_legend_color,
    normalize_argb,
    parse_theme_colors,
    resolve_color_to_argb,
)

THEME_XML = """<?xml version="1.0" encoding="UTF-8"?>
<a:theme xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" name="Custom">
  <a:themeElements>
    <a:clrScheme name="Custom">
      <a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>
      <a:lt1><a:sysClr val="window" lastClr="FFFFFF"/></a:lt1>
      <a:dk2><a:srgbClr val="112233"/></a:dk2>
      <a:lt2><a:srgbClr val="EEEEEE"/></a:lt2>
      <a:accent1><a:srgbClr val="AA0000"/></a:accent1>
      <a:accent2><a:srgbClr val="00AA00"/></a:accent2>
      <a:accent3><a:srgbClr val="0000AA"/></a:accent3>
      <a:accent4><a:srgbClr val="AAAA00"/></a:accent4>
      <a:accent5><a:srgbClr val="00AAAA"/></a:accent5>
      <a:accent6><a:srgbClr val="AA00AA"/></a:accent6>
      <a:hlink><a:srgbClr val="0563C1"/></a:hlink>
      <a:folHlink><a:srgbClr val="954F72"/></a:folHlink>
    </a:clrScheme>
  </a:themeElements>
</a:theme>
"""


class TestThemeParsing:
    def test_slots_follow_excel_order(self):
        colors = parse_theme_colors(THEME_XML)
        assert colors[0] == "FFFFFFFF"  # lt1
        assert colors[1] == "FF000000"  # dk1
        assert colors[2] == "FFEEEEEE"  # lt2
        assert colors[3] == "FF112233"  # dk2
        assert colors[4] == "FFAA0000"
        assert colors[9] == "FFAA00AA"
        assert colors[10] == "FF0563C1"
        assert colors[11] == "FF954F72"

    def test_missing_or_malformed_xml_falls_back_to_default(self):
        assert parse_theme_colors(None) == DEFAULT_OFFICE_THEME
        assert parse_theme_colors("<not xml") == DEFAULT_OFFICE_THEME
        assert parse_theme_colors(b"<root/>") == DEFAULT_OFFICE_THEME

    def test_in_memory_workbook_uses_default(self, workbook):
        assert extract_theme_colors(workbook) == DEFAULT_OFFICE_THEME


class TestResolution:
    def test_normalize_forces_alpha(self):
        assert normalize_argb("00FFFF00") == "FFFFFF00"
        assert normalize_argb("ffff00") == "FFFFFF00"
        assert normalize_argb("xyz") is None

    def test_rgb_color(self):
        assert resolve_color_to_argb(Color(rgb="00B050")) == "FF00B050"

    def test_indexed_color(self):
        # Legacy palette index 5 is yellow
        assert resolve_color_to_argb(Color(indexed=5)) == "FFFFFF00"

    def test_system_index_is_unresolved(self):
        assert resolve_color_to_argb(Color(indexed=64)) is None

    def test_theme_color_with_tint(self):
        base = DEFAULT_OFFICE_THEME[4]
        assert resolve_color_to_argb(Color(theme=4)) == base
        tinted = resolve_color_to_argb(Color(theme=4, tint=0.5))
        assert tinted == apply_tint(base, 0.5)
        assert tinted != base

    def test_unknown_theme_slot(self):
        assert resolve_color_to_argb(Color(theme=11)) is None

    def test_tint_direction(self):
        assert apply_tint("FF808080", 1.0) == "FFFFFFFF"
        assert apply_tint("FF808080", -1.0) == "FF000000"


class TestClosestLegendColor:
    LEGEND = {
        "FFFFFF00": PTOType.PTO,
        "FF00B050": PTOType.SICK,
        "FF7030A0": PTOType.BEREAVEMENT,
    }

    def test_near_color_matches(self):
        assert find_closest_legend_color("FFF0F010", self.LEGEND) == PTOType.PTO

    def test_far_color_does_not_match(self):
        assert find_closest_legend_color("FFFF99CC", self.LEGEND) is None

    def test_grey_never_matches(self):
        assert find_closest_legend_color("FFA0A0A0", self.LEGEND) is None

    def test_tie_broken_by_argb_not_order(self):
        a = {"FF000078": PTOType.SICK, "FF780000": PTOType.PTO}
        b = dict(reversed(list(a.items())))
        # Equidistant from both legend colors
        cell = "FF3C003C"
        assert color_distance(cell, "FF000078") == color_distance(cell, "FF780000")
        assert find_closest_legend_color(cell, a) == find_closest_legend_color(cell, b)
        assert find_closest_legend_color(cell, a) == PTOType.SICK

    def test_empty_legend(self):
        assert find_closest_legend_color("FFFF0000", {}) is None
