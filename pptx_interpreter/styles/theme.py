"""
Theme lookups for PresentationML.

Resolves theme font references (``+mj-lt``, ``+mn-lt``) and scheme colors
against a theme part.
"""

from typing import Dict, Optional
import logging

from ..utils.namespaces import local_name, qn

logger = logging.getLogger(__name__)

# Default slide master color mapping (p:clrMap).
SCHEME_ALIASES = {
    "tx1": "dk1",
    "bg1": "lt1",
    "tx2": "dk2",
    "bg2": "lt2",
}


class Theme:
    """Fonts and colors declared by a theme part."""

    def __init__(self, major_font: Optional[str] = None, minor_font: Optional[str] = None,
                 colors: Optional[Dict[str, str]] = None, name: str = ""):
        self.major_font = major_font
        self.minor_font = minor_font
        self.colors = colors or {}
        self.name = name

    @classmethod
    def empty(cls) -> "Theme":
        return cls()

    @classmethod
    def from_part(cls, part) -> "Theme":
        """Build a Theme from a parsed ``ppt/theme/themeN.xml`` part."""
        if part is None:
            return cls.empty()

        root = part.root
        elements = root.find(qn("a:themeElements"))
        if elements is None:
            return cls(name=root.get("name", ""))

        major = minor = None
        font_scheme = elements.find(qn("a:fontScheme"))
        if font_scheme is not None:
            major = _latin_typeface(font_scheme.find(qn("a:majorFont")))
            minor = _latin_typeface(font_scheme.find(qn("a:minorFont")))

        colors: Dict[str, str] = {}
        color_scheme = elements.find(qn("a:clrScheme"))
        if color_scheme is not None:
            for slot in color_scheme:
                if not isinstance(slot.tag, str):
                    continue
                value = _color_value(slot)
                if value:
                    colors[local_name(slot.tag)] = value

        logger.debug(f"Theme {part.name}: major={major}, minor={minor}, {len(colors)} colors")
        return cls(major, minor, colors, root.get("name", ""))

    def resolve_font(self, typeface: Optional[str]) -> Optional[str]:
        """Resolve ``+mj-*`` / ``+mn-*`` references; other typefaces pass through."""
        if not typeface:
            return None
        if typeface.startswith("+mj"):
            return self.major_font
        if typeface.startswith("+mn"):
            return self.minor_font
        return typeface

    def resolve_color(self, scheme_name: str) -> Optional[str]:
        key = SCHEME_ALIASES.get(scheme_name, scheme_name)
        return self.colors.get(key)


def _latin_typeface(font_el) -> Optional[str]:
    if font_el is None:
        return None
    latin = font_el.find(qn("a:latin"))
    if latin is None:
        return None
    return latin.get("typeface") or None


def _color_value(slot) -> Optional[str]:
    srgb = slot.find(qn("a:srgbClr"))
    if srgb is not None:
        return (srgb.get("val") or "").upper() or None
    system = slot.find(qn("a:sysClr"))
    if system is not None:
        return (system.get("lastClr") or "").upper() or None
    return None
