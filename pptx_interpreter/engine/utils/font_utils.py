from __future__ import annotations

from typing import Optional

STANDARD_FONT_VARIANTS = {
    "Helvetica",
    "Helvetica-Bold",
    "Helvetica-Oblique",
    "Helvetica-BoldOblique",
    "Times-Roman",
    "Times-Bold",
    "Times-Italic",
    "Times-BoldItalic",
    "Courier",
    "Courier-Bold",
    "Courier-Oblique",
    "Courier-BoldOblique",
}

# Presentation typefaces mapped onto the PDF core families ReportLab ships metrics for.
FONT_FALLBACKS = {
    "arial": "Helvetica",
    "arial narrow": "Helvetica",
    "calibri": "Helvetica",
    "calibri light": "Helvetica",
    "candara": "Helvetica",
    "century gothic": "Helvetica",
    "franklin gothic": "Helvetica",
    "gill sans": "Helvetica",
    "helvetica": "Helvetica",
    "helvetica neue": "Helvetica",
    "lucida sans": "Helvetica",
    "open sans": "Helvetica",
    "roboto": "Helvetica",
    "segoe ui": "Helvetica",
    "tahoma": "Helvetica",
    "trebuchet ms": "Helvetica",
    "verdana": "Helvetica",
    "sans-serif": "Helvetica",
    "book antiqua": "Times-Roman",
    "cambria": "Times-Roman",
    "garamond": "Times-Roman",
    "georgia": "Times-Roman",
    "palatino linotype": "Times-Roman",
    "times": "Times-Roman",
    "times new roman": "Times-Roman",
    "serif": "Times-Roman",
    "consolas": "Courier",
    "courier": "Courier",
    "courier new": "Courier",
    "lucida console": "Courier",
    "monospace": "Courier",
}

_VARIANTS = {
    # family: (regular, bold, italic, bold italic)
    "Helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "Times-Roman": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "Courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
}


def _normalize_base_font(font_name: Optional[str]) -> str:
    if not font_name:
        return "Helvetica"

    cleaned = font_name.strip()
    if not cleaned:
        return "Helvetica"

    if cleaned in STANDARD_FONT_VARIANTS:
        return cleaned

    return FONT_FALLBACKS.get(cleaned.lower(), "Helvetica")


def resolve_font_variant(font_name: Optional[str], bold: bool, italic: bool) -> str:
    """Map a typeface plus weight/style flags to a ReportLab core font name."""
    base = _normalize_base_font(font_name)
    if base not in _VARIANTS:
        # Already a concrete variant such as Helvetica-Bold.
        return base

    regular, bold_name, italic_name, bold_italic = _VARIANTS[base]
    if bold and italic:
        return bold_italic
    if bold:
        return bold_name
    if italic:
        return italic_name
    return regular
