"""
TextMetricsEngine: estimated width and height of paragraph text.

Uses ReportLab core font metrics to compute:
- text width
- line breaks against an available width
- paragraph height including line spacing and paragraph spacing
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from reportlab.pdfbase import pdfmetrics

from ..styles import defaults
from ..styles.style_resolver import ResolvedFormat
from .utils.font_utils import resolve_font_variant


@dataclass
class TextLayout:
    """Layout result for one paragraph."""
    width: float
    height: float
    line_count: int = 1
    lines: List[str] = field(default_factory=list)
    font_size: float = defaults.DEFAULT_FONT_SIZE_PT
    line_height: float = 0.0


class TextMetricsEngine:
    """
    Engine for text measurements.

    Measures widths with ReportLab and derives heights from line spacing
    and the number of wrapped lines.
    """

    def __init__(self, line_spacing: float = defaults.DEFAULT_LINE_SPACING):
        """
        Args:
            line_spacing: Single line height as a multiple of the font size
        """
        self.line_spacing = line_spacing
        self._width_cache: Dict[tuple, float] = {}

    def font_name(self, fmt: ResolvedFormat) -> str:
        return resolve_font_variant(fmt.font, fmt.bold, fmt.italic)

    def string_width(self, text: str, font_name: str, font_size: float) -> float:
        key = (text, font_name, font_size)
        width = self._width_cache.get(key)
        if width is None:
            width = pdfmetrics.stringWidth(text, font_name, font_size)
            self._width_cache[key] = width
        return width

    def line_height(self, fmt: ResolvedFormat, font_scale: float = 1.0, line_reduction: float = 0.0) -> float:
        """
        Height of one line in points.

        Exact spacing (``a:spcPts``) wins over percentage spacing; autofit
        line reduction shrinks percentage spacing only.
        """
        if fmt.line_spacing_pt is not None:
            return fmt.line_spacing_pt
        ratio = max(fmt.line_spacing - line_reduction, 0.0)
        return fmt.size * font_scale * self.line_spacing * ratio

    def layout_paragraph(
        self,
        text: str,
        fmt: ResolvedFormat,
        max_width: Optional[float] = None,
        font_scale: float = 1.0,
        line_reduction: float = 0.0,
    ) -> TextLayout:
        """
        Break a paragraph into lines and compute its metrics.

        Args:
            text: Paragraph text; ``\\n`` marks explicit line breaks
            fmt: Resolved paragraph formatting
            max_width: Available width in points, None for no wrapping
            font_scale: normAutofit font scale
            line_reduction: normAutofit line spacing reduction

        Returns:
            TextLayout with lines, widest line and total height
        """
        font_name = self.font_name(fmt)
        font_size = fmt.size * font_scale
        line_height = self.line_height(fmt, font_scale, line_reduction)

        lines: List[str] = []
        for segment in text.split("\n"):
            if max_width is None:
                lines.append(segment)
            else:
                lines.extend(self._break_text_into_lines(segment, font_name, font_size, max_width))
        if not lines:
            lines = [""]

        width = max(self.string_width(line, font_name, font_size) for line in lines)
        height = len(lines) * line_height + fmt.space_before + fmt.space_after
        return TextLayout(
            width=width,
            height=height,
            line_count=len(lines),
            lines=lines,
            font_size=font_size,
            line_height=line_height,
        )

    def _break_text_into_lines(
        self,
        text: str,
        font_name: str,
        font_size: float,
        max_width: float
    ) -> List[str]:
        """
        Break text into lines no wider than ``max_width``.

        Args:
            text: Text without explicit line breaks
            font_name: ReportLab font name
            font_size: Font size in points
            max_width: Maximum line width in points

        Returns:
            List of lines; a word wider than the line occupies its own line
        """
        words = text.split()
        if not words:
            return [""]

        lines: List[str] = []
        current_line = ""
        for word in words:
            candidate = f"{current_line} {word}" if current_line else word
            if self.string_width(candidate, font_name, font_size) <= max_width:
                current_line = candidate
            elif current_line:
                lines.append(current_line)
                current_line = word
            else:
                lines.append(word)
                current_line = ""

        if current_line:
            lines.append(current_line)
        return lines if lines else [""]
