"""
Formatting cascade for PresentationML text.

A run's effective formatting is the first value found when walking, from
most to least specific: the run's ``a:rPr``, the paragraph's ``a:pPr``, the
shape's list style, the layout and master placeholder list styles, the
master text styles and the presentation default text style. Each source is
reduced to a :class:`StyleLayer`; :func:`resolve_formatting` merges an
ordered list of layers into a :class:`ResolvedFormat` without looking
anything up itself.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..utils.namespaces import qn
from ..utils.units import hundredths_to_pt, parse_bool, parse_int, thousandths_to_ratio
from . import defaults
from .theme import Theme

BULLET_TAGS = {
    qn("a:buNone"): "none",
    qn("a:buChar"): "char",
    qn("a:buAutoNum"): "autonum",
    qn("a:buBlip"): "blip",
}


@dataclass
class StyleLayer:
    """Properties one cascade source sets explicitly."""

    paragraph: Dict[str, Any] = field(default_factory=dict)
    run: Dict[str, Any] = field(default_factory=dict)
    source: str = ""

    def is_empty(self) -> bool:
        return not self.paragraph and not self.run


@dataclass(frozen=True)
class ResolvedFormat:
    """Fully resolved formatting of a paragraph or run."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    size: float = defaults.DEFAULT_FONT_SIZE_PT
    font: str = defaults.DEFAULT_FONT
    color: Optional[str] = None
    alignment: str = "left"
    level: int = 0
    bullet: bool = False
    bullet_char: Optional[str] = None
    margin_left: int = 0
    indent: int = 0
    line_spacing: float = 1.0
    line_spacing_pt: Optional[float] = None
    space_before: float = 0.0
    space_after: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def run_fields(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in RUN_FIELDS}


RUN_FIELDS = ("bold", "italic", "underline", "size", "font", "color")


# ----------------------------------------------------------------------
# Reading properties from markup
def run_properties(rpr) -> Dict[str, Any]:
    """Extract explicitly set run properties from ``a:rPr``-like elements."""
    props: Dict[str, Any] = {}
    if rpr is None:
        return props

    bold = parse_bool(rpr.get("b"))
    if bold is not None:
        props["bold"] = bold
    italic = parse_bool(rpr.get("i"))
    if italic is not None:
        props["italic"] = italic
    underline = rpr.get("u")
    if underline is not None:
        props["underline"] = underline != "none"
    size = hundredths_to_pt(rpr.get("sz"))
    if size is not None:
        props["size"] = size

    latin = rpr.find(qn("a:latin"))
    if latin is not None and latin.get("typeface"):
        props["font"] = latin.get("typeface")

    fill = rpr.find(qn("a:solidFill"))
    if fill is not None:
        color = _fill_color(fill)
        if color:
            props["color"] = color
    return props


def paragraph_properties(ppr) -> Dict[str, Any]:
    """Extract explicitly set paragraph properties from ``a:pPr`` or ``a:lvlNpPr``."""
    props: Dict[str, Any] = {}
    if ppr is None:
        return props

    if ppr.get("algn"):
        props["alignment"] = defaults.ALIGNMENT_NAMES.get(ppr.get("algn"), ppr.get("algn"))
    margin = parse_int(ppr.get("marL"))
    if margin is not None:
        props["margin_left"] = margin
    indent = parse_int(ppr.get("indent"))
    if indent is not None:
        props["indent"] = indent

    for child in ppr:
        bullet_kind = BULLET_TAGS.get(child.tag)
        if bullet_kind is not None:
            props["bullet"] = _bullet_spec(bullet_kind, child)
            break

    line = _spacing(ppr.find(qn("a:lnSpc")))
    if line is not None:
        props["line_spacing"] = line
    before = _spacing(ppr.find(qn("a:spcBef")))
    if before is not None:
        props["space_before"] = before
    after = _spacing(ppr.find(qn("a:spcAft")))
    if after is not None:
        props["space_after"] = after
    return props


def paragraph_level(ppr) -> int:
    if ppr is None:
        return 0
    level = parse_int(ppr.get("lvl"))
    if level is None:
        return 0
    return max(0, min(8, level))


def level_style(list_style, level: int):
    """Return the ``a:lvlNpPr`` of a list style for a zero-based level."""
    if list_style is None:
        return None
    return list_style.find(qn(f"a:lvl{level + 1}pPr"))


def layer_from_level(list_style, level: int, source: str) -> StyleLayer:
    """Build a layer from one level of ``a:lstStyle`` / ``p:titleStyle`` / ``p:defaultTextStyle``."""
    lvl = level_style(list_style, level)
    if lvl is None:
        return StyleLayer(source=source)
    return StyleLayer(
        paragraph=paragraph_properties(lvl),
        run=run_properties(lvl.find(qn("a:defRPr"))),
        source=source,
    )


def layer_from_paragraph(ppr, source: str = "paragraph") -> StyleLayer:
    if ppr is None:
        return StyleLayer(source=source)
    return StyleLayer(
        paragraph=paragraph_properties(ppr),
        run=run_properties(ppr.find(qn("a:defRPr"))),
        source=source,
    )


def layer_from_run(rpr, source: str = "run") -> StyleLayer:
    return StyleLayer(run=run_properties(rpr), source=source)


# ----------------------------------------------------------------------
# Resolution
def resolve_formatting(layers: Iterable[StyleLayer], level: int = 0, theme: Optional[Theme] = None,
                       default_size: float = defaults.DEFAULT_FONT_SIZE_PT,
                       default_font: str = defaults.DEFAULT_FONT) -> ResolvedFormat:
    """
    Merge cascade layers, most specific first, into a ResolvedFormat.

    Args:
        layers: Layers ordered from most to least specific
        level: Paragraph level (``a:pPr/@lvl``)
        theme: Theme used to resolve font references and scheme colors
        default_size: Size when no layer sets one
        default_font: Typeface when no layer (nor the theme) sets one

    Returns:
        ResolvedFormat with every field populated
    """
    theme = theme or Theme.empty()
    layers = list(layers)
    para = _first_values([layer.paragraph for layer in layers])
    run = _first_values([layer.run for layer in layers])

    size = float(run.get("size", default_size))
    font = theme.resolve_font(run.get("font")) or theme.minor_font or default_font
    color = run.get("color")
    if color and color.startswith("scheme:"):
        color = theme.resolve_color(color[len("scheme:"):]) or color

    bullet_kind, bullet_value = para.get("bullet", ("none", None))
    line_kind, line_value = para.get("line_spacing", ("pct", 1.0))

    return ResolvedFormat(
        bold=bool(run.get("bold", False)),
        italic=bool(run.get("italic", False)),
        underline=bool(run.get("underline", False)),
        size=size,
        font=font,
        color=color,
        alignment=para.get("alignment", "left"),
        level=level,
        bullet=bullet_kind != "none",
        bullet_char=bullet_value,
        margin_left=int(para.get("margin_left", 0)),
        indent=int(para.get("indent", 0)),
        line_spacing=line_value if line_kind == "pct" else 1.0,
        line_spacing_pt=line_value if line_kind == "pts" else None,
        space_before=_spacing_points(para.get("space_before"), size),
        space_after=_spacing_points(para.get("space_after"), size),
    )


def _first_values(sources: List[Dict[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for props in sources:
        for key, value in props.items():
            merged.setdefault(key, value)
    return merged


def _spacing(spacing_el) -> Optional[Tuple[str, float]]:
    if spacing_el is None:
        return None
    pct = spacing_el.find(qn("a:spcPct"))
    if pct is not None:
        ratio = thousandths_to_ratio(pct.get("val"))
        return ("pct", ratio) if ratio is not None else None
    pts = spacing_el.find(qn("a:spcPts"))
    if pts is not None:
        points = hundredths_to_pt(pts.get("val"))
        return ("pts", points) if points is not None else None
    return None


def _spacing_points(spec: Optional[Tuple[str, float]], size: float) -> float:
    if spec is None:
        return 0.0
    kind, value = spec
    if kind == "pts":
        return value
    return value * size * defaults.DEFAULT_LINE_SPACING


def _bullet_spec(kind: str, element) -> Tuple[str, Optional[str]]:
    if kind == "char":
        return kind, element.get("char")
    if kind == "autonum":
        return kind, element.get("type")
    return kind, None


def _fill_color(fill) -> Optional[str]:
    srgb = fill.find(qn("a:srgbClr"))
    if srgb is not None and srgb.get("val"):
        return srgb.get("val").upper()
    scheme = fill.find(qn("a:schemeClr"))
    if scheme is not None and scheme.get("val"):
        return f"scheme:{scheme.get('val')}"
    return None
