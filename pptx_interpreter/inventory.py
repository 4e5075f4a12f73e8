"""
Inventory extractor for PPTX documents.

Walks slides in presentation order and produces one ContentRecord per text
paragraph, in pre-order document order: shapes as they appear in the shape
tree (group shapes recursed, table cells row by row), then paragraphs, then
runs. Formatting is resolved eagerly through the cascade in
:mod:`pptx_interpreter.styles.style_resolver` so every record is
self-describing.

Locators issued here stay valid only until the originating tree is
structurally modified.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple
import logging

from .document import Presentation
from .models.locator import Locator
from .models.record import ContainerInfo, ContentRecord, RunRecord
from .options import PipelineOptions
from .parser.xml_parser import Part
from .styles import defaults
from .styles.style_resolver import (
    ResolvedFormat,
    StyleLayer,
    layer_from_level,
    layer_from_paragraph,
    layer_from_run,
    paragraph_level,
    resolve_formatting,
)
from .styles.theme import Theme
from .utils.namespaces import qn
from .utils.units import parse_int, thousandths_to_ratio

logger = logging.getLogger(__name__)

TEXT_RUN_TAGS = (qn("a:r"), qn("a:fld"))
MASTER_ONLY_TYPES = frozenset({"title", "body", "dt", "ftr", "sldNum"})


@dataclass
class SlideContext:
    """Inheritance sources shared by every shape of one slide."""

    part: Part
    slide_index: Optional[int]
    layout: Optional[Part]
    master: Optional[Part]
    theme: Theme
    title_style: object = None
    body_style: object = None
    other_style: object = None
    default_style: object = None


@dataclass
class ShapeSources:
    """The slide shape and the layout / master placeholders it inherits from."""

    shape: object
    layout_placeholder: object = None
    master_placeholder: object = None
    placeholder_type: Optional[str] = None
    placeholder_idx: Optional[str] = None

    def chain(self) -> List[object]:
        return [el for el in (self.shape, self.layout_placeholder, self.master_placeholder) if el is not None]


# ----------------------------------------------------------------------
# Placeholder helpers
def placeholder_of(shape) -> Tuple[Optional[str], Optional[str], bool]:
    """Return ``(type, idx, is_placeholder)`` for a ``p:sp``."""
    for nv_tag in ("p:nvSpPr", "p:nvPicPr", "p:nvGraphicFramePr"):
        nv = shape.find(qn(nv_tag))
        if nv is None:
            continue
        nv_pr = nv.find(qn("p:nvPr"))
        ph = nv_pr.find(qn("p:ph")) if nv_pr is not None else None
        if ph is None:
            return None, None, False
        return ph.get("type", "obj"), ph.get("idx"), True
    return None, None, False


def master_type_for(ph_type: Optional[str]) -> str:
    if ph_type in defaults.TITLE_PLACEHOLDERS:
        return "title"
    if ph_type in MASTER_ONLY_TYPES:
        return ph_type
    return "body"


def iter_placeholders(part: Optional[Part]) -> Iterator:
    if part is None:
        return
    for shape in part.root.iter(qn("p:sp")):
        ph_type, ph_idx, is_placeholder = placeholder_of(shape)
        if is_placeholder:
            yield shape, ph_type, ph_idx


def find_layout_placeholder(layout: Optional[Part], ph_type: Optional[str], ph_idx: Optional[str]):
    """Match by ``idx`` first, then by type."""
    candidates = list(iter_placeholders(layout))
    if ph_idx is not None:
        for shape, _, idx in candidates:
            if idx == ph_idx:
                return shape
    for shape, candidate_type, _ in candidates:
        if candidate_type == ph_type or master_type_for(candidate_type) == master_type_for(ph_type) == "title":
            return shape
    return None


def find_master_placeholder(master: Optional[Part], ph_type: Optional[str]):
    wanted = master_type_for(ph_type)
    for shape, candidate_type, _ in iter_placeholders(master):
        if master_type_for(candidate_type) == wanted:
            return shape
    return None


# ----------------------------------------------------------------------
# Geometry and body properties
def shape_box(shape) -> Optional[Tuple[int, int, int, int]]:
    """Return ``(x, y, cx, cy)`` in EMU from ``p:spPr/a:xfrm`` or ``p:xfrm``."""
    if shape is None:
        return None
    sp_pr = shape.find(qn("p:spPr"))
    xfrm = sp_pr.find(qn("a:xfrm")) if sp_pr is not None else shape.find(qn("p:xfrm"))
    if xfrm is None:
        return None
    ext = xfrm.find(qn("a:ext"))
    if ext is None:
        return None
    off = xfrm.find(qn("a:off"))
    cx, cy = parse_int(ext.get("cx")), parse_int(ext.get("cy"))
    if cx is None or cy is None:
        return None
    x = parse_int(off.get("x")) if off is not None else 0
    y = parse_int(off.get("y")) if off is not None else 0
    return (x or 0, y or 0, cx, cy)


def body_properties(chain: List[object]) -> Dict[str, object]:
    """Resolve ``a:bodyPr`` insets, wrap and autofit along the placeholder chain."""
    body_prs = []
    for shape in chain:
        tx_body = shape.find(qn("p:txBody"))
        if tx_body is None:
            tx_body = shape.find(qn("a:txBody"))
        body_pr = tx_body.find(qn("a:bodyPr")) if tx_body is not None else None
        if body_pr is not None:
            body_prs.append(body_pr)

    def first_attr(name: str, default: int) -> int:
        for body_pr in body_prs:
            value = parse_int(body_pr.get(name))
            if value is not None:
                return value
        return default

    wrap = "square"
    for body_pr in body_prs:
        if body_pr.get("wrap"):
            wrap = body_pr.get("wrap")
            break

    autofit, font_scale, line_reduction = "none", 1.0, 0.0
    for body_pr in body_prs:
        norm = body_pr.find(qn("a:normAutofit"))
        if norm is not None:
            autofit = "normal"
            font_scale = thousandths_to_ratio(norm.get("fontScale")) or 1.0
            line_reduction = thousandths_to_ratio(norm.get("lnSpcReduction")) or 0.0
            break
        if body_pr.find(qn("a:spAutoFit")) is not None:
            autofit = "shape"
            break
        if body_pr.find(qn("a:noAutofit")) is not None:
            break

    return {
        "insets": (
            first_attr("lIns", defaults.DEFAULT_LEFT_INSET),
            first_attr("tIns", defaults.DEFAULT_TOP_INSET),
            first_attr("rIns", defaults.DEFAULT_RIGHT_INSET),
            first_attr("bIns", defaults.DEFAULT_BOTTOM_INSET),
        ),
        "wrap": wrap != "none",
        "autofit": autofit,
        "font_scale": font_scale,
        "line_reduction": line_reduction,
    }


def live_branch(alternate_content):
    """The first mc:Choice of an mc:AlternateContent, or its mc:Fallback when there is none."""
    branch = alternate_content.find(qn("mc:Choice"))
    if branch is None:
        branch = alternate_content.find(qn("mc:Fallback"))
    return branch


def paragraph_text(paragraph) -> str:
    """Plain text of an ``a:p``; line breaks become ``\\n``."""
    pieces = []
    for child in paragraph:
        if child.tag in TEXT_RUN_TAGS:
            text_el = child.find(qn("a:t"))
            pieces.append((text_el.text or "") if text_el is not None else "")
        elif child.tag == qn("a:br"):
            pieces.append("\n")
    return "".join(pieces)


class InventoryExtractor:
    """
    Extracts the addressable text inventory of a presentation.

    Handles slide ordering, placeholder inheritance, formatting cascade
    resolution and container geometry.
    """

    def __init__(self, document: Presentation, options: Optional[PipelineOptions] = None):
        """
        Initialize extractor.

        Args:
            document: Parsed presentation
            options: Pipeline options (defaults to the document's options)
        """
        self.document = document
        self.options = options or document.options
        self._themes: Dict[str, Theme] = {}

    def extract(self) -> List[ContentRecord]:
        """Return every content record in reading order."""
        records: List[ContentRecord] = []
        for slide_name in self.document.slide_names:
            context = self._slide_context(slide_name)
            records.extend(self._extract_slide(context))
        logger.info(f"Extracted {len(records)} content records from {len(self.document.slide_names)} slides")
        return records

    # ------------------------------------------------------------------
    def _slide_context(self, slide_name: str) -> SlideContext:
        chain = self.document.slide_chain(slide_name)
        master = chain["master"]
        theme_part = chain["theme"]
        theme_key = theme_part.name if theme_part is not None else ""
        if theme_key not in self._themes:
            self._themes[theme_key] = Theme.from_part(theme_part)

        context = SlideContext(
            part=self.document.part(slide_name),
            slide_index=self.document.slide_index(slide_name),
            layout=chain["layout"],
            master=master,
            theme=self._themes[theme_key],
        )
        if master is not None:
            tx_styles = master.root.find(qn("p:txStyles"))
            if tx_styles is not None:
                context.title_style = tx_styles.find(qn("p:titleStyle"))
                context.body_style = tx_styles.find(qn("p:bodyStyle"))
                context.other_style = tx_styles.find(qn("p:otherStyle"))
        presentation = self.document.presentation_part()
        if presentation is not None:
            context.default_style = presentation.root.find(qn("p:defaultTextStyle"))
        return context

    def _extract_slide(self, context: SlideContext) -> List[ContentRecord]:
        c_sld = context.part.root.find(qn("p:cSld"))
        sp_tree = c_sld.find(qn("p:spTree")) if c_sld is not None else None
        if sp_tree is None:
            logger.debug(f"{context.part.name} has no shape tree")
            return []
        records: List[ContentRecord] = []
        self._walk_tree(sp_tree, context, records)
        return records

    def _walk_tree(self, container, context: SlideContext, records: List[ContentRecord]) -> None:
        for child in container:
            if child.tag == qn("p:sp"):
                records.extend(self._extract_shape(child, context))
            elif child.tag == qn("p:grpSp"):
                self._walk_tree(child, context, records)
            elif child.tag == qn("p:graphicFrame"):
                records.extend(self._extract_table(child, context))
            elif child.tag == qn("mc:AlternateContent"):
                branch = live_branch(child)
                if branch is not None:
                    self._walk_tree(branch, context, records)

    def _shape_sources(self, shape, context: SlideContext) -> ShapeSources:
        ph_type, ph_idx, is_placeholder = placeholder_of(shape)
        sources = ShapeSources(shape=shape, placeholder_type=ph_type, placeholder_idx=ph_idx)
        if not is_placeholder:
            return sources
        sources.layout_placeholder = find_layout_placeholder(context.layout, ph_type, ph_idx)
        inherited_type = ph_type
        if sources.layout_placeholder is not None:
            inherited_type = placeholder_of(sources.layout_placeholder)[0]
        sources.master_placeholder = find_master_placeholder(context.master, inherited_type)
        return sources

    def _extract_shape(self, shape, context: SlideContext) -> List[ContentRecord]:
        tx_body = shape.find(qn("p:txBody"))
        if tx_body is None:
            return []

        sources = self._shape_sources(shape, context)
        if sources.placeholder_type in self.options.skip_placeholder_types:
            return []

        box = None
        for candidate in sources.chain():
            box = shape_box(candidate)
            if box is not None:
                break
        body = body_properties(sources.chain())

        c_nv_pr = shape.find(qn("p:nvSpPr") + "/" + qn("p:cNvPr"))
        container = ContainerInfo(
            locator=context.part.locate(shape),
            kind="placeholder" if sources.placeholder_type else "shape",
            shape_id=c_nv_pr.get("id") if c_nv_pr is not None else None,
            name=c_nv_pr.get("name") if c_nv_pr is not None else None,
            placeholder_type=sources.placeholder_type,
            placeholder_idx=sources.placeholder_idx,
            box=box,
            insets=body["insets"],
            autofit=body["autofit"],
            font_scale=body["font_scale"],
            line_reduction=body["line_reduction"],
            wrap=body["wrap"],
        )

        list_styles = [tx_body.find(qn("a:lstStyle"))]
        for inherited in (sources.layout_placeholder, sources.master_placeholder):
            inherited_body = inherited.find(qn("p:txBody")) if inherited is not None else None
            list_styles.append(inherited_body.find(qn("a:lstStyle")) if inherited_body is not None else None)
        list_styles.append(self._master_text_style(sources, context))
        list_styles.append(context.default_style)

        return self._extract_paragraphs(tx_body, list_styles, container, context)

    def _master_text_style(self, sources: ShapeSources, context: SlideContext):
        if sources.placeholder_type is None:
            return context.other_style
        master_type = master_type_for(sources.placeholder_type)
        if master_type == "title":
            return context.title_style
        if master_type == "body":
            return context.body_style
        return context.other_style

    def _extract_table(self, frame, context: SlideContext) -> List[ContentRecord]:
        table = frame.find(".//" + qn("a:tbl"))
        if table is None:
            return []
        c_nv_pr = frame.find(qn("p:nvGraphicFramePr") + "/" + qn("p:cNvPr"))
        records: List[ContentRecord] = []
        for row in table.findall(qn("a:tr")):
            for cell in row.findall(qn("a:tc")):
                tx_body = cell.find(qn("a:txBody"))
                if tx_body is None:
                    continue
                container = ContainerInfo(
                    locator=context.part.locate(cell),
                    kind="table-cell",
                    shape_id=c_nv_pr.get("id") if c_nv_pr is not None else None,
                    name=c_nv_pr.get("name") if c_nv_pr is not None else None,
                )
                list_styles = [tx_body.find(qn("a:lstStyle")), context.other_style, context.default_style]
                records.extend(self._extract_paragraphs(tx_body, list_styles, container, context))
        return records

    def _extract_paragraphs(self, tx_body, list_styles: List[object], container: ContainerInfo,
                            context: SlideContext) -> List[ContentRecord]:
        records: List[ContentRecord] = []
        for paragraph_index, paragraph in enumerate(tx_body.findall(qn("a:p"))):
            p_pr = paragraph.find(qn("a:pPr"))
            level = paragraph_level(p_pr)
            inherited = [layer_from_paragraph(p_pr)]
            inherited.extend(layer_from_level(style, level, f"list-style-{i}")
                             for i, style in enumerate(list_styles) if style is not None)

            runs: List[RunRecord] = []
            for run in paragraph:
                if run.tag not in TEXT_RUN_TAGS:
                    continue
                text_el = run.find(qn("a:t"))
                runs.append(RunRecord(
                    text=(text_el.text or "") if text_el is not None else "",
                    format=self._resolve([layer_from_run(run.find(qn("a:rPr")))] + inherited, level, context),
                ))

            if runs:
                paragraph_format = runs[0].format
            else:
                end_layer = layer_from_run(paragraph.find(qn("a:endParaRPr")), "end-paragraph")
                paragraph_format = self._resolve([end_layer] + inherited, level, context)

            records.append(ContentRecord(
                locator=context.part.locate(paragraph),
                text=paragraph_text(paragraph),
                format=paragraph_format,
                container=container,
                slide_index=context.slide_index,
                paragraph_index=paragraph_index,
                runs=tuple(runs),
            ))
        return records

    def _resolve(self, layers: List[StyleLayer], level: int, context: SlideContext) -> ResolvedFormat:
        return resolve_formatting(
            layers,
            level=level,
            theme=context.theme,
            default_size=self.options.default_font_size,
            default_font=self.options.default_font,
        )


def extract(document: Presentation, options: Optional[PipelineOptions] = None) -> List[ContentRecord]:
    """Extract the content inventory of a presentation."""
    return InventoryExtractor(document, options).extract()


def records_by_locator(records: List[ContentRecord]) -> Dict[Locator, ContentRecord]:
    return {record.locator: record for record in records}
