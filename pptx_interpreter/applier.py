"""
Replacement applier.

Applies externally authored directives to the paragraphs named by their
locators. Text replacement rebuilds a paragraph's runs from a template
``a:rPr`` so the surrounding formatting survives; formatting overrides touch
only the properties a directive names and insert new children at their
schema position. Every change goes through the :class:`Part` mutation
primitives so modified parts are tracked for serialization.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from lxml import etree as lxml_etree

from .document import Presentation
from .exceptions import InvalidLocator
from .models.directive import SCHEME_COLOR_PREFIX, Directive
from .models.locator import Locator
from .parser.xml_parser import Part
from .styles.defaults import ALIGNMENT_CODES
from .utils.namespaces import NSMAP, local_name, qn
from .utils.units import pt_to_hundredths
from .validation.schema import CHARACTER_PROPERTIES_SEQUENCE, PARAGRAPH_PROPERTIES_SEQUENCE, rank_table

logger = logging.getLogger(__name__)

DEFAULT_BULLET_CHAR = "•"
LINE_BREAK_RE = re.compile(r"[\n\v]")

PARAGRAPH_CONTENT_TAGS = (qn("a:r"), qn("a:br"), qn("a:fld"))

PPR_ORDER = rank_table(PARAGRAPH_PROPERTIES_SEQUENCE)
RPR_ORDER = rank_table(CHARACTER_PROPERTIES_SEQUENCE)

RUN_OVERRIDES = ("bold", "italic", "underline", "size", "font", "color")


@dataclass(frozen=True)
class UnresolvedLocator:
    """A directive whose locator did not resolve to a paragraph."""

    locator: str
    reason: str
    directive_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"locator": self.locator, "reason": self.reason, "directive_index": self.directive_index}


@dataclass
class ApplyReport:
    """Outcome of one apply call."""

    applied: List[Locator] = field(default_factory=list)
    unresolved: List[UnresolvedLocator] = field(default_factory=list)
    superseded: List[Tuple[int, Locator]] = field(default_factory=list)
    modified_parts: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unresolved

    @property
    def locators_stale(self) -> bool:
        """Locators issued before this call may no longer resolve to the same nodes."""
        return bool(self.applied)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied": [str(locator) for locator in self.applied],
            "unresolved": [finding.to_dict() for finding in self.unresolved],
            "superseded": [{"directive_index": index, "locator": str(locator)}
                           for index, locator in self.superseded],
            "modified_parts": list(self.modified_parts),
            "locators_stale": self.locators_stale,
        }


# ----------------------------------------------------------------------
# Element helpers
def new_element(tag: str, **attrib: str):
    """Create a detached DrawingML / PresentationML element, e.g. ``new_element("a:r")``."""
    prefix = tag.split(":", 1)[0]
    return lxml_etree.Element(qn(tag), attrib={k: str(v) for k, v in attrib.items()},
                              nsmap={prefix: NSMAP[prefix]})


def insert_ordered(part: Part, parent, child, order: Dict[str, int]) -> None:
    """
    Insert ``child`` into ``parent`` at its schema position.

    Existing children of the same rank (the same xsd:choice) are removed first.
    """
    rank = order[local_name(child.tag)]
    for existing in list(parent):
        if isinstance(existing.tag, str) and order.get(local_name(existing.tag)) == rank:
            part.remove_child(parent, existing)

    index = len(parent)
    for position, existing in enumerate(parent):
        if not isinstance(existing.tag, str):
            continue
        existing_rank = order.get(local_name(existing.tag))
        if existing_rank is not None and existing_rank > rank:
            index = position
            break
    part.insert_child(parent, index, child)


def ensure_paragraph_properties(part: Part, paragraph):
    p_pr = paragraph.find(qn("a:pPr"))
    if p_pr is None:
        p_pr = new_element("a:pPr")
        part.insert_child(paragraph, 0, p_pr)
    return p_pr


def ensure_run_properties(part: Part, run):
    r_pr = run.find(qn("a:rPr"))
    if r_pr is None:
        r_pr = new_element("a:rPr")
        part.insert_child(run, 0, r_pr)
    return r_pr


def as_run_properties(template):
    """Copy a character-properties element (``a:rPr`` or ``a:endParaRPr``) as ``a:rPr``."""
    if template is None:
        return None
    r_pr = copy.deepcopy(template)
    r_pr.tag = qn("a:rPr")
    return r_pr


# ----------------------------------------------------------------------
# Text replacement
def template_run_properties(paragraph):
    for child in paragraph:
        if child.tag in (qn("a:r"), qn("a:fld")):
            return child.find(qn("a:rPr"))
    return paragraph.find(qn("a:endParaRPr"))


def replace_paragraph_text(part: Part, paragraph, text: str) -> None:
    """
    Replace the runs, breaks and fields of ``paragraph`` with ``text``.

    New runs copy the first run's ``a:rPr`` (or ``a:endParaRPr``); line
    breaks in ``text`` become ``a:br`` elements. ``a:pPr`` and
    ``a:endParaRPr`` are left in place.
    """
    template = template_run_properties(paragraph)
    for child in list(paragraph):
        if child.tag in PARAGRAPH_CONTENT_TAGS:
            part.remove_child(paragraph, child)

    end = paragraph.find(qn("a:endParaRPr"))
    index = paragraph.index(end) if end is not None else len(paragraph)
    if end is None and len(paragraph) and paragraph[-1].tag == qn("a:extLst"):
        index = len(paragraph) - 1

    for position, segment in enumerate(LINE_BREAK_RE.split(text)):
        if position:
            line_break = new_element("a:br")
            r_pr = as_run_properties(template)
            if r_pr is not None:
                line_break.append(r_pr)
            part.insert_child(paragraph, index, line_break)
            index += 1
        if not segment:
            continue
        run = new_element("a:r")
        r_pr = as_run_properties(template)
        if r_pr is not None:
            run.append(r_pr)
        text_el = new_element("a:t")
        run.append(text_el)
        part.insert_child(paragraph, index, run)
        part.replace_text(text_el, segment)
        index += 1


# ----------------------------------------------------------------------
# Formatting overrides
def apply_run_overrides(part: Part, r_pr, overrides: Dict[str, Any]) -> None:
    if "bold" in overrides:
        part.set_attribute(r_pr, "b", "1" if overrides["bold"] else "0")
    if "italic" in overrides:
        part.set_attribute(r_pr, "i", "1" if overrides["italic"] else "0")
    if "underline" in overrides:
        part.set_attribute(r_pr, "u", "sng" if overrides["underline"] else "none")
    if "size" in overrides:
        part.set_attribute(r_pr, "sz", pt_to_hundredths(overrides["size"]))
    if "color" in overrides:
        color = overrides["color"]
        fill = new_element("a:solidFill")
        if color.startswith(SCHEME_COLOR_PREFIX):
            fill.append(new_element("a:schemeClr", val=color[len(SCHEME_COLOR_PREFIX):]))
        else:
            fill.append(new_element("a:srgbClr", val=color))
        insert_ordered(part, r_pr, fill, RPR_ORDER)
    if "font" in overrides:
        latin = r_pr.find(qn("a:latin"))
        if latin is None:
            insert_ordered(part, r_pr, new_element("a:latin", typeface=overrides["font"]), RPR_ORDER)
        else:
            part.set_attribute(latin, "typeface", overrides["font"])


def apply_paragraph_overrides(part: Part, paragraph, overrides: Dict[str, Any],
                              bullet_char: Optional[str] = None) -> None:
    if not any(key in overrides for key in ("alignment", "level", "bullet")):
        return
    p_pr = ensure_paragraph_properties(part, paragraph)
    if "alignment" in overrides:
        part.set_attribute(p_pr, "algn", ALIGNMENT_CODES[overrides["alignment"]])
    if "level" in overrides:
        level = overrides["level"]
        part.set_attribute(p_pr, "lvl", str(level) if level else None)
    if "bullet" in overrides:
        bullet = overrides["bullet"]
        if bullet is False:
            insert_ordered(part, p_pr, new_element("a:buNone"), PPR_ORDER)
        else:
            char = bullet if isinstance(bullet, str) else bullet_char
            current = next((child for child in p_pr
                            if isinstance(child.tag, str) and local_name(child.tag) in
                            ("buChar", "buAutoNum", "buBlip")), None)
            if current is None or char is not None:
                insert_ordered(part, p_pr, new_element("a:buChar", char=char or DEFAULT_BULLET_CHAR),
                               PPR_ORDER)


def apply_overrides(part: Part, paragraph, directive: Directive) -> None:
    overrides = directive.overrides
    apply_paragraph_overrides(part, paragraph, overrides, directive.bullet_char)

    run_overrides = {key: overrides[key] for key in RUN_OVERRIDES if key in overrides}
    if not run_overrides:
        return
    runs = [child for child in paragraph if child.tag in (qn("a:r"), qn("a:fld"))]
    for run in runs:
        apply_run_overrides(part, ensure_run_properties(part, run), run_overrides)
    end = paragraph.find(qn("a:endParaRPr"))
    if end is not None and not runs:
        apply_run_overrides(part, end, run_overrides)


# ----------------------------------------------------------------------
class ReplacementApplier:
    """
    Applies replacement directives to a presentation.

    Directives are resolved against the tree as it was before this call, so
    every locator of one batch refers to the same inventory.
    """

    def __init__(self, document: Presentation):
        self.document = document

    def apply(self, directives: Iterable[Directive]) -> ApplyReport:
        """
        Apply directives in order.

        When several directives address the same paragraph the last one wins;
        the earlier ones are reported as superseded and not applied.

        Args:
            directives: Directives in application order

        Returns:
            ApplyReport with applied, unresolved and superseded entries
        """
        directives = list(directives)
        report = ApplyReport()

        last_index: Dict[Locator, int] = {}
        for index, directive in enumerate(directives):
            last_index[directive.locator] = index

        resolved = []
        for index, directive in enumerate(directives):
            if last_index[directive.locator] != index:
                report.superseded.append((index, directive.locator))
                logger.debug(f"Directive {index} for {directive.locator} superseded by a later one")
                continue
            try:
                paragraph = self._resolve(directive.locator)
            except InvalidLocator as exc:
                logger.warning(f"Unresolved locator {directive.locator}: {exc.details}")
                report.unresolved.append(UnresolvedLocator(str(directive.locator), exc.details or str(exc), index))
                continue
            resolved.append((directive, paragraph))

        for directive, paragraph in resolved:
            part = self.document.part(directive.locator.part)
            if directive.text is not None:
                replace_paragraph_text(part, paragraph, directive.text)
            if directive.overrides:
                apply_overrides(part, paragraph, directive)
            report.applied.append(directive.locator)

        report.modified_parts = self.document.modified_parts()
        logger.info(
            f"Applied {len(report.applied)} directives "
            f"({len(report.unresolved)} unresolved, {len(report.superseded)} superseded)"
        )
        return report

    def _resolve(self, locator: Locator):
        node = self.document.find(locator)
        if node.tag != qn("a:p"):
            raise InvalidLocator(locator, f"addresses {local_name(node.tag) or 'a non-element node'}, "
                                          f"not a paragraph")
        return node


def apply(document: Presentation, directives: Iterable[Directive]) -> ApplyReport:
    """Apply replacement directives to ``document``."""
    return ReplacementApplier(document).apply(directives)
