"""
Schema conformance pass.

Checks the PresentationML / DrawingML text vocabulary against built-in
structural rules: allowed and required children, child order, allowed and
required attributes and attribute values. When a folder of OOXML schemas is
configured, parts are additionally validated with ``lxml.etree.XMLSchema``.
"""

import copy
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from lxml import etree as lxml_etree

from ..parser.xml_parser import Part
from ..utils.namespaces import CONTENT_TYPES_PART, DML, MC, NSMAP, PML, local_name, namespace_of, qn
from .issues import Issue, IssueSet, ValidationLevel, schema_issue

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# Value checkers return an error description, or None when the value is valid.
Checker = Callable[[str], Optional[str]]

_INT_RE = re.compile(r"^-?\d+$")
_HEX_RE = re.compile(r"^[0-9A-Fa-f]{6}$")
_PERCENT_RE = re.compile(r"^-?\d+(\.\d+)?%$")


def boolean(value: str) -> Optional[str]:
    if value in ("0", "1", "true", "false"):
        return None
    return "expected a boolean"


def integer(low: Optional[int] = None, high: Optional[int] = None) -> Checker:
    def check(value: str) -> Optional[str]:
        if not _INT_RE.match(value):
            return "expected an integer"
        number = int(value)
        if (low is not None and number < low) or (high is not None and number > high):
            return f"expected an integer in [{low}, {high}]"
        return None
    return check


def percentage(low: int, high: int) -> Checker:
    """ST_Percentage style value: thousandths of a percent, or a ``"62.5%"`` string."""
    def check(value: str) -> Optional[str]:
        if _PERCENT_RE.match(value):
            number = float(value[:-1]) * 1000
        elif _INT_RE.match(value):
            number = int(value)
        else:
            return "expected a percentage"
        if not low <= number <= high:
            return f"expected a percentage in [{low}, {high}]"
        return None
    return check


def enum(*values: str) -> Checker:
    allowed = frozenset(values)

    def check(value: str) -> Optional[str]:
        if value in allowed:
            return None
        return f"expected one of {', '.join(sorted(allowed))}"
    return check


def hex_color(value: str) -> Optional[str]:
    if _HEX_RE.match(value):
        return None
    return "expected an RRGGBB hex color"


def string(value: str) -> Optional[str]:
    return None


def non_empty(value: str) -> Optional[str]:
    if value.strip():
        return None
    return "must not be empty"


@dataclass
class ElementRule:
    """
    Content model of one element.

    ``sequence`` lists child groups in schema order; the tags of one group
    form an xsd:choice and share a position.
    """

    sequence: Sequence[Tuple[str, ...]] = ()
    required: Tuple[str, ...] = ()
    repeatable: Tuple[str, ...] = ()
    attributes: Dict[str, Checker] = field(default_factory=dict)
    required_attributes: Tuple[str, ...] = ()
    text_only: bool = False
    # Restrict the rule to elements whose parent has one of these local names.
    parents: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.rank = rank_table(self.sequence)


def rank_table(sequence: Iterable[Tuple[str, ...]]) -> Dict[str, int]:
    """Map each child local name to the index of its group in ``sequence``."""
    return {tag: index for index, group in enumerate(sequence) for tag in group}


PARAGRAPH_PROPERTIES_SEQUENCE = (
    ("lnSpc",), ("spcBef",), ("spcAft",),
    ("buClrTx", "buClr"),
    ("buSzTx", "buSzPct", "buSzPts"),
    ("buFontTx", "buFont"),
    ("buNone", "buAutoNum", "buChar", "buBlip"),
    ("tabLst",), ("defRPr",), ("extLst",),
)

CHARACTER_PROPERTIES_SEQUENCE = (
    ("ln",),
    ("noFill", "solidFill", "gradFill", "blipFill", "pattFill", "grpFill"),
    ("effectLst", "effectDag"),
    ("highlight",),
    ("uLnTx", "uLn"),
    ("uFillTx", "uFill"),
    ("latin",), ("ea",), ("cs",), ("sym",),
    ("hlinkClick",), ("hlinkMouseOver",), ("rtl",), ("extLst",),
)

COLOR_CHOICE = ("scrgbClr", "srgbClr", "hslClr", "sysClr", "schemeClr", "prstClr")

UNDERLINE_VALUES = (
    "none", "words", "sng", "dbl", "heavy", "dotted", "dottedHeavy", "dash", "dashHeavy",
    "dashLong", "dashLongHeavy", "dotDash", "dotDashHeavy", "dotDotDash", "dotDotDashHeavy",
    "wavy", "wavyHeavy", "wavyDbl",
)

COORDINATE = integer(-27273042329600, 27273042316900)
TEXT_MARGIN = integer(0, 51206400)
TEXT_INDENT = integer(-51206400, 51206400)

CHARACTER_PROPERTIES_ATTRIBUTES: Dict[str, Checker] = {
    "kumimoji": boolean,
    "lang": string,
    "altLang": string,
    "sz": integer(100, 400000),
    "b": boolean,
    "i": boolean,
    "u": enum(*UNDERLINE_VALUES),
    "strike": enum("noStrike", "sngStrike", "dblStrike"),
    "kern": integer(0, 400000),
    "cap": enum("none", "small", "all"),
    "spc": integer(-400000, 400000),
    "normalizeH": boolean,
    "baseline": percentage(-2147483648, 2147483647),
    "noProof": boolean,
    "dirty": boolean,
    "err": boolean,
    "smtClean": boolean,
    "smtId": integer(0, 4294967295),
    "bmk": string,
}

CHARACTER_PROPERTIES_RULE = ElementRule(
    sequence=CHARACTER_PROPERTIES_SEQUENCE,
    attributes=CHARACTER_PROPERTIES_ATTRIBUTES,
)

PARAGRAPH_PROPERTIES_RULE = ElementRule(
    sequence=PARAGRAPH_PROPERTIES_SEQUENCE,
    attributes={
        "marL": TEXT_MARGIN,
        "marR": TEXT_MARGIN,
        "lvl": integer(0, 8),
        "indent": TEXT_INDENT,
        "algn": enum("l", "ctr", "r", "just", "justLow", "dist", "thaiDist"),
        "defTabSz": COORDINATE,
        "rtl": boolean,
        "eaLnBrk": boolean,
        "fontAlgn": enum("auto", "t", "ctr", "base", "b"),
        "latinLnBrk": boolean,
        "hangingPunct": boolean,
    },
)

TEXT_BODY_RULE = ElementRule(
    sequence=(("bodyPr",), ("lstStyle",), ("p",)),
    required=("bodyPr", "p"),
    repeatable=("p",),
)

LIST_STYLE_RULE = ElementRule(
    sequence=(("defPPr",),) + tuple((f"lvl{n}pPr",) for n in range(1, 10)) + (("extLst",),),
)

FONT_RULE = ElementRule(
    attributes={"typeface": string, "panose": string, "pitchFamily": integer(-128, 127),
                "charset": integer(-128, 255)},
    required_attributes=("typeface",),
)

# Rules keyed by (namespace, local name).
RULES: Dict[Tuple[str, str], ElementRule] = {
    (PML, "sp"): ElementRule(
        sequence=(("nvSpPr",), ("spPr",), ("style",), ("txBody",), ("extLst",)),
        required=("nvSpPr", "spPr"),
        attributes={"useBgFill": boolean},
    ),
    (PML, "nvSpPr"): ElementRule(
        sequence=(("cNvPr",), ("cNvSpPr",), ("nvPr",)),
        required=("cNvPr", "cNvSpPr", "nvPr"),
    ),
    (PML, "cNvPr"): ElementRule(
        sequence=(("hlinkClick",), ("hlinkHover",), ("extLst",)),
        attributes={"id": integer(0, 4294967295), "name": string, "descr": string,
                    "hidden": boolean, "title": string},
        required_attributes=("id", "name"),
    ),
    (PML, "ph"): ElementRule(
        sequence=(("extLst",),),
        attributes={
            "type": enum("title", "body", "ctrTitle", "subTitle", "dt", "sldNum", "ftr", "hdr",
                         "obj", "chart", "tbl", "clipArt", "dgm", "media", "sldImg", "pic"),
            "orient": enum("horz", "vert"),
            "sz": enum("full", "half", "quarter"),
            "idx": integer(0, 4294967295),
            "hasCustomPrompt": boolean,
        },
    ),
    (PML, "txBody"): TEXT_BODY_RULE,
    (DML, "txBody"): TEXT_BODY_RULE,
    (DML, "bodyPr"): ElementRule(
        sequence=(("prstTxWarp",), ("noAutofit", "normAutofit", "spAutoFit"),
                  ("scene3d",), ("sp3d", "flatTx"), ("extLst",)),
        attributes={
            "rot": integer(),
            "spcFirstLastPara": boolean,
            "vertOverflow": enum("overflow", "ellipsis", "clip"),
            "horzOverflow": enum("overflow", "clip"),
            "vert": enum("horz", "vert", "vert270", "wordArtVert", "eaVert", "mongolianVert",
                         "wordArtVertRtl"),
            "wrap": enum("none", "square"),
            "lIns": COORDINATE,
            "tIns": COORDINATE,
            "rIns": COORDINATE,
            "bIns": COORDINATE,
            "numCol": integer(1, 16),
            "spcCol": integer(0),
            "rtlCol": boolean,
            "fromWordArt": boolean,
            "anchor": enum("t", "ctr", "b", "just", "dist"),
            "anchorCtr": boolean,
            "forceAA": boolean,
            "upright": boolean,
            "compatLnSpc": boolean,
        },
    ),
    (DML, "normAutofit"): ElementRule(
        attributes={"fontScale": percentage(1000, 100000), "lnSpcReduction": percentage(0, 20000)},
    ),
    (DML, "lstStyle"): LIST_STYLE_RULE,
    (DML, "p"): ElementRule(
        sequence=(("pPr",), ("r", "br", "fld"), ("endParaRPr",)),
        repeatable=("r", "br", "fld"),
    ),
    (DML, "pPr"): PARAGRAPH_PROPERTIES_RULE,
    (DML, "r"): ElementRule(sequence=(("rPr",), ("t",)), required=("t",)),
    (DML, "br"): ElementRule(sequence=(("rPr",),)),
    (DML, "fld"): ElementRule(
        sequence=(("rPr",), ("pPr",), ("t",)),
        attributes={"id": non_empty, "type": string},
        required_attributes=("id",),
    ),
    (DML, "t"): ElementRule(text_only=True),
    (DML, "rPr"): CHARACTER_PROPERTIES_RULE,
    (DML, "endParaRPr"): CHARACTER_PROPERTIES_RULE,
    (DML, "defRPr"): CHARACTER_PROPERTIES_RULE,
    (DML, "buChar"): ElementRule(attributes={"char": non_empty}, required_attributes=("char",)),
    (DML, "buAutoNum"): ElementRule(
        attributes={"type": non_empty, "startAt": integer(1, 32767)},
        required_attributes=("type",),
    ),
    (DML, "latin"): FONT_RULE,
    (DML, "ea"): FONT_RULE,
    (DML, "cs"): FONT_RULE,
    (DML, "sym"): FONT_RULE,
    (DML, "solidFill"): ElementRule(sequence=(COLOR_CHOICE,)),
    (DML, "srgbClr"): ElementRule(attributes={"val": hex_color}, required_attributes=("val",)),
    (DML, "off"): ElementRule(attributes={"x": COORDINATE, "y": COORDINATE},
                              required_attributes=("x", "y"), parents=("xfrm",)),
    (DML, "ext"): ElementRule(attributes={"cx": integer(0, 27273042316900), "cy": integer(0, 27273042316900)},
                              required_attributes=("cx", "cy"), parents=("xfrm",)),
}
RULES.update({(DML, name): PARAGRAPH_PROPERTIES_RULE
              for name in ["defPPr"] + [f"lvl{n}pPr" for n in range(1, 10)]})

# Foreign content that the rules do not describe.
OPEN_NAMESPACES = frozenset({MC})

# XSD file per kind of part, looked up anywhere under the schema folder.
XSD_FILES = {
    "pml": "pml.xsd",
    "dml": "dml-main.xsd",
    "rels": "opc-relationships.xsd",
    "content_types": "opc-contentTypes.xsd",
}

OOXML_NAMESPACES = frozenset(NSMAP.values()) | {"http://www.w3.org/XML/1998/namespace"}


def _location(part: Part, element) -> str:
    return str(part.locate(element))


def check_element(part: Part, element, rule: ElementRule) -> List[Issue]:
    """Check one element against its rule."""
    issues: List[Issue] = []
    name = local_name(element.tag)
    location = _location(part, element)

    for attr_name, value in element.attrib.items():
        if attr_name.startswith("{"):
            continue
        checker = rule.attributes.get(attr_name)
        if checker is None:
            issues.append(schema_issue(location, f"Unexpected attribute '{attr_name}' on <{name}>",
                                       element=name, attribute=attr_name))
            continue
        problem = checker(value)
        if problem:
            issues.append(schema_issue(location, f"Invalid value '{value}' for attribute '{attr_name}' "
                                                 f"on <{name}>: {problem}",
                                       element=name, attribute=attr_name))
    for attr_name in rule.required_attributes:
        if attr_name not in element.attrib:
            issues.append(schema_issue(location, f"Missing required attribute '{attr_name}' on <{name}>",
                                       element=name, attribute=attr_name))

    children = [child for child in element if isinstance(child.tag, str)]
    if rule.text_only:
        for child in children:
            issues.append(schema_issue(_location(part, child),
                                       f"Unexpected child <{local_name(child.tag)}> in <{name}>",
                                       element=local_name(child.tag), parent=name))
        return issues

    seen: Dict[str, int] = {}
    last_rank = -1
    own_namespace = element.tag[1:].split("}", 1)[0]
    for child in children:
        child_ns = child.tag[1:].split("}", 1)[0] if child.tag.startswith("{") else ""
        if child_ns in OPEN_NAMESPACES:
            continue
        child_name = local_name(child.tag)
        rank = rule.rank.get(child_name)
        if rank is None or child_ns not in (own_namespace, PML, DML):
            issues.append(schema_issue(_location(part, child), f"Unexpected child <{child_name}> in <{name}>",
                                       element=child_name, parent=name))
            continue
        if rank < last_rank:
            issues.append(schema_issue(_location(part, child),
                                       f"Child <{child_name}> out of order in <{name}>",
                                       element=child_name, parent=name))
        group = rule.sequence[rank]
        group_key = group[0]
        seen[group_key] = seen.get(group_key, 0) + 1
        if seen[group_key] > 1 and child_name not in rule.repeatable:
            issues.append(schema_issue(_location(part, child),
                                       f"Child <{child_name}> repeated in <{name}>",
                                       element=child_name, parent=name))
        last_rank = max(last_rank, rank)

    present = {local_name(child.tag) for child in children}
    for required in rule.required:
        if required not in present:
            issues.append(schema_issue(location, f"Missing required child <{required}> in <{name}>",
                                       element=name, child=required))
    return issues


def check_part(part: Part) -> List[Issue]:
    """Apply the built-in rules to every element of a part."""
    issues: List[Issue] = []
    for element in part.iter_elements():
        tag = element.tag
        if not tag.startswith("{"):
            continue
        rule = RULES.get((namespace_of(tag), local_name(tag)))
        if rule is not None and rule.parents:
            parent = element.getparent()
            if parent is None or local_name(parent.tag) not in rule.parents:
                continue
        if rule is not None:
            issues.extend(check_element(part, element, rule))
    return issues


class XsdValidator:
    """
    Validates parts against OOXML XSD files found under ``schema_dir``.

    Schemas are compiled on first use. Markup-compatibility attributes and
    elements from non-OOXML namespaces are stripped from a copy of the part
    before validation.
    """

    def __init__(self, schema_dir: Path):
        self.schema_dir = Path(schema_dir)
        self._schemas: Dict[str, Optional[lxml_etree.XMLSchema]] = {}

    def schema_kind(self, part_name: str) -> Optional[str]:
        if part_name == CONTENT_TYPES_PART:
            return "content_types"
        if part_name.endswith(".rels"):
            return "rels"
        if part_name.startswith("ppt/theme/"):
            return "dml"
        if part_name.startswith("ppt/"):
            return "pml"
        return None

    def load(self, kind: str) -> Optional[lxml_etree.XMLSchema]:
        if kind not in self._schemas:
            path = next(self.schema_dir.rglob(XSD_FILES[kind]), None)
            if path is None:
                logger.warning(f"No {XSD_FILES[kind]} under {self.schema_dir}")
                self._schemas[kind] = None
            else:
                xsd_doc = lxml_etree.parse(str(path))
                self._schemas[kind] = lxml_etree.XMLSchema(xsd_doc)
                logger.debug(f"Loaded schema {path}")
        return self._schemas[kind]

    def validate(self, part: Part) -> List[Issue]:
        kind = self.schema_kind(part.name)
        if kind is None:
            return []
        try:
            schema = self.load(kind)
        except (lxml_etree.XMLSchemaParseError, lxml_etree.XMLSyntaxError, OSError) as exc:
            logger.error(f"Cannot load schema for {part.name}: {exc}")
            self._schemas[kind] = None
            return [schema_issue(part.name, f"Schema {XSD_FILES[kind]} could not be loaded: {exc}",
                                 ValidationLevel.WARNING)]
        if schema is None:
            return []
        if schema.validate(self._cleaned(part.root)):
            return []
        return [
            schema_issue(f"{part.name}:{error.line}", error.message, xsd=XSD_FILES[kind])
            for error in schema.error_log
        ]

    def _cleaned(self, root):
        clone = copy.deepcopy(root)
        for element in clone.iter():
            if not isinstance(element.tag, str):
                continue
            for attr_name in list(element.attrib):
                if attr_name.startswith("{") and attr_name[1:].split("}", 1)[0] not in OOXML_NAMESPACES:
                    del element.attrib[attr_name]
            element.attrib.pop(qn("mc:Ignorable"), None)
        for element in list(clone.iter()):
            if not isinstance(element.tag, str) or not element.tag.startswith("{"):
                continue
            namespace = element.tag[1:].split("}", 1)[0]
            if namespace not in OOXML_NAMESPACES and namespace != MC and element.getparent() is not None:
                element.getparent().remove(element)
        return clone


def schema_pass(parts: Iterable[Part], schema_dir: Optional[Path] = None) -> IssueSet:
    """
    Run the schema conformance pass.

    Args:
        parts: Parts to check
        schema_dir: Optional folder with OOXML XSD files

    Returns:
        IssueSet of schema issues
    """
    issues = IssueSet()
    xsd = XsdValidator(schema_dir) if schema_dir else None
    for part in parts:
        if part.name == CONTENT_TYPES_PART or part.name.endswith(".rels"):
            if xsd is not None:
                issues.extend(xsd.validate(part))
            continue
        issues.extend(check_part(part))
        if xsd is not None:
            issues.extend(xsd.validate(part))
    logger.debug(f"Schema pass: {len(issues)} issues")
    return issues
