"""
Referential integrity pass.

Checks that relationship targets exist, that every relationship id used in
a part is declared in that part's ``.rels``, that every member has a content
type, that shape and slide layout / master ids are unique, and that image
targets decode.
"""

import io
import posixpath
from typing import Dict, List, Optional, Tuple
import logging

from PIL import Image, UnidentifiedImageError

from ..document import Presentation
from ..inventory import live_branch
from ..utils.namespaces import CONTENT_TYPES_PART, PRESENTATION_PART, RELTYPE_IMAGE, qn
from .issues import Issue, IssueSet, ValidationLevel, reference_issue

logger = logging.getLogger(__name__)

RELATIONSHIP_ATTRIBUTES = frozenset({qn("r:id"), qn("r:embed"), qn("r:link"), qn("r:pict")})

# Vector formats Pillow cannot verify portably.
UNVERIFIED_IMAGE_EXTENSIONS = frozenset({".emf", ".wmf", ".svg", ".wdp"})

SHAPE_PART_PREFIXES = ("ppt/slides/", "ppt/slideLayouts/", "ppt/slideMasters/")


def in_alternate_branch(element) -> bool:
    """True inside a branch of mc:AlternateContent other than the one that is read."""
    for branch in element.iterancestors(qn("mc:Choice"), qn("mc:Fallback")):
        if branch is not live_branch(branch.getparent()):
            return True
    return False


class ReferenceChecker:
    """
    Referential integrity checks for one presentation.

    Each ``check_*`` method returns a list of issues; :meth:`run` combines them.
    """

    def __init__(self, document: Presentation, check_media: bool = True):
        """
        Args:
            document: Presentation to check
            check_media: Decode image relationship targets with Pillow
        """
        self.document = document
        self.check_media = check_media
        self.members = set(document.archive.names())

    def run(self) -> IssueSet:
        issues = IssueSet()
        issues.extend(self.check_relationship_targets())
        issues.extend(self.check_relationship_ids())
        issues.extend(self.check_content_types())
        issues.extend(self.check_shape_ids())
        issues.extend(self.check_layout_and_master_ids())
        if self.check_media:
            issues.extend(self.check_images())
        logger.debug(f"Reference pass: {len(issues)} issues")
        return issues

    def check_relationship_targets(self) -> List[Issue]:
        issues: List[Issue] = []
        for rel in self.document.relationships.iter_all():
            if rel.is_external:
                continue
            if not rel.resolved_target or rel.resolved_target not in self.members:
                issues.append(reference_issue(
                    str(rel.locator) if rel.locator else rel.source_part,
                    f"Relationship {rel.r_id} ({rel.type_name}) of "
                    f"{rel.source_part or 'the package'} targets missing part {rel.resolved_target or rel.target}",
                    r_id=rel.r_id, target=rel.resolved_target,
                ))
        return issues

    def check_relationship_ids(self) -> List[Issue]:
        issues: List[Issue] = []
        for name, part in self.document.parts.items():
            if name.endswith(".rels") or name == CONTENT_TYPES_PART:
                continue
            declared = self.document.relationships.get_relationships(name)
            for element in part.iter_elements():
                for attr_name, value in element.attrib.items():
                    if attr_name not in RELATIONSHIP_ATTRIBUTES or not value:
                        continue
                    if value not in declared:
                        local = attr_name.split("}", 1)[-1]
                        issues.append(reference_issue(
                            str(part.locate(element)),
                            f"r:{local}=\"{value}\" is not declared in the relationships of {name}",
                            r_id=value,
                        ))
        return issues

    def check_content_types(self) -> List[Issue]:
        if CONTENT_TYPES_PART not in self.document.parts:
            return [reference_issue(CONTENT_TYPES_PART, "Package has no [Content_Types].xml")]

        defaults, overrides = self._content_types()
        issues: List[Issue] = []
        for name in self.document.archive.names():
            if name == CONTENT_TYPES_PART or name.endswith("/"):
                continue
            base = posixpath.basename(name)
            # A leading dot still starts an extension: "_rels/.rels" is a "rels" member.
            extension = base.rpartition(".")[2].lower() if "." in base else ""
            if name not in overrides and extension not in defaults:
                issues.append(reference_issue(name, f"No content type declared for {name}"))
        for name in overrides:
            if name not in self.members:
                issues.append(reference_issue(
                    CONTENT_TYPES_PART, f"Content type override for missing part {name}",
                    ValidationLevel.WARNING,
                ))
        return issues

    def _content_types(self) -> Tuple[Dict[str, str], Dict[str, str]]:
        root = self.document.part(CONTENT_TYPES_PART).root
        defaults = {
            (element.get("Extension") or "").lower(): element.get("ContentType", "")
            for element in root.iter(qn("ct:Default"))
        }
        overrides = {
            (element.get("PartName") or "").lstrip("/"): element.get("ContentType", "")
            for element in root.iter(qn("ct:Override"))
        }
        return defaults, overrides

    def check_shape_ids(self) -> List[Issue]:
        issues: List[Issue] = []
        for name, part in self.document.parts.items():
            if not name.startswith(SHAPE_PART_PREFIXES) or name.endswith(".rels"):
                continue
            seen: Dict[str, str] = {}
            for c_nv_pr in part.root.iter(qn("p:cNvPr")):
                shape_id = c_nv_pr.get("id")
                if shape_id is None or in_alternate_branch(c_nv_pr):
                    continue
                location = str(part.locate(c_nv_pr))
                if shape_id in seen:
                    issues.append(reference_issue(
                        location, f"Duplicate shape id {shape_id} in {name} (first at {seen[shape_id]})",
                        shape_id=shape_id,
                    ))
                else:
                    seen[shape_id] = location
        return issues

    def check_layout_and_master_ids(self) -> List[Issue]:
        """Slide master and slide layout ids share one id space across the package."""
        issues: List[Issue] = []
        seen: Dict[str, str] = {}
        sources: List[Tuple[str, str]] = [(PRESENTATION_PART, "p:sldMasterId")]
        sources.extend((name, "p:sldLayoutId") for name in self.document.parts
                       if name.startswith("ppt/slideMasters/") and not name.endswith(".rels"))
        for name, tag in sources:
            part = self.document.parts.get(name)
            if part is None:
                continue
            for element in part.root.iter(qn(tag)):
                value = element.get("id")
                if value is None:
                    continue
                location = str(part.locate(element))
                if value in seen:
                    issues.append(reference_issue(
                        location, f"Duplicate slide layout/master id {value} (first at {seen[value]})",
                        id=value,
                    ))
                else:
                    seen[value] = location
        return issues

    def check_images(self) -> List[Issue]:
        issues: List[Issue] = []
        checked = set()
        for rel in self.document.relationships.iter_all():
            if rel.is_external or rel.rel_type != RELTYPE_IMAGE:
                continue
            target = rel.resolved_target
            if target is None or target in checked or target not in self.members:
                continue
            checked.add(target)
            if posixpath.splitext(target)[1].lower() in UNVERIFIED_IMAGE_EXTENSIONS:
                logger.debug(f"Skipping image verification for {target}")
                continue
            problem = self._image_problem(self.document.archive.member_bytes(target))
            if problem:
                issues.append(reference_issue(
                    target, f"Image {target} does not decode: {problem}", r_id=rel.r_id,
                ))
        return issues

    @staticmethod
    def _image_problem(data: bytes) -> Optional[str]:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.verify()
        except UnidentifiedImageError:
            return "unrecognized image format"
        except (OSError, SyntaxError, ValueError) as exc:
            return str(exc) or type(exc).__name__
        return None


def reference_pass(document: Presentation, check_media: bool = True) -> IssueSet:
    """Run the referential integrity pass."""
    return ReferenceChecker(document, check_media).run()
