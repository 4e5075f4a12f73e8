"""
Relationship manager for PPTX documents.

Handles relationship part parsing, target resolution and type-based filtering.
"""

import posixpath
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional
import logging

from ..models.locator import Locator
from ..utils.namespaces import qn

logger = logging.getLogger(__name__)

PACKAGE_RELS_PART = "_rels/.rels"


@dataclass(frozen=True)
class Relationship:
    """Represents a single OPC relationship."""

    source_part: str
    r_id: str
    rel_type: str
    target: str
    is_external: bool = False
    resolved_target: Optional[str] = None
    locator: Optional[Locator] = None

    @property
    def type_name(self) -> str:
        """Short relationship type, e.g. ``slideLayout``."""
        return self.rel_type.rsplit("/", 1)[-1]


def source_for(rels_part: str) -> str:
    """Return the source part name a relationship part belongs to."""
    if rels_part == PACKAGE_RELS_PART:
        return ""
    folder, _, base = rels_part.rpartition("/")
    if base.endswith(".rels"):
        base = base[:-len(".rels")]
    if folder == "_rels":
        return base
    if folder.endswith("/_rels"):
        return f"{folder[:-len('/_rels')]}/{base}"
    return f"{folder}/{base}" if folder else base


def resolve_target(source_part: str, target: str) -> str:
    """Resolve a relationship target against the directory of its source part."""
    if target.startswith("/"):
        return posixpath.normpath(target.lstrip("/"))
    base_dir = posixpath.dirname(source_part)
    return posixpath.normpath(posixpath.join(base_dir, target)) if base_dir else posixpath.normpath(target)


class RelationshipManager:
    """
    Manages relationships between package parts.

    Built from the parsed ``.rels`` parts of a presentation; answers
    lookups by source part, relationship id and relationship type.
    """

    def __init__(self, rels_parts: Mapping[str, object]):
        """
        Initialize relationship manager.

        Args:
            rels_parts: Mapping of ``.rels`` part name to parsed Part
        """
        self._by_source: Dict[str, Dict[str, Relationship]] = {}
        for name, part in rels_parts.items():
            source = source_for(name)
            self._by_source[source] = self._parse_relationship_part(source, part)

        logger.debug(f"Relationship manager initialized with {len(self._by_source)} relationship parts")

    @staticmethod
    def _parse_relationship_part(source: str, part) -> Dict[str, Relationship]:
        result: Dict[str, Relationship] = {}
        for index, rel_el in enumerate(part.root):
            if rel_el.tag != qn("rel:Relationship"):
                continue
            r_id = rel_el.get("Id", "")
            target = rel_el.get("Target", "")
            is_external = rel_el.get("TargetMode") == "External"
            resolved = target if is_external else (resolve_target(source, target) if target else None)
            result[r_id] = Relationship(
                source_part=source,
                r_id=r_id,
                rel_type=rel_el.get("Type", ""),
                target=target,
                is_external=is_external,
                resolved_target=resolved,
                locator=Locator(part.name, (index,)),
            )
        return result

    def get_relationships(self, source_part: str) -> Dict[str, Relationship]:
        """Return all relationships of a source part keyed by id."""
        return dict(self._by_source.get(source_part, {}))

    def get(self, source_part: str, r_id: str) -> Optional[Relationship]:
        return self._by_source.get(source_part, {}).get(r_id)

    def related(self, source_part: str, rel_type: str) -> List[Relationship]:
        """Return the relationships of a source part with the given type, in document order."""
        return [rel for rel in self._by_source.get(source_part, {}).values() if rel.rel_type == rel_type]

    def first_target(self, source_part: str, rel_type: str) -> Optional[str]:
        for rel in self.related(source_part, rel_type):
            if not rel.is_external and rel.resolved_target:
                return rel.resolved_target
        return None

    def iter_all(self) -> Iterable[Relationship]:
        """Iterate over all registered relationships."""
        for rels in self._by_source.values():
            yield from rels.values()
