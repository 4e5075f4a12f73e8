"""
Presentation document model.

Materializes every XML part of an archive as a namespace-aware tree, indexes
the package relationships and resolves the slide → layout → master → theme
chains that formatting inheritance and validation walk.
"""

import re
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from .exceptions import InvalidLocator, MissingMember
from .models.locator import Locator
from .options import PipelineOptions
from .parser.package_reader import Archive
from .parser.relationships import RelationshipManager
from .parser.xml_parser import Part, parse
from .utils.namespaces import (
    PRESENTATION_PART,
    RELTYPE_SLIDE,
    RELTYPE_SLIDE_LAYOUT,
    RELTYPE_SLIDE_MASTER,
    RELTYPE_THEME,
    qn,
)

logger = logging.getLogger(__name__)

_SLIDE_NAME_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$")


class Presentation:
    """
    In-memory presentation: archive plus parsed part trees.

    Every ``.xml`` and ``.rels`` member is parsed when the document is
    created; a malformed part aborts construction because the archive could
    not be re-serialized safely.
    """

    def __init__(self, archive: Archive, options: Optional[PipelineOptions] = None):
        self.archive = archive
        self.options = options or PipelineOptions()
        self.parts: "OrderedDict[str, Part]" = OrderedDict(
            (name, parse(archive.member_bytes(name), name)) for name in archive.xml_names()
        )
        self.relationships = RelationshipManager(
            {name: part for name, part in self.parts.items() if name.endswith(".rels")}
        )
        self.slide_names: List[str] = self._resolve_slide_order()

        logger.info(f"Presentation loaded: {len(self.parts)} XML parts, {len(self.slide_names)} slides")

    @classmethod
    def open(cls, path: Union[str, Path], options: Optional[PipelineOptions] = None) -> "Presentation":
        """Open and parse a PPTX file."""
        return cls(Archive.open(path), options)

    @classmethod
    def from_bytes(cls, data: bytes, options: Optional[PipelineOptions] = None) -> "Presentation":
        return cls(Archive.from_bytes(data), options)

    # ------------------------------------------------------------------
    # Part access
    def part(self, name: str) -> Part:
        try:
            return self.parts[name]
        except KeyError:
            raise MissingMember(name) from None

    def find(self, locator: Locator):
        """Resolve a locator against the part it names."""
        part = self.parts.get(locator.part)
        if part is None:
            raise InvalidLocator(locator, f"no XML part named {locator.part}")
        return part.find(locator)

    # ------------------------------------------------------------------
    # Package structure
    def _resolve_slide_order(self) -> List[str]:
        presentation = self.parts.get(PRESENTATION_PART)
        if presentation is None:
            logger.warning(f"{PRESENTATION_PART} missing; ordering slides by file name")
            return self._slides_by_name()

        ordered: List[str] = []
        id_list = presentation.root.find(qn("p:sldIdLst"))
        if id_list is not None:
            for slide_id in id_list.findall(qn("p:sldId")):
                rel = self.relationships.get(PRESENTATION_PART, slide_id.get(qn("r:id"), ""))
                target = rel.resolved_target if rel is not None and rel.rel_type == RELTYPE_SLIDE else None
                if target and target in self.parts:
                    ordered.append(target)
                else:
                    logger.warning(f"Slide id {slide_id.get('id')} does not resolve to a slide part")
        return ordered

    def _slides_by_name(self) -> List[str]:
        numbered = []
        for name in self.parts:
            match = _SLIDE_NAME_RE.match(name)
            if match:
                numbered.append((int(match.group(1)), name))
        return [name for _, name in sorted(numbered)]

    @property
    def slides(self) -> List[Part]:
        return [self.parts[name] for name in self.slide_names]

    def layout_for(self, slide_name: str) -> Optional[Part]:
        return self._related_part(slide_name, RELTYPE_SLIDE_LAYOUT)

    def master_for(self, layout_name: str) -> Optional[Part]:
        return self._related_part(layout_name, RELTYPE_SLIDE_MASTER)

    def theme_for(self, master_name: str) -> Optional[Part]:
        return self._related_part(master_name, RELTYPE_THEME)

    def presentation_part(self) -> Optional[Part]:
        return self.parts.get(PRESENTATION_PART)

    def slide_chain(self, slide_name: str) -> Dict[str, Optional[Part]]:
        """Return the layout, master and theme parts a slide inherits from."""
        layout = self.layout_for(slide_name)
        master = self.master_for(layout.name) if layout is not None else None
        theme = self.theme_for(master.name) if master is not None else None
        return {"layout": layout, "master": master, "theme": theme}

    def _related_part(self, source: str, rel_type: str) -> Optional[Part]:
        target = self.relationships.first_target(source, rel_type)
        if target is None:
            return None
        return self.parts.get(target)

    def slide_index(self, part_name: str) -> Optional[int]:
        try:
            return self.slide_names.index(part_name)
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Output
    def modified_parts(self) -> List[str]:
        return [name for name, part in self.parts.items() if part.modified]

    def serialize_modified(self) -> Dict[str, bytes]:
        """Re-serialize every modified part; unmodified members keep their original bytes."""
        return {name: self.parts[name].serialize() for name in self.modified_parts()}

    def to_bytes(self) -> bytes:
        return self.archive.to_bytes(self.serialize_modified())

    def save(self, path: Union[str, Path]) -> Path:
        """Write the presentation atomically to ``path``."""
        return self.archive.write(path, self.serialize_modified())
