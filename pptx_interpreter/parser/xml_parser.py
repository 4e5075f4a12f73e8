"""
XML part model for PPTX documents.

Parses archive members into namespace-aware lxml trees, resolves locators
against them and serializes them back deterministically.
"""

import re
from typing import Dict, Iterator, Optional
import logging

from lxml import etree as lxml_etree

from ..exceptions import InvalidLocator, MalformedXml
from ..models.locator import Locator

logger = logging.getLogger(__name__)

_DECLARATION_RE = re.compile(rb"^(\xef\xbb\xbf)?\s*<\?xml[^>]*\?>[ \t\r\n]*")
_TRAILING_RE = re.compile(rb"[ \t\r\n]*$")


def _make_parser() -> lxml_etree.XMLParser:
    return lxml_etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_blank_text=False,
        huge_tree=True,
    )


class Part:
    """
    One XML document within the archive.

    Owns the root element, remembers the source declaration so that
    serialization reproduces it verbatim, and tracks whether the tree has
    been changed through the mutation primitives below.
    """

    def __init__(self, name: str, root, declaration: bytes = b"", trailer: bytes = b"",
                 encoding: str = "UTF-8"):
        self.name = name
        self.root = root
        self.declaration = declaration
        self.trailer = trailer
        self.encoding = encoding or "UTF-8"
        self.modified = False

    def __repr__(self) -> str:
        return f"Part({self.name!r}, modified={self.modified})"

    @property
    def namespaces(self) -> Dict[str, str]:
        """Namespace table declared on the root element (default namespace under ``None``)."""
        return dict(self.root.nsmap)

    def iter_elements(self) -> Iterator:
        """Iterate over element nodes in document order, skipping comments and PIs."""
        for node in self.root.iter():
            if isinstance(node.tag, str):
                yield node

    # ------------------------------------------------------------------
    # Addressing
    def find(self, locator: Locator):
        """
        Resolve a locator to an element of this part.

        Raises:
            InvalidLocator: if the locator names another part or a step is out of range
        """
        if locator.part != self.name:
            raise InvalidLocator(locator, f"locator addresses part {locator.part}, not {self.name}")

        node = self.root
        for depth, step in enumerate(locator.path):
            if step < 0 or step >= len(node):
                raise InvalidLocator(locator, f"step {depth} index {step} out of range ({len(node)} children)")
            node = node[step]
        return node

    def locate(self, element) -> Locator:
        """Compute the locator of an element that belongs to this part."""
        steps = []
        node = element
        while node is not self.root:
            parent = node.getparent()
            if parent is None:
                raise InvalidLocator(Locator(self.name), "element is not part of this tree")
            steps.append(parent.index(node))
            node = parent
        return Locator(self.name, tuple(reversed(steps)))

    # ------------------------------------------------------------------
    # Mutation primitives
    def replace_text(self, node, text: Optional[str]) -> None:
        """Replace the text content of ``node``; children and attributes are kept."""
        node.text = text
        self.modified = True

    def set_attribute(self, node, name: str, value: Optional[str]) -> None:
        """Set one attribute, or remove it when ``value`` is None."""
        if value is None:
            if name in node.attrib:
                del node.attrib[name]
                self.modified = True
            return
        node.set(name, str(value))
        self.modified = True

    def insert_child(self, parent, index: int, child) -> None:
        parent.insert(index, child)
        self.modified = True

    def remove_child(self, parent, child) -> None:
        parent.remove(child)
        self.modified = True

    # ------------------------------------------------------------------
    # Serialization
    def serialize(self) -> bytes:
        """
        Serialize the part.

        Output is the original XML declaration followed by lxml's
        serialization of the tree, so repeated calls on an unmodified tree
        return identical bytes and existing namespace prefixes are reused.
        """
        body = lxml_etree.tostring(
            self.root.getroottree(),
            encoding=self.encoding,
            xml_declaration=False,
        )
        return self.declaration + body + self.trailer


def parse(data: bytes, name: str = "<part>") -> Part:
    """
    Parse bytes into a Part.

    Raises:
        MalformedXml: if the bytes are not well-formed XML
    """
    try:
        root = lxml_etree.fromstring(data, parser=_make_parser())
    except lxml_etree.XMLSyntaxError as exc:
        raise MalformedXml(name, exc.msg, getattr(exc, "lineno", None)) from exc
    if root is None:
        raise MalformedXml(name, "document has no root element")

    match = _DECLARATION_RE.match(data)
    declaration = data[:match.end()] if match else b""
    trailer_match = _TRAILING_RE.search(data)
    trailer = trailer_match.group(0) if trailer_match else b""
    encoding = root.getroottree().docinfo.encoding or "UTF-8"

    logger.debug(f"Parsed part {name} (root {root.tag})")
    return Part(name, root, declaration, trailer, encoding)


def serialize(part: Part) -> bytes:
    return part.serialize()


def find(part: Part, locator: Locator):
    return part.find(locator)
