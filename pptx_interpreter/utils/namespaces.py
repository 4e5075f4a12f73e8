"""
Namespace constants for PresentationML packages.

Handles namespace URIs, prefix tables and Clark-notation helpers.
"""

from typing import Dict

PML = "http://schemas.openxmlformats.org/presentationml/2006/main"
DML = "http://schemas.openxmlformats.org/drawingml/2006/main"
OFFICE_RELS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PACKAGE_RELS = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES = "http://schemas.openxmlformats.org/package/2006/content-types"
MC = "http://schemas.openxmlformats.org/markup-compatibility/2006"

NSMAP: Dict[str, str] = {
    "p": PML,
    "a": DML,
    "r": OFFICE_RELS,
    "rel": PACKAGE_RELS,
    "ct": CONTENT_TYPES,
    "mc": MC,
}

RELTYPE_SLIDE = f"{OFFICE_RELS}/slide"
RELTYPE_SLIDE_LAYOUT = f"{OFFICE_RELS}/slideLayout"
RELTYPE_SLIDE_MASTER = f"{OFFICE_RELS}/slideMaster"
RELTYPE_THEME = f"{OFFICE_RELS}/theme"
RELTYPE_IMAGE = f"{OFFICE_RELS}/image"
RELTYPE_NOTES_SLIDE = f"{OFFICE_RELS}/notesSlide"

PRESENTATION_PART = "ppt/presentation.xml"
CONTENT_TYPES_PART = "[Content_Types].xml"


def qn(tag: str) -> str:
    """Convert a prefixed tag such as ``a:rPr`` to Clark notation."""
    prefix, _, local = tag.partition(":")
    if not local:
        return tag
    return f"{{{NSMAP[prefix]}}}{local}"


def local_name(tag) -> str:
    """Return the local part of a Clark-notation tag."""
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[-1]


def namespace_of(tag) -> str:
    """Return the namespace URI of a Clark-notation tag, or an empty string."""
    if not isinstance(tag, str) or not tag.startswith("{"):
        return ""
    return tag[1:].split("}", 1)[0]
