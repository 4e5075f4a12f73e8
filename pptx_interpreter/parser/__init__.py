"""
Parser package: archive codec, XML parts and package relationships.
"""

from .package_reader import Archive, member_bytes, open_archive, write_archive
from .relationships import Relationship, RelationshipManager
from .xml_parser import Part, parse, serialize

__all__ = [
    "Archive",
    "Part",
    "Relationship",
    "RelationshipManager",
    "member_bytes",
    "open_archive",
    "parse",
    "serialize",
    "write_archive",
]
