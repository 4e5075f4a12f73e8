"""
Tests for XML part parsing, addressing and serialization.
"""

import pytest

from pptx_interpreter.document import Presentation
from pptx_interpreter.exceptions import InvalidLocator, MalformedXml
from pptx_interpreter.models.locator import Locator
from pptx_interpreter.parser.package_reader import Archive
from pptx_interpreter.parser.xml_parser import parse, serialize
from pptx_interpreter.utils.namespaces import qn


class TestXMLParser:
    """Test cases for Part parsing and serialization."""

    def test_round_trip_every_part(self, sample_pptx_bytes):
        """Test that unmodified parts serialize back to their original bytes."""
        archive = Archive.from_bytes(sample_pptx_bytes)

        for name in archive.xml_names():
            data = archive.member_bytes(name)
            assert serialize(parse(data, name)) == data, name

    def test_serialize_is_stable(self, sample_presentation):
        """Test that repeated serialization of one tree gives identical bytes."""
        part = sample_presentation.part("ppt/slides/slide1.xml")

        assert part.serialize() == part.serialize()

    def test_declaration_kept(self):
        """Test that the source XML declaration is reproduced verbatim."""
        data = b"<?xml version='1.0' encoding='UTF-8'?>\r\n<root><child/></root>"
        part = parse(data, "custom.xml")

        assert part.declaration.startswith(b"<?xml version='1.0'")
        assert part.serialize() == data

    def test_malformed_part(self):
        """Test that ill-formed XML raises MalformedXml naming the part."""
        with pytest.raises(MalformedXml) as exc_info:
            parse(b"<p:sld><p:cSld></p:sld>", "ppt/slides/slide1.xml")

        assert exc_info.value.part == "ppt/slides/slide1.xml"

    def test_malformed_part_aborts_document(self, deck):
        """Test that one malformed slide aborts loading the whole presentation."""
        data = deck.build([deck.sample_slides()[0], "<p:sld><unclosed></p:sld>"])

        with pytest.raises(MalformedXml) as exc_info:
            Presentation.from_bytes(data)
        assert exc_info.value.part == "ppt/slides/slide2.xml"

    def test_locate_and_find_are_inverse(self, sample_presentation):
        """Test that every element is found again at its computed locator."""
        part = sample_presentation.part("ppt/slides/slide2.xml")

        for element in part.iter_elements():
            assert part.find(part.locate(element)) is element

    def test_find_paragraph(self, sample_presentation):
        """Test resolving a locator written by hand."""
        paragraph = sample_presentation.find(Locator.parse("ppt/slides/slide1.xml#0/0/2/2/2"))

        assert paragraph.tag == qn("a:p")
        assert paragraph.find(qn("a:r") + "/" + qn("a:t")).text == "Quarterly Review"

    def test_find_out_of_range(self, sample_presentation):
        """Test that an out-of-range step raises InvalidLocator."""
        part = sample_presentation.part("ppt/slides/slide1.xml")

        with pytest.raises(InvalidLocator):
            part.find(Locator("ppt/slides/slide1.xml", (0, 0, 99)))

    def test_find_wrong_part(self, sample_presentation):
        """Test that a locator naming another part is rejected."""
        part = sample_presentation.part("ppt/slides/slide1.xml")

        with pytest.raises(InvalidLocator):
            part.find(Locator("ppt/slides/slide2.xml", (0,)))

    def test_find_unknown_part(self, sample_presentation):
        """Test that a locator naming an absent part is rejected by the document."""
        with pytest.raises(InvalidLocator):
            sample_presentation.find(Locator("ppt/slides/slide7.xml", (0,)))

    def test_mutations_mark_part_modified(self, sample_presentation):
        """Test that the mutation primitives track modification."""
        part = sample_presentation.part("ppt/slides/slide1.xml")
        text = part.root.find(".//" + qn("a:t"))
        assert not part.modified

        part.set_attribute(text, "missing", None)
        assert not part.modified

        part.replace_text(text, "Changed")
        assert part.modified
        assert sample_presentation.modified_parts() == ["ppt/slides/slide1.xml"]
        assert b"Changed" in part.serialize()


class TestLocator:
    """Test cases for Locator parsing."""

    def test_string_form(self):
        """Test string round trip."""
        locator = Locator("ppt/slides/slide1.xml", (0, 0, 3, 2, 2))

        assert str(locator) == "ppt/slides/slide1.xml#0/0/3/2/2"
        assert Locator.parse(str(locator)) == locator

    def test_other_forms(self):
        """Test dict and list forms."""
        expected = Locator("ppt/slides/slide2.xml", (0, 1))

        assert Locator.parse({"part": "ppt/slides/slide2.xml", "path": [0, 1]}) == expected
        assert Locator.parse(["ppt/slides/slide2.xml", 0, 1]) == expected

    def test_invalid_forms(self):
        """Test that unparseable values raise ValueError."""
        for value in ("no-separator", "#0/1", 42, []):
            with pytest.raises(ValueError):
                Locator.parse(value)

    def test_relations(self):
        """Test parent and containment helpers."""
        locator = Locator("ppt/slides/slide1.xml", (0, 0, 3))

        assert locator.child(2).parent() == locator
        assert locator.child(2).is_within(locator)
        assert not locator.is_within(locator.child(2))
