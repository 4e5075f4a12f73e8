"""
Tests for the validation passes and the regression check.
"""

import io
import json
import re
import zipfile

import pytest
from PIL import Image

from pptx_interpreter.applier import apply
from pptx_interpreter.document import Presentation
from pptx_interpreter.inventory import extract
from pptx_interpreter.models.directive import load_directives
from pptx_interpreter.validation import (
    Category,
    Issue,
    IssueSet,
    PresentationValidator,
    ValidationLevel,
    ValidationResult,
    check_regressions,
    validate,
)
from pptx_interpreter.validation.issues import overflow_issue, reference_issue, schema_issue

SMALL_BOX = (457200, 457200, 2540000, 508000)  # 200 x 40 pt
LONG_TEXT = "This sentence is far too long to fit inside such a small text box at all"


def problem_slide(deck, box_text):
    """One schema violation, one dangling relationship id and a small text box."""
    return [
        deck.text_box(2, deck.paragraph(deck.run("tiny", 'sz="50"'))),
        deck.text_box(3, deck.paragraph(deck.run("link", properties='<a:hlinkClick r:id="rId99"/>')),
                      box=(457200, 2000000, 3000000, 600000)),
        deck.text_box(4, box_text, box=SMALL_BOX),
    ]


def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestPresentationValidator:
    """Test cases for the combined validator."""

    def test_clean_document(self, sample_presentation):
        """Test that a consistent presentation has no issues."""
        issues = validate(sample_presentation)

        assert issues == IssueSet()
        assert len(issues) == 0

    def test_one_issue_per_category(self, deck):
        """Test that one problem of each kind yields exactly three issues."""
        document = Presentation.from_bytes(deck.build([problem_slide(deck, LONG_TEXT)]))
        issues = validate(document)

        assert len(issues) == 3
        assert sorted(issue.category.value for issue in issues) == ["overflow", "reference", "schema"]
        schema = list(issues.by_category(Category.SCHEMA))[0]
        reference = list(issues.by_category(Category.REFERENCE))[0]
        overflow = list(issues.by_category(Category.OVERFLOW))[0]
        assert "sz" in schema.message
        assert schema.severity == ValidationLevel.ERROR
        assert "rId99" in reference.message
        assert overflow.severity == ValidationLevel.WARNING
        assert overflow.details["direction"] == "vertical"
        assert overflow.overflow > 0

    def test_passes_are_selectable(self, deck):
        """Test running a subset of the passes."""
        document = Presentation.from_bytes(deck.build([problem_slide(deck, LONG_TEXT)]))
        result = PresentationValidator().validate(document, ["schema"])

        assert result.passes == ["schema"]
        assert [issue.category for issue in result.issues] == [Category.SCHEMA]

    def test_unknown_pass(self, sample_presentation):
        """Test that an unknown pass name is rejected."""
        with pytest.raises(ValueError):
            PresentationValidator().validate(sample_presentation, ["spelling"])

    def test_validation_does_not_modify(self, deck):
        """Test that validating leaves the document unmodified."""
        document = Presentation.from_bytes(deck.build([problem_slide(deck, LONG_TEXT)]))
        validate(document)

        assert document.modified_parts() == []


class TestRegressionCheck:
    """Test cases for check_regressions."""

    def test_only_new_issues_reported(self, deck):
        """Test baseline {A, B} and edited {A, B, C} gives {C}."""
        document = Presentation.from_bytes(deck.build([problem_slide(deck, "Short")]))
        baseline = validate(document)
        assert len(baseline) == 2

        locator = str(extract(document)[2].locator)
        apply(document, load_directives([{"locator": locator, "text": LONG_TEXT}]))
        current = validate(document)
        regressions = check_regressions(baseline, current)

        assert len(current) == 3
        assert len(regressions) == 1
        assert list(regressions)[0].category == Category.OVERFLOW
        assert list(regressions)[0].location == locator

    def test_changed_overflow_amount_is_not_a_regression(self, deck):
        """Test that shortening overflowing text keeps the same issue."""
        document = Presentation.from_bytes(deck.build([[deck.text_box(2, LONG_TEXT, box=SMALL_BOX)]]))
        baseline = validate(document, ["overflow"])

        locator = str(extract(document)[0].locator)
        apply(document, load_directives([{"locator": locator, "text": "Still far too long for this small text box"}]))
        current = validate(document, ["overflow"])

        assert len(baseline) == len(current) == 1
        assert list(current)[0].overflow < list(baseline)[0].overflow
        assert len(check_regressions(baseline, current)) == 0
        assert list(current)[0].message == list(baseline)[0].message

    def test_fixed_issue_is_not_a_regression(self):
        """Test that issues gone from the current run are ignored."""
        a = schema_issue("part#0", "A")
        b = reference_issue("part#1", "B")

        assert len(check_regressions([a, b], [a])) == 0

    def test_details_do_not_affect_identity(self):
        """Test that issues differing only in details are the same issue."""
        first = overflow_issue("part#0", "Text overflows", overflow_pt=3.0)
        second = overflow_issue("part#0", "Text overflows", overflow_pt=4.5)

        assert first == second
        assert len(IssueSet([first, second])) == 1
        assert check_regressions(IssueSet([first]), IssueSet([second])) == IssueSet()


class TestSchemaPass:
    """Test cases for the built-in schema rules."""

    def schema_issues(self, deck, paragraph):
        document = Presentation.from_bytes(deck.build([[deck.text_box(2, [paragraph])]]))
        return validate(document, ["schema"])

    def test_out_of_order_child(self, deck):
        """Test that a:rPr after a:t is reported."""
        issues = self.schema_issues(deck, '<a:p><a:r><a:t>x</a:t><a:rPr lang="en-US"/></a:r></a:p>')

        assert len(issues) == 1
        assert "out of order" in list(issues)[0].message

    def test_unexpected_attribute(self, deck):
        """Test that an unknown attribute is reported."""
        issues = self.schema_issues(deck, '<a:p><a:r><a:rPr lang="en-US" shadow="1"/><a:t>x</a:t></a:r></a:p>')

        assert [issue.message for issue in issues] == ["Unexpected attribute 'shadow' on <rPr>"]

    def test_missing_required_child(self, deck):
        """Test that a run without a:t is reported."""
        issues = self.schema_issues(deck, '<a:p><a:r><a:rPr lang="en-US"/></a:r></a:p>')

        assert "Missing required child <t>" in list(issues)[0].message

    def test_bad_enum_value(self, deck):
        """Test that an invalid alignment value is reported."""
        issues = self.schema_issues(deck, '<a:p><a:pPr algn="middle"/><a:r><a:t>x</a:t></a:r></a:p>')

        assert len(issues) == 1
        assert "algn" in list(issues)[0].message

    def test_repeated_child(self, deck):
        """Test that a second a:pPr is reported."""
        issues = self.schema_issues(deck, '<a:p><a:pPr/><a:pPr/><a:r><a:t>x</a:t></a:r></a:p>')

        assert any("repeated" in issue.message for issue in issues)


class TestReferencePass:
    """Test cases for referential integrity."""

    def test_missing_target(self, deck):
        """Test that a relationship to an absent part is reported."""
        rels = {0: [("rId2", "image", "../media/missing.png")]}
        document = Presentation.from_bytes(deck.build(deck.sample_slides(), slide_rels=rels))
        issues = validate(document, ["reference"])

        assert len(issues) == 1
        issue = list(issues)[0]
        assert "ppt/media/missing.png" in issue.message
        assert issue.location == "ppt/slides/_rels/slide1.xml.rels#1"

    def test_images(self, deck):
        """Test that decodable images pass and corrupt ones are reported."""
        rels = {0: [("rId2", "image", "../media/good.png")], 1: [("rId2", "image", "../media/bad.png")]}
        members = {"ppt/media/good.png": png_bytes(), "ppt/media/bad.png": b"\x89PNG not really"}
        document = Presentation.from_bytes(deck.build(deck.sample_slides(), rels, members))
        issues = validate(document, ["reference"])

        assert [issue.location for issue in issues] == ["ppt/media/bad.png"]

    def test_missing_content_type(self, deck):
        """Test that a member without a content type is reported."""
        document = Presentation.from_bytes(deck.build(deck.sample_slides(),
                                                      extra_members={"ppt/media/clip.xyz": b"data"}))
        issues = validate(document, ["reference"])

        assert [issue.location for issue in issues] == ["ppt/media/clip.xyz"]

    def test_package_relationships_use_rels_default(self, deck):
        """Test that _rels/.rels is typed by the rels Default and reported without it."""
        clean = Presentation.from_bytes(deck.build(deck.sample_slides()))
        assert len(validate(clean, ["reference"])) == 0

        members = deck.members(deck.sample_slides())
        members["[Content_Types].xml"] = re.sub(
            rb'<Default Extension="rels"[^>]*/>', b"", members["[Content_Types].xml"])
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zip_file:
            for name, data in members.items():
                zip_file.writestr(name, data)
        issues = validate(Presentation.from_bytes(buffer.getvalue()), ["reference"])

        locations = {issue.location for issue in issues}
        assert "_rels/.rels" in locations
        assert locations == {name for name in members if name.endswith(".rels")}

    def test_duplicate_shape_ids(self, deck):
        """Test that two shapes with the same id on one slide are reported."""
        slide = [deck.text_box(2, "one"), deck.text_box(2, "two", box=(457200, 2000000, 3000000, 600000))]
        issues = validate(Presentation.from_bytes(deck.build([slide])), ["reference"])

        assert len(issues) == 1
        assert "Duplicate shape id 2" in list(issues)[0].message

    def test_alternate_branches_share_shape_ids(self, deck):
        """Test that a Fallback repeating the ids of its Choice is not a duplicate."""
        slide = [deck.alternate(deck.text_box(2, "Live"), deck.text_box(2, "Fallback copy"))]

        assert len(validate(Presentation.from_bytes(deck.build([slide])), ["reference"])) == 0


class TestOverflowPass:
    """Test cases for the overflow estimate."""

    def overflow_issues(self, deck, shape):
        return validate(Presentation.from_bytes(deck.build([[shape]])), ["overflow"])

    def test_fitting_text(self, deck):
        """Test that short text is not reported."""
        assert len(self.overflow_issues(deck, deck.text_box(2, "Short", box=SMALL_BOX))) == 0

    def test_first_crossing_paragraph_reported(self, deck):
        """Test that the issue points at the paragraph that crosses the bound."""
        document = Presentation.from_bytes(deck.build([[
            deck.text_box(2, ["fits", "crosses", "beyond"], box=SMALL_BOX),
        ]]))
        records = extract(document)
        issues = validate(document, ["overflow"])

        assert len(issues) == 1
        assert list(issues)[0].location == str(records[1].locator)

    def test_horizontal_overflow_without_wrap(self, deck):
        """Test that unwrapped text wider than the box is reported."""
        shape = deck.text_box(2, "A very long single line that will not wrap", box=(457200, 457200, 1270000, 1270000),
                              body_pr='<a:bodyPr wrap="none"/>')
        issues = self.overflow_issues(deck, shape)

        assert len(issues) == 1
        assert list(issues)[0].details["direction"] == "horizontal"

    def test_shape_autofit_not_fixed(self, deck):
        """Test that shapes resized to fit their text are skipped."""
        shape = deck.text_box(2, LONG_TEXT, box=SMALL_BOX, body_pr='<a:bodyPr wrap="square"><a:spAutoFit/></a:bodyPr>')

        assert len(self.overflow_issues(deck, shape)) == 0

    def test_normal_autofit_scales_text(self, deck):
        """Test that normAutofit font scaling is applied before measuring."""
        crowded = deck.text_box(2, ["one", "two"], box=SMALL_BOX)
        scaled = deck.text_box(2, ["one", "two"], box=SMALL_BOX,
                               body_pr='<a:bodyPr wrap="square"><a:normAutofit fontScale="50000"/></a:bodyPr>')

        assert len(self.overflow_issues(deck, crowded)) == 1
        assert len(self.overflow_issues(deck, scaled)) == 0


class TestValidationResult:
    """Test cases for report generation."""

    def test_reports(self):
        """Test summary, JSON and text reports."""
        issues = IssueSet([
            schema_issue("a#0", "bad attribute"),
            overflow_issue("b#1", "too long", overflow_pt=2.5),
        ])
        result = ValidationResult(issues, ["schema", "overflow"])

        assert not result.is_valid
        assert result.has_errors() and result.has_warnings()
        summary = result.summary()
        assert (summary["errors"], summary["warnings"], summary["overflow"]) == (1, 1, 1)
        report = json.loads(result.generate_report("json"))
        assert report["issues"][1]["details"] == {"overflow_pt": 2.5}
        text = result.generate_report("text")
        assert "[ERROR] schema a#0: bad attribute" in text
        assert result.generate_report("dict")["passes"] == ["schema", "overflow"]

    def test_warnings_only_is_valid(self):
        """Test that warnings do not make a result invalid."""
        result = ValidationResult(IssueSet([overflow_issue("b#1", "too long")]))

        assert result.is_valid
        assert isinstance(list(result.issues)[0], Issue)
