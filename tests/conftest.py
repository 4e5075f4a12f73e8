"""
Pytest configuration for PPTX Interpreter
"""

import io
import logging
import sys
import zipfile
from pathlib import Path
from xml.sax.saxutils import escape

import pytest

from pptx_interpreter.document import Presentation

A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
P_NS = "http://schemas.openxmlformats.org/presentationml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"
P14_NS = "http://schemas.microsoft.com/office/powerpoint/2010/main"
RELTYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

XML_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
PART_NS = f'xmlns:a="{A_NS}" xmlns:r="{R_NS}" xmlns:p="{P_NS}"'

TREE_HEADER = (
    '<p:nvGrpSpPr><p:cNvPr id="1" name=""/><p:cNvGrpSpPr/><p:nvPr/></p:nvGrpSpPr><p:grpSpPr/>'
)

# Slide master placeholder geometry (x, y, cx, cy) in EMU.
TITLE_BOX = (457200, 274638, 8229600, 1143000)
BODY_BOX = (457200, 1600200, 8229600, 4525963)

MASTER = XML_HEADER + (
    f'<p:sldMaster {PART_NS}><p:cSld><p:spTree>{TREE_HEADER}'
    '<p:sp><p:nvSpPr><p:cNvPr id="2" name="Title Placeholder 1"/><p:cNvSpPr><a:spLocks noGrp="1"/></p:cNvSpPr>'
    '<p:nvPr><p:ph type="title"/></p:nvPr></p:nvSpPr>'
    '<p:spPr><a:xfrm><a:off x="457200" y="274638"/><a:ext cx="8229600" cy="1143000"/></a:xfrm></p:spPr>'
    '<p:txBody><a:bodyPr anchor="ctr"/><a:lstStyle/>'
    '<a:p><a:r><a:rPr lang="en-US"/><a:t>Click to edit Master title style</a:t></a:r></a:p></p:txBody></p:sp>'
    '<p:sp><p:nvSpPr><p:cNvPr id="3" name="Text Placeholder 2"/><p:cNvSpPr><a:spLocks noGrp="1"/></p:cNvSpPr>'
    '<p:nvPr><p:ph type="body" idx="1"/></p:nvPr></p:nvSpPr>'
    '<p:spPr><a:xfrm><a:off x="457200" y="1600200"/><a:ext cx="8229600" cy="4525963"/></a:xfrm></p:spPr>'
    '<p:txBody><a:bodyPr/><a:lstStyle/>'
    '<a:p><a:r><a:rPr lang="en-US"/><a:t>Click to edit Master text styles</a:t></a:r></a:p></p:txBody></p:sp>'
    '</p:spTree></p:cSld>'
    '<p:clrMap bg1="lt1" tx1="dk1" bg2="lt2" tx2="dk2" accent1="accent1" accent2="accent2" accent3="accent3" '
    'accent4="accent4" accent5="accent5" accent6="accent6" hlink="hlink" folHlink="folHlink"/>'
    '<p:sldLayoutIdLst><p:sldLayoutId id="2147483649" r:id="rId1"/></p:sldLayoutIdLst>'
    '<p:txStyles>'
    '<p:titleStyle><a:lvl1pPr algn="ctr"><a:buNone/><a:defRPr sz="4400" b="1">'
    '<a:solidFill><a:schemeClr val="tx1"/></a:solidFill><a:latin typeface="+mj-lt"/></a:defRPr></a:lvl1pPr>'
    '</p:titleStyle>'
    '<p:bodyStyle>'
    '<a:lvl1pPr marL="342900" indent="-342900" algn="l"><a:buFont typeface="Arial"/><a:buChar char="•"/>'
    '<a:defRPr sz="3200"/></a:lvl1pPr>'
    '<a:lvl2pPr marL="742950" indent="-285750" algn="l"><a:buFont typeface="Arial"/><a:buChar char="–"/>'
    '<a:defRPr sz="2800"/></a:lvl2pPr>'
    '</p:bodyStyle>'
    '<p:otherStyle><a:defPPr><a:defRPr lang="en-US"/></a:defPPr>'
    '<a:lvl1pPr marL="0" algn="l"><a:defRPr sz="1800"/></a:lvl1pPr></p:otherStyle>'
    '</p:txStyles></p:sldMaster>'
)

LAYOUT = XML_HEADER + (
    f'<p:sldLayout {PART_NS} type="obj" preserve="1"><p:cSld name="Title and Content"><p:spTree>{TREE_HEADER}'
    '<p:sp><p:nvSpPr><p:cNvPr id="2" name="Title 1"/><p:cNvSpPr><a:spLocks noGrp="1"/></p:cNvSpPr>'
    '<p:nvPr><p:ph type="title"/></p:nvPr></p:nvSpPr><p:spPr/>'
    '<p:txBody><a:bodyPr/><a:lstStyle/><a:p><a:endParaRPr lang="en-US"/></a:p></p:txBody></p:sp>'
    '<p:sp><p:nvSpPr><p:cNvPr id="3" name="Content Placeholder 2"/><p:cNvSpPr><a:spLocks noGrp="1"/></p:cNvSpPr>'
    '<p:nvPr><p:ph idx="1"/></p:nvPr></p:nvSpPr><p:spPr/>'
    '<p:txBody><a:bodyPr/><a:lstStyle/><a:p><a:endParaRPr lang="en-US"/></a:p></p:txBody></p:sp>'
    '</p:spTree></p:cSld><p:clrMapOvr><a:masterClrMapping/></p:clrMapOvr></p:sldLayout>'
)

THEME = XML_HEADER + (
    f'<a:theme xmlns:a="{A_NS}" name="Office Theme"><a:themeElements>'
    '<a:clrScheme name="Office">'
    '<a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>'
    '<a:lt1><a:sysClr val="window" lastClr="FFFFFF"/></a:lt1>'
    '<a:dk2><a:srgbClr val="1F497D"/></a:dk2>'
    '<a:lt2><a:srgbClr val="EEECE1"/></a:lt2>'
    '<a:accent1><a:srgbClr val="4F81BD"/></a:accent1>'
    '<a:accent2><a:srgbClr val="C0504D"/></a:accent2>'
    '<a:hlink><a:srgbClr val="0000FF"/></a:hlink>'
    '<a:folHlink><a:srgbClr val="800080"/></a:folHlink>'
    '</a:clrScheme>'
    '<a:fontScheme name="Office">'
    '<a:majorFont><a:latin typeface="Calibri Light"/><a:ea typeface=""/><a:cs typeface=""/></a:majorFont>'
    '<a:minorFont><a:latin typeface="Calibri"/><a:ea typeface=""/><a:cs typeface=""/></a:minorFont>'
    '</a:fontScheme>'
    '</a:themeElements></a:theme>'
)

CONTENT_TYPE = {
    "presentation": "application/vnd.openxmlformats-officedocument.presentationml.presentation.main+xml",
    "slide": "application/vnd.openxmlformats-officedocument.presentationml.slide+xml",
    "layout": "application/vnd.openxmlformats-officedocument.presentationml.slideLayout+xml",
    "master": "application/vnd.openxmlformats-officedocument.presentationml.slideMaster+xml",
    "theme": "application/vnd.openxmlformats-officedocument.theme+xml",
}


def _relationships(entries):
    body = "".join(
        f'<Relationship Id="{r_id}" Type="{RELTYPE}/{rel_type}" Target="{target}"/>'
        for r_id, rel_type, target in entries
    )
    return XML_HEADER + f'<Relationships xmlns="{REL_NS}">{body}</Relationships>'


def _xfrm(box):
    x, y, cx, cy = box
    return f'<a:xfrm><a:off x="{x}" y="{y}"/><a:ext cx="{cx}" cy="{cy}"/></a:xfrm>'


class DeckBuilder:
    """Builds small, internally consistent PPTX packages from slide XML fragments."""

    def run(self, text, attrs="", properties=""):
        """``<a:r>`` with an ``a:rPr`` carrying ``attrs`` and optional child ``properties``."""
        extra = f" {attrs}" if attrs else ""
        if properties:
            r_pr = f'<a:rPr lang="en-US"{extra}>{properties}</a:rPr>'
        else:
            r_pr = f'<a:rPr lang="en-US"{extra}/>'
        return f"<a:r>{r_pr}<a:t>{escape(text)}</a:t></a:r>"

    def paragraph(self, *runs, ppr=""):
        """``<a:p>``; plain strings become single runs, no runs gives an empty paragraph."""
        content = "".join(run if run.startswith("<") else self.run(run) for run in runs)
        if not content:
            return f'<a:p>{ppr}<a:endParaRPr lang="en-US"/></a:p>'
        return f"<a:p>{ppr}{content}</a:p>"

    def _paragraphs(self, paragraphs):
        if isinstance(paragraphs, str):
            paragraphs = [paragraphs]
        return "".join(p if p.startswith("<a:p>") or p.startswith("<a:p ") else self.paragraph(p)
                       for p in paragraphs)

    def text_box(self, shape_id, paragraphs, box=(457200, 6000000, 3000000, 600000), name=None,
                 body_pr='<a:bodyPr wrap="square" rtlCol="0"/>'):
        name = name or f"TextBox {shape_id - 1}"
        return (
            f'<p:sp><p:nvSpPr><p:cNvPr id="{shape_id}" name="{name}"/><p:cNvSpPr txBox="1"/><p:nvPr/></p:nvSpPr>'
            f'<p:spPr>{_xfrm(box)}<a:prstGeom prst="rect"><a:avLst/></a:prstGeom></p:spPr>'
            f'<p:txBody>{body_pr}<a:lstStyle/>{self._paragraphs(paragraphs)}</p:txBody></p:sp>'
        )

    def placeholder(self, shape_id, ph, paragraphs, name=None, box=None):
        """Placeholder shape; ``ph`` holds the ``p:ph`` attributes, e.g. ``'type="title"'``."""
        name = name or f"Placeholder {shape_id - 1}"
        sp_pr = f"<p:spPr>{_xfrm(box)}</p:spPr>" if box else "<p:spPr/>"
        return (
            f'<p:sp><p:nvSpPr><p:cNvPr id="{shape_id}" name="{name}"/>'
            f'<p:cNvSpPr><a:spLocks noGrp="1"/></p:cNvSpPr><p:nvPr><p:ph {ph}/></p:nvPr></p:nvSpPr>'
            f'{sp_pr}<p:txBody><a:bodyPr/><a:lstStyle/>{self._paragraphs(paragraphs)}</p:txBody></p:sp>'
        )

    def group(self, shape_id, *shapes):
        return (
            f'<p:grpSp><p:nvGrpSpPr><p:cNvPr id="{shape_id}" name="Group {shape_id - 1}"/><p:cNvGrpSpPr/>'
            f'<p:nvPr/></p:nvGrpSpPr><p:grpSpPr/>{"".join(shapes)}</p:grpSp>'
        )

    def table(self, shape_id, rows, box=(457200, 3000000, 4000000, 740000)):
        """Graphic frame holding a table; ``rows`` is a list of lists of cell texts."""
        columns = max(len(row) for row in rows)
        width = box[2] // columns
        grid = "".join(f'<a:gridCol w="{width}"/>' for _ in range(columns))
        body = ""
        for row in rows:
            cells = "".join(
                f"<a:tc><a:txBody><a:bodyPr/><a:lstStyle/>{self._paragraphs(text)}</a:txBody><a:tcPr/></a:tc>"
                for text in row
            )
            body += f'<a:tr h="{box[3] // len(rows)}">{cells}</a:tr>'
        x, y, cx, cy = box
        return (
            f'<p:graphicFrame><p:nvGraphicFramePr><p:cNvPr id="{shape_id}" name="Table {shape_id - 1}"/>'
            '<p:cNvGraphicFramePr><a:graphicFrameLocks noGrp="1"/></p:cNvGraphicFramePr><p:nvPr/>'
            f'</p:nvGraphicFramePr><p:xfrm><a:off x="{x}" y="{y}"/><a:ext cx="{cx}" cy="{cy}"/></p:xfrm>'
            '<a:graphic><a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/table">'
            f'<a:tbl><a:tblPr firstRow="1" bandRow="1"/><a:tblGrid>{grid}</a:tblGrid>{body}</a:tbl>'
            '</a:graphicData></a:graphic></p:graphicFrame>'
        )

    def alternate(self, choice=None, fallback=None):
        """mc:AlternateContent with an optional Choice and Fallback branch."""
        branches = ""
        if choice is not None:
            branches += f'<mc:Choice xmlns:p14="{P14_NS}" Requires="p14">{choice}</mc:Choice>'
        if fallback is not None:
            branches += f"<mc:Fallback>{fallback}</mc:Fallback>"
        return f'<mc:AlternateContent xmlns:mc="{MC_NS}">{branches}</mc:AlternateContent>'

    def slide(self, *shapes):
        return XML_HEADER + (
            f'<p:sld {PART_NS}><p:cSld><p:spTree>{TREE_HEADER}{"".join(shapes)}</p:spTree></p:cSld>'
            '<p:clrMapOvr><a:masterClrMapping/></p:clrMapOvr></p:sld>'
        )

    def members(self, slides, slide_rels=None, extra_members=None):
        """
        Return the ordered member mapping of a package.

        Args:
            slides: Slide XML strings (see :meth:`slide`) or lists of shape fragments
            slide_rels: Extra ``(r_id, type, target)`` relationships per slide index
            extra_members: Additional members, e.g. media, as path -> bytes
        """
        slides = [s if isinstance(s, str) else self.slide(*s) for s in slides]
        slide_rels = slide_rels or {}
        extra_members = extra_members or {}

        overrides = [
            ("/ppt/presentation.xml", CONTENT_TYPE["presentation"]),
            ("/ppt/slideMasters/slideMaster1.xml", CONTENT_TYPE["master"]),
            ("/ppt/slideLayouts/slideLayout1.xml", CONTENT_TYPE["layout"]),
            ("/ppt/theme/theme1.xml", CONTENT_TYPE["theme"]),
        ]
        overrides += [(f"/ppt/slides/slide{n}.xml", CONTENT_TYPE["slide"]) for n in range(1, len(slides) + 1)]
        content_types = XML_HEADER + (
            f'<Types xmlns="{CT_NS}">'
            '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
            '<Default Extension="xml" ContentType="application/xml"/>'
            '<Default Extension="png" ContentType="image/png"/>'
            + "".join(f'<Override PartName="{name}" ContentType="{ctype}"/>' for name, ctype in overrides)
            + "</Types>"
        )

        slide_ids = "".join(f'<p:sldId id="{255 + n}" r:id="rId{n + 2}"/>' for n in range(1, len(slides) + 1))
        presentation = XML_HEADER + (
            f'<p:presentation {PART_NS} saveSubsetFonts="1">'
            '<p:sldMasterIdLst><p:sldMasterId id="2147483648" r:id="rId1"/></p:sldMasterIdLst>'
            f'<p:sldIdLst>{slide_ids}</p:sldIdLst>'
            '<p:sldSz cx="9144000" cy="6858000"/><p:notesSz cx="6858000" cy="9144000"/>'
            '<p:defaultTextStyle><a:defPPr><a:defRPr lang="en-US"/></a:defPPr>'
            '<a:lvl1pPr marL="0" algn="l"><a:defRPr sz="1800"><a:latin typeface="+mn-lt"/></a:defRPr>'
            '</a:lvl1pPr></p:defaultTextStyle></p:presentation>'
        )
        presentation_rels = [
            ("rId1", "slideMaster", "slideMasters/slideMaster1.xml"),
            ("rId2", "theme", "theme/theme1.xml"),
        ]
        presentation_rels += [(f"rId{n + 2}", "slide", f"slides/slide{n}.xml") for n in range(1, len(slides) + 1)]

        members = {
            "[Content_Types].xml": content_types,
            "_rels/.rels": _relationships([("rId1", "officeDocument", "ppt/presentation.xml")]),
            "ppt/presentation.xml": presentation,
            "ppt/_rels/presentation.xml.rels": _relationships(presentation_rels),
            "ppt/slideMasters/slideMaster1.xml": MASTER,
            "ppt/slideMasters/_rels/slideMaster1.xml.rels": _relationships([
                ("rId1", "slideLayout", "../slideLayouts/slideLayout1.xml"),
                ("rId2", "theme", "../theme/theme1.xml"),
            ]),
            "ppt/slideLayouts/slideLayout1.xml": LAYOUT,
            "ppt/slideLayouts/_rels/slideLayout1.xml.rels": _relationships([
                ("rId1", "slideMaster", "../slideMasters/slideMaster1.xml"),
            ]),
            "ppt/theme/theme1.xml": THEME,
        }
        for number, slide_xml in enumerate(slides, start=1):
            members[f"ppt/slides/slide{number}.xml"] = slide_xml
            rels = [("rId1", "slideLayout", "../slideLayouts/slideLayout1.xml")]
            rels += list(slide_rels.get(number - 1, ()))
            members[f"ppt/slides/_rels/slide{number}.xml.rels"] = _relationships(rels)
        members.update(extra_members)
        return {name: data.encode("utf-8") if isinstance(data, str) else data for name, data in members.items()}

    def build(self, slides, slide_rels=None, extra_members=None):
        """Return the package as zip bytes."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zip_file:
            for name, data in self.members(slides, slide_rels, extra_members).items():
                zip_file.writestr(name, data)
        return buffer.getvalue()

    def write(self, path, slides, slide_rels=None, extra_members=None):
        path = Path(path)
        path.write_bytes(self.build(slides, slide_rels, extra_members))
        return path

    def sample_slides(self):
        """
        Two slides: a title, a two-paragraph body and a text box; then a
        title, a footer, a grouped text box and a 1x2 table.
        """
        first = [
            self.placeholder(2, 'type="title"', "Quarterly Review", name="Title 1"),
            self.placeholder(3, 'idx="1"', [
                self.paragraph("Revenue grew"),
                self.paragraph("Costs fell", ppr='<a:pPr lvl="1"/>'),
            ], name="Content Placeholder 2"),
            self.text_box(4, self.paragraph(self.run("Note", 'b="1"'))),
        ]
        second = [
            self.placeholder(2, 'type="title"', "Next Steps", name="Title 1"),
            self.placeholder(3, 'type="ftr" sz="quarter" idx="11"', "Confidential", name="Footer 2"),
            self.group(4, self.text_box(5, "Grouped text")),
            self.table(6, [["A", "B"]]),
        ]
        return [first, second]


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid file handler issues."""
    # Clear all existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Set up console-only logging for tests
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)  # Only show warnings and errors during tests

    formatter = logging.Formatter(
        '%(name)s - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    # Cleanup after test
    root_logger.handlers.clear()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    import tempfile
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def deck():
    """Builder for synthetic PPTX packages."""
    return DeckBuilder()


@pytest.fixture
def sample_pptx_bytes(deck):
    """Two-slide sample presentation as zip bytes."""
    return deck.build(deck.sample_slides())


@pytest.fixture
def sample_pptx(temp_dir, sample_pptx_bytes):
    """Path to the sample presentation on disk."""
    path = temp_dir / "sample.pptx"
    path.write_bytes(sample_pptx_bytes)
    return path


@pytest.fixture
def sample_presentation(sample_pptx_bytes):
    """Parsed sample presentation."""
    return Presentation.from_bytes(sample_pptx_bytes)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    # Ignore logging errors during tests
    logging.raiseExceptions = False
