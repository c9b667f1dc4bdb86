"""Microsoft Word (.docx) file handler."""

import io
import re
import zipfile
from datetime import datetime
from typing import Optional

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph as DocxParagraph

from galley.config import get_settings
from galley.formats.base import FormatHandler
from galley.formatting.ir import (
    Block,
    BulletItem,
    FormattedDocument,
    Heading,
    NumberedItem,
    Paragraph,
    RenderedDocument,
    Spacer,
    TextRun,
    TextStyle,
)


DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

BULLET_GLYPH = "•"
PLACEHOLDER_TEXT = "(No content available)"
PLACEHOLDER_COLOR = RGBColor(0x88, 0x88, 0x88)
LINK_COLOR = "0563C1"

# Fixed metadata so identical input yields identical bytes
FIXED_TIMESTAMP = datetime(2000, 1, 1)
FIXED_ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)

LIST_INDENT = Inches(0.25)

# (space_before, space_after) in points per heading level
HEADING_SPACING = {
    1: (20, 10),
    2: (15, 7.5),
    3: (10, 5),
}

_HEADING_STYLE = re.compile(r"^Heading (\d)$")


class DOCXHandler(FormatHandler):
    """Handler for Microsoft Word (.docx) files.

    Uses python-docx for reading and writing with full support for
    bold and italic text formatting at the run level.
    """

    content_type = DOCX_CONTENT_TYPE

    def __init__(
        self,
        font_name: Optional[str] = None,
        font_size: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.font_name = font_name or settings.font_name
        self.font_size = Pt(font_size or settings.base_font_size)

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".docx",)

    def render(self, document: FormattedDocument) -> RenderedDocument:
        """Render a compiled article to DOCX bytes.

        Layout: title, italic byline, one spacer, then one paragraph per
        block. An article without any text gets a placeholder paragraph.
        """
        doc = Document()

        # Set default font
        style = doc.styles["Normal"]
        font = style.font
        font.name = self.font_name
        font.size = self.font_size

        self._set_core_properties(doc, document)

        title = doc.add_heading(document.title, level=0)
        title.paragraph_format.space_after = Pt(20)

        byline = doc.add_paragraph()
        byline_run = byline.add_run(f"By {document.author}")
        byline_run.italic = True
        byline_run.font.size = self.font_size
        byline.paragraph_format.space_after = Pt(20)

        separator = doc.add_paragraph()
        separator.paragraph_format.space_after = Pt(10)

        if document.has_content:
            for block in document.blocks:
                self._add_block(doc, block)
        else:
            para = doc.add_paragraph()
            run = para.add_run(PLACEHOLDER_TEXT)
            run.italic = True
            run.font.size = self.font_size
            run.font.color.rgb = PLACEHOLDER_COLOR

        buffer = io.BytesIO()
        doc.save(buffer)

        return RenderedDocument(
            data=_normalize_package(buffer.getvalue()),
            content_type=self.content_type,
            extension=self.extension,
        )

    def _set_core_properties(self, doc, document: FormattedDocument) -> None:
        """Pin core properties; the template otherwise carries its own."""
        props = doc.core_properties
        props.title = document.title
        props.author = document.author
        props.last_modified_by = document.author
        props.created = FIXED_TIMESTAMP
        props.modified = FIXED_TIMESTAMP
        props.revision = 1

    def _add_block(self, doc, block: Block) -> None:
        """Add one block as one document paragraph."""
        if isinstance(block, Heading):
            level = min(max(block.level, 1), 3)
            para = doc.add_heading(level=level)
            before, after = HEADING_SPACING[level]
            para.paragraph_format.space_before = Pt(before)
            para.paragraph_format.space_after = Pt(after)
            self._add_runs(para, block.runs, sized=False)
        elif isinstance(block, BulletItem):
            para = self._list_paragraph(doc)
            para.add_run(f"{BULLET_GLYPH} ").font.size = self.font_size
            self._add_runs(para, block.runs)
        elif isinstance(block, NumberedItem):
            para = self._list_paragraph(doc)
            para.add_run(f"{block.label} ").font.size = self.font_size
            self._add_runs(para, block.runs)
        elif isinstance(block, Paragraph):
            para = doc.add_paragraph()
            para.paragraph_format.space_after = Pt(6)
            self._add_runs(para, block.runs)
        elif isinstance(block, Spacer):
            para = doc.add_paragraph()
            para.paragraph_format.space_after = Pt(10)
        else:
            raise TypeError(f"Unhandled block type: {type(block).__name__}")

    def _list_paragraph(self, doc):
        para = doc.add_paragraph()
        para.paragraph_format.left_indent = LIST_INDENT
        para.paragraph_format.space_after = Pt(4)
        return para

    def _add_runs(self, para, runs, sized: bool = True) -> None:
        for run_data in runs:
            if run_data.link:
                self._add_hyperlink(para, run_data, sized)
                continue
            run = para.add_run(run_data.text)
            run.bold = run_data.bold
            run.italic = run_data.italic
            if sized:
                run.font.size = self.font_size

    def _add_hyperlink(self, para, run_data: TextRun, sized: bool) -> None:
        """Add an external hyperlink wrapping a single styled run."""
        r_id = para.part.relate_to(run_data.link, RT.HYPERLINK, is_external=True)

        hyperlink = OxmlElement("w:hyperlink")
        hyperlink.set(qn("r:id"), r_id)

        run = OxmlElement("w:r")
        rPr = OxmlElement("w:rPr")
        if run_data.bold:
            rPr.append(OxmlElement("w:b"))
        if run_data.italic:
            rPr.append(OxmlElement("w:i"))
        color = OxmlElement("w:color")
        color.set(qn("w:val"), LINK_COLOR)
        rPr.append(color)
        if sized:
            size = OxmlElement("w:sz")
            size.set(qn("w:val"), str(int(self.font_size.pt * 2)))
            rPr.append(size)
        underline = OxmlElement("w:u")
        underline.set(qn("w:val"), "single")
        rPr.append(underline)
        run.append(rPr)

        text = OxmlElement("w:t")
        text.set(qn("xml:space"), "preserve")
        text.text = run_data.text
        run.append(text)

        hyperlink.append(run)
        para._p.append(hyperlink)

    def read(self, data: bytes) -> FormattedDocument:
        """Parse DOCX bytes into blocks.

        Recognizes the Title style, Heading 1-3 (deeper headings clamp to
        3), list styles, bullet-glyph paragraphs and run-level bold, italic
        and hyperlinks. Empty paragraphs become spacers.
        """
        doc = Document(io.BytesIO(data))
        document = FormattedDocument(
            title=doc.core_properties.title or "",
            author=doc.core_properties.author or "",
        )
        numbering = 0

        for para in doc.paragraphs:
            style_name = para.style.name if para.style is not None else ""
            runs = self._read_runs(para)

            if style_name == "Title":
                document.title = para.text.strip()
                continue

            if not "".join(r.text for r in runs).strip():
                document.add_block(Spacer())
                numbering = 0
                continue

            heading = _HEADING_STYLE.match(style_name)
            if heading:
                level = min(max(int(heading.group(1)), 1), 3)
                document.add_block(Heading(level=level, runs=runs))
            elif style_name.startswith("List Number"):
                numbering += 1
                document.add_block(NumberedItem(numeral=str(numbering), runs=runs))
                continue
            elif style_name.startswith("List Bullet"):
                document.add_block(BulletItem(runs=runs))
            elif runs[0].text.startswith(f"{BULLET_GLYPH} ") and _bullet_body(runs):
                document.add_block(BulletItem(runs=_bullet_body(runs)))
            else:
                document.add_block(Paragraph(runs=runs))
            numbering = 0

        return document

    def _read_runs(self, para: DocxParagraph) -> tuple[TextRun, ...]:
        """Collect runs, merging neighbours that share style and link."""
        runs: list[TextRun] = []

        for item in para.iter_inner_content():
            if isinstance(item, Hyperlink):
                pieces = [
                    (r.text, _style_of(r), item.address or None) for r in item.runs
                ]
            else:
                pieces = [(item.text, _style_of(item), None)]

            for text, style, link in pieces:
                if not text:
                    continue
                if runs and runs[-1].style == style and runs[-1].link == link:
                    previous = runs.pop()
                    text = previous.text + text
                runs.append(TextRun(text=text, style=style, link=link))

        return tuple(runs)


def _style_of(run) -> TextStyle:
    style = TextStyle.NONE
    if run.bold:
        style |= TextStyle.BOLD
    if run.italic:
        style |= TextStyle.ITALIC
    return style


def _bullet_body(runs: tuple[TextRun, ...]) -> tuple[TextRun, ...]:
    """Runs of a glyph-bulleted paragraph without the leading glyph."""
    first = runs[0]
    rest = first.text[2:]
    trimmed = (TextRun(rest, first.style, first.link),) if rest.strip() else ()
    return trimmed + runs[1:]


def _normalize_package(data: bytes) -> bytes:
    """Rewrite a saved package with fixed member timestamps."""
    output = io.BytesIO()

    with zipfile.ZipFile(io.BytesIO(data)) as source, zipfile.ZipFile(
        output, "w", zipfile.ZIP_DEFLATED
    ) as target:
        for info in source.infolist():
            member = zipfile.ZipInfo(info.filename, date_time=FIXED_ZIP_DATE_TIME)
            member.compress_type = zipfile.ZIP_DEFLATED
            member.create_system = 0
            member.external_attr = 0
            target.writestr(member, source.read(info.filename))

    return output.getvalue()
