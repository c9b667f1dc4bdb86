"""Tests for the DOCX handler."""

import io
import zipfile

import pytest
from docx import Document

from galley.formats.docx_handler import (
    DOCX_CONTENT_TYPE,
    FIXED_ZIP_DATE_TIME,
    PLACEHOLDER_TEXT,
    DOCXHandler,
)
from galley.formatting.ir import (
    BulletItem,
    FormattedDocument,
    Heading,
    NumberedItem,
    Paragraph,
    Spacer,
    TextRun,
    TextStyle,
)
from galley.formatting.parser import MarkdownParser


def open_docx(data: bytes):
    return Document(io.BytesIO(data))


class TestDOCXRender:
    """Tests for rendering a compiled article."""

    @pytest.fixture
    def handler(self):
        return DOCXHandler(font_name="Calibri", font_size=12)

    @pytest.fixture
    def article(self):
        return MarkdownParser().parse(
            "# Highlights\n\nWe had **fun** and *more*.\n- cake\n2. lawn",
            title="Garden Party",
            author="Jane Doe",
        )

    def test_result_metadata(self, handler, article):
        rendered = handler.render(article)

        assert rendered.content_type == DOCX_CONTENT_TYPE
        assert rendered.extension == "docx"
        assert len(rendered) > 0

    def test_title_byline_separator(self, handler, article):
        doc = open_docx(handler.render(article).data)
        paragraphs = doc.paragraphs

        assert paragraphs[0].text == "Garden Party"
        assert paragraphs[0].style.name == "Title"
        assert paragraphs[1].text == "By Jane Doe"
        assert paragraphs[1].runs[0].italic
        assert paragraphs[2].text == ""

    def test_one_paragraph_per_block(self, handler, article):
        doc = open_docx(handler.render(article).data)
        body = doc.paragraphs[3:]

        assert len(body) == len(article.blocks)
        assert body[0].style.name == "Heading 1"
        assert body[1].text == ""
        assert body[2].text == "We had fun and more."
        assert body[3].text == "• cake"
        assert body[4].text == "2. lawn"

    def test_run_styles(self, handler, article):
        doc = open_docx(handler.render(article).data)
        runs = {run.text: run for run in doc.paragraphs[5].runs}

        assert runs["fun"].bold
        assert not runs["fun"].italic
        assert runs["more"].italic
        assert not runs["We had "].bold

    def test_heading_level_clamped(self, handler):
        document = FormattedDocument(
            title="T",
            author="A",
            blocks=[Heading(level=5, runs=(TextRun("Deep"),))],
        )
        doc = open_docx(handler.render(document).data)

        assert doc.paragraphs[3].style.name == "Heading 3"

    @pytest.mark.parametrize("content", ["", "\n\n   \n"])
    def test_placeholder_when_empty(self, handler, content):
        document = MarkdownParser().parse(content, title="Empty", author="Anonymous")
        doc = open_docx(handler.render(document).data)
        texts = [p.text for p in doc.paragraphs]

        assert texts[:2] == ["Empty", "By Anonymous"]
        assert PLACEHOLDER_TEXT in texts

    def test_no_placeholder_with_content(self, handler, article):
        doc = open_docx(handler.render(article).data)

        assert PLACEHOLDER_TEXT not in [p.text for p in doc.paragraphs]

    def test_hyperlink_relationship(self, handler):
        document = MarkdownParser().parse(
            "Visit [our site](https://example.org/home).", title="T", author="A"
        )
        data = handler.render(document).data

        with zipfile.ZipFile(io.BytesIO(data)) as package:
            body = package.read("word/document.xml").decode("utf-8")
            rels = package.read("word/_rels/document.xml.rels").decode("utf-8")

        assert "<w:hyperlink" in body
        assert "https://example.org/home" in rels
        assert 'TargetMode="External"' in rels

    def test_output_is_deterministic(self, handler, article):
        """Identical input gives identical bytes."""
        assert handler.render(article).data == handler.render(article).data

    def test_package_timestamps_fixed(self, handler, article):
        with zipfile.ZipFile(io.BytesIO(handler.render(article).data)) as package:
            assert {info.date_time for info in package.infolist()} == {
                FIXED_ZIP_DATE_TIME
            }

    def test_core_properties(self, handler, article):
        props = open_docx(handler.render(article).data).core_properties

        assert props.title == "Garden Party"
        assert props.author == "Jane Doe"
        assert props.created.year == 2000

    def test_unknown_block_rejected(self, handler):
        document = FormattedDocument(
            title="T",
            author="A",
            blocks=[Paragraph(runs=(TextRun("ok"),)), "oops"],
        )

        with pytest.raises(TypeError):
            handler.render(document)

    def test_write_file(self, handler, article, tmp_path):
        path = tmp_path / "out.docx"
        handler.write(article, path)

        assert open_docx(path.read_bytes()).paragraphs[0].text == "Garden Party"


class TestDOCXRead:
    """Tests for reading documents back into blocks."""

    @pytest.fixture
    def handler(self):
        return DOCXHandler(font_name="Calibri", font_size=12)

    def test_reads_rendered_document(self, handler):
        document = FormattedDocument(
            title="Round",
            author="Jane Doe",
            blocks=[
                Heading(level=2, runs=(TextRun("Section"),)),
                Paragraph(runs=(TextRun("Plain "), TextRun("bold", TextStyle.BOLD))),
                BulletItem(runs=(TextRun("item"),)),
                Spacer(),
                Paragraph(runs=(TextRun("site", link="https://example.org"),)),
            ],
        )
        result = handler.read(handler.render(document).data)

        assert result.title == "Round"
        # Byline and separator come back as ordinary blocks
        assert result.blocks[0] == Paragraph(runs=(TextRun("By Jane Doe", TextStyle.ITALIC),))
        assert result.blocks[1] == Spacer()
        assert result.blocks[2:] == document.blocks

    def test_reads_plain_word_document(self, handler):
        doc = Document()
        doc.add_heading("Report", level=1)
        doc.add_paragraph("First point", style="List Bullet")
        doc.add_paragraph("Step one", style="List Number")
        doc.add_paragraph("Step two", style="List Number")
        para = doc.add_paragraph("Mixed ")
        para.add_run("emphasis").italic = True
        buffer = io.BytesIO()
        doc.save(buffer)

        result = handler.read(buffer.getvalue())

        assert result.blocks == [
            Heading(level=1, runs=(TextRun("Report"),)),
            BulletItem(runs=(TextRun("First point"),)),
            NumberedItem(numeral="1", runs=(TextRun("Step one"),)),
            NumberedItem(numeral="2", runs=(TextRun("Step two"),)),
            Paragraph(runs=(TextRun("Mixed "), TextRun("emphasis", TextStyle.ITALIC))),
        ]

    def test_not_a_document(self, handler):
        with pytest.raises(Exception):
            handler.read(b"plain bytes")
