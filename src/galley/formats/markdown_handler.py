"""Markdown (.md) file handler."""

import re

from galley.formats.base import FormatHandler
from galley.formatting.ir import (
    BulletItem,
    FormattedDocument,
    Heading,
    NumberedItem,
    Paragraph,
    RenderedDocument,
    Spacer,
    TextRun,
)
from galley.formatting.parser import MarkdownParser


_EDGE_SPACE = re.compile(r"^(\s*)(.*?)(\s*)$", re.DOTALL)


class MarkdownHandler(FormatHandler):
    """Handler for lightweight markdown text.

    Writes the same dialect the compiler reads:
    - **bold**, *italic*, ***bold italic***
    - [label](url) links
    - #, ##, ### headings, "- " bullets and "1. " numbered items
    """

    content_type = "text/markdown; charset=utf-8"

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".md", ".markdown", ".txt")

    def render(self, document: FormattedDocument) -> RenderedDocument:
        """Render a document as markdown text encoded in UTF-8."""
        return RenderedDocument(
            data=self.to_markdown(document).encode("utf-8"),
            content_type=self.content_type,
            extension=self.extension,
        )

    def read(self, data: bytes) -> FormattedDocument:
        """Compile UTF-8 markdown bytes."""
        return MarkdownParser().parse(data.decode("utf-8"))

    def to_markdown(self, document: FormattedDocument, include_title: bool = True) -> str:
        """Convert a FormattedDocument back to markdown."""
        lines: list[str] = []

        if include_title and document.title:
            lines.extend([f"# {document.title}", ""])

        for block in document.blocks:
            if isinstance(block, Heading):
                lines.append(f"{'#' * block.level} {self._format_runs(block.runs)}")
            elif isinstance(block, BulletItem):
                lines.append(f"- {self._format_runs(block.runs)}")
            elif isinstance(block, NumberedItem):
                lines.append(f"{block.label} {self._format_runs(block.runs)}")
            elif isinstance(block, Paragraph):
                lines.append(self._format_runs(block.runs))
            elif isinstance(block, Spacer):
                lines.append("")
            else:
                raise TypeError(f"Unhandled block type: {type(block).__name__}")

        return "\n".join(lines).strip("\n") + "\n" if lines else ""

    def _format_runs(self, runs: tuple[TextRun, ...]) -> str:
        return "".join(self._format_run(run) for run in runs).strip()

    def _format_run(self, run: TextRun) -> str:
        # Delimiters hug the text; surrounding spaces stay outside them
        lead, text, trail = _EDGE_SPACE.match(run.text).groups()
        if not text:
            return run.text

        if run.bold and run.italic:
            text = f"***{text}***"
        elif run.bold:
            text = f"**{text}**"
        elif run.italic:
            text = f"*{text}*"

        if run.link:
            text = f"[{text}]({run.link})"

        return f"{lead}{text}{trail}"
