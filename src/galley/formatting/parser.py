"""Markdown parser for converting article content to IR."""

import re
from typing import Optional

from galley.formatting.ir import (
    Block,
    BulletItem,
    FormattedDocument,
    Heading,
    NumberedItem,
    Paragraph,
    Spacer,
    TextRun,
    TextStyle,
)


class InlineTokenizer:
    """Split one line of markdown into styled text runs."""

    # Order matters: alternatives are tried left to right at each position,
    # so bold-italic beats bold beats italic beats links. Underscore forms
    # must not sit inside a word (snake_case stays literal) and italic
    # content may not start or end with whitespace ("3 * 4 * 5").
    INLINE_PATTERN = re.compile(
        r"\*\*\*(?P<bi_star>.+?)\*\*\*"
        r"|(?<!\w)___(?P<bi_under>.+?)___(?!\w)"
        r"|\*\*(?P<b_star>.+?)\*\*"
        r"|(?<!\w)__(?P<b_under>.+?)__(?!\w)"
        r"|\*(?P<i_star>[^\s*](?:[^*]*[^\s*])?)\*"
        r"|(?<!\w)_(?P<i_under>[^\s_](?:[^_]*[^\s_])?)_(?!\w)"
        r"|\[(?P<label>[^\[\]]+)\]\((?P<url>[^()\s]+)\)"
    )

    _GROUP_STYLES = {
        "bi_star": TextStyle.BOLD | TextStyle.ITALIC,
        "bi_under": TextStyle.BOLD | TextStyle.ITALIC,
        "b_star": TextStyle.BOLD,
        "b_under": TextStyle.BOLD,
        "i_star": TextStyle.ITALIC,
        "i_under": TextStyle.ITALIC,
    }

    def tokenize(self, text: str) -> list[TextRun]:
        """Tokenize a line into runs covering the whole input.

        Handles:
        - ***bold italic*** and ___bold italic___
        - **bold** and __bold__
        - *italic* and _italic_
        - [label](url)
        - plain text

        Unterminated delimiters are kept as literal text.
        """
        runs: list[TextRun] = []
        pos = 0

        for match in self.INLINE_PATTERN.finditer(text):
            if match.start() > pos:
                runs.append(TextRun(text=text[pos : match.start()]))
            runs.append(self._run_for(match))
            pos = match.end()

        if pos < len(text):
            runs.append(TextRun(text=text[pos:]))

        return runs

    def _run_for(self, match: re.Match) -> TextRun:
        if match.group("label") is not None:
            return TextRun(text=match.group("label"), link=match.group("url"))

        for group, style in self._GROUP_STYLES.items():
            content = match.group(group)
            if content is not None:
                return TextRun(text=content, style=style)

        # Unreachable while every alternative is listed above
        return TextRun(text=match.group(0))


class MarkdownParser:
    """Compile article markdown into an ordered list of blocks.

    Every source line is its own block: consecutive non-blank lines are
    not merged into one paragraph unless ``join_lines`` is set.
    """

    NUMBERED_PATTERN = re.compile(r"^(\d+)\.\s+(.*)$")

    HEADING_PREFIXES = (("### ", 3), ("## ", 2), ("# ", 1))
    BULLET_PREFIXES = ("* ", "- ")

    def __init__(
        self,
        tokenizer: Optional[InlineTokenizer] = None,
        join_lines: bool = False,
    ) -> None:
        """Initialize the parser.

        Args:
            tokenizer: Inline tokenizer to use for each line
            join_lines: Merge adjacent paragraph lines into one paragraph
        """
        self.tokenizer = tokenizer or InlineTokenizer()
        self.join_lines = join_lines

    def parse(
        self,
        markdown_text: str,
        title: str = "",
        author: str = "",
        metadata: Optional[dict] = None,
    ) -> FormattedDocument:
        """Convert markdown text to FormattedDocument.

        Args:
            markdown_text: The article body
            title: Article title for the rendered title block
            author: Byline display name
            metadata: Optional metadata passed through to renderers

        Returns:
            FormattedDocument with compiled blocks
        """
        return FormattedDocument(
            title=title,
            author=author,
            blocks=self.compile(markdown_text),
            metadata=metadata or {},
        )

    def compile(self, markdown_text: str) -> list[Block]:
        """Compile markdown text to blocks, one per source line."""
        blocks: list[Block] = []

        for line in (markdown_text or "").splitlines():
            block = self._parse_line(line.strip())

            if (
                self.join_lines
                and isinstance(block, Paragraph)
                and blocks
                and isinstance(blocks[-1], Paragraph)
            ):
                previous = blocks.pop()
                block = Paragraph(
                    runs=previous.runs + (TextRun(text=" "),) + block.runs
                )

            blocks.append(block)

        return blocks

    def _parse_line(self, line: str) -> Block:
        """Classify a stripped line and tokenize its text."""
        if not line:
            return Spacer()

        for prefix, level in self.HEADING_PREFIXES:
            if line.startswith(prefix):
                return Heading(level=level, runs=self._runs(line[len(prefix):]))

        if line.startswith(self.BULLET_PREFIXES):
            return BulletItem(runs=self._runs(line[2:]))

        numbered = self.NUMBERED_PATTERN.match(line)
        if numbered:
            return NumberedItem(
                numeral=numbered.group(1),
                runs=self._runs(numbered.group(2)),
            )

        return Paragraph(runs=self._runs(line))

    def _runs(self, text: str) -> tuple[TextRun, ...]:
        # A stripped line always leaves text after its prefix
        return tuple(self.tokenizer.tokenize(text.lstrip()))
