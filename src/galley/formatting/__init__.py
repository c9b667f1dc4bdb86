"""Formatting utilities for compiling article markdown."""

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
    block_text,
)
from galley.formatting.parser import InlineTokenizer, MarkdownParser

__all__ = [
    "Block",
    "BulletItem",
    "FormattedDocument",
    "Heading",
    "NumberedItem",
    "Paragraph",
    "RenderedDocument",
    "Spacer",
    "TextRun",
    "TextStyle",
    "block_text",
    "InlineTokenizer",
    "MarkdownParser",
]
