"""Intermediate Representation for compiled article bodies.

This module defines the data structures that bridge article markdown to
format-specific rendering. A compiled body is an ordered list of blocks,
each block holding styled text runs. Renderers dispatch over the closed
``Block`` union and must handle every member of it.
"""

from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Optional, Union


class TextStyle(Flag):
    """Text styling flags (combinable with |)."""

    NONE = 0
    BOLD = auto()
    ITALIC = auto()


@dataclass(frozen=True)
class TextRun:
    """A contiguous run of text with consistent styling.

    Attributes:
        text: The text content
        style: Combined style flags (BOLD, ITALIC, or both)
        link: Target URL when the run is a hyperlink label
    """

    text: str
    style: TextStyle = TextStyle.NONE
    link: Optional[str] = None

    @property
    def bold(self) -> bool:
        """Check if this run is bold."""
        return TextStyle.BOLD in self.style

    @property
    def italic(self) -> bool:
        """Check if this run is italic."""
        return TextStyle.ITALIC in self.style

    def __str__(self) -> str:
        return self.text


Runs = tuple[TextRun, ...]


@dataclass(frozen=True)
class Heading:
    """Section heading; level 1 is the largest."""

    level: int
    runs: Runs


@dataclass(frozen=True)
class Paragraph:
    runs: Runs


@dataclass(frozen=True)
class BulletItem:
    runs: Runs


@dataclass(frozen=True)
class NumberedItem:
    """Numbered list item.

    Attributes:
        numeral: Digits exactly as written in the source ("1", "07")
        runs: Item text
    """

    numeral: str
    runs: Runs

    @property
    def index(self) -> int:
        return int(self.numeral)

    @property
    def label(self) -> str:
        """Display prefix, e.g. "3."."""
        return f"{self.numeral}."


@dataclass(frozen=True)
class Spacer:
    """Blank source line; vertical space only."""


Block = Union[Heading, Paragraph, BulletItem, NumberedItem, Spacer]

RUN_BEARING_BLOCKS = (Heading, Paragraph, BulletItem, NumberedItem)


def block_text(block: Block) -> str:
    """Get the plain text content of a block without styling."""
    if isinstance(block, Spacer):
        return ""
    return "".join(run.text for run in block.runs)


@dataclass
class FormattedDocument:
    """Compiled article ready for rendering.

    Attributes:
        title: Article title shown in the title block
        author: Display name for the byline
        blocks: Compiled body in source order
        metadata: Free-form values for renderers (e.g. source id)
    """

    title: str
    author: str
    blocks: list[Block] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def has_content(self) -> bool:
        """True when at least one block carries text."""
        return any(isinstance(b, RUN_BEARING_BLOCKS) for b in self.blocks)

    @property
    def plain_text(self) -> str:
        """Get all text content without styling, one line per block."""
        return "\n".join(block_text(block) for block in self.blocks)

    def add_block(self, block: Block) -> None:
        """Add a block to the document."""
        self.blocks.append(block)


@dataclass(frozen=True)
class RenderedDocument:
    """Binary output of a renderer.

    Attributes:
        data: Encoded document bytes
        content_type: MIME type for the transport
        extension: File extension without the dot
    """

    data: bytes
    content_type: str
    extension: str

    def __len__(self) -> int:
        return len(self.data)
