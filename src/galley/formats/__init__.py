"""Document format handlers for Galley."""

from galley.formats.base import FormatHandler
from galley.formats.docx_handler import DOCXHandler, DOCX_CONTENT_TYPE
from galley.formats.markdown_handler import MarkdownHandler

__all__ = [
    "FormatHandler",
    "DOCXHandler",
    "DOCX_CONTENT_TYPE",
    "MarkdownHandler",
]

# Map file extensions to handlers
HANDLER_MAP: dict[str, type[FormatHandler]] = {
    ".docx": DOCXHandler,
    ".md": MarkdownHandler,
    ".markdown": MarkdownHandler,
    ".txt": MarkdownHandler,
}

SUPPORTED_EXTENSIONS = tuple(HANDLER_MAP.keys())


def get_handler(extension: str) -> type[FormatHandler]:
    """Get the appropriate handler class for a file extension."""
    ext = extension.lower()
    if ext not in HANDLER_MAP:
        raise ValueError(
            f"Unsupported file format: {ext}. "
            f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    return HANDLER_MAP[ext]
