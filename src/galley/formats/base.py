"""Abstract base class for document format handlers."""

from abc import ABC, abstractmethod
from pathlib import Path

from galley.formatting.ir import FormattedDocument, RenderedDocument


class FormatHandler(ABC):
    """Abstract base class for document format handlers.

    Each handler must implement rendering a compiled article to bytes
    and reading an existing document of its format back into the IR.
    """

    content_type: str = "application/octet-stream"

    @property
    @abstractmethod
    def supported_extensions(self) -> tuple[str, ...]:
        """Return tuple of supported file extensions (e.g., ('.docx',))."""
        ...

    @property
    def extension(self) -> str:
        """Primary extension without the leading dot."""
        return self.supported_extensions[0].lstrip(".")

    @abstractmethod
    def render(self, document: FormattedDocument) -> RenderedDocument:
        """Render a compiled article.

        Args:
            document: The FormattedDocument with title, byline and blocks

        Returns:
            RenderedDocument holding the encoded bytes
        """
        ...

    @abstractmethod
    def read(self, data: bytes) -> FormattedDocument:
        """Parse document bytes into the IR.

        Args:
            data: Raw bytes of a document in this handler's format

        Returns:
            FormattedDocument with the recovered blocks
        """
        ...

    def write(self, document: FormattedDocument, path: Path) -> None:
        """Render a document and write it to a file."""
        path.write_bytes(self.render(document).data)

    def read_file(self, path: Path) -> FormattedDocument:
        """Read a document from a file."""
        return self.read(path.read_bytes())
