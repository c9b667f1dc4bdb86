"""Transient export models built per request from collaborator data."""

from dataclasses import dataclass, field
from typing import Optional

ANONYMOUS_AUTHOR = "Anonymous"
UNKNOWN_AUTHOR = "Unknown Author"


@dataclass(frozen=True)
class AttachmentRef:
    """Original uploaded document to copy into the archive.

    Attributes:
        file_name: Original filename as uploaded
        stored_path: Key in the blob store
    """

    file_name: str
    stored_path: str


@dataclass(frozen=True)
class PhotoRef:
    """Photo to copy into the archive alongside a caption file.

    Attributes:
        file_name: Original filename as uploaded
        stored_path: Key in the blob store
        caption: Caption text, if the author supplied one
        photo_number: Stored ordering number ("Photo 3"), if any
    """

    file_name: str
    stored_path: str
    caption: Optional[str] = None
    photo_number: Optional[int] = None


@dataclass
class ArticleExportUnit:
    """One article's exportable content and metadata."""

    title: str
    author_display_name: str
    content: str = ""
    attachments: list[AttachmentRef] = field(default_factory=list)
    photos: list[PhotoRef] = field(default_factory=list)


@dataclass
class IssueExportJob:
    """Everything needed to compose one issue archive.

    Attributes:
        issue_id: Record id of the issue
        volume_number: Volume the issue belongs to
        issue_number: Issue number within the volume
        issue_title: Optional issue title shown in the folder name
        volume_year: Optional publication year for the summary
        articles: Articles in export order
    """

    issue_id: str
    volume_number: int
    issue_number: int
    issue_title: Optional[str] = None
    volume_year: Optional[int] = None
    articles: list[ArticleExportUnit] = field(default_factory=list)

    @property
    def volume_label(self) -> str:
        year = f" ({self.volume_year})" if self.volume_year else ""
        return f"{self.volume_number}{year}"

    @property
    def issue_label(self) -> str:
        title = f" - {self.issue_title}" if self.issue_title else ""
        return f"{self.issue_number}{title}"
