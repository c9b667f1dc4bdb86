"""Interfaces to the record store and blob store collaborators."""

from abc import ABC, abstractmethod
from typing import Optional

from galley.storage.records import Article, Attachment, Author, Issue, Volume


class RecordStore(ABC):
    """Read access to persisted editorial records.

    Lookups return None for a missing record rather than raising.
    List methods return records in creation order.
    """

    @abstractmethod
    def get_article(self, article_id: str) -> Optional[Article]:
        ...

    @abstractmethod
    def get_author(self, author_id: str) -> Optional[Author]:
        ...

    @abstractmethod
    def get_issue(self, issue_id: str) -> Optional[Issue]:
        ...

    @abstractmethod
    def get_volume(self, volume_id: str) -> Optional[Volume]:
        ...

    @abstractmethod
    def get_attachment(self, attachment_id: str) -> Optional[Attachment]:
        ...

    @abstractmethod
    def list_issue_articles(self, issue_id: str) -> list[Article]:
        ...

    @abstractmethod
    def list_attachments(self, article_id: str) -> list[Attachment]:
        ...

    @abstractmethod
    def list_volume_issues(self, volume_id: str) -> list[Issue]:
        ...


class BlobStore(ABC):
    """Byte storage for uploaded files."""

    @abstractmethod
    def get(self, path: str) -> Optional[bytes]:
        """Fetch stored bytes.

        Args:
            path: Stored path of the object

        Returns:
            The raw bytes, or None when no object exists at ``path``
        """
        ...

    def exists(self, path: str) -> bool:
        """Check if an object exists."""
        return self.get(path) is not None
