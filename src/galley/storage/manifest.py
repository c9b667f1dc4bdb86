"""Record store backed by a JSON manifest file."""

from pathlib import Path
from typing import Optional, Union

from galley.storage.base import RecordStore
from galley.storage.records import (
    Article,
    Attachment,
    Author,
    Issue,
    Manifest,
    Volume,
)


class ManifestRecordStore(RecordStore):
    """Serve records from an in-memory ``Manifest``.

    The manifest lists volumes, issues, authors, articles and attachments;
    list order is taken as creation order.
    """

    def __init__(self, manifest: Manifest) -> None:
        self.manifest = manifest
        self._articles = {a.id: a for a in manifest.articles}
        self._authors = {a.id: a for a in manifest.authors}
        self._issues = {i.id: i for i in manifest.issues}
        self._volumes = {v.id: v for v in manifest.volumes}
        self._attachments = {a.id: a for a in manifest.attachments}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ManifestRecordStore":
        """Load and validate a manifest JSON file."""
        text = Path(path).read_text(encoding="utf-8")
        return cls(Manifest.model_validate_json(text))

    def get_article(self, article_id: str) -> Optional[Article]:
        return self._articles.get(article_id)

    def get_author(self, author_id: str) -> Optional[Author]:
        return self._authors.get(author_id)

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        return self._issues.get(issue_id)

    def get_volume(self, volume_id: str) -> Optional[Volume]:
        return self._volumes.get(volume_id)

    def get_attachment(self, attachment_id: str) -> Optional[Attachment]:
        return self._attachments.get(attachment_id)

    def list_issue_articles(self, issue_id: str) -> list[Article]:
        return [a for a in self.manifest.articles if a.issue_id == issue_id]

    def list_attachments(self, article_id: str) -> list[Attachment]:
        return [a for a in self.manifest.attachments if a.article_id == article_id]

    def list_volume_issues(self, volume_id: str) -> list[Issue]:
        return [i for i in self.manifest.issues if i.volume_id == volume_id]
