"""Publication bundle: one JSON file per issue plus optional photos."""

import json
import logging
import secrets
import string
from typing import Callable, Iterator, Optional, Sequence

from galley.core.archive import ArchiveEntry, ComposeReport
from galley.core.paths import PathRegistry, join_path, sanitize_filename, sanitize_name
from galley.errors import ExportError, NotFoundError
from galley.storage.base import BlobStore, RecordStore
from galley.storage.records import Article, AttachmentType, Issue, Volume

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Guest Contributor"
DEFAULT_CAPTION = "No Caption"
BUNDLE_FOLDER_LENGTH = 50

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def random_suffix(length: int = 6) -> str:
    """Short random tag keeping bundle folders apart."""
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


class BundleExporter:
    """Build website bundles for a selection of issues in one volume."""

    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        author_name: Callable[[Article], str],
        suffix_factory: Callable[[], str] = random_suffix,
    ) -> None:
        """Initialize the exporter.

        Args:
            records: Record store with volumes, issues and articles
            blobs: Source of photo bytes
            author_name: Resolves an article's effective author name
            suffix_factory: Produces the base folder suffix
        """
        self.records = records
        self.blobs = blobs
        self.author_name = author_name
        self.suffix_factory = suffix_factory

    def resolve(
        self,
        volume_id: str,
        issue_ids: Sequence[str],
    ) -> tuple[Volume, list[Issue]]:
        """Look up the volume and the requested issues, ordered by number.

        Raises:
            ExportError: If no issue ids were given
            NotFoundError: If the volume or all issues are missing
        """
        if not issue_ids:
            raise ExportError(
                "At least one issue must be selected",
                reason="invalid_request",
                status=400,
            )

        volume = self.records.get_volume(volume_id)
        if volume is None:
            raise NotFoundError(f"Volume not found: {volume_id}")

        issues = [
            issue
            for issue in (self.records.get_issue(i) for i in dict.fromkeys(issue_ids))
            if issue is not None
        ]
        if not issues:
            raise NotFoundError("No issues found")

        return volume, sorted(issues, key=lambda i: i.issue_number)

    def filename(self, volume: Volume, issues: list[Issue]) -> str:
        numbers = "_".join(str(i.issue_number) for i in issues)
        return f"WP_Export_V{volume.volume_number}_I{numbers}.zip"

    def iter_entries(
        self,
        volume: Volume,
        issues: list[Issue],
        include_photos: bool = False,
        report: Optional[ComposeReport] = None,
    ) -> Iterator[ArchiveEntry]:
        """Produce bundle entries: per issue, its photos then its JSON."""
        report = report if report is not None else ComposeReport()
        base_folder = f"Json_V{volume.volume_number}_{self.suffix_factory()}"
        registry = PathRegistry()

        for issue in issues:
            articles = self.records.list_issue_articles(issue.id)
            items = []

            for article in articles:
                photos = [
                    a
                    for a in self.records.list_attachments(article.id)
                    if a.attachment_type == AttachmentType.PHOTO
                ]
                author = (
                    self.records.get_author(article.author_id)
                    if article.author_id
                    else None
                )
                items.append({
                    "id": article.id,
                    "title": article.title,
                    "author": self.author_name(article),
                    "role": (author.role if author else None) or DEFAULT_ROLE,
                    "volume": str(volume.volume_number),
                    "issue": str(issue.issue_number),
                    "photo": [
                        {
                            "PhotoName": photo.display_name,
                            "Caption": photo.caption or DEFAULT_CAPTION,
                        }
                        for photo in photos
                    ],
                    "content": article.content or "",
                })

                if not include_photos:
                    continue

                article_folder = sanitize_name(
                    article.title, max_length=BUNDLE_FOLDER_LENGTH
                )
                for photo in photos:
                    data = self.blobs.get(photo.file_path)
                    if data is None:
                        logger.warning("Skipping missing photo: %s", photo.file_path)
                        report.skipped.append(photo.file_path)
                        continue
                    path = registry.claim(
                        join_path(
                            base_folder,
                            "Photos",
                            f"V{volume.volume_number}_I{issue.issue_number}",
                            article_folder,
                            sanitize_filename(photo.display_name),
                        )
                    )
                    yield ArchiveEntry(path=path, content=data)

            json_name = (
                f"Json_Volume_{volume.volume_number}_Issue_{issue.issue_number}.json"
            )
            yield ArchiveEntry(
                path=join_path(base_folder, json_name),
                content=json.dumps(items, indent=2, ensure_ascii=False).encode("utf-8"),
            )
