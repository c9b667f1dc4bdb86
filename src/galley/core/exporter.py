"""Export entry points: single article, issue archive, bundle, conversion."""

import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, Optional, Sequence

from docx.opc.exceptions import PackageNotFoundError

from galley.config import Settings, get_settings
from galley.core.archive import (
    ArchiveComposer,
    ComposeReport,
    iter_zip_chunks,
    utcnow,
    write_zip,
)
from galley.core.bundle import BundleExporter, random_suffix
from galley.core.models import (
    ANONYMOUS_AUTHOR,
    UNKNOWN_AUTHOR,
    ArticleExportUnit,
    AttachmentRef,
    IssueExportJob,
    PhotoRef,
)
from galley.core.paths import sanitize_name
from galley.errors import ExportError, NotFoundError
from galley.formats.docx_handler import DOCXHandler
from galley.formats.markdown_handler import MarkdownHandler
from galley.formatting.parser import MarkdownParser
from galley.storage.base import BlobStore, RecordStore
from galley.storage.records import Article, Attachment, AttachmentType

logger = logging.getLogger(__name__)

ZIP_CONTENT_TYPE = "application/zip"


@dataclass(frozen=True)
class ExportResult:
    """A finished download held in memory."""

    filename: str
    content_type: str
    body: bytes


@dataclass
class StreamingExport:
    """A download produced chunk by chunk.

    Iterate to pull bytes; ``close()`` abandons the export, cancelling
    pending fetches. ``report`` fills in as entries are written.
    """

    filename: str
    content_type: str
    chunks: Iterator[bytes]
    report: ComposeReport = field(default_factory=ComposeReport)

    def __iter__(self) -> Iterator[bytes]:
        return self.chunks

    def close(self) -> None:
        close = getattr(self.chunks, "close", None)
        if close is not None:
            close()


class ExportService:
    """Orchestrates exports against the record and blob stores.

    Pipeline for an issue:
    1. Look up issue, volume and articles (fail fast with NotFoundError)
    2. Build an IssueExportJob with effective author names
    3. Compose the archive, streaming entries as they are produced
    """

    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
        suffix_factory: Callable[[], str] = random_suffix,
    ) -> None:
        """Initialize the service.

        Args:
            records: Source of article, issue and attachment records
            blobs: Source of uploaded file bytes
            settings: Settings override (defaults to global settings)
            clock: Returns the export timestamp
            suffix_factory: Produces bundle folder suffixes
        """
        self.records = records
        self.blobs = blobs
        self.settings = settings or get_settings()
        self.clock = clock

        self.parser = MarkdownParser(join_lines=self.settings.join_soft_wrapped_lines)
        self.renderer = DOCXHandler(
            font_name=self.settings.font_name,
            font_size=self.settings.base_font_size,
        )
        self.bundles = BundleExporter(
            records,
            blobs,
            author_name=self.author_name,
            suffix_factory=suffix_factory,
        )

    def author_name(self, article: Article) -> str:
        """Effective byline, honouring the anonymity preference."""
        if article.prefers_anonymity:
            return ANONYMOUS_AUTHOR
        if article.author_id:
            author = self.records.get_author(article.author_id)
            if author is not None and author.display_name:
                return author.display_name
        return UNKNOWN_AUTHOR

    def export_article(self, article_id: str) -> ExportResult:
        """Render one article to a word-processing document.

        Raises:
            NotFoundError: If the article does not exist
        """
        article = self.records.get_article(article_id)
        if article is None:
            raise NotFoundError(f"Article not found: {article_id}")

        document = self.parser.parse(
            article.content or "",
            title=article.title,
            author=self.author_name(article),
            metadata={"article_id": article.id},
        )
        rendered = self.renderer.render(document)
        logger.info("Exported article %s (%d bytes)", article.id, len(rendered))

        return ExportResult(
            filename=f"{sanitize_name(article.title)}.{rendered.extension}",
            content_type=rendered.content_type,
            body=rendered.data,
        )

    def build_issue_job(self, issue_id: str) -> IssueExportJob:
        """Collect everything an issue archive needs.

        Raises:
            NotFoundError: If the issue or its volume is missing, or the
                issue has no articles
        """
        issue = self.records.get_issue(issue_id)
        if issue is None:
            raise NotFoundError(f"Issue not found: {issue_id}")

        volume = self.records.get_volume(issue.volume_id)
        if volume is None:
            raise NotFoundError(f"Volume not found for issue {issue_id}")

        articles = self.records.list_issue_articles(issue_id)
        if not articles:
            raise NotFoundError("No articles found for this issue")

        return IssueExportJob(
            issue_id=issue.id,
            volume_number=volume.volume_number,
            volume_year=volume.year,
            issue_number=issue.issue_number,
            issue_title=issue.title,
            articles=[self._export_unit(article) for article in articles],
        )

    def _export_unit(self, article: Article) -> ArticleExportUnit:
        unit = ArticleExportUnit(
            title=article.title,
            author_display_name=self.author_name(article),
            content=article.content or "",
        )

        for attachment in self.records.list_attachments(article.id):
            if attachment.attachment_type == AttachmentType.WORD_DOCUMENT:
                unit.attachments.append(
                    AttachmentRef(
                        file_name=attachment.display_name,
                        stored_path=attachment.file_path,
                    )
                )
            elif attachment.attachment_type == AttachmentType.PHOTO:
                unit.photos.append(
                    PhotoRef(
                        file_name=attachment.display_name,
                        stored_path=attachment.file_path,
                        caption=attachment.caption,
                        photo_number=attachment.photo_number,
                    )
                )

        return unit

    def issue_filename(self, job: IssueExportJob) -> str:
        return f"Volume_{job.volume_number}_Issue_{job.issue_number}_Export.zip"

    def _composer(self) -> ArchiveComposer:
        return ArchiveComposer(
            self.blobs,
            renderer=self.renderer,
            parser=self.parser,
            settings=self.settings,
            clock=self.clock,
        )

    def export_issue(self, issue_id: str) -> StreamingExport:
        """Stream an issue archive.

        Lookups happen before the first chunk, so a NotFoundError is
        raised here rather than midway through the download.
        """
        job = self.build_issue_job(issue_id)
        report = ComposeReport()
        logger.info(
            "Exporting issue %s: volume %s, issue %s, %d articles",
            job.issue_id,
            job.volume_number,
            job.issue_number,
            len(job.articles),
        )

        return StreamingExport(
            filename=self.issue_filename(job),
            content_type=ZIP_CONTENT_TYPE,
            chunks=self._composer().iter_chunks(job, report),
            report=report,
        )

    def write_issue(self, issue_id: str, sink) -> ComposeReport:
        """Write an issue archive to ``sink``.

        Raises:
            NotFoundError: If the issue cannot be exported
            ComposeError: If the archive could not be written
        """
        return self.write_job(self.build_issue_job(issue_id), sink)

    def write_job(self, job: IssueExportJob, sink) -> ComposeReport:
        """Write the archive for an already built job to ``sink``.

        Raises:
            ComposeError: If the archive could not be written
        """
        report = self._composer().write(job, sink)
        logger.info(
            "Issue %s archive: %d entries, %d skipped, %d bytes",
            job.issue_id,
            len(report.entries),
            len(report.skipped),
            report.bytes_written,
        )
        return report

    def export_bundle(
        self,
        volume_id: str,
        issue_ids: Sequence[str],
        include_photos: bool = False,
    ) -> StreamingExport:
        """Stream a website bundle for selected issues of a volume."""
        volume, issues = self.bundles.resolve(volume_id, issue_ids)
        report = ComposeReport()

        return StreamingExport(
            filename=self.bundles.filename(volume, issues),
            content_type=ZIP_CONTENT_TYPE,
            chunks=iter_zip_chunks(
                self.bundles.iter_entries(volume, issues, include_photos, report),
                report,
                self.settings.compression_level,
                self.clock(),
            ),
            report=report,
        )

    def write_bundle(
        self,
        volume_id: str,
        issue_ids: Sequence[str],
        sink,
        include_photos: bool = False,
    ) -> tuple[str, ComposeReport]:
        """Write a bundle to ``sink``; returns (download filename, report)."""
        volume, issues = self.bundles.resolve(volume_id, issue_ids)
        report = write_zip(
            self.bundles.iter_entries(volume, issues, include_photos),
            sink,
            compression_level=self.settings.compression_level,
            timestamp=self.clock(),
        )
        return self.bundles.filename(volume, issues), report

    def convert_attachment(self, attachment_id: str) -> str:
        """Convert an uploaded .docx attachment to markdown.

        Raises:
            NotFoundError: If the attachment or its bytes are missing
            ExportError: If the file is not a readable .docx document
        """
        attachment = self.records.get_attachment(attachment_id)
        if attachment is None:
            raise NotFoundError(f"Attachment not found: {attachment_id}")

        if not _is_docx(attachment):
            raise ExportError(
                f"Only .docx documents can be converted: {attachment.display_name}",
                reason="unsupported_format",
                status=415,
            )

        data = self.blobs.get(attachment.file_path)
        if data is None:
            raise NotFoundError(f"File not found in storage: {attachment.file_path}")

        try:
            document = self.renderer.read(data)
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
            raise ExportError(
                f"Could not read {attachment.display_name}: {e}",
                reason="invalid_document",
                status=422,
            ) from e

        return MarkdownHandler().to_markdown(document)


def _is_docx(attachment: Attachment) -> bool:
    names = (attachment.display_name, attachment.file_path)
    return any(name.lower().endswith(".docx") for name in names)
