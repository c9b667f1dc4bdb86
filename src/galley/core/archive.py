"""Compose issue archives as streamed zip files.

Layout of one issue archive::

    Volume {N}/Issue {M} - {title}/
        {article}/
            {original uploads}
            {article} - Final.docx
            Photos/Photo {n}/{photo file}
            Photos/Photo {n}/Caption.txt
        _Issue_Summary.txt

Entries are written one at a time through ``zipfile`` in streaming mode,
so the archive never has to be held in memory as a whole. Blob fetches
for one article run on a small thread pool; writes stay in archive order.
"""

import logging
import zipfile
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional

from galley.config import Settings, get_settings
from galley.core.models import ArticleExportUnit, IssueExportJob
from galley.core.paths import PathRegistry, join_path, sanitize_filename, sanitize_name
from galley.errors import ComposeError
from galley.formats.base import FormatHandler
from galley.formats.docx_handler import DOCXHandler
from galley.formatting.parser import MarkdownParser
from galley.storage.base import BlobStore

logger = logging.getLogger(__name__)

CAPTION_PLACEHOLDER = "(No caption provided)"
CAPTION_FILE = "Caption.txt"
PHOTOS_FOLDER = "Photos"
SUMMARY_FILE = "_Issue_Summary.txt"
SKIPPED_FILE = "_Skipped_Files.txt"


@dataclass(frozen=True)
class ArchiveEntry:
    """One file in the archive.

    Attributes:
        path: Archive-relative path with forward slashes
        content: File bytes
    """

    path: str
    content: bytes


@dataclass
class ComposeReport:
    """What an archive ended up containing."""

    entries: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    bytes_written: int = 0


class ArchiveSink:
    """Write-only wrapper around the caller's sink.

    After ``abort()`` all further writes are dropped, so an interrupted
    archive never receives its central directory and cannot pass for a
    complete one.
    """

    def __init__(self, target) -> None:
        self.target = target
        self.aborted = False
        self.bytes_written = 0

    def write(self, data: bytes) -> int:
        if not self.aborted:
            self.target.write(data)
            self.bytes_written += len(data)
        return len(data)

    def flush(self) -> None:
        if not self.aborted and hasattr(self.target, "flush"):
            self.target.flush()

    def abort(self) -> None:
        self.aborted = True


class ChunkBuffer:
    """Sink that collects bytes until the next ``drain()``."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stream_zip(
    entries: Iterable[ArchiveEntry],
    sink: ArchiveSink,
    report: ComposeReport,
    compression_level: int = 9,
    timestamp: Optional[datetime] = None,
) -> Iterator[str]:
    """Write entries to a zip bound to ``sink``, yielding each path.

    The central directory is written only once every entry went through.
    On any failure, or when the caller stops iterating, the sink is
    aborted first.

    Raises:
        ComposeError: If the sink or the zip writer fails
    """
    date_time = (timestamp or utcnow()).timetuple()[:6]
    completed = False

    try:
        archive = zipfile.ZipFile(
            sink,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compression_level,
        )
    except OSError as e:
        raise ComposeError(f"Could not open archive: {e}") from e

    try:
        for entry in entries:
            info = zipfile.ZipInfo(entry.path, date_time=date_time)
            info.external_attr = 0o644 << 16
            try:
                archive.writestr(
                    info,
                    entry.content,
                    compress_type=zipfile.ZIP_DEFLATED,
                    compresslevel=compression_level,
                )
            except (OSError, zipfile.LargeZipFile) as e:
                raise ComposeError(f"Could not write {entry.path}: {e}") from e
            report.entries.append(entry.path)
            yield entry.path
        completed = True
    finally:
        if not completed:
            sink.abort()
            logger.warning("Archive aborted after %d entries", len(report.entries))
            # Stops producers (and their pending fetches) right away
            close = getattr(entries, "close", None)
            if close is not None:
                close()
        try:
            archive.close()
        except OSError as e:
            raise ComposeError(f"Could not finalize archive: {e}") from e
        finally:
            report.bytes_written = sink.bytes_written


def write_zip(
    entries: Iterable[ArchiveEntry],
    sink,
    report: Optional[ComposeReport] = None,
    compression_level: int = 9,
    timestamp: Optional[datetime] = None,
) -> ComposeReport:
    """Write a whole zip to ``sink`` (anything with ``write``)."""
    report = report if report is not None else ComposeReport()
    for _ in stream_zip(entries, ArchiveSink(sink), report, compression_level, timestamp):
        pass
    return report


def iter_zip_chunks(
    entries: Iterable[ArchiveEntry],
    report: Optional[ComposeReport] = None,
    compression_level: int = 9,
    timestamp: Optional[datetime] = None,
) -> Iterator[bytes]:
    """Yield zip bytes entry by entry.

    Closing the iterator early stops writing; the bytes already yielded
    do not form a valid archive.
    """
    report = report if report is not None else ComposeReport()
    buffer = ChunkBuffer()
    steps = stream_zip(entries, ArchiveSink(buffer), report, compression_level, timestamp)

    try:
        for _ in steps:
            chunk = buffer.drain()
            if chunk:
                yield chunk
        tail = buffer.drain()
        if tail:
            yield tail
    finally:
        steps.close()


class ArchiveComposer:
    """Build the folder hierarchy of one issue and stream it as a zip."""

    def __init__(
        self,
        blobs: BlobStore,
        renderer: Optional[FormatHandler] = None,
        parser: Optional[MarkdownParser] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the composer.

        Args:
            blobs: Source of attachment and photo bytes
            renderer: Handler for the generated article document
            parser: Markdown compiler for article bodies
            settings: Settings override (defaults to global settings)
            clock: Returns the export timestamp
        """
        self.settings = settings or get_settings()
        self.blobs = blobs
        self.renderer = renderer or DOCXHandler(
            font_name=self.settings.font_name,
            font_size=self.settings.base_font_size,
        )
        self.parser = parser or MarkdownParser(
            join_lines=self.settings.join_soft_wrapped_lines
        )
        self.clock = clock

    def write(
        self,
        job: IssueExportJob,
        sink,
        report: Optional[ComposeReport] = None,
    ) -> ComposeReport:
        """Write the whole archive to ``sink`` (needs ``write``).

        Raises:
            ComposeError: If the archive could not be written
        """
        report = report if report is not None else ComposeReport()
        timestamp = self.clock()
        return write_zip(
            self.iter_entries(job, report, timestamp),
            sink,
            report,
            self.settings.compression_level,
            timestamp,
        )

    def iter_chunks(
        self,
        job: IssueExportJob,
        report: Optional[ComposeReport] = None,
    ) -> Iterator[bytes]:
        """Yield the archive bytes entry by entry.

        Closing the iterator early cancels pending fetches.
        """
        report = report if report is not None else ComposeReport()
        timestamp = self.clock()
        return iter_zip_chunks(
            self.iter_entries(job, report, timestamp),
            report,
            self.settings.compression_level,
            timestamp,
        )

    def iter_entries(
        self,
        job: IssueExportJob,
        report: Optional[ComposeReport] = None,
        timestamp: Optional[datetime] = None,
    ) -> Iterator[ArchiveEntry]:
        """Produce archive entries in final order.

        Per article: original documents, the generated document, then
        each photo followed by its caption file. The issue summary comes
        last. Missing blobs are skipped and recorded in ``report``.
        """
        report = report if report is not None else ComposeReport()
        timestamp = timestamp or self.clock()
        registry = PathRegistry()

        issue_folder = sanitize_name(f"Issue {job.issue_label}")
        base_path = join_path(f"Volume {job.volume_number}", issue_folder)

        pool = ThreadPoolExecutor(
            max_workers=self.settings.fetch_workers,
            thread_name_prefix="galley-fetch",
        )
        try:
            for article in job.articles:
                yield from self._article_entries(article, base_path, registry, pool, report)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        summary_path = registry.claim(join_path(base_path, SUMMARY_FILE))
        yield ArchiveEntry(
            path=summary_path,
            content=self.build_summary(job, timestamp).encode("utf-8"),
        )

        if report.skipped and self.settings.include_skipped_manifest:
            skipped_path = registry.claim(join_path(base_path, SKIPPED_FILE))
            lines = ["Files missing from storage:", ""] + report.skipped
            yield ArchiveEntry(
                path=skipped_path,
                content=("\n".join(lines) + "\n").encode("utf-8"),
            )

    def _article_entries(
        self,
        article: ArticleExportUnit,
        base_path: str,
        registry: PathRegistry,
        pool: ThreadPoolExecutor,
        report: ComposeReport,
    ) -> Iterator[ArchiveEntry]:
        article_path = registry.claim(
            join_path(base_path, sanitize_name(article.title)), is_folder=True
        )
        article_folder = article_path.rsplit("/", 1)[-1]

        # Claimed before the originals: an upload named "Photos" gets renamed
        photos_path = None
        if article.photos:
            photos_path = registry.claim(
                join_path(article_path, PHOTOS_FOLDER), is_folder=True
            )

        # Fetch everything up front; results are consumed in archive order
        document_fetches = [
            (ref, pool.submit(self.blobs.get, ref.stored_path))
            for ref in article.attachments
        ]
        photo_fetches = [
            (ref, pool.submit(self.blobs.get, ref.stored_path))
            for ref in article.photos
        ]

        try:
            for ref, fetch in document_fetches:
                data = self._fetched(fetch, ref.stored_path, report)
                if data is not None:
                    path = registry.claim(
                        join_path(article_path, sanitize_filename(ref.file_name))
                    )
                    yield ArchiveEntry(path=path, content=data)

            rendered = self.renderer.render(
                self.parser.parse(
                    article.content,
                    title=article.title,
                    author=article.author_display_name,
                )
            )
            final_name = f"{article_folder} - Final.{rendered.extension}"
            yield ArchiveEntry(
                path=registry.claim(join_path(article_path, final_name)),
                content=rendered.data,
            )

            for encounter, (photo, fetch) in enumerate(photo_fetches, start=1):
                number = photo.photo_number or encounter
                photo_path = registry.claim(
                    join_path(photos_path, f"Photo {number}"),
                    is_folder=True,
                )

                data = self._fetched(fetch, photo.stored_path, report)
                if data is not None:
                    path = registry.claim(
                        join_path(photo_path, sanitize_filename(photo.file_name))
                    )
                    yield ArchiveEntry(path=path, content=data)

                caption = (photo.caption or "").strip() or CAPTION_PLACEHOLDER
                caption_text = (
                    f"Author: {article.author_display_name}\n"
                    f"Caption: {caption}"
                )
                yield ArchiveEntry(
                    path=registry.claim(join_path(photo_path, CAPTION_FILE)),
                    content=caption_text.encode("utf-8"),
                )
        finally:
            for _, fetch in document_fetches + photo_fetches:
                fetch.cancel()

    def _fetched(
        self,
        fetch: Future,
        stored_path: str,
        report: ComposeReport,
    ) -> Optional[bytes]:
        try:
            data = fetch.result()
        except Exception as e:
            raise ComposeError(f"Could not fetch {stored_path}: {e}") from e

        if data is None:
            logger.warning("Skipping missing file: %s", stored_path)
            report.skipped.append(stored_path)
        return data

    def build_summary(self, job: IssueExportJob, timestamp: datetime) -> str:
        """Plain-text overview of the exported issue."""
        exported_at = timestamp.astimezone(timezone.utc)
        lines = [
            "Issue Export Summary",
            "====================",
            "",
            f"Volume: {job.volume_label}",
            f"Issue: {job.issue_label}",
            f"Export Date: {exported_at.strftime('%Y-%m-%dT%H:%M:%SZ')}",
            "",
            f"Articles Included: {len(job.articles)}",
            "",
        ]

        for i, article in enumerate(job.articles, start=1):
            lines.extend([
                f"{i}. {article.title}",
                f"   Author: {article.author_display_name}",
                f"   Photos: {len(article.photos)}",
                f"   Documents: {len(article.attachments)}",
                "",
            ])

        return "\n".join(lines)
