"""Core export logic for Galley."""

from galley.core.archive import ArchiveComposer, ArchiveEntry, ComposeReport
from galley.core.exporter import ExportResult, ExportService, StreamingExport
from galley.core.models import (
    ArticleExportUnit,
    AttachmentRef,
    IssueExportJob,
    PhotoRef,
)
from galley.core.paths import PathRegistry, sanitize_filename, sanitize_name

__all__ = [
    "ArchiveComposer",
    "ArchiveEntry",
    "ComposeReport",
    "ExportResult",
    "ExportService",
    "StreamingExport",
    "ArticleExportUnit",
    "AttachmentRef",
    "IssueExportJob",
    "PhotoRef",
    "PathRegistry",
    "sanitize_filename",
    "sanitize_name",
]
