"""Record and blob store interfaces with local adapters."""

from galley.storage.base import BlobStore, RecordStore
from galley.storage.local import LocalBlobStore, MemoryBlobStore
from galley.storage.manifest import ManifestRecordStore
from galley.storage.records import (
    Article,
    Attachment,
    AttachmentType,
    Author,
    Issue,
    Manifest,
    Volume,
)

__all__ = [
    "BlobStore",
    "RecordStore",
    "LocalBlobStore",
    "MemoryBlobStore",
    "ManifestRecordStore",
    "Article",
    "Attachment",
    "AttachmentType",
    "Author",
    "Issue",
    "Manifest",
    "Volume",
]
