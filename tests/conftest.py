"""Pytest fixtures for Galley tests."""

import io
from datetime import datetime, timezone
from pathlib import Path

import pytest
from docx import Document

from galley.config import Settings
from galley.core.exporter import ExportService
from galley.storage.local import MemoryBlobStore
from galley.storage.manifest import ManifestRecordStore
from galley.storage.records import Manifest

FIXED_NOW = datetime(2024, 3, 5, 14, 30, 0, tzinfo=timezone.utc)


def make_docx(*paragraphs: str) -> bytes:
    """Build a small .docx in memory."""
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Keep the global settings instance from leaking between tests."""
    monkeypatch.setattr("galley.config._settings", None)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        GALLEY_UPLOAD_DIR=tmp_path / "uploads",
        GALLEY_FETCH_WORKERS=2,
    )


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def manifest_data() -> dict:
    """A small record set: one volume, two issues, three articles."""
    return {
        "volumes": [
            {"id": "vol-3", "volumeNumber": 3, "year": 2024},
        ],
        "issues": [
            {"id": "iss-2", "volumeId": "vol-3", "issueNumber": 2, "title": "Spring"},
            {"id": "iss-1", "volumeId": "vol-3", "issueNumber": 1},
            {"id": "iss-empty", "volumeId": "vol-3", "issueNumber": 4},
            {"id": "iss-orphan", "volumeId": "vol-missing", "issueNumber": 9},
        ],
        "authors": [
            {"id": "au-1", "givenName": "Jane", "surname": "Doe", "role": "Resident"},
            {"id": "au-2", "givenName": "Sam", "surname": "Lee"},
        ],
        "articles": [
            {
                "id": "art-1",
                "title": "Garden Party",
                "content": "# Highlights\n\nWe had **fun**.",
                "authorId": "au-1",
                "issueId": "iss-2",
            },
            {
                "id": "art-2",
                "title": "Secret Recipe",
                "content": "Mix *well*.",
                "authorId": "au-2",
                "issueId": "iss-2",
                "prefersAnonymity": True,
            },
            {
                "id": "art-3",
                "title": "Winter Notes",
                "content": "",
                "authorId": "au-2",
                "issueId": "iss-1",
            },
            {
                "id": "art-orphan",
                "title": "Lost",
                "content": "Nowhere",
                "issueId": "iss-orphan",
            },
        ],
        "attachments": [
            {
                "id": "att-doc",
                "articleId": "art-1",
                "attachmentType": "word_document",
                "filePath": "uploads/abc123.docx",
                "fileName": "abc123.docx",
                "originalFileName": "draft.docx",
            },
            {
                "id": "att-photo",
                "articleId": "art-1",
                "attachmentType": "photo",
                "filePath": "uploads/p1.jpg",
                "originalFileName": "cake.jpg",
                "photoNumber": 1,
            },
            {
                "id": "att-photo-2",
                "articleId": "art-1",
                "attachmentType": "photo",
                "filePath": "uploads/p2.jpg",
                "originalFileName": "lawn.jpg",
                "caption": "The lawn",
                "photoNumber": 2,
            },
            {
                "id": "att-pdf",
                "articleId": "art-2",
                "attachmentType": "other",
                "filePath": "uploads/menu.pdf",
                "originalFileName": "menu.pdf",
            },
            {
                "id": "att-broken",
                "articleId": "art-2",
                "attachmentType": "word_document",
                "filePath": "uploads/broken.docx",
                "originalFileName": "broken.docx",
            },
        ],
    }


@pytest.fixture
def records(manifest_data: dict) -> ManifestRecordStore:
    return ManifestRecordStore(Manifest.model_validate(manifest_data))


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore({
        "uploads/abc123.docx": make_docx("Original draft"),
        "uploads/p1.jpg": b"\xff\xd8cake",
        "uploads/p2.jpg": b"\xff\xd8lawn",
        "uploads/broken.docx": b"not a zip file",
    })


@pytest.fixture
def service(records, blobs, settings, clock) -> ExportService:
    return ExportService(
        records,
        blobs,
        settings=settings,
        clock=clock,
        suffix_factory=lambda: "abc123",
    )
