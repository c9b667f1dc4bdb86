"""Tests for record and blob store adapters, settings and errors."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from galley.config import Settings, load_settings
from galley.errors import ComposeError, ExportError, NotFoundError
from galley.storage.local import LocalBlobStore, MemoryBlobStore
from galley.storage.manifest import ManifestRecordStore
from galley.storage.records import Attachment, AttachmentType, Author, Manifest


class TestRecords:
    """Tests for record models."""

    def test_camel_and_snake_keys(self):
        camel = Author.model_validate({"id": "a", "givenName": "Jo", "surname": "Ng"})
        snake = Author(id="a", given_name="Jo", surname="Ng")

        assert camel == snake
        assert camel.display_name == "Jo Ng"

    def test_attachment_display_name(self):
        attachment = Attachment(
            id="x",
            article_id="a",
            attachment_type=AttachmentType.PHOTO,
            file_path="uploads/2024/abc.jpg",
        )

        assert attachment.display_name == "abc.jpg"
        assert attachment.model_copy(update={"file_name": "stored.jpg"}).display_name == "stored.jpg"
        assert attachment.model_copy(
            update={"original_file_name": "cake.jpg"}
        ).display_name == "cake.jpg"

    def test_unknown_attachment_type_rejected(self):
        with pytest.raises(ValidationError):
            Attachment.model_validate({
                "id": "x",
                "articleId": "a",
                "attachmentType": "spreadsheet",
                "filePath": "f",
            })

    def test_records_are_frozen(self):
        author = Author(id="a", given_name="Jo", surname="Ng")

        with pytest.raises(ValidationError):
            author.surname = "Other"


class TestManifestRecordStore:
    """Tests for the JSON manifest adapter."""

    def test_lookups(self, records):
        assert records.get_article("art-1").title == "Garden Party"
        assert records.get_author("au-1").role == "Resident"
        assert records.get_issue("iss-2").title == "Spring"
        assert records.get_volume("vol-3").year == 2024
        assert records.get_attachment("att-doc").original_file_name == "draft.docx"

    def test_missing_records_are_none(self, records):
        assert records.get_article("nope") is None
        assert records.get_volume("nope") is None
        assert records.get_attachment("nope") is None

    def test_lists_keep_manifest_order(self, records):
        assert [a.id for a in records.list_issue_articles("iss-2")] == ["art-1", "art-2"]
        assert [a.id for a in records.list_attachments("art-1")] == [
            "att-doc",
            "att-photo",
            "att-photo-2",
        ]
        assert [i.id for i in records.list_volume_issues("vol-3")] == [
            "iss-2",
            "iss-1",
            "iss-empty",
        ]

    def test_from_file(self, tmp_path: Path, manifest_data: dict):
        path = tmp_path / "records.json"
        path.write_text(json.dumps(manifest_data), encoding="utf-8")

        store = ManifestRecordStore.from_file(path)

        assert store.get_article("art-2").prefers_anonymity

    def test_empty_manifest(self):
        store = ManifestRecordStore(Manifest())

        assert store.list_issue_articles("any") == []


class TestLocalBlobStore:
    """Tests for the directory-backed blob store."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> LocalBlobStore:
        (tmp_path / "uploads").mkdir()
        (tmp_path / "uploads" / "a.jpg").write_bytes(b"jpeg")
        (tmp_path / "secret.txt").write_text("hidden")
        return LocalBlobStore(tmp_path / "uploads")

    def test_get(self, store):
        assert store.get("a.jpg") == b"jpeg"
        assert store.exists("a.jpg")

    def test_leading_slash(self, store):
        assert store.get("/a.jpg") == b"jpeg"

    def test_missing(self, store):
        assert store.get("b.jpg") is None
        assert not store.exists("b.jpg")

    def test_directory_is_missing(self, tmp_path: Path):
        (tmp_path / "folder").mkdir()

        assert LocalBlobStore(tmp_path).get("folder") is None

    def test_escape_rejected(self, store):
        assert store.get("../secret.txt") is None


class TestMemoryBlobStore:
    def test_put_and_get(self):
        store = MemoryBlobStore()
        store.put("k", b"v")

        assert store.get("k") == b"v"
        assert store.get("other") is None


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.font_name == "Calibri"
        assert settings.base_font_size == 12
        assert settings.fetch_workers == 4
        assert settings.compression_level == 9
        assert not settings.include_skipped_manifest
        assert not settings.join_soft_wrapped_lines

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("GALLEY_FONT_NAME", "Georgia")
        monkeypatch.setenv("GALLEY_FETCH_WORKERS", "8")

        settings = Settings(_env_file=None)

        assert settings.font_name == "Georgia"
        assert settings.fetch_workers == 8

    def test_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, GALLEY_COMPRESSION_LEVEL=12)

    def test_load_settings_from_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text("GALLEY_BASE_FONT_SIZE=14\n", encoding="utf-8")

        assert load_settings(env_file).base_font_size == 14


class TestErrors:
    def test_payload(self):
        error = NotFoundError("Issue not found: x")

        assert error.to_payload() == {"error": "not_found", "message": "Issue not found: x"}
        assert error.status == 404
        assert str(error) == "Issue not found: x"

    def test_overrides(self):
        error = ExportError("bad", reason="invalid_request", status=400)

        assert error.reason == "invalid_request"
        assert error.status == 400
        assert ExportError("x").reason == "export_failed"

    def test_compose_error(self):
        assert ComposeError("disk").status == 500
        assert isinstance(ComposeError("disk"), ExportError)
