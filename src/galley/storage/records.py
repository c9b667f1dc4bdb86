"""Record types supplied by the record store."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AttachmentType(str, Enum):
    WORD_DOCUMENT = "word_document"
    PHOTO = "photo"
    OTHER = "other"


class Record(BaseModel):
    """Base for stored records; accepts snake_case or camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str


class Author(Record):
    given_name: str
    surname: str
    role: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.surname}".strip()


class Volume(Record):
    volume_number: int
    year: Optional[int] = None


class Issue(Record):
    volume_id: str
    issue_number: int
    title: Optional[str] = None


class Article(Record):
    title: str
    content: Optional[str] = None
    prefers_anonymity: bool = False
    author_id: Optional[str] = None
    issue_id: Optional[str] = None
    created_at: Optional[datetime] = None


class Attachment(Record):
    """Uploaded file metadata.

    ``file_path`` is the blob store key; ``file_name`` the stored name
    used when the original upload name is unknown.
    """

    article_id: str
    attachment_type: AttachmentType
    file_path: str
    file_name: str = ""
    original_file_name: Optional[str] = None
    caption: Optional[str] = None
    photo_number: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.original_file_name or self.file_name or self.file_path.rsplit("/", 1)[-1]


class Manifest(BaseModel):
    """A full record set, as loaded by ``ManifestRecordStore``."""

    model_config = ConfigDict(extra="ignore")

    volumes: list[Volume] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)
    authors: list[Author] = Field(default_factory=list)
    articles: list[Article] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
