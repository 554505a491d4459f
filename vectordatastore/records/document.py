"""Stock document record."""

from datetime import UTC, datetime
from typing import ClassVar

from pydantic import Field

from vectordatastore.records.models import VectorRecord


class Document(VectorRecord):
    """A text document with light provenance.

    Version 1 stored the text under ``body``; version 2 renamed it to
    ``content``.
    """

    schema_version: ClassVar[int] = 2

    title: str = Field(default="", description="Document title")
    content: str = Field(description="Document text")
    source: str = Field(default="", description="Where the document came from")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Creation timestamp",
    )

    @property
    def embedding_text(self) -> str:
        return f"{self.title}. {self.content}"

    @classmethod
    def migrate(cls, old: dict[str, str], from_version: int) -> dict[str, str] | None:
        if from_version < 2 and "body" in old and "content" not in old:
            migrated = dict(old)
            migrated["content"] = migrated.pop("body")
            return migrated
        return None
