"""Record base class, persistent identifiers and snapshots."""

from abc import abstractmethod
from typing import Any, ClassVar, Self
from urllib.parse import parse_qs, quote, unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from vectordatastore.records.codec import decode_metadata, encode_metadata

IDENTIFIER_SCHEME = "vectorstore"


class VectorRecord(BaseModel):
    """Base class for application records kept in a vector store.

    Subclasses declare their fields as a regular pydantic model and provide
    ``embedding_text``. Bump ``schema_version`` and override ``migrate``
    when the stored shape changes.
    """

    schema_version: ClassVar[int] = 1

    id: str = Field(description="Unique record identifier")

    @property
    @abstractmethod
    def embedding_text(self) -> str:
        """Text the embedding provider turns into this record's vector."""
        ...

    @classmethod
    def migrate(cls, old: dict[str, str], from_version: int) -> dict[str, str] | None:
        """Upgrade metadata written by an older schema version.

        Args:
            old: Stored metadata.
            from_version: Schema version the metadata was written with.

        Returns:
            Upgraded metadata, or None to decode ``old`` unchanged.
        """
        return None

    def to_metadata(self) -> dict[str, str]:
        """Serialize to string metadata."""
        return encode_metadata(self)

    @classmethod
    def from_metadata(cls, metadata: dict[str, str]) -> Self:
        """Rebuild a record from stored metadata.

        Raises:
            RecordError: If the metadata does not describe a valid record.
        """
        return decode_metadata(cls, metadata)

    def field_value(self, name: str) -> Any:
        """Value of a declared field, or None for unknown names."""
        if name not in type(self).model_fields:
            return None
        return getattr(self, name)


class PersistentIdentifier(BaseModel):
    """Opaque identifier of the form ``vectorstore://<id>?v=<version>``."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str = Field(min_length=1)
    version: int = Field(default=1, ge=1)

    def __str__(self) -> str:
        return f"{IDENTIFIER_SCHEME}://{quote(self.model_id, safe='')}?v={self.version}"

    @classmethod
    def parse(cls, value: str) -> Self | None:
        """Parse the string form. Returns None for anything malformed."""
        try:
            parts = urlsplit(value)
        except ValueError:
            return None
        if parts.scheme != IDENTIFIER_SCHEME or not parts.netloc or parts.path:
            return None

        version = 1
        versions = parse_qs(parts.query).get("v")
        if versions:
            try:
                version = int(versions[0])
            except ValueError:
                return None
            if version < 1:
                return None

        return cls(model_id=unquote(parts.netloc), version=version)


class Snapshot(BaseModel):
    """Immutable view of a record as it was handed to the store."""

    model_config = ConfigDict(frozen=True)

    model: VectorRecord

    @property
    def id(self) -> PersistentIdentifier:
        return PersistentIdentifier(
            model_id=self.model.id,
            version=type(self.model).schema_version,
        )
