"""Vector backend data models."""

from pydantic import BaseModel, ConfigDict, Field


class Payload(BaseModel):
    """A vector and its metadata, as handed to a backend.

    Attributes:
        vector: The embedding vector.
        metadata: String-keyed, string-valued metadata. The ``"id"`` entry
            is the key backends deduplicate and delete by.
    """

    model_config = ConfigDict(frozen=True)

    vector: list[float] = Field(description="Embedding vector")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Record metadata",
    )

    @property
    def id(self) -> str | None:
        """The record id carried in the metadata, if any."""
        return self.metadata.get("id")
