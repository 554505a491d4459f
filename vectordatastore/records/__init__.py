"""Record module."""

from vectordatastore.records.codec import (
    SCHEMA_VERSION_KEY,
    decode_metadata,
    encode_metadata,
    render_value,
    sanitize_metadata,
    verbatim_fields,
)
from vectordatastore.records.document import Document
from vectordatastore.records.models import PersistentIdentifier, Snapshot, VectorRecord

__all__ = [
    "SCHEMA_VERSION_KEY",
    "Document",
    "PersistentIdentifier",
    "Snapshot",
    "VectorRecord",
    "decode_metadata",
    "encode_metadata",
    "render_value",
    "sanitize_metadata",
    "verbatim_fields",
]
