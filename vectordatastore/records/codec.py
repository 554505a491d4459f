"""Metadata codec for records.

Records are flattened to ``dict[str, str]`` before they reach a backend.
Fields annotated exactly ``str`` are stored verbatim; every other field is
stored as compact JSON, so a record read back from a backend validates to
an equal record.
"""

import json
from collections.abc import Collection
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python

from vectordatastore.config import MetadataOverflowPolicy
from vectordatastore.exceptions import ErrorCode, RecordError, ValidationError
from vectordatastore.logging_config import get_logger

if TYPE_CHECKING:
    from vectordatastore.records.models import VectorRecord

logger = get_logger(__name__)

SCHEMA_VERSION_KEY = "_schema_version"

R = TypeVar("R", bound="VectorRecord")


def render_value(value: Any) -> str:
    """Render a value as text: strings verbatim, anything else as compact JSON.

    Predicates compare values in this form.
    """
    value = to_jsonable_python(value)
    if isinstance(value, str):
        return value
    return _dump_json(value)


def _dump_json(value: Any) -> str:
    return json.dumps(to_jsonable_python(value), separators=(",", ":"))


def verbatim_fields(record_type: "type[VectorRecord]") -> frozenset[str]:
    """Names of the fields stored as raw text rather than JSON."""
    return frozenset(
        name for name, field in record_type.model_fields.items() if field.annotation is str
    )


def encode_metadata(record: "VectorRecord") -> dict[str, str]:
    """Flatten a record to string metadata.

    The ``id`` key comes first, followed by the schema version and then
    the remaining fields in declaration order.
    """
    verbatim = verbatim_fields(type(record))
    data = record.model_dump(mode="json")
    metadata = {"id": render_value(data.pop("id"))}
    metadata[SCHEMA_VERSION_KEY] = str(record.schema_version)
    for key, value in data.items():
        metadata[key] = value if key in verbatim else _dump_json(value)
    return metadata


def _decode_value(raw: str, annotation: Any) -> Any:
    if annotation is str:
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        # Not JSON: hand the text to validation as is
        return raw


def _stored_version(metadata: dict[str, str]) -> int:
    raw = metadata.get(SCHEMA_VERSION_KEY)
    if raw is None:
        return 1
    try:
        return int(raw)
    except ValueError as e:
        raise RecordError(
            f"Invalid schema version: {raw!r}",
            details={"id": metadata.get("id"), "schema_version": raw},
        ) from e


def decode_metadata(record_type: type[R], metadata: dict[str, str]) -> R:
    """Rebuild a record from stored metadata.

    Metadata written by an older schema version is passed through
    ``record_type.migrate`` first.

    Args:
        record_type: Record class to build.
        metadata: Metadata as returned by a backend.

    Returns:
        The decoded record.

    Raises:
        RecordError: If the metadata does not describe a valid record.
    """
    version = _stored_version(metadata)
    if version < record_type.schema_version:
        migrated = record_type.migrate(dict(metadata), version)
        if migrated is not None:
            logger.debug(
                "Migrated record metadata",
                extra={
                    "id": metadata.get("id"),
                    "from_version": version,
                    "to_version": record_type.schema_version,
                },
            )
            metadata = migrated

    data: dict[str, Any] = {}
    for name, field in record_type.model_fields.items():
        if name in metadata:
            data[name] = _decode_value(metadata[name], field.annotation)

    try:
        return record_type.model_validate(data)
    except PydanticValidationError as e:
        raise RecordError(
            f"Cannot decode {record_type.__name__}: {e.error_count()} invalid fields",
            details={
                "id": metadata.get("id"),
                "fields": [".".join(str(p) for p in err["loc"]) for err in e.errors()],
            },
        ) from e


def sanitize_metadata(
    metadata: dict[str, str],
    max_keys: int,
    max_value_length: int,
    policy: MetadataOverflowPolicy = MetadataOverflowPolicy.TRUNCATE,
    truncatable: Collection[str] | None = None,
) -> dict[str, str]:
    """Apply the metadata caps.

    ``id`` is always kept first. Under the truncate policy extra keys are
    dropped and long values cut; under the reject policy any overflow
    raises. An ``id`` longer than the value cap is always rejected.

    Args:
        metadata: Encoded record metadata.
        max_keys: Maximum number of keys, ``id`` included.
        max_value_length: Maximum length of a single value.
        policy: Overflow policy.
        truncatable: Keys whose values may be cut. A long value under any
            other key is rejected even under the truncate policy, since a
            cut JSON value no longer decodes. None allows every key.

    Raises:
        ValidationError: With code ``METADATA_TOO_LARGE``.
    """
    record_id = metadata.get("id")
    if record_id is not None and len(record_id) > max_value_length:
        raise ValidationError(
            "Record id exceeds the metadata value length limit",
            code=ErrorCode.METADATA_TOO_LARGE,
            details={"limit": max_value_length, "size": len(record_id)},
        )

    items = [(k, v) for k, v in metadata.items() if k != "id"]
    if record_id is not None:
        items.insert(0, ("id", record_id))

    if len(items) > max_keys:
        if policy is MetadataOverflowPolicy.REJECT:
            raise ValidationError(
                "Too many metadata keys",
                code=ErrorCode.METADATA_TOO_LARGE,
                details={"id": record_id, "limit": max_keys, "size": len(items)},
            )
        items = items[:max_keys]

    sanitized: dict[str, str] = {}
    for key, value in items:
        if len(value) > max_value_length:
            cut_allowed = truncatable is None or key in truncatable
            if policy is MetadataOverflowPolicy.REJECT or not cut_allowed:
                raise ValidationError(
                    f"Metadata value too long: {key}",
                    code=ErrorCode.METADATA_TOO_LARGE,
                    details={
                        "id": record_id,
                        "key": key,
                        "limit": max_value_length,
                        "size": len(value),
                    },
                )
            value = value[:max_value_length]
        sanitized[key] = value
    return sanitized
