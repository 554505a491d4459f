"""Multi-key record sorting."""

from collections.abc import Sequence
from datetime import date, datetime
from enum import Enum
from functools import cmp_to_key
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from vectordatastore.records.codec import render_value
from vectordatastore.records.models import VectorRecord

R = TypeVar("R", bound=VectorRecord)


class SortOrder(str, Enum):
    """Sort direction."""

    FORWARD = "forward"
    REVERSE = "reverse"


class SortDescriptor(BaseModel):
    """One sort key."""

    key: str = Field(description="Field name")
    order: SortOrder = Field(default=SortOrder.FORWARD, description="Direction")


def _kind(value: Any) -> type | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float
    if isinstance(value, datetime):
        return datetime
    if isinstance(value, date):
        return date
    if isinstance(value, str):
        return str
    return None


def _compare_values(left: Any, right: Any) -> int:
    kind = _kind(left)
    if kind is not None and kind is _kind(right):
        try:
            return (left > right) - (left < right)
        except TypeError:
            # Naive vs aware datetimes
            pass

    left_text, right_text = render_value(left), render_value(right)
    return (left_text > right_text) - (left_text < right_text)


def _compare(a: VectorRecord, b: VectorRecord, descriptors: Sequence[SortDescriptor]) -> int:
    for descriptor in descriptors:
        left = a.field_value(descriptor.key)
        right = b.field_value(descriptor.key)
        if left is None or right is None:
            continue

        result = _compare_values(left, right)
        if result:
            return result if descriptor.order is SortOrder.FORWARD else -result
    return 0


def sort_records(records: Sequence[R], descriptors: Sequence[SortDescriptor]) -> list[R]:
    """Stable multi-key sort; earlier descriptors take precedence.

    A descriptor is skipped for a pair when either record lacks a value.
    """
    if not descriptors:
        return list(records)
    return sorted(records, key=cmp_to_key(lambda a, b: _compare(a, b, descriptors)))
