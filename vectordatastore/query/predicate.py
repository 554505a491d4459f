"""Record predicates."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from vectordatastore.records.codec import render_value
from vectordatastore.records.models import VectorRecord


def _declared(record: VectorRecord, key: str) -> bool:
    return key in type(record).model_fields


class Equal(BaseModel):
    """Matches records whose field renders equal to ``value``."""

    op: Literal["equal"] = "equal"
    key: str = Field(description="Field name")
    value: Any = Field(description="Value to compare with")

    def evaluate(self, record: VectorRecord) -> bool:
        if not _declared(record, self.key):
            return False
        return render_value(record.field_value(self.key)) == render_value(self.value)


class Contains(BaseModel):
    """Matches records whose field contains ``value``.

    List-like fields match on membership, everything else on substring
    of the rendered value.
    """

    op: Literal["contains"] = "contains"
    key: str = Field(description="Field name")
    value: Any = Field(description="Value to look for")

    def evaluate(self, record: VectorRecord) -> bool:
        if not _declared(record, self.key):
            return False

        actual = record.field_value(self.key)
        needle = render_value(self.value)
        if isinstance(actual, list | tuple | set | frozenset):
            return any(render_value(item) == needle for item in actual)
        return needle in render_value(actual)


Predicate = Annotated[Equal | Contains, Field(discriminator="op")]
