"""Transaction change log."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from vectordatastore.records.models import Snapshot, VectorRecord

R = TypeVar("R", bound=VectorRecord)


class ChangeKind(str, Enum):
    """Kind of a pending change."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class TransactionPhase(str, Enum):
    """Progress of a transaction."""

    OPEN = "open"
    APPLYING_DELETES = "applying_deletes"
    APPLYING_UPDATES = "applying_updates"
    APPLYING_INSERTS = "applying_inserts"
    COMMITTED = "committed"


class Change(BaseModel):
    """One pending change."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    snapshot: Snapshot


class EditingState(Generic[R]):
    """Ordered log of changes recorded by a transaction body.

    Nothing touches the backend until the body returns; the store then
    applies every delete, then every update, then every insert.
    """

    def __init__(self) -> None:
        self.changes: list[Change] = []
        self.phase = TransactionPhase.OPEN

    def _record(self, kind: ChangeKind, item: R | Snapshot) -> None:
        snapshot = item if isinstance(item, Snapshot) else Snapshot(model=item)
        self.changes.append(Change(kind=kind, snapshot=snapshot))

    def insert(self, record: R | Snapshot) -> None:
        self._record(ChangeKind.INSERT, record)

    def update(self, record: R | Snapshot) -> None:
        self._record(ChangeKind.UPDATE, record)

    def delete(self, record: R | Snapshot) -> None:
        self._record(ChangeKind.DELETE, record)

    def of_kind(self, kind: ChangeKind) -> list[Snapshot]:
        """Snapshots of one kind, in the order they were recorded."""
        return [change.snapshot for change in self.changes if change.kind is kind]
