"""Store module."""

from vectordatastore.store.models import (
    FetchRequest,
    FetchResult,
    StoreConfiguration,
    StoreLimits,
    VectorSchema,
)
from vectordatastore.store.store import VectorDataStore
from vectordatastore.store.transaction import (
    Change,
    ChangeKind,
    EditingState,
    TransactionPhase,
)

__all__ = [
    "Change",
    "ChangeKind",
    "EditingState",
    "FetchRequest",
    "FetchResult",
    "StoreConfiguration",
    "StoreLimits",
    "TransactionPhase",
    "VectorDataStore",
    "VectorSchema",
]
