"""Query module."""

from vectordatastore.query.predicate import Contains, Equal, Predicate
from vectordatastore.query.sort import SortDescriptor, SortOrder, sort_records

__all__ = [
    "Contains",
    "Equal",
    "Predicate",
    "SortDescriptor",
    "SortOrder",
    "sort_records",
]
