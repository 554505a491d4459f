"""Vector math module."""

from vectordatastore.vectors.distance import Vector, l2_distance, l2_distances

__all__ = [
    "Vector",
    "l2_distance",
    "l2_distances",
]
