"""Euclidean distance over equal-length vectors."""

from collections.abc import Sequence

import numpy as np

from vectordatastore.exceptions import ErrorCode, ValidationError

Vector = list[float]


def _dimension_mismatch(left: int, right: int) -> ValidationError:
    return ValidationError(
        f"Vector dimensions differ: {left} != {right}",
        code=ErrorCode.DIMENSION_MISMATCH,
        details={"expected": left, "got": right},
    )


def l2_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute the Euclidean (L2) distance between two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Non-negative distance.

    Raises:
        ValidationError: If the vectors have different lengths.
    """
    if len(a) != len(b):
        raise _dimension_mismatch(len(a), len(b))

    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.sqrt(np.dot(diff, diff)))


def l2_distances(
    vectors: Sequence[np.ndarray],
    query: Sequence[float],
) -> np.ndarray:
    """Compute the distance from ``query`` to every vector in ``vectors``.

    Args:
        vectors: Stored vectors, each the same length as the query.
        query: Query vector.

    Returns:
        Array of distances, positionally aligned with ``vectors``.

    Raises:
        ValidationError: If any vector's length differs from the query's.
    """
    q = np.asarray(query, dtype=np.float64)
    if not vectors:
        return np.empty(0, dtype=np.float64)

    for vector in vectors:
        if vector.shape[-1] != q.shape[-1]:
            raise _dimension_mismatch(q.shape[-1], vector.shape[-1])

    matrix = np.vstack(vectors)
    return np.linalg.norm(matrix - q, axis=1)
