"""Tests for vector distance."""

import math
import random

import numpy as np
import pytest

from vectordatastore.exceptions import ErrorCode, ValidationError
from vectordatastore.vectors.distance import l2_distance, l2_distances


def _random_vector(rng: random.Random, dims: int) -> list[float]:
    return [rng.uniform(-10.0, 10.0) for _ in range(dims)]


class TestL2Distance:
    """Tests for l2_distance."""

    def test_known_distance(self) -> None:
        """Unit vectors on two axes are sqrt(2) apart."""
        assert l2_distance([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]) == pytest.approx(math.sqrt(2))

    def test_identity(self) -> None:
        """A vector is at distance zero from itself."""
        rng = random.Random(7)
        for _ in range(50):
            v = _random_vector(rng, 8)
            assert l2_distance(v, v) == 0.0

    def test_symmetry(self) -> None:
        """Distance does not depend on argument order."""
        rng = random.Random(11)
        for _ in range(50):
            a, b = _random_vector(rng, 8), _random_vector(rng, 8)
            assert l2_distance(a, b) == pytest.approx(l2_distance(b, a))

    def test_triangle_inequality(self) -> None:
        """d(a, c) <= d(a, b) + d(b, c)."""
        rng = random.Random(13)
        for _ in range(50):
            a, b, c = (_random_vector(rng, 5) for _ in range(3))
            assert l2_distance(a, c) <= l2_distance(a, b) + l2_distance(b, c) + 1e-9

    def test_dimension_mismatch(self) -> None:
        """Different lengths are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            l2_distance([1.0, 2.0], [1.0, 2.0, 3.0])

        assert exc_info.value.code == ErrorCode.DIMENSION_MISMATCH
        assert exc_info.value.details == {"expected": 2, "got": 3}


class TestL2Distances:
    """Tests for the vectorised l2_distances."""

    def test_matches_scalar_version(self) -> None:
        """Every entry equals the pairwise distance."""
        rng = random.Random(17)
        vectors = [_random_vector(rng, 4) for _ in range(10)]
        query = _random_vector(rng, 4)

        distances = l2_distances([np.asarray(v) for v in vectors], query)

        for vector, distance in zip(vectors, distances, strict=True):
            assert distance == pytest.approx(l2_distance(vector, query))

    def test_empty(self) -> None:
        """No vectors gives an empty array."""
        assert l2_distances([], [1.0, 2.0]).shape == (0,)

    def test_dimension_mismatch(self) -> None:
        """A stored vector of another length is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            l2_distances([np.asarray([1.0, 2.0, 3.0])], [1.0, 2.0])

        assert exc_info.value.code == ErrorCode.DIMENSION_MISMATCH
