from __future__ import annotations

import numpy as np
import pytest

from matmulverify.model.matrix import Matrix


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture
def random_matrix(rng):
    """Factory for reproducible random matrices with entries in [-1, 1)."""
    def make(rows: int, cols: int | None = None) -> Matrix:
        return Matrix.random(rows, cols, low=-1.0, high=1.0, rng=rng)
    return make
