import numpy as np
import pytest

from matmulverify.algorithms import naive
from matmulverify.config import OptimizationOptions
from matmulverify.exceptions import DimensionMismatchError
from matmulverify.model.matrix import Matrix

ABS_TOL = 1e-8
REL_TOL = 1e-5

SHAPES = [
    (1, 1, 1),
    (3, 3, 3),
    (5, 7, 11),
    (13, 17, 19),
    (64, 64, 64),
    (65, 33, 70),
]


def assert_close(result: Matrix, expected) -> None:
    comparison = result.compare(Matrix.from_array(expected), ABS_TOL, REL_TOL)
    assert comparison.passed, comparison


@pytest.mark.parametrize("m,k,n", SHAPES)
def test_sequential_matches_numpy(random_matrix, m, k, n):
    A = random_matrix(m, k)
    B = random_matrix(k, n)
    assert_close(naive.sequential(A, B), A.data @ B.data)


@pytest.mark.parametrize("m,k,n", SHAPES)
@pytest.mark.parametrize("block_size", [1, 4, 16, 64])
def test_blocked_matches_sequential(random_matrix, m, k, n, block_size):
    A = random_matrix(m, k)
    B = random_matrix(k, n)
    plain = naive.sequential(A, B)
    blocked = naive.sequential(A, B, OptimizationOptions(use_blocking=True, block_size=block_size))
    assert blocked.compare(plain, ABS_TOL, REL_TOL).passed


@pytest.mark.parametrize("use_blocking", [False, True])
@pytest.mark.parametrize("threads", [1, 2, 4])
@pytest.mark.parametrize("m,k,n", SHAPES)
def test_shared_matches_sequential(random_matrix, m, k, n, threads, use_blocking):
    A = random_matrix(m, k)
    B = random_matrix(k, n)
    opt = OptimizationOptions(use_blocking=use_blocking, block_size=8)
    expected = naive.sequential(A, B)
    assert naive.shared(A, B, opt, threads).compare(expected, ABS_TOL, REL_TOL).passed


def test_inputs_are_not_modified(random_matrix):
    A = random_matrix(6, 4)
    B = random_matrix(4, 5)
    A_before, B_before = A.copy(), B.copy()
    naive.shared(A, B, OptimizationOptions(use_blocking=True, block_size=2), threads=3)
    np.testing.assert_array_equal(A.data, A_before.data)
    np.testing.assert_array_equal(B.data, B_before.data)


def test_identity_product_is_exact(random_matrix):
    A = random_matrix(9, 9)
    np.testing.assert_array_equal(naive.sequential(A, Matrix.identity(9)).data, A.data)


@pytest.mark.parametrize("variant", [naive.sequential, naive.shared])
def test_inner_dimension_mismatch(variant):
    with pytest.raises(DimensionMismatchError):
        variant(Matrix(3, 4), Matrix(5, 3))


def test_empty_inner_dimension_gives_zeros():
    C = naive.sequential(Matrix(3, 0), Matrix(0, 2))
    assert C.shape == (3, 2)
    assert np.all(C.data == 0.0)
