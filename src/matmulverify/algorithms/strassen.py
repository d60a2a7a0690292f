"""
Strassen Divide-and-Conquer Family
==================================
Square products computed from seven half-size products instead of eight.

The recursion is a pure function: every call returns a freshly owned Matrix,
so the seven sub-products can run concurrently without sharing mutable state.
Sizes up to `OptimizationOptions.strassen_threshold` fall back to the naive
family of the same parallelism tier. Odd sizes are padded with one zero row
and column and the result is cropped back.
"""
from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from matmulverify.algorithms import naive
from matmulverify.algorithms.distributed import row_partitioned
from matmulverify.algorithms.registry import register_variant
from matmulverify.config import STRASSEN_PRODUCTS, Algorithm, ExecutionMode, OptimizationOptions
from matmulverify.exceptions import NonSquareInputError
from matmulverify.model.matrix import Matrix
from matmulverify.parallel.pool import run_tasks

if TYPE_CHECKING:
    import numpy.typing as npt

    from matmulverify.parallel.comm import Communicator

logger = logging.getLogger(__name__)

Multiply = Callable[[Matrix, Matrix], Matrix]


def check_square_operands(a_shape: tuple[int, ...], b_shape: tuple[int, ...]) -> None:
    """
    Raises:
        NonSquareInputError: Unless both operands are square and of the same size.
    """
    if a_shape[0] != a_shape[1] or b_shape[0] != b_shape[1] or a_shape != b_shape:
        raise NonSquareInputError(
            f"Strassen algorithm requires square matrices of same size, got "
            f"{a_shape[0]}x{a_shape[1]} and {b_shape[0]}x{b_shape[1]}"
        )


def _check_arrays(a: npt.NDArray[np.float64], b: npt.NDArray[np.float64]) -> None:
    check_square_operands(a.shape, b.shape)


def _options(opt: Optional[OptimizationOptions]) -> OptimizationOptions:
    return opt if opt is not None else OptimizationOptions()


# ----------------------------------------------------------------------
# Recursion building blocks
# ----------------------------------------------------------------------
def pad(M: Matrix, size: int) -> Matrix:
    """Copy of `M` in the top-left corner of a zero `size` x `size` matrix."""
    padded = Matrix(size, size)
    padded.set_submatrix(0, 0, M)
    return padded


def quadrants(M: Matrix) -> tuple[Matrix, Matrix, Matrix, Matrix]:
    """Split an even-sized square matrix into (M11, M12, M21, M22)."""
    n = M.rows
    half = n // 2
    return (
        M.submatrix(0, 0, half, half),
        M.submatrix(0, half, half, n),
        M.submatrix(half, 0, n, half),
        M.submatrix(half, half, n, n),
    )


def product_operands(A: Matrix, B: Matrix) -> list[tuple[Matrix, Matrix]]:
    """The operand pairs of the seven Strassen products M1..M7."""
    A11, A12, A21, A22 = quadrants(A)
    B11, B12, B21, B22 = quadrants(B)
    return [
        (A11 + A22, B11 + B22),  # M1
        (A21 + A22, B11),        # M2
        (A11, B12 - B22),        # M3
        (A22, B21 - B11),        # M4
        (A11 + A12, B22),        # M5
        (A21 - A11, B11 + B12),  # M6
        (A12 - A22, B21 + B22),  # M7
    ]


def combine(products: list[Matrix]) -> Matrix:
    """Assemble C from M1..M7."""
    M1, M2, M3, M4, M5, M6, M7 = products
    half = M1.rows

    C = Matrix(2 * half, 2 * half)
    C.set_submatrix(0, 0, M1 + M4 - M5 + M7)
    C.set_submatrix(0, half, M3 + M5)
    C.set_submatrix(half, 0, M2 + M4)
    C.set_submatrix(half, half, M1 - M2 + M3 + M6)
    return C


def _recurse(
    A: Matrix,
    B: Matrix,
    threshold: int,
    base_case: Multiply,
    seven_products: Callable[[list[tuple[Matrix, Matrix]]], list[Matrix]],
    recurse: Multiply,
) -> Matrix:
    n = A.rows
    if n <= threshold:
        return base_case(A, B)

    if n % 2 != 0:
        C_padded = recurse(pad(A, n + 1), pad(B, n + 1))
        return C_padded.submatrix(0, 0, n, n)

    return combine(seven_products(product_operands(A, B)))


def _strassen_sequential(A: Matrix, B: Matrix, opt: OptimizationOptions) -> Matrix:
    recurse = partial(_strassen_sequential, opt=opt)
    return _recurse(
        A, B,
        threshold=opt.strassen_threshold,
        base_case=partial(naive.sequential, opt=opt),
        seven_products=lambda pairs: [recurse(left, right) for left, right in pairs],
        recurse=recurse,
    )


def _strassen_shared(A: Matrix, B: Matrix, opt: OptimizationOptions, threads: int) -> Matrix:
    # Each of the seven branches gets a share of the budget, so nested levels
    # do not multiply the thread count
    child_threads = threads // STRASSEN_PRODUCTS + 1
    child = partial(_strassen_shared, opt=opt, threads=child_threads)

    def seven_products(pairs: list[tuple[Matrix, Matrix]]) -> list[Matrix]:
        tasks = [partial(child, left, right) for left, right in pairs]
        return run_tasks(tasks, threads, name="strassen")

    return _recurse(
        A, B,
        threshold=opt.strassen_threshold,
        base_case=partial(naive.shared, opt=opt, threads=threads),
        seven_products=seven_products,
        recurse=partial(_strassen_shared, opt=opt, threads=threads),
    )


# ----------------------------------------------------------------------
# Registered variants
# ----------------------------------------------------------------------
@register_variant(Algorithm.STRASSEN, ExecutionMode.SEQUENTIAL)
def sequential(A: Matrix, B: Matrix, opt: Optional[OptimizationOptions] = None) -> Matrix:
    """
    Single-threaded Strassen product.

    Raises:
        NonSquareInputError: Unless A and B are square and of the same size.
    """
    check_square_operands(A.shape, B.shape)
    return _strassen_sequential(A, B, _options(opt))


@register_variant(Algorithm.STRASSEN, ExecutionMode.SHARED_MEMORY)
def shared(
    A: Matrix,
    B: Matrix,
    opt: Optional[OptimizationOptions] = None,
    threads: int = 1,
) -> Matrix:
    """
    Strassen product with the seven sub-products of every level computed as
    concurrent tasks. The budget handed to each branch is ``threads // 7 + 1``.

    Raises:
        NonSquareInputError: Unless A and B are square and of the same size.
    """
    check_square_operands(A.shape, B.shape)
    return _strassen_shared(A, B, _options(opt), threads)


def _slice_multiply(square: Multiply, fallback: Multiply, A_local: Matrix, B: Matrix) -> Matrix:
    # A row slice is only square when one rank owns every row
    if A_local.rows == B.rows:
        return square(A_local, B)
    return fallback(A_local, B)


@register_variant(Algorithm.STRASSEN, ExecutionMode.DISTRIBUTED)
def distributed(
    comm: Communicator,
    A: Optional[Matrix],
    B: Optional[Matrix],
    opt: Optional[OptimizationOptions] = None,
) -> Matrix:
    """
    Row-partitioned product. A rank runs sequential Strassen when its slice is
    the whole (square) matrix and the sequential naive product otherwise. The
    seven sub-products are never distributed themselves.
    """
    opt = _options(opt)
    return row_partitioned(
        comm, A, B,
        multiply_slice=partial(
            _slice_multiply,
            partial(sequential, opt=opt),
            partial(naive.sequential, opt=opt),
        ),
        check_operands=_check_arrays,
    )


@register_variant(Algorithm.STRASSEN, ExecutionMode.HYBRID)
def hybrid(
    comm: Communicator,
    A: Optional[Matrix],
    B: Optional[Matrix],
    opt: Optional[OptimizationOptions] = None,
    threads: int = 1,
) -> Matrix:
    """Row-partitioned product with the shared-memory Strassen / naive variants per rank."""
    opt = _options(opt)
    return row_partitioned(
        comm, A, B,
        multiply_slice=partial(
            _slice_multiply,
            partial(shared, opt=opt, threads=threads),
            partial(naive.shared, opt=opt, threads=threads),
        ),
        check_operands=_check_arrays,
    )
