"""
Naive Triple-Loop Family
========================
C(i, j) = sum_k A(i, k) * B(k, j), in four execution models.

Why is this file needed?
------------------------
1. Baseline: it is the straightforward product every other variant is
   checked against, and the base case of the Strassen recursion.
2. Blocking: with `OptimizationOptions.use_blocking` the loops are traversed
   in cache-sized tiles (block origins nested ii > jj > kk).
3. Parallelism: the shared-memory variant farms tiles out to a thread pool,
   the distributed variants partition the rows of A across a process group.

Note: The inner loops live in `kernels.py` and are numba-compiled.
"""
from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Optional

import numpy as np

from matmulverify.algorithms import kernels
from matmulverify.algorithms.distributed import row_partitioned
from matmulverify.algorithms.registry import register_variant
from matmulverify.config import Algorithm, ExecutionMode, OptimizationOptions
from matmulverify.exceptions import DimensionMismatchError
from matmulverify.model.matrix import Matrix
from matmulverify.parallel.pool import run_tasks, tile_grid

if TYPE_CHECKING:
    import numpy.typing as npt

    from matmulverify.parallel.comm import Communicator

logger = logging.getLogger(__name__)


def check_inner_dimensions(a_shape: tuple[int, ...], b_shape: tuple[int, ...]) -> None:
    """
    Raises:
        DimensionMismatchError: If the column count of A differs from the row count of B.
    """
    if a_shape[1] != b_shape[0]:
        raise DimensionMismatchError(
            f"Matrix dimensions incompatible for multiplication: "
            f"{a_shape[0]}x{a_shape[1]} @ {b_shape[0]}x{b_shape[1]}"
        )


def _check_arrays(a: npt.NDArray[np.float64], b: npt.NDArray[np.float64]) -> None:
    check_inner_dimensions(a.shape, b.shape)


def _options(opt: Optional[OptimizationOptions]) -> OptimizationOptions:
    return opt if opt is not None else OptimizationOptions()


@register_variant(Algorithm.NAIVE, ExecutionMode.SEQUENTIAL)
def sequential(A: Matrix, B: Matrix, opt: Optional[OptimizationOptions] = None) -> Matrix:
    """
    Single-threaded product.

    Args:
        A: Left operand (m x k).
        B: Right operand (k x n).
        opt: Loop options; blocking uses `opt.block_size` tiles.

    Raises:
        DimensionMismatchError: If ``A.cols != B.rows``.

    Returns:
        The m x n product.
    """
    check_inner_dimensions(A.shape, B.shape)
    opt = _options(opt)

    C = Matrix(A.rows, B.cols)
    if opt.use_blocking:
        kernels.blocked_matmul(A.data, B.data, C.data, opt.block_size)
    else:
        kernels.naive_tile(A.data, B.data, C.data, 0, A.rows, 0, B.cols)
    return C


@register_variant(Algorithm.NAIVE, ExecutionMode.SHARED_MEMORY)
def shared(
    A: Matrix,
    B: Matrix,
    opt: Optional[OptimizationOptions] = None,
    threads: int = 1,
) -> Matrix:
    """
    Thread-parallel product.

    The (i, j) index space is cut into `opt.block_size` tiles that are handed
    to the pool one at a time. Each tile owns a disjoint region of C. With
    blocking, a tile runs all of its kk blocks itself, which keeps the
    ii > jj > kk accumulation order of the sequential variant.
    """
    check_inner_dimensions(A.shape, B.shape)
    opt = _options(opt)

    a, b = A.data, B.data
    C = Matrix(A.rows, B.cols)
    c = C.data

    if opt.use_blocking:
        tasks = [
            partial(kernels.blocked_tile, a, b, c, i0, i1, j0, j1, opt.block_size)
            for i0, i1, j0, j1 in tile_grid(A.rows, B.cols, opt.block_size)
        ]
    else:
        tasks = [
            partial(kernels.naive_tile, a, b, c, i0, i1, j0, j1)
            for i0, i1, j0, j1 in tile_grid(A.rows, B.cols, opt.block_size)
        ]

    run_tasks(tasks, threads, name="naive")
    return C


@register_variant(Algorithm.NAIVE, ExecutionMode.DISTRIBUTED)
def distributed(
    comm: Communicator,
    A: Optional[Matrix],
    B: Optional[Matrix],
    opt: Optional[OptimizationOptions] = None,
) -> Matrix:
    """Row-partitioned product; each rank runs the sequential variant on its slice."""
    opt = _options(opt)
    return row_partitioned(
        comm, A, B,
        multiply_slice=partial(sequential, opt=opt),
        check_operands=_check_arrays,
    )


@register_variant(Algorithm.NAIVE, ExecutionMode.HYBRID)
def hybrid(
    comm: Communicator,
    A: Optional[Matrix],
    B: Optional[Matrix],
    opt: Optional[OptimizationOptions] = None,
    threads: int = 1,
) -> Matrix:
    """Row-partitioned product; each rank runs the shared-memory variant on its slice."""
    opt = _options(opt)
    return row_partitioned(
        comm, A, B,
        multiply_slice=partial(shared, opt=opt, threads=threads),
        check_operands=_check_arrays,
    )
