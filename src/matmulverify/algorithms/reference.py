from __future__ import annotations

import logging

import numpy as np
from scipy.linalg import blas

from matmulverify.algorithms.naive import check_inner_dimensions
from matmulverify.algorithms.registry import register_variant
from matmulverify.config import REFERENCE_MODE, Algorithm
from matmulverify.model.matrix import Matrix

logger = logging.getLogger(__name__)


@register_variant(Algorithm.REFERENCE, REFERENCE_MODE)
def multiply(A: Matrix, B: Matrix, opt: object = None) -> Matrix:
    """
    Product computed by the optimized BLAS `dgemm` linked into SciPy.

    C = 1.0 * A @ B + 0.0 * C, no transposition. Used as ground truth by the
    verification engine; `opt` is accepted for a uniform calling convention
    and ignored.

    Raises:
        DimensionMismatchError: If ``A.cols != B.rows``.
    """
    check_inner_dimensions(A.shape, B.shape)
    if A.size == 0 or B.size == 0:
        return Matrix(A.rows, B.cols)

    product = blas.dgemm(alpha=1.0, a=A.data, b=B.data, beta=0.0, trans_a=0, trans_b=0)
    # dgemm hands back a Fortran-ordered array
    return Matrix.from_array(np.ascontiguousarray(product))
