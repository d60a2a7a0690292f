"""
Row-partitioned driver shared by the distributed and hybrid variants of both
algorithm families.

Every rank runs `row_partitioned`: the root's operands are broadcast, each
rank multiplies its contiguous slice of A's rows by the full B, and the
slices are all-gathered back in row order, so every rank ends up holding the
complete product.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from matmulverify.model.matrix import Matrix
from matmulverify.parallel.partition import RowPartition

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

    from matmulverify.parallel.comm import Communicator

logger = logging.getLogger(__name__)

SliceMultiply = Callable[[Matrix, Matrix], Matrix]
OperandCheck = Callable[["npt.NDArray[np.float64]", "npt.NDArray[np.float64]"], None]


def row_partitioned(
    comm: Communicator,
    A: Optional[Matrix],
    B: Optional[Matrix],
    multiply_slice: SliceMultiply,
    check_operands: OperandCheck,
) -> Matrix:
    """
    Multiply A @ B across the process group by partitioning the rows of A.

    Args:
        comm: This rank's communicator.
        A: Left operand; only read on the root rank.
        B: Right operand; only read on the root rank.
        multiply_slice: Computes ``A_local @ B`` for this rank's row slice.
        check_operands: Validates the broadcast operands. It runs on every
            rank, so all ranks fail together.

    Returns:
        The full product, on every rank.
    """
    a = comm.bcast(A.data if comm.is_root else None)
    b = comm.bcast(B.data if comm.is_root else None)
    check_operands(a, b)

    total_rows, cols = a.shape[0], b.shape[1]
    partition = RowPartition(total_rows, comm.size)
    start, stop = partition.bounds(comm.rank)
    logger.debug("Rank %d/%d owns rows [%d, %d)", comm.rank, comm.size, start, stop)

    c_local = multiply_slice(Matrix.from_array(a[start:stop]), Matrix.from_array(b))

    gathered = comm.allgatherv(
        c_local.data,
        partition.counts(cols),
        partition.displacements(cols),
    )
    return Matrix.from_array(gathered.reshape(total_rows, cols))
