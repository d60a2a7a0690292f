"""
Algorithm Dispatcher
====================
Routes an (algorithm, execution mode) pair to the registered variant.

Distributed and hybrid variants are launched on a process group: the one
passed in, or one built from `Config.backend` / `Config.process_count`.
"""
from __future__ import annotations

import logging
from typing import Optional

# Importing the package registers every variant
import matmulverify.algorithms  # noqa: F401
from matmulverify.algorithms.registry import get_variant
from matmulverify.config import Config, ExecutionMode, algorithm_label, mode_label
from matmulverify.model.matrix import Matrix
from matmulverify.parallel.comm import Cluster, create_cluster

logger = logging.getLogger(__name__)


def multiply(
    A: Matrix,
    B: Matrix,
    config: Config,
    cluster: Optional[Cluster] = None,
) -> Matrix:
    """
    Compute A @ B with the algorithm and execution mode selected in `config`.

    Args:
        A: Left operand.
        B: Right operand.
        config: Run configuration (algorithm, mode, optimization, threads).
        cluster: Process group for the distributed and hybrid modes.

    Raises:
        InvalidAlgorithmModeCombinationError: If no variant implements the pair.
        DimensionMismatchError: If the operands cannot be multiplied.
        NonSquareInputError: If Strassen gets non-square operands.

    Returns:
        The product.
    """
    variant = get_variant(config.algorithm, config.mode)
    logger.debug(
        "Dispatching %s / %s on %dx%d @ %dx%d",
        algorithm_label(config.algorithm), mode_label(config.mode),
        A.rows, A.cols, B.rows, B.cols,
    )

    opt = config.optimization
    if config.mode == ExecutionMode.SEQUENTIAL:
        return variant(A, B, opt)
    if config.mode == ExecutionMode.SHARED_MEMORY:
        return variant(A, B, opt, config.thread_count)

    if cluster is None:
        cluster = create_cluster(config.backend, config.process_count)
    if config.mode == ExecutionMode.DISTRIBUTED:
        return cluster.run(variant, A, B, opt)
    return cluster.run(variant, A, B, opt, config.thread_count)
