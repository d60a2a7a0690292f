"""
matmulverify
============
Dense matrix products with several algorithms (naive, Strassen, BLAS
reference) under four execution models (sequential, shared-memory threads,
distributed process group, hybrid), plus a tolerance-based engine that
cross-validates their results.
"""
from matmulverify.config import (
    Algorithm,
    Config,
    DistributedBackend,
    ExecutionMode,
    OptimizationOptions,
)
from matmulverify.dispatch import multiply
from matmulverify.engine import RunOutcome, execute
from matmulverify.exceptions import (
    CollectiveAbortError,
    DimensionMismatchError,
    InsufficientSelectionError,
    InvalidAlgorithmModeCombinationError,
    MatmulError,
    NonSquareInputError,
)
from matmulverify.model import ComparisonResult, Matrix
from matmulverify.parallel.comm import LocalCluster, MPICluster
from matmulverify.parallel.partition import RowPartition
from matmulverify.verification import (
    SuiteReport,
    ValidationOutcome,
    run_suite,
    validate_against_reference,
)

__all__ = [
    "Algorithm",
    "CollectiveAbortError",
    "ComparisonResult",
    "Config",
    "DimensionMismatchError",
    "DistributedBackend",
    "ExecutionMode",
    "InsufficientSelectionError",
    "InvalidAlgorithmModeCombinationError",
    "LocalCluster",
    "MPICluster",
    "MatmulError",
    "Matrix",
    "NonSquareInputError",
    "OptimizationOptions",
    "RowPartition",
    "RunOutcome",
    "SuiteReport",
    "ValidationOutcome",
    "execute",
    "multiply",
    "run_suite",
    "validate_against_reference",
]
