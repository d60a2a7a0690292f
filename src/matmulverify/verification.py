"""
Verification Engine
===================
Cross-checks the numerical agreement of the multiply variants.

Why is this file needed?
------------------------
1. Ground truth: `validate_against_reference` compares one result with the
   BLAS reference product.
2. Cross-validation: `run_suite` runs several algorithms on the same inputs
   and compares every pair of results.

The engine only produces values (ComparisonResult, ValidationOutcome,
SuiteReport); formatting them for humans is the caller's job.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, Optional

from matmulverify.algorithms import reference
from matmulverify.config import (
    DEFAULT_ABS_TOLERANCE,
    DEFAULT_REL_TOLERANCE,
    REFERENCE_MODE,
    Algorithm,
    Config,
    ExecutionMode,
    algorithm_label,
    mode_label,
)
from matmulverify.dispatch import multiply
from matmulverify.exceptions import InsufficientSelectionError
from matmulverify.model.comparison import ComparisonResult
from matmulverify.model.matrix import Matrix
from matmulverify.parallel.comm import Cluster

logger = logging.getLogger(__name__)

MIN_SUITE_ALGORITHMS = 2


@dataclass(frozen=True)
class ValidationOutcome:
    algorithm: Algorithm
    passed: bool
    comparison: ComparisonResult


@dataclass(frozen=True)
class AlgorithmRun:
    """Result of one algorithm inside a suite and the wall time it took (seconds)."""
    algorithm: Algorithm
    mode: ExecutionMode
    result: Matrix
    elapsed: float


@dataclass(frozen=True)
class PairwiseComparison:
    first: Algorithm
    second: Algorithm
    comparison: ComparisonResult

    @property
    def passed(self) -> bool:
        return self.comparison.passed


@dataclass(frozen=True)
class SuiteReport:
    mode: ExecutionMode
    runs: tuple[AlgorithmRun, ...]
    comparisons: tuple[PairwiseComparison, ...]

    @property
    def passed(self) -> bool:
        """True iff every pairwise comparison passed."""
        return all(pair.passed for pair in self.comparisons)

    @property
    def elapsed(self) -> dict[Algorithm, float]:
        return {run.algorithm: run.elapsed for run in self.runs}

    @property
    def failures(self) -> list[PairwiseComparison]:
        return [pair for pair in self.comparisons if not pair.passed]


def validate_against_reference(
    result: Matrix,
    A: Matrix,
    B: Matrix,
    algorithm: Algorithm,
    abs_tol: float = DEFAULT_ABS_TOLERANCE,
    rel_tol: float = DEFAULT_REL_TOLERANCE,
) -> ValidationOutcome:
    """
    Check a product against the BLAS reference.

    Args:
        result: The product to validate.
        A: Left operand it was computed from.
        B: Right operand it was computed from.
        algorithm: Algorithm that produced `result` (for reporting).
        abs_tol: Absolute tolerance.
        rel_tol: Relative tolerance.

    Returns:
        Pass/fail and the full comparison (`result` is the "this" side).
    """
    logger.info("Computing reference result...")
    expected = reference.multiply(A, B)

    logger.info("Comparing %s vs %s...", algorithm_label(algorithm), algorithm_label(Algorithm.REFERENCE))
    comparison = result.compare(expected, abs_tol, rel_tol)
    if not comparison.passed:
        logger.warning(
            "%s differs from the reference in %d of %d element(s) (max abs error %.3e)",
            algorithm_label(algorithm), comparison.num_failures,
            comparison.num_elements, comparison.max_abs_error,
        )
    return ValidationOutcome(algorithm=algorithm, passed=comparison.passed, comparison=comparison)


def run_suite(
    A: Matrix,
    B: Matrix,
    algorithms: Iterable[Algorithm],
    config: Config,
    cluster: Optional[Cluster] = None,
) -> SuiteReport:
    """
    Run several algorithms on the same inputs and compare every pair of results.

    Every algorithm runs once in `config.mode`, except the reference engine,
    which only has its sequential path. Thread count, optimization options
    and tolerances come from `config`.

    Args:
        A: Left operand.
        B: Right operand.
        algorithms: Algorithms to run; duplicates are ignored.
        config: Shared run configuration.
        cluster: Process group for the distributed and hybrid modes.

    Raises:
        InsufficientSelectionError: If fewer than two distinct algorithms are given.

    Returns:
        The runs and all pairwise comparisons.
    """
    selected = list(dict.fromkeys(Algorithm(a) for a in algorithms))
    if len(selected) < MIN_SUITE_ALGORITHMS:
        raise InsufficientSelectionError(
            f"A verification suite needs at least {MIN_SUITE_ALGORITHMS} algorithms, got {len(selected)}."
        )

    logger.info(
        "Verification suite: %dx%d, algorithms [%s], mode %s",
        A.rows, A.cols, ", ".join(algorithm_label(a) for a in selected), mode_label(config.mode),
    )

    runs: list[AlgorithmRun] = []
    for algorithm in selected:
        run_config = config.with_algorithm(algorithm)
        if algorithm == Algorithm.REFERENCE:
            run_config.mode = REFERENCE_MODE

        logger.info("Running %s...", algorithm_label(algorithm))
        start = time.perf_counter()
        result = multiply(A, B, run_config, cluster)
        elapsed = time.perf_counter() - start
        logger.info("  %s took %.6f s", algorithm_label(algorithm), elapsed)

        runs.append(AlgorithmRun(algorithm=algorithm, mode=run_config.mode, result=result, elapsed=elapsed))

    comparisons = []
    for first, second in combinations(runs, 2):
        comparison = first.result.compare(second.result, config.abs_tolerance, config.rel_tolerance)
        if not comparison.passed:
            logger.warning(
                "%s vs %s: %d failure(s), max abs error %.3e at [%d, %d]",
                algorithm_label(first.algorithm), algorithm_label(second.algorithm),
                comparison.num_failures, comparison.max_abs_error,
                comparison.worst_row, comparison.worst_col,
            )
        comparisons.append(PairwiseComparison(first.algorithm, second.algorithm, comparison))

    report = SuiteReport(mode=config.mode, runs=tuple(runs), comparisons=tuple(comparisons))
    logger.info("Verification suite %s", "passed" if report.passed else "FAILED")
    return report
