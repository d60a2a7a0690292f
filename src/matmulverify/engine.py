"""
Run Orchestration
=================
One configured run of the engine, as a menu or CLI front end would trigger it.

Depending on the configuration this either
1. runs the verification suite over `Config.verify_algorithms`, or
2. multiplies once (timed) and optionally validates the product against the
   reference engine.

Nothing is printed or written to disk here; the caller receives a RunOutcome.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from matmulverify.config import Config, algorithm_label, mode_label
from matmulverify.dispatch import multiply
from matmulverify.model.matrix import Matrix
from matmulverify.parallel.comm import Cluster
from matmulverify.verification import (
    SuiteReport,
    ValidationOutcome,
    run_suite,
    validate_against_reference,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOutcome:
    """
    Attributes:
        result: The product (None for a verification-suite run).
        elapsed: Wall time of the multiplication or of the whole suite, in seconds.
        validation: Reference check of `result`, when requested.
        suite: Suite report, for verification-mode runs.
    """
    result: Optional[Matrix]
    elapsed: float
    validation: Optional[ValidationOutcome] = None
    suite: Optional[SuiteReport] = None

    @property
    def passed(self) -> Optional[bool]:
        """Outcome of the validation or suite; None when nothing was checked."""
        if self.suite is not None:
            return self.suite.passed
        if self.validation is not None:
            return self.validation.passed
        return None


def execute(
    A: Matrix,
    B: Matrix,
    config: Config,
    cluster: Optional[Cluster] = None,
) -> RunOutcome:
    """
    Carry out the run described by `config`.

    Args:
        A: Left operand.
        B: Right operand.
        config: Run configuration.
        cluster: Process group for the distributed and hybrid modes.

    Returns:
        The outcome of the run.
    """
    if config.verification_mode:
        start = time.perf_counter()
        report = run_suite(A, B, config.verify_algorithms, config, cluster)
        return RunOutcome(result=None, elapsed=time.perf_counter() - start, suite=report)

    logger.info(
        "Computing %s product (%s), %dx%d @ %dx%d",
        algorithm_label(config.algorithm), mode_label(config.mode),
        A.rows, A.cols, B.rows, B.cols,
    )
    start = time.perf_counter()
    result = multiply(A, B, config, cluster)
    elapsed = time.perf_counter() - start
    logger.info("Multiplication finished in %.6f s", elapsed)

    validation = None
    if config.validate_against_reference:
        validation = validate_against_reference(
            result, A, B, config.algorithm,
            abs_tol=config.abs_tolerance,
            rel_tol=config.rel_tolerance,
        )
        if not validation.passed:
            logger.warning("Validation failed! Results differ from the reference.")

    return RunOutcome(result=result, elapsed=elapsed, validation=validation)
