import numpy as np
import pytest

from matmulverify.config import Algorithm, Config, ExecutionMode
from matmulverify.engine import execute
from matmulverify.model.matrix import Matrix


def test_plain_run_returns_product_and_time(random_matrix):
    A = random_matrix(10)
    B = random_matrix(10)
    outcome = execute(A, B, Config(algorithm=Algorithm.STRASSEN))
    np.testing.assert_allclose(outcome.result.data, A.data @ B.data, rtol=1e-5, atol=1e-8)
    assert outcome.elapsed >= 0.0
    assert outcome.validation is None
    assert outcome.suite is None
    assert outcome.passed is None


def test_run_with_reference_validation(random_matrix):
    A = random_matrix(12)
    B = random_matrix(12)
    config = Config(
        mode=ExecutionMode.HYBRID,
        thread_count=2,
        process_count=2,
        validate_against_reference=True,
    )
    outcome = execute(A, B, config)
    assert outcome.validation is not None
    assert outcome.validation.algorithm == Algorithm.NAIVE
    assert outcome.passed


def test_verification_mode_runs_suite(random_matrix):
    A = random_matrix(16)
    B = random_matrix(16)
    config = Config(
        verification_mode=True,
        verify_algorithms=[Algorithm.NAIVE, Algorithm.STRASSEN, Algorithm.REFERENCE],
    )
    outcome = execute(A, B, config)
    assert outcome.result is None
    assert outcome.suite is not None
    assert len(outcome.suite.comparisons) == 3
    assert outcome.passed


def test_identity_round_trip_through_engine():
    A = Matrix.from_array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
    config = Config.from_mapping({
        "algorithm": "strassen",
        "optimization": {"strassen_threshold": 1},
    })
    outcome = execute(A, Matrix.identity(3), config)
    np.testing.assert_array_equal(outcome.result.data, A.data)
