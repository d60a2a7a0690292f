import pytest

from matmulverify.algorithms import naive
from matmulverify.config import Algorithm, Config, ExecutionMode, OptimizationOptions
from matmulverify.exceptions import InsufficientSelectionError
from matmulverify.parallel.comm import LocalCluster
from matmulverify.verification import run_suite, validate_against_reference


def test_naive_vs_strassen_suite_passes(random_matrix):
    A = random_matrix(16)
    B = random_matrix(16)
    config = Config(optimization=OptimizationOptions(strassen_threshold=2))
    report = run_suite(A, B, [Algorithm.NAIVE, Algorithm.STRASSEN], config)

    assert report.passed
    assert len(report.runs) == 2
    assert len(report.comparisons) == 1
    pair = report.comparisons[0]
    assert (pair.first, pair.second) == (Algorithm.NAIVE, Algorithm.STRASSEN)
    assert pair.comparison.abs_tolerance == config.abs_tolerance
    assert pair.comparison.rel_tolerance == config.rel_tolerance
    assert set(report.elapsed) == {Algorithm.NAIVE, Algorithm.STRASSEN}
    assert all(elapsed >= 0.0 for elapsed in report.elapsed.values())


def test_three_algorithms_give_three_pairs(random_matrix):
    A = random_matrix(24)
    B = random_matrix(24)
    config = Config(mode=ExecutionMode.SHARED_MEMORY, thread_count=2)
    report = run_suite(A, B, [Algorithm.NAIVE, Algorithm.STRASSEN, Algorithm.REFERENCE], config)

    assert report.passed
    assert [(p.first, p.second) for p in report.comparisons] == [
        (Algorithm.NAIVE, Algorithm.STRASSEN),
        (Algorithm.NAIVE, Algorithm.REFERENCE),
        (Algorithm.STRASSEN, Algorithm.REFERENCE),
    ]
    modes = {run.algorithm: run.mode for run in report.runs}
    assert modes[Algorithm.REFERENCE] == ExecutionMode.SEQUENTIAL
    assert modes[Algorithm.NAIVE] == ExecutionMode.SHARED_MEMORY


def test_suite_in_distributed_mode(random_matrix):
    A = random_matrix(15)
    B = random_matrix(15)
    config = Config(mode=ExecutionMode.DISTRIBUTED)
    report = run_suite(A, B, [Algorithm.NAIVE, Algorithm.STRASSEN], config, cluster=LocalCluster(3))
    assert report.passed


def test_suite_reports_failure_with_tight_tolerances(random_matrix):
    A = random_matrix(16)
    B = random_matrix(16)
    config = Config(
        abs_tolerance=1e-300,
        rel_tolerance=1e-300,
        optimization=OptimizationOptions(strassen_threshold=1),
    )
    report = run_suite(A, B, [Algorithm.NAIVE, Algorithm.STRASSEN], config)
    assert not report.passed
    assert report.failures == list(report.comparisons)


@pytest.mark.parametrize("algorithms", [[], [Algorithm.NAIVE], [Algorithm.NAIVE, Algorithm.NAIVE]])
def test_suite_needs_two_distinct_algorithms(random_matrix, algorithms):
    with pytest.raises(InsufficientSelectionError):
        run_suite(random_matrix(4), random_matrix(4), algorithms, Config())


def test_validate_against_reference_passes_for_correct_result(random_matrix):
    A = random_matrix(12, 9)
    B = random_matrix(9, 7)
    outcome = validate_against_reference(naive.sequential(A, B), A, B, Algorithm.NAIVE)
    assert outcome.passed
    assert outcome.algorithm == Algorithm.NAIVE
    assert outcome.comparison.num_elements == 84


def test_validate_against_reference_detects_corruption(random_matrix):
    A = random_matrix(10)
    B = random_matrix(10)
    result = naive.sequential(A, B)
    result[3, 4] = result[3, 4] + 1.0
    outcome = validate_against_reference(result, A, B, Algorithm.NAIVE)
    assert not outcome.passed
    assert outcome.comparison.num_failures == 1
    assert (outcome.comparison.worst_row, outcome.comparison.worst_col) == (3, 4)
    assert outcome.comparison.worst_difference == pytest.approx(1.0)


def test_validate_against_reference_shape_mismatch(random_matrix):
    A = random_matrix(4)
    B = random_matrix(4)
    outcome = validate_against_reference(random_matrix(3), A, B, Algorithm.STRASSEN)
    assert not outcome.passed
    assert outcome.comparison.num_elements == 0
