import numpy as np
import pytest

from matmulverify.algorithms import registry
from matmulverify.config import Algorithm, Config, ExecutionMode, OptimizationOptions
from matmulverify.dispatch import multiply
from matmulverify.exceptions import DimensionMismatchError, InvalidAlgorithmModeCombinationError
from matmulverify.parallel.comm import LocalCluster

ABS_TOL = 1e-8
REL_TOL = 1e-5

ALL_COMPUTED_PAIRS = [
    (algorithm, mode)
    for algorithm in (Algorithm.NAIVE, Algorithm.STRASSEN)
    for mode in ExecutionMode
] + [(Algorithm.REFERENCE, ExecutionMode.SEQUENTIAL)]


def test_every_pair_is_registered():
    assert set(registry.list_pairs()) == set(ALL_COMPUTED_PAIRS)


@pytest.mark.parametrize("algorithm,mode", ALL_COMPUTED_PAIRS)
def test_dispatch_matches_numpy(random_matrix, algorithm, mode):
    A = random_matrix(20)
    B = random_matrix(20)
    config = Config(
        algorithm=algorithm,
        mode=mode,
        optimization=OptimizationOptions(strassen_threshold=4),
        thread_count=3,
        process_count=3,
    )
    result = multiply(A, B, config)
    np.testing.assert_allclose(result.data, A.data @ B.data, rtol=REL_TOL, atol=ABS_TOL)


def test_dispatch_uses_given_cluster(random_matrix):
    A = random_matrix(11)
    B = random_matrix(11)
    config = Config(mode=ExecutionMode.DISTRIBUTED, process_count=1)
    result = multiply(A, B, config, cluster=LocalCluster(4))
    np.testing.assert_allclose(result.data, A.data @ B.data, rtol=REL_TOL, atol=ABS_TOL)


@pytest.mark.parametrize(
    "mode",
    [ExecutionMode.SHARED_MEMORY, ExecutionMode.DISTRIBUTED, ExecutionMode.HYBRID],
)
def test_reference_only_supports_sequential(random_matrix, mode):
    config = Config(algorithm=Algorithm.REFERENCE, mode=mode)
    with pytest.raises(InvalidAlgorithmModeCombinationError):
        multiply(random_matrix(4), random_matrix(4), config)


def test_invalid_combination_is_a_lookup_error():
    with pytest.raises(LookupError):
        registry.get_variant(Algorithm.REFERENCE, ExecutionMode.HYBRID)


def test_reference_checks_dimensions(random_matrix):
    config = Config(algorithm=Algorithm.REFERENCE)
    with pytest.raises(DimensionMismatchError):
        multiply(random_matrix(3, 4), random_matrix(3, 4), config)


def test_reference_rectangular(random_matrix):
    A = random_matrix(5, 8)
    B = random_matrix(8, 3)
    result = multiply(A, B, Config(algorithm=Algorithm.REFERENCE))
    assert result.shape == (5, 3)
    assert result.data.flags["C_CONTIGUOUS"]
    np.testing.assert_allclose(result.data, A.data @ B.data, rtol=1e-12, atol=1e-12)


def test_duplicate_registration_is_rejected():
    with pytest.raises(ValueError):
        registry.register_variant(Algorithm.NAIVE, ExecutionMode.SEQUENTIAL)(lambda A, B, opt: None)
