from __future__ import annotations

from typing import Callable

from matmulverify.config import Algorithm, ExecutionMode, algorithm_label, mode_label
from matmulverify.exceptions import InvalidAlgorithmModeCombinationError

Variant = Callable[..., object]

_REGISTRY: dict[tuple[Algorithm, ExecutionMode], Variant] = {}


def register_variant(algorithm: Algorithm, mode: ExecutionMode) -> Callable[[Variant], Variant]:
    """
    Function decorator to register a multiply variant for an (algorithm, mode) pair.

    The calling convention depends on the mode:
        SEQUENTIAL:    fn(A, B, optimization)
        SHARED_MEMORY: fn(A, B, optimization, threads)
        DISTRIBUTED:   fn(comm, A, B, optimization)
        HYBRID:        fn(comm, A, B, optimization, threads)
    """
    def decorator(fn: Variant) -> Variant:
        key = (algorithm, mode)
        if key in _REGISTRY:
            raise ValueError(f"A variant is already registered for {algorithm.value}/{mode.value}")
        _REGISTRY[key] = fn
        return fn
    return decorator


def get_variant(algorithm: Algorithm, mode: ExecutionMode) -> Variant:
    fn = _REGISTRY.get((algorithm, mode))
    if fn is None:
        raise InvalidAlgorithmModeCombinationError(
            f"No implementation of {algorithm_label(algorithm)} for mode '{mode_label(mode)}'"
        )
    return fn


def list_pairs() -> list[tuple[Algorithm, ExecutionMode]]:
    return list(_REGISTRY.keys())
