"""
Run Configuration & Global Constants
====================================
This module serves as the central registry for the knobs a multiplication run
is driven by.

Why is this file needed?
------------------------
1. Single source of truth: default tolerances, block size and the Strassen
   base-case threshold are defined once and shared by every variant.
2. Validation: the dataclasses reject non-positive sizes and tolerances at
   construction time, so the algorithms never see a nonsensical value.
3. Decoupling: menus, CLIs or notebooks build a `Config` (or a plain mapping)
   and hand it to the core; the core never prompts for anything itself.

Exports:
    Algorithm, ExecutionMode, DistributedBackend: Selection enums.
    OptimizationOptions: Loop-level tuning (cache blocking, Strassen cutoff).
    Config: Everything a single run needs.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Mapping


# Global Constants
DEFAULT_ABS_TOLERANCE: float = 1e-8
DEFAULT_REL_TOLERANCE: float = 1e-5
DEFAULT_BLOCK_SIZE: int = 64
STRASSEN_THRESHOLD: int = 64
STRASSEN_PRODUCTS: int = 7
ROOT_RANK: int = 0


class Algorithm(StrEnum):
    NAIVE = "naive"
    STRASSEN = "strassen"
    REFERENCE = "reference"


class ExecutionMode(StrEnum):
    SEQUENTIAL = "sequential"
    SHARED_MEMORY = "shared-memory"
    DISTRIBUTED = "distributed"
    HYBRID = "hybrid"


class DistributedBackend(StrEnum):
    """Transport used for the DISTRIBUTED and HYBRID modes."""
    LOCAL = "local"
    MPI = "mpi"


ALGORITHM_LABELS: dict[Algorithm, str] = {
    Algorithm.NAIVE: "Naive",
    Algorithm.STRASSEN: "Strassen",
    Algorithm.REFERENCE: "Reference (BLAS)",
}

MODE_LABELS: dict[ExecutionMode, str] = {
    ExecutionMode.SEQUENTIAL: "Sequential",
    ExecutionMode.SHARED_MEMORY: "Shared memory (threads)",
    ExecutionMode.DISTRIBUTED: "Distributed",
    ExecutionMode.HYBRID: "Hybrid (distributed + threads)",
}

# The reference engine has a single supported execution path.
REFERENCE_MODE: ExecutionMode = ExecutionMode.SEQUENTIAL


def algorithm_label(algorithm: Algorithm) -> str:
    return ALGORITHM_LABELS.get(algorithm, "Unknown")


def mode_label(mode: ExecutionMode) -> str:
    return MODE_LABELS.get(mode, "Unknown")


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"'{name}' must be positive, got {value!r}.")


@dataclass
class OptimizationOptions:
    """
    Loop-level tuning shared by the naive and Strassen families.

    Attributes:
        use_blocking: Traverse the product in cache-sized tiles.
        block_size: Edge length of a tile (also the task granularity of the
            shared-memory naive variant).
        strassen_threshold: Largest size handled by the naive base case.
    """
    use_blocking: bool = False
    block_size: int = DEFAULT_BLOCK_SIZE
    strassen_threshold: int = STRASSEN_THRESHOLD

    def __post_init__(self) -> None:
        _require_positive("block_size", self.block_size)
        _require_positive("strassen_threshold", self.strassen_threshold)


@dataclass
class Config:
    """
    Configuration of one multiplication (or verification) run.

    The core only reads this object. `process_count` is honoured by the local
    backend; under MPI the group size comes from the launcher.
    """
    algorithm: Algorithm = Algorithm.NAIVE
    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    optimization: OptimizationOptions = field(default_factory=OptimizationOptions)

    # Parallelization parameters
    thread_count: int = 1
    process_count: int = 1
    backend: DistributedBackend = DistributedBackend.LOCAL

    matrix_size: int = 100

    # Verification options
    abs_tolerance: float = DEFAULT_ABS_TOLERANCE
    rel_tolerance: float = DEFAULT_REL_TOLERANCE
    validate_against_reference: bool = False
    verification_mode: bool = False
    verify_algorithms: list[Algorithm] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.algorithm = Algorithm(self.algorithm)
        self.mode = ExecutionMode(self.mode)
        self.backend = DistributedBackend(self.backend)
        self.verify_algorithms = [Algorithm(a) for a in self.verify_algorithms]
        if isinstance(self.optimization, Mapping):
            self.optimization = OptimizationOptions(**self.optimization)

        _require_positive("thread_count", self.thread_count)
        _require_positive("process_count", self.process_count)
        _require_positive("matrix_size", self.matrix_size)
        _require_positive("abs_tolerance", self.abs_tolerance)
        _require_positive("rel_tolerance", self.rel_tolerance)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Config:
        """
        Build a configuration from plain values (e.g. a parsed JSON document).

        Args:
            data: Keys named like the dataclass fields. Enum fields accept their
                string values, `optimization` accepts a nested mapping.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**dict(data))

    def with_algorithm(self, algorithm: Algorithm) -> Config:
        """Copy of this configuration targeting another algorithm."""
        return dataclasses.replace(self, algorithm=algorithm)

    @property
    def is_distributed(self) -> bool:
        return self.mode in (ExecutionMode.DISTRIBUTED, ExecutionMode.HYBRID)
