from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class ComparisonResult:
    """
    Summary of an elementwise comparison between two equally shaped matrices.

    `failure_rate` is a percentage. `worst_*` describe the element with the
    largest absolute error (first occurrence in row-major order); the location
    is (-1, -1) when no element differs.
    """
    passed: bool
    max_abs_error: float
    mean_abs_error: float
    max_rel_error: float
    mean_rel_error: float
    rms_error: float
    num_elements: int
    num_failures: int
    failure_rate: float
    worst_row: int
    worst_col: int
    worst_value_this: float
    worst_value_other: float
    abs_tolerance: float
    rel_tolerance: float

    @property
    def worst_difference(self) -> float:
        return self.worst_value_this - self.worst_value_other

    @classmethod
    def shape_mismatch(cls, abs_tol: float, rel_tol: float) -> ComparisonResult:
        """Failing result with zeroed statistics."""
        return cls(
            passed=False,
            max_abs_error=0.0,
            mean_abs_error=0.0,
            max_rel_error=0.0,
            mean_rel_error=0.0,
            rms_error=0.0,
            num_elements=0,
            num_failures=0,
            failure_rate=0.0,
            worst_row=-1,
            worst_col=-1,
            worst_value_this=0.0,
            worst_value_other=0.0,
            abs_tolerance=abs_tol,
            rel_tolerance=rel_tol,
        )


def compare_arrays(
    this: npt.NDArray[np.float64],
    other: npt.NDArray[np.float64],
    abs_tol: float,
    rel_tol: float,
) -> ComparisonResult:
    """
    Compare two 2-D arrays with a combined absolute + relative tolerance.

    An element pair (a, b) fails when |a - b| > max(abs_tol, rel_tol * max(|a|, |b|)).
    Pairs whose error is undefined (NaN, e.g. inf - inf or NaN inputs) are
    neither failures nor candidates for the worst element, and contribute 0
    to the error statistics.

    Args:
        this: Left operand; its values are reported as `worst_value_this`.
        other: Right operand.
        abs_tol: Absolute tolerance floor.
        rel_tol: Tolerance relative to the larger magnitude of the pair.

    Returns:
        The comparison summary. Shape mismatch yields a failing result with
        zeroed statistics instead of raising.
    """
    this = np.asarray(this, dtype=np.float64)
    other = np.asarray(other, dtype=np.float64)

    if this.shape != other.shape:
        return ComparisonResult.shape_mismatch(abs_tol, rel_tol)

    num_elements = int(this.size)
    if num_elements == 0:
        return replace(ComparisonResult.shape_mismatch(abs_tol, rel_tol), passed=True)

    with np.errstate(invalid="ignore"):
        abs_error = np.abs(this - other)
    abs_error[np.isnan(abs_error)] = 0.0
    scale = np.maximum(np.abs(this), np.abs(other))
    with np.errstate(divide="ignore", invalid="ignore"):
        rel_error = np.where(scale > 0.0, abs_error / scale, 0.0)
        rel_error[np.isnan(rel_error)] = 0.0
        tolerance = np.maximum(abs_tol, rel_tol * scale)
        num_failures = int(np.count_nonzero(abs_error > tolerance))

    # argmax returns the first maximum, i.e. ties keep the earliest element
    worst = int(np.argmax(abs_error))
    max_abs_error = float(abs_error.flat[worst])
    if max_abs_error == 0.0:
        worst_row, worst_col = -1, -1
        worst_this, worst_other = 0.0, 0.0
    else:
        worst_row, worst_col = divmod(worst, this.shape[1])
        worst_this = float(this.flat[worst])
        worst_other = float(other.flat[worst])

    return ComparisonResult(
        passed=num_failures == 0,
        max_abs_error=max_abs_error,
        mean_abs_error=float(abs_error.sum() / num_elements),
        max_rel_error=float(rel_error.max()),
        mean_rel_error=float(rel_error.sum() / num_elements),
        rms_error=float(np.sqrt(np.square(abs_error).sum() / num_elements)),
        num_elements=num_elements,
        num_failures=num_failures,
        failure_rate=100.0 * num_failures / num_elements,
        worst_row=int(worst_row),
        worst_col=int(worst_col),
        worst_value_this=worst_this,
        worst_value_other=worst_other,
        abs_tolerance=abs_tol,
        rel_tolerance=rel_tol,
    )
