"""
Error kinds raised by the multiply-and-verify core.

None of them is retried internally; they propagate to the caller.
"""


class MatmulError(Exception):
    """Base class for all errors raised by matmulverify."""


class DimensionMismatchError(MatmulError, ValueError):
    """Operand shapes are incompatible (inner dimensions or elementwise shapes)."""


class NonSquareInputError(MatmulError, ValueError):
    """Strassen was given non-square operands or operands of different size."""


class InvalidAlgorithmModeCombinationError(MatmulError, LookupError):
    """No variant is registered for the requested (algorithm, mode) pair."""


class InsufficientSelectionError(MatmulError, ValueError):
    """A verification suite needs at least two algorithms."""


class CollectiveAbortError(MatmulError, RuntimeError):
    """A collective operation was torn down because a peer rank failed."""
