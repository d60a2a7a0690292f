from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from matmulverify.config import DEFAULT_ABS_TOLERANCE, DEFAULT_REL_TOLERANCE
from matmulverify.exceptions import DimensionMismatchError, NonSquareInputError
from matmulverify.model.comparison import ComparisonResult, compare_arrays

if TYPE_CHECKING:
    import numpy.typing as npt


class Matrix:
    """
    Dense row-major matrix of float64 values.

    The matrix exclusively owns a C-contiguous buffer, so the element (r, c)
    lives at flat index ``r * cols + c``. Nothing else holds a reference to the
    buffer unless the caller takes one through `data`.
    """

    def __init__(self, rows: int = 0, cols: Optional[int] = None) -> None:
        """
        Create a zero-filled matrix.

        Args:
            rows: Number of rows.
            cols: Number of columns, defaults to `rows` (square matrix).
        """
        if cols is None:
            cols = rows
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got {rows}x{cols}.")
        self._data: npt.NDArray[np.float64] = np.zeros((rows, cols), dtype=np.float64)

    @classmethod
    def from_array(cls, array: npt.ArrayLike) -> Matrix:
        """Deep copy of a 2-D array-like."""
        data = np.array(array, dtype=np.float64, order="C", copy=True)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2-D array, got {data.ndim} dimension(s).")
        return cls._wrap(data)

    @classmethod
    def _wrap(cls, data: npt.NDArray[np.float64]) -> Matrix:
        """Adopt an already owned, C-contiguous float64 buffer without copying."""
        matrix = cls.__new__(cls)
        matrix._data = data
        return matrix

    @classmethod
    def identity(cls, size: int) -> Matrix:
        matrix = cls(size, size)
        matrix.set_identity()
        return matrix

    @classmethod
    def random(
        cls,
        rows: int,
        cols: Optional[int] = None,
        low: float = 0.0,
        high: float = 1.0,
        rng: Optional[np.random.Generator] = None,
    ) -> Matrix:
        matrix = cls(rows, cols)
        matrix.randomize(low, high, rng)
        return matrix

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rows={self.rows}, cols={self.cols})"

    # ------------------------------------------------------------------
    # Dimensions and element access
    # ------------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self._data.shape

    @property
    def size(self) -> int:
        """Number of stored elements (rows * cols)."""
        return self._data.size

    @property
    def is_square(self) -> bool:
        return self.rows == self.cols

    @property
    def data(self) -> npt.NDArray[np.float64]:
        """The owned row-major buffer (not a copy)."""
        return self._data

    def __getitem__(self, index: tuple[int, int]) -> float:
        return float(self._data[index])

    def __setitem__(self, index: tuple[int, int], value: float) -> None:
        self._data[index] = value

    def __array__(self, dtype=None, copy=None):
        if dtype is None or np.dtype(dtype) == self._data.dtype:
            return self._data.copy() if copy else self._data
        if copy is False:
            raise ValueError(f"Cannot view a float64 matrix as {np.dtype(dtype)} without copying.")
        return self._data.astype(dtype)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    def copy(self) -> Matrix:
        return Matrix._wrap(self._data.copy())

    def move(self) -> Matrix:
        """
        Transfer the buffer to a new Matrix.

        Returns:
            A matrix owning this matrix's former buffer. This matrix is left
            as an empty 0x0 matrix.
        """
        moved = Matrix._wrap(self._data)
        self._data = np.zeros((0, 0), dtype=np.float64)
        return moved

    # ------------------------------------------------------------------
    # In-place initialisation
    # ------------------------------------------------------------------
    def fill(self, value: float) -> None:
        self._data.fill(value)

    def zero(self) -> None:
        self.fill(0.0)

    def set_identity(self) -> None:
        if not self.is_square:
            raise NonSquareInputError(f"Identity matrix must be square, got {self.rows}x{self.cols}.")
        self.zero()
        np.fill_diagonal(self._data, 1.0)

    def randomize(
        self,
        low: float = 0.0,
        high: float = 1.0,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Fill with values drawn uniformly from [low, high)."""
        rng = rng if rng is not None else np.random.default_rng()
        self._data[...] = rng.uniform(low, high, size=self.shape)

    # ------------------------------------------------------------------
    # Submatrices
    # ------------------------------------------------------------------
    def submatrix(self, row_start: int, col_start: int, row_end: int, col_end: int) -> Matrix:
        """Deep copy of the half-open region [row_start, row_end) x [col_start, col_end)."""
        return Matrix._wrap(self._data[row_start:row_end, col_start:col_end].copy())

    def set_submatrix(self, row_start: int, col_start: int, sub: Matrix) -> None:
        """Overwrite the region starting at (row_start, col_start) with `sub`."""
        self._data[row_start:row_start + sub.rows, col_start:col_start + sub.cols] = sub.data

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------
    def _check_same_shape(self, other: Matrix, operation: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatchError(
                f"Matrix dimensions must match for {operation}: "
                f"{self.rows}x{self.cols} vs {other.rows}x{other.cols}."
            )

    def __add__(self, other: Matrix) -> Matrix:
        self._check_same_shape(other, "addition")
        return Matrix._wrap(self._data + other.data)

    def __sub__(self, other: Matrix) -> Matrix:
        self._check_same_shape(other, "subtraction")
        return Matrix._wrap(self._data - other.data)

    def __iadd__(self, other: Matrix) -> Matrix:
        self._check_same_shape(other, "addition")
        self._data += other.data
        return self

    def __isub__(self, other: Matrix) -> Matrix:
        self._check_same_shape(other, "subtraction")
        self._data -= other.data
        return self

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------
    def equals(self, other: Matrix, epsilon: float = 1e-9) -> bool:
        """Strict elementwise check |a - b| <= epsilon; False on shape mismatch."""
        if self.shape != other.shape:
            return False
        return bool(np.all(np.abs(self._data - other.data) <= epsilon))

    def compare(
        self,
        other: Matrix,
        abs_tol: float = DEFAULT_ABS_TOLERANCE,
        rel_tol: float = DEFAULT_REL_TOLERANCE,
    ) -> ComparisonResult:
        """
        Compare against `other` with a combined absolute + relative tolerance.

        Args:
            other: Matrix to compare with; reported as the "other" side.
            abs_tol: Absolute tolerance.
            rel_tol: Relative tolerance.

        Returns:
            Detailed diagnostics. A shape mismatch gives a failing result
            rather than an exception.
        """
        return compare_arrays(self._data, other.data, abs_tol, rel_tol)
