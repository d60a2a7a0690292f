# kernels.py
from __future__ import annotations

import numpy as np
import numpy.typing as npt
import numba as nb

# ---- JIT'd triple loops ----
# All kernels write into `c` in place and touch only the rows [i0, i1) and the
# columns [j0, j1), so tiles handed to different threads never overlap.
# nogil lets the shared-memory variants run them concurrently.


@nb.njit(cache=True, nogil=True)
def naive_tile(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    i0: int,
    i1: int,
    j0: int,
    j1: int,
) -> None:
    """C(i, j) = sum_k A(i, k) * B(k, j) over the tile, accumulator starting at 0."""
    k = a.shape[1]
    for i in range(i0, i1):
        for j in range(j0, j1):
            total = 0.0
            for p in range(k):
                total += a[i, p] * b[p, j]
            c[i, j] = total


@nb.njit(cache=True, nogil=True)
def blocked_tile(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    i0: int,
    i1: int,
    j0: int,
    j1: int,
    block_size: int,
) -> None:
    """
    Accumulate the (i0:i1, j0:j1) tile of A @ B into C, one kk block at a time.

    Every kk block of the tile runs here, consecutively, before control goes
    back to the caller. Each block reads the current C(i, j), adds its slice
    of the inner product and writes it back, so C must start at zero.
    """
    k = a.shape[1]
    for kk in range(0, k, block_size):
        k_max = min(kk + block_size, k)
        for i in range(i0, i1):
            for j in range(j0, j1):
                total = c[i, j]
                for p in range(kk, k_max):
                    total += a[i, p] * b[p, j]
                c[i, j] = total


@nb.njit(cache=True, nogil=True)
def blocked_matmul(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    block_size: int,
) -> None:
    """Cache-blocked product, block origins nested ii > jj > kk."""
    m = a.shape[0]
    n = b.shape[1]
    for ii in range(0, m, block_size):
        i_max = min(ii + block_size, m)
        for jj in range(0, n, block_size):
            j_max = min(jj + block_size, n)
            blocked_tile(a, b, c, ii, i_max, jj, j_max, block_size)
