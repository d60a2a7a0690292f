from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RowPartition:
    """
    Contiguous, near-equal division of `total_rows` rows among `worker_count` workers.

    The first `remainder` workers own one extra row. Worker ``r`` owns the rows
    ``[offset(r), offset(r) + local_rows(r))``; when there are more workers
    than rows, the trailing workers own none.
    """
    total_rows: int
    worker_count: int

    def __post_init__(self) -> None:
        if self.worker_count < 1:
            raise ValueError(f"'worker_count' must be at least 1, got {self.worker_count}.")
        if self.total_rows < 0:
            raise ValueError(f"'total_rows' must be non-negative, got {self.total_rows}.")

    @property
    def rows_per_worker(self) -> int:
        return self.total_rows // self.worker_count

    @property
    def remainder(self) -> int:
        return self.total_rows % self.worker_count

    def local_rows(self, rank: int) -> int:
        """Number of rows owned by `rank`."""
        return self.rows_per_worker + (1 if rank < self.remainder else 0)

    def offset(self, rank: int) -> int:
        """Index of the first row owned by `rank`."""
        return rank * self.rows_per_worker + min(rank, self.remainder)

    def bounds(self, rank: int) -> tuple[int, int]:
        """Half-open row range ``(start, stop)`` owned by `rank`."""
        start = self.offset(rank)
        return start, start + self.local_rows(rank)

    def counts(self, row_width: int = 1) -> list[int]:
        """Per-worker element counts of a gathered matrix with `row_width` columns."""
        return [self.local_rows(rank) * row_width for rank in range(self.worker_count)]

    def displacements(self, row_width: int = 1) -> list[int]:
        """Per-worker element offsets into the gathered row-major buffer."""
        return [self.offset(rank) * row_width for rank in range(self.worker_count)]

    def byte_displacements(self, row_width: int = 1, itemsize: int = 8) -> list[int]:
        return [displacement * itemsize for displacement in self.displacements(row_width)]
