"""
Shared-Memory Worker Pool
=========================
Helpers for fanning independent work out to a fixed-size thread pool.

Tasks are submitted one by one, so idle workers pick up the next pending task
(dynamic scheduling). Callers are responsible for giving every task a
disjoint output region; no locking is done here. The pool joins when the
`with` block exits, and the first task exception is re-raised to the caller.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def tile_grid(rows: int, cols: int, tile: int) -> Iterator[tuple[int, int, int, int]]:
    """
    Yield the tiles ``(i0, i1, j0, j1)`` covering a rows x cols index space.

    Tiles are emitted row of tiles by row of tiles; edge tiles are clipped.
    """
    for ii in range(0, rows, tile):
        for jj in range(0, cols, tile):
            yield ii, min(ii + tile, rows), jj, min(jj + tile, cols)


def run_tasks(tasks: Sequence[Callable[[], T]], workers: int, name: str = "pool") -> list[T]:
    """
    Run callables on a pool of `workers` threads and return their results in order.

    Args:
        tasks: Zero-argument callables.
        workers: Pool size; a pool larger than the task count is not created.
        name: Thread name prefix (shows up in log records).

    Returns:
        The results, in the order of `tasks`.
    """
    if not tasks:
        return []
    workers = max(1, min(workers, len(tasks)))
    logger.debug("Dispatching %d task(s) to %d '%s' worker(s)", len(tasks), workers, name)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name) as executor:
        futures = [executor.submit(task) for task in tasks]
        return [future.result() for future in futures]
