"""
Process Groups (Distributed Memory)
===================================
This module provides the fixed group of cooperating ranks the distributed and
hybrid variants run on.

Why is this file needed?
------------------------
1. Collectives: the variants need exactly two synchronization points, a
   broadcast of the inputs and a variable-length all-gather of the result
   slices. `Communicator` is that contract.
2. Transports: `MPICluster` runs on a real MPI job (one OS process per rank,
   launched with ``mpiexec``); `LocalCluster` runs P ranks as threads of the
   current process, which is what tests and single-host runs use.
3. Failure model: there is no retry, timeout or cancellation. A failing rank
   tears down the whole group (MPI Abort, or an aborted barrier locally).

Classes:
    Communicator: Per-rank handle (rank, size, bcast, allgatherv, barrier).
    LocalCluster: Thread-backed group of a given size.
    MPICluster: Wrapper around an mpi4py communicator.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, TypeVar

import numpy as np

from matmulverify.config import ROOT_RANK, DistributedBackend
from matmulverify.exceptions import CollectiveAbortError

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Communicator(ABC):
    """
    Handle one rank holds on its process group.

    All collectives are blocking: every rank of the group must call them in the
    same order.
    """

    @property
    @abstractmethod
    def rank(self) -> int:
        """Index of this rank within the group."""
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of ranks in the group."""
        pass

    @property
    def is_root(self) -> bool:
        return self.rank == ROOT_RANK

    @abstractmethod
    def bcast(self, array: Optional[npt.NDArray[np.float64]], root: int = ROOT_RANK) -> npt.NDArray[np.float64]:
        """
        Replicate `array` from `root` to every rank.

        Args:
            array: The payload on `root`; ignored (may be None) elsewhere.
            root: Rank that owns the payload.

        Returns:
            A private copy of the payload on every rank.
        """
        pass

    @abstractmethod
    def allgatherv(
        self,
        local: npt.NDArray[np.float64],
        counts: Sequence[int],
        displacements: Sequence[int],
    ) -> npt.NDArray[np.float64]:
        """
        Gather variable-length fragments into one flat buffer on every rank.

        Args:
            local: This rank's fragment, `counts[rank]` elements.
            counts: Element count contributed by each rank.
            displacements: Element offset of each rank's fragment in the result.

        Returns:
            The reassembled flat buffer.
        """
        pass

    @abstractmethod
    def barrier(self) -> None:
        pass


class Cluster(ABC):
    """Launcher that runs a rank function on every member of a process group."""

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    @abstractmethod
    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run ``fn(comm, *args, **kwargs)`` as every rank of the group.

        Returns:
            The value returned on this process's rank (the root rank for
            `LocalCluster`).
        """
        pass


# ----------------------------------------------------------------------
# Thread-backed group
# ----------------------------------------------------------------------
class _Rendezvous:
    """Shared state of one LocalCluster run: a barrier and one slot per rank."""

    def __init__(self, size: int) -> None:
        self.barrier = threading.Barrier(size)
        self.slots: list[Any] = [None] * size

    def wait(self) -> None:
        try:
            self.barrier.wait()
        except threading.BrokenBarrierError as e:
            raise CollectiveAbortError("Process group aborted by a failing rank.") from e

    def abort(self) -> None:
        self.barrier.abort()


class LocalCommunicator(Communicator):

    def __init__(self, rank: int, size: int, rendezvous: _Rendezvous) -> None:
        self._rank = rank
        self._size = size
        self._rendezvous = rendezvous

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rank={self._rank}, size={self._size})"

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._size

    def bcast(self, array: Optional[npt.NDArray[np.float64]], root: int = ROOT_RANK) -> npt.NDArray[np.float64]:
        slots = self._rendezvous.slots
        if self._rank == root:
            slots[root] = np.ascontiguousarray(array, dtype=np.float64)
        self._rendezvous.wait()
        received = np.array(slots[root], dtype=np.float64, copy=True)
        # Nobody may reuse the slot before every rank has copied it
        self._rendezvous.wait()
        return received

    def allgatherv(
        self,
        local: npt.NDArray[np.float64],
        counts: Sequence[int],
        displacements: Sequence[int],
    ) -> npt.NDArray[np.float64]:
        fragment = np.ascontiguousarray(local, dtype=np.float64).ravel()
        if fragment.size != counts[self._rank]:
            raise ValueError(
                f"Rank {self._rank} contributes {fragment.size} elements, expected {counts[self._rank]}."
            )
        slots = self._rendezvous.slots
        slots[self._rank] = fragment
        self._rendezvous.wait()

        total = max((d + c for d, c in zip(displacements, counts)), default=0)
        gathered = np.empty(total, dtype=np.float64)
        for rank in range(self._size):
            start = displacements[rank]
            gathered[start:start + counts[rank]] = slots[rank]
        self._rendezvous.wait()
        return gathered

    def barrier(self) -> None:
        self._rendezvous.wait()


class LocalCluster(Cluster):
    """
    Group of `size` ranks running as threads of this process.

    Each rank works on private copies of what it receives through the
    collectives, so the variants behave as they would on separate processes.
    """

    def __init__(self, size: int = 1) -> None:
        if size < 1:
            raise ValueError(f"Process group size must be at least 1, got {size}.")
        self._size = size

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={self._size})"

    @property
    def size(self) -> int:
        return self._size

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        rendezvous = _Rendezvous(self._size)
        results: list[Any] = [None] * self._size
        errors: list[Optional[BaseException]] = [None] * self._size

        def rank_main(rank: int) -> None:
            comm = LocalCommunicator(rank, self._size, rendezvous)
            try:
                results[rank] = fn(comm, *args, **kwargs)
            except Exception as e:
                errors[rank] = e
                rendezvous.abort()

        threads = [
            threading.Thread(target=rank_main, args=(rank,), name=f"rank-{rank}")
            for rank in range(self._size)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        failures = [e for e in errors if e is not None]
        if failures:
            # Ranks that only saw the torn-down barrier are not the cause
            origin = next((e for e in failures if not isinstance(e, CollectiveAbortError)), failures[0])
            logger.error("Process group of %d rank(s) aborted: %s", self._size, origin)
            raise origin

        return results[ROOT_RANK]


# ----------------------------------------------------------------------
# MPI-backed group
# ----------------------------------------------------------------------
class MPICommunicator(Communicator):

    def __init__(self, comm: Any, mpi: Any) -> None:
        self._comm = comm
        self._mpi = mpi

    @property
    def rank(self) -> int:
        return self._comm.Get_rank()

    @property
    def size(self) -> int:
        return self._comm.Get_size()

    def bcast(self, array: Optional[npt.NDArray[np.float64]], root: int = ROOT_RANK) -> npt.NDArray[np.float64]:
        if self.rank == root:
            buffer = np.array(array, dtype=np.float64, order="C", copy=True)
            shape = buffer.shape
        else:
            shape = None
        shape = self._comm.bcast(shape, root=root)
        if self.rank != root:
            buffer = np.empty(shape, dtype=np.float64)
        self._comm.Bcast(buffer, root=root)
        return buffer

    def allgatherv(
        self,
        local: npt.NDArray[np.float64],
        counts: Sequence[int],
        displacements: Sequence[int],
    ) -> npt.NDArray[np.float64]:
        fragment = np.ascontiguousarray(local, dtype=np.float64).ravel()
        total = max((d + c for d, c in zip(displacements, counts)), default=0)
        gathered = np.empty(total, dtype=np.float64)
        self._comm.Allgatherv(
            fragment,
            [gathered, list(counts), list(displacements), self._mpi.DOUBLE],
        )
        return gathered

    def barrier(self) -> None:
        self._comm.Barrier()

    def abort(self, errorcode: int = 1) -> None:
        self._comm.Abort(errorcode)


class MPICluster(Cluster):
    """
    The MPI job this process belongs to.

    Every rank of the job must call `run` with the same function; the group
    size is fixed by the launcher (``mpiexec -n P``).
    """

    def __init__(self, comm: Any = None) -> None:
        # Importing mpi4py initializes MPI, so it only happens when asked for
        from mpi4py import MPI

        self._comm = MPICommunicator(comm if comm is not None else MPI.COMM_WORLD, MPI)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rank={self._comm.rank}, size={self._comm.size})"

    @property
    def size(self) -> int:
        return self._comm.size

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(self._comm, *args, **kwargs)
        except Exception:
            logger.exception("Rank %d failed, aborting the MPI job.", self._comm.rank)
            self._comm.abort(1)
            raise


def create_cluster(backend: DistributedBackend, process_count: int = 1) -> Cluster:
    """
    Build the process group for a distributed run.

    Args:
        backend: Transport to use.
        process_count: Group size for the local backend. Under MPI the size
            is fixed by the launcher and this value is only checked.
    """
    if backend == DistributedBackend.MPI:
        cluster = MPICluster()
        if cluster.size != process_count:
            logger.warning(
                "Requested %d process(es) but the MPI job has %d; using the MPI job size.",
                process_count, cluster.size,
            )
        return cluster
    return LocalCluster(process_count)
