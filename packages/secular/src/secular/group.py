"""
Process groups: who shares the eigenvalue index range of one node.

A group is passed explicitly into every distributed operation and owned by
the caller (the recursion-tree driver), never held in module state, so
independent subtrees can be solved concurrently with their own groups.

Each phase is one scatter/gather: the index range is cut into contiguous
blocks, one per member, every member works from the same read-only D, z, roh,
and the block results are gathered in rank order. No partial results move
mid-phase.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Callable, List, Optional

from secular.parallel import partition

logger = logging.getLogger(__name__)


class ProcessGroup(ABC):
    """Interface for a group of cooperating workers."""

    size: int = 1

    @abstractmethod
    def map_blocks(self, fn: Callable[..., Any], n: int, *args) -> List[Any]:
        """
        Call fn(start, stop, *args) once per member block of [0, n).

        Returns the block results in rank order.
        """

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class SerialGroup(ProcessGroup):
    """Single member; everything runs in the calling process."""

    size = 1

    def map_blocks(self, fn: Callable[..., Any], n: int, *args) -> List[Any]:
        return [fn(start, stop, *args) for start, stop in partition(n, 1)]


class PoolGroup(ProcessGroup):
    """
    Members are worker processes of a ProcessPoolExecutor.

    Parameters
    ----------
    n_procs : int
        Number of member processes.

    fn and args must be picklable: module-level functions and numpy arrays.
    """

    def __init__(self, n_procs: int):
        if n_procs < 1:
            raise ValueError(f"n_procs must be >= 1, got {n_procs}")
        self.size = n_procs
        self._executor: Optional[ProcessPoolExecutor] = ProcessPoolExecutor(max_workers=n_procs)

    def map_blocks(self, fn: Callable[..., Any], n: int, *args) -> List[Any]:
        if self._executor is None:
            raise RuntimeError("PoolGroup is closed")
        blocks = partition(n, self.size)
        logger.debug(f"scatter {n} indices over {len(blocks)} processes")
        futures = [self._executor.submit(fn, start, stop, *args) for start, stop in blocks]
        # gather barrier: block results in rank order
        return [f.result() for f in futures]

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


def group_for(n_procs: int) -> ProcessGroup:
    """SerialGroup for one process, PoolGroup otherwise."""
    return SerialGroup() if n_procs == 1 else PoolGroup(n_procs)
