"""
Shared-memory parallel reduce / parallel for.

Static scheduling: the index range [0, n) is cut into at most n_workers
contiguous blocks whose sizes differ by at most one. Block results are
combined in block order, so a fixed worker count always yields the same
floating-point sum. Different worker counts may differ in the last bits
(summation order); that imprecision is accepted.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

Block = Tuple[int, int]


def partition(n: int, n_workers: int) -> List[Block]:
    """
    Split [0, n) into contiguous (start, stop) blocks, one per worker.

    Empty blocks are dropped, so fewer than n_workers blocks come back
    when n < n_workers.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    if n_workers < 1:
        raise ValueError(f"n_workers must be >= 1, got {n_workers}")

    base, extra = divmod(n, n_workers)
    blocks = []
    start = 0
    for w in range(n_workers):
        size = base + (1 if w < extra else 0)
        if size == 0:
            break
        blocks.append((start, start + size))
        start += size
    return blocks


class ParallelPool:
    """
    Thread pool for the in-node loops.

    Parameters
    ----------
    n_workers : int
        Number of threads. 1 runs everything inline, no executor is created.

    Work functions receive (start, stop) and must only write output slots
    inside their own block.
    """

    def __init__(self, n_workers: int = 1):
        if n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")
        self.n_workers = n_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        if n_workers > 1:
            self._executor = ThreadPoolExecutor(max_workers=n_workers)

    def __enter__(self) -> "ParallelPool":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _run(self, fn: Callable[[int, int], object], n: int) -> list:
        blocks = partition(n, self.n_workers)
        if self._executor is None or len(blocks) <= 1:
            return [fn(start, stop) for start, stop in blocks]
        futures = [self._executor.submit(fn, start, stop) for start, stop in blocks]
        return [f.result() for f in futures]

    def reduce_sum(self, fn: Callable[[int, int], float], n: int) -> float:
        """Sum fn(start, stop) over the static blocks of [0, n), in block order."""
        total = 0.0
        for partial in self._run(fn, n):
            total += partial
        return total

    def parallel_for(self, fn: Callable[[int, int], None], n: int) -> None:
        """Run fn(start, stop) for every block of [0, n) and wait for all of them."""
        self._run(fn, n)
