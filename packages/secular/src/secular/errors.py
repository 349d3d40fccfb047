"""
Failure taxonomy and per-index root results.

Precondition violations (InvalidUpdate, NodeStateError, EigenIndexError) are
raised immediately. Convergence failures are recorded per index as a
RootResult so one pathological root does not discard its siblings; the node
turns them into BracketSearchOverflow / IterationCapExceeded on request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SecularError(Exception):
    """Base class for solver failures."""


class InvalidUpdate(SecularError, ValueError):
    """roh == 0 or malformed D / z."""


class BracketSearchOverflow(SecularError):
    """Extremal bracket search ran out of extension steps."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class IterationCapExceeded(SecularError):
    """Bisection did not reach tolerance within max_iter."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class NodeStateError(SecularError, RuntimeError):
    """Operation called out of order on a RankOneNode."""


class EigenIndexError(SecularError, IndexError):
    """Eigenvector index outside [0, n)."""


class RootStatus(Enum):
    CONVERGED = "converged"              # half-width below tolerance
    CONVERGED_EXACT = "converged_exact"  # f(lambda) == 0
    BRACKET_OVERFLOW = "bracket_overflow"
    ITERATION_CAP = "iteration_cap"

    @property
    def ok(self) -> bool:
        return self in (RootStatus.CONVERGED, RootStatus.CONVERGED_EXACT)


@dataclass(frozen=True)
class RootResult:
    """Outcome of the root solve for one eigenvalue index."""
    index: int
    value: float
    lower: float
    upper: float
    iterations: int
    status: RootStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status.ok

    def to_exception(self) -> SecularError:
        if self.status is RootStatus.BRACKET_OVERFLOW:
            return BracketSearchOverflow(self.message, index=self.index)
        if self.status is RootStatus.ITERATION_CAP:
            return IterationCapExceeded(self.message, index=self.index)
        raise ValueError(f"index {self.index} converged; no exception to raise")
