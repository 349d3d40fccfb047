"""
Rank-one merge node and its three operations.

A node holds one merge step of the divide-and-conquer tree: D, z, beta,
theta in, eigenvalues L and normalization factors N out. It moves through

    UNSOLVED → EIGENVALUES_READY → NORMALIZED → RELEASED
         ╰──→ FAILED   (some index did not converge)

and every operation checks the state it needs, so calling them out of order
fails at the interface instead of reading half-built arrays.

Usage:
    node = RankOneNode(D, z, beta, theta)
    compute_eigenvalues(node, group)
    compute_normalization_factors(node, group)
    v = get_eigenvector(node, np.empty(node.n), i)

    # or in one go
    node = solve(D, z, beta, theta)
"""

import logging
import numpy as np
from enum import Enum
from typing import Iterable, List, Optional

from secular.bisection import solve_block
from secular.config import SolverSettings
from secular.eigenvector import eigenvector, eigenvectors
from secular.errors import InvalidUpdate, NodeStateError, RootResult
from secular.group import ProcessGroup, SerialGroup, group_for
from secular.normalization import normalization_block

logger = logging.getLogger(__name__)


class NodeState(Enum):
    UNSOLVED = "unsolved"
    EIGENVALUES_READY = "eigenvalues_ready"
    NORMALIZED = "normalized"
    FAILED = "failed"
    RELEASED = "released"


def _frozen(values, name: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.ndim != 1:
        raise InvalidUpdate(f"{name} must be 1-dimensional, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidUpdate(f"{name} contains non-finite entries")
    arr.flags.writeable = False
    return arr


class RankOneNode:
    """
    Eigenproblem D + roh·z·zᵗ with roh = beta·theta.

    Parameters
    ----------
    D : array-like
        Strictly increasing diagonal, length n >= 1. Copied, never modified.
    z : array-like
        Update vector, length n. Copied, never modified. Deflation is assumed
        to have removed zero components already.
    beta, theta : float
        Their product is the rank-one coefficient roh.
    settings : SolverSettings, optional
        Tolerance, caps and thread count. Defaults to CONFIG.
    """

    def __init__(self, D, z, beta: float, theta: float,
                 settings: Optional[SolverSettings] = None):
        self.D = _frozen(D, 'D')
        self.z = _frozen(z, 'z')
        if len(self.D) == 0:
            raise InvalidUpdate("empty problem: D has no entries")
        if len(self.D) != len(self.z):
            raise InvalidUpdate(f"length mismatch: D has {len(self.D)}, z has {len(self.z)}")
        if np.any(np.diff(self.D) <= 0):
            raise InvalidUpdate("D must be strictly increasing")

        self.beta = float(beta)
        self.theta = float(theta)
        if not (np.isfinite(self.beta) and np.isfinite(self.theta)):
            raise InvalidUpdate(f"beta and theta must be finite, got beta={self.beta}, theta={self.theta}")
        self.settings = settings or SolverSettings.from_config()

        self.L: Optional[np.ndarray] = None
        self.N: Optional[np.ndarray] = None
        self.results: List[RootResult] = []
        self.state = NodeState.UNSOLVED

    @property
    def roh(self) -> float:
        return self.beta * self.theta

    @property
    def n(self) -> int:
        return len(self.D)

    def failures(self) -> List[RootResult]:
        """Indices whose root solve did not converge."""
        return [r for r in self.results if not r.ok]

    def require(self, *states: NodeState) -> None:
        if self.state not in states:
            expected = ' or '.join(s.value for s in states)
            raise NodeStateError(f"node is {self.state.value}, operation needs {expected}")

    def eigenvectors(self, indices: Optional[Iterable[int]] = None) -> np.ndarray:
        """Eigenvectors as columns; all of them unless indices is given."""
        self.require(NodeState.NORMALIZED)
        return eigenvectors(self.D, self.z, self.L, self.N, indices)

    def release(self) -> None:
        """Drop L and N. The node cannot be used for eigenvectors afterwards."""
        self.L = None
        self.N = None
        self.results = []
        self.state = NodeState.RELEASED

    def __repr__(self) -> str:
        return f"RankOneNode(n={self.n}, roh={self.roh:g}, state={self.state.value})"


def compute_eigenvalues(
    node: RankOneNode,
    group: Optional[ProcessGroup] = None,
    strict: bool = True,
) -> List[RootResult]:
    """
    Solve the secular equation for all n eigenvalues of the node.

    Parameters
    ----------
    node : RankOneNode
        Must be UNSOLVED.
    group : ProcessGroup, optional
        Members sharing the index range. Defaults to SerialGroup.
    strict : bool
        If True, raise the first per-index failure after all indices have
        been attempted. Results, including the failed ones, stay on the node.

    Returns
    -------
    list of RootResult, one per index in order.

    Raises
    ------
    InvalidUpdate
        roh == 0 or not finite.
    BracketSearchOverflow, IterationCapExceeded
        In strict mode, when an index failed.
    """
    node.require(NodeState.UNSOLVED)
    if node.roh == 0:
        raise InvalidUpdate(f"roh == 0 (beta={node.beta}, theta={node.theta}): nothing to update")
    if not np.isfinite(node.roh):
        raise InvalidUpdate(f"roh = beta * theta overflows (beta={node.beta}, theta={node.theta})")

    group = group or SerialGroup()
    blocks = group.map_blocks(solve_block, node.n, node.roh, node.z, node.D, node.settings)
    results = [r for block in blocks for r in block]

    L = np.array([r.value for r in results], dtype=np.float64)
    L.flags.writeable = False
    node.L = L
    node.results = results

    failed = node.failures()
    if failed:
        node.state = NodeState.FAILED
        logger.warning(
            f"{len(failed)}/{node.n} eigenvalues failed: "
            f"{', '.join(f'{r.index}:{r.status.value}' for r in failed[:5])}"
        )
        if strict:
            raise failed[0].to_exception()
        return results

    node.state = NodeState.EIGENVALUES_READY
    logger.debug(
        f"{node.n} eigenvalues in {sum(r.iterations for r in results)} bisection steps "
        f"over {group.size} process(es)"
    )
    return results


def compute_normalization_factors(
    node: RankOneNode,
    group: Optional[ProcessGroup] = None,
) -> np.ndarray:
    """
    Populate node.N from node.L.

    Raises NodeStateError unless the eigenvalue phase completed.
    """
    node.require(NodeState.EIGENVALUES_READY)

    group = group or SerialGroup()
    blocks = group.map_blocks(
        normalization_block, node.n, node.D, node.z, node.L, node.settings.n_threads,
    )
    N = np.concatenate(blocks)
    N.flags.writeable = False
    node.N = N
    node.state = NodeState.NORMALIZED
    return N


def get_eigenvector(node: RankOneNode, out: np.ndarray, i: int) -> np.ndarray:
    """
    Fill `out` with eigenvector i of the node and return it.

    Raises
    ------
    NodeStateError
        Normalization factors not computed yet.
    EigenIndexError
        i outside [0, n).
    """
    node.require(NodeState.NORMALIZED)
    return eigenvector(i, node.D, node.z, node.L, node.N, out)


def solve(
    D,
    z,
    beta: float,
    theta: float,
    group: Optional[ProcessGroup] = None,
    settings: Optional[SolverSettings] = None,
) -> RankOneNode:
    """
    Both phases on a fresh node. Always strict.

    Without a group, one is made from settings.n_procs for the duration of
    the call.
    """
    node = RankOneNode(D, z, beta, theta, settings)
    if group is not None:
        compute_eigenvalues(node, group)
        compute_normalization_factors(node, group)
        return node

    with group_for(node.settings.n_procs) as owned:
        compute_eigenvalues(node, owned)
        compute_normalization_factors(node, owned)
    return node
