"""
Secular equation of a diagonal-plus-rank-one matrix.

    f(λ) = 1 + roh · Σ zᵢ² / (dᵢ − λ)

The n roots of f are the eigenvalues of D + roh·z·zᵗ. Between two
consecutive poles f is strictly monotonic with the sign of roh, since

    f'(λ) = roh · Σ zᵢ² / (dᵢ − λ)²

λ must never equal an entry of D.
"""

import numpy as np
from typing import Optional

from secular.parallel import ParallelPool


def secular_equation(
    lam: float,
    roh: float,
    z: np.ndarray,
    D: np.ndarray,
    pool: Optional[ParallelPool] = None,
) -> float:
    """
    Evaluate f(lam).

    With a multi-threaded pool the sum is a static-block parallel reduction.
    """
    if pool is None or pool.n_workers == 1:
        return float(1.0 + roh * np.sum(z * z / (D - lam)))

    def block_sum(start: int, stop: int) -> float:
        zb = z[start:stop]
        return float(np.sum(zb * zb / (D[start:stop] - lam)))

    return 1.0 + roh * pool.reduce_sum(block_sum, len(z))


def secular_derivative(lam: float, roh: float, z: np.ndarray, D: np.ndarray) -> float:
    """f'(lam). Same sign as roh everywhere off the poles."""
    diff = D - lam
    return float(roh * np.sum(z * z / (diff * diff)))


def norm_z(z: np.ndarray) -> float:
    """Euclidean norm of z; bounds how far the update can move an eigenvalue."""
    return float(np.linalg.norm(z))
