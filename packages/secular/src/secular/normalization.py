"""
Normalization factors for the rank-one eigenvectors.

The unnormalized eigenvector for eigenvalue L[i] has components
zⱼ / (D[j] − L[i]); its Euclidean length is

    N[i] = sqrt( Σⱼ zⱼ² / (D[j] − L[i])² )

O(n) per eigenvalue, O(n²) in total. The outer loop is split across threads;
each block writes only its own slots of N.
"""

import numpy as np
from typing import Optional

from secular.parallel import ParallelPool


def normalization_factors(
    D: np.ndarray,
    z: np.ndarray,
    L: np.ndarray,
    pool: Optional[ParallelPool] = None,
) -> np.ndarray:
    """
    Compute N for every eigenvalue in L.

    Parameters
    ----------
    D, z : np.ndarray
        Diagonal and update vector, length n.
    L : np.ndarray
        Eigenvalues to normalize for. Usually all n, but any subset works.
    pool : ParallelPool, optional
        Threads for the loop over L.

    Returns
    -------
    np.ndarray of len(L) strictly positive factors.
    """
    L = np.asarray(L, dtype=np.float64)
    z2 = z * z
    N = np.empty(len(L), dtype=np.float64)

    def fill(start: int, stop: int) -> None:
        for i in range(start, stop):
            diff = D - L[i]
            N[i] = np.sqrt(np.sum(z2 / (diff * diff)))

    if pool is None:
        fill(0, len(L))
    else:
        pool.parallel_for(fill, len(L))
    return N


def normalization_block(
    start: int,
    stop: int,
    D: np.ndarray,
    z: np.ndarray,
    L: np.ndarray,
    n_threads: int = 1,
) -> np.ndarray:
    """N for L[start:stop]. Module-level so process pools can pickle it."""
    with ParallelPool(n_threads) as pool:
        return normalization_factors(D, z, L[start:stop], pool)
