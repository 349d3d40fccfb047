"""
On-demand eigenvectors of D + roh·z·zᵗ.

    v_i[j] = (z[j] / (D[j] − L[i])) / N[i]

Nothing is cached: one vector costs O(n), all of them O(n²). Callers that
only need eigenvalues, or a few vectors, never pay for the full matrix.
"""

import numpy as np
from typing import Iterable, Optional

from secular.errors import EigenIndexError


def eigenvector(
    i: int,
    D: np.ndarray,
    z: np.ndarray,
    L: np.ndarray,
    N: np.ndarray,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Write eigenvector i into `out` (allocated if None) and return it.

    `out` needs capacity >= n; only its first n entries are written.
    """
    n = len(D)
    if not 0 <= i < n:
        raise EigenIndexError(f"eigenvector index {i} out of range for n={n}")
    if out is None:
        out = np.empty(n, dtype=np.float64)
    elif len(out) < n:
        raise ValueError(f"output buffer holds {len(out)} entries, need {n}")

    np.divide(z / (D - L[i]), N[i], out=out[:n])
    return out


def eigenvectors(
    D: np.ndarray,
    z: np.ndarray,
    L: np.ndarray,
    N: np.ndarray,
    indices: Optional[Iterable[int]] = None,
) -> np.ndarray:
    """
    Materialize eigenvectors as columns of an (n, k) matrix.

    indices defaults to all n eigenvectors.
    """
    n = len(D)
    indices = list(range(n)) if indices is None else list(indices)
    V = np.empty((n, len(indices)), dtype=np.float64)
    for col, i in enumerate(indices):
        eigenvector(i, D, z, L, N, out=V[:, col])
    return V
