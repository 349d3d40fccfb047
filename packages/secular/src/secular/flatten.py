"""
Flatten a solved node to scalar rows.

A node carries arrays (L, N) and per-index RootResults. This module turns
them into one row of scalars per eigenvalue index, plus a single summary
row, for whoever persists or reports on the merge step.
"""

import numpy as np
from typing import Any, Dict, List

from secular.equation import secular_equation
from secular.node import NodeState, RankOneNode


def flatten_result(node: RankOneNode, include_residual: bool = True) -> List[Dict[str, Any]]:
    """
    One row per eigenvalue index.

    Parameters
    ----------
    node : RankOneNode
        After compute_eigenvalues (normalization is optional).
    include_residual : bool
        If True, add f(L[i]) as 'secular_value' (O(n) per row).

    Returns
    -------
    list of dict with index, eigenvalue, normalization, bracket_lower,
    bracket_upper, iterations, status and optionally secular_value.
    """
    rows = []
    for r in node.results:
        row = {
            'index': int(r.index),
            'eigenvalue': float(r.value),
            'normalization': float(node.N[r.index]) if node.N is not None else np.nan,
            'bracket_lower': float(r.lower),
            'bracket_upper': float(r.upper),
            'iterations': int(r.iterations),
            'status': r.status.value,
        }
        if include_residual:
            row['secular_value'] = (
                secular_equation(r.value, node.roh, node.z, node.D) if r.ok else np.nan
            )
        rows.append(row)
    return rows


def flatten_summary(node: RankOneNode) -> Dict[str, Any]:
    """Scalar summary of a node: size, roh, state, failure and iteration counts."""
    iterations = [r.iterations for r in node.results]
    row = {
        'n': node.n,
        'roh': float(node.roh),
        'state': node.state.value,
        'n_failed': len(node.failures()),
        'total_iterations': int(sum(iterations)),
        'max_iterations': int(max(iterations)) if iterations else 0,
    }
    if node.state in (NodeState.EIGENVALUES_READY, NodeState.NORMALIZED):
        row['eigenvalue_min'] = float(np.min(node.L))
        row['eigenvalue_max'] = float(np.max(node.L))
    return row
