"""
Secular equation package for the divide-and-conquer eigensolver.

Solves the merge step of a Cuppen-style tridiagonal eigensolver: all n
eigenvalues of D + roh·z·zᵗ (D diagonal, strictly increasing; roh = beta·theta),
their normalization factors, and eigenvectors on demand.

Data flow: D, z, roh → eigenvalues L → normalization factors N → eigenvectors.

Deflation happens before this package is called; backtransformation and
the recursion tree live outside it.
"""

__version__ = '0.1.0'

from secular.config import CONFIG, SolverSettings, load_config
from secular.errors import (
    BracketSearchOverflow,
    EigenIndexError,
    InvalidUpdate,
    IterationCapExceeded,
    NodeStateError,
    RootResult,
    RootStatus,
    SecularError,
)
from secular.equation import secular_equation
from secular.group import PoolGroup, ProcessGroup, SerialGroup
from secular.node import (
    NodeState,
    RankOneNode,
    compute_eigenvalues,
    compute_normalization_factors,
    get_eigenvector,
    solve,
)
from secular.flatten import flatten_result, flatten_summary

__all__ = [
    'CONFIG',
    'SolverSettings',
    'load_config',
    'SecularError',
    'InvalidUpdate',
    'BracketSearchOverflow',
    'IterationCapExceeded',
    'NodeStateError',
    'EigenIndexError',
    'RootResult',
    'RootStatus',
    'secular_equation',
    'ProcessGroup',
    'SerialGroup',
    'PoolGroup',
    'NodeState',
    'RankOneNode',
    'compute_eigenvalues',
    'compute_normalization_factors',
    'get_eigenvector',
    'solve',
    'flatten_result',
    'flatten_summary',
]
