"""
Bisection root finder for the secular equation.

Each index is solved independently: bracket, then halve until the half-width
drops below tolerance or f hits exactly zero. The loop for one index is
sequential; indices are the unit of parallel work.
"""

import logging
import numpy as np
from typing import Iterable, List, Optional

from secular.bracket import resolve_bracket
from secular.config import SolverSettings
from secular.equation import norm_z, secular_equation
from secular.errors import BracketSearchOverflow, RootResult, RootStatus
from secular.parallel import ParallelPool

logger = logging.getLogger(__name__)


def bisect_root(
    index: int,
    a: float,
    b: float,
    roh: float,
    z: np.ndarray,
    D: np.ndarray,
    tolerance: float = 1e-10,
    max_iter: int = 10000,
    pool: Optional[ParallelPool] = None,
) -> RootResult:
    """
    Bisect the bracket (a, b) down to a single root.

    The sign predicate is `f >= 0`. The left end of the bracket may be a
    pole, so its predicate is not evaluated: on the branch f is increasing
    (negative at the left) for roh > 0 and decreasing (non-negative at the
    left) for roh < 0. The endpoint whose predicate matches the midpoint's is
    replaced by the midpoint.

    Returns
    -------
    RootResult with status CONVERGED_EXACT, CONVERGED or ITERATION_CAP.
    ITERATION_CAP is also returned early once the bracket stops shrinking.
    """
    lower, upper = a, b
    left_nonneg = roh < 0
    lam = 0.5 * (a + b)

    for iteration in range(1, max_iter + 1):
        lam = 0.5 * (a + b)
        if not a < lam < b:
            # a and b are adjacent floats; halving cannot shrink the bracket
            if (b - a) / 2 < tolerance:
                return RootResult(index, lam, lower, upper, iteration, RootStatus.CONVERGED)
            message = (
                f"index {index}: bracket [{a!r}, {b!r}] cannot be halved further; "
                f"half-width {(b - a) / 2:.3e} above tolerance {tolerance:.1e}"
            )
            logger.warning(message)
            return RootResult(index, lam, lower, upper, iteration, RootStatus.ITERATION_CAP, message)

        f = secular_equation(lam, roh, z, D, pool)
        if f == 0:
            return RootResult(index, lam, lower, upper, iteration, RootStatus.CONVERGED_EXACT)
        if (b - a) / 2 < tolerance:
            return RootResult(index, lam, lower, upper, iteration, RootStatus.CONVERGED)

        if (f >= 0) == left_nonneg:
            a = lam
        else:
            b = lam

    message = (
        f"index {index}: half-width {(b - a) / 2:.3e} still above tolerance "
        f"{tolerance:.1e} after {max_iter} iterations"
    )
    logger.warning(message)
    return RootResult(index, lam, lower, upper, max_iter, RootStatus.ITERATION_CAP, message)


def find_roots(
    roh: float,
    z: np.ndarray,
    D: np.ndarray,
    indices: Iterable[int],
    settings: Optional[SolverSettings] = None,
    pool: Optional[ParallelPool] = None,
) -> List[RootResult]:
    """
    Bracket and bisect every index in `indices`.

    A bracket overflow becomes a BRACKET_OVERFLOW result for that index
    alone; the other indices are still solved.
    """
    settings = settings or SolverSettings()
    step = norm_z(z)
    results = []

    for index in indices:
        try:
            a, b = resolve_bracket(
                index, roh, z, D,
                step=step,
                max_steps=settings.max_extension_steps,
                pool=pool,
            )
        except BracketSearchOverflow as e:
            logger.warning(str(e))
            results.append(RootResult(
                index, np.nan, np.nan, np.nan, 0, RootStatus.BRACKET_OVERFLOW, str(e),
            ))
            continue

        results.append(bisect_root(
            index, a, b, roh, z, D,
            tolerance=settings.tolerance,
            max_iter=settings.max_iter,
            pool=pool,
        ))

    return results


def solve_block(
    start: int,
    stop: int,
    roh: float,
    z: np.ndarray,
    D: np.ndarray,
    settings: SolverSettings,
) -> List[RootResult]:
    """Roots for indices [start, stop). Module-level so process pools can pickle it."""
    with ParallelPool(settings.n_threads) as pool:
        return find_roots(roh, z, D, range(start, stop), settings, pool)
