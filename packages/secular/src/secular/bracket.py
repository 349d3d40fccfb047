"""
Starting brackets for each eigenvalue index.

Interlacing puts exactly one root in every open interval between consecutive
poles. The remaining root sits beyond the last pole on the side of sign(roh):

    roh < 0:  (a, D[0]), (D[0], D[1]), ..., (D[n-2], D[n-1])
    roh > 0:  (D[0], D[1]), ..., (D[n-2], D[n-1]), (D[n-1], b)

The open end a / b is found by stepping outward from the nearest pole in
steps of ||z|| until f is non-negative at the probe.
"""

import logging
import numpy as np
from typing import Optional, Tuple

from secular.equation import norm_z, secular_equation
from secular.errors import BracketSearchOverflow, EigenIndexError, InvalidUpdate
from secular.parallel import ParallelPool

logger = logging.getLogger(__name__)


def bracket_side(roh: float) -> str:
    """'lower' if the extremal root precedes D[0], 'upper' if it follows D[n-1]."""
    if roh == 0:
        raise InvalidUpdate("roh == 0: rank-one update has no perturbation")
    return 'lower' if roh < 0 else 'upper'


def extremal_index(roh: float, n: int) -> int:
    """Index of the eigenvalue lying outside [D[0], D[n-1]]."""
    return 0 if bracket_side(roh) == 'lower' else n - 1


def _search_outward(
    index: int,
    origin: float,
    direction: float,
    step: float,
    roh: float,
    z: np.ndarray,
    D: np.ndarray,
    max_steps: int,
    pool: Optional[ParallelPool],
) -> float:
    if not (np.isfinite(step) and step > 0):
        raise BracketSearchOverflow(
            f"index {index}: extension step {step!r} cannot leave the pole at {origin}",
            index=index,
        )

    probe = origin + direction * step
    extensions = 0
    # `not >=` keeps searching on NaN as well as on negative values
    while not secular_equation(probe, roh, z, D, pool) >= 0:
        if extensions == max_steps:
            raise BracketSearchOverflow(
                f"index {index}: no sign change within {max_steps} steps of {step:.3e} "
                f"from {origin}",
                index=index,
            )
        probe += direction * step
        extensions += 1

    logger.debug(f"extremal bracket for index {index} after {extensions} extensions: {probe}")
    return probe


def resolve_bracket(
    index: int,
    roh: float,
    z: np.ndarray,
    D: np.ndarray,
    step: Optional[float] = None,
    max_steps: int = 100,
    pool: Optional[ParallelPool] = None,
) -> Tuple[float, float]:
    """
    Open interval (a, b) holding exactly one root for eigenvalue `index`.

    Parameters
    ----------
    index : int
        Eigenvalue index in [0, n).
    roh : float
        beta * theta, non-zero.
    z, D : np.ndarray
        Update vector and strictly increasing diagonal.
    step : float, optional
        Extension step for the extremal index. Defaults to ||z||.
    max_steps : int
        Extensions allowed beyond the first probe.

    Raises
    ------
    BracketSearchOverflow
        Extremal search exhausted max_steps, or the step is zero.
    """
    n = len(D)
    if not 0 <= index < n:
        raise EigenIndexError(f"index {index} out of range for n={n}")
    side = bracket_side(roh)

    if side == 'lower':
        if index == 0:
            step = norm_z(z) if step is None else step
            a = _search_outward(index, D[0], -1.0, step, roh, z, D, max_steps, pool)
            return float(a), float(D[0])
        return float(D[index - 1]), float(D[index])

    if index == n - 1:
        step = norm_z(z) if step is None else step
        b = _search_outward(index, D[n - 1], 1.0, step, roh, z, D, max_steps, pool)
        return float(D[n - 1]), float(b)
    return float(D[index]), float(D[index + 1])
