"""
Solver Configuration
====================
Iteration caps, tolerances and parallelism for the secular equation solver.
Single source of truth. Every solver entry point reads its defaults here.

Usage:
    from secular.config import CONFIG, SolverSettings
    tol = CONFIG['bisection']['tolerance']

    settings = SolverSettings.from_config()
    settings = SolverSettings.from_config(load_config('solver.yaml'))

Environment:
    SECULAR_THREADS=N   threads for the in-node reduction (default 1)
    SECULAR_PROCS=N     processes for the index split (default 1)
"""

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

SECULAR_THREADS = int(os.environ.get("SECULAR_THREADS", "0")) or 1
SECULAR_PROCS = int(os.environ.get("SECULAR_PROCS", "0")) or 1

CONFIG = {

    # =================================================================
    # Bisection Root Finder
    # =================================================================
    'bisection': {
        'tolerance': 1e-10,        # half-width of the final bracket
        'max_iter': 10000,
    },

    # =================================================================
    # Extremal bracket search (step = ||z||)
    # =================================================================
    'bracket': {
        'max_extension_steps': 100,
    },

    # =================================================================
    # Parallelism
    # =================================================================
    'parallel': {
        'n_threads': SECULAR_THREADS,
        'n_procs': SECULAR_PROCS,
    },
}


def get(path: str, default=None):
    """
    Get a config value by dot-separated path.

    Usage:
        get('bisection.tolerance')          → 1e-10
        get('bracket.max_extension_steps')  → 100
    """
    keys = path.split('.')
    val = CONFIG
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML override file and merge it over CONFIG.

    Only the keys present in the file change; everything else keeps its
    default. An empty file returns a copy of CONFIG.
    """
    with open(path) as f:
        override = yaml.safe_load(f) or {}
    if not isinstance(override, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(override).__name__}")
    return _merge(CONFIG, override)


@dataclass(frozen=True)
class SolverSettings:
    """Resolved solver parameters for one node."""
    tolerance: float = CONFIG['bisection']['tolerance']
    max_iter: int = CONFIG['bisection']['max_iter']
    max_extension_steps: int = CONFIG['bracket']['max_extension_steps']
    n_threads: int = CONFIG['parallel']['n_threads']
    n_procs: int = CONFIG['parallel']['n_procs']

    def __post_init__(self):
        if not self.tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.max_extension_steps < 1:
            raise ValueError(f"max_extension_steps must be >= 1, got {self.max_extension_steps}")
        if self.n_threads < 1 or self.n_procs < 1:
            raise ValueError("n_threads and n_procs must be >= 1")

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "SolverSettings":
        cfg = CONFIG if config is None else config
        return cls(
            tolerance=float(cfg['bisection']['tolerance']),
            max_iter=int(cfg['bisection']['max_iter']),
            max_extension_steps=int(cfg['bracket']['max_extension_steps']),
            n_threads=int(cfg['parallel']['n_threads']),
            n_procs=int(cfg['parallel']['n_procs']),
        )
