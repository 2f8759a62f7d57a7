"""
===========================================================
sampling.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===========================================================

Description:
    Design generators for parameter sweeps. Each returns a
    DataFrame with one column per parameter (in space order)
    and one row per design point.

Example Usage:
    from episens.parameters import default_space
    from episens.sampling import make_design
    space = default_space()
    design = make_design("lhs", space, n=200, seed=1)

Notes:
    - grid: full factorial, levels per parameter
    - random: iid uniform (numpy Generator)
    - lhs: scipy.stats.qmc.LatinHypercube
    - sobol: scipy.stats.qmc.Sobol (n should be a power of 2)
    - saltelli: SALib Sobol/Saltelli cross-sampling for Sobol indices
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import itertools
import numpy as np
import pandas as pd
from typing import Optional, Sequence, Union
from scipy.stats import qmc
from SALib.sample import sobol as salib_sobol

from .parameters import ParameterSpace

DESIGN_METHODS = ("grid", "random", "lhs", "sobol", "saltelli")


def _to_frame(space: ParameterSpace, values: np.ndarray) -> pd.DataFrame:
    return pd.DataFrame(values, columns=space.names)


def _check_n(n: int):
    if int(n) != n or n < 1:
        raise ValueError(f"number of samples must be a positive integer, got {n}")


def grid_design(space: ParameterSpace, levels: Union[int, Sequence[int]] = 5) -> pd.DataFrame:
    """Full factorial grid; log-scaled parameters are spaced geometrically."""
    if np.isscalar(levels):
        levels = [int(levels)] * space.num_vars
    if len(levels) != space.num_vars:
        raise ValueError(f"need {space.num_vars} level counts, got {len(levels)}")
    axes = []
    for name, (lo, hi), k in zip(space.names, space.bounds, levels):
        if k < 1:
            raise ValueError("each parameter needs at least one level")
        if k == 1:
            # a single level sits at the centre of the range
            axes.append(np.array([np.sqrt(lo * hi) if name in space.log_scale else 0.5 * (lo + hi)]))
        elif name in space.log_scale:
            axes.append(np.geomspace(lo, hi, k))
        else:
            axes.append(np.linspace(lo, hi, k))
    values = np.array(list(itertools.product(*axes)), dtype=float)
    return _to_frame(space, values)


def random_design(space: ParameterSpace, n: int, seed: Optional[int] = None) -> pd.DataFrame:
    _check_n(n)
    rng = np.random.default_rng(seed)
    return _to_frame(space, space.scale(rng.random((int(n), space.num_vars))))


def latin_hypercube(space: ParameterSpace, n: int, seed: Optional[int] = None) -> pd.DataFrame:
    """Latin hypercube: each of the n equal strata of every dimension holds exactly one point."""
    _check_n(n)
    sampler = qmc.LatinHypercube(d=space.num_vars, seed=seed)
    return _to_frame(space, space.scale(sampler.random(int(n))))


def sobol_sequence(space: ParameterSpace, n: int, seed: Optional[int] = None,
                   scramble: bool = True) -> pd.DataFrame:
    """First n points of a (scrambled) Sobol low-discrepancy sequence."""
    _check_n(n)
    sampler = qmc.Sobol(d=space.num_vars, scramble=scramble, seed=seed)
    return _to_frame(space, space.scale(sampler.random(int(n))))


def saltelli_design(space: ParameterSpace, n: int, calc_second_order: bool = True,
                    seed: Optional[int] = None) -> pd.DataFrame:
    """
    Cross-sampled design for variance-based (Sobol) indices.

    Returns n * (2d + 2) rows when calc_second_order, else n * (d + 2).
    Row order matters to SALib.analyze.sobol, so do not shuffle the result.
    """
    _check_n(n)
    problem = space.to_salib_problem()
    X = salib_sobol.sample(problem, int(n), calc_second_order=calc_second_order, seed=seed)
    return _to_frame(space, space.from_sampling_coords(X))


def make_design(method: str, space: ParameterSpace, n: int = 64, seed: Optional[int] = None,
                **kwargs) -> pd.DataFrame:
    """Dispatch to a design generator by name. For 'grid', n is the number of levels per parameter."""
    method = method.lower()
    if method == "grid":
        return grid_design(space, levels=kwargs.get("levels", n))
    if method == "random":
        return random_design(space, n, seed=seed)
    if method == "lhs":
        return latin_hypercube(space, n, seed=seed)
    if method == "sobol":
        return sobol_sequence(space, n, seed=seed, scramble=kwargs.get("scramble", True))
    if method == "saltelli":
        return saltelli_design(space, n, calc_second_order=kwargs.get("calc_second_order", True), seed=seed)
    raise ValueError(f"unknown design method '{method}', expected one of {DESIGN_METHODS}")


def discrepancy(design: pd.DataFrame, space: ParameterSpace, method: str = "CD") -> float:
    """Centered L2 discrepancy of the design in the unit cube; lower is more space-filling."""
    unit = space.to_unit(design[space.names].to_numpy(dtype=float))
    # log10 round-off can land a hair outside [0, 1]
    return float(qmc.discrepancy(np.clip(unit, 0.0, 1.0), method=method))
