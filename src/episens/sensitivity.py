"""
===========================================================
sensitivity.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===========================================================

Description:
    Sensitivity measures computed from sweep results:
      - PRCC (partial rank correlation coefficients) for
        monotone effects, from any LHS/random/Sobol design
      - Spearman rank correlations (no partialling)
      - variance-based Sobol indices (SALib) from a Saltelli design
      - one-at-a-time curves around a baseline

Example Usage:
    from episens.sensitivity import prcc
    df = sweep(latin_hypercube(space, 500, seed=1), settings)
    prcc(df, inputs=space.names, output="peak_prevalence")

Notes:
    - PRCC p-values use the t distribution with n - 2 - (k - 1) dof.
    - sobol_indices expects outputs in the exact row order of
      saltelli_design(); NaN outputs are rejected.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from typing import Dict, Optional, Sequence
from scipy import stats
from SALib.analyze import sobol as salib_sobol

from .parameters import ParameterSpace, SweepSettings
from .experiments import sweep


def _complete_rows(df: pd.DataFrame, inputs: Sequence[str], output: str) -> pd.DataFrame:
    missing = [c for c in [*inputs, output] if c not in df.columns]
    if missing:
        raise ValueError(f"columns not in results: {missing}")
    return df[[*inputs, output]].dropna()


def _residuals(target: np.ndarray, others: np.ndarray) -> np.ndarray:
    A = np.column_stack([np.ones(len(target)), others])
    coef, *_ = np.linalg.lstsq(A, target, rcond=None)
    return target - A @ coef


def prcc(df: pd.DataFrame, inputs: Sequence[str], output: str = "peak_prevalence") -> pd.DataFrame:
    """
    Partial rank correlation of each input with the output, controlling for
    the other inputs. Returns DataFrame(parameter, prcc, p_value) sorted by |prcc|.
    """
    inputs = list(inputs)
    data = _complete_rows(df, inputs, output)
    n, k = len(data), len(inputs)
    if n <= k + 1:
        raise ValueError(f"PRCC needs more than {k + 1} complete runs, got {n}")

    ranks = data.rank().to_numpy(dtype=float)
    X, y = ranks[:, :k], ranks[:, k]
    dof = n - 2 - (k - 1)
    rows = []
    for j, name in enumerate(inputs):
        others = np.delete(X, j, axis=1)
        rx = _residuals(X[:, j], others)
        ry = _residuals(y, others)
        denom = np.sqrt(np.dot(rx, rx) * np.dot(ry, ry))
        r = float(np.dot(rx, ry) / denom) if denom > 0 else np.nan
        if np.isnan(r):
            p = np.nan
        elif abs(r) >= 1.0:
            p = 0.0
        else:
            t_stat = r * np.sqrt(dof / (1.0 - r ** 2))
            p = float(2 * stats.t.sf(abs(t_stat), dof))
        rows.append({"parameter": name, "prcc": r, "p_value": p})

    out = pd.DataFrame(rows)
    order = out["prcc"].abs().sort_values(ascending=False, na_position="last").index
    return out.loc[order].reset_index(drop=True)


def rank_correlations(df: pd.DataFrame, inputs: Sequence[str], output: str = "peak_prevalence") -> pd.DataFrame:
    """Spearman rho (and p-value) of each input against the output."""
    data = _complete_rows(df, list(inputs), output)
    rows = []
    for name in inputs:
        rho, p = stats.spearmanr(data[name], data[output])
        rows.append({"parameter": name, "spearman": float(rho), "p_value": float(p)})
    return pd.DataFrame(rows)


def sobol_indices(space: ParameterSpace, Y, calc_second_order: bool = True,
                  seed: Optional[int] = None) -> pd.DataFrame:
    """
    First-order (S1) and total-order (ST) Sobol indices with bootstrap confidence
    half-widths. Y must follow the row order of saltelli_design(space, ...).
    """
    Y = np.asarray(Y, dtype=float)
    if np.isnan(Y).any():
        raise ValueError("Sobol analysis needs an output for every run; found NaN")
    Si = salib_sobol.analyze(space.to_salib_problem(), Y, calc_second_order=calc_second_order,
                             print_to_console=False, seed=seed)
    return pd.DataFrame({
        "parameter": space.names,
        "S1": Si["S1"],
        "S1_conf": Si["S1_conf"],
        "ST": Si["ST"],
        "ST_conf": Si["ST_conf"],
    })


def second_order_indices(space: ParameterSpace, Y, seed: Optional[int] = None) -> pd.DataFrame:
    """Pairwise interaction indices S2 in long form (parameter_i, parameter_j, S2, S2_conf)."""
    Y = np.asarray(Y, dtype=float)
    if np.isnan(Y).any():
        raise ValueError("Sobol analysis needs an output for every run; found NaN")
    Si = salib_sobol.analyze(space.to_salib_problem(), Y, calc_second_order=True,
                             print_to_console=False, seed=seed)
    rows = []
    names = space.names
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            rows.append({"parameter_i": names[i], "parameter_j": names[j],
                         "S2": float(Si["S2"][i, j]), "S2_conf": float(Si["S2_conf"][i, j])})
    return pd.DataFrame(rows)


def one_at_a_time(space: ParameterSpace, settings: SweepSettings,
                  baseline: Optional[Dict[str, float]] = None, n_points: int = 11,
                  output: str = "peak_prevalence") -> pd.DataFrame:
    """
    Vary each parameter across its bounds with the others held at baseline
    (default: centre of each range). Returns DataFrame(parameter, value, <output>).
    """
    if n_points < 2:
        raise ValueError("n_points must be at least 2")
    if baseline is None:
        baseline = {n: (np.sqrt(lo * hi) if n in space.log_scale else 0.5 * (lo + hi))
                    for n, (lo, hi) in zip(space.names, space.bounds)}
    missing = set(space.names) - set(baseline)
    if missing:
        raise ValueError(f"baseline lacks values for {sorted(missing)}")

    frames = []
    for name, (lo, hi) in zip(space.names, space.bounds):
        values = np.geomspace(lo, hi, n_points) if name in space.log_scale else np.linspace(lo, hi, n_points)
        design = pd.DataFrame([{**baseline, name: v} for v in values])
        res = sweep(design, settings)
        frames.append(pd.DataFrame({"parameter": name, "value": values, output: res[output].to_numpy()}))
    return pd.concat(frames, ignore_index=True)
