"""
===========================================================
experiments.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===========================================================

Description:
    Parameter sweeps for the deterministic SEIR / SEmIR models:
    run one simulation per row of a design, reduce each run to
    summary statistics (peak infected fraction first of all),
    and return tidy DataFrames for plotting and sensitivity
    indices.

Example Usage:
    from episens.parameters import default_space, SweepSettings
    from episens.sampling import latin_hypercube
    from episens.experiments import sweep
    design = latin_hypercube(default_space(), n=200, seed=1)
    df = sweep(design, SweepSettings(N=1.0, I0=1e-4))
    df[["beta", "gamma", "peak_prevalence"]].head()

Notes:
    - Parameters missing from the design come from settings.fixed,
      then settings.mu / settings.m.
    - A run whose integration fails is kept with NaN summaries
      and a RuntimeWarning, so one bad corner does not sink the sweep.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import time
import warnings
import numpy as np
import pandas as pd
from typing import Dict, Optional, Sequence

from .parameters import SweepSettings
from .seir import SEIRModel, SEIRParams
from .seimr import SEmIRModel, SEmIRParams

SUMMARY_COLUMNS = ["R0", "peak_day", "peak_infected", "peak_prevalence", "final_size", "max_incidence"]
RATE_NAMES = ("beta", "sigma", "gamma")


def _resolve_params(row: Dict[str, float], settings: SweepSettings) -> Dict[str, float]:
    params = settings.baseline()
    params.update({k: float(v) for k, v in row.items()})
    missing = [n for n in RATE_NAMES if n not in params]
    if missing:
        raise ValueError(f"no value for {missing}: add them to the design or to settings.fixed")
    return params


def build_model(params: Dict[str, float], settings: SweepSettings):
    """Construct the model object named by settings.model for one parameter set."""
    rates = {n: params[n] for n in RATE_NAMES}
    solver = dict(rtol=settings.rtol, atol=settings.atol, method=settings.method)
    if settings.model == "seimr":
        # sampled stage counts round half up, so m = 0.5 gives one stage
        m = int(np.floor(params.get("m", settings.m) + 0.5))
        return SEmIRModel(SEmIRParams(mu=params.get("mu", 0.0), m=m, **rates), N=settings.N, **solver)
    return SEIRModel(SEIRParams(mu=params.get("mu", 0.0), **rates), N=settings.N, **solver)


def run_one(params: Dict[str, float], settings: SweepSettings) -> Dict[str, float]:
    """Run one simulation and return a dict of the parameters plus summary statistics"""
    resolved = _resolve_params(params, settings)
    model = build_model(resolved, settings)
    out = model.simulate(t=settings.t, I0=settings.I0, E0=settings.E0, R0_init=settings.R0_init)
    rec = {k: float(v) for k, v in params.items()}
    rec["R0"] = float(model.R0)
    rec.update(model.summary(out))
    return rec


def sweep(design: pd.DataFrame, settings: SweepSettings, progress: bool = False) -> pd.DataFrame:
    """
    Evaluate the model for every row of a design. Returns a tidy DataFrame
    with run_id, the design columns and the summary columns, in design order.
    """
    if len(design) == 0:
        raise ValueError("design has no rows")
    records = []
    n_failed = 0
    t0 = time.perf_counter()
    for run_id, row in enumerate(design.to_dict(orient="records")):
        try:
            rec = run_one(row, settings)
        except (RuntimeError, FloatingPointError) as e:
            warnings.warn(f"run {run_id} failed ({row}): {e}", RuntimeWarning)
            rec = {k: float(v) for k, v in row.items()}
            rec.update({c: np.nan for c in SUMMARY_COLUMNS})
            n_failed += 1
        rec["run_id"] = run_id
        records.append(rec)
        if progress and (run_id + 1) % max(1, len(design) // 10) == 0:
            print(f"  {run_id + 1}/{len(design)} runs ({time.perf_counter() - t0:.1f}s)")

    if progress:
        print(f"Sweep done: {len(design)} runs, {n_failed} failed, {time.perf_counter() - t0:.1f}s")
    df = pd.DataFrame.from_records(records)
    return df[["run_id", *design.columns, *SUMMARY_COLUMNS]]


def grid_sweep(betas: Sequence[float], gammas: Sequence[float], settings: SweepSettings) -> pd.DataFrame:
    """
    Evaluate the model across a grid of (beta, gamma) values with sigma taken
    from settings.fixed. Returns one row per combination sorted by beta, gamma.
    """
    design = pd.DataFrame(
        [(float(b), float(g)) for b in betas for g in gammas],
        columns=["beta", "gamma"],
    )
    df = sweep(design, settings)
    return df.sort_values(["beta", "gamma"]).reset_index(drop=True)


def pivot_for_plot(df: pd.DataFrame, x: str, y: str, value: str):
    """Pivot a DataFrame to 2D arrays for plotting (heatmaps/contour)
    Return X_grid, Y_grid, Z_values
    """
    table = df.pivot_table(index=y, columns=x, values=value, aggfunc="mean").sort_index().sort_index(axis=1)
    if table.isna().to_numpy().any():
        raise ValueError(f"({x}, {y}) is not a complete grid; pivot needs every combination")
    X, Y = np.meshgrid(table.columns.to_numpy(dtype=float), table.index.to_numpy(dtype=float))
    return X, Y, table.to_numpy(dtype=float)


def peak_fraction_trajectories(design: pd.DataFrame, settings: SweepSettings,
                               max_runs: Optional[int] = None) -> pd.DataFrame:
    """Infected fraction over time for each design row, as a long DataFrame (run_id, t, I_frac)."""
    rows = design if max_runs is None else design.head(max_runs)
    frames = []
    for run_id, row in enumerate(rows.to_dict(orient="records")):
        model = build_model(_resolve_params(row, settings), settings)
        out = model.simulate(t=settings.t, I0=settings.I0, E0=settings.E0, R0_init=settings.R0_init)
        frame = pd.DataFrame({"run_id": run_id, "t": out["t"], "I_frac": out["I"] / settings.N})
        for k, v in row.items():
            frame[k] = float(v)
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


if __name__ == "__main__":
    from .parameters import default_space
    from .sampling import latin_hypercube

    settings = SweepSettings(N=1.0, I0=1e-4, t_max=365)
    settings.print_summary()
    design = latin_hypercube(default_space(), n=100, seed=1)
    df = sweep(design, settings, progress=True)
    print(df.describe().T[["mean", "min", "max"]])
