"""
===============================================================================
parameters.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===============================================================================
Parameter spaces and sweep settings for SEIR / SEmIR sensitivity analysis

ParameterSpace holds the bounds that samplers draw from; SweepSettings holds
everything that stays fixed across the runs of one sweep (population, seeds,
time grid, solver tolerances, which model to run). Preset factories at the
bottom give baseline rates for a few familiar pathogens.

Rates are per day. Latent/infectious periods in the presets are rough
textbook values, good enough for teaching sweeps.
--------------------------------------------------------------------------------
License: MIT
================================================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

MODEL_PARAMETERS = ("beta", "sigma", "gamma", "mu", "m")
MODELS = ("seir", "seimr")


class ParameterSpace:
    """Ordered box of parameter bounds.

    Parameters:
    bounds : dict. name -> (low, high), in the order samplers should use
    log_scale : iterable of names sampled uniformly in log10 space
    """

    def __init__(self, bounds: Dict[str, Tuple[float, float]], log_scale: Iterable[str] = ()):
        self._bounds = {str(k): (float(lo), float(hi)) for k, (lo, hi) in bounds.items()}
        self.log_scale = frozenset(log_scale)
        self.validate()

    def validate(self):
        if not self._bounds:
            raise ValueError("parameter space needs at least one parameter")
        for name, (lo, hi) in self._bounds.items():
            if name not in MODEL_PARAMETERS:
                raise ValueError(f"unknown parameter '{name}', expected one of {MODEL_PARAMETERS}")
            if not (np.isfinite(lo) and np.isfinite(hi)) or lo >= hi:
                raise ValueError(f"bounds for '{name}' must satisfy low < high, got ({lo}, {hi})")
            if name in self.log_scale and lo <= 0:
                raise ValueError(f"log-scaled parameter '{name}' needs positive bounds")
            if name == "m" and lo < 0.5:
                # stage counts round half up, so 0.5 is the smallest bound giving m >= 1
                raise ValueError(f"lower bound for 'm' must be at least 0.5, got {lo}")
            if lo < 0:
                raise ValueError(f"rate '{name}' cannot be negative, got lower bound {lo}")
        unknown = self.log_scale - set(self._bounds)
        if unknown:
            raise ValueError(f"log_scale names not in bounds: {sorted(unknown)}")

    @property
    def names(self) -> List[str]:
        return list(self._bounds)

    @property
    def bounds(self) -> List[Tuple[float, float]]:
        return list(self._bounds.values())

    @property
    def num_vars(self) -> int:
        return len(self._bounds)

    def __getitem__(self, name: str) -> Tuple[float, float]:
        return self._bounds[name]

    def __repr__(self):
        return f"ParameterSpace({self._bounds!r}, log_scale={sorted(self.log_scale)!r})"

    def unit_bounds(self) -> List[Tuple[float, float]]:
        """Bounds in sampling coordinates (log10 for log-scaled names)."""
        return [(np.log10(lo), np.log10(hi)) if n in self.log_scale else (lo, hi)
                for n, (lo, hi) in self._bounds.items()]

    def to_salib_problem(self) -> Dict:
        """SALib problem dict; log-scaled parameters are given in log10 space."""
        return {
            "num_vars": self.num_vars,
            "names": self.names,
            "bounds": [list(b) for b in self.unit_bounds()],
        }

    def scale(self, unit_samples: np.ndarray) -> np.ndarray:
        """Map samples in [0, 1)^d onto the parameter bounds."""
        u = np.atleast_2d(np.asarray(unit_samples, dtype=float))
        if u.shape[1] != self.num_vars:
            raise ValueError(f"expected {self.num_vars} columns, got {u.shape[1]}")
        lo, hi = np.array(self.unit_bounds()).T
        return self.from_sampling_coords(lo + u * (hi - lo))

    def from_sampling_coords(self, x: np.ndarray) -> np.ndarray:
        out = np.array(x, dtype=float, copy=True)
        for j, name in enumerate(self.names):
            if name in self.log_scale:
                out[:, j] = 10.0 ** out[:, j]
        return out

    def to_unit(self, samples: np.ndarray) -> np.ndarray:
        """Inverse of scale(): map parameter values back to [0, 1]^d."""
        x = np.array(np.atleast_2d(samples), dtype=float, copy=True)
        for j, name in enumerate(self.names):
            if name in self.log_scale:
                x[:, j] = np.log10(x[:, j])
        lo, hi = np.array(self.unit_bounds()).T
        return (x - lo) / (hi - lo)


def default_space() -> ParameterSpace:
    """beta, sigma and gamma over ranges covering most acute respiratory infections."""
    return ParameterSpace({
        "beta": (0.1, 1.0),
        "sigma": (1 / 14, 1 / 2),
        "gamma": (1 / 14, 1 / 3),
    })


@dataclass
class SweepSettings:
    """
    Everything held constant across the runs of one sweep.

    Population quantities may be counts (N = 10_000, I0 = 10) or fractions
    (N = 1, I0 = 1e-4); summaries are reported both ways.
    """
    model: str = "seir"
    N: float = 1.0
    I0: float = 1e-4
    E0: float = 0.0
    R0_init: float = 0.0
    t_max: float = 365.0
    dt: float = 1.0
    m: int = 1
    mu: float = 0.0
    rtol: float = 1e-6
    atol: float = 1e-8
    method: str = "LSODA"
    fixed: Dict[str, float] = field(default_factory=dict)
    t: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.model = self.model.lower()
        if self.model not in MODELS:
            raise ValueError(f"model must be one of {MODELS}, got '{self.model}'")
        if self.N <= 0:
            raise ValueError("N must be positive")
        if min(self.I0, self.E0, self.R0_init) < 0:
            raise ValueError("initial compartment sizes must be non-negative")
        if self.I0 + self.E0 + self.R0_init > self.N:
            raise ValueError("initial seeds exceed the population")
        if self.mu < 0:
            raise ValueError("mu cannot be negative")
        if self.t_max <= 0 or self.dt <= 0 or self.dt > self.t_max:
            raise ValueError("need 0 < dt <= t_max")
        if isinstance(self.m, bool) or int(self.m) != self.m or self.m < 1:
            raise ValueError(f"m must be an integer >= 1, got {self.m}")
        if self.model == "seir" and self.m != 1:
            raise ValueError("m > 1 requires model='seimr'")
        unknown = set(self.fixed) - set(MODEL_PARAMETERS)
        if unknown:
            raise ValueError(f"unknown fixed parameters: {sorted(unknown)}")
        # include t_max itself when dt divides it
        n_steps = int(np.floor(self.t_max / self.dt + 1e-9))
        self.t = np.arange(n_steps + 1) * self.dt

    def baseline(self) -> Dict[str, float]:
        """Parameter values used when a design does not vary them."""
        base = {"mu": self.mu, "m": self.m}
        base.update(self.fixed)
        return base

    def to_dict(self) -> Dict:
        return {
            "model": self.model,
            "N": self.N,
            "I0": self.I0,
            "E0": self.E0,
            "R0_init": self.R0_init,
            "t_max": self.t_max,
            "dt": self.dt,
            "m": self.m,
            "mu": self.mu,
            "rtol": self.rtol,
            "atol": self.atol,
            "method": self.method,
            "fixed": dict(self.fixed),
        }

    def print_summary(self):
        """Print sweep settings for documentation."""
        print("SWEEP SETTINGS:")
        print(f"Model: {self.model.upper()}" + (f" (m = {self.m} exposed stages)" if self.model == "seimr" else ""))
        print(f"Population: {self.N:,g}  (I0 = {self.I0:g}, E0 = {self.E0:g}, R0_init = {self.R0_init:g})")
        print(f"Time grid: 0 to {self.t[-1]:g} days, step {self.dt:g} ({len(self.t)} points)")
        print(f"Solver: {self.method} (rtol = {self.rtol:g}, atol = {self.atol:g})")
        if self.fixed:
            print("Fixed: " + ", ".join(f"{k} = {v:g}" for k, v in self.fixed.items()))


# Baseline rates for common scenarios
def create_covid_like_params() -> Dict[str, float]:
    """Latent ~5 days, infectious ~7 days, R0 ~2.5"""
    gamma = 1 / 7
    return {"beta": 2.5 * gamma, "sigma": 1 / 5, "gamma": gamma}


def create_influenza_like_params() -> Dict[str, float]:
    """Latent ~2 days, infectious ~3 days, R0 ~1.5"""
    gamma = 1 / 3
    return {"beta": 1.5 * gamma, "sigma": 1 / 2, "gamma": gamma}


def create_measles_like_params() -> Dict[str, float]:
    """Latent ~8 days, infectious ~10 days, R0 ~15"""
    gamma = 1 / 10
    return {"beta": 15.0 * gamma, "sigma": 1 / 8, "gamma": gamma}


def space_around(baseline: Dict[str, float], spread: float = 0.5,
                 names: Optional[Sequence[str]] = None) -> ParameterSpace:
    """Box of +/- spread (relative) around baseline values, e.g. for a local study."""
    if not 0 < spread < 1:
        raise ValueError("spread must be in (0, 1)")
    names = list(names) if names is not None else [n for n, v in baseline.items() if n != "m" and v > 0]
    return ParameterSpace({n: (baseline[n] * (1 - spread), baseline[n] * (1 + spread)) for n in names})
