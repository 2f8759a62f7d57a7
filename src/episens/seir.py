"""
===========================================================
seir.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===========================================================

Description:
    Deterministic SEIR (Susceptible-Exposed-Infectious-Recovered)
    model integrated with scipy's solve_ivp. Optional vital
    dynamics (births = deaths at per-capita rate mu).

API:
    SEIRParams(beta, sigma, gamma, mu=0)
    simulate_seir(t_eval, y0, p) -> (t, y)   [5 x len(t)]
    SEIRModel(params, N)
      - simulate(t, I0, E0=0, R0_init=0) -> dict(t,S,E,I,R,incidence)
      - summary(outputs) -> dict of peak day, prevalence, final size

Notes:
    - beta: transmission rate (per day)
    - sigma: progression rate E->I (per day)  [1/sigma = latent period]
    - gamma: recovery rate (per day)  [1/gamma = infectious period]
    - the 5th state C accumulates new infections; incidence = ΔC
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass, asdict
from typing import Dict, Sequence, Tuple
from scipy.integrate import solve_ivp


@dataclass
class SEIRParams:
    beta: float         # transmission rate
    sigma: float        # 1/latent period
    gamma: float        # 1/infectious period
    mu: float = 0.0     # per-capita birth = death rate

    def __post_init__(self):
        for name in ("beta", "sigma", "gamma", "mu"):
            val = float(getattr(self, name))
            if not np.isfinite(val) or val < 0:
                raise ValueError(f"{name} must be a finite non-negative rate, got {val}")
            setattr(self, name, val)

    @property
    def R0(self) -> float:
        denom = (self.sigma + self.mu) * (self.gamma + self.mu)
        return self.beta * self.sigma / denom if denom > 0 else np.inf

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def seir_rhs(t, y, p: SEIRParams):
    S, E, I, R, C = y
    N = S + E + I + R
    inf = p.beta * S * I / N if N > 0 else 0.0     # force of infection x S
    dS = p.mu * N - inf - p.mu * S
    dE = inf - (p.sigma + p.mu) * E
    dI = p.sigma * E - (p.gamma + p.mu) * I
    dR = p.gamma * I - p.mu * R
    dC = inf
    return (dS, dE, dI, dR, dC)


def check_time_grid(t) -> np.ndarray:
    """Validate an output time grid: 1D, at least two points, strictly increasing."""
    t = np.asarray(t, dtype=float)
    if t.ndim != 1 or len(t) < 2:
        raise ValueError("time grid must be 1D with at least two points")
    if not np.all(np.diff(t) > 0):
        raise ValueError("time grid must be strictly increasing")
    return t


def integrate(rhs, t_eval, y0, p, rtol: float = 1e-6, atol: float = 1e-8, method: str = "LSODA"):
    """Run solve_ivp on rhs(t, y, p) and return (t, y); raise RuntimeError on failure."""
    t_eval = check_time_grid(t_eval)
    sol = solve_ivp(lambda t, y: rhs(t, y, p),
                    (t_eval[0], t_eval[-1]), np.asarray(y0, dtype=float),
                    t_eval=t_eval, method=method, rtol=rtol, atol=atol)
    if not sol.success:
        raise RuntimeError(f"ODE integration failed for {p}: {sol.message}")
    return sol.t, sol.y


def simulate_seir(t_eval: Sequence[float], y0: Tuple[float, float, float, float, float], p: SEIRParams,
                  rtol: float = 1e-6, atol: float = 1e-8, method: str = "LSODA"):
    return integrate(seir_rhs, t_eval, y0, p, rtol=rtol, atol=atol, method=method)


def initial_state(N: float, I0: float, E0: float = 0.0, R0_init: float = 0.0) -> Tuple[float, float, float, float]:
    """Return (S0, E0, I0, R0) after checking the seeds fit in the population."""
    if min(I0, E0, R0_init) < 0:
        raise ValueError("initial compartment sizes must be non-negative")
    S0 = float(N) - I0 - E0 - R0_init
    if S0 < 0:
        raise ValueError(f"I0 + E0 + R0_init ({I0 + E0 + R0_init}) exceeds N ({N})")
    return S0, float(E0), float(I0), float(R0_init)


def incidence_from_cumulative(C: np.ndarray) -> np.ndarray:
    incidence = np.zeros_like(C)
    incidence[1:] = np.maximum(np.diff(C), 0.0)
    return incidence


def summarize(outputs: Dict[str, np.ndarray]) -> Dict[str, float]:
    """Peak timing/size and final size of one run; fractions are relative to N at t0."""
    t, I = outputs["t"], outputs["I"]
    N0 = outputs["S"][0] + outputs["E"][0] + I[0] + outputs["R"][0]
    peak_idx = int(np.argmax(I))
    return {
        "peak_day": float(t[peak_idx]),
        "peak_infected": float(I[peak_idx]),
        "peak_prevalence": float(I[peak_idx] / N0),
        "final_size": float(outputs["cumulative"][-1] / N0),
        "max_incidence": float(np.max(outputs["incidence"])),
    }


class SEIRModel:
    def __init__(self, params: SEIRParams, N: float = 1.0, rtol: float = 1e-6, atol: float = 1e-8,
                 method: str = "LSODA"):
        if N <= 0:
            raise ValueError("N must be positive")
        self.params = params
        self.N = float(N)
        self.rtol, self.atol, self.method = rtol, atol, method

    @property
    def R0(self) -> float:
        return self.params.R0

    def simulate(self, t: np.ndarray, I0: float, E0: float = 0.0, R0_init: float = 0.0) -> Dict[str, np.ndarray]:
        S0, E0, I0, R0 = initial_state(self.N, I0, E0, R0_init)
        t, y = simulate_seir(t, (S0, E0, I0, R0, 0.0), self.params,
                             rtol=self.rtol, atol=self.atol, method=self.method)
        # solver round-off can dip slightly below zero
        S, E, I, R = np.maximum(y[:4], 0.0)
        C = y[4]
        return {"t": t, "S": S, "E": E, "I": I, "R": R,
                "cumulative": C, "incidence": incidence_from_cumulative(C)}

    @staticmethod
    def summary(outputs: Dict[str, np.ndarray]) -> Dict[str, float]:
        return summarize(outputs)
