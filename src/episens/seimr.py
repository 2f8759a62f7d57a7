"""
===========================================================
seimr.py
Author: Veronica Scerra
Last Updated: 2026-10-19
===========================================================

Description:
    SEmIR model: SEIR with the exposed class split into m
    sequential stages, each left at rate m*sigma. The mean
    latent period stays 1/sigma but its distribution is
    Erlang(m, m*sigma) instead of exponential.

API:
    SEmIRParams(beta, sigma, gamma, mu=0, m=2)
    simulate_seimr(t_eval, y0, p) -> (t, y)   [(m+4) x len(t)]
    SEmIRModel(params, N)
      - simulate(t, I0, E0=0, R0_init=0) -> dict(t,S,E,E_stages,I,R,incidence)
      - summary(outputs)

Notes:
    - state layout: [S, E_1, ..., E_m, I, R, C]
    - initial exposed are placed in E_1
    - m = 1 is exactly the SEIR model
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Dict, Sequence

from .seir import SEIRParams, integrate, initial_state, incidence_from_cumulative, summarize


@dataclass
class SEmIRParams(SEIRParams):
    m: int = 2      # number of exposed stages

    def __post_init__(self):
        super().__post_init__()
        if isinstance(self.m, bool) or int(self.m) != self.m or self.m < 1:
            raise ValueError(f"m must be an integer >= 1, got {self.m}")
        self.m = int(self.m)

    @property
    def R0(self) -> float:
        if self.gamma + self.mu == 0:
            return np.inf
        rate = self.m * self.sigma
        surv = (rate / (rate + self.mu)) ** self.m if rate + self.mu > 0 else 0.0
        return self.beta / (self.gamma + self.mu) * surv


def seimr_rhs(t, y, p: SEmIRParams):
    m = p.m
    S = y[0]
    E = y[1:1 + m]
    I, R = y[1 + m], y[2 + m]
    N = S + E.sum() + I + R
    inf = p.beta * S * I / N if N > 0 else 0.0
    rate = m * p.sigma

    dy = np.empty_like(y)
    dy[0] = p.mu * N - inf - p.mu * S
    dy[1] = inf - (rate + p.mu) * E[0]
    dy[2:1 + m] = rate * E[:-1] - (rate + p.mu) * E[1:]
    dy[1 + m] = rate * E[-1] - (p.gamma + p.mu) * I
    dy[2 + m] = p.gamma * I - p.mu * R
    dy[3 + m] = inf
    return dy


def simulate_seimr(t_eval: Sequence[float], y0: Sequence[float], p: SEmIRParams,
                   rtol: float = 1e-6, atol: float = 1e-8, method: str = "LSODA"):
    if len(y0) != p.m + 4:
        raise ValueError(f"y0 must have m + 4 = {p.m + 4} entries, got {len(y0)}")
    return integrate(seimr_rhs, t_eval, y0, p, rtol=rtol, atol=atol, method=method)


class SEmIRModel:
    def __init__(self, params: SEmIRParams, N: float = 1.0, rtol: float = 1e-6, atol: float = 1e-8,
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
        m = self.params.m
        S0, E0, I0, R0 = initial_state(self.N, I0, E0, R0_init)
        y0 = np.zeros(m + 4)
        y0[0], y0[1], y0[1 + m], y0[2 + m] = S0, E0, I0, R0
        t, y = simulate_seimr(t, y0, self.params, rtol=self.rtol, atol=self.atol, method=self.method)
        states = np.maximum(y[:m + 3], 0.0)
        E_stages = states[1:1 + m]
        C = y[m + 3]
        return {"t": t, "S": states[0], "E": E_stages.sum(axis=0), "E_stages": E_stages,
                "I": states[1 + m], "R": states[2 + m],
                "cumulative": C, "incidence": incidence_from_cumulative(C)}

    @staticmethod
    def summary(outputs: Dict[str, np.ndarray]) -> Dict[str, float]:
        return summarize(outputs)
