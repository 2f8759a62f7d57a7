import numpy as np
import pytest
from scipy.integrate import solve_ivp

import episens.seir
from episens.seir import SEIRModel, SEIRParams, integrate, seir_rhs, simulate_seir
from episens.seimr import SEmIRModel, SEmIRParams


T = np.arange(0, 301, 1.0)


def test_population_conserved_without_vital_dynamics():
    """S + E + I + R stays at N when mu = 0."""
    model = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.25), N=10_000)
    out = model.simulate(T, I0=10)
    total = out["S"] + out["E"] + out["I"] + out["R"]
    np.testing.assert_allclose(total, 10_000, rtol=1e-5)


def test_population_conserved_with_vital_dynamics():
    model = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.25, mu=1 / (70 * 365)), N=1.0)
    out = model.simulate(T, I0=1e-3)
    total = out["S"] + out["E"] + out["I"] + out["R"]
    np.testing.assert_allclose(total, 1.0, atol=1e-5)


def test_R0_reduces_to_beta_over_gamma():
    p = SEIRParams(beta=0.6, sigma=0.2, gamma=0.2)
    assert p.R0 == pytest.approx(3.0)
    p_mu = SEIRParams(beta=0.6, sigma=0.2, gamma=0.2, mu=0.01)
    assert p_mu.R0 == pytest.approx(0.6 * 0.2 / (0.21 * 0.21))
    assert SEIRParams(beta=0.6, sigma=0.2, gamma=0.0).R0 == np.inf


def test_negative_rate_rejected():
    with pytest.raises(ValueError):
        SEIRParams(beta=-0.1, sigma=0.2, gamma=0.2)


def test_final_size_matches_final_size_equation():
    """For R0 = 2 the attack rate solves z = 1 - exp(-2 z), z ~ 0.7968."""
    model = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.25), N=1.0)
    out = model.simulate(np.arange(0, 1001, 1.0), I0=1e-6)
    summary = model.summary(out)
    assert summary["final_size"] == pytest.approx(0.7968, abs=2e-3)


def test_no_seed_no_epidemic():
    model = SEIRModel(SEIRParams(beta=0.9, sigma=0.3, gamma=0.1), N=1.0)
    summary = model.summary(model.simulate(T, I0=0.0))
    assert summary["peak_prevalence"] == 0.0
    assert summary["peak_day"] == 0.0
    assert summary["max_incidence"] == 0.0


def test_subcritical_peak_is_initial_value():
    """With R0 < 1 and only infectious seeds, I declines from t = 0."""
    model = SEIRModel(SEIRParams(beta=0.05, sigma=0.2, gamma=0.1), N=1.0)
    summary = model.summary(model.simulate(T, I0=1e-3))
    assert summary["peak_day"] == 0.0
    assert summary["peak_prevalence"] == pytest.approx(1e-3)


def test_supercritical_peak_grows_beyond_seed():
    model = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.1), N=1.0)
    summary = model.summary(model.simulate(T, I0=1e-4))
    assert summary["peak_day"] > 0
    assert summary["peak_prevalence"] > 0.1
    assert summary["peak_infected"] == pytest.approx(summary["peak_prevalence"])


def test_incidence_sums_to_cumulative_infections():
    model = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.1), N=1000)
    out = model.simulate(T, I0=1)
    assert out["incidence"][0] == 0.0
    assert np.all(out["incidence"] >= 0)
    assert out["incidence"].sum() == pytest.approx(out["cumulative"][-1], rel=1e-6)


def test_seeds_exceeding_population_rejected():
    model = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.1), N=100)
    with pytest.raises(ValueError):
        model.simulate(T, I0=60, E0=50)


@pytest.mark.parametrize("t", [[0.0], [0.0, 2.0, 1.0], [[0.0, 1.0]]])
def test_bad_time_grid_rejected(t):
    with pytest.raises(ValueError):
        simulate_seir(t, (0.99, 0.0, 0.01, 0.0, 0.0), SEIRParams(beta=0.5, sigma=0.2, gamma=0.1))


def test_rhs_balances():
    p = SEIRParams(beta=0.4, sigma=0.25, gamma=0.1)
    dS, dE, dI, dR, dC = seir_rhs(0.0, [0.7, 0.1, 0.1, 0.1, 0.0], p)
    assert dS + dE + dI + dR == pytest.approx(0.0)
    assert dC == pytest.approx(-dS)


def test_seimr_with_one_stage_matches_seir():
    rates = dict(beta=0.5, sigma=0.2, gamma=0.1)
    seir = SEIRModel(SEIRParams(**rates), N=1.0).simulate(T, I0=1e-4)
    seimr = SEmIRModel(SEmIRParams(m=1, **rates), N=1.0).simulate(T, I0=1e-4)
    np.testing.assert_allclose(seimr["I"], seir["I"], atol=1e-6)
    np.testing.assert_allclose(seimr["S"], seir["S"], atol=1e-6)


def test_seimr_stages_sum_to_exposed():
    model = SEmIRModel(SEmIRParams(beta=0.5, sigma=0.2, gamma=0.1, m=4), N=1.0)
    out = model.simulate(T, I0=1e-4, E0=1e-4)
    assert out["E_stages"].shape == (4, len(T))
    np.testing.assert_allclose(out["E_stages"].sum(axis=0), out["E"])
    # seeds start in the first stage
    assert out["E_stages"][0, 0] == pytest.approx(1e-4)
    assert np.all(out["E_stages"][1:, 0] == 0.0)
    total = out["S"] + out["E"] + out["I"] + out["R"]
    np.testing.assert_allclose(total, 1.0, atol=1e-5)


def test_more_stages_delay_peak():
    """Same mean latent period, less variance: slower growth when R0 > 1."""
    rates = dict(beta=0.5, sigma=0.2, gamma=0.1)
    one = SEmIRModel(SEmIRParams(m=1, **rates)).simulate(T, I0=1e-4)
    five = SEmIRModel(SEmIRParams(m=5, **rates)).simulate(T, I0=1e-4)
    assert SEmIRModel.summary(five)["peak_day"] > SEmIRModel.summary(one)["peak_day"]


def test_seimr_R0():
    assert SEmIRParams(beta=0.5, sigma=0.2, gamma=0.1, m=3).R0 == pytest.approx(5.0)
    p = SEmIRParams(beta=0.5, sigma=0.2, gamma=0.1, mu=0.01, m=1)
    assert p.R0 == pytest.approx(SEIRParams(beta=0.5, sigma=0.2, gamma=0.1, mu=0.01).R0)


@pytest.mark.parametrize("m", [0, 2.5, -1])
def test_seimr_invalid_stage_count(m):
    with pytest.raises(ValueError):
        SEmIRParams(beta=0.5, sigma=0.2, gamma=0.1, m=m)


def _blowup_rhs(t, y, p):
    """dy/dt = y**2 reaches infinity at t = 1 for y(0) = 1."""
    return y ** 2


def test_failed_integration_raises_with_solver_message():
    y0 = [1.0, 0.0, 0.0, 0.0, 0.0]
    sol = solve_ivp(lambda t, y: y ** 2, (0.0, 5.0), y0, t_eval=[0.0, 5.0], method="RK45")
    assert not sol.success
    p = SEIRParams(beta=0.5, sigma=0.2, gamma=0.1)
    with pytest.raises(RuntimeError, match="ODE integration failed") as exc:
        integrate(_blowup_rhs, [0.0, 5.0], y0, p, method="RK45")
    assert sol.message in str(exc.value)


def test_simulate_clips_negative_compartments(monkeypatch):
    """Round-off below zero is clipped; cumulative infections are left alone."""
    def fake_simulate(t_eval, y0, p, **kwargs):
        t = np.asarray(t_eval, dtype=float)
        y = np.array([[1.0, 0.9, 0.8],
                      [0.0, -1e-9, 0.0],
                      [1e-3, 0.05, -2e-10],
                      [0.0, 0.05, 0.2],
                      [0.0, 0.1, 0.2]])
        return t, y

    monkeypatch.setattr(episens.seir, "simulate_seir", fake_simulate)
    out = SEIRModel(SEIRParams(beta=0.5, sigma=0.2, gamma=0.1)).simulate([0.0, 1.0, 2.0], I0=1e-3)
    for name in ("S", "E", "I", "R"):
        assert (out[name] >= 0).all(), name
    assert out["E"][1] == 0.0
    assert out["I"][2] == 0.0
    np.testing.assert_allclose(out["cumulative"], [0.0, 0.1, 0.2])
