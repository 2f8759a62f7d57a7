import numpy as np
import pandas as pd
import pytest

from episens.parameters import ParameterSpace, default_space
from episens.sampling import (
    discrepancy,
    grid_design,
    latin_hypercube,
    make_design,
    random_design,
    saltelli_design,
    sobol_sequence,
)


def _within_bounds(design, space):
    for name, (lo, hi) in zip(space.names, space.bounds):
        assert design[name].between(lo, hi).all(), name


def test_grid_is_full_factorial():
    space = default_space()
    design = grid_design(space, levels=[4, 3, 2])
    assert list(design.columns) == space.names
    assert len(design) == 24
    np.testing.assert_allclose(np.sort(design["beta"].unique()), np.linspace(0.1, 1.0, 4))
    assert len(design.drop_duplicates()) == 24


def test_grid_log_scale_and_single_level():
    space = ParameterSpace({"beta": (0.01, 1.0), "gamma": (0.1, 0.3)}, log_scale=["beta"])
    design = grid_design(space, levels=[3, 1])
    np.testing.assert_allclose(np.sort(design["beta"].to_numpy()), [0.01, 0.1, 1.0])
    np.testing.assert_allclose(design["gamma"].unique(), [0.2])


def test_grid_wrong_level_count():
    with pytest.raises(ValueError):
        grid_design(default_space(), levels=[3, 3])


def test_latin_hypercube_one_point_per_stratum():
    space = default_space()
    n = 50
    design = latin_hypercube(space, n, seed=7)
    u = space.to_unit(design.to_numpy())
    for j in range(space.num_vars):
        strata = np.floor(u[:, j] * n).astype(int)
        assert sorted(strata) == list(range(n))


@pytest.mark.parametrize("method", ["random", "lhs", "sobol"])
def test_designs_within_bounds_and_reproducible(method):
    space = default_space()
    a = make_design(method, space, n=64, seed=3)
    b = make_design(method, space, n=64, seed=3)
    assert a.shape == (64, 3)
    _within_bounds(a, space)
    assert a.equals(b)


def test_different_seeds_differ():
    space = default_space()
    assert not random_design(space, 16, seed=1).equals(random_design(space, 16, seed=2))


def test_sobol_respects_log_scale():
    space = ParameterSpace({"beta": (1e-3, 1.0)}, log_scale=["beta"])
    design = sobol_sequence(space, 256, seed=0)
    _within_bounds(design, space)
    # half the points fall below the geometric midpoint
    frac_low = (design["beta"] < np.sqrt(1e-3)).mean()
    assert frac_low == pytest.approx(0.5, abs=0.05)


def test_saltelli_row_count():
    space = default_space()
    d = space.num_vars
    assert len(saltelli_design(space, 8, calc_second_order=True, seed=1)) == 8 * (2 * d + 2)
    design = saltelli_design(space, 8, calc_second_order=False, seed=1)
    assert len(design) == 8 * (d + 2)
    _within_bounds(design, space)


def test_make_design_grid_uses_levels():
    assert len(make_design("grid", default_space(), n=3)) == 27


@pytest.mark.parametrize("method,n", [("halton", 8), ("lhs", 0), ("random", 2.5)])
def test_make_design_rejects_bad_input(method, n):
    with pytest.raises(ValueError):
        make_design(method, default_space(), n=n)


def test_space_filling_designs_beat_clustered_points():
    space = default_space()
    lhs = latin_hypercube(space, 64, seed=1)
    clustered = space.scale(np.random.default_rng(0).random((64, 3)) * 0.2)
    clustered = pd.DataFrame(clustered, columns=space.names)
    assert discrepancy(lhs, space) < discrepancy(clustered, space)


def test_sobol_warns_when_n_not_power_of_two():
    with pytest.warns(UserWarning):
        design = sobol_sequence(default_space(), 10, seed=0)
    assert len(design) == 10
