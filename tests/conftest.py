import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from episens.parameters import SweepSettings


@pytest.fixture
def settings():
    """Short fractional-population sweep settings, fast enough for tests."""
    return SweepSettings(N=1.0, I0=1e-4, t_max=200, dt=1.0)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
