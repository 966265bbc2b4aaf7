"""Shared fixtures for the vegtools test suite."""

import matplotlib
import numpy as np
import pandas as pd
import pytest

# Headless drawing for MatplotlibRenderer tests.
matplotlib.use("Agg")


@pytest.fixture()
def rng():
    return np.random.default_rng(42)


@pytest.fixture()
def unimodal_data(rng):
    """Species occurring mostly in the middle of a 0-10 gradient."""
    x = np.linspace(0, 10, 80)
    p = np.exp(-((x - 5.0) ** 2) / 4.0) * 0.9 + 0.02
    y = rng.binomial(1, p).astype(float)
    return x, y


@pytest.fixture()
def species_table(rng):
    """Three species with contrasting responses along one gradient."""
    x = np.linspace(0, 10, 60)
    table = pd.DataFrame(
        {
            "Arrhenatherum": 20 * rng.binomial(1, 1 / (1 + np.exp(-(x - 5)))),
            "Bromus": 5 * rng.binomial(1, 1 / (1 + np.exp(x - 5))),
            "Carex": 3 * rng.binomial(1, np.exp(-((x - 5) ** 2) / 3) * 0.9),
        }
    )
    return table, pd.Series(x, name="soil_depth")
