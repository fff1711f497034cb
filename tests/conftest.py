"""Shared fixtures."""

import numpy as np
import pandas as pd
import pytest

from bayes_tuner.search.space import SearchSpace


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tuning runs")


@pytest.fixture
def housing_frame():
    """Small synthetic house-price table with an id, numeric and categorical columns."""
    rng = np.random.default_rng(0)
    n = 120
    area = rng.uniform(500, 3500, n)
    rooms = rng.integers(1, 8, n)
    quality = rng.choice(["low", "mid", "high"], n)
    bonus = pd.Series(quality).map({"low": 0.8, "mid": 1.0, "high": 1.3}).to_numpy()
    price = 50 * area * bonus + 5000 * rooms + rng.normal(0, 5000, n)

    frame = pd.DataFrame(
        {
            "Id": np.arange(1, n + 1),
            "LotArea": area,
            "Rooms": rooms,
            "Quality": quality,
            "SalePrice": np.abs(price) + 10000,
        }
    )
    frame.loc[[3, 17, 42], "LotArea"] = np.nan
    frame.loc[[5, 60], "Quality"] = None
    return frame


@pytest.fixture
def quadratic_space():
    """One-dimensional space for the (x - 3)^2 objective."""
    return SearchSpace().add_float("x", -10.0, 10.0)


@pytest.fixture
def mixed_space():
    """Space with float, log-float, integer and proportion parameters."""
    return (
        SearchSpace()
        .add_float("alpha", 0.0, 1.0)
        .add_float("learn_rate", 1e-3, 0.3, log=True)
        .add_int("depth", 1, 10)
        .add_proportion("sample_size", 0.1, 1.0)
    )
