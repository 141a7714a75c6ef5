import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def rating_series(rng):
    """100 daily ratings around 1500 without structure."""
    return pd.Series(
        1500.0 + rng.normal(0.0, 10.0, 100),
        index=pd.date_range("2023-01-01", periods=100, freq="D"),
    )


@pytest.fixture
def random_walk(rng):
    return pd.Series(1500.0 + np.cumsum(rng.normal(0.0, 5.0, 60)))


@pytest.fixture
def linear_monthly():
    """24 monthly ratings rising by exactly one point per month."""
    return pd.Series(
        1500.0 + np.arange(24, dtype=float),
        index=pd.date_range("2019-01-01", periods=24, freq="MS"),
    )


@pytest.fixture
def weekly_activity(rng):
    """12 weeks of daily game counts with a weekly cycle."""
    t = np.arange(84)
    return pd.Series(
        40.0 + 15.0 * np.sin(2.0 * np.pi * t / 7.0) + rng.normal(0.0, 1.0, 84),
        index=pd.date_range("2023-01-02", periods=84, freq="D"),
    )


@pytest.fixture
def constant_series():
    return [1500.0] * 60


@pytest.fixture
def three_groups(rng):
    """Three well separated groups of 30 player profiles (2 features)."""
    centers = np.array([[1200.0, 10.0], [1600.0, 40.0], [2000.0, 80.0]])
    return np.vstack([center + rng.normal(0.0, [15.0, 1.5], (30, 2)) for center in centers])
