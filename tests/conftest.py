"""Shared fixtures and configuration for tests."""

import numpy as np
import pytest

from demandcast.config import PipelineConfig
from demandcast.timeseries import PeriodicSeries

# Test configuration
pytest.TEST_SEED = 42

# Small stand-ins for the reference periods (63 bins per day, 441 per week)
DAILY = 4
WEEKLY = 8


@pytest.fixture(autouse=True)
def set_random_seed():
    """Automatically set random seed for reproducible tests."""
    np.random.seed(pytest.TEST_SEED)
    yield
    np.random.seed(None)


@pytest.fixture
def daily_pattern():
    """One daily cycle of demand."""
    return np.array([5.0, 20.0, 35.0, 10.0])


@pytest.fixture
def periodic_values(daily_pattern):
    """Twelve weeks of an exactly repeating daily pattern plus a weekly bump."""
    weekly_bump = np.array([0.0, 0.0, 0.0, 0.0, 4.0, 4.0, 4.0, 4.0])
    n_weeks = 12
    daily = np.tile(daily_pattern, 2 * n_weeks)
    weekly = np.tile(weekly_bump, n_weeks)
    return daily + weekly


@pytest.fixture
def noisy_values(periodic_values):
    """Periodic demand with non-negative noise."""
    noise = np.random.gamma(2.0, 1.0, len(periodic_values))
    return periodic_values + noise


@pytest.fixture
def demand_series(noisy_values):
    """PeriodicSeries with daily and weekly periods."""
    return PeriodicSeries(noisy_values, period=DAILY, period2=WEEKLY)


@pytest.fixture
def small_config():
    """PipelineConfig sized for the synthetic series."""
    return PipelineConfig(
        period=DAILY,
        period2=WEEKLY,
        fourier_order=2,
        arima_order=(1, 0, 0),
        valid_len=WEEKLY,
        future_horizon=WEEKLY,
        intervals_per_day=DAILY,
    )
