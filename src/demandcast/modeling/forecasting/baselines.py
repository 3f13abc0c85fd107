"""
Baseline forecasting models for demand time series.

This module provides the simple benchmark forecasters every richer method
must beat on the validation window:
- AverageForecaster: Mean of the training window
- NaiveForecaster: Last value propagation (random walk baseline)
- SeasonalNaiveForecaster: Repetition of the last seasonal cycle
- DriftForecaster: Straight line through the first and last observation

All forecasters follow a consistent API:
1. fit(y_train, exog=None): Learn from training data, returns self
2. forecast(horizon, exog=None): Point forecasts for the next horizon steps
3. fitted_values_ / residuals_: In-sample fit after fit()

Example:
    ```python
    import numpy as np
    from demandcast.modeling.forecasting.baselines import (
        DriftForecaster,
        SeasonalNaiveForecaster,
    )

    y_train = np.array([10.0, 12.0, 14.0])
    DriftForecaster().fit(y_train).forecast(horizon=2)
    # array([16., 18.])

    daily = SeasonalNaiveForecaster(period=63)
    daily.fit(demand[-441:])
    daily.forecast(horizon=63)  # repeats the last observed day
    ```
"""

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import ArrayLike, NDArray

from demandcast.exceptions import InsufficientDataError


class BaseForecaster(ABC):
    """
    Abstract base class for all forecasters.

    A fitted forecaster is its own fitted model: fit() stores state on the
    instance and returns self. Subclasses implement _fit() and _forecast();
    the base class validates inputs and horizon and tracks fitted state.

    After fit():
    - fitted_values_: In-sample one-step fitted values, same length as the
      training input. Leading warm-up positions may be NaN.
    - residuals_: y_train - fitted_values_ (NaN where fitted is undefined)

    Attributes:
        min_length: Minimum training length accepted by fit()
        is_fitted_: Whether the model has been fitted
    """

    min_length: int = 1

    def __init__(self):
        self.is_fitted_ = False
        self.fitted_values_: NDArray[np.floating] | None = None
        self._y_train: NDArray[np.floating] | None = None

    def fit(self, y_train: ArrayLike, exog: ArrayLike | None = None) -> "BaseForecaster":
        """
        Fit the forecaster to training data.

        Args:
            y_train: Training time series of shape (n_samples,)
            exog: Optional exogenous regressors of shape (n_samples, k)

        Returns:
            self: Fitted forecaster instance (for method chaining)

        Raises:
            ValueError: If y_train is empty or contains NaN/Inf
            InsufficientDataError: If y_train is shorter than min_length
        """
        y = np.asarray(y_train, dtype=np.float64)
        if len(y) == 0:
            raise ValueError("y_train cannot be empty")
        if not np.all(np.isfinite(y)):
            raise ValueError("y_train contains NaN or Inf values")
        if len(y) < self.min_length:
            raise InsufficientDataError(
                f"{type(self).__name__} needs at least {self.min_length} samples "
                f"(got {len(y)})"
            )

        self._y_train = y.copy()
        self.fitted_values_ = np.asarray(self._fit(y, exog), dtype=np.float64)
        self.is_fitted_ = True
        return self

    def forecast(self, horizon: int, exog: ArrayLike | None = None) -> NDArray[np.floating]:
        """
        Generate forecasts for future timesteps.

        Args:
            horizon: Number of steps ahead to forecast (must be > 0)
            exog: Future exogenous regressors, if the model was fit with them

        Returns:
            Forecasts of shape (horizon,)

        Raises:
            ValueError: If horizon <= 0
            RuntimeError: If called before fit()
        """
        if not self.is_fitted_:
            raise RuntimeError("Must call fit() before forecast()")

        if horizon <= 0:
            raise ValueError(f"horizon must be > 0, got {horizon}")

        return np.asarray(self._forecast(horizon, exog), dtype=np.float64)

    @property
    def residuals_(self) -> NDArray[np.floating]:
        if not self.is_fitted_:
            raise RuntimeError("Must call fit() before accessing residuals_")
        return self._y_train - self.fitted_values_

    @abstractmethod
    def _fit(self, y: NDArray[np.floating], exog: ArrayLike | None) -> NDArray[np.floating]:
        """Estimate model state from validated y; return in-sample fitted values."""
        pass

    @abstractmethod
    def _forecast(self, horizon: int, exog: ArrayLike | None) -> NDArray[np.floating]:
        """Point forecasts for a validated horizon."""
        pass


class AverageForecaster(BaseForecaster):
    """
    Mean forecaster that propagates the training average.

    Formula:
        ŷ(t+h) = mean(y(1), ..., y(t)) for all h in [1, horizon]

    Fitted values are the same constant mean over the training window.

    Attributes:
        mean_value_: Mean of the training data (set after fit())
    """

    def __init__(self):
        super().__init__()
        self.mean_value_: float | None = None

    def _fit(self, y, exog):
        self.mean_value_ = float(np.mean(y))
        return np.full(len(y), self.mean_value_)

    def _forecast(self, horizon, exog):
        return np.full(horizon, self.mean_value_, dtype=np.float64)


class NaiveForecaster(BaseForecaster):
    """
    Naive forecaster that propagates the last observed value.

    This is the simplest baseline, also known as the "persistence" or
    "random walk" forecaster.

    Formula:
        ŷ(t+h) = y(t) for all h in [1, horizon]

    The in-sample fitted value at t is y(t-1), so the first position is NaN.

    Example:
        ```python
        naive = NaiveForecaster().fit(np.array([100, 102, 101, 103, 102]))
        naive.forecast(horizon=3)
        # Output: [102, 102, 102]
        ```

    Attributes:
        last_value_: Last value from training data (set after fit())
    """

    def __init__(self):
        super().__init__()
        self.last_value_: float | None = None

    def _fit(self, y, exog):
        self.last_value_ = float(y[-1])
        return _lagged(y, 1)

    def _forecast(self, horizon, exog):
        return np.full(horizon, self.last_value_, dtype=np.float64)


class SeasonalNaiveForecaster(BaseForecaster):
    """
    Seasonal naive forecaster that repeats the last seasonal cycle.

    Formula:
        ŷ(t+h) = y(t - period + 1 + ((h-1) mod period))

    Requires one full seasonal cycle of training data. The in-sample fitted
    value at t is y(t - period), so the first `period` positions are NaN.

    Example:
        ```python
        # Daily pattern with period=7
        seasonal = SeasonalNaiveForecaster(period=7)
        seasonal.fit(np.array([1, 2, 3, 4, 5, 6, 7]))
        seasonal.forecast(horizon=7)
        # Output: [1, 2, 3, 4, 5, 6, 7]
        ```

    Attributes:
        period: Seasonal period (e.g., 63 fifteen-minute bins per day)
        seasonal_values_: Last full seasonal cycle (set after fit())
    """

    def __init__(self, period: int):
        """
        Initialize the seasonal naive forecaster.

        Args:
            period: Length of the seasonal cycle (must be > 0)

        Raises:
            ValueError: If period <= 0
        """
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period}")

        super().__init__()
        self.period = period
        self.min_length = period
        self.seasonal_values_: NDArray[np.floating] | None = None

    def _fit(self, y, exog):
        self.seasonal_values_ = y[-self.period :].copy()
        return _lagged(y, self.period)

    def _forecast(self, horizon, exog):
        return repeat_cycle(self.seasonal_values_, horizon)


class DriftForecaster(BaseForecaster):
    """
    Drift forecaster: naive plus the average historical change.

    Formula:
        ŷ(t+h) = y(t) + h × (y(t) - y(1)) / (n - 1)

    Equivalent to extrapolating the line through the first and last
    observations. Forecast increments are constant across the horizon.

    Example:
        ```python
        drift = DriftForecaster().fit(np.array([10.0, 12.0, 14.0]))
        drift.forecast(horizon=2)
        # Output: [16.0, 18.0]  (slope = (14 - 10) / 2 = 2)
        ```

    Attributes:
        last_value_: Last value from training data
        slope_: Average change per step (set after fit())
    """

    min_length = 2

    def __init__(self):
        super().__init__()
        self.last_value_: float | None = None
        self.slope_: float | None = None

    def _fit(self, y, exog):
        self.last_value_ = float(y[-1])
        self.slope_ = float((y[-1] - y[0]) / (len(y) - 1))
        fitted = _lagged(y, 1)
        fitted[1:] += self.slope_
        return fitted

    def _forecast(self, horizon, exog):
        steps = np.arange(1, horizon + 1, dtype=np.float64)
        return self.last_value_ + steps * self.slope_


def repeat_cycle(cycle: NDArray[np.floating], horizon: int) -> NDArray[np.floating]:
    """Tile one seasonal cycle cyclically to exactly horizon values."""
    n_full_cycles = horizon // len(cycle)
    remainder = horizon % len(cycle)

    forecasts = np.tile(cycle, n_full_cycles)
    if remainder > 0:
        forecasts = np.concatenate([forecasts, cycle[:remainder]])

    return forecasts.astype(np.float64)


def _lagged(y: NDArray[np.floating], lag: int) -> NDArray[np.floating]:
    """y shifted forward by lag steps, NaN-padded at the start."""
    out = np.full(len(y), np.nan)
    if lag < len(y):
        out[lag:] = y[:-lag]
    return out
