"""
Decomposition-based forecasters.

Both models split the series into seasonal and non-seasonal parts, forecast
each part separately, and recombine:

- DecompositionNaiveForecaster: classical (moving-average) decomposition
  with one period; naive forecast of the seasonally adjusted series plus the
  last observed seasonal cycle.
- MultiSeasonalForecaster: MSTL decomposition with two nested periods
  (e.g., daily within weekly); ETS forecast of the seasonally adjusted
  series plus the last observed cycle of each seasonal component.

Example:
    ```python
    from demandcast.modeling.forecasting.decomposition import (
        DecompositionNaiveForecaster,
        MultiSeasonalForecaster,
    )

    dn = DecompositionNaiveForecaster(period=63).fit(y_train)
    ms = MultiSeasonalForecaster(period=63, period2=441).fit(y_train)
    preds = ms.forecast(horizon=441)
    ```
"""

from typing import Literal

import numpy as np
from loguru import logger
from statsmodels.tsa.seasonal import MSTL, seasonal_decompose

from demandcast.exceptions import InsufficientDataError

from ._fitting import fit_estimator
from .baselines import BaseForecaster, NaiveForecaster, repeat_cycle
from .smoothing import ETSForecaster


class DecompositionNaiveForecaster(BaseForecaster):
    """
    Classical decomposition with a naive forecast of the adjusted series.

    Steps:
        1. Decompose y = trend + seasonal + remainder (or trend × seasonal ×
           remainder for model="multiplicative")
        2. Seasonally adjusted series a = y - seasonal (or y / seasonal)
        3. Forecast a with NaiveForecaster: â(t+h) = a(t)
        4. Reseasonalize with the last observed seasonal cycle, repeated

    The adjusted series (trend + remainder) is used instead of the bare
    remainder because the moving-average trend is undefined over the last
    half period, which would leave no last remainder value to propagate.

    Args:
        period: Seasonal period (requires at least 2 full cycles)
        model: "additive" or "multiplicative"

    Attributes:
        seasonal_cycle_: Last full cycle of the seasonal component
        adjusted_: Seasonally adjusted training series
        components_: statsmodels DecomposeResult (trend, seasonal, resid)
    """

    def __init__(self, period: int, model: Literal["additive", "multiplicative"] = "additive"):
        if period <= 1:
            raise ValueError(f"period must be > 1, got {period}")
        if model not in ("additive", "multiplicative"):
            raise ValueError(f"model must be 'additive' or 'multiplicative', got {model}")

        super().__init__()
        self.period = period
        self.model = model
        self.min_length = 2 * period
        self.seasonal_cycle_ = None
        self.adjusted_ = None
        self.components_ = None
        self._naive = NaiveForecaster()

    def _fit(self, y, exog):
        if self.model == "multiplicative" and np.any(y <= 0):
            raise ValueError("Multiplicative decomposition requires strictly positive data")

        self.components_ = fit_estimator(
            f"seasonal_decompose({self.model})",
            lambda: seasonal_decompose(y, model=self.model, period=self.period),
        )
        seasonal = np.asarray(self.components_.seasonal, dtype=np.float64)
        self.seasonal_cycle_ = seasonal[-self.period :].copy()
        self.adjusted_ = self._combine(y, seasonal, inverse=True)

        self._naive.fit(self.adjusted_)
        return self._combine(self._naive.fitted_values_, seasonal)

    def _forecast(self, horizon, exog):
        seasonal = repeat_cycle(self.seasonal_cycle_, horizon)
        return self._combine(self._naive.forecast(horizon), seasonal)

    def _combine(self, base, seasonal, inverse=False):
        if self.model == "additive":
            return base - seasonal if inverse else base + seasonal
        return base / seasonal if inverse else base * seasonal


class MultiSeasonalForecaster(BaseForecaster):
    """
    Dual-seasonal forecaster for nested periods.

    Steps:
        1. MSTL decomposition y = trend + s₁ + s₂ + remainder for periods
           (period, period2)
        2. Forecast the seasonally adjusted series (trend + remainder) with
           `adjusted_model` (default: damped-trend ETS)
        3. Forecast each seasonal component by repeating its last cycle
        4. Sum the three forecasts

    Both seasonal components extend jointly over the horizon, so a weekly
    forecast carries day-of-week and time-of-day shape. MSTL only keeps a
    period shorter than half the series, so fit() needs more than
    2 * period2 observations.

    Args:
        period: Shorter period (e.g., 63 bins per day)
        period2: Longer period (e.g., 441 bins per week)
        adjusted_model: Forecaster for the seasonally adjusted series

    Attributes:
        seasonal_cycles_: Last cycle of each seasonal component
        adjusted_: Seasonally adjusted training series
    """

    def __init__(
        self,
        period: int,
        period2: int,
        adjusted_model: BaseForecaster | None = None,
    ):
        if period <= 1:
            raise ValueError(f"period must be > 1, got {period}")
        if period2 <= period:
            raise ValueError(f"period2 must be > period, got period={period}, period2={period2}")

        super().__init__()
        self.period = period
        self.period2 = period2
        self.min_length = 2 * period2 + 1
        self.adjusted_model = adjusted_model or ETSForecaster(
            error="add", trend="add", damped_trend=True
        )
        self.seasonal_cycles_: list[np.ndarray] | None = None
        self.adjusted_ = None

    def _fit(self, y, exog):
        periods = (self.period, self.period2)
        result = fit_estimator(
            f"MSTL{periods}", lambda: MSTL(y, periods=periods).fit()
        )

        seasonal = np.asarray(result.seasonal, dtype=np.float64)
        if seasonal.ndim == 1:
            seasonal = seasonal.reshape(-1, 1)
        # MSTL silently drops periods that are not below half the series length
        if seasonal.shape[1] != len(periods):
            raise InsufficientDataError(
                f"MSTL{periods} kept {seasonal.shape[1]} of {len(periods)} seasonal "
                f"components on {len(y)} samples"
            )
        self.seasonal_cycles_ = [seasonal[-p:, i].copy() for i, p in enumerate(periods)]
        total_seasonal = seasonal.sum(axis=1)
        self.adjusted_ = y - total_seasonal

        self.adjusted_model.fit(self.adjusted_)
        logger.debug(
            f"MSTL{periods} fitted on {len(y)} samples; adjusted series modelled with "
            f"{type(self.adjusted_model).__name__}"
        )
        return self.adjusted_model.fitted_values_ + total_seasonal

    def _forecast(self, horizon, exog):
        forecast = self.adjusted_model.forecast(horizon)
        for cycle in self.seasonal_cycles_:
            forecast = forecast + repeat_cycle(cycle, horizon)
        return forecast
