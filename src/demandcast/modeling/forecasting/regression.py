"""
Linear regression forecasters on deterministic seasonal terms.

Two time series regressions estimated by ordinary least squares:
- LinearSeasonalForecaster: intercept + (period - 1) season indicator columns
- LinearFourierForecaster: intercept + K sin/cos pairs of the seasonal period

Both optionally include a linear time trend. The design matrices come from
statsmodels' deterministic terms, so the same basis extends seamlessly into
future time indices at forecast time.

Example:
    ```python
    from demandcast.modeling.forecasting.regression import (
        LinearFourierForecaster,
        fourier_terms,
    )

    model = LinearFourierForecaster(period=63, order=5)
    model.fit(y_train)
    preds = model.forecast(horizon=441)

    # Raw basis, e.g. as exogenous regressors for ARIMA
    X_in = fourier_terms(len(y_train), period=63, order=5)
    X_out = fourier_terms(len(y_train), period=63, order=5, horizon=441)
    ```
"""

from abc import abstractmethod

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from numpy.typing import NDArray
from statsmodels.tsa.deterministic import DeterministicProcess, Fourier

from demandcast.exceptions import ConfigError

from ._fitting import fit_estimator
from .baselines import BaseForecaster


def fourier_terms(
    n: int, period: int, order: int, horizon: int | None = None
) -> NDArray[np.floating]:
    """
    Fourier basis of a seasonal period.

    Columns are sin/cos pairs for k = 1..order:
    sin(2πkt/period), cos(2πkt/period).

    Args:
        n: Number of in-sample observations (t = 0..n-1)
        period: Seasonal period
        order: Number of sin/cos pairs K (1 <= K <= period/2)
        horizon: If given, return the out-of-sample rows t = n..n+horizon-1
            instead of the in-sample rows

    Returns:
        Array of shape (n, 2K), or (horizon, 2K) when horizon is given

    Raises:
        ConfigError: If order is outside [1, period/2]
    """
    _validate_fourier_order(period, order)

    index = pd.RangeIndex(n)
    term = Fourier(period=period, order=order)
    if horizon is None:
        return term.in_sample(index).to_numpy(dtype=np.float64)
    return term.out_of_sample(steps=horizon, index=index).to_numpy(dtype=np.float64)


class _DeterministicRegressionForecaster(BaseForecaster):
    """OLS regression of the series on a statsmodels DeterministicProcess."""

    def __init__(self, period: int, trend: bool = False):
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period}")

        super().__init__()
        self.period = period
        self.trend = trend
        self.min_length = 2 * period
        self.model_ = None
        self._process: DeterministicProcess | None = None

    @abstractmethod
    def _build_process(self, n: int) -> DeterministicProcess:
        """Deterministic terms for n in-sample observations."""
        pass

    def _fit(self, y, exog):
        self._process = self._build_process(len(y))
        X = self._process.in_sample().to_numpy(dtype=np.float64)

        self.model_ = fit_estimator(type(self).__name__, lambda: sm.OLS(y, X).fit())
        logger.debug(
            f"{type(self).__name__} fitted on {len(y)} samples with {X.shape[1]} regressors"
        )
        return np.asarray(self.model_.fittedvalues)

    def _forecast(self, horizon, exog):
        X_future = self._process.out_of_sample(steps=horizon).to_numpy(dtype=np.float64)
        return np.asarray(self.model_.predict(X_future))

    @property
    def coefficients_(self) -> NDArray[np.floating]:
        if not self.is_fitted_:
            raise RuntimeError("Must call fit() before accessing coefficients_")
        return np.asarray(self.model_.params)


class LinearSeasonalForecaster(_DeterministicRegressionForecaster):
    """
    Linear model with seasonal dummy variables.

    Formula:
        y(t) = β₀ + Σ_{s=2..period} βₛ · 1[season(t) = s] (+ γ·t) + ε(t)

    The first season is absorbed into the intercept. The forecast at a
    future step is the fitted mean for its season index.

    Args:
        period: Number of seasons per cycle (e.g., 63 bins per day)
        trend: Include a linear time trend

    Attributes:
        model_: Fitted statsmodels OLS results (set after fit())
    """

    def _build_process(self, n: int) -> DeterministicProcess:
        return DeterministicProcess(
            pd.RangeIndex(n),
            constant=True,
            order=1 if self.trend else 0,
            seasonal=True,
            period=self.period,
        )


class LinearFourierForecaster(_DeterministicRegressionForecaster):
    """
    Linear model with Fourier terms of the seasonal period.

    Formula:
        y(t) = β₀ + Σ_{k=1..K} [aₖ sin(2πkt/m) + bₖ cos(2πkt/m)] (+ γ·t) + ε(t)

    A smooth alternative to seasonal dummies for long periods: 2K regressors
    instead of m - 1. K must not exceed m/2.

    Args:
        period: Seasonal period m
        order: Number of sin/cos pairs K
        trend: Include a linear time trend

    Raises:
        ConfigError: If order is outside [1, period/2]
    """

    def __init__(self, period: int, order: int, trend: bool = False):
        super().__init__(period=period, trend=trend)
        _validate_fourier_order(period, order)
        self.order = order

    def _build_process(self, n: int) -> DeterministicProcess:
        return DeterministicProcess(
            pd.RangeIndex(n),
            constant=True,
            order=1 if self.trend else 0,
            additional_terms=[Fourier(period=self.period, order=self.order)],
        )


def _validate_fourier_order(period: int, order: int) -> None:
    if order < 1 or 2 * order > period:
        raise ConfigError(
            f"Fourier order must satisfy 1 <= order <= period/2, "
            f"got order={order} for period={period}"
        )
