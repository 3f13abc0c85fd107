"""
ARIMA forecasting models for demand time series.

This module provides an ARIMA (AutoRegressive Integrated Moving Average)
forecaster estimated by statsmodels' state-space maximum likelihood. ARIMA
captures the autocorrelation left in a series (or in another model's
residuals, see chain.ResidualChain).

Features:
- ARIMA(p,d,q) with optional seasonal component SARIMA(p,d,q)(P,D,Q,m)
- Exogenous regressors passed to fit()/forecast()
- Built-in Fourier regressors (dynamic harmonic regression) via fourier_order
- Order selection by AIC over a small candidate grid

Example:
    ```python
    from demandcast.modeling.forecasting.arima import ARIMAForecaster

    # Pure autoregression on a residual series
    ar = ARIMAForecaster(order=(2, 0, 0))
    ar.fit(residuals)
    preds = ar.forecast(horizon=441)

    # Regression with ARIMA errors on daily Fourier terms
    dhr = ARIMAForecaster(order=(1, 0, 1), fourier_order=5, period=63)
    dhr.fit(y_train)
    preds = dhr.forecast(horizon=441)
    ```
"""

import numpy as np
from loguru import logger
from numpy.typing import ArrayLike, NDArray
from statsmodels.tsa.arima.model import ARIMA as StatsmodelsARIMA

from demandcast.exceptions import (
    InsufficientDataError,
    NonConvergenceError,
    ShapeMismatchError,
)

from ._fitting import fit_estimator
from .baselines import BaseForecaster
from .regression import fourier_terms

CANDIDATE_ORDERS = [
    (0, 1, 0),  # Random walk
    (1, 0, 0),  # AR(1)
    (2, 0, 0),  # AR(2)
    (0, 0, 1),  # MA(1)
    (1, 0, 1),  # ARMA(1,1)
    (2, 0, 1),  # ARMA(2,1)
    (1, 1, 1),  # ARIMA(1,1,1)
    (0, 1, 1),  # ARIMA(0,1,1)
]


class ARIMAForecaster(BaseForecaster):
    """
    ARIMA forecaster with optional seasonal, exogenous and Fourier terms.

    Formula:
        (1 - φ₁L - ... - φₚLᵖ)(1 - L)ᵈ (yₜ - xₜ'β) = (1 + θ₁L + ... + θ_qL^q)εₜ

    Where:
        - φ: AR coefficients, θ: MA coefficients
        - L: Lag operator, d: differencing order
        - xₜ: Exogenous regressors (user-supplied and/or Fourier terms)
        - εₜ: White noise error term

    Forecasts are the conditional expectation recursion from the fitted
    coefficients and the most recent observations and residuals. Fitting
    is maximum likelihood; an optimizer that does not converge raises
    NonConvergenceError rather than returning a silently degraded model.

    Attributes:
        order: (p, d, q) order for non-seasonal component
        seasonal_order: (P, D, Q, m) order for seasonal component, or None
        fourier_order: Fourier pairs added as regressors, or None
        period: Seasonal period for Fourier terms
        trend: statsmodels trend spec ("n", "c", "t", "ct") or None for default
        auto_select: Choose order by AIC from CANDIDATE_ORDERS
        model_: Fitted statsmodels ARIMA results (set after fit())
        selected_order_: Order actually used (set after fit())
    """

    def __init__(
        self,
        order: tuple[int, int, int] | None = None,
        seasonal_order: tuple[int, int, int, int] | None = None,
        fourier_order: int | None = None,
        period: int | None = None,
        trend: str | None = None,
        auto_select: bool = False,
    ):
        """
        Initialize the ARIMA forecaster.

        Args:
            order: (p, d, q) order. Defaults to (1, 1, 1). Ignored if auto_select=True.
            seasonal_order: (P, D, Q, m) seasonal order, m > 0
            fourier_order: Number of sin/cos pairs of `period` used as regressors
            period: Seasonal period, required with fourier_order
            trend: Deterministic trend passed to statsmodels
            auto_select: Select (p, d, q) by AIC over a small grid

        Raises:
            ValueError: If seasonal_order is malformed or fourier_order lacks period
        """
        if seasonal_order is not None:
            if len(seasonal_order) != 4:
                raise ValueError(f"seasonal_order must be (P, D, Q, m), got {seasonal_order}")
            if seasonal_order[3] <= 0:
                raise ValueError(f"Seasonal period m must be > 0, got {seasonal_order[3]}")

        if fourier_order is not None and period is None:
            raise ValueError("period must be provided when fourier_order is set")

        super().__init__()
        self.order = order if order is not None else (1, 1, 1)
        self.seasonal_order = seasonal_order
        self.fourier_order = fourier_order
        self.period = period
        self.trend = trend
        self.auto_select = auto_select

        self.model_ = None
        self.selected_order_: tuple[int, int, int] | None = None
        self._n_exog = 0
        self._n_train = 0

    def _fit(self, y, exog):
        X = self._design(len(y), exog)
        self._n_exog = 0 if X is None else X.shape[1]
        self._n_train = len(y)

        if self.auto_select:
            order_to_use = self._auto_select_order(y, X)
            logger.info(f"Auto-selected ARIMA order: {order_to_use}")
        else:
            order_to_use = self.order
        self.selected_order_ = order_to_use

        self._validate_series_length(y, order_to_use)

        self.model_ = self._fit_order(y, X, order_to_use)
        logger.info(f"{self._label(order_to_use)} model fitted successfully")

        fitted = np.asarray(self.model_.fittedvalues, dtype=np.float64).copy()
        # Differenced models have no defined one-step prediction during warm-up
        warmup = order_to_use[1]
        if self.seasonal_order is not None:
            warmup += self.seasonal_order[1] * self.seasonal_order[3]
        fitted[: min(warmup, len(fitted))] = np.nan
        return fitted

    def _forecast(self, horizon, exog):
        X_future = self._future_design(horizon, exog)
        try:
            result = self.model_.get_forecast(steps=horizon, exog=X_future)
        except ValueError as e:
            logger.error(f"ARIMA forecasting failed: {e}")
            raise NonConvergenceError(f"Failed to generate forecast: {e}") from e
        return np.asarray(result.predicted_mean, dtype=np.float64)

    def _design(self, n: int, exog: ArrayLike | None) -> NDArray[np.floating] | None:
        """In-sample regressors: user exog and/or Fourier terms."""
        blocks = []
        if exog is not None:
            X = _as_2d(exog)
            if len(X) != n:
                raise ShapeMismatchError(
                    f"exog must have one row per observation: exog={len(X)}, y={n}"
                )
            blocks.append(X)
        if self.fourier_order is not None:
            blocks.append(fourier_terms(n, self.period, self.fourier_order))
        return np.hstack(blocks) if blocks else None

    def _future_design(
        self, horizon: int, exog: ArrayLike | None
    ) -> NDArray[np.floating] | None:
        blocks = []
        n_user = self._n_exog - (2 * self.fourier_order if self.fourier_order else 0)
        if n_user > 0:
            if exog is None:
                raise ValueError("Model was fit with exog; future exog is required")
            X = _as_2d(exog)
            if X.shape != (horizon, n_user):
                raise ShapeMismatchError(
                    f"future exog must have shape ({horizon}, {n_user}), got {X.shape}"
                )
            blocks.append(X)
        if self.fourier_order is not None:
            blocks.append(
                fourier_terms(self._n_train, self.period, self.fourier_order, horizon=horizon)
            )
        return np.hstack(blocks) if blocks else None

    def _fit_order(self, y, X, order):
        arima_kwargs = {
            "order": order,
            "trend": self.trend,
            "enforce_stationarity": False,
            "enforce_invertibility": False,
        }
        if self.seasonal_order is not None:
            arima_kwargs["seasonal_order"] = self.seasonal_order

        return fit_estimator(
            self._label(order),
            lambda: StatsmodelsARIMA(y, exog=X, **arima_kwargs).fit(),
        )

    def _auto_select_order(self, y, X) -> tuple[int, int, int]:
        """
        Grid search over CANDIDATE_ORDERS, keeping the lowest AIC.

        Orders that fail or do not converge are skipped.

        Raises:
            NonConvergenceError: If no candidate order could be fitted
        """
        best_aic = np.inf
        best_order = None

        for order in CANDIDATE_ORDERS:
            if len(y) < self._min_length(order):
                continue
            try:
                fitted = self._fit_order(y, X, order)
            except NonConvergenceError as e:
                logger.debug(f"Skipping order {order}: {e}")
                continue

            if fitted.aic < best_aic:
                best_aic = fitted.aic
                best_order = order

        if best_order is None:
            raise NonConvergenceError("No candidate ARIMA order could be fitted")

        logger.info(f"Grid search selected order: {best_order} (AIC={best_aic:.2f})")
        return best_order

    def _min_length(self, order: tuple[int, int, int]) -> int:
        p, d, q = order
        min_length = max(p, q) + d + 1

        if self.seasonal_order is not None:
            P, D, Q, m = self.seasonal_order
            min_length = max(min_length + m * (max(P, Q) + D), 2 * m)
        if self.fourier_order is not None:
            min_length = max(min_length, 2 * self.period)
        return min_length

    def _validate_series_length(
        self, y_train: NDArray[np.floating], order: tuple[int, int, int]
    ) -> None:
        """
        Validate that series is long enough for the requested order.

        Raises:
            InsufficientDataError: If series too short
        """
        min_length = self._min_length(order)
        if len(y_train) < min_length:
            raise InsufficientDataError(
                f"y_train has {len(y_train)} samples but order {order} "
                f"requires at least {min_length} samples"
            )

        if len(y_train) < 50:
            logger.warning(
                f"Series has only {len(y_train)} samples. "
                "ARIMA may not perform well on very short series."
            )

    def _label(self, order: tuple[int, int, int]) -> str:
        label = f"ARIMA{order}"
        if self.seasonal_order is not None:
            label += f"{self.seasonal_order}"
        if self.fourier_order is not None:
            label += f"+Fourier(K={self.fourier_order})"
        return label


def _as_2d(exog: ArrayLike) -> NDArray[np.floating]:
    X = np.asarray(exog, dtype=np.float64)
    return X.reshape(-1, 1) if X.ndim == 1 else X
