"""
Residual chaining of two forecasters.

A ResidualChain fits a primary model, models what the primary model leaves
behind with a secondary model, and adds the two forecasts. Any pair of
forecasters can be composed, including chains themselves:

    ŷ(t+h) = primary.forecast(h) + secondary.forecast(h)

Typical pairs:
- LinearSeasonalForecaster + ARIMAForecaster: seasonal means, AR errors
- LinearFourierForecaster + ETSForecaster: smooth seasonality, drifting level

Example:
    ```python
    from demandcast.modeling.forecasting import (
        ARIMAForecaster,
        LinearSeasonalForecaster,
        ResidualChain,
    )

    chain = ResidualChain(
        primary=LinearSeasonalForecaster(period=63),
        secondary=ARIMAForecaster(order=(2, 0, 0)),
    )
    chain.fit(y_train)
    preds = chain.forecast(horizon=441)
    ```
"""

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from demandcast.exceptions import InsufficientDataError, ShapeMismatchError

from .baselines import BaseForecaster


class ResidualChain(BaseForecaster):
    """
    Primary forecaster plus a secondary forecaster fit on its residuals.

    Fit:
        1. primary.fit(y, exog)
        2. residuals = y - primary.fitted_values_, undefined (NaN) warm-up
           positions excluded
        3. secondary.fit(residuals)

    Forecast:
        primary.forecast(h, exog) + secondary.forecast(h), elementwise.
        Exogenous regressors are routed to the primary model only.

    Attributes:
        primary: Forecaster for the series itself
        secondary: Forecaster for the primary model's residuals
        primary_residuals_: Residual series the secondary model was fit on
    """

    def __init__(self, primary: BaseForecaster, secondary: BaseForecaster):
        super().__init__()
        self.primary = primary
        self.secondary = secondary
        self.primary_residuals_: NDArray[np.floating] | None = None

    def _fit(self, y, exog):
        self.primary.fit(y, exog)

        residuals = y - self.primary.fitted_values_
        defined = np.isfinite(residuals)
        if not defined.any():
            raise InsufficientDataError(
                f"{type(self.primary).__name__} produced no defined fitted values "
                f"on {len(y)} samples"
            )
        self.primary_residuals_ = residuals[defined]

        self.secondary.fit(self.primary_residuals_)
        logger.debug(
            f"Chained {type(self.secondary).__name__} on {defined.sum()} residuals of "
            f"{type(self.primary).__name__}"
        )

        fitted = np.full(len(y), np.nan)
        fitted[defined] = self.primary.fitted_values_[defined] + self.secondary.fitted_values_
        return fitted

    def _forecast(self, horizon, exog):
        primary, secondary = self.components(horizon, exog)
        return primary + secondary

    def components(
        self, horizon: int, exog=None
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """
        Primary and secondary forecasts separately, e.g. for plotting.

        Raises:
            ShapeMismatchError: If the two forecasts differ in length
        """
        primary = self.primary.forecast(horizon, exog)
        secondary = self.secondary.forecast(horizon)
        if primary.shape != secondary.shape:
            raise ShapeMismatchError(
                f"Chained forecasts must have same shape: "
                f"primary={primary.shape}, secondary={secondary.shape}"
            )
        return primary, secondary
