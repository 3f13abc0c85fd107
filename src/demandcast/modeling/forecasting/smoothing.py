"""
Exponential smoothing (ETS) forecaster.

Wraps statsmodels' innovations state-space ETSModel. The default model is
ETS(A,N,N), simple exponential smoothing with additive errors, which is what
the residual chains use to extrapolate a primary model's leftover level.

Model specs can be given component-wise or as a three-letter code
(error, trend, season), with "Ad" for a damped additive trend:

    ETSForecaster.from_spec("ANN")            # simple exponential smoothing
    ETSForecaster.from_spec("AAdN")           # damped trend
    ETSForecaster.from_spec("ANA", period=63) # additive daily seasonality
"""

from typing import Literal

import numpy as np
from loguru import logger
from statsmodels.tsa.exponential_smoothing.ets import ETSModel

from ._fitting import fit_estimator
from .baselines import BaseForecaster

Component = Literal["add", "mul"] | None

_CODES = {"N": None, "A": "add", "M": "mul"}


class ETSForecaster(BaseForecaster):
    """
    ETS(error, trend, season) forecaster estimated by maximum likelihood.

    Args:
        error: "add" or "mul"
        trend: None, "add" or "mul"
        seasonal: None, "add" or "mul"
        damped_trend: Damp the trend component (requires trend)
        period: Seasonal period, required when seasonal is set

    Attributes:
        model_: Fitted statsmodels ETSResults (set after fit())
    """

    def __init__(
        self,
        error: Literal["add", "mul"] = "add",
        trend: Component = None,
        seasonal: Component = None,
        damped_trend: bool = False,
        period: int | None = None,
    ):
        if seasonal is not None and (period is None or period <= 1):
            raise ValueError(f"period must be > 1 for a seasonal ETS model, got {period}")
        if damped_trend and trend is None:
            raise ValueError("damped_trend requires a trend component")

        super().__init__()
        self.error = error
        self.trend = trend
        self.seasonal = seasonal
        self.damped_trend = damped_trend
        self.period = period
        if seasonal is not None:
            self.min_length = 2 * period
        self.model_ = None

    @classmethod
    def from_spec(cls, spec: str, period: int | None = None) -> "ETSForecaster":
        """
        Build from a code like "ANN", "AAdN" or "MAM".

        Raises:
            ValueError: If the code cannot be parsed
        """
        code = spec.upper().replace("AD", "D")
        if len(code) != 3 or code[0] not in "AM" or code[2] not in _CODES:
            raise ValueError(f"Invalid ETS spec: {spec!r}")
        damped = code[1] == "D"
        trend = "add" if damped else _CODES.get(code[1], "invalid")
        if trend == "invalid":
            raise ValueError(f"Invalid ETS spec: {spec!r}")
        return cls(
            error=_CODES[code[0]],
            trend=trend,
            seasonal=_CODES[code[2]],
            damped_trend=damped,
            period=period,
        )

    @property
    def spec(self) -> str:
        inverse = {v: k for k, v in _CODES.items()}
        trend = "Ad" if self.damped_trend else inverse[self.trend]
        return f"{inverse[self.error]}{trend}{inverse[self.seasonal]}"

    def _fit(self, y, exog):
        multiplicative = "mul" in (self.error, self.trend, self.seasonal)
        if multiplicative and np.any(y <= 0):
            raise ValueError("Multiplicative ETS components require strictly positive data")

        model = ETSModel(
            y,
            error=self.error,
            trend=self.trend,
            damped_trend=self.damped_trend,
            seasonal=self.seasonal,
            seasonal_periods=self.period if self.seasonal is not None else None,
            initialization_method="estimated",
        )
        self.model_ = fit_estimator(f"ETS({self.spec})", lambda: model.fit(disp=False))
        logger.debug(f"ETS({self.spec}) fitted on {len(y)} samples")
        return np.asarray(self.model_.fittedvalues, dtype=np.float64)

    def _forecast(self, horizon, exog):
        return np.asarray(self.model_.forecast(steps=horizon), dtype=np.float64)
