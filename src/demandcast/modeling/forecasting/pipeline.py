"""
Forecast evaluation pipeline.

The PipelineDriver runs the evaluation protocol on one historic series:

    INGESTED -> PARTITIONED -> EVALUATING -> EVALUATED -> REFITTING -> DONE

1. partition(): split history into training and validation windows
2. evaluate(): fit every roster method on training, forecast the validation
   horizon, score it; per-method failures are recorded, not raised
3. refit(): fit the chosen final method on the full history and forecast
   the future horizon, rounded up to whole counts

The driver exclusively owns its ResultsTable and returns it in the
PipelineResult; nothing is shared across pipeline instances.

Example:
    ```python
    from demandcast.config import PipelineConfig
    from demandcast.modeling.forecasting.pipeline import PipelineDriver, default_roster

    config = PipelineConfig(period=63, period2=441)
    driver = PipelineDriver(series, default_roster(config), config)
    result = driver.run(final_method="multi_seasonal", horizon=441)

    print(result.results.to_frame())
    print(result.counts[:10])
    ```
"""

import time
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from demandcast.config import PipelineConfig
from demandcast.exceptions import ConfigError, PipelineStateError
from demandcast.timeseries import Partitioner, PeriodicSeries

from .arima import ARIMAForecaster
from .baselines import (
    AverageForecaster,
    BaseForecaster,
    DriftForecaster,
    NaiveForecaster,
    SeasonalNaiveForecaster,
)
from .chain import ResidualChain
from .decomposition import DecompositionNaiveForecaster, MultiSeasonalForecaster
from .evaluation import ResultsTable, evaluate
from .regression import LinearFourierForecaster, LinearSeasonalForecaster
from .smoothing import ETSForecaster


class PipelineState(Enum):
    INGESTED = "ingested"
    PARTITIONED = "partitioned"
    EVALUATING = "evaluating"
    EVALUATED = "evaluated"
    REFITTING = "refitting"
    DONE = "done"


@dataclass
class ValidationForecast:
    """Numeric output of one evaluated method, for external plotting."""

    method: str
    fitted: NDArray[np.floating]
    forecast: NDArray[np.floating]
    residuals: NDArray[np.floating]
    fit_time: float


@dataclass
class PipelineResult:
    """
    Terminal output of a pipeline run.

    Attributes:
        results: Accuracy (or failure) row for every attempted method
        final_method: Name of the method refit on the full history
        forecast: Future point forecasts
        counts: Forecasts rounded up to whole counts, aligned with the
            future timestamp table
        validation_forecasts: Per-method fitted/forecast arrays
    """

    results: ResultsTable
    final_method: str
    forecast: NDArray[np.floating]
    counts: NDArray[np.integer]
    validation_forecasts: dict[str, ValidationForecast] = field(default_factory=dict)


class PipelineDriver:
    """
    Evaluate a roster of forecasters on a train/validation split and refit one.

    Args:
        series: Full historic series
        roster: Method name -> forecaster, evaluated in insertion order
        config: Pipeline configuration (validation length, MASE period, ...)

    Attributes:
        state: Current PipelineState
        results: ResultsTable filled by evaluate()
        training, validation: Windows set by partition()
        validation_forecasts: Per-method ValidationForecast set by evaluate()

    Raises:
        ConfigError: If the roster is empty
    """

    def __init__(
        self,
        series: PeriodicSeries,
        roster: dict[str, BaseForecaster],
        config: PipelineConfig | None = None,
    ):
        if not roster:
            raise ConfigError("roster must contain at least one method")

        self.series = series
        self.roster = dict(roster)
        self.config = config or PipelineConfig()
        self.partitioner = Partitioner(self.config)

        self.state = PipelineState.INGESTED
        self.results = ResultsTable()
        self.training: PeriodicSeries | None = None
        self.validation: PeriodicSeries | None = None
        self.validation_forecasts: dict[str, ValidationForecast] = {}
        self._result: PipelineResult | None = None

        logger.info(
            f"Initialized PipelineDriver: n={len(series)}, period={series.period}, "
            f"period2={series.period2}, methods={list(self.roster)}"
        )

    def partition(self) -> tuple[PeriodicSeries, PeriodicSeries]:
        """
        Split the series once into training and validation.

        Raises:
            ConfigError: If the configured validation length is invalid
            PipelineStateError: If already partitioned
        """
        self._require(PipelineState.INGESTED)
        self.training, self.validation = self.partitioner.split_for(self.series)
        self.state = PipelineState.PARTITIONED
        return self.training, self.validation

    def evaluate(self) -> ResultsTable:
        """
        Fit, forecast and score every roster method on the validation window.

        A method that raises (insufficient data, non-convergence, shape
        mismatch, ...) is recorded as a failure row; the loop continues.

        Raises:
            PipelineStateError: If not partitioned, or already evaluated
        """
        self._require(PipelineState.PARTITIONED)
        self.state = PipelineState.EVALUATING

        y_train = self.training.values
        y_valid = self.validation.values
        horizon = len(y_valid)
        mase_period = self.config.effective_mase_period

        for name, forecaster in self.roster.items():
            logger.info(f"Evaluating {name} (train={len(y_train)}, horizon={horizon})")
            try:
                start_time = time.time()
                forecaster.fit(y_train)
                fit_time = time.time() - start_time

                forecast = forecaster.forecast(horizon)
                record = evaluate(name, y_valid, forecast, y_train=y_train, period=mase_period)
            except Exception as e:
                failure = self.results.add_failure(name, e)
                logger.warning(f"{name} failed with {failure.error_type}: {failure.reason}")
                continue

            self.results.add(record)
            self.validation_forecasts[name] = ValidationForecast(
                method=name,
                fitted=forecaster.fitted_values_,
                forecast=forecast,
                residuals=y_valid - forecast,
                fit_time=fit_time,
            )
            logger.info(
                f"{name}: MAE={record.mae:.4f}, RMSE={record.rmse:.4f}, "
                f"MASE={record.mase:.4f}, fit time={fit_time:.2f}s"
            )

        self.state = PipelineState.EVALUATED
        logger.info(
            f"Evaluation completed: {len(self.results.records)} succeeded, "
            f"{len(self.results.failures)} failed"
        )
        return self.results

    def select(self) -> str:
        """Name of the best successful method by config.selection_metric."""
        return self.results.best(self.config.selection_metric).method

    def refit(self, final_method: str | None = None, horizon: int | None = None) -> PipelineResult:
        """
        Refit the final method on the combined history and forecast the future.

        Args:
            final_method: Roster name; defaults to select()
            horizon: Future steps; defaults to config.future_horizon

        Returns:
            PipelineResult with the future forecast and its rounded-up counts

        Raises:
            ConfigError: If the method is unknown or no horizon is available
            PipelineStateError: If not evaluated, or already done

        If the final method fails to fit or forecast, its error propagates and
        the pipeline returns to EVALUATED so that another method can be refit.
        """
        self._require(PipelineState.EVALUATED)

        horizon = horizon if horizon is not None else self.config.future_horizon
        if horizon is None or horizon <= 0:
            raise ConfigError(f"future horizon must be > 0, got {horizon}")

        final_method = final_method or self.select()
        if final_method not in self.roster:
            raise ConfigError(
                f"Unknown final method {final_method!r}; roster has {list(self.roster)}"
            )

        self.state = PipelineState.REFITTING
        combined = self.partitioner.combined(self.series)
        logger.info(f"Refitting {final_method} on {len(combined)} samples, horizon={horizon}")

        forecaster = self.roster[final_method]
        try:
            forecaster.fit(combined.values)
            forecast = forecaster.forecast(horizon)
        except Exception as e:
            # Another final method may still be refit
            self.state = PipelineState.EVALUATED
            logger.error(f"Refit of {final_method} failed with {type(e).__name__}: {e}")
            raise
        # Demand is counted in whole passengers
        counts = np.ceil(forecast).astype(np.int64)

        self._result = PipelineResult(
            results=self.results,
            final_method=final_method,
            forecast=forecast,
            counts=counts,
            validation_forecasts=self.validation_forecasts,
        )
        self.state = PipelineState.DONE
        return self._result

    def run(self, final_method: str | None = None, horizon: int | None = None) -> PipelineResult:
        """Partition, evaluate and refit in one call."""
        self.partition()
        self.evaluate()
        return self.refit(final_method, horizon)

    @property
    def result(self) -> PipelineResult:
        if self.state is not PipelineState.DONE:
            raise PipelineStateError(f"Pipeline not done (state={self.state.value})")
        return self._result

    def _require(self, expected: PipelineState) -> None:
        if self.state is not expected:
            raise PipelineStateError(
                f"Expected state {expected.value}, pipeline is {self.state.value}"
            )


def default_roster(config: PipelineConfig | None = None) -> dict[str, BaseForecaster]:
    """
    Reference roster of methods, in evaluation order.

    Benchmarks first, then regressions, ARIMA, residual chains and the
    dual-seasonal model (only when config.period2 is set).
    """
    config = config or PipelineConfig()
    period = config.period

    roster: dict[str, BaseForecaster] = {
        "average": AverageForecaster(),
        "naive": NaiveForecaster(),
        "seasonal_naive": SeasonalNaiveForecaster(period=period),
        "drift": DriftForecaster(),
        "decomposition_naive": DecompositionNaiveForecaster(
            period=period, model=config.decomposition_model
        ),
        "linear_seasonal": LinearSeasonalForecaster(period=period),
        "linear_fourier": LinearFourierForecaster(period=period, order=config.fourier_order),
        "arima": ARIMAForecaster(order=config.arima_order),
        "arima_on_linear_residuals": ResidualChain(
            primary=LinearSeasonalForecaster(period=period),
            secondary=ARIMAForecaster(order=config.arima_order),
        ),
        "ets_on_fourier_residuals": ResidualChain(
            primary=LinearFourierForecaster(period=period, order=config.fourier_order),
            secondary=ETSForecaster(error="add"),
        ),
    }
    if config.period2 is not None:
        roster["multi_seasonal"] = MultiSeasonalForecaster(period=period, period2=config.period2)

    return roster
