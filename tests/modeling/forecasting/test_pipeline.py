"""
Tests for the PipelineDriver evaluation protocol.

Tests cover:
- State machine ordering and PipelineStateError
- Per-method failures recorded without aborting the run
- Final refit on the combined history and rounded counts
- The default roster end to end on synthetic demand
"""

import numpy as np
import pytest

from demandcast.config import PipelineConfig
from demandcast.exceptions import ConfigError, NonConvergenceError, PipelineStateError
from demandcast.modeling.forecasting.baselines import (
    AverageForecaster,
    BaseForecaster,
    NaiveForecaster,
    SeasonalNaiveForecaster,
)
from demandcast.modeling.forecasting.evaluation import MethodFailure
from demandcast.modeling.forecasting.pipeline import (
    PipelineDriver,
    PipelineResult,
    PipelineState,
    default_roster,
)


class FailingForecaster(BaseForecaster):
    """Always fails to converge."""

    def _fit(self, y, exog):
        raise NonConvergenceError("optimizer did not converge")

    def _forecast(self, horizon, exog):
        raise AssertionError("unreachable")


class ConstantForecaster(BaseForecaster):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def _fit(self, y, exog):
        return np.full(len(y), self.value)

    def _forecast(self, horizon, exog):
        return np.full(horizon, self.value)


class FailsOnRefitForecaster(ConstantForecaster):
    """Fits on the training window, fails to converge on the full history."""

    def __init__(self, value):
        super().__init__(value)
        self.n_fits = 0

    def _fit(self, y, exog):
        self.n_fits += 1
        if self.n_fits > 1:
            raise NonConvergenceError("optimizer did not converge on combined history")
        return super()._fit(y, exog)


@pytest.fixture
def roster():
    return {
        "average": AverageForecaster(),
        "broken": FailingForecaster(),
        "seasonal_naive": SeasonalNaiveForecaster(period=4),
    }


@pytest.fixture
def driver(demand_series, roster, small_config):
    return PipelineDriver(demand_series, roster, small_config)


class TestPipelineStates:
    """Tests for step ordering."""

    def test_initial_state(self, driver):
        assert driver.state is PipelineState.INGESTED
        assert len(driver.results) == 0

    def test_partition(self, driver, demand_series):
        training, validation = driver.partition()

        assert driver.state is PipelineState.PARTITIONED
        assert len(validation) == 8
        assert len(training) == len(demand_series) - 8

    def test_evaluate_before_partition_raises(self, driver):
        with pytest.raises(PipelineStateError, match="Expected state partitioned"):
            driver.evaluate()

    def test_partition_twice_raises(self, driver):
        driver.partition()
        with pytest.raises(PipelineStateError):
            driver.partition()

    def test_refit_before_evaluate_raises(self, driver):
        driver.partition()
        with pytest.raises(PipelineStateError):
            driver.refit("average", horizon=4)

    def test_result_before_done_raises(self, driver):
        with pytest.raises(PipelineStateError, match="not done"):
            driver.result

    def test_run_reaches_done(self, driver):
        result = driver.run(final_method="seasonal_naive")

        assert driver.state is PipelineState.DONE
        assert isinstance(result, PipelineResult)
        assert driver.result is result

    def test_refit_after_done_raises(self, driver):
        driver.run(final_method="average")
        with pytest.raises(PipelineStateError):
            driver.refit("average", horizon=4)

    def test_failed_refit_allows_another_method(self, demand_series, small_config):
        roster = {"fragile": FailsOnRefitForecaster(5.0), "average": AverageForecaster()}
        driver = PipelineDriver(demand_series, roster, small_config)
        driver.partition()
        driver.evaluate()

        with pytest.raises(NonConvergenceError, match="combined history"):
            driver.refit("fragile")
        assert driver.state is PipelineState.EVALUATED
        assert set(driver.results.records) == {"fragile", "average"}

        result = driver.refit("average")
        assert driver.state is PipelineState.DONE
        assert result.final_method == "average"


class TestPipelineEvaluation:
    """Tests for the evaluation step."""

    def test_partial_failure(self, driver):
        driver.partition()
        results = driver.evaluate()

        assert driver.state is PipelineState.EVALUATED
        assert len(results) == 3
        assert set(results.records) == {"average", "seasonal_naive"}
        assert set(results.failures) == {"broken"}

        failure = results["broken"]
        assert isinstance(failure, MethodFailure)
        assert failure.error_type == "NonConvergenceError"

    def test_partial_failure_still_completes(self, driver):
        result = driver.run()

        assert driver.state is PipelineState.DONE
        assert result.final_method in {"average", "seasonal_naive"}

    def test_insufficient_data_recorded(self, demand_series, small_config):
        roster = {
            "naive": NaiveForecaster(),
            "long_season": SeasonalNaiveForecaster(period=1000),
        }
        driver = PipelineDriver(demand_series, roster, small_config)
        driver.partition()
        results = driver.evaluate()

        assert results["long_season"].error_type == "InsufficientDataError"
        assert "naive" in results.records

    def test_mase_computed_against_training(self, driver):
        driver.partition()
        results = driver.evaluate()

        for record in results.records.values():
            assert np.isfinite(record.mase)

    def test_validation_forecasts(self, driver):
        training, validation = driver.partition()
        driver.evaluate()

        vf = driver.validation_forecasts["seasonal_naive"]
        assert vf.forecast.shape == (len(validation),)
        assert vf.fitted.shape == (len(training),)
        np.testing.assert_allclose(vf.residuals, validation.values - vf.forecast)
        assert "broken" not in driver.validation_forecasts

    def test_select_uses_configured_metric(self, demand_series, small_config):
        roster = {"average": AverageForecaster(), "seasonal_naive": SeasonalNaiveForecaster(4)}
        driver = PipelineDriver(demand_series, roster, small_config)
        driver.partition()
        results = driver.evaluate()

        assert driver.select() == results.best("rmse").method


class TestPipelineRefit:
    """Tests for the final refit."""

    def test_counts_are_rounded_up(self, demand_series, small_config):
        driver = PipelineDriver(demand_series, {"const": ConstantForecaster(2.1)}, small_config)
        result = driver.run()

        np.testing.assert_allclose(result.forecast, 2.1)
        assert result.counts.dtype == np.int64
        np.testing.assert_array_equal(result.counts, np.full(8, 3))

    def test_integer_forecasts_unchanged(self, demand_series, small_config):
        driver = PipelineDriver(demand_series, {"const": ConstantForecaster(7.0)}, small_config)
        np.testing.assert_array_equal(driver.run().counts, np.full(8, 7))

    def test_refit_uses_combined_history(self, driver, demand_series):
        result = driver.run(final_method="seasonal_naive", horizon=4)

        np.testing.assert_allclose(result.forecast, demand_series.values[-4:])

    def test_explicit_horizon_overrides_config(self, driver):
        result = driver.run(final_method="average", horizon=5)
        assert result.counts.shape == (5,)

    def test_unknown_final_method_raises(self, driver):
        driver.partition()
        driver.evaluate()
        with pytest.raises(ConfigError, match="Unknown final method"):
            driver.refit("prophet")

    def test_missing_horizon_raises(self, demand_series):
        config = PipelineConfig(period=4, period2=8, fourier_order=2, valid_len=8)
        driver = PipelineDriver(demand_series, {"average": AverageForecaster()}, config)
        driver.partition()
        driver.evaluate()

        with pytest.raises(ConfigError, match="future horizon"):
            driver.refit()

    def test_results_returned_with_result(self, driver):
        result = driver.run(final_method="average")
        assert result.results is driver.results
        assert len(result.results) == 3


class TestPipelineConfigErrors:
    """Configuration errors are fatal."""

    def test_empty_roster_raises(self, demand_series, small_config):
        with pytest.raises(ConfigError, match="at least one method"):
            PipelineDriver(demand_series, {}, small_config)

    def test_validation_too_long_raises(self, demand_series, roster):
        config = PipelineConfig(period=4, period2=8, fourier_order=2, valid_len=500)
        driver = PipelineDriver(demand_series, roster, config)

        with pytest.raises(ConfigError):
            driver.partition()


class TestDefaultRoster:
    """The reference roster on synthetic demand."""

    def test_roster_names(self, small_config):
        roster = default_roster(small_config)

        assert list(roster)[:4] == ["average", "naive", "seasonal_naive", "drift"]
        assert "multi_seasonal" in roster
        assert "arima_on_linear_residuals" in roster
        assert "ets_on_fourier_residuals" in roster

    def test_no_multi_seasonal_without_period2(self):
        config = PipelineConfig(period=4, period2=None, fourier_order=2)
        assert "multi_seasonal" not in default_roster(config)

    def test_full_run(self, demand_series, small_config):
        roster = default_roster(small_config)
        driver = PipelineDriver(demand_series, roster, small_config)
        result = driver.run(final_method="seasonal_naive")

        assert len(result.results) == len(roster)
        assert driver.state is PipelineState.DONE
        assert result.counts.shape == (8,)

        df = result.results.to_frame()
        assert df.height == len(roster)
        assert set(df["status"].to_list()) <= {"ok", "failed"}

        # Benchmarks never fail on a series this long
        for name in ["average", "naive", "seasonal_naive", "drift"]:
            assert name in result.results.records
