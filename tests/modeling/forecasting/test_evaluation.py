"""
Tests for forecast accuracy metrics and the results table.

Validates the six metrics:
- ME, MPE: Bias (signed)
- MAE, MAPE, RMSE: Magnitude
- MASE: Scaled by the in-sample seasonal naive error of the training series

Tests cover:
- Known values for each metric
- Zero-actual handling for percentage metrics
- MASE scale edge cases
- ResultsTable rows, failures, ranking and export
"""

import numpy as np
import polars as pl
import pytest

from demandcast.exceptions import (
    InsufficientDataError,
    NonConvergenceError,
    ShapeMismatchError,
)
from demandcast.modeling.forecasting.evaluation import (
    METRICS,
    AccuracyRecord,
    MethodFailure,
    ResultsTable,
    compute_all_metrics,
    evaluate,
    mae,
    mape,
    mase,
    me,
    mpe,
    rmse,
)


class TestKnownValues:
    """Metric values on a small worked example."""

    actual = np.array([10.0, 20.0])
    forecast = np.array([15.0, 15.0])

    def test_me(self):
        assert me(self.actual, self.forecast) == 0.0

    def test_mae(self):
        assert mae(self.actual, self.forecast) == 5.0

    def test_rmse(self):
        assert rmse(self.actual, self.forecast) == 5.0

    def test_mpe(self):
        assert mpe(self.actual, self.forecast) == pytest.approx(-12.5)

    def test_mape(self):
        assert mape(self.actual, self.forecast) == pytest.approx(37.5)

    def test_metrics_are_floats(self):
        for value in compute_all_metrics(self.actual, self.forecast).values():
            assert isinstance(value, float)


class TestMetricProperties:
    """Relationships that hold for any inputs."""

    def test_perfect_forecast(self):
        y = np.array([1.0, 5.0, 3.0])
        metrics = compute_all_metrics(y, y)

        for name in ["me", "mpe", "mae", "mape", "rmse"]:
            assert metrics[name] == 0.0

    def test_rmse_at_least_mae(self):
        actual = np.random.gamma(2.0, 10.0, 50)
        forecast = actual + np.random.normal(0, 5.0, 50)

        assert rmse(actual, forecast) >= mae(actual, forecast)

    def test_bias_sign(self):
        actual = np.array([10.0, 10.0])
        assert me(actual, np.array([8.0, 8.0])) > 0
        assert me(actual, np.array([12.0, 12.0])) < 0

    def test_mape_example(self):
        assert mape(np.array([100, 200, 300]), np.array([110, 190, 310])) == pytest.approx(
            (10 / 100 + 10 / 200 + 10 / 300) / 3 * 100
        )


class TestZeroActuals:
    """Percentage metrics skip observations with zero actuals."""

    def test_zero_terms_excluded(self):
        actual = np.array([0.0, 10.0])
        forecast = np.array([5.0, 5.0])

        assert mape(actual, forecast) == pytest.approx(50.0)
        assert mpe(actual, forecast) == pytest.approx(50.0)

    def test_all_zero_actuals_give_nan(self):
        actual = np.zeros(3)
        forecast = np.ones(3)

        assert np.isnan(mape(actual, forecast))
        assert np.isnan(mpe(actual, forecast))
        # Non-percentage metrics are unaffected
        assert mae(actual, forecast) == 1.0


class TestMASE:
    """MASE scale uses the training series only."""

    def test_zero_scale_is_nan(self):
        y_train = np.array([1.0, 2.0, 1.0, 2.0, 1.0, 2.0])
        assert np.isnan(mase(np.array([1.0, 2.0]), np.array([2.0, 1.0]), y_train, period=2))

    def test_unit_scale_equals_mae(self):
        y_train = np.array([1.0, 2.0, 1.0, 2.0, 1.0, 2.0])
        actual = np.array([1.0, 2.0])
        forecast = np.array([2.0, 1.0])

        assert mase(actual, forecast, y_train, period=1) == pytest.approx(1.0)
        assert mase(actual, forecast, y_train, period=1) == pytest.approx(mae(actual, forecast))

    def test_seasonal_scale(self):
        y_train = np.array([1.0, 5.0, 3.0, 9.0])
        # Lag-2 differences: |3 - 1|, |9 - 5| -> scale 3
        assert mase(np.array([4.0]), np.array([1.0]), y_train, period=2) == pytest.approx(1.0)

    def test_validation_not_in_scale(self):
        y_train = np.array([1.0, 2.0, 3.0, 4.0])
        far_off = np.array([1000.0])
        assert mase(far_off, np.array([0.0]), y_train, period=1) == pytest.approx(1000.0)

    def test_short_training_raises(self):
        with pytest.raises(InsufficientDataError):
            mase(np.array([1.0]), np.array([1.0]), np.array([1.0, 2.0]), period=2)

    def test_not_computed_without_period(self):
        metrics = compute_all_metrics(np.array([1.0]), np.array([2.0]), y_train=np.arange(10.0))
        assert np.isnan(metrics["mase"])

    def test_not_computed_for_short_training(self):
        metrics = compute_all_metrics(
            np.array([1.0]), np.array([2.0]), y_train=np.arange(3.0), period=4
        )
        assert np.isnan(metrics["mase"])


class TestValidation:
    """Input validation."""

    def test_empty_raises(self):
        with pytest.raises(ShapeMismatchError, match="cannot be empty"):
            mae(np.array([]), np.array([]))

    def test_length_mismatch_raises(self):
        with pytest.raises(ShapeMismatchError, match="same shape"):
            rmse(np.array([1.0, 2.0]), np.array([1.0]))

    def test_shape_mismatch_is_value_error(self):
        with pytest.raises(ValueError):
            evaluate("naive", np.array([1.0, 2.0, 3.0]), np.array([1.0]))


class TestEvaluate:
    """Tests for evaluate() records."""

    def test_record_fields(self):
        record = evaluate("drift", [10.0, 20.0], [15.0, 15.0])

        assert isinstance(record, AccuracyRecord)
        assert record.method == "drift"
        assert record.mae == 5.0
        assert np.isnan(record.mase)

    def test_record_is_immutable(self):
        record = evaluate("drift", [10.0, 20.0], [15.0, 15.0])
        with pytest.raises(AttributeError):
            record.mae = 0.0

    def test_as_dict(self):
        record = evaluate("drift", [10.0, 20.0], [15.0, 15.0])
        assert set(record.as_dict()) == {"method", *METRICS}

    def test_with_mase(self):
        record = evaluate("drift", [1.0, 2.0], [2.0, 1.0], y_train=[1.0, 2.0, 1.0], period=1)
        assert record.mase == pytest.approx(1.0)


class TestResultsTable:
    """Tests for ResultsTable."""

    @pytest.fixture
    def table(self):
        table = ResultsTable()
        table.add(evaluate("naive", [10.0, 20.0], [15.0, 15.0]))
        table.add(evaluate("average", [10.0, 20.0], [11.0, 19.0]))
        table.add_failure("arima", NonConvergenceError("ARIMA(2, 0, 1) did not converge"))
        return table

    def test_rows(self, table):
        assert len(table) == 3
        assert "naive" in table
        assert list(table.records) == ["naive", "average"]
        assert list(table.failures) == ["arima"]

    def test_failure_reason(self, table):
        failure = table["arima"]

        assert isinstance(failure, MethodFailure)
        assert failure.error_type == "NonConvergenceError"
        assert "did not converge" in failure.reason

    def test_readd_replaces_row(self, table):
        table.add(evaluate("naive", [10.0, 20.0], [10.0, 20.0]))

        assert len(table) == 3
        assert table["naive"].mae == 0.0
        assert [r.method for r in table] == ["naive", "average", "arima"]

    def test_failure_replaces_record(self, table):
        table.add_failure("naive", ValueError("bad"))
        assert "naive" in table.failures
        assert "naive" not in table.records

    def test_best(self, table):
        assert table.best("rmse").method == "average"
        assert table.best("mae").method == "average"

    def test_best_ranks_bias_by_magnitude(self):
        table = ResultsTable()
        table.add(evaluate("low", [10.0, 10.0], [14.0, 14.0]))
        table.add(evaluate("high", [10.0, 10.0], [9.0, 9.0]))

        # ME of -4 is worse than ME of +1
        assert table.best("me").method == "high"

    def test_best_skips_nan(self, table):
        with pytest.raises(ValueError, match="finite mase"):
            table.best("mase")

    def test_best_unknown_metric_raises(self, table):
        with pytest.raises(ValueError, match="metric must be one of"):
            table.best("r2")

    def test_to_frame(self, table):
        df = table.to_frame()

        assert isinstance(df, pl.DataFrame)
        assert df.columns == ["method", *METRICS, "status", "error"]
        assert df["method"].to_list() == ["naive", "average", "arima"]
        assert df["status"].to_list() == ["ok", "ok", "failed"]
        assert df.filter(pl.col("method") == "arima")["mae"][0] is None
        assert df["error"][2].startswith("NonConvergenceError:")

    def test_empty_frame(self):
        df = ResultsTable().to_frame()
        assert df.height == 0
        assert "method" in df.columns
