"""
Accuracy metrics and results table for forecast evaluation.

Point forecast metrics (actual vs. forecast arrays):
- ME (Mean Error): Bias, positive when forecasts are too low
- MPE (Mean Percentage Error): Bias in percent of actuals
- MAE (Mean Absolute Error): Average absolute deviation
- MAPE (Mean Absolute Percentage Error): Scale-independent percentage error
- RMSE (Root Mean Squared Error): Penalizes large errors
- MASE (Mean Absolute Scaled Error): MAE scaled by a seasonal naive baseline

Errors are actual - forecast throughout.

Zero-actual policy for MPE/MAPE: observations whose actual value is zero
(|actual| <= epsilon) are excluded from the mean. If every observation is
excluded, the metric is NaN. Demand series often have empty bins, and
excluding them keeps the percentage metrics finite and comparable.

All metrics return Python floats.

Example:
    ```python
    import numpy as np
    from demandcast.modeling.forecasting.evaluation import ResultsTable, evaluate

    table = ResultsTable()
    record = evaluate("naive", y_valid, naive_preds, y_train=y_train, period=63)
    table.add(record)
    print(table.to_frame())
    ```
"""

from dataclasses import asdict, dataclass

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from demandcast.exceptions import InsufficientDataError, ShapeMismatchError

METRICS = ("me", "mpe", "mae", "mape", "rmse", "mase")


def me(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Mean Error (ME).

    Formula:
        ME = mean(y_true - y_pred)

    Example:
        ```python
        me(np.array([10, 20]), np.array([15, 15]))  # 0.0
        ```
    """
    y_true, y_pred = _validate_arrays(y_true, y_pred)
    return float(np.mean(y_true - y_pred))


def mpe(y_true: ArrayLike, y_pred: ArrayLike, epsilon: float = 1e-10) -> float:
    """
    Mean Percentage Error (MPE).

    Formula:
        MPE = mean((y_true - y_pred) / y_true) × 100

    Terms with |y_true| <= epsilon are excluded; NaN if none remain.
    """
    y_true, y_pred = _validate_arrays(y_true, y_pred)

    mask = np.abs(y_true) > epsilon
    if not np.any(mask):
        return float("nan")

    return float(np.mean((y_true[mask] - y_pred[mask]) / y_true[mask]) * 100)


def mae(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Mean Absolute Error (MAE).

    Formula:
        MAE = mean(|y_true - y_pred|)

    Same units as the data (passengers per 15-minute bin).
    """
    y_true, y_pred = _validate_arrays(y_true, y_pred)
    return float(np.mean(np.abs(y_true - y_pred)))


def mape(y_true: ArrayLike, y_pred: ArrayLike, epsilon: float = 1e-10) -> float:
    """
    Mean Absolute Percentage Error (MAPE).

    Formula:
        MAPE = mean(|y_true - y_pred| / |y_true|) × 100

    Terms with |y_true| <= epsilon are excluded; NaN if none remain.

    Example:
        ```python
        y_true = np.array([100, 200, 300])
        y_pred = np.array([110, 190, 310])
        print(mape(y_true, y_pred))  # ~5.56
        ```
    """
    y_true, y_pred = _validate_arrays(y_true, y_pred)

    mask = np.abs(y_true) > epsilon
    if not np.any(mask):
        return float("nan")

    percentage_errors = np.abs(y_true[mask] - y_pred[mask]) / np.abs(y_true[mask])
    return float(np.mean(percentage_errors) * 100)


def rmse(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Root Mean Squared Error (RMSE).

    Formula:
        RMSE = sqrt(mean((y_true - y_pred)²))

    RMSE ≥ MAE always.
    """
    y_true, y_pred = _validate_arrays(y_true, y_pred)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def mase(
    y_true: ArrayLike,
    y_pred: ArrayLike,
    y_train: ArrayLike,
    period: int = 1,
) -> float:
    """
    Mean Absolute Scaled Error (MASE).

    Formula:
        scale = mean(|y_train[t] - y_train[t - period]|),  t = period..n_train-1
        MASE  = MAE(y_true, y_pred) / scale

    The scale is the in-sample MAE of the seasonal naive method on the
    training series only; the forecast window never enters the denominator.
    For y_train = [1, 2, 1, 2, 1, 2] and period=2 every lag-2 difference is 0,
    so the scale is 0 and MASE is NaN. With period=1 the differences are all
    1, so the scale is 1 and MASE equals MAE.

    Interpretation:
        - MASE < 1: Forecast beats the in-sample seasonal naive baseline
        - MASE > 1: Forecast worse than the baseline

    Args:
        y_true: Actual values over the forecast window
        y_pred: Forecasts over the forecast window
        y_train: Training series used for the scale
        period: Seasonal lag of the naive baseline

    Returns:
        MASE value as float; NaN if the scale is zero

    Raises:
        ShapeMismatchError: If y_true/y_pred are empty or misaligned
        InsufficientDataError: If y_train has no more than `period` samples
    """
    y_true, y_pred = _validate_arrays(y_true, y_pred)
    y_train = np.asarray(y_train, dtype=np.float64)

    if len(y_train) <= period:
        raise InsufficientDataError(
            f"y_train must have > {period} samples for period={period}, got {len(y_train)}"
        )

    forecast_mae = mae(y_true, y_pred)

    naive_errors = np.abs(y_train[period:] - y_train[:-period])
    naive_mae = float(np.mean(naive_errors))

    if naive_mae == 0:
        return float("nan")

    return forecast_mae / naive_mae


def compute_all_metrics(
    y_true: ArrayLike,
    y_pred: ArrayLike,
    y_train: ArrayLike | None = None,
    period: int | None = None,
) -> dict[str, float]:
    """
    Compute the six accuracy metrics at once.

    MASE is NaN ("not computed") unless both y_train and period are given,
    or when y_train is too short for the seasonal lag.

    Returns:
        Dictionary keyed by METRICS
    """
    metrics = {
        "me": me(y_true, y_pred),
        "mpe": mpe(y_true, y_pred),
        "mae": mae(y_true, y_pred),
        "mape": mape(y_true, y_pred),
        "rmse": rmse(y_true, y_pred),
        "mase": float("nan"),
    }

    if y_train is not None and period is not None:
        if len(y_train) > period:
            metrics["mase"] = mase(y_true, y_pred, y_train, period=period)
        else:
            logger.warning(
                f"MASE not computed: {len(y_train)} training samples for period={period}"
            )

    return metrics


@dataclass(frozen=True)
class AccuracyRecord:
    """
    Accuracy of one method over the validation window.

    Attributes:
        method: Unique method name
        me, mpe, mae, mape, rmse, mase: Metric values (mase may be NaN)
    """

    method: str
    me: float
    mpe: float
    mae: float
    mape: float
    rmse: float
    mase: float

    def as_dict(self) -> dict[str, float | str]:
        return asdict(self)


@dataclass(frozen=True)
class MethodFailure:
    """A method that could not be evaluated, with the reason."""

    method: str
    error_type: str
    reason: str

    @classmethod
    def from_exception(cls, method: str, error: BaseException) -> "MethodFailure":
        return cls(method=method, error_type=type(error).__name__, reason=str(error))


def evaluate(
    method: str,
    actual: ArrayLike,
    forecast: ArrayLike,
    y_train: ArrayLike | None = None,
    period: int | None = None,
) -> AccuracyRecord:
    """
    Score one method's forecast against the actuals.

    Args:
        method: Method name recorded in the result
        actual: Actual values, length n > 0
        forecast: Forecast values, length n
        y_train: Training series for the MASE scale
        period: Seasonal lag for MASE; NaN MASE when omitted

    Raises:
        ShapeMismatchError: If actual/forecast are empty or differ in length
    """
    return AccuracyRecord(method=method, **compute_all_metrics(actual, forecast, y_train, period))


class ResultsTable:
    """
    Per-method accuracy results in evaluation order.

    Each method name holds exactly one row: either an AccuracyRecord or a
    MethodFailure. Re-adding a name replaces its row in place; rows are
    never edited otherwise.

    Example:
        ```python
        table = ResultsTable()
        table.add(evaluate("naive", actual, forecast))
        table.add_failure("arima", NonConvergenceError("did not converge"))
        table.best("rmse")  # AccuracyRecord for "naive"
        ```
    """

    def __init__(self):
        self._rows: dict[str, AccuracyRecord | MethodFailure] = {}

    def add(self, record: AccuracyRecord) -> None:
        self._rows[record.method] = record

    def add_failure(self, method: str, error: BaseException) -> MethodFailure:
        failure = MethodFailure.from_exception(method, error)
        self._rows[method] = failure
        return failure

    @property
    def records(self) -> dict[str, AccuracyRecord]:
        return {k: v for k, v in self._rows.items() if isinstance(v, AccuracyRecord)}

    @property
    def failures(self) -> dict[str, MethodFailure]:
        return {k: v for k, v in self._rows.items() if isinstance(v, MethodFailure)}

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, method: str) -> bool:
        return method in self._rows

    def __getitem__(self, method: str) -> AccuracyRecord | MethodFailure:
        return self._rows[method]

    def __iter__(self):
        return iter(self._rows.values())

    def best(self, metric: str = "rmse") -> AccuracyRecord:
        """
        Successful record with the lowest metric value.

        Bias metrics (me, mpe) are ranked by absolute value; NaN values are skipped.

        Raises:
            ValueError: If metric is unknown or no record has a finite value
        """
        if metric not in METRICS:
            raise ValueError(f"metric must be one of {METRICS}, got {metric}")

        candidates = [
            r for r in self.records.values() if np.isfinite(getattr(r, metric))
        ]
        if not candidates:
            raise ValueError(f"No successful method has a finite {metric}")

        key = (lambda r: abs(getattr(r, metric))) if metric in ("me", "mpe") else (
            lambda r: getattr(r, metric)
        )
        return min(candidates, key=key)

    def to_frame(self) -> pl.DataFrame:
        """One row per attempted method; failures have null metrics and an error message."""
        rows = []
        for row in self._rows.values():
            if isinstance(row, AccuracyRecord):
                rows.append({**row.as_dict(), "status": "ok", "error": None})
            else:
                rows.append(
                    {
                        "method": row.method,
                        **{m: None for m in METRICS},
                        "status": "failed",
                        "error": f"{row.error_type}: {row.reason}",
                    }
                )

        schema = {
            "method": pl.Utf8,
            **{m: pl.Float64 for m in METRICS},
            "status": pl.Utf8,
            "error": pl.Utf8,
        }
        return pl.DataFrame(rows, schema=schema)


def _validate_arrays(
    y_true: ArrayLike, y_pred: ArrayLike
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """
    Validate that arrays are non-empty and have matching shapes.

    Raises:
        ShapeMismatchError: If arrays are empty or have different shapes
    """
    y_true = np.asarray(y_true, dtype=np.float64)
    y_pred = np.asarray(y_pred, dtype=np.float64)

    if len(y_true) == 0:
        raise ShapeMismatchError("y_true cannot be empty")
    if len(y_pred) == 0:
        raise ShapeMismatchError("y_pred cannot be empty")
    if y_true.shape != y_pred.shape:
        raise ShapeMismatchError(
            f"y_true and y_pred must have same shape: "
            f"y_true={y_true.shape}, y_pred={y_pred.shape}"
        )
    return y_true, y_pred
