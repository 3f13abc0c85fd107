"""Core PeriodicSeries class for single-series seasonal forecasting."""

import numpy as np
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from demandcast.exceptions import ForecastingError, RangeError


class TimeSeriesError(ForecastingError, ValueError):
    """Invalid values, period or timestamps for a PeriodicSeries."""

    pass


class PeriodicSeries:
    """
    Immutable ordered sequence of demand observations with a seasonal period.

    The series owns a read-only copy of its values (and timestamps, when given).
    Slicing through window() produces new PeriodicSeries instances; the source
    is never mutated.

    Attributes:
        values: Read-only float64 array of observations
        period: Observations per seasonal cycle (e.g., 63 fifteen-minute bins per day)
        period2: Optional longer cycle, an integer multiple of period (e.g., one week)
        timestamps: Optional read-only datetime64 array aligned with values
    """

    def __init__(
        self,
        values: ArrayLike,
        period: int,
        period2: int | None = None,
        timestamps: ArrayLike | None = None,
    ):
        """
        Initialize PeriodicSeries.

        Args:
            values: Observations in time order (non-negative demand counts)
            period: Seasonal period in observations (must be > 0)
            period2: Optional nested seasonal period, multiple of period
            timestamps: Optional timestamps, strictly increasing, same length as values

        Raises:
            TimeSeriesError: If values, periods or timestamps are invalid
        """
        data = np.array(values, dtype=np.float64)
        if data.ndim != 1:
            raise TimeSeriesError(f"values must be one-dimensional, got shape {data.shape}")
        if len(data) == 0:
            raise TimeSeriesError("values cannot be empty")
        if not np.all(np.isfinite(data)):
            raise TimeSeriesError("values contain NaN or Inf")
        if np.any(data < 0):
            raise TimeSeriesError("values must be non-negative demand counts")

        if period <= 0:
            raise TimeSeriesError(f"period must be > 0, got {period}")
        if period2 is not None and (period2 <= period or period2 % period != 0):
            raise TimeSeriesError(
                f"period2 must be a multiple of period greater than it: "
                f"period={period}, period2={period2}"
            )

        stamps = None
        if timestamps is not None:
            stamps = np.array(timestamps, dtype="datetime64[ns]")
            if len(stamps) != len(data):
                raise TimeSeriesError(
                    f"timestamps and values must have same length: "
                    f"timestamps={len(stamps)}, values={len(data)}"
                )
            if len(stamps) > 1 and not np.all(np.diff(stamps) > np.timedelta64(0, "ns")):
                raise TimeSeriesError("timestamps must be strictly increasing")
            stamps.flags.writeable = False

        data.flags.writeable = False
        self._values = data
        self._timestamps = stamps
        self.period = int(period)
        self.period2 = int(period2) if period2 is not None else None

        if len(data) < self.period:
            logger.warning(
                f"PeriodicSeries has {len(data)} observations, fewer than one "
                f"seasonal cycle (period={self.period})"
            )

    @property
    def values(self) -> NDArray[np.floating]:
        return self._values

    @property
    def timestamps(self) -> NDArray[np.datetime64] | None:
        return self._timestamps

    @property
    def n_cycles(self) -> int:
        """Number of complete seasonal cycles."""
        return len(self) // self.period

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (
            f"PeriodicSeries(n={len(self)}, period={self.period}, period2={self.period2})"
        )

    def window(self, start: int, end: int) -> "PeriodicSeries":
        """
        Contiguous sub-series covering positions [start, end).

        Args:
            start: First index (inclusive)
            end: Last index (exclusive)

        Returns:
            New PeriodicSeries with the same periods

        Raises:
            RangeError: Unless 0 <= start < end <= len(self)
        """
        if not 0 <= start < end <= len(self):
            raise RangeError(
                f"window bounds must satisfy 0 <= start < end <= {len(self)}, "
                f"got start={start}, end={end}"
            )
        stamps = self._timestamps[start:end] if self._timestamps is not None else None
        return PeriodicSeries(
            self._values[start:end],
            period=self.period,
            period2=self.period2,
            timestamps=stamps,
        )

    def as_frequency(self, period: int, period2: int | None = None) -> "PeriodicSeries":
        """
        Reinterpret the same observations under a different seasonal period.

        Used for diagnostics, e.g. viewing a daily-period series at its weekly
        period. Values and timestamps are unchanged.
        """
        return PeriodicSeries(
            self._values, period=period, period2=period2, timestamps=self._timestamps
        )

    def seasonal_index(self) -> NDArray[np.integer]:
        """Position of each observation within its seasonal cycle (0..period-1)."""
        return np.arange(len(self)) % self.period
