"""Table loaders for historic demand and future forecast timestamps."""

from datetime import timedelta
from pathlib import Path

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import ArrayLike

from demandcast.config import PipelineConfig
from demandcast.exceptions import ShapeMismatchError
from demandcast.timeseries import PeriodicSeries, TimeSeriesError


class DemandLoader:
    """
    Load 15-minute demand tables into PeriodicSeries.

    The reference data is a two-column table (timestamp, value) with a fixed
    number of 15-minute bins per day between two daily clock bounds.
    Timestamps are day-first strings such as "01-08-2023 06:00". Days are
    checked for a complete, regular set of bins; the overnight gap between
    days is expected and not treated as missing data.
    """

    def __init__(self, config: PipelineConfig | None = None):
        self.config = config or PipelineConfig()

    def read_table(self, source: str | Path | pl.DataFrame) -> pl.DataFrame:
        """
        Read a CSV (or take a DataFrame) and parse the timestamp column.

        Returns:
            DataFrame sorted by timestamp with a Datetime timestamp column

        Raises:
            TimeSeriesError: If the timestamp column is missing
        """
        df = source if isinstance(source, pl.DataFrame) else pl.read_csv(source)
        ts_col = self.config.timestamp_col

        if ts_col not in df.columns:
            raise TimeSeriesError(
                f"timestamp_col '{ts_col}' not found in columns: {df.columns}"
            )

        if df.schema[ts_col] == pl.Utf8:
            df = df.with_columns(
                pl.col(ts_col).str.strip_chars().str.to_datetime(format=self.config.timestamp_format)
            )

        return df.sort(ts_col)

    def load(self, source: str | Path | pl.DataFrame) -> PeriodicSeries:
        """
        Load the historic demand table.

        Args:
            source: CSV path or DataFrame with timestamp and value columns

        Returns:
            PeriodicSeries with config.period / config.period2

        Raises:
            TimeSeriesError: If columns are missing, values are null/negative,
                or the daily cadence is broken
        """
        df = self.read_table(source)
        value_col = self.config.value_col

        if value_col not in df.columns:
            raise TimeSeriesError(
                f"value_col '{value_col}' not found in columns: {df.columns}"
            )
        if df[value_col].null_count() > 0:
            raise TimeSeriesError(f"value_col '{value_col}' contains {df[value_col].null_count()} nulls")

        self.check_cadence(df)

        series = PeriodicSeries(
            df[value_col].cast(pl.Float64).to_numpy(),
            period=self.config.period,
            period2=self.config.period2,
            timestamps=df[self.config.timestamp_col].to_numpy(),
        )
        logger.info(
            f"Loaded {len(series):,} observations over "
            f"{len(series) // self.config.intervals_per_day} days"
        )
        return series

    def load_future(self, source: str | Path | pl.DataFrame) -> pl.Series:
        """Timestamps that the final forecast must cover, in order."""
        df = self.read_table(source)
        logger.info(f"Loaded {df.height:,} future timestamps")
        return df[self.config.timestamp_col]

    def check_cadence(self, df: pl.DataFrame) -> None:
        """
        Verify every day has intervals_per_day bins, interval_minutes apart.

        Raises:
            TimeSeriesError: On incomplete days, irregular spacing or duplicates
        """
        ts_col = self.config.timestamp_col
        expected_gap = timedelta(minutes=self.config.interval_minutes)

        checked = df.select(pl.col(ts_col)).with_columns(
            pl.col(ts_col).dt.date().alias("_day"),
        ).with_columns(
            pl.col(ts_col).diff().over("_day").alias("_gap"),
        )

        per_day = checked.group_by("_day").agg(pl.len().alias("n")).sort("_day")
        incomplete = per_day.filter(pl.col("n") != self.config.intervals_per_day)
        if incomplete.height > 0:
            first = incomplete.row(0, named=True)
            raise TimeSeriesError(
                f"{incomplete.height} day(s) without {self.config.intervals_per_day} intervals, "
                f"first: {first['_day']} has {first['n']}"
            )

        irregular = checked.filter(pl.col("_gap").is_not_null() & (pl.col("_gap") != expected_gap))
        if irregular.height > 0:
            raise TimeSeriesError(
                f"{irregular.height} timestamp(s) not {self.config.interval_minutes} minutes "
                f"after the previous one, first at {irregular[ts_col][0]}"
            )


def attach_forecast(timestamps: pl.Series, counts: ArrayLike) -> pl.DataFrame:
    """
    Align forecast counts one-to-one with the future timestamp table.

    Raises:
        ShapeMismatchError: If lengths differ
    """
    counts = np.asarray(counts)
    if len(timestamps) != len(counts):
        raise ShapeMismatchError(
            f"timestamps and forecast must have same length: "
            f"timestamps={len(timestamps)}, forecast={len(counts)}"
        )
    return pl.DataFrame({timestamps.name: timestamps, "forecast": counts})
