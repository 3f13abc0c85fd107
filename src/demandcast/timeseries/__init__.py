"""Periodic series container and train/validation partitioning."""

from .core import PeriodicSeries, TimeSeriesError
from .partition import Partitioner, Split

__all__ = ["PeriodicSeries", "TimeSeriesError", "Partitioner", "Split"]
