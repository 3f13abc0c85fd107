"""demandcast - Forecast evaluation harness for periodic demand series"""

__version__ = "0.1.0"

# Import submodules
from . import io, modeling, timeseries, utils
from .config import PipelineConfig

# Convenience imports
from .exceptions import (
    ConfigError,
    ForecastingError,
    InsufficientDataError,
    NonConvergenceError,
    PipelineStateError,
    RangeError,
    ShapeMismatchError,
)
from .modeling import PipelineDriver, ResidualChain, default_roster
from .timeseries import Partitioner, PeriodicSeries
from .utils import configure_logging, quiet_logging, verbose_logging

__all__ = [
    "io",
    "modeling",
    "timeseries",
    "utils",
    "PipelineConfig",
    "PeriodicSeries",
    "Partitioner",
    "PipelineDriver",
    "ResidualChain",
    "default_roster",
    "ForecastingError",
    "ConfigError",
    "InsufficientDataError",
    "NonConvergenceError",
    "ShapeMismatchError",
    "RangeError",
    "PipelineStateError",
    "configure_logging",
    "quiet_logging",
    "verbose_logging",
]
