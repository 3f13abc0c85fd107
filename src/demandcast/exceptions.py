"""
Exception taxonomy for the forecast evaluation pipeline.

Every error raised by demandcast derives from ForecastingError and from the
builtin exception it most resembles, so callers can catch either the family
or the builtin (e.g. ``except ValueError`` keeps working for bad inputs).

Propagation policy:
- ConfigError: invalid split/horizon parameters, fatal for the whole run
- InsufficientDataError: series too short for a method, that method is skipped
- NonConvergenceError: estimator failed to converge, that method is skipped
- ShapeMismatchError: misaligned forecast/actual or chained forecasts
- RangeError: invalid window bounds on a PeriodicSeries
- PipelineStateError: pipeline operation called out of order
"""


class ForecastingError(Exception):
    """Base exception for demandcast operations."""

    pass


class ConfigError(ForecastingError, ValueError):
    """Invalid split, horizon or pipeline configuration."""

    pass


class InsufficientDataError(ForecastingError, ValueError):
    """Series too short for a forecaster's minimum-period requirement."""

    pass


class NonConvergenceError(ForecastingError, RuntimeError):
    """Underlying estimator failed to converge or to produce a fit."""

    pass


class ShapeMismatchError(ForecastingError, ValueError):
    """Length mismatch between aligned sequences."""

    pass


class RangeError(ForecastingError, IndexError):
    """Window bounds outside a series."""

    pass


class PipelineStateError(ForecastingError, RuntimeError):
    """Pipeline step invoked from the wrong state."""

    pass
