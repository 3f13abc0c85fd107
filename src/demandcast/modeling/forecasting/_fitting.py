"""Helpers shared by forecasters that wrap statsmodels estimators."""

import warnings
from collections.abc import Callable
from typing import TypeVar

import numpy as np
from loguru import logger
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from demandcast.exceptions import ForecastingError, NonConvergenceError

T = TypeVar("T")


def fit_estimator(label: str, fit: Callable[[], T]) -> T:
    """
    Run an estimator's fit call and surface non-convergence.

    A statsmodels ConvergenceWarning, an explicit ``converged=False`` in the
    result's mle_retvals, or any numerical failure becomes NonConvergenceError.
    Other statsmodels warnings are logged at debug level and dropped.

    Args:
        label: Model description for messages (e.g. "ARIMA(2, 0, 1)")
        fit: Zero-argument callable returning the fitted results object

    Returns:
        The fitted results object

    Raises:
        NonConvergenceError: If the estimator fails or does not converge
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = fit()
        except ForecastingError:
            raise
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.error(f"{label} fitting failed: {e}")
            raise NonConvergenceError(f"Failed to fit {label}: {e}") from e

    for w in caught:
        if issubclass(w.category, ConvergenceWarning):
            raise NonConvergenceError(f"{label} did not converge: {w.message}")
        logger.debug(f"{label}: {w.category.__name__}: {w.message}")

    retvals = getattr(result, "mle_retvals", None) or {}
    if retvals.get("converged") is False:
        raise NonConvergenceError(f"{label} optimizer reported non-convergence")

    return result
