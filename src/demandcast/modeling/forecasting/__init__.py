"""Demand forecasting evaluation framework.

This module provides:
- Baseline forecasters (average, naive, seasonal naive, drift)
- Decomposition forecasters (classical + naive, dual-seasonal MSTL + ETS)
- Regression forecasters (seasonal dummies, Fourier terms)
- Statistical models (ARIMA, exponential smoothing)
- Residual chaining of any two forecasters
- Accuracy metrics, results table and the evaluation pipeline
"""

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
from .evaluation import (
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
from .pipeline import (
    PipelineDriver,
    PipelineResult,
    PipelineState,
    ValidationForecast,
    default_roster,
)
from .regression import LinearFourierForecaster, LinearSeasonalForecaster, fourier_terms
from .smoothing import ETSForecaster

__all__ = [
    # Forecasters
    "BaseForecaster",
    "AverageForecaster",
    "NaiveForecaster",
    "SeasonalNaiveForecaster",
    "DriftForecaster",
    "DecompositionNaiveForecaster",
    "MultiSeasonalForecaster",
    "LinearSeasonalForecaster",
    "LinearFourierForecaster",
    "ARIMAForecaster",
    "ETSForecaster",
    "ResidualChain",
    "fourier_terms",
    # Evaluation metrics
    "METRICS",
    "me",
    "mpe",
    "mae",
    "mape",
    "rmse",
    "mase",
    "compute_all_metrics",
    "evaluate",
    "AccuracyRecord",
    "MethodFailure",
    "ResultsTable",
    # Pipeline
    "PipelineDriver",
    "PipelineResult",
    "PipelineState",
    "ValidationForecast",
    "default_roster",
]
