"""Forecasting models and evaluation for demand series."""

from .forecasting import PipelineDriver, ResidualChain, default_roster

__all__ = ["PipelineDriver", "ResidualChain", "default_roster"]
