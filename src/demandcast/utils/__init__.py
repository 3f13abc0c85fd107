"""
Utility functions for demand forecasting workflows.

Provides helpers for logging configuration.
"""

from .logging_setup import configure_logging, quiet_logging, verbose_logging

__all__ = ["configure_logging", "quiet_logging", "verbose_logging"]
