"""Table ingestion for historic demand and future timestamps."""

from .loaders import DemandLoader, attach_forecast

__all__ = ["DemandLoader", "attach_forecast"]
