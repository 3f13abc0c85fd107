"""
Logging configuration for pipeline runs.

Library modules only emit through ``loguru.logger``. The application picks
the sink and level here, usually from ``PipelineConfig.log_level``.
"""

import sys

from loguru import logger

from demandcast.config import PipelineConfig


def configure_logging(
    level: str | None = None,
    show_time: bool = False,
    config: PipelineConfig | None = None,
) -> None:
    """
    Route pipeline logging to stderr at the requested level.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); overrides config
        show_time: Prefix each line with HH:mm:ss
        config: Pipeline configuration whose log_level is used when level
            is not given. Defaults to INFO when neither is set.

    Example:
        ```python
        from demandcast import PipelineConfig
        from demandcast.utils import configure_logging

        configure_logging(config=PipelineConfig(log_level="INFO"))

        # INFO     | Split - Train: 2,646 | Valid: 441
        # INFO     | Evaluating seasonal_naive (train=2646, horizon=441)
        # WARNING  | arima failed with NonConvergenceError: ...
        ```
    """
    if level is None:
        level = config.log_level if config is not None else "INFO"

    logger.remove()

    fields = ["<level>{level: <8}</level>", "{message}"]
    if show_time:
        fields.insert(0, "<green>{time:HH:mm:ss}</green>")

    logger.add(sys.stderr, format=" | ".join(fields), level=level.upper(), colorize=True)


def quiet_logging() -> None:
    """Only per-method failures and errors."""
    configure_logging(level="WARNING")


def verbose_logging() -> None:
    """DEBUG output with timestamps, including dropped estimator warnings."""
    configure_logging(level="DEBUG", show_time=True)
