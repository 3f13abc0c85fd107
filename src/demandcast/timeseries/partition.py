"""Deterministic train/validation partitioning of a PeriodicSeries."""

from dataclasses import dataclass

from loguru import logger

from demandcast.config import PipelineConfig
from demandcast.exceptions import ConfigError

from .core import PeriodicSeries


@dataclass(frozen=True)
class Split:
    """
    Lengths of the training and validation windows.

    Attributes:
        train_len: Observations in the training window (> 0)
        valid_len: Observations in the validation window (> 0)
    """

    train_len: int
    valid_len: int

    def __post_init__(self):
        if self.train_len <= 0 or self.valid_len <= 0:
            raise ConfigError(
                f"train_len and valid_len must be > 0, "
                f"got train_len={self.train_len}, valid_len={self.valid_len}"
            )

    @property
    def total(self) -> int:
        return self.train_len + self.valid_len


class Partitioner:
    """
    Split a historic series into adjacent training and validation windows.

    Training ends exactly where validation begins: no gap, no overlap.

    Example:
        ```python
        series = PeriodicSeries(values, period=63, period2=441)
        training, validation = Partitioner.split(series, valid_len=441)
        final_input = Partitioner.combined(series)
        ```
    """

    def __init__(self, config: PipelineConfig | None = None):
        self.config = config or PipelineConfig()

    @staticmethod
    def split(
        series: PeriodicSeries, valid_len: int
    ) -> tuple[PeriodicSeries, PeriodicSeries]:
        """
        Split series into (training, validation) with validation as the last valid_len points.

        Raises:
            ConfigError: If valid_len <= 0 or valid_len >= len(series)
        """
        n = len(series)
        if valid_len <= 0:
            raise ConfigError(f"valid_len must be > 0, got {valid_len}")
        if valid_len >= n:
            raise ConfigError(
                f"valid_len must be < series length, got valid_len={valid_len} for n={n}"
            )

        split = Split(train_len=n - valid_len, valid_len=valid_len)
        training = series.window(0, split.train_len)
        validation = series.window(split.train_len, n)

        logger.info(f"Split - Train: {split.train_len:,} | Valid: {split.valid_len:,}")
        return training, validation

    @staticmethod
    def combined(series: PeriodicSeries) -> PeriodicSeries:
        """Training plus validation: the full history, used for the final refit."""
        return series

    def validation_length(self) -> int:
        """Validation length from config: explicit valid_len, else valid_cycles longest cycles."""
        if self.config.valid_len is not None:
            return self.config.valid_len
        return self.config.valid_cycles * self.config.cycle_length

    def split_for(self, series: PeriodicSeries) -> tuple[PeriodicSeries, PeriodicSeries]:
        """Split series using the configured validation length."""
        return self.split(series, self.validation_length())
