"""Pipeline configuration for demand forecast evaluation."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

SELECTION_METRICS = ("me", "mpe", "mae", "mape", "rmse", "mase")
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class PipelineConfig(BaseModel):
    """Settings for ingestion, partitioning, the method roster and the final refit"""

    # Seasonality (reference dataset: 63 fifteen-minute bins per day, 7-day week)
    period: int = Field(63, gt=0, description="Observations per daily cycle")
    period2: int | None = Field(441, gt=0, description="Observations per weekly cycle")

    # Partitioning
    valid_len: int | None = Field(
        None, gt=0, description="Validation window length; derived from valid_cycles if unset"
    )
    valid_cycles: int = Field(1, gt=0, description="Validation length in cycles of period2")
    future_horizon: int | None = Field(
        None, gt=0, description="Future steps; defaults to the future timestamp count"
    )

    # Evaluation and selection
    mase_period: int | None = Field(None, gt=0, description="MASE lag; defaults to period")
    selection_metric: str = Field("rmse", description="Metric used to pick the final method")

    # Method roster
    fourier_order: int = Field(5, gt=0, description="Fourier pairs for Fourier regressions")
    arima_order: tuple[int, int, int] = Field((2, 0, 1), description="(p, d, q) for ARIMA")
    decomposition_model: Literal["additive", "multiplicative"] = "additive"

    # Ingestion
    timestamp_col: str = Field("timestamp", min_length=1)
    value_col: str = Field("value", min_length=1)
    timestamp_format: str = Field("%d-%m-%Y %H:%M", min_length=1)
    interval_minutes: int = Field(15, gt=0)
    intervals_per_day: int = Field(63, gt=0)

    log_level: str = Field("INFO", description="Level passed to utils.configure_logging")

    @field_validator("selection_metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        v = v.lower()
        if v not in SELECTION_METRICS:
            raise ValueError(f"selection_metric must be one of {SELECTION_METRICS}, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {v}")
        return v

    @field_validator("arima_order")
    @classmethod
    def validate_arima_order(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(o < 0 for o in v):
            raise ValueError(f"arima_order must be non-negative, got {v}")
        return v

    @model_validator(mode="after")
    def validate_periods(self) -> "PipelineConfig":
        if self.period2 is not None and (
            self.period2 <= self.period or self.period2 % self.period != 0
        ):
            raise ValueError(
                f"period2 must be a multiple of period greater than it: "
                f"period={self.period}, period2={self.period2}"
            )
        if 2 * self.fourier_order > self.period:
            raise ValueError(
                f"fourier_order must be <= period/2, got {self.fourier_order} "
                f"for period={self.period}"
            )
        return self

    @property
    def effective_mase_period(self) -> int:
        return self.mase_period if self.mase_period is not None else self.period

    @property
    def cycle_length(self) -> int:
        """Longest configured seasonal cycle."""
        return self.period2 if self.period2 is not None else self.period
