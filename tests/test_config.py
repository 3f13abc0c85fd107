"""Tests for PipelineConfig validation."""

import pytest
from pydantic import ValidationError

from demandcast.config import PipelineConfig


class TestPipelineConfig:
    """Test suite for PipelineConfig."""

    def test_reference_defaults(self):
        config = PipelineConfig()

        assert config.period == 63
        assert config.period2 == 441
        assert config.interval_minutes == 15
        assert config.selection_metric == "rmse"
        assert config.effective_mase_period == 63
        assert config.cycle_length == 441

    def test_mase_period_override(self):
        config = PipelineConfig(mase_period=441)
        assert config.effective_mase_period == 441

    def test_cycle_length_without_period2(self):
        config = PipelineConfig(period=63, period2=None)
        assert config.cycle_length == 63

    def test_selection_metric_normalized(self):
        assert PipelineConfig(selection_metric="MASE").selection_metric == "mase"

    def test_unknown_selection_metric_raises(self):
        with pytest.raises(ValidationError, match="selection_metric"):
            PipelineConfig(selection_metric="r2")

    def test_period2_must_be_multiple(self):
        with pytest.raises(ValidationError, match="multiple of period"):
            PipelineConfig(period=63, period2=100)

    def test_period2_must_exceed_period(self):
        with pytest.raises(ValidationError):
            PipelineConfig(period=63, period2=63)

    def test_fourier_order_bound(self):
        with pytest.raises(ValidationError, match="fourier_order"):
            PipelineConfig(period=4, period2=8, fourier_order=3)

    def test_negative_arima_order_raises(self):
        with pytest.raises(ValidationError, match="non-negative"):
            PipelineConfig(arima_order=(1, -1, 0))

    @pytest.mark.parametrize("field", ["period", "valid_len", "future_horizon", "valid_cycles"])
    def test_non_positive_values_raise(self, field):
        with pytest.raises(ValidationError):
            PipelineConfig(**{field: 0})

    def test_unknown_decomposition_model_raises(self):
        with pytest.raises(ValidationError):
            PipelineConfig(decomposition_model="logistic")

    def test_log_level_normalized(self):
        assert PipelineConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_raises(self):
        with pytest.raises(ValidationError, match="log_level"):
            PipelineConfig(log_level="chatty")
