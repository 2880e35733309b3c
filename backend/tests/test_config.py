"""Tests for configuration and logging setup."""

import pytest
import structlog
from pydantic import ValidationError

from policy_weeder.core.config import AnalysisConfig, Settings
from policy_weeder.core.logging import configure_logging
from policy_weeder.models.analysis import WeightingMode


class TestAnalysisConfig:
    """Test analysis options."""

    def test_defaults(self):
        config = AnalysisConfig()

        assert config.overlap_threshold == 70
        assert config.duplicate_threshold == 80
        assert config.include_disabled is False
        assert config.weighting_mode == WeightingMode.WEIGHTED
        assert config.stale_report_only_days == 30

    @pytest.mark.parametrize("threshold", [49, 101])
    def test_threshold_range(self, threshold):
        """Overlap thresholds must lie in 50-100."""
        with pytest.raises(ValidationError):
            AnalysisConfig(overlap_threshold=threshold)

    def test_weighting_mode_from_string(self):
        config = AnalysisConfig(weighting_mode="attainable-points")

        assert config.weighting_mode == WeightingMode.ATTAINABLE_POINTS

    def test_unknown_weighting_mode(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(weighting_mode="cosine")


class TestSettings:
    """Test environment-backed settings."""

    def test_environment_override(self, monkeypatch):
        """Environment variables feed the analysis config."""
        monkeypatch.setenv("OVERLAP_THRESHOLD", "85")
        monkeypatch.setenv("INCLUDE_DISABLED", "true")
        monkeypatch.setenv("WEIGHTING_MODE", "attainable-points")
        monkeypatch.setenv("COMPARISON_MAX_WORKERS", "2")

        config = AnalysisConfig.from_settings(Settings())

        assert config.overlap_threshold == 85
        assert config.include_disabled is True
        assert config.weighting_mode == WeightingMode.ATTAINABLE_POINTS
        assert config.max_workers == 2

    def test_invalid_environment_threshold(self, monkeypatch):
        """Out-of-range settings are rejected when building the config."""
        monkeypatch.setenv("OVERLAP_THRESHOLD", "40")

        with pytest.raises(ValidationError):
            AnalysisConfig.from_settings(Settings())


class TestConfigureLogging:
    """Test structlog configuration."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_json_renderer(self):
        configure_logging(level="debug", json_logs=True)

        processors = structlog.get_config()["processors"]

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self):
        configure_logging(level="INFO", json_logs=False)

        processors = structlog.get_config()["processors"]

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
