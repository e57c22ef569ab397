"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from reconops.config import Settings, get_settings


class TestSettings:
    """Tests for Settings model."""

    def test_settings_defaults(self) -> None:
        """Test default settings values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.log_level == "INFO"
            assert settings.log_format == "json"
            assert settings.random_seed is None
            assert settings.agent_error_rate == 0.10
            assert settings.agent_latency_scale == 1.0
            assert settings.planning_delay_ms == 600
            assert settings.agent_delay_ms == 800
            assert settings.synthesis_delay_ms == 700
            assert settings.completion_delay_ms == 600
            assert settings.catalog_path is None

    def test_settings_from_env(self) -> None:
        """Test loading settings from environment variables."""
        with patch.dict(
            os.environ,
            {
                "RECONOPS_LOG_LEVEL": "DEBUG",
                "RECONOPS_LOG_FORMAT": "Console",
                "RECONOPS_RANDOM_SEED": "42",
                "RECONOPS_AGENT_ERROR_RATE": "0.5",
                "RECONOPS_AGENT_DELAY_MS": "0",
                "RECONOPS_CATALOG_PATH": "/tmp/catalog.yaml",
            },
            clear=True,
        ):
            settings = Settings(_env_file=None)

            assert settings.log_level == "DEBUG"
            assert settings.log_format == "console"
            assert settings.random_seed == 42
            assert settings.agent_error_rate == 0.5
            assert settings.agent_delay_ms == 0
            assert str(settings.catalog_path) == "/tmp/catalog.yaml"

    def test_invalid_log_format(self) -> None:
        """Only json and console are accepted."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_invalid_log_level(self) -> None:
        with patch.dict(os.environ, {"RECONOPS_LOG_LEVEL": "verbose"}, clear=True):
            with pytest.raises(ValidationError, match="log_level"):
                Settings(_env_file=None)

    def test_log_level_normalized(self) -> None:
        """Level names are case-insensitive and stored upper-case."""
        assert Settings(_env_file=None, log_level="warning").log_level == "WARNING"

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_error_rate_bounds(self, rate) -> None:
        """Error rate must be a probability."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, agent_error_rate=rate)

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, planning_delay_ms=-1)

    def test_without_pacing(self) -> None:
        """Pacing and simulated latency are zeroed, everything else kept."""
        settings = Settings(_env_file=None, random_seed=3).without_pacing()

        assert settings.agent_latency_scale == 0.0
        assert settings.planning_delay_ms == 0
        assert settings.agent_delay_ms == 0
        assert settings.synthesis_delay_ms == 0
        assert settings.completion_delay_ms == 0
        assert settings.random_seed == 3
        assert settings.agent_error_rate == 0.10

    def test_get_settings_singleton(self) -> None:
        """Test that get_settings returns singleton."""
        with patch("reconops.config._settings", None):
            settings1 = get_settings()
            settings2 = get_settings()

            assert settings1 is settings2
