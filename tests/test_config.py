"""Tests for engine and logging configuration."""

import logging

import pytest
from pydantic import ValidationError

from advisor.config import DEFAULT_MAX_TOOL_ROUNDS, EngineConfig
from advisor.utils.logging import LogConfig, setup_logging


class TestEngineConfig:
    """Tests for engine limits."""

    def test_defaults(self):
        """Test the default limits."""
        config = EngineConfig()
        assert config.max_tool_rounds == DEFAULT_MAX_TOOL_ROUNDS == 5
        assert config.tool_timeout == 30.0
        assert config.model_timeout == 120.0

    def test_from_env(self, monkeypatch):
        """Test that limits are read from the environment."""
        monkeypatch.setenv("ADVISOR_MAX_TOOL_ROUNDS", "2")
        monkeypatch.setenv("ADVISOR_TOOL_TIMEOUT", "5")
        monkeypatch.setenv("ADVISOR_MODEL_TIMEOUT", "60.5")

        config = EngineConfig.from_env()

        assert config.max_tool_rounds == 2
        assert config.tool_timeout == 5.0
        assert config.model_timeout == 60.5

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_tool_rounds": -1}, {"tool_timeout": 0}, {"model_timeout": -3}],
    )
    def test_invalid_limits(self, kwargs):
        """Test that negative rounds and non-positive timeouts are rejected."""
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)


class TestLogConfig:
    """Tests for logging setup."""

    def test_level_is_normalised(self):
        """Test that levels are case-insensitive."""
        assert LogConfig(level="debug").level == "DEBUG"

    def test_unknown_level_is_rejected(self):
        """Test that made-up levels fail validation."""
        with pytest.raises(ValidationError):
            LogConfig(level="chatty")

    def test_setup_quiets_third_party_loggers(self):
        """Test that SDK loggers are raised to WARNING."""
        setup_logging(LogConfig(level="DEBUG"))

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("anthropic").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
