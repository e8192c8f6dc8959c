"""
Unit tests for emitter configuration.
"""

import logging

import pytest

from httputils.config import EmitterConfig, setup_logging
from httputils.emitter import DEFAULT_BUFFER_SIZE


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every HTTPUTILS_* variable."""
    for name in ("HTTPUTILS_BUFFER_SIZE", "HTTPUTILS_BUFFERED", "HTTPUTILS_LOG_LEVEL", "HTTPUTILS_PROTOCOL_VERSION"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestEmitterConfig:
    """Tests for EmitterConfig."""

    def test_defaults(self):
        config = EmitterConfig()

        assert config.buffer_size == DEFAULT_BUFFER_SIZE == 65536
        assert config.buffered_output is False
        assert config.log_level == "INFO"
        assert config.protocol_version == "1.1"
        config.validate()

    def test_from_env_defaults(self, clean_env):
        assert EmitterConfig.from_env() == EmitterConfig()

    def test_from_env(self, clean_env):
        """Test that every setting is read from the environment."""
        clean_env.setenv("HTTPUTILS_BUFFER_SIZE", "1024")
        clean_env.setenv("HTTPUTILS_BUFFERED", " Yes ")
        clean_env.setenv("HTTPUTILS_LOG_LEVEL", "DEBUG")
        clean_env.setenv("HTTPUTILS_PROTOCOL_VERSION", "1.0")

        config = EmitterConfig.from_env()

        assert config.buffer_size == 1024
        assert config.buffered_output is True
        assert config.log_level == "DEBUG"
        assert config.protocol_version == "1.0"

    @pytest.mark.parametrize("value", ["", "0", "no", "off", "nope"])
    def test_buffered_falsy(self, clean_env, value):
        clean_env.setenv("HTTPUTILS_BUFFERED", value)
        assert EmitterConfig.from_env().buffered_output is False

    def test_from_env_invalid_buffer_size(self, clean_env):
        clean_env.setenv("HTTPUTILS_BUFFER_SIZE", "big")

        with pytest.raises(ValueError):
            EmitterConfig.from_env()

    @pytest.mark.parametrize("changes, message", [
        ({"buffer_size": 0}, "buffer_size must be >= 1"),
        ({"buffer_size": -5}, "buffer_size must be >= 1"),
        ({"log_level": "LOUD"}, "Invalid log_level: LOUD"),
        ({"protocol_version": "0.9"}, "Unsupported protocol_version: 0.9"),
    ])
    def test_validate(self, changes, message):
        """Test that validate() fails fast on bad values."""
        with pytest.raises(ValueError, match=message):
            EmitterConfig(**changes).validate()

    def test_log_level_case_insensitive(self):
        EmitterConfig(log_level="warning").validate()


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_sets_package_level(self):
        logger = logging.getLogger("httputils")
        previous = logger.level

        try:
            setup_logging(EmitterConfig(log_level="warning"))
            assert logger.level == logging.WARNING
        finally:
            logger.setLevel(previous)
