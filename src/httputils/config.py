"""
=============================================================================
EMITTER CONFIGURATION
=============================================================================

Settings for emitting responses from the command line or an application.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httputils file.txt --buffer-size 8192           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPUTILS_BUFFER_SIZE=8192 python -m httputils file.txt   │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import logging
import os
import sys
from dataclasses import dataclass

from .emitter.base import DEFAULT_BUFFER_SIZE


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class EmitterConfig:
    """
    Configuration for response emission.

    Usage:
        config = EmitterConfig.from_env()
        config.validate()
        setup_logging(config)
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    """
    Chunk size in bytes for body reads (64 KB default).
    Smaller = less memory per response, more write calls.
    """

    buffered_output: bool = False
    """
    Hold body output back until the final flush.
    Only useful for small responses.
    """

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    Logs always go to stderr, stdout carries the response.
    """

    protocol_version: str = "1.1"
    """HTTP version used in the status line ("1.0", "1.1")."""

    @classmethod
    def from_env(cls) -> "EmitterConfig":
        """
        Create configuration from environment variables.

        HTTPUTILS_BUFFER_SIZE       Body chunk size (default: 65536)
        HTTPUTILS_BUFFERED          Buffer output until flush (default: off)
        HTTPUTILS_LOG_LEVEL         Logging level (default: INFO)
        HTTPUTILS_PROTOCOL_VERSION  HTTP version (default: 1.1)
        """
        return cls(
            buffer_size=int(os.getenv("HTTPUTILS_BUFFER_SIZE", str(DEFAULT_BUFFER_SIZE))),
            buffered_output=os.getenv("HTTPUTILS_BUFFERED", "").strip().lower() in _TRUTHY,
            log_level=os.getenv("HTTPUTILS_LOG_LEVEL", "INFO"),
            protocol_version=os.getenv("HTTPUTILS_PROTOCOL_VERSION", "1.1"),
        )

    def validate(self) -> None:
        """
        Validate configuration values, failing fast on the first problem.

        Raises:
            ValueError: For an invalid setting.
        """
        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {self.buffer_size}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}. Must be one of {', '.join(_LOG_LEVELS)}.")

        if self.protocol_version not in ("1.0", "1.1", "2", "2.0", "3"):
            raise ValueError(f"Unsupported protocol_version: {self.protocol_version}")


def setup_logging(config: EmitterConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    logging.getLogger("httputils").setLevel(level)
