"""
chunkcache Configuration Settings

This module contains all configuration constants for the cache and server.
Values can be overridden with CHUNKCACHE_* environment variables.
"""

import os
from dataclasses import dataclass

ONE_MIB = 1024 * 1024

# Headroom kept below the entry ceiling for entry metadata and codec framing
CHUNK_OVERHEAD = 512

_DEFAULT_ENTRY_SIZE = int(os.environ.get("CHUNKCACHE_MAX_ENTRY_SIZE", str(ONE_MIB)))


@dataclass
class Settings:
    """Cache and server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("CHUNKCACHE_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("CHUNKCACHE_PORT", "7171"))

    # Store settings
    MAX_KEYS: int = int(os.environ.get("CHUNKCACHE_MAX_KEYS", "10000"))
    MAX_KEY_LENGTH: int = 250
    MAX_ENTRY_SIZE: int = _DEFAULT_ENTRY_SIZE

    # Chunking settings
    MAX_CHUNK_SIZE: int = int(
        os.environ.get("CHUNKCACHE_MAX_CHUNK_SIZE", str(_DEFAULT_ENTRY_SIZE - CHUNK_OVERHEAD))
    )
    KEY_SEPARATOR: str = "."

    # Protocol settings
    MAX_VALUE_LENGTH: int = int(os.environ.get("CHUNKCACHE_MAX_VALUE_LENGTH", str(16 * ONE_MIB)))

    # Connection settings
    # Upper bound for a single request line, value included
    READ_BUFFER_SIZE: int = 17 * ONE_MIB
    CONNECTION_TIMEOUT: int = 300  # Seconds before idle connection is closed

    # Logging settings
    DEBUG: bool = os.environ.get("CHUNKCACHE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("CHUNKCACHE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
