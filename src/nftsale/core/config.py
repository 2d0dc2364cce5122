"""
nftsale Configuration

All settings are read from environment variables at import time, with
defaults suitable for local development. ``validate_config()`` checks the
values that can be wrong and is called by the node entry point.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc


ENVIRONMENT = os.getenv("NFTSALE_ENVIRONMENT", "development")

LOG_LEVEL = os.getenv("NFTSALE_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("NFTSALE_LOG_FILE", "").strip() or None

# "memory" keeps state for the life of the process; "sqlite" persists it
STORAGE_BACKEND = os.getenv("NFTSALE_STORAGE_BACKEND", "memory").strip().lower()
STORAGE_PATH = os.getenv("NFTSALE_STORAGE_PATH", "").strip()

MAX_SUBMESSAGE_DEPTH = _get_int("NFTSALE_MAX_SUBMESSAGE_DEPTH", 16)

API_HOST = os.getenv("NFTSALE_API_HOST", "127.0.0.1")
API_PORT = _get_int("NFTSALE_API_PORT", 8545)
API_MAX_JSON_BYTES = _get_int("NFTSALE_API_MAX_JSON_BYTES", 65536)

STORAGE_BACKENDS = ("memory", "sqlite")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_config() -> None:
    """
    Check the loaded settings.

    Raises:
        ConfigurationError: If any setting is invalid
    """
    if STORAGE_BACKEND not in STORAGE_BACKENDS:
        raise ConfigurationError(
            f"NFTSALE_STORAGE_BACKEND must be one of {STORAGE_BACKENDS}, got {STORAGE_BACKEND!r}"
        )
    if STORAGE_BACKEND == "sqlite" and not STORAGE_PATH:
        raise ConfigurationError("NFTSALE_STORAGE_PATH is required for the sqlite backend")
    if LOG_LEVEL not in LOG_LEVELS:
        raise ConfigurationError(f"NFTSALE_LOG_LEVEL must be one of {LOG_LEVELS}, got {LOG_LEVEL!r}")
    if MAX_SUBMESSAGE_DEPTH <= 0:
        raise ConfigurationError("NFTSALE_MAX_SUBMESSAGE_DEPTH must be positive")
    if API_MAX_JSON_BYTES <= 0:
        raise ConfigurationError("NFTSALE_API_MAX_JSON_BYTES must be positive")

    if STORAGE_BACKEND == "memory" and ENVIRONMENT == "production":
        logger.warning(
            "In-memory storage selected in production; state is lost on restart",
            extra={"event": "config.volatile_storage"},
        )
