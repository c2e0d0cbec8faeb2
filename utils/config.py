"""Configuration management utilities for the bucket budget API.

Provides:
- A small ``Config`` base class that reports its settings as a dict
- ``AppConfig``, the process-level settings read once from the environment
"""

import os as _os
from pathlib import Path
from typing import Any, Dict


STORE_BACKENDS = frozenset({"sqlite", "memory"})


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all public config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


def read_env_or_default(key: str, default: str) -> str:
    """Return the environment value for ``key``, or ``default`` when unset or empty."""
    value = _os.getenv(key, "")
    return value if value else default


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have defaults so the service starts without any
    configuration.

    Environment variables:
        APP_DB_PATH: Path to the SQLite database file (default: budget.sqlite)
        APP_STORE: Store backend, "sqlite" or "memory" (default: sqlite)
        APP_HOST: API server bind address (default: 127.0.0.1)
        HTTP_PLATFORM_PORT: API server port (default: 3000)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_DB_POOL_SIZE: Max DB connections in pool (default: 10)
        APP_REQUEST_TIMEOUT: Per-request deadline in seconds (default: 10)
    """

    def __init__(self) -> None:
        super().__init__()
        self.db_path = Path(read_env_or_default("APP_DB_PATH", "budget.sqlite"))
        self.store = read_env_or_default("APP_STORE", "sqlite").lower()
        if self.store not in STORE_BACKENDS:
            raise ValueError(
                f"APP_STORE must be one of {sorted(STORE_BACKENDS)}, got '{self.store}'"
            )
        self.api_host = read_env_or_default("APP_HOST", "127.0.0.1")
        self.api_port = int(read_env_or_default("HTTP_PLATFORM_PORT", "3000"))
        self.log_format = read_env_or_default("APP_LOG_FORMAT", "text")
        raw_origins = read_env_or_default("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.pool_size = int(read_env_or_default("APP_DB_POOL_SIZE", "10"))
        self.request_timeout = float(read_env_or_default("APP_REQUEST_TIMEOUT", "10"))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
