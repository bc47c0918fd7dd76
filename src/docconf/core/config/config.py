"""
Static settings for docconf.

Purpose
-------
Provides process-wide settings loaded from environment variables (with
`.env` support) that decide how the configuration sources are wired: which
cache backend they use, how the logging subsystem behaves and how long the
event bus waits on invalidation listeners.

Responsibilities
----------------
- Load settings from the environment with typed parsing and bounds checking
- Track which values came from the environment and which fell back to defaults
- Provide a sanitized summary for startup logs

Non-Responsibilities
--------------------
- Wiki-backed configuration (handled by `docconf.sources`)
- Runtime configuration changes (except `reload_safe_configs`)

Architecture Notes
------------------
- Class-level attributes, no instantiation
- Loaded on module import via `Config.load()`
- Uses plain `logging` during bootstrap because the structured logger
  depends on this module

Environment Variables
---------------------
- DOCCONF_ENV: development | testing | staging | production
- DOCCONF_LOG_LEVEL, DOCCONF_LOG_JSON, DOCCONF_LOG_COLORS
- DOCCONF_CACHE_BACKEND: memory | redis
- DOCCONF_CACHE_NAMESPACE
- DOCCONF_REDIS_URL, DOCCONF_REDIS_SOCKET_TIMEOUT
- DOCCONF_LISTENER_TIMEOUT_SECONDS
"""

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse an environment string, falling back to development.

        Example
        -------
        >>> Environment.from_string("PRODUCTION") is Environment.PRODUCTION
        True
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            logging.warning(
                "Unknown environment '%s', defaulting to development", value
            )
            return cls.DEVELOPMENT


class _ConfigLoadMetrics:
    """Records where each setting came from and any parse errors."""

    def __init__(self) -> None:
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}
        self.last_reload: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool, default: Any) -> None:
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str) -> None:
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": sorted(self.defaults_used.keys()),
            "last_reload": self.last_reload,
        }


class Config:
    """
    Centralized static settings.

    Usage
    -----
    >>> Config.CACHE_BACKEND
    'memory'
    >>> Config.is_production()
    False
    """

    _metrics: _ConfigLoadMetrics = _ConfigLoadMetrics()

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True

    # Cache
    CACHE_BACKEND: str = "memory"
    CACHE_NAMESPACE: str = "docconf"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: int = 5

    # Event bus
    LISTENER_TIMEOUT_SECONDS: int = 5

    VALID_CACHE_BACKENDS = ("memory", "redis")
    VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    # =========================================================================
    # Parsing helpers
    # =========================================================================

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Parse an integer from the environment, falling back to `default`.

        Example
        -------
        >>> Config._safe_int("DOCCONF_REDIS_SOCKET_TIMEOUT", 5, min_val=1)
        5
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        try:
            value = int(raw_value)
        except ValueError:
            error = f"{key}='{raw_value}' is not a valid integer, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        if min_val is not None and value < min_val:
            error = f"{key}={value} is below minimum {min_val}, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        if max_val is not None and value > max_val:
            error = f"{key}={value} exceeds maximum {max_val}, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """Parse true/false, yes/no, 1/0, on/off (case-insensitive)."""
        raw_value = os.getenv(key)
        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        normalized = raw_value.strip().lower()
        if normalized in {"true", "yes", "1", "on"}:
            value = True
        elif normalized in {"false", "no", "0", "off"}:
            value = False
        else:
            error = f"{key}='{raw_value}' is not a valid boolean, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_str(cls, key: str, default: str, choices: Optional[tuple] = None) -> str:
        raw_value = os.getenv(key)
        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        value = raw_value.strip()
        if choices is not None and value.lower() not in {c.lower() for c in choices}:
            error = f"{key}='{raw_value}' is not one of {list(choices)}, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Load every setting from the environment."""
        cls.ENVIRONMENT = Environment.from_string(
            cls._safe_str("DOCCONF_ENV", "development")
        ).value
        cls.LOG_LEVEL = cls._safe_str(
            "DOCCONF_LOG_LEVEL", "INFO", choices=cls.VALID_LOG_LEVELS
        ).upper()
        cls.LOG_JSON = cls._safe_bool("DOCCONF_LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("DOCCONF_LOG_COLORS", True))

        cls.CACHE_BACKEND = cls._safe_str(
            "DOCCONF_CACHE_BACKEND", "memory", choices=cls.VALID_CACHE_BACKENDS
        ).lower()
        cls.CACHE_NAMESPACE = cls._safe_str("DOCCONF_CACHE_NAMESPACE", "docconf")
        cls.REDIS_URL = cls._safe_str("DOCCONF_REDIS_URL", "redis://localhost:6379/0")
        cls.REDIS_SOCKET_TIMEOUT = cls._safe_int(
            "DOCCONF_REDIS_SOCKET_TIMEOUT", 5, min_val=1, max_val=60
        )

        cls.LISTENER_TIMEOUT_SECONDS = cls._safe_int(
            "DOCCONF_LISTENER_TIMEOUT_SECONDS", 5, min_val=0, max_val=300
        )

        cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()

    @classmethod
    def reload_safe_configs(cls) -> None:
        """
        Reload settings that can change without rebuilding sources.

        The cache backend and Redis URL are only read when a cache is created,
        so they are not reloaded here.
        """
        cls.LOG_LEVEL = cls._safe_str(
            "DOCCONF_LOG_LEVEL", cls.LOG_LEVEL, choices=cls.VALID_LOG_LEVELS
        ).upper()
        cls.LISTENER_TIMEOUT_SECONDS = cls._safe_int(
            "DOCCONF_LISTENER_TIMEOUT_SECONDS",
            cls.LISTENER_TIMEOUT_SECONDS,
            min_val=0,
            max_val=300,
        )
        logging.getLogger(__name__).info("Safe configuration values reloaded")

    # =========================================================================
    # Environment checks & summary
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_metrics(cls) -> _ConfigLoadMetrics:
        return cls._metrics

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Non-sensitive summary for startup logs."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "cache_backend": cls.CACHE_BACKEND,
            "cache_namespace": cls.CACHE_NAMESPACE,
            "redis_url_scheme": cls.REDIS_URL.split("://", 1)[0],
            "listener_timeout_seconds": cls.LISTENER_TIMEOUT_SECONDS,
            **cls._metrics.get_summary(),
        }


Config.load()
