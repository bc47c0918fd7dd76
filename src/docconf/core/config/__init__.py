"""
Configuration infrastructure for docconf.

- **config.py**: static settings from environment variables (.env support)
- **errors.py**: configuration exception hierarchy
- **metrics.py**: per-source lookup metrics and health snapshots

The wiki-backed configuration sources themselves live in `docconf.sources`.
"""

from docconf.core.config.config import Config, Environment
from docconf.core.config.errors import (
    CacheInitializationError,
    ConfigError,
    ConfigInitializationError,
    ConfigurationUnavailableError,
    ConversionError,
    ReferenceResolutionError,
)
from docconf.core.config.metrics import (
    ConfigMetrics,
    get_health_snapshot,
    get_metrics_snapshot,
)

__all__ = [
    "Config",
    "Environment",
    "ConfigError",
    "ConfigurationUnavailableError",
    "ReferenceResolutionError",
    "ConversionError",
    "ConfigInitializationError",
    "CacheInitializationError",
    "ConfigMetrics",
    "get_health_snapshot",
    "get_metrics_snapshot",
]
