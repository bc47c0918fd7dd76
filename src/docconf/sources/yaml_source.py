"""
YAML file configuration source.

Loads a YAML mapping with `yaml.safe_load` and flattens nested mappings to
dot-notation keys (``mail: {host: x}`` becomes ``mail.host``). A missing,
unreadable or non-mapping file yields an empty source and a warning, so a
broken defaults file never stops the configuration chain.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from docconf.core.logging.logger import get_logger
from docconf.sources.base import MemoryConfigurationSource
from docconf.sources.converter import TypeConverter

logger = get_logger(__name__)


def flatten_mapping(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Example
    -------
    >>> flatten_mapping({"mail": {"host": "smtp", "port": 25}, "debug": True})
    {'mail.host': 'smtp', 'mail.port': 25, 'debug': True}
    """
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            flat.update(flatten_mapping(value, f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


class YamlConfigurationSource(MemoryConfigurationSource):
    def __init__(
        self,
        path: Union[str, Path],
        converter: Optional[TypeConverter] = None,
    ) -> None:
        super().__init__(converter=converter)
        self.path = Path(path)
        self.reload()

    def reload(self) -> None:
        """Re-read the file, replacing every value."""
        self._values = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.warning(
                "YAML configuration file not found, using no values",
                extra={"file": str(self.path)},
            )
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning(
                "Failed to load YAML configuration",
                extra={
                    "file": str(self.path),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return {}

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            logger.warning(
                "Ignoring non-dict YAML root object",
                extra={"file": str(self.path), "root_type": type(data).__name__},
            )
            return {}

        values = flatten_mapping(data)
        logger.debug(
            "Loaded YAML configuration",
            extra={"file": str(self.path), "key_count": len(values)},
        )
        return values
