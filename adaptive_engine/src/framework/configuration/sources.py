"""
Configuration sources for loading configuration data.
"""

import os
import yaml
from abc import ABC, abstractmethod
from typing import Dict, Any, Union, Optional, Mapping
from pathlib import Path

from ...infrastructure.exceptions import ConfigurationError

ENV_PREFIX = "ADAPTIVE_ENGINE_"
ENV_NESTING_SEPARATOR = "__"


class ConfigurationSource(ABC):
    """Abstract base class for configuration sources."""

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Load configuration data from the source."""
        pass

    @abstractmethod
    def get_priority(self) -> int:
        """Get the priority of this source (higher number = higher priority)."""
        pass


class DictConfigurationSource(ConfigurationSource):
    """In-process configuration, e.g. defaults supplied by an embedding application."""

    def __init__(self, data: Dict[str, Any], priority: int = 50):
        self.data = data
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        return dict(self.data)

    def get_priority(self) -> int:
        return self.priority


class YAMLConfigurationSource(ConfigurationSource):
    """YAML file configuration source."""

    def __init__(self, file_path: Union[str, Path], priority: int = 100):
        self.file_path = Path(file_path)
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        if not self.file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.file_path}",
                config_path=str(self.file_path)
            )

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {self.file_path}",
                config_path=str(self.file_path),
                context={"yaml_error": str(e)},
                cause=e
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Error reading configuration file: {self.file_path}",
                config_path=str(self.file_path),
                cause=e
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {self.file_path}",
                config_path=str(self.file_path)
            )
        return data

    def get_priority(self) -> int:
        return self.priority


class EnvironmentConfigurationSource(ConfigurationSource):
    """
    Environment variable configuration source.

    ``ADAPTIVE_ENGINE_EVALUATOR__WINDOW_SIZE=20`` becomes
    ``{"evaluator": {"window_size": 20}}``.
    """

    def __init__(self, prefix: str = ENV_PREFIX, priority: int = 200,
                 environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix.upper()
        self.priority = priority
        self._environ = environ

    def load(self) -> Dict[str, Any]:
        environ = self._environ if self._environ is not None else os.environ
        config: Dict[str, Any] = {}

        for key, value in environ.items():
            if key.startswith(self.prefix):
                path = key[len(self.prefix):].lower().split(ENV_NESTING_SEPARATOR)
                self._set_nested_value(config, path, self._parse_value(value))

        return config

    def _set_nested_value(self, config: Dict[str, Any], path: list, value: Any) -> None:
        current = config
        for part in path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    def _parse_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        if ',' in value:
            return [item.strip() for item in value.split(',') if item.strip()]

        return value

    def get_priority(self) -> int:
        return self.priority
