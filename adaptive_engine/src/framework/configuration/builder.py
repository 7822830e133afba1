"""
Configuration builder for creating EngineSettings instances.
"""

from typing import Any, Dict, List, Mapping, Optional, Union
from pathlib import Path

from .core import EngineSettings
from .sources import (
    ConfigurationSource, DictConfigurationSource, YAMLConfigurationSource,
    EnvironmentConfigurationSource, ENV_PREFIX
)


class ConfigurationBuilder:
    """
    Builder for EngineSettings with YAML, environment and in-process sources.
    """

    def __init__(self):
        self._sources: List[ConfigurationSource] = []

    def add_dict_source(self, data: Dict[str, Any], priority: int = 50) -> 'ConfigurationBuilder':
        self._sources.append(DictConfigurationSource(data, priority))
        return self

    def add_yaml_source(self, path: Union[str, Path], priority: int = 100) -> 'ConfigurationBuilder':
        """
        Add a YAML configuration source.

        Args:
            path: Path to the YAML configuration file
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(YAMLConfigurationSource(path, priority))
        return self

    def add_environment_source(self, prefix: str = ENV_PREFIX, priority: int = 200,
                               environ: Optional[Mapping[str, str]] = None) -> 'ConfigurationBuilder':
        """
        Add environment variable configuration source.

        Args:
            prefix: Environment variable prefix
            priority: Priority of this source (higher = more important)
            environ: Mapping to read instead of ``os.environ``
        """
        self._sources.append(EnvironmentConfigurationSource(prefix, priority, environ))
        return self

    def add_source(self, source: ConfigurationSource) -> 'ConfigurationBuilder':
        self._sources.append(source)
        return self

    def build(self) -> EngineSettings:
        if not self._sources:
            self.add_environment_source()
        return EngineSettings(self._sources.copy())
