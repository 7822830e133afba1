"""
Core configuration management class.
"""

import threading
import logging
from typing import Dict, Any, Optional, List, Callable

from .models import AdaptiveEngineConfiguration
from .sources import ConfigurationSource
from .validation import ConfigurationValidator

logger = logging.getLogger(__name__)


class EngineSettings:
    """
    Holds the adaptation engine configuration merged from prioritized sources.

    Sources are loaded lowest priority first and deep-merged, so higher
    priority sources override individual keys. The merged data is validated
    before it replaces the current configuration; a failed reload keeps the
    previous configuration in place.
    """

    def __init__(self, sources: Optional[List[ConfigurationSource]] = None):
        self._sources: List[ConfigurationSource] = list(sources or [])
        self._config_data: Dict[str, Any] = {}
        self._config: AdaptiveEngineConfiguration = AdaptiveEngineConfiguration()
        self._warnings: List[str] = []
        self._reload_callbacks: List[Callable[[AdaptiveEngineConfiguration], None]] = []
        self._config_lock = threading.RLock()

        if self._sources:
            self._load_configuration()

    def add_source(self, source: ConfigurationSource) -> None:
        with self._config_lock:
            self._sources.append(source)

    def _load_configuration(self) -> None:
        merged: Dict[str, Any] = {}

        for source in sorted(self._sources, key=lambda s: s.get_priority()):
            try:
                merged = self._deep_merge(merged, source.load())
            except Exception as e:
                logger.error(f"Failed to load configuration from source: {type(source).__name__}: {e}")
                raise

        warnings = ConfigurationValidator.validate_configuration(merged)
        for warning in warnings:
            logger.warning(warning)

        config = AdaptiveEngineConfiguration(**merged)
        with self._config_lock:
            self._config_data = merged
            self._config = config
            self._warnings = warnings

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @property
    def config(self) -> AdaptiveEngineConfiguration:
        with self._config_lock:
            return self._config

    @property
    def warnings(self) -> List[str]:
        with self._config_lock:
            return list(self._warnings)

    def get_raw_config(self) -> Dict[str, Any]:
        with self._config_lock:
            return self._config_data.copy()

    def reload_configuration(self) -> None:
        """Reload from all sources and notify callbacks with the new configuration."""
        self._load_configuration()
        config = self.config

        for callback in list(self._reload_callbacks):
            try:
                callback(config)
            except Exception as e:
                logger.error(f"Error in reload callback: {e}")

    def add_reload_callback(self, callback: Callable[[AdaptiveEngineConfiguration], None]) -> None:
        self._reload_callbacks.append(callback)

    def remove_reload_callback(self, callback: Callable[[AdaptiveEngineConfiguration], None]) -> None:
        if callback in self._reload_callbacks:
            self._reload_callbacks.remove(callback)
