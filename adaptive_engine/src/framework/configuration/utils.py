"""
Utility functions for common configuration patterns.
"""

from typing import Union
from pathlib import Path

from .builder import ConfigurationBuilder
from .core import EngineSettings


def load_configuration_from_file(file_path: Union[str, Path]) -> EngineSettings:
    """
    Load configuration from a YAML file with environment variable overrides.

    Args:
        file_path: Path to the YAML configuration file

    Returns:
        EngineSettings instance
    """
    return (ConfigurationBuilder()
            .add_yaml_source(file_path, 100)
            .add_environment_source(priority=200)
            .build())


def load_default_configuration() -> EngineSettings:
    """Defaults overridden only by environment variables."""
    return ConfigurationBuilder().add_environment_source(priority=200).build()
