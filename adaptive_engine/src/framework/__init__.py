"""
Framework Layer - configuration services for the adaptation engine.
"""

from .configuration import (
    AdaptiveEngineConfiguration, EngineSettings, ConfigurationBuilder,
    load_configuration_from_file
)

__all__ = [
    "AdaptiveEngineConfiguration",
    "EngineSettings",
    "ConfigurationBuilder",
    "load_configuration_from_file",
]
