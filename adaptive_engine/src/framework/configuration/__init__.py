"""
Configuration Management

Type-safe configuration for the adaptation engine with YAML, environment
variable and in-process sources, priority merging and validation.
"""

from .models import (
    LoggingConfiguration,
    ResourceThresholdConfiguration,
    OrchestratorConfiguration,
    EvaluatorConfiguration,
    EngineConfiguration,
    AdaptiveEngineConfiguration
)

from .sources import (
    ConfigurationSource,
    DictConfigurationSource,
    YAMLConfigurationSource,
    EnvironmentConfigurationSource
)

from .validation import (
    ConfigurationValidator,
    ConfigurationValidationError
)

from .core import EngineSettings

from .builder import ConfigurationBuilder

from .utils import (
    load_configuration_from_file,
    load_default_configuration
)

__all__ = [
    # Models
    'LoggingConfiguration',
    'ResourceThresholdConfiguration',
    'OrchestratorConfiguration',
    'EvaluatorConfiguration',
    'EngineConfiguration',
    'AdaptiveEngineConfiguration',

    # Sources
    'ConfigurationSource',
    'DictConfigurationSource',
    'YAMLConfigurationSource',
    'EnvironmentConfigurationSource',

    # Validation
    'ConfigurationValidator',
    'ConfigurationValidationError',

    # Core
    'EngineSettings',
    'ConfigurationBuilder',

    # Utilities
    'load_configuration_from_file',
    'load_default_configuration'
]
