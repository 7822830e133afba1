"""
Infrastructure Layer - Core technical services

Data storage, the exception hierarchy and observability shared by the
adaptation engine.
"""

from .data_storage import (
    StorageBackend, InMemoryStorageBackend, AppliedAdaptationRepository,
    PerformanceSampleRepository
)
from .exceptions import (
    AdaptiveEngineError, ConfigurationError, RegistryError, StrategyExecutionError,
    EffectorError, DataStoreError, EngineStateError
)
from .observability import (
    StructuredLogger, LogLevel, get_logger, configure_logging,
    AdaptationMetricsCollector, PrometheusExporter, get_metrics_collector
)

__all__ = [
    "StorageBackend",
    "InMemoryStorageBackend",
    "AppliedAdaptationRepository",
    "PerformanceSampleRepository",
    "AdaptiveEngineError",
    "ConfigurationError",
    "RegistryError",
    "StrategyExecutionError",
    "EffectorError",
    "DataStoreError",
    "EngineStateError",
    "StructuredLogger",
    "LogLevel",
    "get_logger",
    "configure_logging",
    "AdaptationMetricsCollector",
    "PrometheusExporter",
    "get_metrics_collector",
]
