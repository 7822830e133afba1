"""
Observability - structured logging and metrics for the adaptation engine.
"""

from .logging import (
    StructuredLogger, LogLevel, LogFormatter, LogHandler, JSONLogFormatter,
    HumanReadableFormatter, ConsoleLogHandler, FileLogHandler, MemoryLogHandler,
    get_logger, configure_logging, get_correlation_id, get_need_id, get_strategy_id,
    ROOT_LOGGER_NAME
)
from .metrics import (
    AdaptationMetricsCollector, MetricType, Counter, Gauge, Histogram, Timer,
    PrometheusExporter, get_metrics_collector, reset_metrics_collector
)

__all__ = [
    "StructuredLogger",
    "LogLevel",
    "LogFormatter",
    "LogHandler",
    "JSONLogFormatter",
    "HumanReadableFormatter",
    "ConsoleLogHandler",
    "FileLogHandler",
    "MemoryLogHandler",
    "get_logger",
    "configure_logging",
    "get_correlation_id",
    "get_need_id",
    "get_strategy_id",
    "ROOT_LOGGER_NAME",
    "AdaptationMetricsCollector",
    "MetricType",
    "Counter",
    "Gauge",
    "Histogram",
    "Timer",
    "PrometheusExporter",
    "get_metrics_collector",
    "reset_metrics_collector",
]
