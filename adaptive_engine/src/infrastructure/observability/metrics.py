"""
Metrics Collection for the Adaptation Engine

Counters, gauges and histograms keyed by label sets, a collector that
registers the engine's core metrics, and a Prometheus text exporter.
"""

import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional


class MetricType(Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass
class MetricSnapshot:
    """Value of one metric series at a point in time."""
    value: Any
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)


def _label_key(labels: Optional[Dict[str, str]]) -> str:
    if not labels:
        return ""
    return "|".join(f"{k}={v}" for k, v in sorted(labels.items()))


def _key_labels(key: str) -> Dict[str, str]:
    if not key:
        return {}
    return dict(pair.split("=", 1) for pair in key.split("|"))


class Metric(ABC):
    """Base class for labelled metrics."""

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.labels = labels or []
        self._lock = Lock()

    @abstractmethod
    def get_type(self) -> MetricType:
        pass

    @abstractmethod
    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSnapshot:
        pass

    @abstractmethod
    def series(self) -> List[MetricSnapshot]:
        """Every recorded label combination."""
        pass


class Counter(Metric):
    """Monotonically increasing value."""

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        super().__init__(name, description, labels)
        self._values: Dict[str, float] = defaultdict(float)

    def get_type(self) -> MetricType:
        return MetricType.COUNTER

    def increment(self, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        if amount < 0:
            raise ValueError("Counter can only be incremented with positive values")
        with self._lock:
            self._values[_label_key(labels)] += amount

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSnapshot:
        with self._lock:
            value = self._values.get(_label_key(labels), 0.0)
        return MetricSnapshot(value=value, labels=labels or {})

    def series(self) -> List[MetricSnapshot]:
        with self._lock:
            items = list(self._values.items())
        return [MetricSnapshot(value=v, labels=_key_labels(k)) for k, v in items]


class Gauge(Counter):
    """Value that can go up and down."""

    def get_type(self) -> MetricType:
        return MetricType.GAUGE

    def set(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            self._values[_label_key(labels)] = value

    def increment(self, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            self._values[_label_key(labels)] += amount

    def decrement(self, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        self.increment(-amount, labels)


class Histogram(Metric):
    """Distribution of observed values over fixed buckets."""

    DEFAULT_BUCKETS = [0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, float('inf')]

    def __init__(self, name: str, description: str, buckets: Optional[List[float]] = None,
                 labels: Optional[List[str]] = None):
        super().__init__(name, description, labels)
        self.buckets = buckets or list(self.DEFAULT_BUCKETS)
        self._observations: Dict[str, Dict[str, Any]] = {}

    def get_type(self) -> MetricType:
        return MetricType.HISTOGRAM

    def observe(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        key = _label_key(labels)
        with self._lock:
            data = self._observations.setdefault(
                key, {'count': 0, 'sum': 0.0, 'buckets': {b: 0 for b in self.buckets}}
            )
            data['count'] += 1
            data['sum'] += value
            for bound in self.buckets:
                if value <= bound:
                    data['buckets'][bound] += 1

    def _copy(self, key: str) -> Dict[str, Any]:
        data = self._observations.get(key)
        if data is None:
            return {'count': 0, 'sum': 0.0, 'buckets': {b: 0 for b in self.buckets}}
        return {'count': data['count'], 'sum': data['sum'], 'buckets': dict(data['buckets'])}

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> MetricSnapshot:
        with self._lock:
            value = self._copy(_label_key(labels))
        return MetricSnapshot(value=value, labels=labels or {})

    def series(self) -> List[MetricSnapshot]:
        with self._lock:
            keys = list(self._observations)
            values = [(k, self._copy(k)) for k in keys]
        return [MetricSnapshot(value=v, labels=_key_labels(k)) for k, v in values]


class Timer:
    """Context manager observing elapsed seconds into a histogram."""

    def __init__(self, histogram: Histogram, labels: Optional[Dict[str, str]] = None):
        self.histogram = histogram
        self.labels = labels
        self.start_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.histogram.observe(time.perf_counter() - self.start_time, self.labels)


class AdaptationMetricsCollector:
    """
    Registry of engine metrics.

    Core metrics are registered on construction; convenience methods record
    the events the orchestrator, strategies, engine and evaluator produce.
    """

    NEEDS_TOTAL = "adaptive_engine_needs_total"
    APPLIED_TOTAL = "adaptive_engine_adaptations_applied_total"
    NOOP_TOTAL = "adaptive_engine_noop_outcomes_total"
    SUB_RULE_FAILURES = "adaptive_engine_sub_rule_failures_total"
    STRATEGY_FAILURES = "adaptive_engine_strategy_failures_total"
    EXECUTION_DURATION = "adaptive_engine_strategy_execution_seconds"
    EFFECTIVENESS = "adaptive_engine_effectiveness_score"
    PENDING_TRIGGERS = "adaptive_engine_pending_triggers"
    REGISTERED_STRATEGIES = "adaptive_engine_registered_strategies"

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}
        self._lock = Lock()
        self._initialize_core_metrics()

    def _initialize_core_metrics(self) -> None:
        self.register_counter(self.NEEDS_TOTAL, "Adaptation needs handed to the orchestrator",
                              ["adaptation_type"])
        self.register_counter(self.APPLIED_TOTAL, "Adaptations applied by strategies",
                              ["strategy_id", "adaptation_type"])
        self.register_counter(self.NOOP_TOTAL, "Orchestration passes that applied nothing",
                              ["adaptation_type", "reason"])
        self.register_counter(self.SUB_RULE_FAILURES, "Sub-rules skipped because an effector failed",
                              ["strategy_id", "sub_rule"])
        self.register_counter(self.STRATEGY_FAILURES, "Strategy executions that raised",
                              ["strategy_id"])
        self.register_histogram(self.EXECUTION_DURATION, "Time spent in strategy execute",
                                labels=["strategy_id"])
        self.register_gauge(self.EFFECTIVENESS, "Mean effectiveness score of evaluated adaptations",
                            ["adaptation_type"])
        self.register_gauge(self.PENDING_TRIGGERS, "Adaptation triggers waiting to be processed")
        self.register_gauge(self.REGISTERED_STRATEGIES, "Strategies currently registered")

    def _register(self, metric: Metric) -> Metric:
        with self._lock:
            if metric.name in self._metrics:
                raise ValueError(f"Metric {metric.name} already exists")
            self._metrics[metric.name] = metric
            return metric

    def register_counter(self, name: str, description: str, labels: Optional[List[str]] = None) -> Counter:
        return self._register(Counter(name, description, labels))

    def register_gauge(self, name: str, description: str, labels: Optional[List[str]] = None) -> Gauge:
        return self._register(Gauge(name, description, labels))

    def register_histogram(self, name: str, description: str, buckets: Optional[List[float]] = None,
                           labels: Optional[List[str]] = None) -> Histogram:
        return self._register(Histogram(name, description, buckets, labels))

    def get_metric(self, name: str) -> Optional[Metric]:
        return self._metrics.get(name)

    def get_all_metrics(self) -> Dict[str, Metric]:
        with self._lock:
            return dict(self._metrics)

    def _counter(self, name: str) -> Counter:
        metric = self._metrics[name]
        assert isinstance(metric, Counter)
        return metric

    def _gauge(self, name: str) -> Gauge:
        metric = self._metrics[name]
        assert isinstance(metric, Gauge)
        return metric

    # Convenience methods for core metrics
    def record_need(self, adaptation_type: str) -> None:
        self._counter(self.NEEDS_TOTAL).increment(labels={"adaptation_type": adaptation_type})

    def record_applied(self, strategy_id: str, adaptation_type: str) -> None:
        self._counter(self.APPLIED_TOTAL).increment(
            labels={"strategy_id": strategy_id, "adaptation_type": adaptation_type}
        )

    def record_noop(self, adaptation_type: str, reason: str) -> None:
        self._counter(self.NOOP_TOTAL).increment(labels={"adaptation_type": adaptation_type, "reason": reason})

    def record_sub_rule_failure(self, strategy_id: str, sub_rule: str) -> None:
        self._counter(self.SUB_RULE_FAILURES).increment(labels={"strategy_id": strategy_id, "sub_rule": sub_rule})

    def record_strategy_failure(self, strategy_id: str) -> None:
        self._counter(self.STRATEGY_FAILURES).increment(labels={"strategy_id": strategy_id})

    def time_strategy_execution(self, strategy_id: str) -> Timer:
        histogram = self._metrics[self.EXECUTION_DURATION]
        assert isinstance(histogram, Histogram)
        return Timer(histogram, labels={"strategy_id": strategy_id})

    def set_effectiveness(self, score: float, adaptation_type: Optional[str] = None) -> None:
        labels = {"adaptation_type": adaptation_type} if adaptation_type else None
        self._gauge(self.EFFECTIVENESS).set(score, labels=labels)

    def set_pending_triggers(self, count: int) -> None:
        self._gauge(self.PENDING_TRIGGERS).set(count)

    def set_registered_strategies(self, count: int) -> None:
        self._gauge(self.REGISTERED_STRATEGIES).set(count)


class MetricsExporter(ABC):
    """Abstract base class for metrics exporters"""

    @abstractmethod
    def export(self, metrics: Dict[str, Metric]) -> str:
        pass


class PrometheusExporter(MetricsExporter):
    """Renders metrics in the Prometheus text exposition format."""

    def export(self, metrics: Dict[str, Metric]) -> str:
        lines = []
        for name, metric in metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.get_type().value}")

            for snapshot in metric.series():
                if isinstance(metric, Histogram):
                    for bound, count in snapshot.value['buckets'].items():
                        bucket_labels = {**snapshot.labels, 'le': '+Inf' if bound == float('inf') else str(bound)}
                        lines.append(f"{name}_bucket{self._format_labels(bucket_labels)} {count}")
                    labels_str = self._format_labels(snapshot.labels)
                    lines.append(f"{name}_count{labels_str} {snapshot.value['count']}")
                    lines.append(f"{name}_sum{labels_str} {snapshot.value['sum']}")
                else:
                    lines.append(f"{name}{self._format_labels(snapshot.labels)} {snapshot.value}")

        return '\n'.join(lines)

    def _format_labels(self, labels: Dict[str, str]) -> str:
        if not labels:
            return ""
        label_pairs = [f'{k}="{v}"' for k, v in sorted(labels.items())]
        return "{" + ",".join(label_pairs) + "}"


_metrics_collector: Optional[AdaptationMetricsCollector] = None


def get_metrics_collector() -> AdaptationMetricsCollector:
    """Get the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = AdaptationMetricsCollector()
    return _metrics_collector


def reset_metrics_collector() -> AdaptationMetricsCollector:
    """Replace the process-wide collector with a fresh one."""
    global _metrics_collector
    _metrics_collector = AdaptationMetricsCollector()
    return _metrics_collector
