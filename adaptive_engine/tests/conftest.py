"""
Shared fixtures for the adaptive engine tests.
"""

from datetime import datetime, timedelta
from typing import List, Optional

import pytest

from adaptive_engine.src.adapters import (
    InMemoryCodeGenerationOptimizer, InMemoryCodeOptimizer, InMemoryResourceManager,
    StaticStateProvider
)
from adaptive_engine.src.control_reasoning import (
    AdaptationOrchestrator, KnobLocks, PerformanceAdaptationStrategy, ResourceAdaptationStrategy,
    StrategyRegistry, UserExperienceAdaptationStrategy
)
from adaptive_engine.src.domain.models import (
    AdaptationNeed, AdaptationPriority, AdaptationType, AppliedAdaptation, EnvironmentProfile,
    FeedbackSeverity, PerformanceMetrics, PerformanceSample, PerformanceSeverity,
    ResourceUtilization, SystemState, UserFeedback
)
from adaptive_engine.src.infrastructure.data_storage import (
    AppliedAdaptationRepository, InMemoryStorageBackend, PerformanceSampleRepository
)
from adaptive_engine.src.infrastructure.observability import (
    LogLevel, MemoryLogHandler, get_logger, reset_metrics_collector
)
from adaptive_engine.src.infrastructure.observability.logging import ROOT_LOGGER_NAME


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def make_state(
    cpu: float = 0.0,
    memory: float = 0.0,
    disk: float = 0.0,
    network: float = 0.0,
    feedback: Optional[List[UserFeedback]] = None,
    performance: Optional[PerformanceMetrics] = None,
    environment: Optional[EnvironmentProfile] = None,
) -> SystemState:
    return SystemState(
        performance_metrics=performance or PerformanceMetrics(),
        resource_utilization=ResourceUtilization(
            cpu_usage=cpu, memory_usage=memory, disk_usage=disk, network_usage=network
        ),
        environment_profile=environment or EnvironmentProfile(),
        recent_feedback=tuple(feedback or ()),
    )


def make_need(adaptation_type: AdaptationType, state: SystemState,
              priority: AdaptationPriority = AdaptationPriority.MEDIUM) -> AdaptationNeed:
    return AdaptationNeed(adaptation_type=adaptation_type, trigger="test", context=state, priority=priority)


def feedback(content: str, severity: FeedbackSeverity = FeedbackSeverity.MEDIUM) -> UserFeedback:
    return UserFeedback(content=content, severity=severity)


def adaptation_at(applied_at: datetime, adaptation_type: str = "Resource.CpuLimit",
                  factor: float = 1.4, strategy_id: str = "Resource.Dynamic") -> AppliedAdaptation:
    return AppliedAdaptation(
        adaptation_type=adaptation_type,
        description="test adaptation",
        estimated_improvement_factor=factor,
        strategy_id=strategy_id,
        applied_at=applied_at,
    )


def samples_around(applied_at: datetime, before: float, after: float, count: int = 3) -> List[PerformanceSample]:
    """``count`` samples scoring ``before`` up to ``applied_at`` and ``count`` scoring ``after`` past it."""
    result = [
        PerformanceSample(timestamp=applied_at - timedelta(minutes=i), overall_score=before)
        for i in range(count)
    ]
    result += [
        PerformanceSample(timestamp=applied_at + timedelta(minutes=i + 1), overall_score=after)
        for i in range(count)
    ]
    return result


@pytest.fixture(autouse=True)
def metrics():
    """Fresh process-wide metrics collector for every test."""
    return reset_metrics_collector()


@pytest.fixture
def log_records():
    """Capture records emitted through the root engine logger."""
    root = get_logger(ROOT_LOGGER_NAME)
    handler = MemoryLogHandler()
    previous, previous_level = list(root.handlers), root.level
    root.handlers.clear()
    root.add_handler(handler)
    root.set_level(LogLevel.DEBUG)
    yield handler
    root.handlers.clear()
    root.handlers.extend(previous)
    root.set_level(previous_level)


@pytest.fixture
def resource_manager():
    return InMemoryResourceManager()


@pytest.fixture
def code_optimizer():
    return InMemoryCodeOptimizer()


@pytest.fixture
def codegen_optimizer():
    return InMemoryCodeGenerationOptimizer()


@pytest.fixture
def knob_locks():
    return KnobLocks()


@pytest.fixture
def resource_strategy(resource_manager, knob_locks):
    return ResourceAdaptationStrategy(resource_manager, knob_locks=knob_locks)


@pytest.fixture
def performance_strategy(code_optimizer, knob_locks):
    return PerformanceAdaptationStrategy(code_optimizer, knob_locks=knob_locks)


@pytest.fixture
def ux_strategy(codegen_optimizer, knob_locks):
    return UserExperienceAdaptationStrategy(codegen_optimizer, knob_locks=knob_locks)


@pytest.fixture
def storage_backend():
    return InMemoryStorageBackend()


@pytest.fixture
def adaptation_history(storage_backend):
    return AppliedAdaptationRepository(storage_backend)


@pytest.fixture
def performance_history(storage_backend):
    return PerformanceSampleRepository(storage_backend)


@pytest.fixture
def registry():
    return StrategyRegistry()


@pytest.fixture
def orchestrator(registry, adaptation_history):
    return AdaptationOrchestrator(registry, history_store=adaptation_history)


@pytest.fixture
def state_provider():
    return StaticStateProvider()


@pytest.fixture
def critical_performance():
    return PerformanceMetrics(
        cpu_usage=0.95,
        memory_usage=0.5,
        response_time_ms=6000,
        network_latency_ms=150,
        overall_score=0.4,
        severity=PerformanceSeverity.CRITICAL,
        requires_optimization=True,
    )
