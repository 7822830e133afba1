"""
Performance Adaptation Strategy

Tunes the code optimizer (iteration profile, optimization level, caching and
concurrency) in response to performance bottlenecks.
"""

from typing import List, Optional

from .adaptation_strategy import AdaptationStrategy, KnobLocks, SubRule
from ..domain.interfaces import CodeOptimizer
from ..domain.models import (
    AdaptationNeed, AdaptationType, AppliedAdaptation, CachingLevel, OptimizationLevel,
    PerformanceSeverity, SystemState
)


_PRIORITY_BY_SEVERITY = {
    PerformanceSeverity.CRITICAL: 100,
    PerformanceSeverity.HIGH: 80,
    PerformanceSeverity.MEDIUM: 60,
}

_IMPROVEMENT_BY_SEVERITY = {
    PerformanceSeverity.CRITICAL: 2.0,
    PerformanceSeverity.HIGH: 1.5,
    PerformanceSeverity.MEDIUM: 1.2,
}

MAX_CONCURRENCY = 16


class PerformanceAdaptationStrategy(AdaptationStrategy):
    """Adjusts code generation and runtime tuning to relieve bottlenecks."""

    STRATEGY_ID = "Performance.Dynamic"

    def __init__(self, code_optimizer: CodeOptimizer, knob_locks: Optional[KnobLocks] = None):
        super().__init__(knob_locks)
        self._code_optimizer = code_optimizer

    @property
    def strategy_id(self) -> str:
        return self.STRATEGY_ID

    @property
    def supported_adaptation_type(self) -> AdaptationType:
        return AdaptationType.PERFORMANCE_OPTIMIZATION

    def description(self) -> str:
        return "Dynamic performance optimization based on current metrics and bottlenecks"

    def can_handle(self, need: AdaptationNeed) -> bool:
        return (need.adaptation_type == self.supported_adaptation_type
                and need.context.performance_metrics.has_bottlenecks)

    def priority(self, state: SystemState) -> int:
        return _PRIORITY_BY_SEVERITY.get(state.performance_metrics.severity, 40)

    def estimated_improvement(self, need: AdaptationNeed) -> float:
        return _IMPROVEMENT_BY_SEVERITY.get(need.context.performance_metrics.severity, 1.1)

    def sub_rules(self) -> List[SubRule]:
        return [
            ("iteration_strategy", self._adjust_iteration_strategy),
            ("optimization_level", self._adjust_optimization_level),
            ("caching", self._adjust_caching),
            ("concurrency", self._adjust_concurrency),
        ]

    async def _adjust_iteration_strategy(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        metrics = need.context.performance_metrics

        # first match wins
        if metrics.cpu_usage > 0.8:
            profile, adaptation_type, factor = "cpu", "IterationStrategy.CpuOptimization", 1.3
        elif metrics.memory_usage > 0.85:
            profile, adaptation_type, factor = "memory", "IterationStrategy.MemoryOptimization", 1.2
        elif metrics.response_time_ms > 5000:
            profile, adaptation_type, factor = "speed", "IterationStrategy.SpeedOptimization", 1.4
        else:
            return None

        await self._apply(
            "codegen.iteration_profile",
            lambda: self._code_optimizer.set_iteration_profile(profile),
        )
        return self._adaptation(
            adaptation_type,
            f"Switched iteration strategy to the {profile} profile",
            factor,
            {"profile": profile},
        )

    async def _adjust_optimization_level(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        state = need.context
        score = state.performance_metrics.overall_score

        if score < 0.6:
            level, adaptation_type, factor = OptimizationLevel.AGGRESSIVE, "OptimizationLevel.Increase", 1.5
        elif score > 0.9 and state.resource_utilization.is_constrained:
            level, adaptation_type, factor = OptimizationLevel.BALANCED, "OptimizationLevel.Decrease", 0.8
        else:
            return None

        await self._apply(
            "codegen.optimization_level",
            lambda: self._code_optimizer.set_optimization_level(level),
        )
        return self._adaptation(
            adaptation_type,
            f"Set optimization level to {level.value}",
            factor,
            {"overall_score": score, "level": level.value},
        )

    async def _adjust_caching(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        metrics = need.context.performance_metrics

        if metrics.network_latency_ms > 100:
            level, adaptation_type, factor = CachingLevel.AGGRESSIVE, "CachingStrategy.Aggressive", 1.6
        elif metrics.network_latency_ms < 10 and metrics.memory_usage > 0.8:
            level, adaptation_type, factor = CachingLevel.DISABLED, "CachingStrategy.Disabled", 0.7
        else:
            return None

        await self._apply(
            "codegen.caching",
            lambda: self._code_optimizer.set_caching_level(level),
        )
        return self._adaptation(
            adaptation_type,
            f"Set caching level to {level.value}",
            factor,
            {"network_latency_ms": metrics.network_latency_ms, "level": level.value},
        )

    async def _adjust_concurrency(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        cpu = need.context.performance_metrics.cpu_usage
        cores = need.context.environment_profile.cpu_cores

        if cpu < 0.5 and cores > 4:
            level, adaptation_type, factor = min(cores * 2, MAX_CONCURRENCY), "ConcurrencyLevel.Increase", 1.3
        elif cpu > 0.9:
            level, adaptation_type, factor = max(1, cores // 2), "ConcurrencyLevel.Decrease", 1.2
        else:
            return None

        await self._apply(
            "codegen.concurrency",
            lambda: self._code_optimizer.set_concurrency_level(level),
        )
        return self._adaptation(
            adaptation_type,
            f"Set concurrency level to {level}",
            factor,
            {"cpu_usage": cpu, "cpu_cores": cores, "concurrency": level},
        )
