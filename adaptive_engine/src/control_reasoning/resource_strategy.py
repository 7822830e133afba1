"""
Resource Adaptation Strategy

Reacts to constrained CPU, memory, disk and network resources by tightening
the corresponding limits on the resource manager.
"""

from dataclasses import replace
from typing import List, Optional

from .adaptation_strategy import AdaptationStrategy, KnobLocks, SubRule
from ..domain.interfaces import ResourceManager
from ..domain.models import (
    AdaptationNeed, AdaptationType, AppliedAdaptation, ResourceConstraintType,
    ResourceThresholds, ResourceUtilization, SystemState
)


_PRIORITY_BY_CONSTRAINT = {
    ResourceConstraintType.CPU: 90,
    ResourceConstraintType.MEMORY: 80,
    ResourceConstraintType.NETWORK: 70,
    ResourceConstraintType.DISK: 60,
    ResourceConstraintType.NONE: 30,
}

_IMPROVEMENT_BY_CONSTRAINT = {
    ResourceConstraintType.CPU: 1.4,
    ResourceConstraintType.MEMORY: 1.3,
    ResourceConstraintType.NETWORK: 1.3,
    ResourceConstraintType.DISK: 1.2,
    ResourceConstraintType.NONE: 1.0,
}

CPU_OPERATIONS_LIMIT = 0.5
MEMORY_CACHE_LIMIT = 0.3
DISK_CACHE_LIMIT = 0.2
NETWORK_TIMEOUT_MULTIPLIER = 2.0


class ResourceAdaptationStrategy(AdaptationStrategy):
    """Limits resource hungry work when utilization crosses its threshold."""

    STRATEGY_ID = "Resource.Dynamic"

    def __init__(
        self,
        resource_manager: ResourceManager,
        thresholds: Optional[ResourceThresholds] = None,
        knob_locks: Optional[KnobLocks] = None,
    ):
        super().__init__(knob_locks)
        self._resource_manager = resource_manager
        self._thresholds = thresholds or ResourceThresholds()

    @property
    def strategy_id(self) -> str:
        return self.STRATEGY_ID

    @property
    def supported_adaptation_type(self) -> AdaptationType:
        return AdaptationType.RESOURCE_OPTIMIZATION

    @property
    def thresholds(self) -> ResourceThresholds:
        return self._thresholds

    def description(self) -> str:
        return "Dynamic resource allocation and optimization based on current utilization"

    def can_handle(self, need: AdaptationNeed) -> bool:
        return (need.adaptation_type == self.supported_adaptation_type
                and self.utilization(need.context).is_constrained)

    def priority(self, state: SystemState) -> int:
        return _PRIORITY_BY_CONSTRAINT[self.utilization(state).constraint_type]

    def estimated_improvement(self, need: AdaptationNeed) -> float:
        return _IMPROVEMENT_BY_CONSTRAINT[self.utilization(need.context).constraint_type]

    def utilization(self, state: SystemState) -> ResourceUtilization:
        """The state's resource usage judged against this strategy's thresholds."""
        return replace(state.resource_utilization, thresholds=self._thresholds)

    def sub_rules(self) -> List[SubRule]:
        return [
            ("cpu_limit", self._limit_cpu),
            ("memory", self._optimize_memory),
            ("disk", self._clean_disk),
            ("network", self._optimize_network),
        ]

    async def _limit_cpu(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        usage = need.context.resource_utilization.cpu_usage
        if usage <= self._thresholds.cpu:
            return None

        await self._apply(
            "resource.cpu_limit",
            lambda: self._resource_manager.set_cpu_intensive_operations_limit(CPU_OPERATIONS_LIMIT),
        )
        return self._adaptation(
            "Resource.CpuLimit",
            "Limited CPU-intensive operations",
            1.4,
            {"cpu_usage": usage, "limit": CPU_OPERATIONS_LIMIT},
        )

    async def _optimize_memory(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        usage = need.context.resource_utilization.memory_usage
        if usage <= self._thresholds.memory:
            return None

        await self._apply(
            "resource.memory",
            self._resource_manager.enable_aggressive_garbage_collection,
            lambda: self._resource_manager.set_memory_cache_limit(MEMORY_CACHE_LIMIT),
        )
        return self._adaptation(
            "Resource.MemoryOptimization",
            "Enabled aggressive garbage collection and reduced memory cache",
            1.3,
            {"memory_usage": usage, "cache_limit": MEMORY_CACHE_LIMIT},
        )

    async def _clean_disk(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        usage = need.context.resource_utilization.disk_usage
        if usage <= self._thresholds.disk:
            return None

        await self._apply(
            "resource.disk",
            self._resource_manager.cleanup_temporary_files,
            lambda: self._resource_manager.set_disk_cache_limit(DISK_CACHE_LIMIT),
        )
        return self._adaptation(
            "Resource.DiskCleanup",
            "Cleaned temporary files and reduced disk cache",
            1.2,
            {"disk_usage": usage, "cache_limit": DISK_CACHE_LIMIT},
        )

    async def _optimize_network(self, need: AdaptationNeed) -> Optional[AppliedAdaptation]:
        usage = need.context.resource_utilization.network_usage
        if usage <= self._thresholds.network:
            return None

        await self._apply(
            "resource.network",
            self._resource_manager.enable_network_request_batching,
            lambda: self._resource_manager.set_network_timeout_multiplier(NETWORK_TIMEOUT_MULTIPLIER),
        )
        return self._adaptation(
            "Resource.NetworkOptimization",
            "Enabled request batching and relaxed network timeouts",
            1.3,
            {"network_usage": usage, "timeout_multiplier": NETWORK_TIMEOUT_MULTIPLIER},
        )
