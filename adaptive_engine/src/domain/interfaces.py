"""
Core Domain Interfaces

Contracts for the external collaborators the engine talks to: effectors that
change live knobs, the state provider that produces snapshots, and the stores
holding adaptation and performance history.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from .models import (
    AppliedAdaptation, CachingLevel, OptimizationLevel, PerformanceSample,
    SystemState, VerbosityLevel
)


class ResourceManager(ABC):
    """Effector controlling resource consumption knobs."""

    @abstractmethod
    async def set_cpu_intensive_operations_limit(self, ratio: float) -> None:
        """Cap the share of CPU-intensive work (0.0 - 1.0)."""
        pass

    @abstractmethod
    async def enable_aggressive_garbage_collection(self) -> None:
        pass

    @abstractmethod
    async def set_memory_cache_limit(self, ratio: float) -> None:
        pass

    @abstractmethod
    async def cleanup_temporary_files(self) -> None:
        pass

    @abstractmethod
    async def set_disk_cache_limit(self, ratio: float) -> None:
        pass

    @abstractmethod
    async def enable_network_request_batching(self) -> None:
        pass

    @abstractmethod
    async def set_network_timeout_multiplier(self, factor: float) -> None:
        pass


class CodeOptimizer(ABC):
    """Effector controlling runtime optimization knobs."""

    @abstractmethod
    async def set_optimization_level(self, level: OptimizationLevel) -> None:
        pass

    @abstractmethod
    async def set_caching_level(self, level: CachingLevel) -> None:
        pass

    @abstractmethod
    async def set_concurrency_level(self, level: int) -> None:
        pass

    @abstractmethod
    async def set_iteration_profile(self, profile: str) -> None:
        """Select the iteration strategy profile ("cpu", "memory" or "speed")."""
        pass


class CodeGenerationOptimizer(ABC):
    """Effector controlling code generation output knobs."""

    @abstractmethod
    async def enable_enhanced_validation(self) -> None:
        pass

    @abstractmethod
    async def increase_test_coverage(self) -> None:
        pass

    @abstractmethod
    async def set_verbosity_level(self, level: VerbosityLevel) -> None:
        pass

    @abstractmethod
    async def enable_speed_optimization(self) -> None:
        pass

    @abstractmethod
    async def enable_enhanced_error_messages(self) -> None:
        pass

    @abstractmethod
    async def enable_enhanced_documentation(self) -> None:
        pass


class SystemStateProvider(ABC):
    """Produces SystemState snapshots from the external monitors."""

    @abstractmethod
    async def collect_state(self) -> SystemState:
        pass


class AdaptationHistoryStore(ABC):
    """Append-only log of applied adaptations."""

    @abstractmethod
    async def append(self, adaptation: AppliedAdaptation) -> None:
        pass

    @abstractmethod
    async def get_adaptations_in_range(self, start: datetime, end: datetime) -> List[AppliedAdaptation]:
        """Adaptations applied within [start, end], oldest first."""
        pass

    @abstractmethod
    async def get_adaptations_since(self, since: datetime) -> List[AppliedAdaptation]:
        """Adaptations applied strictly after ``since``, oldest first."""
        pass

    @abstractmethod
    async def get_recent_adaptations(self, count: int = 10) -> List[AppliedAdaptation]:
        """The most recent adaptations, newest first."""
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class PerformanceHistoryProvider(ABC):
    """Read access to historical performance samples."""

    @abstractmethod
    async def get_samples_before(self, timestamp: datetime, limit: int) -> List[PerformanceSample]:
        """
        Samples taken at or before ``timestamp``.

        Returns the ``limit`` samples closest to ``timestamp``, oldest first.
        """
        pass

    @abstractmethod
    async def get_samples_after(self, timestamp: datetime, limit: int) -> List[PerformanceSample]:
        """The first ``limit`` samples strictly after ``timestamp``, oldest first."""
        pass

    @abstractmethod
    async def get_samples_in_range(self, start: datetime, end: datetime) -> List[PerformanceSample]:
        pass
