"""
In-Memory Effectors

Effector implementations that keep knob values in memory. They back local
runs and tests: every change is recorded, and individual knobs can be told
to fail so error isolation can be exercised deterministically.
"""

from typing import Any, Dict, List, Set, Tuple

from ..domain.interfaces import CodeGenerationOptimizer, CodeOptimizer, ResourceManager
from ..domain.models import CachingLevel, OptimizationLevel, VerbosityLevel
from ..infrastructure.exceptions import EffectorError
from ..infrastructure.observability import get_logger


class InMemoryEffector:
    """Records knob values and the sequence of calls that set them."""

    def __init__(self, name: str):
        self.name = name
        self.knobs: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Any]] = []
        self._failing: Set[str] = set()
        self.logger = get_logger(f"adaptive_engine.adapters.{name}")

    def fail_knob(self, knob: str) -> None:
        self._failing.add(knob)

    def restore_knob(self, knob: str) -> None:
        self._failing.discard(knob)

    def called(self, knob: str) -> bool:
        return any(name == knob for name, _ in self.calls)

    async def _set(self, knob: str, value: Any = True) -> None:
        if knob in self._failing:
            raise EffectorError(f"{self.name} could not change {knob}", knob=knob, effector=self.name)
        self.calls.append((knob, value))
        self.knobs[knob] = value
        self.logger.debug("Knob changed", extra={"knob": knob, "value": str(value)})


class InMemoryResourceManager(InMemoryEffector, ResourceManager):

    def __init__(self):
        super().__init__("resource_manager")

    async def set_cpu_intensive_operations_limit(self, ratio: float) -> None:
        await self._set("cpu_intensive_operations_limit", ratio)

    async def enable_aggressive_garbage_collection(self) -> None:
        await self._set("aggressive_garbage_collection")

    async def set_memory_cache_limit(self, ratio: float) -> None:
        await self._set("memory_cache_limit", ratio)

    async def cleanup_temporary_files(self) -> None:
        await self._set("temporary_files_cleaned")

    async def set_disk_cache_limit(self, ratio: float) -> None:
        await self._set("disk_cache_limit", ratio)

    async def enable_network_request_batching(self) -> None:
        await self._set("network_request_batching")

    async def set_network_timeout_multiplier(self, factor: float) -> None:
        await self._set("network_timeout_multiplier", factor)


class InMemoryCodeOptimizer(InMemoryEffector, CodeOptimizer):

    def __init__(self):
        super().__init__("code_optimizer")

    async def set_optimization_level(self, level: OptimizationLevel) -> None:
        await self._set("optimization_level", level)

    async def set_caching_level(self, level: CachingLevel) -> None:
        await self._set("caching_level", level)

    async def set_concurrency_level(self, level: int) -> None:
        await self._set("concurrency_level", level)

    async def set_iteration_profile(self, profile: str) -> None:
        await self._set("iteration_profile", profile)


class InMemoryCodeGenerationOptimizer(InMemoryEffector, CodeGenerationOptimizer):

    def __init__(self):
        super().__init__("code_generation_optimizer")

    async def enable_enhanced_validation(self) -> None:
        await self._set("enhanced_validation")

    async def increase_test_coverage(self) -> None:
        await self._set("increased_test_coverage")

    async def set_verbosity_level(self, level: VerbosityLevel) -> None:
        await self._set("verbosity_level", level)

    async def enable_speed_optimization(self) -> None:
        await self._set("speed_optimization")

    async def enable_enhanced_error_messages(self) -> None:
        await self._set("enhanced_error_messages")

    async def enable_enhanced_documentation(self) -> None:
        await self._set("enhanced_documentation")
