"""
Adaptation Strategy Contract

Every strategy supports exactly one adaptation type and answers four
questions about a need: can it handle it, how urgently (priority), how much it
expects to help (estimated improvement) and, when chosen, what it actually
changes (execute).

Concrete strategies describe their behaviour as an ordered list of
threshold-gated sub-rules. ``execute`` evaluates every sub-rule independently;
a sub-rule whose effector call fails is logged and skipped without affecting
its siblings. Effector calls are serialized per knob through ``KnobLocks`` so
concurrent evaluation passes never interleave changes to the same live knob.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from ..domain.models import (
    AdaptationNeed, AdaptationResult, AdaptationType, AppliedAdaptation, SystemState
)
from ..infrastructure.observability import get_logger, get_metrics_collector

SubRuleFunc = Callable[[AdaptationNeed], Awaitable[Optional[AppliedAdaptation]]]
SubRule = Tuple[str, SubRuleFunc]


class KnobLocks:
    """Lazily created asyncio locks, one per effector knob."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, knob: str) -> asyncio.Lock:
        with self._guard:
            lock = self._locks.get(knob)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[knob] = lock
            return lock

    def knobs(self) -> List[str]:
        with self._guard:
            return sorted(self._locks)


class AdaptationStrategy(ABC):
    """Base class for adaptation strategies."""

    def __init__(self, knob_locks: Optional[KnobLocks] = None):
        self._knob_locks = knob_locks or KnobLocks()
        self.logger = get_logger(f"adaptive_engine.strategies.{type(self).__name__}")
        self.metrics = get_metrics_collector()

    @property
    @abstractmethod
    def strategy_id(self) -> str:
        pass

    @property
    @abstractmethod
    def supported_adaptation_type(self) -> AdaptationType:
        pass

    @abstractmethod
    def priority(self, state: SystemState) -> int:
        """Ranking score in [0, 100] among strategies eligible for the same need."""
        pass

    @abstractmethod
    def can_handle(self, need: AdaptationNeed) -> bool:
        """Side-effect free applicability check."""
        pass

    @abstractmethod
    def description(self) -> str:
        pass

    @abstractmethod
    def estimated_improvement(self, need: AdaptationNeed) -> float:
        """Coarse forward estimate, reported before execution."""
        pass

    @abstractmethod
    def sub_rules(self) -> List[SubRule]:
        """Ordered ``(name, rule)`` pairs evaluated by ``execute``."""
        pass

    async def execute(self, need: AdaptationNeed) -> AdaptationResult:
        adaptations: List[AppliedAdaptation] = []

        with self.logger.strategy_context(self.strategy_id):
            for name, rule in self.sub_rules():
                try:
                    adaptation = await rule(need)
                except Exception as e:
                    self.logger.warning("Sub-rule failed, treating as not fired", extra={
                        "strategy_id": self.strategy_id,
                        "adaptation_type": need.adaptation_type.value,
                        "sub_rule": name,
                    }, exc_info=e)
                    self.metrics.record_sub_rule_failure(self.strategy_id, name)
                    continue

                if adaptation is not None:
                    adaptations.append(adaptation)
                    self.logger.info("Sub-rule fired", extra={
                        "sub_rule": name,
                        "adaptation": adaptation.adaptation_type,
                        "estimated_improvement_factor": adaptation.estimated_improvement_factor,
                    })

        message = f"{len(adaptations)} adaptation(s) applied" if adaptations else "no sub-rule fired"
        return AdaptationResult.from_adaptations(adaptations, strategy_id=self.strategy_id, message=message)

    async def _apply(self, knob: str, *calls: Callable[[], Awaitable[Any]]) -> None:
        """Run effector calls for one knob while holding that knob's lock."""
        async with self._knob_locks.lock_for(knob):
            for call in calls:
                await call()

    def _adaptation(
        self,
        adaptation_type: str,
        description: str,
        factor: float,
        parameters: Dict[str, Any],
    ) -> AppliedAdaptation:
        return AppliedAdaptation(
            adaptation_type=adaptation_type,
            description=description,
            estimated_improvement_factor=factor,
            strategy_id=self.strategy_id,
            parameters=parameters,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(strategy_id={self.strategy_id!r})"
