"""
Adaptation Engine

Long-running service that periodically collects the system state, derives
adaptation needs from it and hands them to the orchestrator. Manual triggers
are queued and processed at the end of each cycle, or immediately when their
priority is high enough.
"""

import asyncio
from collections import deque
from dataclasses import replace
from typing import Deque, List, Optional

from .adaptation_strategy import AdaptationStrategy
from .orchestrator import AdaptationOrchestrator
from .strategy_registry import StrategyRegistry
from ..domain.interfaces import SystemStateProvider
from ..domain.models import (
    AdaptationNeed, AdaptationPriority, AdaptationResult, AdaptationStatusReport,
    AdaptationTrigger, AdaptationType, AppliedAdaptation, EngineStatus, FeedbackSeverity,
    ResourceThresholds, SystemState
)
from ..framework.configuration.models import EngineConfiguration
from ..infrastructure.exceptions import EngineStateError
from ..infrastructure.observability import get_logger, get_metrics_collector


class AdaptationEngine:
    """
    Periodic monitor-analyze-adapt loop around the orchestrator.

    Only one cycle runs at a time; a cycle requested while another is in
    progress is skipped rather than queued.
    """

    def __init__(
        self,
        state_provider: SystemStateProvider,
        orchestrator: AdaptationOrchestrator,
        registry: Optional[StrategyRegistry] = None,
        evaluator=None,
        config: Optional[EngineConfiguration] = None,
        lookback_hours: int = 24,
        thresholds: Optional[ResourceThresholds] = None,
    ):
        self.logger = get_logger("adaptive_engine.engine")
        self.metrics = get_metrics_collector()

        self._state_provider = state_provider
        self._orchestrator = orchestrator
        self._registry = registry or orchestrator.registry
        self._evaluator = evaluator
        self._config = config or EngineConfiguration()
        self._lookback_hours = lookback_hours
        self._thresholds = thresholds

        self._status = EngineStatus.STOPPED
        self._cycle_lock = asyncio.Lock()
        self._pending: Deque[AdaptationNeed] = deque()
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._last_adaptation_time = None
        self._total_applied = 0

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def pending_triggers(self) -> int:
        return len(self._pending)

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    def register_strategy(self, strategy: AdaptationStrategy) -> None:
        self._registry.register(strategy)

    def analyze_adaptation_needs(self, state: SystemState) -> List[AdaptationNeed]:
        """Derive typed needs from a state snapshot, highest priority first."""
        needs: List[AdaptationNeed] = []

        performance = state.performance_metrics
        if performance.requires_optimization:
            needs.append(AdaptationNeed(
                adaptation_type=AdaptationType.PERFORMANCE_OPTIMIZATION,
                trigger=AdaptationTrigger.PERFORMANCE_DEGRADATION.value,
                context=state,
                priority=AdaptationPriority(int(performance.severity)),
                description=f"Performance degradation detected: {performance.severity.name}",
            ))

        resources = state.resource_utilization
        if self._thresholds is not None:
            resources = replace(resources, thresholds=self._thresholds)
        if resources.is_constrained:
            needs.append(AdaptationNeed(
                adaptation_type=AdaptationType.RESOURCE_OPTIMIZATION,
                trigger=AdaptationTrigger.RESOURCE_CONSTRAINT.value,
                context=state,
                priority=AdaptationPriority.HIGH,
                description=f"Resource constraint detected: {resources.constraint_type.value}",
            ))

        if any(item.severity >= FeedbackSeverity.HIGH for item in state.recent_feedback):
            needs.append(AdaptationNeed(
                adaptation_type=AdaptationType.USER_EXPERIENCE_OPTIMIZATION,
                trigger=AdaptationTrigger.USER_FEEDBACK.value,
                context=state,
                priority=AdaptationPriority.MEDIUM,
                description="Negative user feedback received",
            ))

        if state.environment_profile.has_changed:
            needs.append(AdaptationNeed(
                adaptation_type=AdaptationType.ENVIRONMENT_OPTIMIZATION,
                trigger=AdaptationTrigger.ENVIRONMENT_CHANGE.value,
                context=state,
                priority=AdaptationPriority.MEDIUM,
                description=f"Environment changed: {state.environment_profile.platform_type}",
            ))

        needs.sort(key=lambda n: n.priority, reverse=True)
        return needs

    async def run_cycle(self) -> List[AdaptationResult]:
        """
        Run one collect-analyze-adapt cycle followed by the pending triggers.

        Returns the results produced in this cycle. Failures are logged and
        end the cycle early; they are never raised to the caller.
        """
        if self._cycle_lock.locked():
            self.logger.debug("Adaptation cycle already running, skipping")
            return []

        results: List[AdaptationResult] = []
        async with self._cycle_lock:
            with self.logger.correlation_context():
                try:
                    state = await self._state_provider.collect_state()
                    needs = self.analyze_adaptation_needs(state)
                    if needs:
                        self.logger.info("Adaptation needs identified", extra={
                            "needs": [n.adaptation_type.value for n in needs],
                        })
                    results.extend(await self._handle(needs))
                    results.extend(await self._drain_pending())
                except Exception as e:
                    self.logger.error("Adaptation cycle failed", extra={
                        "results_so_far": len(results),
                    }, exc_info=e)
        return results

    async def trigger_adaptation(
        self,
        trigger: AdaptationTrigger,
        priority: AdaptationPriority = AdaptationPriority.MEDIUM,
        context: Optional[SystemState] = None,
        description: str = "",
    ) -> Optional[AdaptationResult]:
        """
        Request an adaptation outside the periodic analysis.

        Triggers at or above the configured immediate priority are handled
        right away and their result returned; others wait for the next cycle
        and ``None`` is returned.
        """
        if context is None:
            context = await self._state_provider.collect_state()

        need = AdaptationNeed(
            adaptation_type=trigger.adaptation_type,
            trigger=trigger.value,
            context=context,
            priority=priority,
            description=description or f"Manual trigger: {trigger.value}",
        )

        if priority >= self._config.immediate_priority_level:
            self.logger.info("Processing trigger immediately", extra={
                "trigger": trigger.value,
                "priority": priority.name,
            })
            results = await self._handle([need])
            return results[0]

        if len(self._pending) >= self._config.max_pending_triggers:
            dropped = self._pending.popleft()
            self.logger.warning("Pending trigger queue full, dropping oldest trigger", extra={
                "dropped_need_id": dropped.need_id,
                "dropped_trigger": dropped.trigger,
                "max_pending_triggers": self._config.max_pending_triggers,
            })
        self._pending.append(need)
        self.metrics.set_pending_triggers(len(self._pending))
        self.logger.debug("Trigger queued", extra={"trigger": trigger.value, "pending": len(self._pending)})
        return None

    async def start(self) -> None:
        if self._status in (EngineStatus.RUNNING, EngineStatus.STARTING):
            raise EngineStateError("Adaptation engine is already running", current_status=self._status.value)

        self._status = EngineStatus.STARTING
        self.logger.info("Starting adaptation engine", extra={
            "evaluation_interval_seconds": self._config.evaluation_interval_seconds,
            "registered_strategies": len(self._registry),
        })

        try:
            # the state provider must be reachable before the loop starts
            await self._state_provider.collect_state()
            self._stop_event = asyncio.Event()
            self._loop_task = asyncio.create_task(self._run_loop())
        except Exception as e:
            self._status = EngineStatus.ERROR
            self.logger.error("Failed to start adaptation engine", exc_info=e)
            raise EngineStateError(
                "Failed to start adaptation engine",
                current_status=self._status.value,
                cause=e,
            ) from e

        self._status = EngineStatus.RUNNING
        self.logger.info("Adaptation engine started")

    async def stop(self) -> None:
        if self._status != EngineStatus.RUNNING:
            self.logger.warning("Adaptation engine is not running", extra={"status": self._status.value})
            return

        self._status = EngineStatus.STOPPING
        self.logger.info("Stopping adaptation engine")

        if self._stop_event is not None:
            self._stop_event.set()
        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None

        async with self._cycle_lock:
            drained = await self._drain_pending()

        self._status = EngineStatus.STOPPED
        self.logger.info("Adaptation engine stopped", extra={"drained_triggers": len(drained)})

    async def _run_loop(self) -> None:
        assert self._stop_event is not None
        interval = self._config.evaluation_interval_seconds

        while not self._stop_event.is_set():
            await self.run_cycle()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def _handle(self, needs: List[AdaptationNeed]) -> List[AdaptationResult]:
        results = await self._orchestrator.handle_needs(needs)
        for result in results:
            if result.is_successful:
                self._total_applied += len(result.applied_adaptations)
                self._last_adaptation_time = result.timestamp
        return results

    async def _drain_pending(self) -> List[AdaptationResult]:
        if not self._pending:
            return []
        needs = list(self._pending)
        self._pending.clear()
        self.metrics.set_pending_triggers(0)
        self.logger.info("Processing pending triggers", extra={"count": len(needs)})
        return await self._handle(needs)

    async def get_recent_adaptations(self, count: int = 10) -> List[AppliedAdaptation]:
        store = self._orchestrator.history_store
        if store is None:
            return []
        return await store.get_recent_adaptations(count)

    async def get_status(self) -> AdaptationStatusReport:
        recent = await self.get_recent_adaptations(5)

        store = self._orchestrator.history_store
        total = await store.count() if store is not None else self._total_applied
        last_time = recent[0].applied_at if recent else self._last_adaptation_time

        overall = None
        if self._evaluator is not None:
            try:
                summary = await self._evaluator.evaluate_recent(self._lookback_hours)
                overall = summary.overall_effectiveness
            except Exception as e:
                self.logger.warning("Effectiveness evaluation unavailable", exc_info=e)

        return AdaptationStatusReport(
            engine_status=self._status,
            registered_strategies=len(self._registry),
            pending_triggers=len(self._pending),
            total_adaptations_applied=total,
            recent_adaptations=tuple(recent),
            last_adaptation_time=last_time,
            overall_effectiveness=overall,
        )
