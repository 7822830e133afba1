"""
Adaptation Dashboard

Read-only view over the engine, its adaptation history and performance
history, plus an async stream of newly applied adaptations.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from .effectiveness_evaluator import EffectivenessEvaluator
from .performance_trends import aggregate_performance_trends
from ..domain.interfaces import AdaptationHistoryStore, PerformanceHistoryProvider
from ..domain.models import AppliedAdaptation, DashboardEvent, PerformanceTrendPoint
from ..framework.configuration.models import EvaluatorConfiguration
from ..infrastructure.observability import get_logger

ADAPTATION_APPLIED = "adaptation_applied"


class AdaptationDashboard:
    """Aggregates engine status, effectiveness and trends for display."""

    def __init__(
        self,
        engine,
        history_store: AdaptationHistoryStore,
        performance_history: PerformanceHistoryProvider,
        evaluator: Optional[EffectivenessEvaluator] = None,
        config: Optional[EvaluatorConfiguration] = None,
    ):
        self._engine = engine
        self._history_store = history_store
        self._performance_history = performance_history
        self._config = config or (evaluator.config if evaluator is not None else EvaluatorConfiguration())
        self._evaluator = evaluator or EffectivenessEvaluator(history_store, performance_history, self._config)
        self.logger = get_logger("adaptive_engine.evaluation.dashboard")

    async def get_dashboard_data(self, recent_count: int = 10) -> Dict[str, Any]:
        now = datetime.utcnow()
        window = timedelta(hours=self._config.lookback_hours)

        status = await self._engine.get_status()
        recent = await self._history_store.get_recent_adaptations(recent_count)
        effectiveness = await self._evaluator.evaluate(now - window, now)
        trends = await self.get_performance_trends(window, now=now)

        return {
            "generated_at": now,
            "status": status,
            "recent_adaptations": recent,
            "effectiveness": effectiveness,
            "performance_trends": trends,
        }

    async def get_performance_trends(
        self,
        window: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> List[PerformanceTrendPoint]:
        end = now or datetime.utcnow()
        start = end - (window or timedelta(hours=self._config.lookback_hours))
        samples = await self._performance_history.get_samples_in_range(start, end)
        return aggregate_performance_trends(
            samples, start, end, timedelta(minutes=self._config.trend_interval_minutes)
        )

    async def stream_adaptation_events(
        self,
        poll_interval: float = 1.0,
        stop_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[DashboardEvent]:
        """
        Yield an ``adaptation_applied`` event for every adaptation recorded
        after the stream started, oldest first, until ``stop_event`` is set.
        """
        stop_event = stop_event or asyncio.Event()

        latest = await self._history_store.get_recent_adaptations(1)
        last_seen: Optional[datetime] = latest[0].applied_at if latest else None
        seen_at_last: Set[str] = {latest[0].adaptation_id} if latest else set()

        while not stop_event.is_set():
            for adaptation in await self._new_adaptations(last_seen, seen_at_last):
                if adaptation.applied_at != last_seen:
                    last_seen = adaptation.applied_at
                    seen_at_last = set()
                seen_at_last.add(adaptation.adaptation_id)
                yield self._event_for(adaptation)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=poll_interval)
            except asyncio.TimeoutError:
                pass

        self.logger.debug("Adaptation event stream stopped")

    async def _new_adaptations(self, last_seen: Optional[datetime],
                               seen_at_last: Set[str]) -> List[AppliedAdaptation]:
        if last_seen is None:
            return await self._history_store.get_adaptations_in_range(datetime.min, datetime.max)
        same_time = await self._history_store.get_adaptations_in_range(last_seen, last_seen)
        unseen = [a for a in same_time if a.adaptation_id not in seen_at_last]
        return unseen + await self._history_store.get_adaptations_since(last_seen)

    def _event_for(self, adaptation: AppliedAdaptation) -> DashboardEvent:
        return DashboardEvent(
            event_type=ADAPTATION_APPLIED,
            timestamp=datetime.utcnow(),
            adaptation=adaptation,
            details={
                "strategy_id": adaptation.strategy_id,
                "adaptation_type": adaptation.adaptation_type,
                "estimated_improvement_factor": adaptation.estimated_improvement_factor,
            },
        )
