"""
Effectiveness Evaluator

Compares performance before and after each applied adaptation to measure
whether it delivered the improvement it promised.

For an adaptation applied at ``t``:
- the before window holds up to ``window_size`` samples at or before ``t``
- the after window holds up to ``window_size`` samples after ``t``
- actual improvement is ``(after_mean - before_mean) / before_mean``
- the effectiveness score is ``actual / expected_improvement_baseline``

Adaptations whose windows are empty, or whose before mean is zero, cannot be
evaluated and are left out of every aggregate.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from statistics import mean
from typing import Dict, List, Optional

from ..domain.interfaces import AdaptationHistoryStore, PerformanceHistoryProvider
from ..domain.models import AppliedAdaptation, EffectivenessRecord, EffectivenessSummary
from ..framework.configuration.models import EvaluatorConfiguration
from ..infrastructure.observability import get_logger, get_metrics_collector


class EffectivenessEvaluator:
    """Evaluates applied adaptations against recorded performance history."""

    def __init__(
        self,
        history_store: AdaptationHistoryStore,
        performance_history: PerformanceHistoryProvider,
        config: Optional[EvaluatorConfiguration] = None,
    ):
        self._history_store = history_store
        self._performance_history = performance_history
        self._config = config or EvaluatorConfiguration()
        self.logger = get_logger("adaptive_engine.evaluation.effectiveness")
        self.metrics = get_metrics_collector()

    @property
    def config(self) -> EvaluatorConfiguration:
        return self._config

    async def evaluate_adaptation(self, adaptation: AppliedAdaptation) -> Optional[EffectivenessRecord]:
        """Effectiveness of one adaptation, or ``None`` when the data is insufficient."""
        window = self._config.window_size
        before = await self._performance_history.get_samples_before(adaptation.applied_at, window)
        after = await self._performance_history.get_samples_after(adaptation.applied_at, window)

        if not before or not after:
            self.logger.debug("Insufficient samples to evaluate adaptation", extra={
                "adaptation_id": adaptation.adaptation_id,
                "before_samples": len(before),
                "after_samples": len(after),
            })
            return None

        before_score = mean(s.overall_score for s in before)
        after_score = mean(s.overall_score for s in after)
        if before_score == 0:
            self.logger.debug("Zero baseline score, adaptation not evaluable", extra={
                "adaptation_id": adaptation.adaptation_id,
            })
            return None

        actual = (after_score - before_score) / before_score
        return EffectivenessRecord(
            adaptation_id=adaptation.adaptation_id,
            adaptation_type=adaptation.adaptation_type,
            strategy_id=adaptation.strategy_id,
            applied_at=adaptation.applied_at,
            before_score=before_score,
            after_score=after_score,
            expected_improvement=adaptation.estimated_improvement_factor - 1.0,
            actual_improvement=actual,
            effectiveness_score=actual / self._config.expected_improvement_baseline,
        )

    async def evaluate(self, start: datetime, end: datetime) -> EffectivenessSummary:
        adaptations = await self._history_store.get_adaptations_in_range(start, end)

        records: List[EffectivenessRecord] = []
        for adaptation in adaptations:
            record = await self.evaluate_adaptation(adaptation)
            if record is not None:
                records.append(record)

        by_type: Dict[str, List[float]] = defaultdict(list)
        for record in records:
            by_type[record.adaptation_type].append(record.effectiveness_score)

        summary = EffectivenessSummary(
            overall_effectiveness=mean(r.effectiveness_score for r in records) if records else 0.0,
            successful_adaptations=sum(1 for r in records if r.effectiveness_score > 0),
            total_adaptations=len(adaptations),
            evaluated_adaptations=len(records),
            average_improvement=mean(r.actual_improvement for r in records) if records else 0.0,
            effectiveness_by_type={k: mean(v) for k, v in by_type.items()},
            records=tuple(records),
        )

        self.metrics.set_effectiveness(summary.overall_effectiveness)
        for adaptation_type, score in summary.effectiveness_by_type.items():
            self.metrics.set_effectiveness(score, adaptation_type)

        self.logger.info("Adaptation effectiveness evaluated", extra={
            "start": start.isoformat(),
            "end": end.isoformat(),
            "total_adaptations": summary.total_adaptations,
            "evaluated_adaptations": summary.evaluated_adaptations,
            "overall_effectiveness": summary.overall_effectiveness,
        })
        return summary

    async def evaluate_recent(self, hours: Optional[int] = None,
                              now: Optional[datetime] = None) -> EffectivenessSummary:
        end = now or datetime.utcnow()
        lookback = hours if hours is not None else self._config.lookback_hours
        return await self.evaluate(end - timedelta(hours=lookback), end)
