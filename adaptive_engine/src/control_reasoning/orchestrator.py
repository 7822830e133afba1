"""
Adaptation Orchestrator

Routes an adaptation need to the registered strategies for its type, ranks
the eligible ones by priority and executes them according to the configured
selection mode. Expected outcomes such as "no strategy applies" come back as
unsuccessful results; the orchestrator never raises for them.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .adaptation_strategy import AdaptationStrategy
from .strategy_registry import StrategyRegistry
from ..domain.interfaces import AdaptationHistoryStore
from ..domain.models import AdaptationNeed, AdaptationResult, AppliedAdaptation
from ..infrastructure.exceptions import StrategyExecutionError
from ..infrastructure.observability import get_logger, get_metrics_collector


class SelectionMode(Enum):
    """How many of the ranked strategies are executed for a need."""
    SINGLE_WINNER = "single_winner"
    FALLBACK = "fallback"
    FAN_OUT = "fan_out"


class AdaptationOrchestrator:
    """
    Selects and runs strategies for adaptation needs.

    Selection modes:
    - single_winner: only the highest ranked eligible strategy runs
    - fallback: strategies run in rank order until one applies something
    - fan_out: every eligible strategy runs and the results are merged
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        history_store: Optional[AdaptationHistoryStore] = None,
        selection_mode: SelectionMode = SelectionMode.SINGLE_WINNER,
    ):
        self._registry = registry
        self._history_store = history_store
        self._selection_mode = SelectionMode(selection_mode)
        self.logger = get_logger("adaptive_engine.orchestrator")
        self.metrics = get_metrics_collector()

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    @property
    def history_store(self) -> Optional[AdaptationHistoryStore]:
        return self._history_store

    @property
    def selection_mode(self) -> SelectionMode:
        return self._selection_mode

    def eligible_strategies(self, need: AdaptationNeed) -> List[AdaptationStrategy]:
        eligible = []
        for strategy in self._registry.strategies_for(need.adaptation_type):
            try:
                if strategy.can_handle(need):
                    eligible.append(strategy)
            except Exception as e:
                self.logger.warning("Strategy applicability check failed", extra={
                    "strategy_id": strategy.strategy_id,
                    "adaptation_type": need.adaptation_type.value,
                }, exc_info=e)
        return eligible

    def rank_candidates(self, need: AdaptationNeed,
                        candidates: Sequence[AdaptationStrategy]) -> List[AdaptationStrategy]:
        """Stable sort by priority for the need's context, highest first."""
        scored: List[Tuple[int, AdaptationStrategy]] = []
        for strategy in candidates:
            try:
                score = strategy.priority(need.context)
            except Exception as e:
                self.logger.warning("Strategy priority failed, ranking it last", extra={
                    "strategy_id": strategy.strategy_id,
                }, exc_info=e)
                score = -1
            scored.append((score, strategy))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [strategy for _, strategy in scored]

    async def handle_need(self, need: AdaptationNeed) -> AdaptationResult:
        adaptation_type = need.adaptation_type.value
        self.metrics.record_need(adaptation_type)

        with self.logger.need_context(need.need_id):
            candidates = self._registry.strategies_for(need.adaptation_type)
            if not candidates:
                self.logger.info("No strategy registered for adaptation type", extra={
                    "adaptation_type": adaptation_type,
                })
                self.metrics.record_noop(adaptation_type, "no_candidates")
                return AdaptationResult.nothing_to_do(f"No strategies registered for {adaptation_type}")

            ranked = self.rank_candidates(need, self.eligible_strategies(need))
            if not ranked:
                self.logger.info("No eligible strategy for need", extra={
                    "adaptation_type": adaptation_type,
                    "candidates": [s.strategy_id for s in candidates],
                })
                self.metrics.record_noop(adaptation_type, "not_eligible")
                return AdaptationResult.nothing_to_do(f"No eligible strategy for {adaptation_type}")

            self.logger.debug("Strategies ranked", extra={
                "ranking": [s.strategy_id for s in ranked],
                "selection_mode": self._selection_mode.value,
            })

            result = await self._run(need, ranked)

            if result.is_successful:
                await self._record(result.applied_adaptations)
                self.logger.info("Adaptation applied", extra={
                    "strategy_id": result.strategy_id,
                    "adaptations": [a.adaptation_type for a in result.applied_adaptations],
                    "estimated_improvement": result.estimated_improvement,
                })
            else:
                self.metrics.record_noop(adaptation_type, "not_applied")
                self.logger.info("Need handled without adaptation", extra={"message": result.message})

            return result

    async def handle_needs(self, needs: Iterable[AdaptationNeed]) -> List[AdaptationResult]:
        """Handle a batch of needs, highest priority first."""
        ordered = sorted(needs, key=lambda n: n.priority, reverse=True)
        return [await self.handle_need(need) for need in ordered]

    async def _run(self, need: AdaptationNeed, ranked: List[AdaptationStrategy]) -> AdaptationResult:
        if self._selection_mode == SelectionMode.SINGLE_WINNER:
            winner = ranked[0]
            result = await self._execute(winner, need)
            return result or AdaptationResult.nothing_to_do(
                f"Strategy {winner.strategy_id} failed", strategy_id=winner.strategy_id
            )

        if self._selection_mode == SelectionMode.FALLBACK:
            last: Optional[AdaptationResult] = None
            for strategy in ranked:
                result = await self._execute(strategy, need)
                if result is not None and result.is_successful:
                    return result
                last = result or last
            return last or AdaptationResult.nothing_to_do("Every eligible strategy failed")

        # fan out
        adaptations: List[AppliedAdaptation] = []
        contributors: List[str] = []
        for strategy in ranked:
            result = await self._execute(strategy, need)
            if result is not None and result.is_successful:
                adaptations.extend(result.applied_adaptations)
                contributors.append(strategy.strategy_id)
        if not adaptations:
            return AdaptationResult.nothing_to_do("No eligible strategy applied an adaptation")
        return AdaptationResult.from_adaptations(
            adaptations,
            strategy_id=",".join(contributors),
            message=f"{len(contributors)} strategies applied {len(adaptations)} adaptation(s)",
        )

    async def _execute(self, strategy: AdaptationStrategy, need: AdaptationNeed) -> Optional[AdaptationResult]:
        """Run one strategy; a raising strategy yields ``None``."""
        try:
            with self.metrics.time_strategy_execution(strategy.strategy_id):
                result = await strategy.execute(need)
        except Exception as e:
            error = StrategyExecutionError(
                f"Strategy {strategy.strategy_id} raised during execution",
                strategy_id=strategy.strategy_id,
                adaptation_type=need.adaptation_type.value,
                cause=e,
            )
            self.logger.error("Strategy execution failed", extra=error.to_dict(), exc_info=e)
            self.metrics.record_strategy_failure(strategy.strategy_id)
            return None

        for adaptation in result.applied_adaptations:
            self.metrics.record_applied(strategy.strategy_id, adaptation.adaptation_type)
        return result

    async def _record(self, adaptations: Sequence[AppliedAdaptation]) -> None:
        if self._history_store is None:
            return
        for adaptation in adaptations:
            try:
                await self._history_store.append(adaptation)
            except Exception as e:
                self.logger.error("Failed to record applied adaptation", extra={
                    "adaptation_id": adaptation.adaptation_id,
                    "adaptation_type": adaptation.adaptation_type,
                }, exc_info=e)

    def describe(self) -> Dict[str, object]:
        return {
            "selection_mode": self._selection_mode.value,
            "registered_strategies": len(self._registry),
            "records_history": self._history_store is not None,
        }
