"""
Tests for the strategy registry and the adaptation orchestrator.
"""

import threading
from typing import List

import pytest

from adaptive_engine.src.control_reasoning import (
    AdaptationOrchestrator, AdaptationStrategy, SelectionMode, StrategyFactory, StrategyRegistry
)
from adaptive_engine.src.domain.models import (
    AdaptationPriority, AdaptationType, AppliedAdaptation, SystemState
)
from adaptive_engine.src.framework.configuration import AdaptiveEngineConfiguration
from adaptive_engine.src.infrastructure.exceptions import RegistryError
from adaptive_engine.src.infrastructure.observability import AdaptationMetricsCollector

from conftest import make_need, make_state


class FixedStrategy(AdaptationStrategy):
    """Test strategy with a fixed priority and a single always-firing rule."""

    def __init__(self, strategy_id, priority=50, adaptation_type=AdaptationType.PERFORMANCE_OPTIMIZATION,
                 handles=True, fires=True, raises=False):
        super().__init__()
        self._id = strategy_id
        self._priority = priority
        self._type = adaptation_type
        self._handles = handles
        self._fires = fires
        self._raises = raises
        self.executions = 0

    @property
    def strategy_id(self):
        return self._id

    @property
    def supported_adaptation_type(self):
        return self._type

    def priority(self, state: SystemState) -> int:
        return self._priority

    def can_handle(self, need) -> bool:
        if self._handles == "raise":
            raise RuntimeError("broken predicate")
        return self._handles

    def description(self) -> str:
        return f"fixed strategy {self._id}"

    def estimated_improvement(self, need) -> float:
        return 1.0

    def sub_rules(self):
        return [("fixed", self._rule)]

    async def execute(self, need):
        self.executions += 1
        if self._raises:
            raise RuntimeError(f"{self._id} exploded")
        return await super().execute(need)

    async def _rule(self, need):
        if not self._fires:
            return None
        return self._adaptation(f"{self._id}.Fixed", "fixed", 1.1, {})


class BrokenHistory:
    async def append(self, adaptation: AppliedAdaptation) -> None:
        raise IOError("disk full")


def perf_need(priority=AdaptationPriority.MEDIUM):
    return make_need(AdaptationType.PERFORMANCE_OPTIMIZATION, make_state(), priority)


class TestStrategyRegistry:
    """Registration, lookup and replacement semantics."""

    def test_strategies_for_keeps_registration_order(self, registry):
        a, b, c = FixedStrategy("a"), FixedStrategy("b"), FixedStrategy("c")
        for strategy in (a, b, c):
            registry.register(strategy)

        assert registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION) == (a, b, c)
        assert registry.all_strategies() == (a, b, c)
        assert len(registry) == 3
        assert "b" in registry

    def test_reregistering_replaces_in_place(self, registry):
        registry.register(FixedStrategy("a"))
        registry.register(FixedStrategy("b"))
        replacement = FixedStrategy("a", priority=99)

        registry.register(replacement)

        strategies = registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION)
        assert [s.strategy_id for s in strategies] == ["a", "b"]
        assert strategies[0] is replacement
        assert registry.get("a") is replacement
        assert len(registry) == 2

    def test_reregistering_same_instance_is_idempotent(self, registry):
        strategy = FixedStrategy("a")
        registry.register(strategy)
        registry.register(strategy)

        assert registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION) == (strategy,)

    def test_replacement_with_new_type_moves_index(self, registry):
        registry.register(FixedStrategy("a"))
        registry.register(FixedStrategy("a", adaptation_type=AdaptationType.RESOURCE_OPTIMIZATION))

        assert registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION) == ()
        assert [s.strategy_id for s in registry.strategies_for(AdaptationType.RESOURCE_OPTIMIZATION)] == ["a"]

    def test_unknown_type_returns_empty(self, registry):
        assert registry.strategies_for(AdaptationType.ENVIRONMENT_OPTIMIZATION) == ()

    def test_remove(self, registry, metrics):
        registry.register(FixedStrategy("a"))

        assert registry.remove("a") is True
        assert registry.remove("a") is False
        assert registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION) == ()
        assert "a" not in registry
        gauge = metrics.get_metric(AdaptationMetricsCollector.REGISTERED_STRATEGIES)
        assert gauge.get_value().value == 0

    def test_concurrent_register_and_lookup(self, registry):
        """Writers re-registering overlapping ids never expose duplicates to readers."""
        errors = []
        snapshots = []
        done = threading.Event()

        def write(offset):
            try:
                for n in range(200):
                    registry.register(FixedStrategy(f"s{(n + offset) % 10}", priority=n))
            except Exception as e:
                errors.append(e)

        def read():
            try:
                while not done.is_set():
                    ids = [s.strategy_id for s in registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION)]
                    snapshots.append(ids)
                    registry.all_strategies()
            except Exception as e:
                errors.append(e)

        writers = [threading.Thread(target=write, args=(i,)) for i in range(8)]
        readers = [threading.Thread(target=read) for _ in range(4)]
        for thread in readers + writers:
            thread.start()
        for thread in writers:
            thread.join()
        done.set()
        for thread in readers:
            thread.join()

        assert errors == []
        assert all(len(ids) == len(set(ids)) for ids in snapshots)
        final = [s.strategy_id for s in registry.strategies_for(AdaptationType.PERFORMANCE_OPTIMIZATION)]
        assert sorted(final) == sorted(f"s{i}" for i in range(10))
        assert len(registry) == 10

    def test_object_without_contract_is_rejected(self, registry):
        with pytest.raises(RegistryError) as exc_info:
            registry.register(object())
        assert "strategy_id" in exc_info.value.context["missing"]

    def test_factory_registers_enabled_strategies(self, registry, resource_manager, code_optimizer,
                                                  codegen_optimizer):
        config = AdaptiveEngineConfiguration(engine={"enabled_strategies": ["resource", "user_experience"]})

        StrategyFactory.register_default_strategies(
            registry, config, resource_manager, code_optimizer, codegen_optimizer
        )

        assert [s.strategy_id for s in registry.all_strategies()] == [
            "Resource.Dynamic", "UserExperience.Dynamic"
        ]

    def test_factory_skips_strategies_without_effector(self, resource_manager):
        strategies = StrategyFactory.create_default_strategies(resource_manager=resource_manager)

        assert [s.strategy_id for s in strategies] == ["Resource.Dynamic"]

    def test_factory_passes_configured_thresholds(self, resource_manager):
        config = AdaptiveEngineConfiguration(thresholds={"cpu": 0.5})

        strategy = StrategyFactory.create_default_strategies(config, resource_manager=resource_manager)[0]

        assert strategy.thresholds.cpu == 0.5

    @pytest.mark.asyncio
    async def test_configured_thresholds_gate_orchestration(self, registry, resource_manager, adaptation_history):
        config = AdaptiveEngineConfiguration(thresholds={"cpu": 0.5})
        StrategyFactory.register_default_strategies(registry, config, resource_manager=resource_manager)
        orchestrator = AdaptationOrchestrator(registry, history_store=adaptation_history)

        result = await orchestrator.handle_need(make_need(AdaptationType.RESOURCE_OPTIMIZATION, make_state(cpu=0.6)))

        assert result.is_successful is True
        assert [a.adaptation_type for a in result.applied_adaptations] == ["Resource.CpuLimit"]
        assert resource_manager.knobs["cpu_intensive_operations_limit"] == 0.5

    @pytest.mark.asyncio
    async def test_raised_thresholds_make_strategy_ineligible(self, registry, resource_manager):
        config = AdaptiveEngineConfiguration(thresholds={"cpu": 0.95})
        StrategyFactory.register_default_strategies(registry, config, resource_manager=resource_manager)
        orchestrator = AdaptationOrchestrator(registry)

        result = await orchestrator.handle_need(make_need(AdaptationType.RESOURCE_OPTIMIZATION, make_state(cpu=0.92)))

        assert result.is_successful is False
        assert result.message == "No eligible strategy for resource_optimization"
        assert resource_manager.knobs == {}


class TestAdaptationOrchestrator:
    """Strategy selection and execution for individual needs."""

    @pytest.mark.asyncio
    async def test_no_strategies_for_type(self, orchestrator, metrics):
        result = await orchestrator.handle_need(perf_need())

        assert result.is_successful is False
        assert result.applied_adaptations == ()
        noop = metrics.get_metric(AdaptationMetricsCollector.NOOP_TOTAL)
        labels = {"adaptation_type": "performance_optimization", "reason": "no_candidates"}
        assert noop.get_value(labels).value == 1

    @pytest.mark.asyncio
    async def test_no_eligible_strategy(self, registry, orchestrator):
        registry.register(FixedStrategy("a", handles=False))

        result = await orchestrator.handle_need(perf_need())

        assert result.is_successful is False
        assert registry.get("a").executions == 0

    @pytest.mark.asyncio
    async def test_highest_priority_wins(self, registry, orchestrator):
        low, high = FixedStrategy("low", priority=50), FixedStrategy("high", priority=90)
        registry.register(low)
        registry.register(high)

        result = await orchestrator.handle_need(perf_need())

        assert result.strategy_id == "high"
        assert high.executions == 1
        assert low.executions == 0

    @pytest.mark.asyncio
    async def test_ties_keep_registration_order(self, registry, orchestrator):
        first, second = FixedStrategy("first", priority=70), FixedStrategy("second", priority=70)
        registry.register(first)
        registry.register(second)

        ranked = orchestrator.rank_candidates(perf_need(), [first, second])

        assert ranked == [first, second]

    @pytest.mark.asyncio
    async def test_raising_predicate_counts_as_ineligible(self, registry, orchestrator):
        registry.register(FixedStrategy("broken", priority=90, handles="raise"))
        fallback = FixedStrategy("ok", priority=10)
        registry.register(fallback)

        result = await orchestrator.handle_need(perf_need())

        assert result.strategy_id == "ok"

    @pytest.mark.asyncio
    async def test_raising_winner_yields_unsuccessful_result(self, registry, orchestrator, metrics, log_records):
        registry.register(FixedStrategy("boom", priority=90, raises=True))
        registry.register(FixedStrategy("spare", priority=10))

        result = await orchestrator.handle_need(perf_need())

        assert result.is_successful is False
        assert registry.get("spare").executions == 0
        failures = metrics.get_metric(AdaptationMetricsCollector.STRATEGY_FAILURES)
        assert failures.get_value({"strategy_id": "boom"}).value == 1
        error = next(r for r in log_records.records if r["message"] == "Strategy execution failed")
        assert error["extra"]["error_code"] == "STRATEGY_EXECUTION_ERROR"

    @pytest.mark.asyncio
    async def test_fallback_mode_tries_next_strategy(self, registry, adaptation_history):
        orchestrator = AdaptationOrchestrator(registry, adaptation_history, SelectionMode.FALLBACK)
        registry.register(FixedStrategy("quiet", priority=90, fires=False))
        registry.register(FixedStrategy("boom", priority=80, raises=True))
        registry.register(FixedStrategy("works", priority=70))
        registry.register(FixedStrategy("unused", priority=60))

        result = await orchestrator.handle_need(perf_need())

        assert result.strategy_id == "works"
        assert registry.get("unused").executions == 0

    @pytest.mark.asyncio
    async def test_fan_out_merges_results(self, registry, adaptation_history):
        orchestrator = AdaptationOrchestrator(registry, adaptation_history, SelectionMode.FAN_OUT)
        registry.register(FixedStrategy("a", priority=10))
        registry.register(FixedStrategy("b", priority=90))
        registry.register(FixedStrategy("c", priority=50, fires=False))

        result = await orchestrator.handle_need(perf_need())

        assert result.is_successful is True
        assert [a.adaptation_type for a in result.applied_adaptations] == ["b.Fixed", "a.Fixed"]
        assert result.estimated_improvement == pytest.approx(2.2)
        assert result.strategy_id == "b,a"
        assert await adaptation_history.count() == 2

    @pytest.mark.asyncio
    async def test_applied_adaptations_are_recorded(self, registry, orchestrator, adaptation_history, metrics):
        registry.register(FixedStrategy("a"))

        result = await orchestrator.handle_need(perf_need())

        stored = await adaptation_history.get_recent_adaptations(10)
        assert [a.adaptation_id for a in stored] == [result.applied_adaptations[0].adaptation_id]
        applied = metrics.get_metric(AdaptationMetricsCollector.APPLIED_TOTAL)
        assert applied.get_value({"strategy_id": "a", "adaptation_type": "a.Fixed"}).value == 1

    @pytest.mark.asyncio
    async def test_history_failure_still_returns_result(self, registry, log_records):
        orchestrator = AdaptationOrchestrator(registry, BrokenHistory())
        registry.register(FixedStrategy("a"))

        result = await orchestrator.handle_need(perf_need())

        assert result.is_successful is True
        assert "Failed to record applied adaptation" in log_records.messages()

    @pytest.mark.asyncio
    async def test_handle_needs_processes_by_priority(self, registry, orchestrator):
        order: List[str] = []

        class Recording(FixedStrategy):
            async def execute(self, need):
                order.append(need.description)
                return await super().execute(need)

        registry.register(Recording("a"))
        needs = [
            make_need(AdaptationType.PERFORMANCE_OPTIMIZATION, make_state(), AdaptationPriority.LOW),
            make_need(AdaptationType.PERFORMANCE_OPTIMIZATION, make_state(), AdaptationPriority.CRITICAL),
        ]
        needs = [
            type(n)(n.adaptation_type, n.trigger, n.context, n.priority, n.priority.name) for n in needs
        ]

        results = await orchestrator.handle_needs(needs)

        assert order == ["CRITICAL", "LOW"]
        assert all(r.is_successful for r in results)

    @pytest.mark.asyncio
    async def test_resource_scenario_end_to_end(self, registry, orchestrator, resource_strategy,
                                                performance_strategy):
        """A CPU-bound resource need is served by the resource strategy alone."""
        registry.register(resource_strategy)
        registry.register(performance_strategy)

        need = make_need(AdaptationType.RESOURCE_OPTIMIZATION, make_state(cpu=0.95))
        result = await orchestrator.handle_need(need)

        assert result.strategy_id == "Resource.Dynamic"
        assert [a.adaptation_type for a in result.applied_adaptations] == ["Resource.CpuLimit"]
        assert result.estimated_improvement == pytest.approx(1.4)
