"""
Adaptive Engine Framework - main wiring class

Entry point that builds the adaptation engine and its collaborators from
configuration and coordinates their startup and shutdown.
"""

from typing import Optional

from .configuration import EngineSettings, ConfigurationBuilder
from ..adapters.state_providers import RecordingStateProvider
from ..control_reasoning.adaptation_engine import AdaptationEngine
from ..control_reasoning.adaptation_strategy import KnobLocks
from ..control_reasoning.orchestrator import AdaptationOrchestrator, SelectionMode
from ..control_reasoning.strategy_factory import StrategyFactory
from ..control_reasoning.strategy_registry import StrategyRegistry
from ..domain.interfaces import (
    CodeGenerationOptimizer, CodeOptimizer, ResourceManager, SystemStateProvider
)
from ..evaluation.dashboard import AdaptationDashboard
from ..evaluation.effectiveness_evaluator import EffectivenessEvaluator
from ..infrastructure.data_storage import (
    AppliedAdaptationRepository, InMemoryStorageBackend, PerformanceSampleRepository, StorageBackend
)
from ..infrastructure.exceptions import AdaptiveEngineError
from ..infrastructure.observability import (
    PrometheusExporter, configure_logging, get_logger, get_metrics_collector
)


class AdaptiveEngineFramework:
    """
    Facade owning the storage, registry, orchestrator, engine, evaluator and
    dashboard of one adaptation engine instance.
    """

    def __init__(
        self,
        settings: EngineSettings,
        state_provider: SystemStateProvider,
        resource_manager: Optional[ResourceManager] = None,
        code_optimizer: Optional[CodeOptimizer] = None,
        code_generation_optimizer: Optional[CodeGenerationOptimizer] = None,
        storage_backend: Optional[StorageBackend] = None,
    ):
        self.settings = settings
        config = settings.config
        self.logger = get_logger("adaptive_engine.framework")

        self.storage_backend = storage_backend or InMemoryStorageBackend()
        self.adaptation_history = AppliedAdaptationRepository(self.storage_backend)
        self.performance_history = PerformanceSampleRepository(self.storage_backend)

        self.knob_locks = KnobLocks()
        self.registry = StrategyRegistry()
        StrategyFactory.register_default_strategies(
            self.registry,
            config,
            resource_manager=resource_manager,
            code_optimizer=code_optimizer,
            code_generation_optimizer=code_generation_optimizer,
            knob_locks=self.knob_locks,
        )

        self.orchestrator = AdaptationOrchestrator(
            self.registry,
            history_store=self.adaptation_history if config.orchestrator.record_history else None,
            selection_mode=SelectionMode(config.orchestrator.selection_mode),
        )
        self.evaluator = EffectivenessEvaluator(self.adaptation_history, self.performance_history, config.evaluator)
        self.engine = AdaptationEngine(
            RecordingStateProvider(state_provider, self.performance_history),
            self.orchestrator,
            self.registry,
            evaluator=self.evaluator,
            config=config.engine,
            lookback_hours=config.evaluator.lookback_hours,
            thresholds=config.thresholds.to_thresholds(),
        )
        self.dashboard = AdaptationDashboard(
            self.engine, self.adaptation_history, self.performance_history, self.evaluator, config.evaluator
        )
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            self.logger.warning("Adaptive engine framework is already running")
            return

        configure_logging(self.settings.config.logging)
        try:
            await self.storage_backend.connect()
            await self.engine.start()
        except AdaptiveEngineError:
            await self.storage_backend.disconnect()
            raise

        self._running = True
        self.logger.info("Adaptive engine framework started", extra={
            "strategies": [s.strategy_id for s in self.registry.all_strategies()],
            **self.orchestrator.describe(),
        })

    async def stop(self) -> None:
        if not self._running:
            self.logger.warning("Adaptive engine framework is not running")
            return

        await self.engine.stop()
        await self.storage_backend.disconnect()
        self._running = False
        self.logger.info("Adaptive engine framework stopped")

    def export_metrics(self) -> str:
        """Current engine metrics in the Prometheus text format."""
        return PrometheusExporter().export(get_metrics_collector().get_all_metrics())


def create_adaptive_engine(
    state_provider: SystemStateProvider,
    resource_manager: Optional[ResourceManager] = None,
    code_optimizer: Optional[CodeOptimizer] = None,
    code_generation_optimizer: Optional[CodeGenerationOptimizer] = None,
    config_path: Optional[str] = None,
    settings: Optional[EngineSettings] = None,
    storage_backend: Optional[StorageBackend] = None,
) -> AdaptiveEngineFramework:
    """
    Create a fully wired framework instance.

    Configuration comes from ``settings`` when given, otherwise from the
    optional YAML file overridden by ``ADAPTIVE_ENGINE_`` environment variables.
    """
    if settings is None:
        builder = ConfigurationBuilder()
        if config_path:
            builder.add_yaml_source(config_path)
        settings = builder.add_environment_source().build()

    return AdaptiveEngineFramework(
        settings,
        state_provider,
        resource_manager=resource_manager,
        code_optimizer=code_optimizer,
        code_generation_optimizer=code_generation_optimizer,
        storage_backend=storage_backend,
    )
