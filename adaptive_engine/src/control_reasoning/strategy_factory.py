"""
Strategy Factory

Builds the default adaptation strategies from configuration and the effector
collaborators available to the host application.
"""

from typing import List, Optional

from .adaptation_strategy import AdaptationStrategy, KnobLocks
from .performance_strategy import PerformanceAdaptationStrategy
from .resource_strategy import ResourceAdaptationStrategy
from .strategy_registry import StrategyRegistry
from .user_experience_strategy import UserExperienceAdaptationStrategy
from ..domain.interfaces import CodeGenerationOptimizer, CodeOptimizer, ResourceManager
from ..framework.configuration.models import AdaptiveEngineConfiguration
from ..infrastructure.observability import get_logger


class StrategyFactory:
    """Factory for creating the built-in adaptation strategies."""

    @staticmethod
    def create_default_strategies(
        config: Optional[AdaptiveEngineConfiguration] = None,
        resource_manager: Optional[ResourceManager] = None,
        code_optimizer: Optional[CodeOptimizer] = None,
        code_generation_optimizer: Optional[CodeGenerationOptimizer] = None,
        knob_locks: Optional[KnobLocks] = None,
    ) -> List[AdaptationStrategy]:
        """
        Create every enabled strategy whose effector is available.

        All strategies share one ``KnobLocks`` instance so effector changes to
        the same knob are serialized across strategies.
        """
        logger = get_logger("adaptive_engine.strategy_factory")
        config = config or AdaptiveEngineConfiguration()
        knob_locks = knob_locks or KnobLocks()
        enabled = config.engine.enabled_strategies

        collaborators = {
            "resource": resource_manager,
            "performance": code_optimizer,
            "user_experience": code_generation_optimizer,
        }

        strategies: List[AdaptationStrategy] = []
        for name in enabled:
            collaborator = collaborators[name]
            if collaborator is None:
                logger.warning("Enabled strategy skipped, no effector provided", extra={"strategy": name})
                continue

            if name == "resource":
                strategies.append(ResourceAdaptationStrategy(
                    collaborator, config.thresholds.to_thresholds(), knob_locks
                ))
            elif name == "performance":
                strategies.append(PerformanceAdaptationStrategy(collaborator, knob_locks))
            elif name == "user_experience":
                strategies.append(UserExperienceAdaptationStrategy(collaborator, knob_locks))

        logger.info("Default strategies created", extra={
            "strategy_ids": [s.strategy_id for s in strategies],
            "enabled": list(enabled),
        })
        return strategies

    @staticmethod
    def register_default_strategies(
        registry: StrategyRegistry,
        config: Optional[AdaptiveEngineConfiguration] = None,
        resource_manager: Optional[ResourceManager] = None,
        code_optimizer: Optional[CodeOptimizer] = None,
        code_generation_optimizer: Optional[CodeGenerationOptimizer] = None,
        knob_locks: Optional[KnobLocks] = None,
    ) -> List[AdaptationStrategy]:
        strategies = StrategyFactory.create_default_strategies(
            config, resource_manager, code_optimizer, code_generation_optimizer, knob_locks
        )
        for strategy in strategies:
            registry.register(strategy)
        return strategies
