"""
Control & Reasoning Layer - strategy selection and the adaptation loop

This layer contains the adaptation strategies, the registry they are looked up
in, the orchestrator that picks and runs them for each need and the engine
service that turns system state into needs.
"""

from .adaptation_strategy import AdaptationStrategy, KnobLocks, SubRule
from .resource_strategy import ResourceAdaptationStrategy
from .performance_strategy import PerformanceAdaptationStrategy
from .user_experience_strategy import UserExperienceAdaptationStrategy
from .strategy_registry import StrategyRegistry
from .strategy_factory import StrategyFactory
from .orchestrator import AdaptationOrchestrator, SelectionMode
from .adaptation_engine import AdaptationEngine

__all__ = [
    "AdaptationStrategy",
    "KnobLocks",
    "SubRule",
    "ResourceAdaptationStrategy",
    "PerformanceAdaptationStrategy",
    "UserExperienceAdaptationStrategy",
    "StrategyRegistry",
    "StrategyFactory",
    "AdaptationOrchestrator",
    "SelectionMode",
    "AdaptationEngine",
]
