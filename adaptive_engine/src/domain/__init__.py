"""
Domain Layer - Core domain models and interfaces

This layer contains the value objects exchanged by the adaptation engine and
the interfaces its external collaborators implement.
"""

from .models import (
    AdaptationType, AdaptationTrigger, AdaptationPriority, PerformanceSeverity,
    FeedbackSeverity, ResourceConstraintType, OptimizationLevel, CachingLevel,
    VerbosityLevel, EngineStatus, PerformanceMetrics, ResourceThresholds,
    ResourceUtilization, EnvironmentProfile, UserFeedback, SystemState,
    AdaptationNeed, AppliedAdaptation, AdaptationResult, PerformanceSample,
    EffectivenessRecord, EffectivenessSummary, PerformanceTrendPoint,
    AdaptationStatusReport, DashboardEvent
)
from .interfaces import (
    ResourceManager, CodeOptimizer, CodeGenerationOptimizer, SystemStateProvider,
    AdaptationHistoryStore, PerformanceHistoryProvider
)

__all__ = [
    "AdaptationType",
    "AdaptationTrigger",
    "AdaptationPriority",
    "PerformanceSeverity",
    "FeedbackSeverity",
    "ResourceConstraintType",
    "OptimizationLevel",
    "CachingLevel",
    "VerbosityLevel",
    "EngineStatus",
    "PerformanceMetrics",
    "ResourceThresholds",
    "ResourceUtilization",
    "EnvironmentProfile",
    "UserFeedback",
    "SystemState",
    "AdaptationNeed",
    "AppliedAdaptation",
    "AdaptationResult",
    "PerformanceSample",
    "EffectivenessRecord",
    "EffectivenessSummary",
    "PerformanceTrendPoint",
    "AdaptationStatusReport",
    "DashboardEvent",
    "ResourceManager",
    "CodeOptimizer",
    "CodeGenerationOptimizer",
    "SystemStateProvider",
    "AdaptationHistoryStore",
    "PerformanceHistoryProvider",
]
