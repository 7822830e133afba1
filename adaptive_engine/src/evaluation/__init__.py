"""
Evaluation Layer - adaptation effectiveness, performance trends and the
dashboard view built on them.
"""

from .effectiveness_evaluator import EffectivenessEvaluator
from .performance_trends import aggregate_performance_trends, DEFAULT_TREND_INTERVAL
from .dashboard import AdaptationDashboard, ADAPTATION_APPLIED

__all__ = [
    "EffectivenessEvaluator",
    "aggregate_performance_trends",
    "DEFAULT_TREND_INTERVAL",
    "AdaptationDashboard",
    "ADAPTATION_APPLIED",
]
