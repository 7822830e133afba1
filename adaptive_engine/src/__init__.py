"""
Adaptive Strategy Engine

Selects and applies runtime adaptations (resource limits, performance tuning
and user experience changes) in response to the observed system state, and
measures how effective each applied adaptation turned out to be.
"""

__version__ = "0.1.0"

# Core framework exports
from .framework.adaptive_framework import AdaptiveEngineFramework, create_adaptive_engine

__all__ = [
    "AdaptiveEngineFramework",
    "create_adaptive_engine",
]
