"""
Adapter Layer - effectors and state providers connecting the engine to the
system it adapts.
"""

from .in_memory_effectors import (
    InMemoryEffector,
    InMemoryResourceManager,
    InMemoryCodeOptimizer,
    InMemoryCodeGenerationOptimizer,
)
from .state_providers import StaticStateProvider, RecordingStateProvider

__all__ = [
    "InMemoryEffector",
    "InMemoryResourceManager",
    "InMemoryCodeOptimizer",
    "InMemoryCodeGenerationOptimizer",
    "StaticStateProvider",
    "RecordingStateProvider",
]
