"""
Data storage for the adaptation engine: storage backends and the history
repositories built on them.
"""
from .repository import Repository, AppliedAdaptationRepository, PerformanceSampleRepository
from .storage_backend import StorageBackend, InMemoryStorageBackend

__all__ = [
    "Repository",
    "AppliedAdaptationRepository",
    "PerformanceSampleRepository",
    "StorageBackend",
    "InMemoryStorageBackend",
]
