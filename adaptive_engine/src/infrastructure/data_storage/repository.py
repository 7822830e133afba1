"""
Repository Module

Repositories map the engine's history entities onto a StorageBackend
collection: the append-only log of applied adaptations and the performance
sample history read by the effectiveness evaluator.
"""

import itertools
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional, TypeVar, Generic

from ...domain.interfaces import AdaptationHistoryStore, PerformanceHistoryProvider
from ...domain.models import AppliedAdaptation, PerformanceSample
from ..exceptions import DataStoreError
from .storage_backend import StorageBackend

T = TypeVar('T')


def _ts(value: datetime) -> str:
    # naive UTC, fixed width, so stored timestamps compare correctly as strings
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds")


class Repository(Generic[T], ABC):
    """Abstract base class for repositories."""

    entity_type = "entity"

    def __init__(self, storage_backend: StorageBackend, collection_name: str):
        self.storage_backend = storage_backend
        self.collection_name = collection_name
        self._sequence = itertools.count()

    @abstractmethod
    async def save(self, entity: T) -> None:
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        pass

    @abstractmethod
    def _entity_to_dict(self, entity: T) -> Dict[str, Any]:
        pass

    @abstractmethod
    def _dict_to_entity(self, data: Dict[str, Any]) -> T:
        pass

    async def _query_sorted(self, operation: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            results = await self.storage_backend.query(self.collection_name, filters)
        except Exception as e:
            raise DataStoreError(
                f"Failed to query {self.collection_name}",
                operation=operation,
                entity_type=self.entity_type,
                cause=e
            )
        return sorted(results, key=lambda d: (d["timestamp"], d.get("sequence", 0)))


class AppliedAdaptationRepository(Repository[AppliedAdaptation], AdaptationHistoryStore):
    """Append-only history of applied adaptations."""

    entity_type = "AppliedAdaptation"

    def __init__(self, storage_backend: StorageBackend):
        super().__init__(storage_backend, "applied_adaptations")

    async def save(self, adaptation: AppliedAdaptation) -> None:
        try:
            existing = await self.storage_backend.retrieve(self.collection_name, adaptation.adaptation_id)
            if existing is not None:
                raise ValueError("adaptation history is append-only")
            await self.storage_backend.store(
                self.collection_name, adaptation.adaptation_id, self._entity_to_dict(adaptation)
            )
        except Exception as e:
            raise DataStoreError(
                f"Failed to append adaptation {adaptation.adaptation_id}",
                operation="append",
                entity_type=self.entity_type,
                cause=e
            )

    async def append(self, adaptation: AppliedAdaptation) -> None:
        await self.save(adaptation)

    async def get_by_id(self, entity_id: str) -> Optional[AppliedAdaptation]:
        try:
            data = await self.storage_backend.retrieve(self.collection_name, entity_id)
        except Exception as e:
            raise DataStoreError(
                f"Failed to retrieve adaptation {entity_id}",
                operation="get_by_id",
                entity_type=self.entity_type,
                cause=e
            )
        return self._dict_to_entity(data) if data else None

    async def get_adaptations_in_range(self, start: datetime, end: datetime) -> List[AppliedAdaptation]:
        filters = {"timestamp": {"$gte": _ts(start), "$lte": _ts(end)}}
        results = await self._query_sorted("get_adaptations_in_range", filters)
        return [self._dict_to_entity(d) for d in results]

    async def get_adaptations_since(self, since: datetime) -> List[AppliedAdaptation]:
        """Adaptations applied strictly after ``since``, oldest first."""
        results = await self._query_sorted("get_adaptations_since", {"timestamp": {"$gt": _ts(since)}})
        return [self._dict_to_entity(d) for d in results]

    async def get_recent_adaptations(self, count: int = 10) -> List[AppliedAdaptation]:
        if count <= 0:
            return []
        results = await self._query_sorted("get_recent_adaptations", {})
        return [self._dict_to_entity(d) for d in reversed(results[-count:])]

    async def count(self) -> int:
        try:
            return await self.storage_backend.count(self.collection_name)
        except Exception as e:
            raise DataStoreError(
                "Failed to count adaptations",
                operation="count",
                entity_type=self.entity_type,
                cause=e
            )

    def _entity_to_dict(self, adaptation: AppliedAdaptation) -> Dict[str, Any]:
        return {
            "adaptation_id": adaptation.adaptation_id,
            "adaptation_type": adaptation.adaptation_type,
            "description": adaptation.description,
            "estimated_improvement_factor": adaptation.estimated_improvement_factor,
            "strategy_id": adaptation.strategy_id,
            "parameters": dict(adaptation.parameters),
            "timestamp": _ts(adaptation.applied_at),
            "sequence": next(self._sequence),
        }

    def _dict_to_entity(self, data: Dict[str, Any]) -> AppliedAdaptation:
        return AppliedAdaptation(
            adaptation_type=data["adaptation_type"],
            description=data["description"],
            estimated_improvement_factor=data["estimated_improvement_factor"],
            strategy_id=data["strategy_id"],
            parameters=data["parameters"],
            applied_at=datetime.fromisoformat(data["timestamp"]),
            adaptation_id=data["adaptation_id"],
        )


class PerformanceSampleRepository(Repository[PerformanceSample], PerformanceHistoryProvider):
    """Time-ordered performance samples."""

    entity_type = "PerformanceSample"

    def __init__(self, storage_backend: StorageBackend):
        super().__init__(storage_backend, "performance_samples")

    def _key(self, sample: PerformanceSample) -> str:
        # samples may share a timestamp
        return f"{_ts(sample.timestamp)}/{uuid.uuid4().hex}"

    async def save(self, sample: PerformanceSample) -> None:
        try:
            await self.storage_backend.store(self.collection_name, self._key(sample), self._entity_to_dict(sample))
        except Exception as e:
            raise DataStoreError(
                f"Failed to save performance sample at {sample.timestamp}",
                operation="save",
                entity_type=self.entity_type,
                cause=e
            )

    async def save_many(self, samples: List[PerformanceSample]) -> None:
        for sample in samples:
            await self.save(sample)

    async def get_by_id(self, entity_id: str) -> Optional[PerformanceSample]:
        try:
            data = await self.storage_backend.retrieve(self.collection_name, entity_id)
        except Exception as e:
            raise DataStoreError(
                f"Failed to retrieve performance sample {entity_id}",
                operation="get_by_id",
                entity_type=self.entity_type,
                cause=e
            )
        return self._dict_to_entity(data) if data else None

    async def get_samples_before(self, timestamp: datetime, limit: int) -> List[PerformanceSample]:
        if limit <= 0:
            return []
        results = await self._query_sorted("get_samples_before", {"timestamp": {"$lte": _ts(timestamp)}})
        return [self._dict_to_entity(d) for d in results[-limit:]]

    async def get_samples_after(self, timestamp: datetime, limit: int) -> List[PerformanceSample]:
        if limit <= 0:
            return []
        results = await self._query_sorted("get_samples_after", {"timestamp": {"$gt": _ts(timestamp)}})
        return [self._dict_to_entity(d) for d in results[:limit]]

    async def get_samples_in_range(self, start: datetime, end: datetime) -> List[PerformanceSample]:
        filters = {"timestamp": {"$gte": _ts(start), "$lte": _ts(end)}}
        results = await self._query_sorted("get_samples_in_range", filters)
        return [self._dict_to_entity(d) for d in results]

    def _entity_to_dict(self, sample: PerformanceSample) -> Dict[str, Any]:
        return {
            "timestamp": _ts(sample.timestamp),
            "overall_score": sample.overall_score,
            "cpu_usage": sample.cpu_usage,
            "memory_usage": sample.memory_usage,
            "response_time_ms": sample.response_time_ms,
            "throughput": sample.throughput,
            "sequence": next(self._sequence),
        }

    def _dict_to_entity(self, data: Dict[str, Any]) -> PerformanceSample:
        return PerformanceSample(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            overall_score=data["overall_score"],
            cpu_usage=data["cpu_usage"],
            memory_usage=data["memory_usage"],
            response_time_ms=data["response_time_ms"],
            throughput=data["throughput"],
        )
