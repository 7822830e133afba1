"""
Storage Backend Infrastructure

Abstract document-style storage used by the history repositories, plus an
in-memory implementation for local runs and tests. Documents live in named
collections, are addressed by key and can be queried with equality and
simple ``$gt``/``$gte``/``$lt``/``$lte`` range filters.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional


class StorageBackend(ABC):
    """Abstract interface for storage backends."""

    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def store(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def retrieve(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def query(self, collection: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Documents matching ``filters``, in insertion order."""
        pass

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        pass

    @abstractmethod
    async def count(self, collection: str) -> int:
        pass


class InMemoryStorageBackend(StorageBackend):
    """Dictionary-backed storage suitable for tests and single-process runs."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        # data survives reconnects
        self._connected = False

    async def store(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        async with self._lock:
            self._collections.setdefault(collection, {})[key] = dict(data)

    async def retrieve(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        val = self._collections.get(collection, {}).get(key)
        return dict(val) if val is not None else None

    async def query(self, collection: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        async with self._lock:
            items = list(self._collections.get(collection, {}).values())
        return [dict(item) for item in items if _match_filters(item, filters)]

    async def delete(self, collection: str, key: str) -> bool:
        async with self._lock:
            return self._collections.get(collection, {}).pop(key, None) is not None

    async def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))


_RANGE_OPERATORS = {
    "$gt": lambda val, bound: val > bound,
    "$gte": lambda val, bound: val >= bound,
    "$lt": lambda val, bound: val < bound,
    "$lte": lambda val, bound: val <= bound,
}


def _match_filters(item: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    """Match a document against equality and range filters."""
    for k, v in filters.items():
        val = item.get(k)
        if isinstance(v, dict):
            for op, bound in v.items():
                check = _RANGE_OPERATORS.get(op)
                if check is None:
                    raise ValueError(f"Unsupported filter operator: {op}")
                if val is None or not check(val, bound):
                    return False
        elif val != v:
            return False
    return True
