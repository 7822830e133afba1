"""
Strategy Registry

Thread-safe catalogue of adaptation strategies, indexed by strategy id and by
the adaptation type each strategy supports.
"""

import threading
from typing import Dict, List, Optional, Tuple

from .adaptation_strategy import AdaptationStrategy
from ..domain.models import AdaptationType
from ..infrastructure.exceptions import RegistryError
from ..infrastructure.observability import get_logger, get_metrics_collector


_REQUIRED_ATTRIBUTES = (
    "strategy_id",
    "supported_adaptation_type",
    "priority",
    "can_handle",
    "execute",
    "description",
    "estimated_improvement",
)


class StrategyRegistry:
    """
    Registry for adaptation strategies.

    Registration order is preserved per adaptation type. Registering a strategy
    whose id is already known replaces the earlier entry in place, so a
    strategy never appears twice and a replacement keeps its predecessor's
    position. Lookups return tuples so callers never see a half-updated index.
    """

    def __init__(self):
        self._by_id: Dict[str, AdaptationStrategy] = {}
        self._by_type: Dict[AdaptationType, List[str]] = {}
        self._registry_lock = threading.RLock()
        self.logger = get_logger("adaptive_engine.strategy_registry")
        self.metrics = get_metrics_collector()

    def register(self, strategy: AdaptationStrategy) -> None:
        missing = [name for name in _REQUIRED_ATTRIBUTES if not hasattr(strategy, name)]
        if missing:
            raise RegistryError(
                f"Object {strategy!r} does not implement the strategy contract",
                context={"missing": missing},
            )

        strategy_id = strategy.strategy_id
        adaptation_type = strategy.supported_adaptation_type
        if not isinstance(adaptation_type, AdaptationType):
            raise RegistryError(
                f"Strategy {strategy_id} declares an unknown adaptation type",
                strategy_id=strategy_id,
                context={"adaptation_type": repr(adaptation_type)},
            )

        with self._registry_lock:
            previous = self._by_id.get(strategy_id)
            if previous is not None and previous.supported_adaptation_type != adaptation_type:
                self._by_type[previous.supported_adaptation_type].remove(strategy_id)

            ids = self._by_type.setdefault(adaptation_type, [])
            if strategy_id not in ids:
                ids.append(strategy_id)
            self._by_id[strategy_id] = strategy
            count = len(self._by_id)

        self.metrics.set_registered_strategies(count)
        self.logger.info("Strategy registered", extra={
            "strategy_id": strategy_id,
            "adaptation_type": adaptation_type.value,
            "replaced": previous is not None,
        })

    def remove(self, strategy_id: str) -> bool:
        with self._registry_lock:
            strategy = self._by_id.pop(strategy_id, None)
            if strategy is None:
                return False
            self._by_type[strategy.supported_adaptation_type].remove(strategy_id)
            count = len(self._by_id)

        self.metrics.set_registered_strategies(count)
        self.logger.info("Strategy removed", extra={"strategy_id": strategy_id})
        return True

    def strategies_for(self, adaptation_type: AdaptationType) -> Tuple[AdaptationStrategy, ...]:
        """Strategies supporting ``adaptation_type`` in registration order."""
        with self._registry_lock:
            return tuple(self._by_id[sid] for sid in self._by_type.get(adaptation_type, ()))

    def all_strategies(self) -> Tuple[AdaptationStrategy, ...]:
        with self._registry_lock:
            return tuple(self._by_id.values())

    def get(self, strategy_id: str) -> Optional[AdaptationStrategy]:
        with self._registry_lock:
            return self._by_id.get(strategy_id)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._by_id)

    def __contains__(self, strategy_id: object) -> bool:
        with self._registry_lock:
            return strategy_id in self._by_id
