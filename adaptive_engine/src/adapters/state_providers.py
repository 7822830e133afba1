"""
System state providers.

``StaticStateProvider`` serves a state supplied by the host (or a test) and
``RecordingStateProvider`` wraps another provider, writing a performance
sample to the history for every state it collects so the effectiveness
evaluator has data to compare.
"""

from datetime import datetime
from typing import Callable, Optional

from ..domain.interfaces import SystemStateProvider
from ..domain.models import PerformanceSample, SystemState
from ..infrastructure.data_storage import PerformanceSampleRepository
from ..infrastructure.exceptions import DataStoreError
from ..infrastructure.observability import get_logger


class StaticStateProvider(SystemStateProvider):
    """Returns the most recently supplied state."""

    def __init__(self, state: Optional[SystemState] = None):
        self._state = state or SystemState()
        self.collect_count = 0

    def set_state(self, state: SystemState) -> None:
        self._state = state

    async def collect_state(self) -> SystemState:
        self.collect_count += 1
        return self._state


class RecordingStateProvider(SystemStateProvider):
    """
    Records a performance sample for each collected state.

    Samples are stamped with the collection time, not the state's own
    timestamp, so a provider that keeps returning one snapshot still builds a
    history. Failing to record a sample never fails the collection.
    """

    def __init__(self, inner: SystemStateProvider, sample_repository: PerformanceSampleRepository,
                 clock: Callable[[], datetime] = datetime.utcnow):
        self._inner = inner
        self._samples = sample_repository
        self._clock = clock
        self.logger = get_logger("adaptive_engine.adapters.recording_state_provider")

    async def collect_state(self) -> SystemState:
        state = await self._inner.collect_state()
        metrics = state.performance_metrics
        sample = PerformanceSample(
            timestamp=self._clock(),
            overall_score=metrics.overall_score,
            cpu_usage=metrics.cpu_usage,
            memory_usage=metrics.memory_usage,
            response_time_ms=metrics.response_time_ms,
            throughput=metrics.throughput,
        )
        try:
            await self._samples.save(sample)
        except DataStoreError as e:
            self.logger.warning("Failed to record performance sample", extra={
                "timestamp": sample.timestamp.isoformat(),
                "error_code": e.error_code,
            }, exc_info=e)
        return state
