"""
Performance trend aggregation over fixed-width time buckets.
"""

from datetime import datetime, timedelta
from statistics import mean
from typing import Dict, Iterable, List

from ..domain.models import PerformanceSample, PerformanceTrendPoint

DEFAULT_TREND_INTERVAL = timedelta(minutes=5)


def aggregate_performance_trends(
    samples: Iterable[PerformanceSample],
    start: datetime,
    end: datetime,
    interval: timedelta = DEFAULT_TREND_INTERVAL,
) -> List[PerformanceTrendPoint]:
    """
    Average samples into buckets ``[start + k*interval, start + (k+1)*interval)``.

    Buckets are produced while their start is before ``end``; samples outside
    ``[start, end)`` are ignored and empty buckets are omitted.
    """
    if interval <= timedelta(0):
        raise ValueError("interval must be positive")

    buckets: Dict[int, List[PerformanceSample]] = {}
    for sample in samples:
        if sample.timestamp < start or sample.timestamp >= end:
            continue
        index = int((sample.timestamp - start) // interval)
        buckets.setdefault(index, []).append(sample)

    points = []
    for index in sorted(buckets):
        bucket = buckets[index]
        points.append(PerformanceTrendPoint(
            timestamp=start + index * interval,
            sample_count=len(bucket),
            cpu_usage=mean(s.cpu_usage for s in bucket),
            memory_usage=mean(s.memory_usage for s in bucket),
            response_time_ms=mean(s.response_time_ms for s in bucket),
            throughput=mean(s.throughput for s in bucket),
            overall_score=mean(s.overall_score for s in bucket),
        ))
    return points
