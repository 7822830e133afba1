"""
Core Domain Models

Defines the value objects exchanged between monitors, strategies, the
orchestrator and the effectiveness evaluator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, Any, Optional, Tuple, List
import uuid


class AdaptationType(Enum):
    """Kinds of adaptation a strategy can support."""
    RESOURCE_OPTIMIZATION = "resource_optimization"
    PERFORMANCE_OPTIMIZATION = "performance_optimization"
    USER_EXPERIENCE_OPTIMIZATION = "user_experience_optimization"
    ENVIRONMENT_OPTIMIZATION = "environment_optimization"


class AdaptationTrigger(Enum):
    """Reasons an adaptation was requested."""
    PERFORMANCE_DEGRADATION = "performance_degradation"
    RESOURCE_CONSTRAINT = "resource_constraint"
    USER_FEEDBACK = "user_feedback"
    ENVIRONMENT_CHANGE = "environment_change"
    MANUAL = "manual"

    @property
    def adaptation_type(self) -> AdaptationType:
        return _TRIGGER_TO_TYPE.get(self, AdaptationType.PERFORMANCE_OPTIMIZATION)


_TRIGGER_TO_TYPE = {
    AdaptationTrigger.PERFORMANCE_DEGRADATION: AdaptationType.PERFORMANCE_OPTIMIZATION,
    AdaptationTrigger.RESOURCE_CONSTRAINT: AdaptationType.RESOURCE_OPTIMIZATION,
    AdaptationTrigger.USER_FEEDBACK: AdaptationType.USER_EXPERIENCE_OPTIMIZATION,
    AdaptationTrigger.ENVIRONMENT_CHANGE: AdaptationType.ENVIRONMENT_OPTIMIZATION,
}


class AdaptationPriority(IntEnum):
    """Priority of an adaptation need."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class PerformanceSeverity(IntEnum):
    """Severity classification reported by the performance monitor."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class FeedbackSeverity(IntEnum):
    """Severity of a user feedback item."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class ResourceConstraintType(Enum):
    NONE = "none"
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"


class OptimizationLevel(Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class CachingLevel(Enum):
    DISABLED = "disabled"
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"


class VerbosityLevel(Enum):
    CONCISE = "concise"
    NORMAL = "normal"
    DETAILED = "detailed"


class EngineStatus(Enum):
    """Lifecycle status of the adaptation engine."""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


def _check_ratio(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")


@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregated performance signals of the running system."""
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    network_usage: float = 0.0
    network_latency_ms: float = 0.0
    response_time_ms: float = 0.0
    throughput: float = 0.0
    error_rate: float = 0.0
    overall_score: float = 1.0
    severity: PerformanceSeverity = PerformanceSeverity.LOW
    requires_optimization: bool = False

    def __post_init__(self):
        _check_ratio("cpu_usage", self.cpu_usage)
        _check_ratio("memory_usage", self.memory_usage)
        _check_ratio("network_usage", self.network_usage)

    @property
    def has_bottlenecks(self) -> bool:
        """True when any performance dimension is under visible stress."""
        return (
            self.requires_optimization
            or self.cpu_usage > 0.8
            or self.memory_usage > 0.85
            or self.response_time_ms > 5000
            or self.network_latency_ms > 100
            or self.overall_score < 0.6
        )


@dataclass(frozen=True)
class ResourceThresholds:
    """Utilization ratios above which a resource counts as constrained."""
    cpu: float = 0.90
    memory: float = 0.85
    disk: float = 0.90
    network: float = 0.80


@dataclass(frozen=True)
class ResourceUtilization:
    """Per-resource usage ratios in [0, 1]."""
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    disk_usage: float = 0.0
    network_usage: float = 0.0
    thresholds: ResourceThresholds = field(default_factory=ResourceThresholds)

    def __post_init__(self):
        _check_ratio("cpu_usage", self.cpu_usage)
        _check_ratio("memory_usage", self.memory_usage)
        _check_ratio("disk_usage", self.disk_usage)
        _check_ratio("network_usage", self.network_usage)

    @property
    def constrained_resources(self) -> List[ResourceConstraintType]:
        """Constrained resources, most dominant stressor first."""
        checks = [
            (ResourceConstraintType.CPU, self.cpu_usage, self.thresholds.cpu),
            (ResourceConstraintType.MEMORY, self.memory_usage, self.thresholds.memory),
            (ResourceConstraintType.NETWORK, self.network_usage, self.thresholds.network),
            (ResourceConstraintType.DISK, self.disk_usage, self.thresholds.disk),
        ]
        return [kind for kind, usage, limit in checks if usage > limit]

    @property
    def is_constrained(self) -> bool:
        return bool(self.constrained_resources)

    @property
    def constraint_type(self) -> ResourceConstraintType:
        constrained = self.constrained_resources
        return constrained[0] if constrained else ResourceConstraintType.NONE


@dataclass(frozen=True)
class EnvironmentProfile:
    """Description of the platform the system runs on."""
    platform_type: str = "unknown"
    cpu_cores: int = 1
    available_memory_mb: int = 0
    optimization_level: OptimizationLevel = OptimizationLevel.BALANCED
    has_changed: bool = False

    def __post_init__(self):
        if self.cpu_cores < 1:
            raise ValueError("cpu_cores must be at least 1")


@dataclass(frozen=True)
class UserFeedback:
    """A single piece of user feedback."""
    content: str
    severity: FeedbackSeverity = FeedbackSeverity.LOW
    timestamp: Optional[datetime] = None
    feedback_id: str = ""
    rating: Optional[int] = None

    def __post_init__(self):
        if self.timestamp is None:
            object.__setattr__(self, 'timestamp', datetime.utcnow())
        if self.feedback_id == "":
            object.__setattr__(self, 'feedback_id', str(uuid.uuid4()))


@dataclass(frozen=True)
class SystemState:
    """Point-in-time snapshot of the signals the engine reasons over."""
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    resource_utilization: ResourceUtilization = field(default_factory=ResourceUtilization)
    environment_profile: EnvironmentProfile = field(default_factory=EnvironmentProfile)
    recent_feedback: Tuple[UserFeedback, ...] = ()
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            object.__setattr__(self, 'timestamp', datetime.utcnow())
        # lists are accepted for convenience but stored immutably
        object.__setattr__(self, 'recent_feedback', tuple(self.recent_feedback))


@dataclass(frozen=True)
class AdaptationNeed:
    """A typed request asking the engine to consider corrective action."""
    adaptation_type: AdaptationType
    trigger: str
    context: SystemState
    priority: AdaptationPriority = AdaptationPriority.MEDIUM
    description: str = ""
    need_id: str = ""

    def __post_init__(self):
        if self.need_id == "":
            object.__setattr__(self, 'need_id', str(uuid.uuid4()))


@dataclass(frozen=True)
class AppliedAdaptation:
    """Record of one concrete action taken by a strategy."""
    adaptation_type: str
    description: str
    estimated_improvement_factor: float
    strategy_id: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    applied_at: Optional[datetime] = None
    adaptation_id: str = ""

    def __post_init__(self):
        if self.applied_at is None:
            object.__setattr__(self, 'applied_at', datetime.utcnow())
        if self.adaptation_id == "":
            object.__setattr__(self, 'adaptation_id', str(uuid.uuid4()))


@dataclass(frozen=True)
class AdaptationResult:
    """Outcome of one orchestration pass."""
    is_successful: bool
    applied_adaptations: Tuple[AppliedAdaptation, ...] = ()
    estimated_improvement: float = 0.0
    timestamp: Optional[datetime] = None
    strategy_id: Optional[str] = None
    message: str = ""

    def __post_init__(self):
        if self.timestamp is None:
            object.__setattr__(self, 'timestamp', datetime.utcnow())
        object.__setattr__(self, 'applied_adaptations', tuple(self.applied_adaptations))

    @classmethod
    def from_adaptations(
        cls,
        adaptations: List[AppliedAdaptation],
        strategy_id: Optional[str] = None,
        message: str = "",
    ) -> "AdaptationResult":
        return cls(
            is_successful=bool(adaptations),
            applied_adaptations=tuple(adaptations),
            estimated_improvement=sum(a.estimated_improvement_factor for a in adaptations),
            strategy_id=strategy_id,
            message=message,
        )

    @classmethod
    def nothing_to_do(cls, message: str, strategy_id: Optional[str] = None) -> "AdaptationResult":
        return cls(is_successful=False, strategy_id=strategy_id, message=message)


@dataclass(frozen=True)
class PerformanceSample:
    """Historical performance sample used by effectiveness evaluation."""
    timestamp: datetime
    overall_score: float
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    response_time_ms: float = 0.0
    throughput: float = 0.0


DISPLAY_SCORE_MIN = -1.0
DISPLAY_SCORE_MAX = 2.0


@dataclass(frozen=True)
class EffectivenessRecord:
    """Realized versus expected improvement of one applied adaptation."""
    adaptation_id: str
    adaptation_type: str
    strategy_id: str
    applied_at: datetime
    before_score: float
    after_score: float
    expected_improvement: float
    actual_improvement: float
    effectiveness_score: float

    @property
    def display_score(self) -> float:
        return max(DISPLAY_SCORE_MIN, min(DISPLAY_SCORE_MAX, self.effectiveness_score))


@dataclass(frozen=True)
class EffectivenessSummary:
    """Aggregate effectiveness over a time window."""
    overall_effectiveness: float
    successful_adaptations: int
    total_adaptations: int
    evaluated_adaptations: int
    average_improvement: float
    effectiveness_by_type: Dict[str, float] = field(default_factory=dict)
    records: Tuple[EffectivenessRecord, ...] = ()


@dataclass(frozen=True)
class PerformanceTrendPoint:
    """Mean performance within one trend bucket."""
    timestamp: datetime
    sample_count: int
    cpu_usage: float
    memory_usage: float
    response_time_ms: float
    throughput: float
    overall_score: float


@dataclass(frozen=True)
class AdaptationStatusReport:
    """Snapshot of the engine for dashboards."""
    engine_status: EngineStatus
    registered_strategies: int
    pending_triggers: int
    total_adaptations_applied: int
    recent_adaptations: Tuple[AppliedAdaptation, ...] = ()
    last_adaptation_time: Optional[datetime] = None
    overall_effectiveness: Optional[float] = None


@dataclass(frozen=True)
class DashboardEvent:
    """Event emitted on the dashboard stream."""
    event_type: str
    timestamp: datetime
    adaptation: Optional[AppliedAdaptation] = None
    details: Dict[str, Any] = field(default_factory=dict)
