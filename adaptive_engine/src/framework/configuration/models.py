"""
Configuration data models with validation.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, validator

from ...domain.models import AdaptationPriority, ResourceThresholds


class LoggingConfiguration(BaseModel):
    """Logging system configuration with validation."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="json", pattern="^(json|text)$")
    output: str = Field(default="console", pattern="^(console|file|both)$")
    file_path: Optional[str] = None

    @validator('file_path', always=True)
    def validate_file_path(cls, v, values):
        """Validate file path when file output is used."""
        if values.get('output') in ['file', 'both'] and not v:
            raise ValueError("file_path is required when output is 'file' or 'both'")
        return v


class ResourceThresholdConfiguration(BaseModel):
    """Utilization ratios above which a resource is considered constrained."""
    cpu: float = Field(default=0.90, gt=0.0, le=1.0)
    memory: float = Field(default=0.85, gt=0.0, le=1.0)
    disk: float = Field(default=0.90, gt=0.0, le=1.0)
    network: float = Field(default=0.80, gt=0.0, le=1.0)

    def to_thresholds(self) -> ResourceThresholds:
        return ResourceThresholds(cpu=self.cpu, memory=self.memory, disk=self.disk, network=self.network)


class OrchestratorConfiguration(BaseModel):
    """How the orchestrator picks strategies for a need."""
    selection_mode: str = Field(default="single_winner", pattern="^(single_winner|fallback|fan_out)$")
    record_history: bool = True


class EvaluatorConfiguration(BaseModel):
    """Effectiveness evaluation and trend settings."""
    window_size: int = Field(default=10, ge=1, le=1000)
    expected_improvement_baseline: float = Field(default=0.1, gt=0.0)
    trend_interval_minutes: int = Field(default=5, ge=1, le=1440)
    lookback_hours: int = Field(default=24, ge=1, le=24 * 90)


class EngineConfiguration(BaseModel):
    """Engine loop and trigger queue settings."""
    evaluation_interval_seconds: float = Field(default=30.0, gt=0.0, le=3600.0)
    immediate_priority: str = Field(default="HIGH", pattern="^(LOW|MEDIUM|HIGH|CRITICAL)$")
    max_pending_triggers: int = Field(default=1000, ge=1)
    enabled_strategies: List[str] = Field(default=["resource", "performance", "user_experience"])

    @validator('enabled_strategies')
    def validate_enabled_strategies(cls, v):
        known = {"resource", "performance", "user_experience"}
        unknown = [name for name in v if name not in known]
        if unknown:
            raise ValueError(f"Unknown strategies: {', '.join(unknown)}")
        return v

    @property
    def immediate_priority_level(self) -> AdaptationPriority:
        return AdaptationPriority[self.immediate_priority]


class AdaptiveEngineConfiguration(BaseModel):
    """Root configuration of the adaptation engine."""
    engine: EngineConfiguration = Field(default_factory=EngineConfiguration)
    orchestrator: OrchestratorConfiguration = Field(default_factory=OrchestratorConfiguration)
    evaluator: EvaluatorConfiguration = Field(default_factory=EvaluatorConfiguration)
    thresholds: ResourceThresholdConfiguration = Field(default_factory=ResourceThresholdConfiguration)
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
