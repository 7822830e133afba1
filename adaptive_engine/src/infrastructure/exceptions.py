"""
Structured Exception Hierarchy

Exceptions raised by the adaptation engine carry an error code, a context
dictionary and a correlation ID so they can be logged as structured records.
Expected outcomes (nothing to adapt, unknown adaptation type, insufficient
evaluation data) are returned as values and never raised.
"""

from typing import Dict, List, Any, Optional
import uuid
from datetime import datetime


class AdaptiveEngineError(Exception):
    """
    Base exception class for all adaptation engine exceptions.

    Provides structured error information including error codes,
    context data, and correlation IDs for tracing.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


def _with_context(kwargs: Dict[str, Any], **values: Any) -> Dict[str, Any]:
    context = kwargs.pop('context', None) or {}
    context.update({k: v for k, v in values.items() if v is not None})
    return context


class ConfigurationError(AdaptiveEngineError):
    """Raised when configuration cannot be loaded or is invalid."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        validation_errors: Optional[List[Any]] = None,
        **kwargs
    ):
        context = _with_context(kwargs, config_path=config_path, validation_errors=validation_errors)
        super().__init__(message=message, error_code="CONFIG_ERROR", context=context, **kwargs)


class RegistryError(AdaptiveEngineError):
    """Raised when an object cannot be registered as a strategy."""

    def __init__(self, message: str, strategy_id: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, strategy_id=strategy_id)
        super().__init__(message=message, error_code="REGISTRY_ERROR", context=context, **kwargs)


class StrategyExecutionError(AdaptiveEngineError):
    """Raised by a strategy whose execution failed as a whole."""

    def __init__(
        self,
        message: str,
        strategy_id: Optional[str] = None,
        adaptation_type: Optional[str] = None,
        **kwargs
    ):
        context = _with_context(kwargs, strategy_id=strategy_id, adaptation_type=adaptation_type)
        super().__init__(message=message, error_code="STRATEGY_EXECUTION_ERROR", context=context, **kwargs)


class EffectorError(AdaptiveEngineError):
    """Raised when an effector fails to change a live knob."""

    def __init__(
        self,
        message: str,
        knob: Optional[str] = None,
        effector: Optional[str] = None,
        **kwargs
    ):
        context = _with_context(kwargs, knob=knob, effector=effector)
        super().__init__(message=message, error_code="EFFECTOR_ERROR", context=context, **kwargs)


class DataStoreError(AdaptiveEngineError):
    """Raised when data storage errors occur."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        entity_type: Optional[str] = None,
        **kwargs
    ):
        context = _with_context(kwargs, operation=operation, entity_type=entity_type)
        super().__init__(message=message, error_code="DATA_STORE_ERROR", context=context, **kwargs)


class EngineStateError(AdaptiveEngineError):
    """Raised on invalid engine lifecycle transitions."""

    def __init__(self, message: str, current_status: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, current_status=current_status)
        super().__init__(message=message, error_code="ENGINE_STATE_ERROR", context=context, **kwargs)
