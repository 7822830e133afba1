"""
Structured Logging for the Adaptation Engine

Produces structured log records carrying the correlation ID of the current
evaluation pass, the adaptation need being handled and the strategy acting on
it. Records are formatted as JSON or human-readable text and written to
console or file handlers.
"""

import json
import sys
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union

ROOT_LOGGER_NAME = "adaptive_engine"

correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
need_id_var: ContextVar[Optional[str]] = ContextVar('need_id', default=None)
strategy_id_var: ContextVar[Optional[str]] = ContextVar('strategy_id', default=None)


class LogLevel(Enum):
    """Log levels, ordered by severity."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4,
}


class LogFormatter(ABC):
    """Abstract base class for log formatters"""

    @abstractmethod
    def format(self, record: Dict[str, Any]) -> str:
        pass


class JSONLogFormatter(LogFormatter):
    """One JSON object per line."""

    def format(self, record: Dict[str, Any]) -> str:
        return json.dumps(record, default=str, ensure_ascii=False)


class HumanReadableFormatter(LogFormatter):
    """Single-line text format for local runs."""

    def format(self, record: Dict[str, Any]) -> str:
        line = f"[{record.get('timestamp', '')}] {record.get('level', '')} {record.get('logger', '')}: {record.get('message', '')}"

        ids = [
            f"{key}={record[key]}"
            for key in ('correlation_id', 'need_id', 'strategy_id')
            if record.get(key)
        ]
        if ids:
            line += f" [{' '.join(ids)}]"

        if record.get('extra'):
            extra_str = ', '.join(f"{k}={v}" for k, v in record['extra'].items())
            line += f" [{extra_str}]"

        return line


class LogHandler(ABC):
    """Abstract base class for log handlers"""

    def __init__(self, formatter: LogFormatter):
        self.formatter = formatter

    @abstractmethod
    def emit(self, record: Dict[str, Any]) -> None:
        pass


class ConsoleLogHandler(LogHandler):
    """Writes records to a text stream (stdout by default)."""

    def __init__(self, formatter: LogFormatter, stream: TextIO = sys.stdout):
        super().__init__(formatter)
        self.stream = stream

    def emit(self, record: Dict[str, Any]) -> None:
        self.stream.write(self.formatter.format(record) + '\n')
        self.stream.flush()


class FileLogHandler(LogHandler):
    """Appends records to a file, creating parent directories."""

    def __init__(self, formatter: LogFormatter, file_path: Union[str, Path]):
        super().__init__(formatter)
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: Dict[str, Any]) -> None:
        with open(self.file_path, 'a', encoding='utf-8') as f:
            f.write(self.formatter.format(record) + '\n')


class MemoryLogHandler(LogHandler):
    """Keeps records in memory; used for inspection in tests and diagnostics."""

    def __init__(self, formatter: Optional[LogFormatter] = None):
        super().__init__(formatter or JSONLogFormatter())
        self.records: List[Dict[str, Any]] = []

    def emit(self, record: Dict[str, Any]) -> None:
        self.records.append(dict(record))

    def clear(self) -> None:
        self.records.clear()

    def messages(self, level: Optional[LogLevel] = None) -> List[str]:
        return [
            r['message'] for r in self.records
            if level is None or r.get('level') == level.value
        ]


class StructuredLogger:
    """
    Structured logger with correlation and adaptation context.

    A logger without handlers of its own hands records to its nearest dotted
    ancestor, so ``adaptive_engine.orchestrator`` writes through handlers
    configured on ``adaptive_engine``.
    """

    def __init__(self, name: str, level: Optional[LogLevel] = None):
        self.name = name
        self.level = level
        self.handlers: List[LogHandler] = []

    def add_handler(self, handler: LogHandler) -> None:
        self.handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def set_level(self, level: Optional[LogLevel]) -> None:
        self.level = level

    def _parent(self) -> Optional["StructuredLogger"]:
        name = self.name
        while '.' in name:
            name = name.rsplit('.', 1)[0]
            if name in _loggers:
                return _loggers[name]
        return None

    def effective_level(self) -> LogLevel:
        logger: Optional[StructuredLogger] = self
        while logger is not None:
            if logger.level is not None:
                return logger.level
            logger = logger._parent()
        return LogLevel.INFO

    def effective_handlers(self) -> List[LogHandler]:
        logger: Optional[StructuredLogger] = self
        while logger is not None:
            if logger.handlers:
                return list(logger.handlers)
            logger = logger._parent()
        return []

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.rank >= self.effective_level().rank

    def _create_log_record(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = {
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'level': level.value,
            'logger': self.name,
            'message': message,
            'correlation_id': correlation_id_var.get(),
            'need_id': need_id_var.get(),
            'strategy_id': strategy_id_var.get(),
        }
        if extra:
            record['extra'] = extra
        return {k: v for k, v in record.items() if v is not None}

    def _log(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None,
             exc_info: Optional[BaseException] = None) -> None:
        if not self.is_enabled_for(level):
            return

        if exc_info is not None:
            extra = dict(extra or {})
            extra['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info),
                'module': type(exc_info).__module__
            }

        record = self._create_log_record(level, message, extra)
        for handler in self.effective_handlers():
            try:
                handler.emit(record)
            except Exception as e:
                sys.stderr.write(f"Logging handler failed: {e}\n")

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None,
                exc_info: Optional[BaseException] = None) -> None:
        self._log(LogLevel.WARNING, message, extra, exc_info)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None,
              exc_info: Optional[BaseException] = None) -> None:
        self._log(LogLevel.ERROR, message, extra, exc_info)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None,
                 exc_info: Optional[BaseException] = None) -> None:
        self._log(LogLevel.CRITICAL, message, extra, exc_info)

    @contextmanager
    def correlation_context(self, correlation_id: Optional[str] = None):
        """Tag every record emitted inside the block with one correlation ID."""
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            yield correlation_id
        finally:
            correlation_id_var.reset(token)

    @contextmanager
    def need_context(self, need_id: str):
        token = need_id_var.set(need_id)
        try:
            yield need_id
        finally:
            need_id_var.reset(token)

    @contextmanager
    def strategy_context(self, strategy_id: str):
        token = strategy_id_var.set(strategy_id)
        try:
            yield strategy_id
        finally:
            strategy_id_var.reset(token)


_loggers: Dict[str, StructuredLogger] = {}
_loggers_lock = threading.Lock()


def get_logger(name: str, level: Optional[LogLevel] = None) -> StructuredLogger:
    """Get or create a logger instance."""
    with _loggers_lock:
        if name not in _loggers:
            _loggers[name] = StructuredLogger(name, level)
        return _loggers[name]


def configure_logging(config=None) -> StructuredLogger:
    """
    Configure the root engine logger from a LoggingConfiguration.

    Replaces any handlers previously installed on the root logger. With no
    configuration, JSON records at INFO level go to stdout.
    """
    level = LogLevel(config.level) if config is not None else LogLevel.INFO
    use_json = config is None or config.format == "json"
    output = config.output if config is not None else "console"

    formatter = JSONLogFormatter() if use_json else HumanReadableFormatter()
    root_logger = get_logger(ROOT_LOGGER_NAME)
    root_logger.set_level(level)
    root_logger.handlers.clear()

    if output in ("console", "both"):
        root_logger.add_handler(ConsoleLogHandler(formatter))
    if output in ("file", "both") and config is not None and config.file_path:
        root_logger.add_handler(FileLogHandler(formatter, config.file_path))

    return root_logger


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def get_need_id() -> Optional[str]:
    return need_id_var.get()


def get_strategy_id() -> Optional[str]:
    return strategy_id_var.get()
