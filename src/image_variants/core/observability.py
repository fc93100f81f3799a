"""Context-tagged log lines and stage timings for pipeline runs."""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional

from .logging_config import get_logger


@dataclass
class LogContext:
    """Tags every line logged for one pipeline run."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_metadata(self, **metadata: Any) -> "LogContext":
        return replace(self, metadata={**self.metadata, **metadata})


def render(
    message: str, context: Optional[LogContext], fields: Dict[str, Any]
) -> str:
    """Format ``[operation] [correlation id] message (key=value, ...)``."""
    prefix = ""
    if context is not None:
        prefix = f"[{context.correlation_id}] "
        if context.operation:
            prefix = f"[{context.operation}] {prefix}"
        fields = {**context.metadata, **fields}

    if not fields:
        return f"{prefix}{message}"
    pairs = ", ".join(f"{key}={value}" for key, value in fields.items())
    return f"{prefix}{message} ({pairs})"


class StructuredLogger:
    """``LoggerProtocol`` implementation on top of the package loggers."""

    def __init__(self, name: str):
        self._logger = get_logger(name)

    def log(
        self,
        level: int,
        message: str,
        context: Optional[LogContext] = None,
        **fields: Any,
    ) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, render(message, context, fields))

    def debug(self, message: str, context: Optional[LogContext] = None, **fields):
        self.log(logging.DEBUG, message, context, **fields)

    def info(self, message: str, context: Optional[LogContext] = None, **fields):
        self.log(logging.INFO, message, context, **fields)

    def warning(self, message: str, context: Optional[LogContext] = None, **fields):
        self.log(logging.WARNING, message, context, **fields)

    def error(self, message: str, context: Optional[LogContext] = None, **fields):
        self.log(logging.ERROR, message, context, **fields)


@dataclass
class StageTiming:
    """One timed run of a pipeline stage (a compression, a PUT, a confirm)."""

    operation: str
    started: float
    finished: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return self.finished - self.started


class MetricsCollector:
    """
    In-memory store of ``StageTiming`` records, safe to share across threads.
    """

    def __init__(self):
        self._timings: List[StageTiming] = []
        self._lock = threading.Lock()

    def record(self, timing: StageTiming) -> None:
        with self._lock:
            self._timings.append(timing)

    def get_metrics(self, operation: Optional[str] = None) -> List[StageTiming]:
        """Recorded timings in completion order, optionally for one operation."""
        with self._lock:
            return [
                timing
                for timing in self._timings
                if operation is None or timing.operation == operation
            ]

    def get_summary(self, operation: str) -> Dict[str, Any]:
        """Count, failures and latency (milliseconds) for ``operation``."""
        timings = self.get_metrics(operation)
        if not timings:
            return {}

        durations_ms = [timing.duration * 1000 for timing in timings]
        failed = sum(1 for timing in timings if not timing.success)
        return {
            "operation": operation,
            "count": len(timings),
            "failed": failed,
            "avg_ms": round(sum(durations_ms) / len(durations_ms), 3),
            "max_ms": round(max(durations_ms), 3),
        }


@contextmanager
def measure(
    operation: str,
    metrics_collector: Optional[MetricsCollector] = None,
    **metadata: Any,
) -> Iterator[Dict[str, Any]]:
    """
    Time the enclosed block and record a ``StageTiming``.

    The yielded dict is merged into the timing's metadata, so callers can
    attach values that are only known once the block has run. Nothing is
    recorded when ``metrics_collector`` is None.
    """
    started = time.time()
    extra: Dict[str, Any] = {}
    error_message = None
    success = False
    try:
        yield extra
        success = True
    except Exception as exc:
        error_message = str(exc)
        raise
    finally:
        if metrics_collector is not None:
            metrics_collector.record(
                StageTiming(
                    operation=operation,
                    started=started,
                    finished=time.time(),
                    success=success,
                    error_message=error_message,
                    metadata={**metadata, **extra},
                )
            )
