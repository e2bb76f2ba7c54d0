"""
Metrics collection for CATALOG_ENGINE.

Every record-service operation is timed into a process-wide collector so an
admin dashboard (or a test) can read call counts, latencies and error rates
per entity and operation.
"""

import functools
import inspect
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class OperationMetrics:
    """Metrics for a single operation."""

    operation_name: str
    count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: float = float("inf")
    max_duration_ms: float = 0.0
    error_count: int = 0
    last_execution: datetime | None = None

    @property
    def avg_duration_ms(self) -> float:
        return self.total_duration_ms / self.count if self.count > 0 else 0.0

    @property
    def error_rate(self) -> float:
        """Error rate as percentage."""
        return (self.error_count / self.count * 100) if self.count > 0 else 0.0

    def record(self, duration_ms: float, success: bool = True) -> None:
        self.count += 1
        self.total_duration_ms += duration_ms
        self.min_duration_ms = min(self.min_duration_ms, duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if not success:
            self.error_count += 1
        self.last_execution = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation_name,
            "count": self.count,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "min_duration_ms": (
                round(self.min_duration_ms, 2) if self.min_duration_ms != float("inf") else 0.0
            ),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "error_count": self.error_count,
            "error_rate_percent": round(self.error_rate, 2),
            "last_execution": (self.last_execution.isoformat() if self.last_execution else None),
        }


class MetricsCollector:
    """
    Bounded, thread-safe collector keyed by operation name.

    Keys are evicted least-recently-used first once ``max_metrics`` distinct
    operations have been recorded.
    """

    def __init__(self, max_metrics: int = 1000):
        self._metrics: OrderedDict[str, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True
    ) -> None:
        """
        Record an operation execution.

        Args:
            operation_name: Name of the operation (e.g. "catalog.orientation.add")
            duration_ms: Duration in milliseconds
            success: Whether the operation succeeded
        """
        with self._lock:
            metric = self._metrics.get(operation_name)
            if metric is None:
                if len(self._metrics) >= self._max_metrics:
                    self._metrics.popitem(last=False)
                metric = OperationMetrics(operation_name=operation_name)
                self._metrics[operation_name] = metric
            else:
                self._metrics.move_to_end(operation_name)
            metric.record(duration_ms, success)

    def get_metrics(self, prefix: str | None = None) -> dict[str, Any]:
        """
        Get metrics, optionally only those whose name starts with ``prefix``.
        """
        with self._lock:
            metrics = {
                name: metric.to_dict()
                for name, metric in self._metrics.items()
                if prefix is None or name.startswith(prefix)
            }
            total_operations = len(self._metrics)

        return {
            "timestamp": datetime.now().isoformat(),
            "metrics": metrics,
            "total_operations": total_operations,
        }

    def get_operation_count(self, operation_name: str) -> int:
        with self._lock:
            metric = self._metrics.get(operation_name)
            return metric.count if metric else 0

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def record_operation(operation_name: str, duration_ms: float, success: bool = True) -> None:
    """Record an operation in the global metrics collector."""
    get_metrics_collector().record_operation(operation_name, duration_ms, success)


def timed_operation(operation: str) -> Callable:
    """
    Decorator that times an async method and records it.

    When the bound instance exposes a ``metrics_namespace`` attribute the
    recorded name is ``"<namespace>.<operation>"``, so one service class
    reports separately per entity type.

    Usage:
        class RecordService:
            metrics_namespace = "catalog.orientation"

            @timed_operation("add")
            async def add(self, payload):
                ...
    """

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"timed_operation requires an async function, got {func!r}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            namespace = getattr(args[0], "metrics_namespace", None) if args else None
            name = f"{namespace}.{operation}" if namespace else operation
            start_time = time.perf_counter()
            success = True
            try:
                return await func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                record_operation(name, duration_ms, success)

        return wrapper

    return decorator
