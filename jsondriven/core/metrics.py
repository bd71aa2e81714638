import time
import inspect
import logging
from functools import wraps
from typing import Optional

from prometheus_client import Counter, Histogram
from prometheus_client.core import CollectorRegistry

from jsondriven import config
from jsondriven.exceptions import InvalidOperationState, OperationCancelled

logger = logging.getLogger(__name__)

# Prometheus Registry
REGISTRY = CollectorRegistry()

operations_total = Counter(
    'jsondriven_operations_total',
    'Total collaborator calls made by test operations',
    ['operation', 'mode', 'status'],
    registry=REGISTRY
)

operation_duration_seconds = Histogram(
    'jsondriven_operation_duration_seconds',
    'Collaborator call duration in seconds',
    ['operation', 'mode'],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
    registry=REGISTRY
)

assertions_total = Counter(
    'jsondriven_assertions_total',
    'Result assertions by outcome',
    ['operation', 'status'],
    registry=REGISTRY
)


class MetricsCollector:
    """Records interpreter metrics to Prometheus."""

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = config.METRICS_ENABLED if enabled is None else enabled

    def record_call(self, operation: str, mode: str, duration_seconds: float, success: bool):
        if not self.enabled:
            return
        status = "success" if success else "error"
        operations_total.labels(operation=operation, mode=mode, status=status).inc()
        operation_duration_seconds.labels(operation=operation, mode=mode).observe(duration_seconds)

    def record_assertion(self, operation: str, passed: bool):
        if not self.enabled:
            return
        assertions_total.labels(operation=operation, status="passed" if passed else "failed").inc()


metrics_collector = MetricsCollector()


def _call_attempted(error: Optional[BaseException]) -> bool:
    """False when ``act`` was rejected before any collaborator call was made."""
    if isinstance(error, InvalidOperationState):
        return False
    if isinstance(error, OperationCancelled):
        return error.during_call
    return True


def _record_execution(operation, start_time: float, error: Optional[BaseException]):
    if operation.mode is None or not _call_attempted(error):
        return
    duration = time.perf_counter() - start_time
    mode_value = getattr(operation.mode, "value", str(operation.mode))
    success = error is None
    metrics_collector.record_call(operation.name, mode_value, duration, success)
    logger.debug(
        f"Operation executed: {operation.name}",
        extra={
            'operation': operation.name,
            'mode': mode_value,
            'duration_ms': duration * 1000,
            'success': success,
        }
    )


def track_execution(func):
    """
    Decorator that times an operation's ``act`` methods, sync or async.

    Calls rejected before reaching the collaborator (wrong phase, missing
    target, token already cancelled) are not recorded.

    Usage:
    @track_execution
    async def act(self, mode, session=None, cancellation=None):
        ...
    """
    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(self, *args, **kwargs):
            start_time = time.perf_counter()
            error = None
            try:
                return await func(self, *args, **kwargs)
            except BaseException as e:
                error = e
                raise
            finally:
                _record_execution(self, start_time, error)

        return async_wrapper

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        start_time = time.perf_counter()
        error = None
        try:
            return func(self, *args, **kwargs)
        except BaseException as e:
            error = e
            raise
        finally:
            _record_execution(self, start_time, error)

    return wrapper
