"""
Monitoring & Observability
JSON log formatting (LOG_FORMAT=json) and operation timing.
"""

from datetime import datetime
from functools import wraps
from typing import Any, Callable, Optional
import asyncio
import json
import logging
import time

logger = logging.getLogger(__name__)

# LogRecord attributes copied into JSON output when a caller passes them via `extra`
CONTEXT_FIELDS = ("duration_ms", "trip_id", "operation")


# ============================================================================
# STRUCTURED LOGGING
# ============================================================================

class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

def _report(operation: str, started: float, error: Optional[Exception] = None) -> None:
    elapsed = round((time.perf_counter() - started) * 1000, 1)
    extra = {"duration_ms": elapsed, "operation": operation}
    if error is None:
        logger.info(f"{operation} completed in {elapsed:.0f}ms", extra=extra)
    else:
        logger.error(f"{operation} failed after {elapsed:.0f}ms: {error}", extra=extra)


def track_performance(operation_name: str):
    """Log how long the wrapped call took (sync or async). Exceptions propagate."""
    def decorator(func: Callable) -> Callable:
        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _report(operation_name, started, e)
                    raise
                _report(operation_name, started)
                return result
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(operation_name, started, e)
                raise
            _report(operation_name, started)
            return result
        return sync_wrapper

    return decorator
