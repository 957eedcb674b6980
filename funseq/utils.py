"""
Utility functions for funseq: logging, settings, errors and diagnostics.
"""

import gc
import logging
import os
import sys
import time
import tracemalloc
from typing import Any, Callable, Dict, List, Optional, Tuple

import psutil

from .models import PerformanceRecord, SequenceSettings
from .protocol import EXHAUSTED, Producer, ProductionResult

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'


# ---------- Errors ----------

class SequenceError(Exception):
    """Base class for errors raised by funseq itself."""
    pass


class InvalidRangeError(SequenceError, ValueError):
    """Raised when a numeric range can never make progress."""
    pass


class MaterializationLimitError(SequenceError):
    """Raised when materializing a sequence exceeds the configured limit."""

    def __init__(self, limit: int):
        super().__init__(f"Sequence produced more than {limit} elements while materializing")
        self.limit = limit


# ---------- Logging ----------

def setup_logging(level="WARNING") -> logging.Logger:
    """Attach a stream handler to the funseq logger and set its level"""
    package_logger = logging.getLogger("funseq")
    if not any(getattr(h, "_funseq_handler", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._funseq_handler = True
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return package_logger


# ---------- Settings ----------

_settings: Optional[SequenceSettings] = None


def get_settings() -> SequenceSettings:
    """Return the active settings, loading them from the environment on first use"""
    global _settings
    if _settings is None:
        _settings = SequenceSettings.from_env()
        # Only an explicit FUNSEQ_LOG_LEVEL touches the host's logger level
        if "log_level" in _settings.model_fields_set:
            logging.getLogger("funseq").setLevel(_settings.log_level)
    return _settings


def configure(**overrides) -> SequenceSettings:
    """Validate and install new settings on top of the current ones.

    The funseq logger level changes only when ``log_level`` is passed;
    handlers are never attached here, see setup_logging().
    """
    global _settings
    current = get_settings().model_dump(exclude_unset=True)
    current.update(overrides)
    _settings = SequenceSettings(**current)
    if "log_level" in overrides:
        logging.getLogger("funseq").setLevel(_settings.log_level)
    logger.debug("Settings updated: %s", _settings)
    return _settings


def reset_settings():
    """Forget installed settings; the next get_settings() reloads from env"""
    global _settings
    _settings = None


# ---------- Tracing ----------

class TracingProducer:
    """Logs every production result of the wrapped producer at DEBUG."""

    def __init__(self, producer: Producer, label: str):
        self._producer = producer
        self._label = label
        self._pulls = 0

    def produce_next(self) -> ProductionResult:
        result = self._producer.produce_next()
        if result is EXHAUSTED:
            logger.debug("%s: exhausted after %d pulls", self._label, self._pulls)
        else:
            logger.debug("%s: pull %d -> %r", self._label, self._pulls, result.value)
            self._pulls += 1
        return result


class PullCounter:
    """Wraps a base factory and counts elements handed out across all passes."""

    def __init__(self, factory: Callable[[], Producer]):
        self._factory = factory
        self.pulls = 0
        self.starts = 0

    def __call__(self) -> Producer:
        self.starts += 1
        return _CountingProducer(self._factory(), self)


class _CountingProducer:

    def __init__(self, producer: Producer, counter: PullCounter):
        self._producer = producer
        self._counter = counter

    def produce_next(self) -> ProductionResult:
        result = self._producer.produce_next()
        if result is not EXHAUSTED:
            self._counter.pulls += 1
        return result


def count_pulls(factory: Callable[[], Producer]) -> PullCounter:
    """Instrument a base factory so callers can see how much was produced"""
    return PullCounter(factory)


# ---------- Performance measurement ----------

_performance_metrics: List[PerformanceRecord] = []


def measure_performance(operation_name: str, func, *args, **kwargs) -> Tuple[Any, PerformanceRecord]:
    """Run ``func`` with timing and memory tracking, returning (result, record)

    An already running tracemalloc session is left running; the peak is then
    reported relative to the memory traced when the call started.
    """
    gc.collect()
    started_tracing = not tracemalloc.is_tracing()
    if started_tracing:
        tracemalloc.start()
    baseline = 0 if started_tracing else tracemalloc.get_traced_memory()[0]
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
    except Exception as e:
        record = PerformanceRecord(
            operation=operation_name,
            execution_time_ms=(time.perf_counter() - start_time) * 1000,
            memory_peak_mb=_traced_peak_mb(baseline),
            rss_mb=_process_rss_mb(),
            success=False,
            error=str(e)
        )
        _performance_metrics.append(record)
        logger.debug("%s failed after %.2f ms", operation_name, record.execution_time_ms)
        raise
    else:
        peak_mb = _traced_peak_mb(baseline)
    finally:
        if started_tracing:
            tracemalloc.stop()

    record = PerformanceRecord(
        operation=operation_name,
        execution_time_ms=(time.perf_counter() - start_time) * 1000,
        memory_peak_mb=peak_mb,
        rss_mb=_process_rss_mb(),
        result_size=len(result) if hasattr(result, "__len__") else None
    )
    _performance_metrics.append(record)
    logger.debug("%s took %.2f ms", operation_name, record.execution_time_ms)
    return result, record


def _traced_peak_mb(baseline: int) -> float:
    _, peak = tracemalloc.get_traced_memory()
    return max(peak - baseline, 0) / 1024 / 1024


def _process_rss_mb() -> float:
    return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all recorded measurements"""
    count = len(_performance_metrics)
    if count == 0:
        return {
            "total_operations": 0,
            "total_time_ms": 0.0,
            "avg_time_ms": 0.0,
            "max_memory_peak_mb": 0.0,
            "failures": 0
        }

    total_time = sum(r.execution_time_ms for r in _performance_metrics)
    return {
        "total_operations": count,
        "total_time_ms": total_time,
        "avg_time_ms": total_time / count,
        "max_memory_peak_mb": max(r.memory_peak_mb for r in _performance_metrics),
        "failures": sum(1 for r in _performance_metrics if not r.success)
    }


def clear_performance_metrics():
    """Clear all recorded measurements"""
    _performance_metrics.clear()
