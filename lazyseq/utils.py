"""
Utility functions for lazy sequence pipelines

This module provides logging setup, a builder for pipelines declared as data,
and helpers for measuring the time and memory a pipeline run takes.
"""

import time
import gc
import sys
import logging
import tracemalloc
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import EvaluationSettings, get_settings
from .lazy import LazySequence
from .models import PerformanceReport, PerformanceSummary, StageSpec, StageType
from .sources import from_container

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'

# handler installed by the last setup_logging call
_installed_handler: Optional[logging.Handler] = None


def setup_logging(settings: Optional[EvaluationSettings] = None, stream=None) -> logging.Logger:
    """Setup structured logging for the lazyseq package"""
    global _installed_handler
    settings = settings if settings is not None else get_settings()
    package_logger = logging.getLogger('lazyseq')
    package_logger.setLevel(settings.log_level)

    # Replace a handler installed by an earlier call instead of stacking them
    if _installed_handler is not None:
        package_logger.removeHandler(_installed_handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    _installed_handler = handler
    return package_logger


# Global performance tracking
_performance_reports: List[PerformanceReport] = []


def measure_performance(operation_name: str, func, *args, **kwargs) -> PerformanceReport:
    """Measure performance of a function call with memory tracking"""

    # Start memory tracking
    tracemalloc.start()
    gc.collect()

    # Start timing
    start_time = time.perf_counter()

    try:
        # Execute function
        result = func(*args, **kwargs)

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()

        report = PerformanceReport(
            operation=operation_name,
            execution_time_ms=execution_time_ms,
            memory_usage_mb=peak / 1024 / 1024,
            success=True,
            result_size=len(result) if hasattr(result, "__len__") else None,
            timestamp=time.time()
        )
        _performance_reports.append(report)
        logger.info(f"Operation '{operation_name}' completed in {execution_time_ms:.3f}ms")
        return report

    except Exception as e:
        # End timing even on error
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()

        report = PerformanceReport(
            operation=operation_name,
            execution_time_ms=execution_time_ms,
            memory_usage_mb=peak / 1024 / 1024,
            success=False,
            error=str(e),
            timestamp=time.time()
        )
        _performance_reports.append(report)
        logger.error(f"Operation '{operation_name}' failed after {execution_time_ms:.3f}ms: {e}")
        raise

    finally:
        tracemalloc.stop()


def get_performance_summary() -> PerformanceSummary:
    """Get summary of all performance metrics"""
    count = len(_performance_reports)
    if count == 0:
        return PerformanceSummary()

    total_time = sum(r.execution_time_ms for r in _performance_reports)
    total_memory = sum(r.memory_usage_mb for r in _performance_reports)
    return PerformanceSummary(
        total_operations=count,
        failed_operations=sum(1 for r in _performance_reports if not r.success),
        total_time_ms=total_time,
        total_memory_mb=total_memory,
        avg_time_ms=total_time / count,
        avg_memory_mb=total_memory / count
    )


def clear_performance_metrics():
    """Clear all performance metrics"""
    _performance_reports.clear()


def build_pipeline(source: Union[LazySequence, Iterable[Any]],
                   stages: Iterable[Union[StageSpec, Dict[str, Any]]]) -> LazySequence:
    """
    Apply declared stages to a sequence.

    ``source`` is a LazySequence or a container (wrapped with from_container);
    each stage is a StageSpec or a dict validated into one.
    """
    seq = source if isinstance(source, LazySequence) else from_container(source)

    for raw in stages:
        spec = raw if isinstance(raw, StageSpec) else StageSpec.model_validate(raw)

        if spec.type == StageType.FILTER:
            seq = seq.filter(spec.fn)
        elif spec.type == StageType.TRANSFORM:
            seq = seq.transform(spec.fn)
        elif spec.type == StageType.FLAT_EXPAND:
            seq = seq.flat_expand(spec.fn)
        elif spec.type == StageType.LIMIT:
            seq = seq.limit(spec.count)
        elif spec.type == StageType.SKIP:
            seq = seq.skip(spec.count)
        elif spec.type == StageType.DISTINCT:
            seq = seq.distinct(spec.key)
        elif spec.type == StageType.PEEK:
            seq = seq.peek(spec.fn)
        elif spec.type == StageType.TAKE_WHILE:
            seq = seq.take_while(spec.fn)
        elif spec.type == StageType.DROP_WHILE:
            seq = seq.drop_while(spec.fn)
        elif spec.type == StageType.BATCH:
            seq = seq.batch(spec.size)
        elif spec.type == StageType.SORTED:
            seq = seq.sorted(spec.key, spec.reverse)

    return seq
