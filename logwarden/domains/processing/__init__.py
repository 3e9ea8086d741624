"""Batch processing domain: jobs, orchestration, timeouts and metrics."""

from .config import ProcessingConfig
from .metrics import ProcessingMetrics, get_processing_metrics
from .models import (
    DetectionSelector,
    JobStatus,
    MetricEvent,
    MetricsSummary,
    ProcessingJob,
    ProcessingStats,
)
from .orchestrator import BatchOrchestrator
from .selector import build_plan, parse_selector, resolve_selector
from .store import InMemoryJobStore, JobNotFoundError, JobStore
from .timeout import ProcessingTimeoutManager

__all__ = [
    "BatchOrchestrator",
    "DetectionSelector",
    "InMemoryJobStore",
    "JobNotFoundError",
    "JobStatus",
    "JobStore",
    "MetricEvent",
    "MetricsSummary",
    "ProcessingConfig",
    "ProcessingJob",
    "ProcessingMetrics",
    "ProcessingStats",
    "ProcessingTimeoutManager",
    "build_plan",
    "get_processing_metrics",
    "parse_selector",
    "resolve_selector",
]
