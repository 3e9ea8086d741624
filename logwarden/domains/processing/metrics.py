"""Buffered processing metrics with latency summaries."""

from collections import deque

import numpy as np
import structlog

from .config import MetricsConfig
from .models import MetricEvent, MetricEventType, MetricsSummary, MetricStatus

logger = structlog.get_logger()


class ProcessingMetrics:
    """Records per-batch and per-job outcome events.

    Events accumulate in a bounded buffer until flushed; running counters and
    a window of batch latencies survive flushes so summary() covers the
    recorder's whole lifetime.
    """

    def __init__(self, config: MetricsConfig | None = None) -> None:
        self._config = config or MetricsConfig()
        self._buffer: deque[MetricEvent] = deque(maxlen=self._config.max_buffer_size)
        self._latencies: deque[float] = deque(maxlen=self._config.max_latency_samples)
        self._counts = {"events": 0, "batches": 0, "jobs": 0, "failures": 0, "anomalies": 0}

    def _record(self, event: MetricEvent) -> MetricEvent:
        self._buffer.append(event)
        self._counts["events"] += 1
        if event.status == MetricStatus.FAILURE:
            self._counts["failures"] += 1
        return event

    def record_batch(
        self,
        job_id: str,
        detection_method: str,
        processing_time_ms: float,
        anomalies_found: int = 0,
        status: MetricStatus = MetricStatus.SUCCESS,
        error_message: str | None = None,
    ) -> MetricEvent:
        self._counts["batches"] += 1
        self._counts["anomalies"] += anomalies_found
        self._latencies.append(processing_time_ms)
        return self._record(
            MetricEvent(
                event_type=MetricEventType.BATCH_PROCESSED,
                status=status,
                job_id=job_id,
                detection_method=detection_method,
                processing_time_ms=processing_time_ms,
                anomalies_found=anomalies_found,
                error_message=error_message,
            )
        )

    def record_job(
        self,
        job_id: str,
        detection_method: str,
        processing_time_ms: float,
        anomalies_found: int = 0,
        status: MetricStatus = MetricStatus.SUCCESS,
        error_message: str | None = None,
    ) -> MetricEvent:
        self._counts["jobs"] += 1
        event = self._record(
            MetricEvent(
                event_type=MetricEventType.JOB_FINISHED,
                status=status,
                job_id=job_id,
                detection_method=detection_method,
                processing_time_ms=processing_time_ms,
                anomalies_found=anomalies_found,
                error_message=error_message,
            )
        )
        logger.info(
            "job_metrics_recorded",
            job_id=job_id,
            detection_method=detection_method,
            status=str(status),
            processing_time_ms=round(processing_time_ms, 1),
            anomalies_found=anomalies_found,
        )
        return event

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def flush(self) -> list[MetricEvent]:
        """Drain and return buffered events."""
        events = list(self._buffer)
        self._buffer.clear()
        if events:
            logger.info("metrics_flushed", count=len(events))
        return events

    def summary(self) -> MetricsSummary:
        total = self._counts["events"]
        latencies = np.array(self._latencies, dtype=float)
        return MetricsSummary(
            total_events=total,
            batches=self._counts["batches"],
            jobs=self._counts["jobs"],
            failures=self._counts["failures"],
            success_rate=round(1 - self._counts["failures"] / total, 4) if total else 1.0,
            avg_batch_ms=float(np.mean(latencies)) if latencies.size else 0.0,
            p95_batch_ms=float(np.percentile(latencies, 95)) if latencies.size else 0.0,
            anomalies_found=self._counts["anomalies"],
        )


_metrics: ProcessingMetrics | None = None


def get_processing_metrics() -> ProcessingMetrics:
    """Get or create the singleton metrics recorder."""
    global _metrics
    if _metrics is None:
        _metrics = ProcessingMetrics()
    return _metrics
