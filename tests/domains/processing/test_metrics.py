"""Tests for buffered processing metrics."""

from logwarden.domains.processing.config import MetricsConfig
from logwarden.domains.processing.metrics import ProcessingMetrics
from logwarden.domains.processing.models import MetricEventType, MetricStatus


class TestProcessingMetrics:
    def test_empty_summary(self):
        summary = ProcessingMetrics().summary()
        assert summary.total_events == 0
        assert summary.success_rate == 1.0
        assert summary.p95_batch_ms == 0.0

    def test_records_and_summarizes(self):
        metrics = ProcessingMetrics()
        for ms in range(1, 101):
            metrics.record_batch("job-1", "traditional", float(ms), anomalies_found=1)
        metrics.record_job("job-1", "traditional", 5000.0, anomalies_found=100)

        summary = metrics.summary()
        assert summary.total_events == 101
        assert summary.batches == 100
        assert summary.jobs == 1
        assert summary.anomalies_found == 100
        assert summary.avg_batch_ms == 50.5
        assert 95.0 <= summary.p95_batch_ms <= 96.0

    def test_failures_lower_success_rate(self):
        metrics = ProcessingMetrics()
        metrics.record_batch("job-1", "advanced", 10.0)
        metrics.record_batch(
            "job-1", "advanced", 12.0, status=MetricStatus.FAILURE, error_message="boom"
        )
        assert metrics.summary().success_rate == 0.5

    def test_flush_drains_buffer_but_keeps_totals(self):
        metrics = ProcessingMetrics()
        metrics.record_batch("job-1", "traditional", 10.0)
        metrics.record_job("job-1", "traditional", 10.0)
        assert metrics.pending == 2

        events = metrics.flush()
        assert [e.event_type for e in events] == [
            MetricEventType.BATCH_PROCESSED,
            MetricEventType.JOB_FINISHED,
        ]
        assert metrics.pending == 0
        assert metrics.summary().total_events == 2

    def test_buffer_bounded(self):
        metrics = ProcessingMetrics(MetricsConfig(max_buffer_size=3))
        for _ in range(5):
            metrics.record_batch("job-1", "traditional", 1.0)
        assert metrics.pending == 3
        assert metrics.summary().batches == 5
