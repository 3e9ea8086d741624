"""Batch orchestrator: drives the selected detector over a job's records."""

import time
from datetime import UTC, datetime

import structlog

from logwarden.domains.logs.models import Anomaly, LogEntry
from logwarden.domains.logs.parser import parse_log_file
from logwarden.domains.semantic.config import SemanticConfig
from logwarden.domains.semantic.providers import ProviderRegistry

from .config import ProcessingConfig, default_config
from .metrics import ProcessingMetrics, get_processing_metrics
from .models import JobStatus, MetricStatus, ProcessingJob
from .selector import Selector, build_plan, parse_selector
from .store import JobStore

logger = structlog.get_logger()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class BatchOrchestrator:
    """Runs one job at a time per call; batches within a job are sequential.

    Each job gets a freshly built detector, persists anomalies that are
    flagged and clear the persistence threshold, and records per-batch
    timing. Failures mark the job failed instead of propagating.
    """

    def __init__(
        self,
        store: JobStore,
        metrics: ProcessingMetrics | None = None,
        config: ProcessingConfig | None = None,
        registry: ProviderRegistry | None = None,
        semantic_config: SemanticConfig | None = None,
    ) -> None:
        self._store = store
        self._metrics = metrics or get_processing_metrics()
        self._config = config or default_config
        self._registry = registry
        self._semantic_config = semantic_config

    def should_persist(self, anomaly: Anomaly) -> bool:
        return anomaly.is_anomaly and anomaly.risk_score >= self._config.batch.persistence_threshold

    async def _failed_by_sweep(self, job_id: str) -> ProcessingJob | None:
        """The job, if the timeout sweep already failed it while it was running."""
        current = await self._store.get_job(job_id)
        if current.status != JobStatus.FAILED:
            return None
        logger.warning(
            "job_finished_after_timeout",
            job_id=job_id,
            error_message=current.error_message,
        )
        return current

    async def process_log_file(
        self, job: ProcessingJob, raw_text: str, selector: Selector | str | dict
    ) -> ProcessingJob:
        entries = parse_log_file(raw_text)
        logger.info("log_file_parsed", job_id=job.job_id, entries=len(entries))
        return await self.process_entries(job, entries, selector)

    async def process_entries(
        self, job: ProcessingJob, entries: list[LogEntry], selector: Selector | str | dict
    ) -> ProcessingJob:
        job_id = job.job_id
        started = time.perf_counter()
        total = len(entries)
        found = 0
        label = str(selector)

        await self._store.update_job(
            job_id,
            status=JobStatus.PROCESSING,
            started_at=datetime.now(UTC),
            total_entries=total,
            processed_entries=0,
            progress=0,
        )

        try:
            plan = build_plan(
                parse_selector(selector),
                self._config.batch,
                registry=self._registry,
                semantic_config=self._semantic_config,
            )
            label = plan.label
            logger.info(
                "job_processing_started",
                job_id=job_id,
                detection_method=label,
                entries=total,
                batch_size=plan.batch_size,
            )

            for offset in range(0, total, plan.batch_size):
                batch = entries[offset : offset + plan.batch_size]
                batch_started = time.perf_counter()
                try:
                    results = await plan.detect(batch)
                except Exception as exc:
                    self._metrics.record_batch(
                        job_id,
                        label,
                        _elapsed_ms(batch_started),
                        status=MetricStatus.FAILURE,
                        error_message=str(exc),
                    )
                    raise

                kept = [a for a in results if self.should_persist(a)]
                if kept:
                    await self._store.save_anomalies(job_id, kept)
                found += len(kept)

                processed = min(offset + plan.batch_size, total)
                await self._store.update_job(
                    job_id,
                    processed_entries=processed,
                    anomalies_found=found,
                    progress=min(100, round(processed / total * 100)),
                )
                self._metrics.record_batch(job_id, label, _elapsed_ms(batch_started), len(kept))
                logger.debug(
                    "batch_processed",
                    job_id=job_id,
                    processed=processed,
                    total=total,
                    anomalies=len(kept),
                )

        except Exception as exc:
            elapsed = _elapsed_ms(started)
            logger.exception("job_processing_failed", job_id=job_id, detection_method=label)
            self._metrics.record_job(
                job_id, label, elapsed, found, status=MetricStatus.FAILURE, error_message=str(exc)
            )
            if timed_out := await self._failed_by_sweep(job_id):
                return timed_out
            return await self._store.update_job(
                job_id,
                status=JobStatus.FAILED,
                completed_at=datetime.now(UTC),
                analysis_time_ms=int(elapsed),
                error_message=str(exc),
            )

        elapsed = _elapsed_ms(started)
        self._metrics.record_job(job_id, label, elapsed, found)

        if timed_out := await self._failed_by_sweep(job_id):
            return timed_out

        completed = await self._store.update_job(
            job_id,
            status=JobStatus.COMPLETED,
            progress=100,
            completed_at=datetime.now(UTC),
            analysis_time_ms=int(elapsed),
        )
        logger.info(
            "job_processing_completed",
            job_id=job_id,
            detection_method=label,
            entries=total,
            anomalies_found=found,
            analysis_time_ms=int(elapsed),
        )
        return completed
