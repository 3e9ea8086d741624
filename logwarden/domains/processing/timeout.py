"""Processing-timeout sweep for jobs stuck in the processing state."""

import asyncio
import contextlib
from collections import defaultdict
from datetime import UTC, datetime, timedelta

import structlog

from .config import TimeoutConfig
from .models import JobStatus, ProcessingJob, ProcessingStats, StatusStats
from .store import JobNotFoundError, JobStore

logger = structlog.get_logger()


class ProcessingTimeoutManager:
    """Periodically fails jobs that have been processing for too long.

    The limit depends on file size: files above ``large_file_bytes`` get the
    shorter ``large_file_timeout_minutes`` ceiling.
    """

    def __init__(self, store: JobStore, config: TimeoutConfig | None = None) -> None:
        self._store = store
        self._config = config or TimeoutConfig()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop; the first sweep runs immediately."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(
            "timeout_manager_started",
            interval_seconds=self._config.sweep_interval_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("timeout_manager_stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.cleanup_stuck_jobs()
            except Exception:
                logger.exception("timeout_sweep_error")
            await asyncio.sleep(self._config.sweep_interval_seconds)

    def timeout_minutes_for(self, job: ProcessingJob) -> int:
        if job.file_size_bytes > self._config.large_file_bytes:
            return self._config.large_file_timeout_minutes
        return self._config.max_processing_minutes

    @staticmethod
    def _running_minutes(job: ProcessingJob, now: datetime) -> int:
        if job.started_at is None:
            return 0
        return int((now - job.started_at).total_seconds() // 60)

    async def cleanup_stuck_jobs(self, now: datetime | None = None) -> list[ProcessingJob]:
        """Fail every processing job older than its limit. Returns the failed jobs."""
        now = now or datetime.now(UTC)
        timed_out: list[ProcessingJob] = []

        for job in await self._store.list_jobs(JobStatus.PROCESSING):
            if job.started_at is None:
                continue
            limit = self.timeout_minutes_for(job)
            if job.started_at >= now - timedelta(minutes=limit):
                continue

            running = self._running_minutes(job, now)
            logger.warning(
                "job_timed_out",
                job_id=job.job_id,
                file_name=job.file_name,
                running_minutes=running,
                limit_minutes=limit,
            )
            timed_out.append(
                await self._store.update_job(
                    job.job_id,
                    status=JobStatus.FAILED,
                    completed_at=now,
                    error_message=(
                        f"Processing timed out after {running} minutes (limit: {limit} minutes)"
                    ),
                )
            )

        if timed_out:
            logger.info("stuck_jobs_cleaned", count=len(timed_out))
        else:
            logger.debug("no_stuck_jobs")
        return timed_out

    async def check_job_timeout(self, job_id: str, now: datetime | None = None) -> bool:
        """True when the job has been running at least as long as its limit."""
        try:
            job = await self._store.get_job(job_id)
        except JobNotFoundError:
            return False
        if job.started_at is None:
            return False
        now = now or datetime.now(UTC)
        return self._running_minutes(job, now) >= self.timeout_minutes_for(job)

    async def get_processing_stats(self, now: datetime | None = None) -> ProcessingStats:
        now = now or datetime.now(UTC)
        cfg = self._config
        window_start = now - timedelta(hours=cfg.stats_window_hours)
        long_running_cutoff = now - timedelta(minutes=cfg.long_running_minutes)

        recent: dict[JobStatus, list[ProcessingJob]] = defaultdict(list)
        long_running = 0
        for job in await self._store.list_jobs():
            if job.started_at is None or job.started_at <= window_start:
                continue
            recent[job.status].append(job)
            if job.status == JobStatus.PROCESSING and job.started_at < long_running_cutoff:
                long_running += 1

        by_status = []
        for status, jobs in recent.items():
            times = [j.analysis_time_ms for j in jobs if j.analysis_time_ms is not None]
            by_status.append(
                StatusStats(
                    status=status,
                    count=len(jobs),
                    avg_time_ms=sum(times) / len(times) if times else None,
                    max_time_ms=max(times) if times else None,
                )
            )

        return ProcessingStats(
            last_24_hours=by_status,
            long_running_jobs=long_running,
            max_timeout_minutes=cfg.max_processing_minutes,
            large_file_timeout_minutes=cfg.large_file_timeout_minutes,
            cleanup_interval_minutes=cfg.sweep_interval_seconds / 60,
        )
