"""Job store abstraction and its in-memory implementation."""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any

import structlog

from logwarden.domains.logs.models import Anomaly

from .models import JobStatus, ProcessingJob

logger = structlog.get_logger()


class JobNotFoundError(LookupError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Processing job not found: {job_id}")
        self.job_id = job_id


class JobStore(ABC):
    """Persistence for processing jobs and the anomalies they produce."""

    @abstractmethod
    async def create_job(self, job: ProcessingJob) -> ProcessingJob: ...

    @abstractmethod
    async def get_job(self, job_id: str) -> ProcessingJob:
        """Return the job or raise JobNotFoundError."""
        ...

    @abstractmethod
    async def update_job(self, job_id: str, **changes: Any) -> ProcessingJob: ...

    @abstractmethod
    async def list_jobs(self, status: JobStatus | None = None) -> list[ProcessingJob]: ...

    @abstractmethod
    async def save_anomalies(self, job_id: str, anomalies: list[Anomaly]) -> int:
        """Persist anomalies for a job; returns how many were written."""
        ...

    @abstractmethod
    async def list_anomalies(self, job_id: str) -> list[Anomaly]: ...


class InMemoryJobStore(JobStore):
    """Process-local store. Suitable for tests and single-instance deployments."""

    def __init__(self) -> None:
        self._jobs: dict[str, ProcessingJob] = {}
        self._anomalies: dict[str, list[Anomaly]] = defaultdict(list)

    async def create_job(self, job: ProcessingJob) -> ProcessingJob:
        self._jobs[job.job_id] = job
        logger.info("job_created", job_id=job.job_id, file_name=job.file_name)
        return job

    async def get_job(self, job_id: str) -> ProcessingJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def update_job(self, job_id: str, **changes: Any) -> ProcessingJob:
        job = await self.get_job(job_id)
        updated = job.model_copy(update=changes)
        self._jobs[job_id] = updated
        return updated

    async def list_jobs(self, status: JobStatus | None = None) -> list[ProcessingJob]:
        jobs = list(self._jobs.values())
        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        return jobs

    async def save_anomalies(self, job_id: str, anomalies: list[Anomaly]) -> int:
        await self.get_job(job_id)
        self._anomalies[job_id].extend(anomalies)
        return len(anomalies)

    async def list_anomalies(self, job_id: str) -> list[Anomaly]:
        await self.get_job(job_id)
        return sorted(self._anomalies.get(job_id, []), key=lambda a: a.risk_score, reverse=True)
