"""SQLAlchemy-backed job store."""

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from logwarden.db.models import AnomalyDB, ProcessingJobDB
from logwarden.domains.logs.models import Anomaly, LogEntry

from .models import JobStatus, ProcessingJob
from .store import JobNotFoundError, JobStore

logger = structlog.get_logger()

_JOB_FIELDS = tuple(ProcessingJob.model_fields)


def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_job(row: ProcessingJobDB) -> ProcessingJob:
    data = {name: getattr(row, name) for name in _JOB_FIELDS}
    for name in ("created_at", "started_at", "completed_at"):
        data[name] = _aware(data[name])
    if data["created_at"] is None:
        del data["created_at"]
    return ProcessingJob.model_validate(data)


def _to_anomaly(row: AnomalyDB) -> Anomaly:
    return Anomaly(
        anomaly_id=row.anomaly_id,
        log_entry=LogEntry.model_validate(row.log_entry),
        anomaly_type=row.anomaly_type,
        is_anomaly=row.is_anomaly,
        risk_score=row.risk_score,
        confidence=row.confidence,
        description=row.description,
        explanation=row.explanation,
        recommendations=list(row.recommendations or []),
        detection_method=row.detection_method,
        severity=row.severity,
        trigger_rules=list(row.trigger_rules or []),
        metadata=dict(row.details or {}),
        detected_at=_aware(row.detected_at),
    )


class SqlJobStore(JobStore):
    """Job store over the ``processing_jobs`` and ``anomalies`` tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from logwarden.db.database import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory

    async def _load(self, session: AsyncSession, job_id: str) -> ProcessingJobDB:
        row = await session.get(ProcessingJobDB, job_id)
        if row is None:
            raise JobNotFoundError(job_id)
        return row

    async def create_job(self, job: ProcessingJob) -> ProcessingJob:
        async with self._session_factory() as session:
            row = ProcessingJobDB(
                **{name: getattr(job, name) for name in _JOB_FIELDS},
            )
            row.status = str(job.status)
            session.add(row)
            await session.commit()
        logger.info("job_created", job_id=job.job_id, file_name=job.file_name)
        return job

    async def get_job(self, job_id: str) -> ProcessingJob:
        async with self._session_factory() as session:
            return _to_job(await self._load(session, job_id))

    async def update_job(self, job_id: str, **changes: Any) -> ProcessingJob:
        async with self._session_factory() as session:
            row = await self._load(session, job_id)
            for name, value in changes.items():
                if name not in _JOB_FIELDS or name == "job_id":
                    raise ValueError(f"Unknown job field: {name}")
                setattr(row, name, str(value) if isinstance(value, JobStatus) else value)
            await session.commit()
            await session.refresh(row)
            return _to_job(row)

    async def list_jobs(self, status: JobStatus | None = None) -> list[ProcessingJob]:
        stmt = select(ProcessingJobDB).order_by(ProcessingJobDB.created_at)
        if status is not None:
            stmt = stmt.where(ProcessingJobDB.status == str(status))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_job(row) for row in result.scalars().all()]

    async def save_anomalies(self, job_id: str, anomalies: list[Anomaly]) -> int:
        async with self._session_factory() as session:
            await self._load(session, job_id)
            session.add_all(
                AnomalyDB(
                    anomaly_id=a.anomaly_id,
                    job_id=job_id,
                    anomaly_type=a.anomaly_type,
                    is_anomaly=a.is_anomaly,
                    risk_score=a.risk_score,
                    confidence=a.confidence,
                    severity=str(a.severity),
                    detection_method=str(a.detection_method),
                    description=a.description,
                    explanation=a.explanation,
                    recommendations=list(a.recommendations),
                    trigger_rules=list(a.trigger_rules),
                    details=a.model_dump(mode="json")["metadata"],
                    log_entry=a.log_entry.model_dump(mode="json"),
                    source_address=a.log_entry.source_address,
                    detected_at=a.detected_at,
                )
                for a in anomalies
            )
            await session.commit()
        logger.debug("anomalies_saved", job_id=job_id, count=len(anomalies))
        return len(anomalies)

    async def list_anomalies(self, job_id: str) -> list[Anomaly]:
        stmt = (
            select(AnomalyDB)
            .where(AnomalyDB.job_id == job_id)
            .order_by(AnomalyDB.risk_score.desc(), AnomalyDB.id)
        )
        async with self._session_factory() as session:
            await self._load(session, job_id)
            result = await session.execute(stmt)
            return [_to_anomaly(row) for row in result.scalars().all()]
