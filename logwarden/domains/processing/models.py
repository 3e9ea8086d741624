"""Pydantic models for processing jobs and metric events."""

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class JobStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DetectionSelector(StrEnum):
    TRADITIONAL = "traditional"
    ADVANCED = "advanced"
    SEMANTIC = "semantic"


class ProcessingJob(BaseModel):
    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    log_file_id: str
    file_name: str = ""
    file_size_bytes: int = 0
    detection_method: str = DetectionSelector.TRADITIONAL
    status: JobStatus = JobStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    total_entries: int = 0
    processed_entries: int = 0
    anomalies_found: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    analysis_time_ms: int | None = None
    error_message: str | None = None


class MetricEventType(StrEnum):
    BATCH_PROCESSED = "batch_processed"
    JOB_FINISHED = "job_finished"


class MetricStatus(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


class MetricEvent(BaseModel):
    event_type: MetricEventType
    status: MetricStatus
    job_id: str
    detection_method: str
    processing_time_ms: float = 0.0
    anomalies_found: int = 0
    error_message: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MetricsSummary(BaseModel):
    total_events: int = 0
    batches: int = 0
    jobs: int = 0
    failures: int = 0
    success_rate: float = 1.0
    avg_batch_ms: float = 0.0
    p95_batch_ms: float = 0.0
    anomalies_found: int = 0


class StatusStats(BaseModel):
    status: JobStatus
    count: int
    avg_time_ms: float | None = None
    max_time_ms: int | None = None


class ProcessingStats(BaseModel):
    last_24_hours: list[StatusStats] = Field(default_factory=list)
    long_running_jobs: int = 0
    max_timeout_minutes: int
    large_file_timeout_minutes: int
    cleanup_interval_minutes: float
