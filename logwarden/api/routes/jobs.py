"""Background processing jobs."""

import uuid

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from logwarden.api.dependencies import get_job_store, get_orchestrator, get_timeout_manager
from logwarden.domains.logs.parser import require_valid_format
from logwarden.domains.processing.models import DetectionSelector, ProcessingJob
from logwarden.domains.processing.orchestrator import BatchOrchestrator
from logwarden.domains.processing.selector import resolve_selector, selector_label
from logwarden.domains.processing.store import JobStore
from logwarden.domains.processing.timeout import ProcessingTimeoutManager
from logwarden.domains.semantic.models import ProviderConfig

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/jobs", tags=["jobs"])


class CreateJobRequest(BaseModel):
    log_file_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    file_name: str = "upload.log"
    content: str
    detection_method: str = DetectionSelector.TRADITIONAL
    ai_config: ProviderConfig | None = None


@router.post("", status_code=202)
async def create_job(
    request: CreateJobRequest,
    background_tasks: BackgroundTasks,
    store: JobStore = Depends(get_job_store),  # noqa: B008
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> dict:
    require_valid_format(request.content)

    selector = resolve_selector(request.detection_method, request.ai_config)

    job = await store.create_job(
        ProcessingJob(
            log_file_id=request.log_file_id,
            file_name=request.file_name,
            file_size_bytes=len(request.content.encode()),
            detection_method=selector_label(selector),
        )
    )
    background_tasks.add_task(orchestrator.process_log_file, job, request.content, selector)
    logger.info("job_queued", job_id=job.job_id, detection_method=job.detection_method)
    return job.model_dump(mode="json")


@router.get("/stats/processing")
async def processing_stats(
    timeouts: ProcessingTimeoutManager = Depends(get_timeout_manager),  # noqa: B008
) -> dict:
    return (await timeouts.get_processing_stats()).model_dump(mode="json")


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    store: JobStore = Depends(get_job_store),  # noqa: B008
) -> dict:
    return (await store.get_job(job_id)).model_dump(mode="json")


@router.get("/{job_id}/anomalies")
async def get_job_anomalies(
    job_id: str,
    store: JobStore = Depends(get_job_store),  # noqa: B008
) -> dict:
    anomalies = await store.list_anomalies(job_id)
    return {
        "job_id": job_id,
        "count": len(anomalies),
        "anomalies": [a.model_dump(mode="json") for a in anomalies],
    }
