"""Synchronous log validation and analysis endpoints."""

import time

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from logwarden.domains.logs.parser import LogNormalizer, require_valid_format
from logwarden.domains.logs.stats import get_anomaly_stats
from logwarden.domains.processing.config import default_config
from logwarden.domains.processing.models import DetectionSelector
from logwarden.domains.processing.selector import build_plan, resolve_selector
from logwarden.domains.semantic.models import ProviderConfig

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/logs", tags=["logs"])

_normalizer = LogNormalizer()


class ValidateRequest(BaseModel):
    content: str


class AnalyzeRequest(BaseModel):
    content: str
    detection_method: str = DetectionSelector.TRADITIONAL
    ai_config: ProviderConfig | None = None


@router.post("/validate")
async def validate_logs(request: ValidateRequest) -> dict:
    return _normalizer.validate(request.content).model_dump()


@router.post("/analyze")
async def analyze_logs(request: AnalyzeRequest) -> dict:
    """Parse and analyze a small payload inline.

    A semantic request carrying ``ai_config`` uses that provider selection;
    otherwise the selector's defaults apply. Only flagged results are returned.
    """
    require_valid_format(request.content)
    entries = _normalizer.parse(request.content)

    selector = resolve_selector(request.detection_method, request.ai_config)
    plan = build_plan(selector, default_config.batch)

    started = time.perf_counter()
    anomalies = []
    for offset in range(0, len(entries), plan.batch_size):
        results = await plan.detect(entries[offset : offset + plan.batch_size])
        anomalies.extend(a for a in results if a.is_anomaly)
    analysis_time_ms = int((time.perf_counter() - started) * 1000)

    logger.info(
        "logs_analyzed",
        detection_method=plan.label,
        entries=len(entries),
        anomalies=len(anomalies),
        analysis_time_ms=analysis_time_ms,
    )

    return {
        "detection_method": plan.label,
        "analysis_time_ms": analysis_time_ms,
        "log_stats": _normalizer.get_log_stats(entries).model_dump(),
        "anomaly_stats": get_anomaly_stats(anomalies).model_dump(),
        "anomalies": [a.model_dump(mode="json") for a in anomalies],
    }
