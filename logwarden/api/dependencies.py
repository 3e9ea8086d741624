"""Process-wide service singletons shared by the API routes."""

import structlog

from logwarden.config import settings
from logwarden.domains.processing.config import default_config
from logwarden.domains.processing.orchestrator import BatchOrchestrator
from logwarden.domains.processing.store import InMemoryJobStore, JobStore
from logwarden.domains.processing.timeout import ProcessingTimeoutManager

logger = structlog.get_logger()

_store: JobStore | None = None
_orchestrator: BatchOrchestrator | None = None
_timeout_manager: ProcessingTimeoutManager | None = None


def get_job_store() -> JobStore:
    """Get or create the job store (SQL when ``use_database`` is set)."""
    global _store
    if _store is None:
        if settings.use_database:
            from logwarden.domains.processing.sql_store import SqlJobStore

            _store = SqlJobStore()
        else:
            _store = InMemoryJobStore()
        logger.info("job_store_selected", store=type(_store).__name__)
    return _store


def get_orchestrator() -> BatchOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = BatchOrchestrator(get_job_store(), config=default_config)
    return _orchestrator


def get_timeout_manager() -> ProcessingTimeoutManager:
    global _timeout_manager
    if _timeout_manager is None:
        _timeout_manager = ProcessingTimeoutManager(get_job_store(), default_config.timeout)
    return _timeout_manager
