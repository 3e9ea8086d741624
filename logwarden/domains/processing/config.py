"""Batch processing, timeout sweep and metrics configuration."""

import os
from dataclasses import dataclass, field


@dataclass
class BatchConfig:
    # Records per batch for per-record detectors (rule-based, semantic)
    batch_size: int = 10
    # The ensemble needs population statistics, so it sees large batches
    ensemble_batch_size: int = 5000
    # Anomalies below this risk are not persisted
    persistence_threshold: float = 4.0


@dataclass
class TimeoutConfig:
    max_processing_minutes: int = 30
    large_file_timeout_minutes: int = 15
    large_file_bytes: int = 50 * 1024 * 1024
    sweep_interval_seconds: float = 300.0
    long_running_minutes: int = 10
    stats_window_hours: int = 24


@dataclass
class MetricsConfig:
    max_buffer_size: int = 10_000
    # Batch latencies kept for summary percentiles
    max_latency_samples: int = 10_000


@dataclass
class ProcessingConfig:
    batch: BatchConfig = field(default_factory=BatchConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    @classmethod
    def from_env(cls) -> "ProcessingConfig":
        """Load config with env var overrides. Env vars use PROCESSING_ prefix."""
        config = cls()

        if v := os.getenv("PROCESSING_BATCH_SIZE"):
            config.batch.batch_size = int(v)
        if v := os.getenv("PROCESSING_ENSEMBLE_BATCH_SIZE"):
            config.batch.ensemble_batch_size = int(v)
        if v := os.getenv("PROCESSING_PERSISTENCE_THRESHOLD"):
            config.batch.persistence_threshold = float(v)
        if v := os.getenv("PROCESSING_MAX_MINUTES"):
            config.timeout.max_processing_minutes = int(v)
        if v := os.getenv("PROCESSING_LARGE_FILE_MINUTES"):
            config.timeout.large_file_timeout_minutes = int(v)
        if v := os.getenv("PROCESSING_SWEEP_INTERVAL"):
            config.timeout.sweep_interval_seconds = float(v)

        return config


# Module-level default instance
default_config = ProcessingConfig()
