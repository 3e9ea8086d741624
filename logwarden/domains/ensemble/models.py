"""Batch-scoped profiles and context for the ensemble detector."""

from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np
from pydantic import BaseModel, Field

from logwarden.domains.logs.models import LogEntry


class RiskPattern(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EnsembleAnomalyType(StrEnum):
    STATISTICAL = "STATISTICAL_ANOMALY"
    BEHAVIORAL = "BEHAVIORAL_ANOMALY"
    SEQUENCE = "SEQUENCE_ANOMALY"
    NETWORK_SCANNING = "NETWORK_SCANNING"
    TIME_SERIES = "TIME_SERIES_ANOMALY"
    ENSEMBLE = "ENSEMBLE_ANOMALY"


class UserBehaviorProfile(BaseModel):
    """Aggregate behavior of one user (or source address when no user)."""

    profile_key: str
    source_address: str = ""
    request_count: int = 0
    avg_request_size: float = 0.0
    avg_response_time: float = 0.0
    common_categories: list[str] = Field(default_factory=list)
    common_hours: list[int] = Field(default_factory=list)
    common_user_agents: list[str] = Field(default_factory=list)
    risk_pattern: RiskPattern = RiskPattern.LOW


class NetworkProfile(BaseModel):
    source_address: str
    total_requests: int = 0
    unique_destinations: int = 0
    avg_bytes_transferred: float = 0.0
    # Network-pass score for this source; 0 when it is not scanning
    risk_score: float = Field(default=0.0, ge=0.0, le=10.0)


@dataclass
class BatchContext:
    """Everything the passes share for one analyze() call.

    Arrays are aligned with ``entries`` by index. Built once per batch and
    discarded afterwards.
    """

    entries: list[LogEntry]
    byte_counts: np.ndarray
    durations: np.ndarray
    octet_sums: np.ndarray
    hours: np.ndarray
    bytes_mean: float = 0.0
    bytes_std: float = 0.0
    duration_mean: float = 0.0
    duration_std: float = 0.0
    user_profiles: dict[str, UserBehaviorProfile] = field(default_factory=dict)
    network_profiles: dict[str, NetworkProfile] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def bytes_zscore(self, index: int) -> float:
        if self.bytes_std == 0:
            return 0.0
        return abs(float(self.byte_counts[index]) - self.bytes_mean) / self.bytes_std

    def duration_zscore(self, index: int) -> float:
        if self.duration_std == 0:
            return 0.0
        return abs(float(self.durations[index]) - self.duration_mean) / self.duration_std
