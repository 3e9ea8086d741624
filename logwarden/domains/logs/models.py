"""Pydantic models shared by the normalizer and every detector."""

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DetectionMethod(StrEnum):
    RULE_BASED = "rule-based"
    STATISTICAL = "statistical"
    BEHAVIORAL = "behavioral"
    SEQUENCE = "sequence"
    NETWORK = "network"
    TIME_SERIES = "time-series"
    ENSEMBLE = "ensemble"
    SEMANTIC = "semantic"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class LogEntry(BaseModel):
    """One normalized proxy log line."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    source_address: str = Field(min_length=1)
    destination_address: str | None = None
    user: str | None = None  # user or department
    action: str = "unknown"
    url: str | None = None
    status_code: str | None = None
    byte_count: int | None = None
    user_agent: str | None = None
    protocol: str | None = None
    category: str | None = None
    subcategory: str | None = None
    duration_ms: int | None = None
    method: str | None = None
    raw_line: str = ""

    @field_validator("timestamp")
    @classmethod
    def _iso_utc(cls, value: str) -> str:
        """Timestamps are ISO-8601; naive values are taken as UTC."""
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"timestamp is not ISO-8601: {value!r}") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC).isoformat()

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)

    @property
    def bytes_or_zero(self) -> int:
        return self.byte_count or 0

    @property
    def duration_or_zero(self) -> int:
        return self.duration_ms or 0

    @property
    def profile_key(self) -> str:
        """Behavioral profiles are keyed by user, falling back to the source address."""
        return self.user or self.source_address


class Anomaly(BaseModel):
    """A scored finding produced by one detector pass against one LogEntry."""

    model_config = ConfigDict(frozen=True)

    anomaly_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    log_entry: LogEntry
    anomaly_type: str
    is_anomaly: bool = True
    risk_score: float = Field(ge=0.0, le=10.0)
    confidence: float = Field(ge=0.0, le=1.0)
    description: str = ""
    explanation: str = ""
    recommendations: list[str] = Field(default_factory=list)
    detection_method: DetectionMethod
    severity: Severity = Severity.MEDIUM
    trigger_rules: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    detected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FormatValidation(BaseModel):
    is_valid: bool
    error: str | None = None
    sampled_lines: int = 0
    parsed_lines: int = 0
    yield_rate: float = 0.0


class TimeRange(BaseModel):
    start: str = ""
    end: str = ""


class ActionCount(BaseModel):
    action: str
    count: int


class LogStats(BaseModel):
    total_entries: int = 0
    unique_sources: int = 0
    unique_users: int = 0
    time_range: TimeRange = Field(default_factory=TimeRange)
    top_actions: list[ActionCount] = Field(default_factory=list)


class AnomalyTypeCount(BaseModel):
    type: str
    count: int


class AnomalyStats(BaseModel):
    total_anomalies: int = 0
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    average_risk_score: float = 0.0
    top_anomaly_types: list[AnomalyTypeCount] = Field(default_factory=list)


def severity_for_score(risk_score: float) -> Severity:
    """Map a 0-10 risk score onto the same bands the stats report uses."""
    if risk_score >= 9:
        return Severity.CRITICAL
    if risk_score >= 7:
        return Severity.HIGH
    if risk_score >= 4:
        return Severity.MEDIUM
    return Severity.LOW
