"""Pydantic models for the rule-based detection domain."""

from pydantic import BaseModel, Field

from logwarden.domains.logs.models import (
    Anomaly,
    DetectionMethod,
    LogEntry,
    severity_for_score,
)


class RuleResult(BaseModel):
    rule_name: str
    triggered: bool
    points: float = 0.0
    category: str = ""
    details: str = ""
    evidence: dict = Field(default_factory=dict)


class AnomalyVerdict(BaseModel):
    """Single-record verdict from the rule-based detector."""

    is_anomaly: bool
    risk_score: float = Field(ge=0.0, le=10.0)
    anomaly_type: str = "normal"
    indicators: list[str] = Field(default_factory=list)
    description: str = ""
    explanation: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    recommendations: list[str] = Field(default_factory=list)
    rule_results: list[RuleResult] = Field(default_factory=list)

    def to_anomaly(
        self,
        entry: LogEntry,
        detection_method: DetectionMethod = DetectionMethod.RULE_BASED,
        metadata: dict | None = None,
    ) -> Anomaly:
        evidence = {
            "indicators": list(self.indicators),
            "rule_points": {r.rule_name: r.points for r in self.rule_results if r.triggered},
        }
        evidence.update(metadata or {})
        return Anomaly(
            log_entry=entry,
            anomaly_type=self.anomaly_type,
            is_anomaly=self.is_anomaly,
            risk_score=self.risk_score,
            confidence=self.confidence,
            description=self.description,
            explanation=self.explanation,
            recommendations=list(self.recommendations),
            detection_method=detection_method,
            severity=severity_for_score(self.risk_score),
            trigger_rules=list(self.indicators),
            metadata=evidence,
        )
