"""Abstract base class for ensemble detection passes."""

from abc import ABC, abstractmethod
from typing import Any

from logwarden.domains.logs.models import Anomaly, DetectionMethod, LogEntry, Severity

from ..config import EnsembleConfig
from ..models import BatchContext


class DetectionPass(ABC):
    """One independent pass over a batch context.

    Passes only read the context; none depends on another pass having run.
    """

    pass_id: str
    method: DetectionMethod
    model_used: str = ""

    @abstractmethod
    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        """Return this pass's findings for the batch."""
        ...

    def _finding(
        self,
        entry: LogEntry,
        anomaly_type: str,
        risk_score: float,
        confidence: float,
        severity: Severity,
        description: str,
        recommendation: str,
        trigger_rules: list[str],
        features: list[str] | None = None,
        measures: dict[str, Any] | None = None,
    ) -> Anomaly:
        """Convenience: build an Anomaly attributed to this pass."""
        return Anomaly(
            log_entry=entry,
            anomaly_type=anomaly_type,
            risk_score=min(risk_score, 10.0),
            confidence=confidence,
            description=description,
            explanation=f"Detected by {self.pass_id} pass ({self.model_used})",
            recommendations=[recommendation],
            detection_method=self.method,
            severity=severity,
            trigger_rules=trigger_rules,
            metadata={
                "model_used": self.model_used,
                "features": features if features is not None else list(trigger_rules),
                "statistical_measures": measures or {},
            },
        )
