"""Network-scan pass: one source fanning out to many destinations."""

from logwarden.domains.logs.models import Anomaly, DetectionMethod, Severity

from ..config import EnsembleConfig
from ..models import BatchContext, EnsembleAnomalyType
from .base import DetectionPass


class NetworkPass(DetectionPass):
    pass_id = "network"
    method = DetectionMethod.NETWORK
    model_used = "destination-diversity"

    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        cfg = config.network
        first_seen = {}
        for entry in context.entries:
            first_seen.setdefault(entry.source_address, entry)

        anomalies: list[Anomaly] = []
        for source, profile in context.network_profiles.items():
            if profile.risk_score <= 0:
                continue
            unique = profile.unique_destinations
            anomalies.append(
                self._finding(
                    first_seen[source],
                    anomaly_type=EnsembleAnomalyType.NETWORK_SCANNING,
                    risk_score=profile.risk_score,
                    confidence=cfg.confidence,
                    severity=(
                        Severity.CRITICAL if unique > cfg.critical_destinations else Severity.HIGH
                    ),
                    description=(
                        f"Network scanning detected: {unique} unique destinations "
                        "from single source"
                    ),
                    recommendation="Block source IP and investigate scanning behavior",
                    trigger_rules=["high_destination_count"],
                    features=["network_scanning", "multiple_destinations"],
                    measures={
                        "unique_destinations": unique,
                        "total_requests": profile.total_requests,
                        "avg_bytes": round(profile.avg_bytes_transferred),
                    },
                )
            )
        return anomalies
