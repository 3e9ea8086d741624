"""Weighted ensemble pass combining four normalized sub-scores."""

from collections import Counter

from logwarden.domains.logs.models import Anomaly, DetectionMethod, Severity

from ..config import EnsembleConfig
from ..models import BatchContext, EnsembleAnomalyType, RiskPattern
from .base import DetectionPass


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


class WeightedEnsemblePass(DetectionPass):
    """Recomputes statistical, behavioral, network and temporal sub-scores
    per entry and emits a consolidated finding when the weighted sum is high.
    """

    pass_id = "ensemble"
    method = DetectionMethod.ENSEMBLE
    model_used = "weighted-ensemble"

    def sub_scores(
        self, context: BatchContext, index: int, config: EnsembleConfig, hour_counts: Counter
    ) -> dict[str, float]:
        cfg = config.thresholds
        entry = context.entries[index]
        hour = int(context.hours[index])

        statistical = _clamp(
            (context.bytes_zscore(index) + context.duration_zscore(index))
            / cfg.statistical_z_divisor
        )

        behavioral = 0.0
        profile = context.user_profiles.get(entry.profile_key)
        if profile is not None:
            if hour not in profile.common_hours:
                behavioral += cfg.uncommon_hour_score
            if entry.user_agent and entry.user_agent not in profile.common_user_agents:
                behavioral += cfg.uncommon_user_agent_score
            if profile.risk_pattern == RiskPattern.HIGH:
                behavioral += cfg.high_risk_profile_score
        behavioral = _clamp(behavioral)

        network_profile = context.network_profiles.get(entry.source_address)
        network = _clamp(network_profile.risk_score / 10) if network_profile else 0.0

        expected = len(context) / 24
        temporal = _clamp(abs(hour_counts[hour] - expected) / expected) if expected else 0.0

        return {
            "statistical": statistical,
            "behavioral": behavioral,
            "network": network,
            "temporal": temporal,
        }

    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        cfg = config.thresholds
        weights = config.weights
        hour_counts = Counter(int(h) for h in context.hours)
        anomalies: list[Anomaly] = []

        for i, entry in enumerate(context.entries):
            scores = self.sub_scores(context, i, config, hour_counts)
            combined = (
                scores["statistical"] * weights.statistical
                + scores["behavioral"] * weights.behavioral
                + scores["network"] * weights.network
                + scores["temporal"] * weights.temporal
            )
            if combined <= cfg.score_threshold:
                continue

            agreeing = [
                f"{name}_anomaly" for name, score in scores.items() if score > cfg.agreement_threshold
            ]
            if combined > 0.9:
                severity = Severity.CRITICAL
            elif combined > 0.8:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM

            anomalies.append(
                self._finding(
                    entry,
                    anomaly_type=EnsembleAnomalyType.ENSEMBLE,
                    risk_score=combined * 10,
                    confidence=min(combined, cfg.max_confidence),
                    severity=severity,
                    description=(
                        f"Multi-model ensemble detected anomaly across "
                        f"{len(agreeing)} detection methods"
                    ),
                    recommendation="High-confidence anomaly requiring immediate investigation",
                    trigger_rules=["multi_model_consensus"],
                    features=agreeing,
                    measures={
                        "ensemble_score": round(combined, 4),
                        "sub_scores": {k: round(v, 4) for k, v in scores.items()},
                    },
                )
            )
        return anomalies
