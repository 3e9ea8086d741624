"""Behavioral deviation pass: compares each entry with its owner's profile."""

from logwarden.domains.logs.models import Anomaly, DetectionMethod, Severity

from ..config import EnsembleConfig
from ..models import BatchContext, EnsembleAnomalyType
from .base import DetectionPass


def _severity(risk: float) -> Severity:
    if risk > 6:
        return Severity.HIGH
    if risk > 3:
        return Severity.MEDIUM
    return Severity.LOW


class BehavioralPass(DetectionPass):
    pass_id = "behavioral"
    method = DetectionMethod.BEHAVIORAL
    model_used = "user-behavior-profile"

    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        cfg = config.behavioral
        anomalies: list[Anomaly] = []

        for i, entry in enumerate(context.entries):
            profile = context.user_profiles.get(entry.profile_key)
            if profile is None:
                continue

            flags: list[str] = []
            risk = 0.0
            confidence = 0.0

            hour = int(context.hours[i])
            in_work_hours = cfg.work_start_hour <= hour < cfg.work_end_hour
            if hour not in profile.common_hours and not in_work_hours:
                flags.append("off_hours_activity")
                risk += cfg.off_hours_points
                confidence += cfg.off_hours_confidence

            if entry.user_agent and entry.user_agent not in profile.common_user_agents:
                flags.append("unusual_user_agent")
                risk += cfg.user_agent_points
                confidence += cfg.user_agent_confidence

            if entry.category and entry.category not in profile.common_categories:
                flags.append("unusual_category_access")
                risk += cfg.category_points
                confidence += cfg.category_confidence

            ratio = None
            if profile.avg_request_size > 0:
                ratio = entry.bytes_or_zero / profile.avg_request_size
                if ratio > cfg.volume_high_ratio or ratio < cfg.volume_low_ratio:
                    flags.append("volume_deviation")
                    risk += cfg.volume_points
                    confidence += cfg.volume_confidence

            if risk <= cfg.min_risk:
                continue

            anomalies.append(
                self._finding(
                    entry,
                    anomaly_type=EnsembleAnomalyType.BEHAVIORAL,
                    risk_score=risk,
                    confidence=min(confidence, cfg.max_confidence),
                    severity=_severity(risk),
                    description=f"Behavioral deviation detected: {', '.join(flags)}",
                    recommendation="Review user behavior patterns and validate legitimate activity",
                    trigger_rules=flags,
                    measures={
                        "profile_key": profile.profile_key,
                        "risk_pattern": str(profile.risk_pattern),
                        "request_count": profile.request_count,
                        "volume_ratio": round(ratio, 3) if ratio is not None else None,
                    },
                )
            )
        return anomalies
