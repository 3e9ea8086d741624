"""Statistical outlier pass: z-scores plus an isolation-depth heuristic."""

import numpy as np

from logwarden.domains.logs.models import Anomaly, DetectionMethod, Severity

from ..config import EnsembleConfig
from ..models import BatchContext, EnsembleAnomalyType
from .base import DetectionPass


def isolation_depth(features: np.ndarray, index: int, max_depth: int = 10) -> int:
    """How many partitioning rounds it takes to isolate row ``index``.

    Each round keeps only rows strictly smaller than the target on one
    feature, rotating through the feature columns.
    """
    target = features[index]
    subset = features
    depth = 0
    while len(subset) > 1 and depth < max_depth:
        column = depth % features.shape[1]
        subset = subset[subset[:, column] < target[column]]
        depth += 1
    return depth


def _severity(risk: float) -> Severity:
    if risk > 7:
        return Severity.CRITICAL
    if risk > 4:
        return Severity.HIGH
    return Severity.MEDIUM


class StatisticalPass(DetectionPass):
    pass_id = "statistical"
    method = DetectionMethod.STATISTICAL
    model_used = "z-score + isolation-depth"

    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        cfg = config.statistical
        features = np.column_stack(
            (context.byte_counts, context.durations, context.octet_sums)
        )
        anomalies: list[Anomaly] = []

        for i, entry in enumerate(context.entries):
            flags: list[str] = []
            risk = 0.0
            confidence = 0.0

            bytes_z = context.bytes_zscore(i)
            duration_z = context.duration_zscore(i)
            if bytes_z > cfg.zscore_threshold:
                flags.append("extreme_bytes_transfer")
                risk += cfg.bytes_points
                confidence += cfg.bytes_confidence
            if duration_z > cfg.zscore_threshold:
                flags.append("extreme_response_time")
                risk += cfg.duration_points
                confidence += cfg.duration_confidence

            isolation = isolation_depth(features, i, cfg.isolation_max_depth) / cfg.isolation_max_depth
            if isolation > cfg.isolation_threshold:
                flags.append("statistical_outlier")
                risk += cfg.outlier_points
                confidence += cfg.outlier_confidence

            if not flags or risk <= cfg.min_risk:
                continue

            anomalies.append(
                self._finding(
                    entry,
                    anomaly_type=EnsembleAnomalyType.STATISTICAL,
                    risk_score=risk,
                    confidence=min(confidence, cfg.max_confidence),
                    severity=_severity(risk),
                    description=f"Statistical anomaly detected with {', '.join(flags)}",
                    recommendation="Investigate unusual statistical patterns in network behavior",
                    trigger_rules=flags,
                    measures={
                        "bytes_zscore": round(bytes_z, 2),
                        "duration_zscore": round(duration_z, 2),
                        "isolation_score": round(isolation, 3),
                    },
                )
            )
        return anomalies
