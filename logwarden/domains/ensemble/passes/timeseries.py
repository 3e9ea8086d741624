"""Traffic-spike pass over fixed time buckets."""

from collections import defaultdict

import numpy as np

from logwarden.domains.logs.models import Anomaly, DetectionMethod, LogEntry, Severity

from ..config import EnsembleConfig
from ..models import BatchContext, EnsembleAnomalyType
from .base import DetectionPass


def _severity(z: float) -> Severity:
    if z > 4:
        return Severity.CRITICAL
    if z > 3:
        return Severity.HIGH
    return Severity.MEDIUM


class TimeSeriesPass(DetectionPass):
    pass_id = "time-series"
    method = DetectionMethod.TIME_SERIES
    model_used = "z-score-timeseries"

    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        cfg = config.time_series
        buckets: dict[int, list[LogEntry]] = defaultdict(list)
        for entry in context.entries:
            bucket = int(entry.occurred_at.timestamp()) // cfg.bucket_seconds
            buckets[bucket].append(entry)
        if not buckets:
            return []

        counts = np.array([len(members) for members in buckets.values()], dtype=float)
        mean = float(counts.mean())
        std = float(counts.std())
        if std == 0:
            return []

        anomalies: list[Anomaly] = []
        for (bucket, members), count in zip(buckets.items(), counts):
            z = abs(float(count) - mean) / std
            if z <= cfg.zscore_threshold:
                continue
            anomalies.append(
                self._finding(
                    members[0],
                    anomaly_type=EnsembleAnomalyType.TIME_SERIES,
                    risk_score=z * cfg.risk_per_z,
                    confidence=min(z / cfg.confidence_divisor, cfg.max_confidence),
                    severity=_severity(z),
                    description=(
                        f"Traffic spike detected: {int(count)} requests in "
                        f"{cfg.bucket_seconds // 60}-minute window "
                        f"({z:.1f} standard deviations from normal)"
                    ),
                    recommendation="Investigate potential DDoS attack or automated scanning behavior",
                    trigger_rules=["unusual_traffic_volume"],
                    features=["traffic_spike", "time_series_outlier"],
                    measures={
                        "zscore": round(z, 2),
                        "request_count": int(count),
                        "bucket_start": bucket * cfg.bucket_seconds,
                        "normal_range": [round(mean - 2 * std), round(mean + 2 * std)],
                    },
                )
            )
        return anomalies
