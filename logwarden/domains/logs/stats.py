"""Aggregate statistics over detector output."""

from collections import Counter

from .models import Anomaly, AnomalyStats, AnomalyTypeCount


def get_anomaly_stats(anomalies: list[Anomaly]) -> AnomalyStats:
    """Summarize anomalies by risk band and most frequent types.

    Bands: critical >= 9, high [7, 9), medium [4, 7), low < 4.
    """
    total = len(anomalies)
    if total == 0:
        return AnomalyStats()

    scores = [a.risk_score for a in anomalies]
    type_counts = Counter(a.anomaly_type for a in anomalies)

    return AnomalyStats(
        total_anomalies=total,
        critical_count=sum(1 for s in scores if s >= 9),
        high_count=sum(1 for s in scores if 7 <= s < 9),
        medium_count=sum(1 for s in scores if 4 <= s < 7),
        low_count=sum(1 for s in scores if s < 4),
        average_risk_score=round(sum(scores) / total, 1),
        top_anomaly_types=[
            AnomalyTypeCount(type=anomaly_type, count=count)
            for anomaly_type, count in type_counts.most_common(5)
        ],
    )
