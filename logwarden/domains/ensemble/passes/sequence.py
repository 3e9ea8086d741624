"""Burst pass: sliding windows dominated by one source address."""

from collections import Counter
from dataclasses import dataclass

from logwarden.domains.logs.models import Anomaly, DetectionMethod, LogEntry, Severity

from ..config import EnsembleConfig
from ..models import BatchContext, EnsembleAnomalyType
from .base import DetectionPass


@dataclass
class _Burst:
    entry: LogEntry
    first_window: int
    last_window: int
    peak: int


class SequencePass(DetectionPass):
    """Flags sources holding more than the dominance share of a time-ordered window.

    Consecutive flagged windows for the same source collapse into one finding
    reporting the peak count, so a long burst is reported once.
    """

    pass_id = "sequence"
    method = DetectionMethod.SEQUENCE
    model_used = "sliding-window"

    def run(self, context: BatchContext, config: EnsembleConfig) -> list[Anomaly]:
        cfg = config.sequence
        size = cfg.window_size
        ordered = sorted(context.entries, key=lambda e: e.occurred_at)
        if len(ordered) < size:
            return []

        limit = cfg.dominance_ratio * size
        active: dict[str, _Burst] = {}
        bursts: list[_Burst] = []

        for start in range(len(ordered) - size + 1):
            window = ordered[start : start + size]
            counts = Counter(e.source_address for e in window)
            flagged = {source: n for source, n in counts.items() if n > limit}

            for source in [s for s in active if s not in flagged]:
                bursts.append(active.pop(source))

            for source, n in flagged.items():
                burst = active.get(source)
                if burst is None:
                    first = next(e for e in window if e.source_address == source)
                    active[source] = _Burst(first, start, start, n)
                else:
                    burst.last_window = start
                    burst.peak = max(burst.peak, n)

        bursts.extend(active.values())
        bursts.sort(key=lambda b: b.first_window)

        return [
            self._finding(
                burst.entry,
                anomaly_type=EnsembleAnomalyType.SEQUENCE,
                risk_score=burst.peak * cfg.risk_per_request,
                confidence=cfg.confidence,
                severity=Severity.HIGH if burst.peak > 8 else Severity.MEDIUM,
                description=(
                    f"Rapid sequential requests detected: {burst.peak} of {size} "
                    "requests in a short time window"
                ),
                recommendation="Investigate potential automated scanning or attack behavior",
                trigger_rules=["high_frequency_requests"],
                features=["rapid_requests", "sequence_pattern"],
                measures={
                    "request_count": burst.peak,
                    "window_size": size,
                    "windows_flagged": burst.last_window - burst.first_window + 1,
                    "frequency": round(burst.peak / size, 3),
                },
            )
            for burst in bursts
        ]
