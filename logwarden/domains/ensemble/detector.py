"""Multi-pass ensemble anomaly detector (batch only)."""

import structlog

from logwarden.domains.logs.models import Anomaly, LogEntry

from .config import EnsembleConfig, default_config
from .passes import ALL_PASSES, DetectionPass
from .profile import ProfileBuilder

logger = structlog.get_logger()


class EnsembleDetector:
    """Runs every detection pass over a whole batch and merges the findings.

    1. Build profiles and population statistics from the batch
    2. Run each pass independently against the shared context
    3. Concatenate findings and stably sort by risk score, highest first

    A pass that raises is logged and contributes nothing; a batch whose
    context cannot be built yields no findings.
    """

    def __init__(
        self,
        config: EnsembleConfig | None = None,
        passes: list[DetectionPass] | None = None,
    ) -> None:
        self._config = config or default_config
        self._passes = list(passes if passes is not None else ALL_PASSES)
        self._profiles = ProfileBuilder(self._config)

    def analyze(self, entries: list[LogEntry]) -> list[Anomaly]:
        if not entries:
            return []

        try:
            context = self._profiles.build_context(list(entries))
        except Exception:
            logger.exception("ensemble_context_error", entries=len(entries))
            return []

        anomalies: list[Anomaly] = []
        per_pass: dict[str, int] = {}

        for detection_pass in self._passes:
            try:
                found = detection_pass.run(context, self._config)
            except Exception:
                logger.exception("ensemble_pass_error", pass_id=detection_pass.pass_id)
                found = []
            per_pass[detection_pass.pass_id] = len(found)
            anomalies.extend(found)

        anomalies.sort(key=lambda a: a.risk_score, reverse=True)

        logger.info(
            "ensemble_batch_analyzed",
            entries=len(entries),
            anomalies=len(anomalies),
            per_pass=per_pass,
        )
        return anomalies
