"""Rule-based anomaly detector with additive indicator scoring."""

import structlog

from logwarden.domains.logs.models import Anomaly, LogEntry

from .config import RuleConfig, default_config
from .indicators import ALL_RULES, MINIMAL_RULES, IndicatorRule, RecentHistory
from .models import AnomalyVerdict, RuleResult

logger = structlog.get_logger()

DEFAULT_RECOMMENDATION = "Continue monitoring"


class RuleBasedDetector:
    """Scores log entries against indicator rules.

    Scoring is additive:
    1. Run every rule -> list[RuleResult]
    2. Sum the points of triggered rules
    3. Add the combo bonus when a blocked request carries any other indicator
    4. Anomalous iff the raw total reaches the threshold; reported score is
       clamped to [0, max_score]

    The recent-history window is updated after each entry is scored, so an
    entry never sees itself as history.
    """

    def __init__(
        self,
        config: RuleConfig | None = None,
        rules: list[IndicatorRule] | None = None,
        history: RecentHistory | None = None,
    ) -> None:
        self._config = config or default_config
        self._rules = list(rules if rules is not None else ALL_RULES)
        self._history = history
        if self._history is None and any(r.category == "history" for r in self._rules):
            self._history = RecentHistory(self._config.thresholds.history_size)
        logger.debug(
            "rule_detector_initialized",
            rule_count=len(self._rules),
            history_enabled=self._history is not None,
        )

    @classmethod
    def minimal(cls) -> "RuleBasedDetector":
        """Content-only detector with the reduced indicator lists."""
        return cls(config=RuleConfig.minimal(), rules=MINIMAL_RULES)

    @property
    def history(self) -> RecentHistory | None:
        return self._history

    def _evaluate_rules(self, entry: LogEntry) -> list[RuleResult]:
        results: list[RuleResult] = []
        for rule in self._rules:
            try:
                results.append(rule.evaluate(entry, self._history, self._config))
            except Exception:
                logger.exception("rule_evaluation_error", rule_id=rule.rule_id)
                results.append(
                    RuleResult(
                        rule_name=rule.rule_id,
                        triggered=False,
                        details="Rule evaluation failed",
                        category=rule.category,
                    )
                )
        return results

    def _recommendations(self, triggered: list[RuleResult]) -> list[str]:
        by_id = {rule.rule_id: rule for rule in self._rules}
        recommendations: list[str] = []
        for result in triggered:
            rule = by_id.get(result.rule_name)
            for rec in rule.recommendations if rule else ():
                if rec not in recommendations:
                    recommendations.append(rec)
        return recommendations or [DEFAULT_RECOMMENDATION]

    def score(self, entry: LogEntry) -> AnomalyVerdict:
        """Score a single entry and then add it to the recent history."""
        cfg = self._config
        results = self._evaluate_rules(entry)
        triggered = [r for r in results if r.triggered]
        indicators = [r.rule_name for r in triggered]

        total = sum(r.points for r in triggered)
        if (
            cfg.scoring.combo_bonus_enabled
            and "blocked_action" in indicators
            and len(indicators) > 1
        ):
            total += cfg.points.blocked_combo_bonus

        is_anomaly = total >= cfg.thresholds.anomaly_threshold
        risk_score = max(0.0, min(total, cfg.thresholds.max_score))

        if self._history is not None:
            self._history.record(entry.source_address)

        if is_anomaly:
            description = f"Rule-based detection flagged: {', '.join(indicators)}"
            explanation = f"Found {len(indicators)} security indicators (score: {total:g})"
        else:
            description = "No anomalies detected"
            explanation = "Rule-based analysis shows normal behavior patterns"

        return AnomalyVerdict(
            is_anomaly=is_anomaly,
            risk_score=risk_score,
            anomaly_type="_".join(indicators) if is_anomaly else "normal",
            indicators=indicators,
            description=description,
            explanation=explanation,
            confidence=(
                cfg.scoring.anomalous_confidence if is_anomaly else cfg.scoring.normal_confidence
            ),
            recommendations=self._recommendations(triggered),
            rule_results=results,
        )

    def score_batch(self, entries: list[LogEntry]) -> list[Anomaly]:
        """Score entries in order and return anomalies only."""
        anomalies: list[Anomaly] = []
        for entry in entries:
            verdict = self.score(entry)
            if verdict.is_anomaly:
                anomalies.append(verdict.to_anomaly(entry))

        logger.info(
            "rule_batch_scored",
            entries=len(entries),
            anomalies=len(anomalies),
        )
        return anomalies
