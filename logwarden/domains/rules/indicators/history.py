"""Indicators that read the detector's recent-history window."""

from logwarden.domains.logs.models import LogEntry

from ..config import RuleConfig
from ..models import RuleResult
from .base import IndicatorRule
from .window import RecentHistory


class NewSourceRule(IndicatorRule):
    """Triggers the first time a source shows up once the window has warmed up."""

    rule_id = "new_source_ip"
    category = "history"
    recommendations = ("Verify IP reputation",)

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        if history is None or len(history) <= config.thresholds.new_source_min_history:
            return self._not_triggered()
        if history.seen(entry.source_address) > 0:
            return self._not_triggered()

        return self._triggered(
            points=config.points.new_source_ip,
            details=f"First request from {entry.source_address} in recent history",
            evidence={"history_size": len(history)},
        )


class RapidRequestsRule(IndicatorRule):
    """Triggers when one source dominates the most recent requests."""

    rule_id = "rapid_requests"
    category = "history"
    recommendations = ("Consider rate limiting",)

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        if history is None:
            return self._not_triggered()

        window = config.thresholds.rapid_window
        # The entry under evaluation counts as one of the window's requests
        count = history.recent_count(entry.source_address, window - 1) + 1
        if count < config.thresholds.rapid_min_count:
            return self._not_triggered()

        return self._triggered(
            points=config.points.rapid_requests,
            details=f"{count} of the last {window} requests came from {entry.source_address}",
            evidence={"count": count, "window": window},
        )
