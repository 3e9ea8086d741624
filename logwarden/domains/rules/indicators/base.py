"""Abstract base class for rule-based indicators."""

from abc import ABC, abstractmethod

from logwarden.domains.logs.models import LogEntry

from ..config import RuleConfig
from ..models import RuleResult
from .window import RecentHistory


class IndicatorRule(ABC):
    """Base class for all indicator rules.

    Rules are pure and synchronous. They receive the entry, the detector's
    recent-history window (None when the detector runs without one) and the
    config, and report how many points they contribute.
    """

    rule_id: str
    category: str  # "content" | "history"
    recommendations: tuple[str, ...] = ()

    @abstractmethod
    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        """Evaluate this rule and return a RuleResult."""
        ...

    def _not_triggered(self) -> RuleResult:
        """Convenience: return a non-triggered result for this rule."""
        return RuleResult(
            rule_name=self.rule_id,
            triggered=False,
            category=self.category,
        )

    def _triggered(
        self,
        points: float,
        details: str,
        evidence: dict | None = None,
    ) -> RuleResult:
        """Convenience: return a triggered result for this rule."""
        return RuleResult(
            rule_name=self.rule_id,
            triggered=True,
            points=points,
            details=details,
            evidence=evidence or {},
            category=self.category,
        )
