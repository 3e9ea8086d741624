"""Rule-based detection domain."""

from .config import RuleConfig
from .detector import RuleBasedDetector
from .indicators import ALL_RULES, MINIMAL_RULES, IndicatorRule, RecentHistory
from .models import AnomalyVerdict, RuleResult

__all__ = [
    "ALL_RULES",
    "MINIMAL_RULES",
    "AnomalyVerdict",
    "IndicatorRule",
    "RecentHistory",
    "RuleBasedDetector",
    "RuleConfig",
    "RuleResult",
]
