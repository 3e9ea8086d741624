"""Indicator rules package.

Exports ALL_RULES (full indicator set in evaluation order), MINIMAL_RULES
(content-only subset used by the last-resort fallback) and the rule classes
for direct use.
"""

from .base import IndicatorRule
from .content import (
    AutomationUserAgentRule,
    BlockedActionRule,
    LargeTransferRule,
    MaliciousCategoryRule,
    MaliciousDomainRule,
)
from .history import NewSourceRule, RapidRequestsRule
from .window import RecentHistory

# All rule instances in evaluation order
ALL_RULES: list[IndicatorRule] = [
    # Content rules
    BlockedActionRule(),
    MaliciousDomainRule(),
    AutomationUserAgentRule(),
    MaliciousCategoryRule(),
    LargeTransferRule(),
    # History rules
    NewSourceRule(),
    RapidRequestsRule(),
]

MINIMAL_RULES: list[IndicatorRule] = [r for r in ALL_RULES if r.category == "content"]

__all__ = [
    "ALL_RULES",
    "MINIMAL_RULES",
    "IndicatorRule",
    "RecentHistory",
    # Content
    "BlockedActionRule",
    "MaliciousDomainRule",
    "AutomationUserAgentRule",
    "MaliciousCategoryRule",
    "LargeTransferRule",
    # History
    "NewSourceRule",
    "RapidRequestsRule",
]
