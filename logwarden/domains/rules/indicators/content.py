"""Indicators computed from a single entry's own fields."""

from urllib.parse import urlsplit

from logwarden.domains.logs.models import LogEntry

from ..config import RuleConfig
from ..models import RuleResult
from .base import IndicatorRule
from .window import RecentHistory


def _url_host(url: str) -> str:
    """Best-effort host extraction; proxy exports often drop the scheme."""
    candidate = url if "://" in url else f"http://{url}"
    try:
        return (urlsplit(candidate).hostname or "").lower()
    except ValueError:
        return ""


class BlockedActionRule(IndicatorRule):
    """Triggers when the proxy blocked the request (action or 403)."""

    rule_id = "blocked_action"
    category = "content"
    recommendations = ("Review firewall policies",)

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        action = entry.action.lower()
        status = entry.status_code or ""
        if action not in config.lists.blocked_actions and status not in config.lists.blocked_status_codes:
            return self._not_triggered()

        return self._triggered(
            points=config.points.blocked_action,
            details=f"Request blocked (action={entry.action}, status={status or 'n/a'})",
            evidence={"action": entry.action, "status_code": status},
        )


class MaliciousDomainRule(IndicatorRule):
    """Triggers on known-bad TLDs or URL markers."""

    rule_id = "malicious_domain"
    category = "content"
    recommendations = ("Block domain at DNS level", "Investigate source system")

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        if not entry.url:
            return self._not_triggered()

        url = entry.url.lower()
        host = _url_host(url)
        matched = next(
            (tld for tld in config.lists.malicious_tlds if host.endswith(tld)), None
        )
        if matched is None:
            matched = next(
                (m for m in config.lists.malicious_url_markers if m in url), None
            )
        if matched is None:
            return self._not_triggered()

        return self._triggered(
            points=config.points.malicious_domain,
            details=f"URL matches bad indicator '{matched}'",
            evidence={"indicator": matched, "host": host},
        )


class AutomationUserAgentRule(IndicatorRule):
    """Triggers on scripted clients (curl, wget, python, postman)."""

    rule_id = "suspicious_user_agent"
    category = "content"
    recommendations = ("Monitor for automated attacks",)

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        agent = (entry.user_agent or "").lower()
        matched = next((a for a in config.lists.automation_agents if a in agent), None)
        if matched is None:
            return self._not_triggered()

        return self._triggered(
            points=config.points.suspicious_user_agent,
            details=f"Automation user agent: {entry.user_agent}",
            evidence={"agent": matched},
        )


class MaliciousCategoryRule(IndicatorRule):
    """Triggers when the proxy categorized the destination as malicious."""

    rule_id = "malware_category"
    category = "content"
    recommendations = ("Quarantine affected system", "Run security scan")

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        category = (entry.category or "").lower()
        matched = next((c for c in config.lists.malicious_categories if c in category), None)
        if matched is None:
            return self._not_triggered()

        return self._triggered(
            points=config.points.malware_category,
            details=f"Malicious category: {entry.category}",
            evidence={"category": entry.category},
        )


class LargeTransferRule(IndicatorRule):
    """Triggers when a single request moves more than the byte threshold."""

    rule_id = "large_transfer"
    category = "content"
    recommendations = ("Monitor data exfiltration",)

    def evaluate(
        self,
        entry: LogEntry,
        history: RecentHistory | None,
        config: RuleConfig,
    ) -> RuleResult:
        threshold = config.thresholds.large_transfer_bytes
        if not entry.byte_count or entry.byte_count <= threshold:
            return self._not_triggered()

        return self._triggered(
            points=config.points.large_transfer,
            details=f"{entry.byte_count:,} bytes transferred (threshold: {threshold:,})",
            evidence={"bytes": entry.byte_count, "threshold": threshold},
        )
