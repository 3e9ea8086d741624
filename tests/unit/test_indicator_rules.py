"""Unit tests for individual indicator rules and the recent-history window."""

import pytest

from logwarden.domains.rules.config import RuleConfig
from logwarden.domains.rules.indicators import (
    AutomationUserAgentRule,
    BlockedActionRule,
    LargeTransferRule,
    MaliciousCategoryRule,
    MaliciousDomainRule,
    NewSourceRule,
    RapidRequestsRule,
    RecentHistory,
)
from tests.conftest import make_entry

CONFIG = RuleConfig()


class TestBlockedActionRule:
    rule = BlockedActionRule()

    def test_blocked_action(self):
        result = self.rule.evaluate(make_entry(action="Blocked"), None, CONFIG)
        assert result.triggered
        assert result.points == 3.0
        assert result.category == "content"

    def test_forbidden_status(self):
        result = self.rule.evaluate(make_entry(status_code="403"), None, CONFIG)
        assert result.triggered

    def test_allowed(self):
        assert not self.rule.evaluate(make_entry(), None, CONFIG).triggered


class TestMaliciousDomainRule:
    rule = MaliciousDomainRule()

    @pytest.mark.parametrize(
        "url",
        [
            "http://update-server.ru/get",
            "malware-test.biz/payload",
            "https://suspicious-host.example.com/",
            "https://cdn.example.com/phishing/login",
        ],
    )
    def test_bad_urls(self, url):
        result = self.rule.evaluate(make_entry(url=url), None, CONFIG)
        assert result.triggered
        assert result.points == 4.0

    def test_tld_matched_on_host_only(self):
        entry = make_entry(url="https://example.com/docs/country.ru/readme")
        assert not self.rule.evaluate(entry, None, CONFIG).triggered

    def test_no_url(self):
        assert not self.rule.evaluate(make_entry(url=None), None, CONFIG).triggered

    def test_evidence_names_indicator(self):
        result = self.rule.evaluate(make_entry(url="http://files.biz/"), None, CONFIG)
        assert result.evidence["indicator"] == ".biz"
        assert result.evidence["host"] == "files.biz"


class TestAutomationUserAgentRule:
    rule = AutomationUserAgentRule()

    @pytest.mark.parametrize("agent", ["curl/8.4.0", "Wget/1.21", "python-requests/2.31", "PostmanRuntime/7.36"])
    def test_automation_agents(self, agent):
        assert self.rule.evaluate(make_entry(user_agent=agent), None, CONFIG).triggered

    def test_browser(self):
        assert not self.rule.evaluate(make_entry(), None, CONFIG).triggered

    def test_missing_agent(self):
        assert not self.rule.evaluate(make_entry(user_agent=None), None, CONFIG).triggered


class TestMaliciousCategoryRule:
    rule = MaliciousCategoryRule()

    @pytest.mark.parametrize("category", ["Malware", "Proxy Avoidance", "Phishing Sites"])
    def test_bad_categories(self, category):
        result = self.rule.evaluate(make_entry(category=category), None, CONFIG)
        assert result.triggered
        assert result.points == 5.0

    def test_business(self):
        assert not self.rule.evaluate(make_entry(), None, CONFIG).triggered


class TestLargeTransferRule:
    rule = LargeTransferRule()

    def test_above_threshold(self):
        result = self.rule.evaluate(make_entry(byte_count=100_001), None, CONFIG)
        assert result.triggered
        assert result.evidence["bytes"] == 100_001

    def test_at_threshold(self):
        assert not self.rule.evaluate(make_entry(byte_count=100_000), None, CONFIG).triggered

    def test_unknown_size(self):
        assert not self.rule.evaluate(make_entry(byte_count=None), None, CONFIG).triggered


class TestRecentHistory:
    def test_eviction_keeps_counts_in_step(self):
        history = RecentHistory(max_size=3)
        for source in ["a", "b", "a", "c"]:
            history.record(source)
        assert len(history) == 3
        assert history.seen("a") == 1
        assert history.seen("b") == 1
        assert history.seen("c") == 1

    def test_recent_count(self):
        history = RecentHistory()
        for source in ["a", "a", "b", "a", "b"]:
            history.record(source)
        assert history.recent_count("a", 2) == 1
        assert history.recent_count("a", 5) == 3

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            RecentHistory(max_size=0)


class TestNewSourceRule:
    rule = NewSourceRule()

    def _warm_history(self, size: int) -> RecentHistory:
        history = RecentHistory()
        for i in range(size):
            history.record(f"10.0.0.{i}")
        return history

    def test_needs_warm_window(self):
        history = self._warm_history(10)
        assert not self.rule.evaluate(make_entry(source_address="172.16.0.1"), history, CONFIG).triggered

    def test_unseen_source(self):
        history = self._warm_history(11)
        result = self.rule.evaluate(make_entry(source_address="172.16.0.1"), history, CONFIG)
        assert result.triggered
        assert result.points == 1.0
        assert result.category == "history"

    def test_known_source(self):
        history = self._warm_history(11)
        assert not self.rule.evaluate(make_entry(source_address="10.0.0.3"), history, CONFIG).triggered

    def test_without_history(self):
        assert not self.rule.evaluate(make_entry(), None, CONFIG).triggered


class TestRapidRequestsRule:
    rule = RapidRequestsRule()

    def test_third_request_in_window(self):
        history = RecentHistory()
        history.record("10.0.0.1")
        history.record("10.0.0.1")
        result = self.rule.evaluate(make_entry(source_address="10.0.0.1"), history, CONFIG)
        assert result.triggered
        assert result.evidence["count"] == 3

    def test_second_request_only(self):
        history = RecentHistory()
        history.record("10.0.0.1")
        assert not self.rule.evaluate(make_entry(source_address="10.0.0.1"), history, CONFIG).triggered

    def test_old_requests_fall_out_of_window(self):
        history = RecentHistory()
        history.record("10.0.0.1")
        history.record("10.0.0.1")
        for i in range(9):
            history.record(f"10.0.1.{i}")
        assert not self.rule.evaluate(make_entry(source_address="10.0.0.1"), history, CONFIG).triggered
