"""Tests for the multi-pass ensemble detector."""

from unittest.mock import patch

import numpy as np

from logwarden.domains.ensemble import EnsembleDetector
from logwarden.domains.ensemble.config import EnsembleConfig
from logwarden.domains.ensemble.models import EnsembleAnomalyType, RiskPattern
from logwarden.domains.ensemble.passes.base import DetectionPass
from logwarden.domains.ensemble.passes.behavioral import BehavioralPass
from logwarden.domains.ensemble.passes.statistical import isolation_depth
from logwarden.domains.ensemble.profile import ProfileBuilder, address_octet_sum
from logwarden.domains.logs.models import DetectionMethod, Severity
from tests.conftest import at, make_entry


def _scanner_batch() -> list:
    """60 requests from one source spread across 25 destinations."""
    return [
        make_entry(
            timestamp=at(i),
            source_address="10.0.0.5",
            destination_address=f"172.16.0.{i % 25}",
        )
        for i in range(60)
    ]


def _spread_identical_batch() -> list:
    """11 identical requests 140 minutes apart, from 00:00 to 23:20."""
    return [make_entry(timestamp=at(-14 * 3600 + i * 140 * 60)) for i in range(11)]


def _quiet_batch() -> list:
    """11 ordinary requests from distinct sources during working hours."""
    return [
        make_entry(
            timestamp=f"2026-01-15T{8 + i:02d}:00:00+00:00",
            source_address=f"10.0.0.{i + 1}",
        )
        for i in range(11)
    ]


class TestProfileBuilder:
    def test_octet_sum(self):
        assert address_octet_sum("10.0.0.5") == 15
        assert address_octet_sum("fe80::1") == 0

    def test_user_profile(self):
        entries = [
            make_entry(category="Malware"),
            make_entry(category="Business", byte_count=4096),
        ]
        context = ProfileBuilder().build_context(entries)
        profile = context.user_profiles["alice"]
        assert profile.request_count == 2
        assert profile.avg_request_size == 3072
        assert profile.risk_pattern == RiskPattern.HIGH
        assert profile.common_hours == [14]

    def test_profile_falls_back_to_source(self):
        context = ProfileBuilder().build_context([make_entry(user=None)])
        assert "192.168.1.10" in context.user_profiles

    def test_every_used_category_is_common(self):
        entries = [make_entry(category=f"Category {n}") for n in range(12)]
        context = ProfileBuilder().build_context(entries)
        assert len(context.user_profiles["alice"].common_categories) == 12
        config = EnsembleConfig()
        config.behavioral.min_risk = 0.0
        assert BehavioralPass().run(context, config) == []

    def test_hours_tied_with_cutoff_are_common(self):
        context = ProfileBuilder().build_context(_spread_identical_batch())
        assert sorted(context.user_profiles["alice"].common_hours) == [
            0, 2, 4, 7, 9, 11, 14, 16, 18, 21, 23
        ]

    def test_network_profile_scanning_risk(self):
        context = ProfileBuilder().build_context(_scanner_batch())
        profile = context.network_profiles["10.0.0.5"]
        assert profile.unique_destinations == 25
        assert profile.total_requests == 60
        assert profile.risk_score == 5.0

    def test_zero_std_gives_zero_zscore(self):
        context = ProfileBuilder().build_context(_quiet_batch())
        assert context.bytes_std == 0
        assert context.bytes_zscore(0) == 0.0


class TestIsolationDepth:
    def test_identical_rows_isolate_immediately(self):
        features = np.ones((5, 3))
        assert isolation_depth(features, 0) == 1

    def test_largest_row_takes_longest(self):
        features = np.array([[float(i), float(i), float(i)] for i in range(20)])
        assert isolation_depth(features, 19) > isolation_depth(features, 0)

    def test_capped_at_max_depth(self):
        features = np.array([[float(i)] for i in range(1000)])
        assert isolation_depth(features, 999, max_depth=10) == 10


class TestEnsembleScenarios:
    def test_empty_batch(self):
        assert EnsembleDetector().analyze([]) == []

    def test_network_scan(self):
        anomalies = EnsembleDetector().analyze(_scanner_batch())
        scans = [a for a in anomalies if a.anomaly_type == EnsembleAnomalyType.NETWORK_SCANNING]
        assert len(scans) == 1
        scan = scans[0]
        assert scan.risk_score == 5.0
        assert scan.severity == Severity.HIGH
        assert scan.confidence == 0.9
        assert scan.detection_method == DetectionMethod.NETWORK
        assert scan.metadata["statistical_measures"]["unique_destinations"] == 25

    def test_burst_collapses_into_one_finding(self):
        anomalies = EnsembleDetector().analyze(_scanner_batch())
        bursts = [a for a in anomalies if a.anomaly_type == EnsembleAnomalyType.SEQUENCE]
        assert len(bursts) == 1
        assert bursts[0].risk_score == 8.0
        assert bursts[0].metadata["statistical_measures"]["windows_flagged"] == 51

    def test_quiet_batch_has_no_findings(self):
        assert EnsembleDetector().analyze(_quiet_batch()) == []

    def test_identical_entries_spread_across_day(self):
        anomalies = EnsembleDetector().analyze(_spread_identical_batch())
        quiet = {
            EnsembleAnomalyType.STATISTICAL,
            EnsembleAnomalyType.BEHAVIORAL,
            EnsembleAnomalyType.NETWORK_SCANNING,
            EnsembleAnomalyType.TIME_SERIES,
            EnsembleAnomalyType.ENSEMBLE,
        }
        # One source fills every window, so only the burst pass reports
        assert not [a for a in anomalies if a.anomaly_type in quiet]

    def test_off_hours_and_unusual_agent(self):
        browsers = [f"Mozilla/5.0 (Browser {n})" for n in range(5)]
        entries = [
            make_entry(
                timestamp=f"2026-01-15T{8 + i // 2:02d}:{i % 2 * 30:02d}:00+00:00",
                user_agent=browsers[i % 5],
            )
            for i in range(16)
        ]
        entries.append(
            make_entry(timestamp="2026-01-15T03:00:00+00:00", user_agent="curl/8.4.0")
        )
        anomalies = EnsembleDetector().analyze(entries)
        behavioral = [a for a in anomalies if a.anomaly_type == EnsembleAnomalyType.BEHAVIORAL]
        assert len(behavioral) == 1
        assert behavioral[0].log_entry.user_agent == "curl/8.4.0"
        assert behavioral[0].trigger_rules == ["off_hours_activity", "unusual_user_agent"]
        assert behavioral[0].risk_score == 3.5
        assert behavioral[0].severity == Severity.MEDIUM

    def test_results_sorted_by_risk(self):
        anomalies = EnsembleDetector().analyze(_scanner_batch())
        scores = [a.risk_score for a in anomalies]
        assert scores == sorted(scores, reverse=True)

    def test_deterministic(self):
        batch = _scanner_batch()
        first = EnsembleDetector().analyze(batch)
        second = EnsembleDetector().analyze(batch)
        strip = {"anomaly_id", "detected_at"}
        assert [a.model_dump(exclude=strip) for a in first] == [
            a.model_dump(exclude=strip) for a in second
        ]

    def test_failing_pass_is_contained(self):
        class BrokenPass(DetectionPass):
            pass_id = "broken"
            method = DetectionMethod.STATISTICAL

            def run(self, context, config):
                raise RuntimeError("boom")

        from logwarden.domains.ensemble.passes.network import NetworkPass

        detector = EnsembleDetector(EnsembleConfig(), passes=[BrokenPass(), NetworkPass()])
        anomalies = detector.analyze(_scanner_batch())
        assert [a.anomaly_type for a in anomalies] == [EnsembleAnomalyType.NETWORK_SCANNING]

    def test_context_failure_is_contained(self):
        detector = EnsembleDetector()
        with patch.object(
            detector._profiles, "build_context", side_effect=RuntimeError("bad batch")
        ):
            assert detector.analyze(_scanner_batch()) == []
