"""Tests for the semantic detector and its fallback chain."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from logwarden.config import Settings
from logwarden.domains.logs.models import DetectionMethod
from logwarden.domains.semantic.config import SemanticConfig
from logwarden.domains.semantic.detector import (
    MANUAL_REVIEW,
    MINIMAL_RULE_RECOMMENDATIONS,
    SemanticDetector,
    parse_verdict,
)
from logwarden.domains.semantic.errors import ProviderError, ProviderErrorType
from logwarden.domains.semantic.models import (
    AIProvider,
    ModelTier,
    ProviderConfig,
    ProviderResponse,
)
from logwarden.domains.semantic.providers import ProviderRegistry
from tests.conftest import make_entry


def _provider(content: str | None = None, error: Exception | None = None) -> MagicMock:
    provider = MagicMock()
    provider.provider = AIProvider.OPENAI
    if error is not None:
        provider.analyze = AsyncMock(side_effect=error)
    else:
        provider.analyze = AsyncMock(
            return_value=ProviderResponse(
                content=content, provider=AIProvider.OPENAI, model="gpt-4o-mini"
            )
        )
    return provider


def _detector(provider: MagicMock, **config_kwargs) -> SemanticDetector:
    registry = ProviderRegistry()
    registry.register(provider)
    return SemanticDetector(registry=registry, config=SemanticConfig(**config_kwargs))


AI_VERDICT = json.dumps(
    {
        "isAnomaly": True,
        "riskScore": 6.5,
        "anomalyType": "data_exfiltration",
        "description": "Large upload to unfamiliar host",
        "confidence": 0.75,
        "explanation": "Transfer volume is unusual",
        "recommendations": ["Review transfer"],
    }
)


class TestParseVerdict:
    def test_full_verdict(self):
        verdict = parse_verdict(AI_VERDICT)
        assert verdict.is_anomaly
        assert verdict.risk_score == 6.5
        assert verdict.anomaly_type == "data_exfiltration"

    def test_defaults_for_missing_fields(self):
        verdict = parse_verdict("{}")
        assert not verdict.is_anomaly
        assert verdict.risk_score == 0.0
        assert verdict.anomaly_type == "unknown"
        assert verdict.description == "No description available"
        assert verdict.recommendations == []

    def test_scores_clamped(self):
        verdict = parse_verdict('{"riskScore": 42, "confidence": -1}')
        assert verdict.risk_score == 10.0
        assert verdict.confidence == 0.0

    def test_string_recommendation_wrapped(self):
        assert parse_verdict('{"recommendations": "Block it"}').recommendations == ["Block it"]

    def test_not_json(self):
        with pytest.raises(ValueError):
            parse_verdict("I think this log looks fine")

    def test_json_array_rejected(self):
        with pytest.raises(ValueError):
            parse_verdict("[1, 2, 3]")


class TestProviderVerdict:
    @pytest.mark.asyncio
    async def test_provider_verdict_used(self, benign_entry):
        provider = _provider(AI_VERDICT)
        anomaly = await _detector(provider).analyze_log_entry(benign_entry)
        assert anomaly.detection_method == DetectionMethod.SEMANTIC
        assert anomaly.risk_score == 6.5
        assert anomaly.anomaly_type == "data_exfiltration"
        assert anomaly.explanation == "AI Analysis: Transfer volume is unusual"
        assert anomaly.metadata["verdict_source"] == "provider"
        assert anomaly.metadata["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_prompts_sent(self, benign_entry):
        provider = _provider(AI_VERDICT)
        await _detector(provider).analyze_log_entry(benign_entry)
        system_prompt, user_prompt, config = provider.analyze.await_args.args
        assert "cybersecurity analyst" in system_prompt
        assert "Source IP: 192.168.1.10" in user_prompt
        assert config.provider == AIProvider.OPENAI

    @pytest.mark.asyncio
    async def test_stronger_rule_verdict_wins(self, malicious_entry):
        provider = _provider(AI_VERDICT)
        anomaly = await _detector(provider).analyze_log_entry(malicious_entry)
        assert anomaly.risk_score == 10.0
        assert anomaly.explanation.startswith("Rules + AI: ")
        assert anomaly.metadata["verdict_source"] == "rule-based"
        assert "Review transfer" in anomaly.recommendations
        assert "Review firewall policies" in anomaly.recommendations

    @pytest.mark.asyncio
    async def test_rules_skipped_when_disabled(self, malicious_entry):
        provider = _provider(AI_VERDICT)
        anomaly = await _detector(provider, use_rule_fallback=False).analyze_log_entry(
            malicious_entry
        )
        assert anomaly.risk_score == 6.5
        assert anomaly.metadata["verdict_source"] == "provider"


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_rate_limit_falls_back_to_rules(self, malicious_entry):
        error = ProviderError("429 Too Many Requests", ProviderErrorType.RATE_LIMITED, "openai")
        anomaly = await _detector(_provider(error=error)).analyze_log_entry(malicious_entry)
        assert anomaly.is_anomaly
        assert anomaly.risk_score == 10.0
        assert anomaly.explanation.startswith("Rule-based fallback: ")
        assert anomaly.explanation.endswith("(AI rate_limited)")
        assert anomaly.metadata["fallback"] is True
        assert anomaly.metadata["ai_error_type"] == "rate_limited"
        assert anomaly.recommendations[-1] == (
            "AI analysis failed (rate_limited) - using rule-based detection"
        )

    @pytest.mark.asyncio
    async def test_unexpected_provider_exception_falls_back_to_rules(self, malicious_entry):
        provider = _provider(error=RuntimeError("upstream connection reset"))
        anomaly = await _detector(provider).analyze_log_entry(malicious_entry)
        assert anomaly.is_anomaly
        assert anomaly.risk_score == 10.0
        assert anomaly.anomaly_type != "analysis_failed"
        assert anomaly.explanation.startswith("Rule-based fallback: ")
        assert anomaly.explanation.endswith("(AI network_issue)")
        assert anomaly.metadata["verdict_source"] == "rule-based"

    @pytest.mark.asyncio
    async def test_unparseable_reply_falls_back(self, benign_entry):
        anomaly = await _detector(_provider("not json")).analyze_log_entry(benign_entry)
        assert not anomaly.is_anomaly
        assert anomaly.metadata["verdict_source"] == "rule-based"
        assert anomaly.metadata["fallback"] is True

    @pytest.mark.asyncio
    async def test_minimal_rules_when_full_rules_fail(self):
        entry = make_entry(category="Malware")
        detector = _detector(
            _provider(error=ProviderError("connection reset", ProviderErrorType.NETWORK_ISSUE))
        )
        with patch.object(detector._rules, "score", side_effect=RuntimeError("rules down")):
            anomaly = await detector.analyze_log_entry(entry)

        assert anomaly.is_anomaly
        assert anomaly.risk_score == 6.0
        assert anomaly.explanation.startswith("Fallback detection: ")
        assert anomaly.metadata["verdict_source"] == "minimal-rules"
        assert anomaly.recommendations == [
            *MINIMAL_RULE_RECOMMENDATIONS,
            MANUAL_REVIEW,
            "AI provider issue: network_issue",
        ]

    @pytest.mark.asyncio
    async def test_minimal_rules_benign(self, benign_entry):
        detector = _detector(_provider(error=ProviderError("bad key", ProviderErrorType.AUTH_FAILED)))
        with patch.object(detector._rules, "score", side_effect=RuntimeError("rules down")):
            anomaly = await detector.analyze_log_entry(benign_entry)
        assert not anomaly.is_anomaly
        assert anomaly.recommendations == [MANUAL_REVIEW, "AI provider issue: auth_failed"]

    @pytest.mark.asyncio
    async def test_unregistered_provider(self, benign_entry):
        detector = SemanticDetector(registry=ProviderRegistry(), config=SemanticConfig())
        anomaly = await detector.analyze_log_entry(
            benign_entry, ProviderConfig(provider=AIProvider.GCP_GEMINI)
        )
        assert anomaly.metadata["ai_error_type"] == "model_issue"

    @pytest.mark.asyncio
    async def test_never_raises(self, benign_entry):
        detector = _detector(_provider(error=ProviderError("x")))
        with (
            patch.object(detector._rules, "score", side_effect=RuntimeError("rules down")),
            patch.object(detector._minimal, "score", side_effect=RuntimeError("minimal down")),
        ):
            anomaly = await detector.analyze_log_entry(benign_entry)
        assert anomaly.anomaly_type == "analysis_failed"
        assert not anomaly.is_anomaly
        assert anomaly.recommendations == [MANUAL_REVIEW]


class TestAnalyzeBatch:
    @pytest.mark.asyncio
    async def test_small_batch_not_throttled(self, benign_entry):
        detector = _detector(_provider(AI_VERDICT))
        with patch("logwarden.domains.semantic.detector.asyncio.sleep", new=AsyncMock()) as sleep:
            results = await detector.analyze_batch([benign_entry] * 10)
        assert len(results) == 10
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_large_batch_throttled(self, benign_entry):
        detector = _detector(_provider(AI_VERDICT))
        with patch("logwarden.domains.semantic.detector.asyncio.sleep", new=AsyncMock()) as sleep:
            results = await detector.analyze_batch([benign_entry] * 11)
        assert len(results) == 11
        assert sleep.await_count == 11
        sleep.assert_awaited_with(0.1)

    @pytest.mark.asyncio
    async def test_order_preserved(self):
        entries = [make_entry(source_address=f"10.0.0.{i}") for i in range(3)]
        results = await _detector(_provider(AI_VERDICT)).analyze_batch(entries)
        assert [r.log_entry.source_address for r in results] == [
            "10.0.0.0",
            "10.0.0.1",
            "10.0.0.2",
        ]


class TestProviderDefaults:
    def test_defaults_come_from_settings(self):
        detector = SemanticDetector(
            registry=ProviderRegistry(),
            app_settings=Settings(
                ai_provider="gcp_gemini", ai_model_tier="economy", ai_temperature=0.4
            ),
        )
        config = detector.resolve_config()
        assert config.provider == AIProvider.GCP_GEMINI
        assert config.tier == ModelTier.ECONOMY
        assert config.temperature == 0.4

    def test_explicit_config_wins(self):
        detector = SemanticDetector(registry=ProviderRegistry())
        explicit = ProviderConfig(provider=AIProvider.OPENAI, tier=ModelTier.PREMIUM)
        assert detector.resolve_config(explicit) is explicit
