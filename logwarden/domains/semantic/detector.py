"""Language-model-backed semantic detector with a rule-based fallback chain."""

import asyncio
import json

import structlog

from logwarden.config import Settings, settings
from logwarden.domains.logs.models import (
    Anomaly,
    DetectionMethod,
    LogEntry,
    Severity,
    severity_for_score,
)
from logwarden.domains.rules.detector import RuleBasedDetector
from logwarden.domains.rules.models import AnomalyVerdict

from .config import SemanticConfig, default_config
from .errors import classify_provider_error
from .models import ProviderConfig, ProviderResponse, SemanticVerdict
from .prompts import SYSTEM_PROMPT, build_analysis_prompt
from .providers import ProviderRegistry, get_provider_registry

logger = structlog.get_logger()

MINIMAL_RULE_RECOMMENDATIONS = ["Review security policies", "Monitor source IP"]
MANUAL_REVIEW = "Manual review required"


def parse_verdict(content: str | None) -> SemanticVerdict:
    """Parse a provider reply. Raises ValueError on anything but a JSON object."""
    payload = json.loads(content or "{}")
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return SemanticVerdict.model_validate(payload)


def _merge(first: list[str], second: list[str]) -> list[str]:
    merged: list[str] = []
    for item in [*first, *second]:
        if item not in merged:
            merged.append(item)
    return merged


class SemanticDetector:
    """Scores entries with a language model, falling back to rules on failure.

    Decision order per entry:
    1. Rule-based verdict (failure -> no rule verdict)
    2. Provider call with the fixed prompts, strict JSON verdict
    3. Anomalous rule verdict with risk >= provider risk wins, recommendations merged
    4. Provider or parse failure -> rule verdict annotated with the failure class,
       else the minimal rule set's verdict

    analyze_log_entry never raises.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        config: SemanticConfig | None = None,
        rule_detector: RuleBasedDetector | None = None,
        minimal_detector: RuleBasedDetector | None = None,
        app_settings: Settings | None = None,
    ) -> None:
        self._settings = app_settings or settings
        self._registry = registry or get_provider_registry()
        self._config = config or default_config
        self._rules = rule_detector or RuleBasedDetector()
        self._minimal = minimal_detector or RuleBasedDetector.minimal()

    def resolve_config(self, config: ProviderConfig | None = None) -> ProviderConfig:
        if config is not None:
            return config
        return ProviderConfig(
            provider=self._settings.ai_provider,
            tier=self._settings.ai_model_tier,
            temperature=self._settings.ai_temperature,
        )

    async def analyze_log_entry(
        self, entry: LogEntry, config: ProviderConfig | None = None
    ) -> Anomaly:
        try:
            return await self._analyze(entry, self.resolve_config(config))
        except Exception as exc:
            logger.exception("semantic_analysis_failed", source=entry.source_address)
            return self._analysis_failed(entry, exc)

    async def analyze_batch(
        self, entries: list[LogEntry], config: ProviderConfig | None = None
    ) -> list[Anomaly]:
        """Sequential per-entry analysis, throttled for larger batches."""
        throttle = self._config.throttle
        delay = throttle.delay_seconds if len(entries) > throttle.min_batch_size else 0.0
        results: list[Anomaly] = []
        for entry in entries:
            results.append(await self.analyze_log_entry(entry, config))
            if delay:
                await asyncio.sleep(delay)
        return results

    async def _analyze(self, entry: LogEntry, config: ProviderConfig) -> Anomaly:
        rule_verdict: AnomalyVerdict | None = None
        if self._config.use_rule_fallback:
            try:
                rule_verdict = self._rules.score(entry)
            except Exception:
                logger.warning("rule_verdict_failed", source=entry.source_address, exc_info=True)

        try:
            provider = self._registry.get(config.provider)
            response = await provider.analyze(SYSTEM_PROMPT, build_analysis_prompt(entry), config)
            verdict = parse_verdict(response.content)
        except Exception as exc:
            return self._fallback(entry, rule_verdict, exc, config)

        if (
            rule_verdict is not None
            and rule_verdict.is_anomaly
            and rule_verdict.risk_score >= verdict.risk_score
        ):
            combined = rule_verdict.model_copy(
                update={
                    "explanation": f"Rules + AI: {rule_verdict.explanation}",
                    "recommendations": _merge(
                        rule_verdict.recommendations, verdict.recommendations
                    ),
                }
            )
            return combined.to_anomaly(
                entry,
                DetectionMethod.SEMANTIC,
                metadata={"verdict_source": "rule-based", **self._provider_meta(response)},
            )

        return Anomaly(
            log_entry=entry,
            anomaly_type=verdict.anomaly_type,
            is_anomaly=verdict.is_anomaly,
            risk_score=verdict.risk_score,
            confidence=verdict.confidence,
            description=verdict.description,
            explanation=f"AI Analysis: {verdict.explanation}",
            recommendations=verdict.recommendations,
            detection_method=DetectionMethod.SEMANTIC,
            severity=severity_for_score(verdict.risk_score),
            metadata={"verdict_source": "provider", **self._provider_meta(response)},
        )

    def _provider_meta(self, response: ProviderResponse) -> dict:
        return {
            "provider": str(response.provider),
            "model": response.model,
            "usage": response.usage.model_dump(),
        }

    def _fallback(
        self,
        entry: LogEntry,
        rule_verdict: AnomalyVerdict | None,
        error: Exception,
        config: ProviderConfig,
    ) -> Anomaly:
        error_type = str(classify_provider_error(error))
        meta = {
            "provider": str(config.provider),
            "fallback": True,
            "ai_error_type": error_type,
            "ai_error": str(error),
        }
        logger.warning(
            "semantic_fallback",
            source=entry.source_address,
            provider=str(config.provider),
            error_type=error_type,
            has_rule_verdict=rule_verdict is not None,
        )

        if rule_verdict is not None:
            annotated = rule_verdict.model_copy(
                update={
                    "explanation": f"Rule-based fallback: {rule_verdict.explanation} (AI {error_type})",
                    "recommendations": [
                        *rule_verdict.recommendations,
                        f"AI analysis failed ({error_type}) - using rule-based detection",
                    ],
                }
            )
            return annotated.to_anomaly(
                entry,
                DetectionMethod.SEMANTIC,
                metadata={"verdict_source": "rule-based", **meta},
            )

        minimal = self._minimal.score(entry)
        base = MINIMAL_RULE_RECOMMENDATIONS if minimal.is_anomaly else []
        annotated = minimal.model_copy(
            update={
                "explanation": f"Fallback detection: {minimal.explanation} (AI {error_type})",
                "recommendations": [*base, MANUAL_REVIEW, f"AI provider issue: {error_type}"],
            }
        )
        return annotated.to_anomaly(
            entry,
            DetectionMethod.SEMANTIC,
            metadata={"verdict_source": "minimal-rules", **meta},
        )

    def _analysis_failed(self, entry: LogEntry, error: Exception) -> Anomaly:
        return Anomaly(
            log_entry=entry,
            anomaly_type="analysis_failed",
            is_anomaly=False,
            risk_score=0.0,
            confidence=0.0,
            description="Analysis failed",
            explanation=f"Semantic analysis failed unexpectedly: {error}",
            recommendations=[MANUAL_REVIEW],
            detection_method=DetectionMethod.SEMANTIC,
            severity=Severity.LOW,
            metadata={"error": str(error)},
        )
