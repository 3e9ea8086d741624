"""Detection-method selector resolution.

Maps a selector (``traditional``, ``advanced``, ``semantic`` or a custom
provider config) onto a freshly built detector and the batch size it runs
with. A new plan is built for every job so no detector state is shared
between jobs.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from logwarden.domains.ensemble.detector import EnsembleDetector
from logwarden.domains.logs.models import Anomaly, LogEntry
from logwarden.domains.rules.detector import RuleBasedDetector
from logwarden.domains.semantic.config import SemanticConfig
from logwarden.domains.semantic.detector import SemanticDetector
from logwarden.domains.semantic.models import ProviderConfig
from logwarden.domains.semantic.providers import ProviderRegistry

from .config import BatchConfig
from .models import DetectionSelector

Selector = DetectionSelector | ProviderConfig


def parse_selector(value: Any) -> Selector:
    """Accept a selector tag, a provider-config mapping or a ProviderConfig."""
    if isinstance(value, (DetectionSelector, ProviderConfig)):
        return value
    if isinstance(value, dict):
        return ProviderConfig.model_validate(value)
    try:
        return DetectionSelector(str(value).lower())
    except ValueError:
        raise ValueError(
            f"Unknown detection method '{value}'. "
            f"Expected one of: {', '.join(s.value for s in DetectionSelector)}"
        ) from None


def resolve_selector(detection_method: Any, ai_config: ProviderConfig | None = None) -> Selector:
    """A semantic request carrying an explicit provider config uses that config."""
    selector = parse_selector(detection_method)
    if ai_config is not None and selector == DetectionSelector.SEMANTIC:
        return ai_config
    return selector


def selector_label(selector: Selector) -> str:
    if isinstance(selector, ProviderConfig):
        return f"{DetectionSelector.SEMANTIC}:{selector.provider}:{selector.tier}"
    return str(selector)


@dataclass
class DetectionPlan:
    label: str
    batch_size: int
    detect: Callable[[list[LogEntry]], Awaitable[list[Anomaly]]]


def build_plan(
    selector: Selector,
    batch_config: BatchConfig,
    registry: ProviderRegistry | None = None,
    semantic_config: SemanticConfig | None = None,
) -> DetectionPlan:
    label = selector_label(selector)

    if selector == DetectionSelector.TRADITIONAL:
        rules = RuleBasedDetector()

        async def detect(entries: list[LogEntry]) -> list[Anomaly]:
            return rules.score_batch(entries)

        return DetectionPlan(label, batch_config.batch_size, detect)

    if selector == DetectionSelector.ADVANCED:
        ensemble = EnsembleDetector()

        async def detect(entries: list[LogEntry]) -> list[Anomaly]:
            return ensemble.analyze(entries)

        return DetectionPlan(label, batch_config.ensemble_batch_size, detect)

    # None falls back to the provider defaults from Settings
    provider_config = selector if isinstance(selector, ProviderConfig) else None
    semantic = SemanticDetector(registry=registry, config=semantic_config)

    async def detect(entries: list[LogEntry]) -> list[Anomaly]:
        return await semantic.analyze_batch(entries, provider_config)

    return DetectionPlan(label, batch_config.batch_size, detect)
