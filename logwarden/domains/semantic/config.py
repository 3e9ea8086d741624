"""Semantic detector configuration with sensible defaults.

Provider selection (provider, tier, temperature, request timeout) lives in the
application Settings; this config only covers how the detector runs.
"""

import os
from dataclasses import dataclass, field


@dataclass
class BatchThrottle:
    # Sleep after each call once a batch is larger than min_batch_size
    delay_seconds: float = 0.1
    min_batch_size: int = 10


@dataclass
class SemanticConfig:
    throttle: BatchThrottle = field(default_factory=BatchThrottle)
    # Score each entry with the rule-based detector before calling the provider
    use_rule_fallback: bool = True

    @classmethod
    def from_env(cls) -> "SemanticConfig":
        """Load config with env var overrides. Env vars use SEMANTIC_ prefix."""
        config = cls()

        if v := os.getenv("SEMANTIC_BATCH_DELAY"):
            config.throttle.delay_seconds = float(v)
        if v := os.getenv("SEMANTIC_USE_RULE_FALLBACK"):
            config.use_rule_fallback = v.lower() in ("1", "true", "yes")

        return config


# Module-level default instance
default_config = SemanticConfig()
