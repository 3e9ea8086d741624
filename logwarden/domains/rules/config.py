"""Rule-based detection configuration with sensible defaults."""

import os
from dataclasses import dataclass, field


@dataclass
class IndicatorPoints:
    blocked_action: float = 3.0
    malicious_domain: float = 4.0
    suspicious_user_agent: float = 2.0
    malware_category: float = 5.0
    large_transfer: float = 2.0
    new_source_ip: float = 1.0
    rapid_requests: float = 1.0
    # Added once when "blocked" co-occurs with any other indicator
    blocked_combo_bonus: float = 2.0


@dataclass
class IndicatorLists:
    # Matched against the end of the URL host
    malicious_tlds: tuple[str, ...] = (".ru", ".biz")
    # Matched anywhere in the lowercased URL
    malicious_url_markers: tuple[str, ...] = (
        "unknown-",
        "suspicious-",
        "tor-",
        "dark-",
        "proxy-",
        "malware",
        "phish",
    )
    automation_agents: tuple[str, ...] = ("curl", "wget", "python", "postman")
    malicious_categories: tuple[str, ...] = ("malware", "proxy avoidance", "phishing")
    blocked_actions: tuple[str, ...] = ("blocked",)
    blocked_status_codes: tuple[str, ...] = ("403",)


@dataclass
class RuleThresholds:
    anomaly_threshold: float = 4.0
    max_score: float = 10.0
    large_transfer_bytes: int = 100_000
    # Recent-history window (per detector instance)
    history_size: int = 1000
    new_source_min_history: int = 10
    rapid_window: int = 10
    rapid_min_count: int = 3


@dataclass
class RuleScoring:
    combo_bonus_enabled: bool = True
    anomalous_confidence: float = 0.8
    normal_confidence: float = 0.7


@dataclass
class RuleConfig:
    points: IndicatorPoints = field(default_factory=IndicatorPoints)
    lists: IndicatorLists = field(default_factory=IndicatorLists)
    thresholds: RuleThresholds = field(default_factory=RuleThresholds)
    scoring: RuleScoring = field(default_factory=RuleScoring)

    @classmethod
    def minimal(cls) -> "RuleConfig":
        """Reduced indicator set used as the last-resort semantic fallback."""
        return cls(
            points=IndicatorPoints(
                blocked_action=4.0,
                malicious_domain=5.0,
                suspicious_user_agent=3.0,
                malware_category=6.0,
                large_transfer=2.0,
            ),
            lists=IndicatorLists(
                malicious_url_markers=("malware", "phish"),
                automation_agents=("curl", "wget", "python"),
                malicious_categories=("malware", "proxy"),
            ),
            scoring=RuleScoring(
                combo_bonus_enabled=False,
                anomalous_confidence=0.7,
                normal_confidence=0.7,
            ),
        )

    @classmethod
    def from_env(cls) -> "RuleConfig":
        """Load config with env var overrides. Env vars use RULES_ prefix."""
        config = cls()

        if v := os.getenv("RULES_ANOMALY_THRESHOLD"):
            config.thresholds.anomaly_threshold = float(v)
        if v := os.getenv("RULES_LARGE_TRANSFER_BYTES"):
            config.thresholds.large_transfer_bytes = int(v)
        if v := os.getenv("RULES_HISTORY_SIZE"):
            config.thresholds.history_size = int(v)
        if v := os.getenv("RULES_MALICIOUS_URL_MARKERS"):
            config.lists.malicious_url_markers = tuple(
                m.strip().lower() for m in v.split(",") if m.strip()
            )
        if v := os.getenv("RULES_AUTOMATION_AGENTS"):
            config.lists.automation_agents = tuple(
                a.strip().lower() for a in v.split(",") if a.strip()
            )

        return config


# Module-level default instance
default_config = RuleConfig()
