"""Ensemble detector configuration with sensible defaults.

Thresholds, points and weights for profile construction and the six
detection passes (statistical, behavioral, sequence, network, time-series,
weighted ensemble).
"""

import os
from dataclasses import dataclass, field


@dataclass
class ProfileConfig:
    """Batch-scoped behavioral profile parameters."""

    # Hours tied with the last of the top_hours are kept as well
    top_hours: int = 8
    top_user_agents: int = 5
    # Categories that mark a profile as high-risk (exact match)
    high_risk_categories: tuple[str, ...] = ("Cryptocurrency", "Proxy Avoidance", "Malware")
    high_risk_request_count: int = 1000
    medium_risk_request_count: int = 500
    medium_risk_user_agent_count: int = 5


@dataclass
class StatisticalConfig:
    zscore_threshold: float = 3.0
    isolation_max_depth: int = 10
    isolation_threshold: float = 0.7
    bytes_points: float = 2.0
    bytes_confidence: float = 0.15
    duration_points: float = 1.5
    duration_confidence: float = 0.12
    outlier_points: float = 3.0
    outlier_confidence: float = 0.2
    # Emit only above this accumulated risk
    min_risk: float = 2.0
    max_confidence: float = 0.95


@dataclass
class BehavioralConfig:
    # Working hours are [work_start_hour, work_end_hour)
    work_start_hour: int = 6
    work_end_hour: int = 22
    off_hours_points: float = 2.0
    off_hours_confidence: float = 0.15
    user_agent_points: float = 1.5
    user_agent_confidence: float = 0.1
    category_points: float = 1.0
    category_confidence: float = 0.08
    volume_high_ratio: float = 5.0
    volume_low_ratio: float = 0.1
    volume_points: float = 2.0
    volume_confidence: float = 0.12
    min_risk: float = 1.5
    max_confidence: float = 0.9


@dataclass
class SequenceConfig:
    window_size: int = 10
    # A source holding more than this share of a window is a burst
    dominance_ratio: float = 0.7
    risk_per_request: float = 0.8
    confidence: float = 0.85


@dataclass
class NetworkConfig:
    min_unique_destinations: int = 20
    min_requests: int = 50
    risk_per_destination: float = 0.2
    critical_destinations: int = 50
    confidence: float = 0.9


@dataclass
class TimeSeriesConfig:
    bucket_seconds: int = 300
    zscore_threshold: float = 2.5
    risk_per_z: float = 1.5
    confidence_divisor: float = 4.0
    max_confidence: float = 0.95


@dataclass
class EnsembleWeights:
    """Weights for the consolidated ensemble score."""

    statistical: float = 0.30
    behavioral: float = 0.25
    network: float = 0.25
    temporal: float = 0.20

    def __post_init__(self) -> None:
        total = self.statistical + self.behavioral + self.network + self.temporal
        if abs(total - 1.0) > 1e-6:
            raise ValueError(
                f"Ensemble weights must sum to 1.0, got {total:.4f}"
            )


@dataclass
class EnsembleThresholds:
    score_threshold: float = 0.7
    # Sub-methods above this are reported as agreeing
    agreement_threshold: float = 0.5
    # Divisor applied to the summed z-scores of the statistical sub-score
    statistical_z_divisor: float = 6.0
    uncommon_hour_score: float = 0.3
    uncommon_user_agent_score: float = 0.2
    high_risk_profile_score: float = 0.5
    max_confidence: float = 0.95


@dataclass
class EnsembleConfig:
    """Top-level ensemble detector configuration."""

    profile: ProfileConfig = field(default_factory=ProfileConfig)
    statistical: StatisticalConfig = field(default_factory=StatisticalConfig)
    behavioral: BehavioralConfig = field(default_factory=BehavioralConfig)
    sequence: SequenceConfig = field(default_factory=SequenceConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    time_series: TimeSeriesConfig = field(default_factory=TimeSeriesConfig)
    weights: EnsembleWeights = field(default_factory=EnsembleWeights)
    thresholds: EnsembleThresholds = field(default_factory=EnsembleThresholds)

    @classmethod
    def from_env(cls) -> "EnsembleConfig":
        """Load config with env var overrides. Env vars use ENSEMBLE_ prefix."""
        config = cls()

        if v := os.getenv("ENSEMBLE_ZSCORE_THRESHOLD"):
            config.statistical.zscore_threshold = float(v)
        if v := os.getenv("ENSEMBLE_SEQUENCE_WINDOW"):
            config.sequence.window_size = int(v)
        if v := os.getenv("ENSEMBLE_SCAN_MIN_DESTINATIONS"):
            config.network.min_unique_destinations = int(v)
        if v := os.getenv("ENSEMBLE_SCAN_MIN_REQUESTS"):
            config.network.min_requests = int(v)
        if v := os.getenv("ENSEMBLE_BUCKET_SECONDS"):
            config.time_series.bucket_seconds = int(v)
        if v := os.getenv("ENSEMBLE_SCORE_THRESHOLD"):
            config.thresholds.score_threshold = float(v)

        # Weight overrides are validated together
        weights = {
            name: os.getenv(f"ENSEMBLE_{name.upper()}_WEIGHT")
            for name in ("statistical", "behavioral", "network", "temporal")
        }
        if any(weights.values()):
            current = config.weights
            config.weights = EnsembleWeights(
                **{
                    name: float(v) if v else getattr(current, name)
                    for name, v in weights.items()
                }
            )

        return config


# Module-level default instance
default_config = EnsembleConfig()
