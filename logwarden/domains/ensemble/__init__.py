"""Ensemble statistical/behavioral detection domain."""

from .config import EnsembleConfig
from .detector import EnsembleDetector
from .models import EnsembleAnomalyType, NetworkProfile, RiskPattern, UserBehaviorProfile
from .passes import ALL_PASSES, DetectionPass
from .profile import ProfileBuilder

__all__ = [
    "ALL_PASSES",
    "DetectionPass",
    "EnsembleAnomalyType",
    "EnsembleConfig",
    "EnsembleDetector",
    "NetworkProfile",
    "ProfileBuilder",
    "RiskPattern",
    "UserBehaviorProfile",
]
