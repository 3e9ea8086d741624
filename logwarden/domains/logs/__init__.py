"""Log normalization domain: LogEntry/Anomaly models, parser and stats."""

from .models import (
    Anomaly,
    AnomalyStats,
    DetectionMethod,
    FormatValidation,
    LogEntry,
    LogStats,
    Severity,
    severity_for_score,
)
from .errors import FormatRejectedError
from .parser import LogNormalizer, parse_log_file, require_valid_format, validate_log_format
from .stats import get_anomaly_stats

__all__ = [
    "Anomaly",
    "AnomalyStats",
    "DetectionMethod",
    "FormatRejectedError",
    "FormatValidation",
    "LogEntry",
    "LogNormalizer",
    "LogStats",
    "Severity",
    "get_anomaly_stats",
    "severity_for_score",
    "parse_log_file",
    "require_valid_format",
    "validate_log_format",
]
