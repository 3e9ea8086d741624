"""Ensemble detection passes.

Exports ALL_PASSES (pass instances in run order) and the pass classes.
"""

from .base import DetectionPass
from .behavioral import BehavioralPass
from .network import NetworkPass
from .sequence import SequencePass
from .statistical import StatisticalPass, isolation_depth
from .timeseries import TimeSeriesPass
from .weighted import WeightedEnsemblePass

# All pass instances in run order
ALL_PASSES: list[DetectionPass] = [
    StatisticalPass(),
    BehavioralPass(),
    SequencePass(),
    NetworkPass(),
    TimeSeriesPass(),
    WeightedEnsemblePass(),
]

__all__ = [
    "ALL_PASSES",
    "BehavioralPass",
    "DetectionPass",
    "NetworkPass",
    "SequencePass",
    "StatisticalPass",
    "TimeSeriesPass",
    "WeightedEnsemblePass",
    "isolation_depth",
]
