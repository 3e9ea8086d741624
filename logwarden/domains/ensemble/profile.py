"""Batch profile construction for the ensemble detector.

Profiles are rebuilt from scratch for every batch and never persisted, so
repeated analysis of the same batch sees the same baselines.
"""

from collections import Counter, defaultdict

import numpy as np
import structlog

from logwarden.domains.logs.models import LogEntry

from .config import EnsembleConfig, default_config
from .models import BatchContext, NetworkProfile, RiskPattern, UserBehaviorProfile

logger = structlog.get_logger()


def address_octet_sum(address: str) -> int:
    """Sum of the numeric dot-separated parts of an address; other parts count 0."""
    return sum(int(part) for part in address.split(".") if part.isdigit())


def destination_key(entry: LogEntry) -> str:
    return entry.destination_address or entry.url or ""


def _classify_risk_pattern(
    request_count: int,
    categories: set[str],
    user_agents: set[str],
    config: EnsembleConfig,
) -> RiskPattern:
    cfg = config.profile
    if categories & set(cfg.high_risk_categories) or request_count > cfg.high_risk_request_count:
        return RiskPattern.HIGH
    if (
        request_count > cfg.medium_risk_request_count
        or len(user_agents) > cfg.medium_risk_user_agent_count
    ):
        return RiskPattern.MEDIUM
    return RiskPattern.LOW


def _common_hours(hour_counts: Counter, top: int) -> list[int]:
    """The ``top`` busiest hours plus any hour tied with the last of them."""
    ranked = hour_counts.most_common()
    if len(ranked) <= top:
        return [hour for hour, _ in ranked]
    cutoff = ranked[top - 1][1]
    return [hour for hour, count in ranked if count >= cutoff]


class ProfileBuilder:
    """Builds user and network profiles plus population statistics."""

    def __init__(self, config: EnsembleConfig | None = None) -> None:
        self._config = config or default_config

    def build_user_profiles(
        self, entries: list[LogEntry], hours: np.ndarray
    ) -> dict[str, UserBehaviorProfile]:
        cfg = self._config.profile
        grouped: dict[str, list[int]] = defaultdict(list)
        for i, entry in enumerate(entries):
            grouped[entry.profile_key].append(i)

        profiles: dict[str, UserBehaviorProfile] = {}
        for key, indices in grouped.items():
            members = [entries[i] for i in indices]
            categories = Counter(e.category for e in members if e.category)
            user_agents = Counter(e.user_agent for e in members if e.user_agent)
            hour_counts = Counter(int(hours[i]) for i in indices)
            count = len(members)

            profiles[key] = UserBehaviorProfile(
                profile_key=key,
                source_address=members[0].source_address,
                request_count=count,
                avg_request_size=sum(e.bytes_or_zero for e in members) / count,
                avg_response_time=sum(e.duration_or_zero for e in members) / count,
                common_categories=[c for c, _ in categories.most_common()],
                common_hours=_common_hours(hour_counts, cfg.top_hours),
                common_user_agents=[a for a, _ in user_agents.most_common(cfg.top_user_agents)],
                risk_pattern=_classify_risk_pattern(
                    count, set(categories), set(user_agents), self._config
                ),
            )
        return profiles

    def build_network_profiles(self, entries: list[LogEntry]) -> dict[str, NetworkProfile]:
        cfg = self._config.network
        grouped: dict[str, list[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[entry.source_address].append(entry)

        profiles: dict[str, NetworkProfile] = {}
        for source, members in grouped.items():
            unique = len({destination_key(e) for e in members})
            scanning = unique > cfg.min_unique_destinations and len(members) > cfg.min_requests
            profiles[source] = NetworkProfile(
                source_address=source,
                total_requests=len(members),
                unique_destinations=unique,
                avg_bytes_transferred=sum(e.bytes_or_zero for e in members) / len(members),
                risk_score=min(unique * cfg.risk_per_destination, 10.0) if scanning else 0.0,
            )
        return profiles

    def build_context(self, entries: list[LogEntry]) -> BatchContext:
        """Compute aligned feature arrays, population stats and profiles."""
        byte_counts = np.array([e.bytes_or_zero for e in entries], dtype=float)
        durations = np.array([e.duration_or_zero for e in entries], dtype=float)
        octet_sums = np.array([address_octet_sum(e.source_address) for e in entries], dtype=float)
        hours = np.array([e.occurred_at.hour for e in entries], dtype=int)

        context = BatchContext(
            entries=entries,
            byte_counts=byte_counts,
            durations=durations,
            octet_sums=octet_sums,
            hours=hours,
        )
        if entries:
            context.bytes_mean = float(byte_counts.mean())
            context.bytes_std = float(byte_counts.std())
            context.duration_mean = float(durations.mean())
            context.duration_std = float(durations.std())

        context.user_profiles = self.build_user_profiles(entries, hours)
        context.network_profiles = self.build_network_profiles(entries)

        logger.debug(
            "batch_profiles_built",
            entries=len(entries),
            user_profiles=len(context.user_profiles),
            network_profiles=len(context.network_profiles),
        )
        return context
