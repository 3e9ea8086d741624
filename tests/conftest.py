"""Shared test fixtures for logwarden tests."""

import os
from datetime import UTC, datetime, timedelta

import pytest

os.environ.setdefault("USE_DATABASE", "false")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("GEMINI_API_KEY", "")

from logwarden.domains.logs.models import LogEntry  # noqa: E402

BASE_TIME = datetime(2026, 1, 15, 14, 0, 0, tzinfo=UTC)


def make_entry(**kwargs) -> LogEntry:
    defaults = {
        "timestamp": BASE_TIME.isoformat(),
        "source_address": "192.168.1.10",
        "destination_address": "93.184.216.34",
        "user": "alice",
        "action": "allowed",
        "url": "https://example.com/index.html",
        "status_code": "200",
        "byte_count": 2048,
        "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
        "category": "Business",
    }
    defaults.update(kwargs)
    return LogEntry(**defaults)


def at(seconds: float) -> str:
    return (BASE_TIME + timedelta(seconds=seconds)).isoformat()


@pytest.fixture
def benign_entry() -> LogEntry:
    return make_entry()


@pytest.fixture
def malicious_entry() -> LogEntry:
    """Blocked request to a known-bad domain with a large transfer."""
    return make_entry(
        action="blocked",
        status_code="403",
        url="http://malware-test.biz/payload",
        byte_count=150_000,
    )


@pytest.fixture
def compact_log_text() -> str:
    lines = [
        "2026-01-15 14:00:00|192.168.1.10|93.184.216.34|alice|allowed|"
        "https://example.com/|200|2048|Mozilla/5.0|Business",
        "2026-01-15 14:00:05|192.168.1.11|93.184.216.35|bob|allowed|"
        "https://intranet.local/|200|1024|Mozilla/5.0|Business",
        "2026-01-15 14:00:09|10.0.0.66|185.220.101.4|mallory|blocked|"
        "http://malware-test.biz/payload|403|150000|curl/8.4.0|Malware",
    ]
    return "\n".join(lines)
