"""Proxy log normalizer.

Turns raw delimited text into LogEntry records. Upstream exporters disagree
on delimiters and column order, so each line is sniffed for its delimiter
and mapped through the matching layout:

- compact layout (pipe or semicolon separated), one column per LogEntry field
- NSS export layout (comma or tab separated), the Zscaler NSS web-log order

Lines that cannot be normalized are skipped, never raised; the skip rate is
what ``validate`` reports back as the yield rate.
"""

import re
from collections import Counter
from datetime import UTC, datetime

import structlog

from .errors import FormatRejectedError
from .models import ActionCount, FormatValidation, LogEntry, LogStats, TimeRange

logger = structlog.get_logger()

MIN_FIELDS = 10
VALIDATION_SAMPLE_SIZE = 100
MIN_YIELD_RATE = 0.5
EXPECTED_FORMAT = (
    "Expected a proxy log export: Zscaler NSS (comma or tab separated) "
    "or compact pipe/semicolon format with at least 10 fields"
)

# Column positions per layout
COMPACT_LAYOUT: dict[str, int] = {
    "timestamp": 0,
    "source_address": 1,
    "destination_address": 2,
    "user": 3,
    "action": 4,
    "url": 5,
    "status_code": 6,
    "byte_count": 7,
    "user_agent": 8,
    "category": 9,
    "protocol": 10,
    "subcategory": 11,
    "duration_ms": 12,
    "method": 13,
}

NSS_LAYOUT: dict[str, int] = {
    "timestamp": 0,
    "user": 1,  # department
    "protocol": 2,
    "url": 3,
    "action": 4,
    "category": 5,
    "subcategory": 6,
    "byte_count": 7,
    "duration_ms": 8,
    "source_address": 22,
    "destination_address": 23,
    "method": 24,
    "status_code": 25,
    "user_agent": 26,
}

_INTEGER_FIELDS = ("byte_count", "duration_ms")

_LOCALE_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)

_FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%a %b %d %H:%M:%S %Y",
    "%d/%b/%Y:%H:%M:%S %z",
)

_EPOCH_SECONDS = re.compile(r"^\d{10}$")
_EPOCH_MILLIS = re.compile(r"^\d{13}$")
_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}T")


def _split_quoted(line: str, delimiter: str = ",") -> list[str]:
    """Split on ``delimiter`` unless inside a double-quoted field."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def _strip_field(field: str) -> str:
    field = field.strip()
    if len(field) >= 2 and field[0] == '"' and field[-1] == '"':
        field = field[1:-1]
    return field.strip()


def _to_int(value: str) -> int | None:
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number > 0 else None


def normalize_timestamp(raw: str, now: datetime | None = None) -> str:
    """Normalize epoch/ISO/locale timestamps to an ISO-8601 UTC string.

    Unparseable input falls back to ``now``.
    """
    value = raw.strip()
    parsed: datetime | None = None

    if _EPOCH_SECONDS.match(value):
        parsed = datetime.fromtimestamp(int(value), tz=UTC)
    elif _EPOCH_MILLIS.match(value):
        parsed = datetime.fromtimestamp(int(value) / 1000, tz=UTC)
    elif _ISO_PREFIX.match(value):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = None

    if parsed is None:
        for fmt in _LOCALE_FORMATS + _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        parsed = now or datetime.now(UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).isoformat()


class LogNormalizer:
    """Parses raw proxy log text into LogEntry records."""

    def detect_delimiter(self, line: str) -> str:
        # Only look outside quoted fields: NSS user agents carry semicolons.
        unquoted = "".join(line.split('"')[::2])
        for delimiter in ("|", ";", "\t"):
            if delimiter in unquoted:
                return delimiter
        return ","

    def split_line(self, line: str) -> tuple[list[str], dict[str, int]]:
        delimiter = self.detect_delimiter(line)
        layout = COMPACT_LAYOUT if delimiter in ("|", ";") else NSS_LAYOUT
        fields = _split_quoted(line, delimiter)
        return [_strip_field(f) for f in fields], layout

    def parse_line(self, line: str) -> LogEntry | None:
        """Normalize one line. Returns None when the line is skipped."""
        line = line.strip()
        if not line:
            return None

        fields, layout = self.split_line(line)
        if len(fields) < MIN_FIELDS:
            return None

        values: dict[str, str] = {}
        for name, index in layout.items():
            if index < len(fields) and fields[index]:
                values[name] = fields[index]

        timestamp = values.pop("timestamp", "")
        source = values.pop("source_address", "")
        if not timestamp or not source:
            return None

        record: dict = {
            "timestamp": normalize_timestamp(timestamp),
            "source_address": source,
            "action": values.pop("action", "unknown"),
            "raw_line": line,
        }
        for name in _INTEGER_FIELDS:
            raw_number = values.pop(name, None)
            if raw_number is not None:
                record[name] = _to_int(raw_number)
        record.update(values)
        return LogEntry(**record)

    def parse(self, raw_text: str) -> list[LogEntry]:
        entries: list[LogEntry] = []
        skipped = 0
        for line in raw_text.splitlines():
            if not line.strip():
                continue
            entry = self.parse_line(line)
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        logger.debug("log_text_parsed", entries=len(entries), skipped=skipped)
        return entries

    def validate(self, raw_text: str) -> FormatValidation:
        lines = [line for line in raw_text.splitlines() if line.strip()]
        if not lines:
            return FormatValidation(is_valid=False, error="File is empty")

        sample = lines[:VALIDATION_SAMPLE_SIZE]
        parsed = sum(1 for line in sample if self.parse_line(line) is not None)
        yield_rate = parsed / len(sample)

        if yield_rate < MIN_YIELD_RATE:
            return FormatValidation(
                is_valid=False,
                error=(
                    f"Only {round(yield_rate * 100)}% of lines could be parsed. "
                    f"{EXPECTED_FORMAT}."
                ),
                sampled_lines=len(sample),
                parsed_lines=parsed,
                yield_rate=yield_rate,
            )

        return FormatValidation(
            is_valid=True,
            sampled_lines=len(sample),
            parsed_lines=parsed,
            yield_rate=yield_rate,
        )

    def get_log_stats(self, entries: list[LogEntry]) -> LogStats:
        if not entries:
            return LogStats()

        times = sorted(e.occurred_at for e in entries)
        actions = Counter(e.action for e in entries)
        return LogStats(
            total_entries=len(entries),
            unique_sources=len({e.source_address for e in entries}),
            unique_users=len({e.user for e in entries if e.user}),
            time_range=TimeRange(start=times[0].isoformat(), end=times[-1].isoformat()),
            top_actions=[
                ActionCount(action=action, count=count)
                for action, count in actions.most_common(10)
            ],
        )


# Module-level default instance
default_normalizer = LogNormalizer()


def parse_log_file(raw_text: str) -> list[LogEntry]:
    return default_normalizer.parse(raw_text)


def validate_log_format(raw_text: str) -> FormatValidation:
    return default_normalizer.validate(raw_text)


def require_valid_format(raw_text: str) -> FormatValidation:
    """Validate and raise FormatRejectedError when the file is not accepted."""
    validation = validate_log_format(raw_text)
    if not validation.is_valid:
        raise FormatRejectedError(validation)
    return validation
