"""Unit tests for the proxy log normalizer."""

import pytest
from pydantic import ValidationError

from logwarden.domains.logs import FormatRejectedError, require_valid_format
from logwarden.domains.logs.models import LogEntry
from logwarden.domains.logs.parser import (
    LogNormalizer,
    normalize_timestamp,
    parse_log_file,
    validate_log_format,
)

NSS_LINE = (
    '"Thu Jan 15 14:00:00 2026","Finance","HTTPS","https://example.com/report",'
    '"Allowed","Business","Corporate","5120","230","","","","","","","","","","",'
    '"","","","192.168.1.20","93.184.216.34","GET","200",'
    '"Mozilla/5.0 (Windows NT 10.0; Win64; x64)"'
)


class TestDelimiterDetection:
    normalizer = LogNormalizer()

    def test_pipe(self):
        assert self.normalizer.detect_delimiter("a|b|c") == "|"

    def test_semicolon(self):
        assert self.normalizer.detect_delimiter("a;b;c") == ";"

    def test_tab(self):
        assert self.normalizer.detect_delimiter("a\tb\tc") == "\t"

    def test_defaults_to_comma(self):
        assert self.normalizer.detect_delimiter("a,b,c") == ","

    def test_semicolon_inside_quotes_ignored(self):
        line = '"ts","Mozilla/5.0 (X11; Linux)",b'
        assert self.normalizer.detect_delimiter(line) == ","


class TestTimestampNormalization:
    def test_epoch_seconds(self):
        assert normalize_timestamp("1768485600") == "2026-01-15T14:00:00+00:00"

    def test_epoch_millis(self):
        assert normalize_timestamp("1768485600000") == "2026-01-15T14:00:00+00:00"

    def test_iso_with_z(self):
        assert normalize_timestamp("2026-01-15T14:00:00Z") == "2026-01-15T14:00:00+00:00"

    def test_locale_format(self):
        assert normalize_timestamp("01/15/2026 14:00:00") == "2026-01-15T14:00:00+00:00"

    def test_unparseable_falls_back_to_now(self):
        from datetime import UTC, datetime

        now = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
        assert normalize_timestamp("not a date", now=now) == now.isoformat()


class TestParseLine:
    normalizer = LogNormalizer()

    def test_compact_line(self, compact_log_text):
        entry = self.normalizer.parse_line(compact_log_text.splitlines()[2])
        assert entry is not None
        assert entry.source_address == "10.0.0.66"
        assert entry.destination_address == "185.220.101.4"
        assert entry.user == "mallory"
        assert entry.action == "blocked"
        assert entry.status_code == "403"
        assert entry.byte_count == 150000
        assert entry.user_agent == "curl/8.4.0"
        assert entry.category == "Malware"
        assert entry.timestamp == "2026-01-15T14:00:09+00:00"

    def test_nss_line(self):
        entry = self.normalizer.parse_line(NSS_LINE)
        assert entry is not None
        assert entry.user == "Finance"
        assert entry.protocol == "HTTPS"
        assert entry.action == "Allowed"
        assert entry.byte_count == 5120
        assert entry.duration_ms == 230
        assert entry.source_address == "192.168.1.20"
        assert entry.destination_address == "93.184.216.34"
        assert entry.method == "GET"
        assert entry.status_code == "200"
        assert entry.user_agent.startswith("Mozilla/5.0")

    def test_raw_line_preserved(self, compact_log_text):
        line = compact_log_text.splitlines()[0]
        assert self.normalizer.parse_line(line).raw_line == line

    def test_too_few_fields_skipped(self):
        assert self.normalizer.parse_line("2026-01-15|10.0.0.1|allowed") is None

    def test_blank_line_skipped(self):
        assert self.normalizer.parse_line("   ") is None

    def test_missing_source_skipped(self):
        line = "2026-01-15 14:00:00||93.184.216.34|alice|allowed|https://a.com/|200|10|UA|Business"
        assert self.normalizer.parse_line(line) is None

    def test_non_numeric_bytes_become_none(self):
        line = "2026-01-15 14:00:00|10.0.0.1|1.1.1.1|alice|allowed|https://a.com/|200|n/a|UA|Business"
        entry = self.normalizer.parse_line(line)
        assert entry is not None
        assert entry.byte_count is None

    def test_missing_action_defaults_to_unknown(self):
        line = "2026-01-15 14:00:00|10.0.0.1|1.1.1.1|alice||https://a.com/|200|10|UA|Business"
        entry = self.normalizer.parse_line(line)
        assert entry.action == "unknown"


class TestLogEntryTimestamp:
    def test_non_iso_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            LogEntry(timestamp="yesterday", source_address="10.0.0.9")

    def test_naive_timestamp_taken_as_utc(self):
        entry = LogEntry(timestamp="2026-01-15T14:00:00", source_address="10.0.0.9")
        assert entry.timestamp == "2026-01-15T14:00:00+00:00"

    def test_offset_converted_to_utc(self):
        entry = LogEntry(timestamp="2026-01-15T09:00:00-05:00", source_address="10.0.0.9")
        assert entry.occurred_at.hour == 14
        assert entry.timestamp == "2026-01-15T14:00:00+00:00"


class TestParseFile:
    def test_skips_bad_lines(self, compact_log_text):
        text = compact_log_text + "\ngarbage line\n\n"
        entries = parse_log_file(text)
        assert len(entries) == 3

    def test_reparse_of_raw_lines_is_stable(self, compact_log_text):
        entries = parse_log_file(compact_log_text)
        again = parse_log_file("\n".join(e.raw_line for e in entries))
        assert [e.model_dump() for e in again] == [e.model_dump() for e in entries]


class TestValidation:
    def test_empty_file(self):
        result = validate_log_format("")
        assert not result.is_valid
        assert result.error == "File is empty"

    def test_valid_file(self, compact_log_text):
        result = validate_log_format(compact_log_text)
        assert result.is_valid
        assert result.yield_rate == 1.0
        assert result.sampled_lines == 3

    def test_low_yield_rejected(self, compact_log_text):
        text = "\n".join(["junk"] * 4 + compact_log_text.splitlines())
        result = validate_log_format(text)
        assert not result.is_valid
        assert "43%" in result.error
        assert "Expected a proxy log export" in result.error

    def test_exactly_half_accepted(self, compact_log_text):
        text = "\n".join(["junk"] * 3 + compact_log_text.splitlines())
        assert validate_log_format(text).is_valid

    def test_more_good_lines_never_invalidates(self, compact_log_text):
        base = "\n".join(["junk"] * 2 + compact_log_text.splitlines()[:2])
        assert validate_log_format(base).is_valid
        assert validate_log_format(base + "\n" + compact_log_text).is_valid

    def test_only_first_hundred_lines_sampled(self, compact_log_text):
        good = compact_log_text.splitlines()[0]
        text = "\n".join([good] * 100 + ["junk"] * 500)
        result = validate_log_format(text)
        assert result.is_valid
        assert result.sampled_lines == 100

    def test_require_valid_format_raises(self):
        with pytest.raises(FormatRejectedError) as exc_info:
            require_valid_format("junk\nmore junk")
        assert exc_info.value.validation.parsed_lines == 0
        assert isinstance(exc_info.value, ValueError)


class TestLogStats:
    def test_stats(self, compact_log_text):
        normalizer = LogNormalizer()
        stats = normalizer.get_log_stats(normalizer.parse(compact_log_text))
        assert stats.total_entries == 3
        assert stats.unique_sources == 3
        assert stats.unique_users == 3
        assert stats.time_range.start == "2026-01-15T14:00:00+00:00"
        assert stats.time_range.end == "2026-01-15T14:00:09+00:00"
        assert stats.top_actions[0].action == "allowed"
        assert stats.top_actions[0].count == 2

    def test_empty(self):
        assert LogNormalizer().get_log_stats([]).total_entries == 0
