"""Tests for Cache-Control parsing and refresh interval resolution."""

import logging

import pytest

from meerkat_client.api.errors import DirectiveParseError
from meerkat_client.routing.cache_control import (
    DEFAULT_REFRESH_INTERVAL,
    MAX_REFRESH_INTERVAL,
    MAX_REFRESH_INTERVAL_SECONDS,
    MIN_REFRESH_INTERVAL,
    backoff_interval,
    parse_cache_control,
    resolve_refresh_interval,
)


class TestConstants:
    """Tests for refresh interval constants."""

    def test_bounds(self) -> None:
        assert MIN_REFRESH_INTERVAL == 3_600_000
        assert MAX_REFRESH_INTERVAL == 86_400_000

    def test_default_is_max(self) -> None:
        assert DEFAULT_REFRESH_INTERVAL == MAX_REFRESH_INTERVAL

    def test_max_in_seconds(self) -> None:
        assert MAX_REFRESH_INTERVAL_SECONDS == 86_400


class TestParseCacheControl:
    """Tests for parse_cache_control."""

    def test_none_header(self) -> None:
        assert parse_cache_control(None) == {}

    def test_empty_header(self) -> None:
        assert parse_cache_control("") == {}

    def test_directives_with_and_without_values(self) -> None:
        result = parse_cache_control("public, max-age=60, no-store")
        assert result == {"public": None, "max-age": "60", "no-store": None}

    def test_keys_trimmed_and_lowercased(self) -> None:
        result = parse_cache_control("  Max-Age = 120 ")
        assert result == {"max-age": "120"}

    def test_splits_on_first_equals_only(self) -> None:
        result = parse_cache_control("ext=a=b")
        assert result == {"ext": "a=b"}

    def test_quoted_value(self) -> None:
        assert parse_cache_control('max-age="300"') == {"max-age": "300"}

    def test_skips_empty_segments(self) -> None:
        assert parse_cache_control("no-cache,,") == {"no-cache": None}

    def test_non_string_raises(self) -> None:
        with pytest.raises(DirectiveParseError):
            parse_cache_control(12345)  # type: ignore[arg-type]


class TestResolveRefreshInterval:
    """Tests for resolve_refresh_interval."""

    def test_short_max_age_clamped_up(self) -> None:
        assert resolve_refresh_interval("max-age=50") == MIN_REFRESH_INTERVAL

    def test_huge_max_age_clamped_down(self) -> None:
        assert resolve_refresh_interval("max-age=999999999") == MAX_REFRESH_INTERVAL

    def test_max_age_inside_bounds(self) -> None:
        assert resolve_refresh_interval("max-age=7200") == 7_200_000

    def test_max_age_among_other_directives(self) -> None:
        assert resolve_refresh_interval("private, max-age=7200, must-revalidate") == 7_200_000

    def test_absent_header(self) -> None:
        assert resolve_refresh_interval(None) == DEFAULT_REFRESH_INTERVAL

    def test_no_max_age(self) -> None:
        assert resolve_refresh_interval("no-cache") == DEFAULT_REFRESH_INTERVAL

    @pytest.mark.parametrize("header", ["max-age=abc", "max-age=", "max-age", "max-age=1.5"])
    def test_malformed_max_age(self, header: str) -> None:
        assert resolve_refresh_interval(header) == DEFAULT_REFRESH_INTERVAL

    def test_negative_max_age_clamped(self) -> None:
        assert resolve_refresh_interval("max-age=-10") == MIN_REFRESH_INTERVAL

    def test_non_string_header_falls_back(self) -> None:
        assert resolve_refresh_interval(b"max-age=7200") == DEFAULT_REFRESH_INTERVAL

    def test_parse_errors_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            resolve_refresh_interval("max-age=soon")
        assert "Cache-control header parsing error" in caplog.text

    def test_uses_given_logger(self) -> None:
        log = logging.getLogger("test.cache_control")
        records: list[logging.LogRecord] = []

        class _Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        handler = _Collect()
        log.addHandler(handler)
        try:
            resolve_refresh_interval("max-age=x", log=log)
        finally:
            log.removeHandler(handler)
        assert len(records) == 1


class TestBackoffInterval:
    """Tests for the retry backoff sequence."""

    def test_backoff_sequence(self) -> None:
        expected = [1000, 2000, 4000, 8000, 16000, 32000]
        assert [backoff_interval(n) for n in range(6)] == expected

    def test_backoff_capped_at_max_interval(self) -> None:
        # 2**17 seconds is the first value above a day
        assert backoff_interval(16) == 65_536_000
        assert backoff_interval(17) == MAX_REFRESH_INTERVAL
        assert backoff_interval(40) == MAX_REFRESH_INTERVAL
