"""
Cache-Control handling for the routing map.

Turns the server's Cache-Control header into the delay before the next
routing map refresh.
"""

import logging
from typing import Optional, Union

from meerkat_client.api.errors import DirectiveParseError

logger = logging.getLogger(__name__)

# Refresh bounds in milliseconds
MIN_REFRESH_INTERVAL = 3_600_000  # 1 hour
MAX_REFRESH_INTERVAL = 86_400_000  # 1 day
DEFAULT_REFRESH_INTERVAL = MAX_REFRESH_INTERVAL
MAX_REFRESH_INTERVAL_SECONDS = MAX_REFRESH_INTERVAL // 1000

CacheControlDirectives = dict[str, Optional[str]]


def parse_cache_control(header_value: Optional[str]) -> CacheControlDirectives:
    """
    Parse a Cache-Control header into directive/value pairs.

    Directive names are trimmed and lower-cased. Directives without a value
    (e.g. ``no-cache``) map to None.

    Args:
        header_value: Raw header value, may be None

    Returns:
        Directive mapping (empty when the header is absent)

    Raises:
        DirectiveParseError: If the header is not a string
    """
    directives: CacheControlDirectives = {}
    if not header_value:
        return directives

    if not isinstance(header_value, str):
        raise DirectiveParseError(
            f"Cache-Control header must be a string, got {type(header_value).__name__}",
            header=header_value,
        )

    for segment in header_value.split(","):
        if not segment.strip():
            continue
        if "=" in segment:
            key, value = segment.split("=", 1)
            directives[key.strip().lower()] = value.strip().strip('"')
        else:
            directives[segment.strip().lower()] = None

    return directives


def _max_age_ms(directives: CacheControlDirectives) -> Optional[int]:
    """Read max-age (seconds) as milliseconds, None if absent."""
    if "max-age" not in directives:
        return None
    raw = directives["max-age"]
    if raw is None:
        raise DirectiveParseError("max-age has no value")
    try:
        return int(raw) * 1000
    except ValueError as e:
        raise DirectiveParseError(f"Invalid max-age value: {raw!r}") from e


def resolve_refresh_interval(
    header_value: Union[str, None, object],
    log: Union[logging.Logger, logging.LoggerAdapter, None] = None,
) -> int:
    """
    Work out how long to wait before the next routing map refresh.

    max-age is clamped to [MIN_REFRESH_INTERVAL, MAX_REFRESH_INTERVAL].
    Anything missing or malformed falls back to DEFAULT_REFRESH_INTERVAL.

    Args:
        header_value: Raw Cache-Control header value
        log: Logger to report parse errors to (module logger by default)

    Returns:
        Interval in milliseconds
    """
    log = log or logger
    try:
        max_age = _max_age_ms(parse_cache_control(header_value))  # type: ignore[arg-type]
    except DirectiveParseError as e:
        log.error(f"ROUTES Cache-control header parsing error: {e}")
        return DEFAULT_REFRESH_INTERVAL

    if max_age is None:
        return DEFAULT_REFRESH_INTERVAL

    return min(max(max_age, MIN_REFRESH_INTERVAL), MAX_REFRESH_INTERVAL)


def backoff_interval(retry_count: int) -> int:
    """Retry delay in milliseconds: doubling seconds, capped at a day."""
    return 1000 * min(2**retry_count, MAX_REFRESH_INTERVAL_SECONDS)
