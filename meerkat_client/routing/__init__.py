"""Routing map storage and refresh."""

from .cache_control import (
    DEFAULT_REFRESH_INTERVAL,
    MAX_REFRESH_INTERVAL,
    MAX_REFRESH_INTERVAL_SECONDS,
    MIN_REFRESH_INTERVAL,
    backoff_interval,
    parse_cache_control,
    resolve_refresh_interval,
)
from .routing_map import DEFAULT_ROUTING_MAP, RoutingMap
from .scheduler import RefreshPhase, RefreshScheduler

__all__ = [
    # Cache-Control
    "DEFAULT_REFRESH_INTERVAL",
    "MAX_REFRESH_INTERVAL",
    "MAX_REFRESH_INTERVAL_SECONDS",
    "MIN_REFRESH_INTERVAL",
    "backoff_interval",
    "parse_cache_control",
    "resolve_refresh_interval",
    # Store
    "DEFAULT_ROUTING_MAP",
    "RoutingMap",
    # Scheduler
    "RefreshPhase",
    "RefreshScheduler",
]
