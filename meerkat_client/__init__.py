"""
meerkat-client - asyncio client for the Meerkat broadcast API.

Endpoint URLs come from a routing map that the client keeps refreshed in
the background.
"""

__version__ = "0.1.0"

from .api import (
    HttpStatusError,
    MeerkatAPIError,
    MeerkatClient,
    ParseError,
    TransportError,
)
from .config import Config, ConfigError, load_config
from .routing import DEFAULT_ROUTING_MAP, RoutingMap

__all__ = [
    "__version__",
    "MeerkatClient",
    "MeerkatAPIError",
    "HttpStatusError",
    "ParseError",
    "TransportError",
    "Config",
    "ConfigError",
    "load_config",
    "DEFAULT_ROUTING_MAP",
    "RoutingMap",
]
