"""
Meerkat API module.

Handles transport, errors and the endpoint client.
"""

from .errors import (
    DirectiveParseError,
    HttpStatusError,
    MeerkatAPIError,
    ParseError,
    TransportError,
)
from .transport import HttpResponse, Transport
from .client import API_VERSION, API_VERSION_QUERY_NAME, MeerkatClient, add_version_param

__all__ = [
    # Errors
    "DirectiveParseError",
    "HttpStatusError",
    "MeerkatAPIError",
    "ParseError",
    "TransportError",
    # Transport
    "HttpResponse",
    "Transport",
    # Client
    "API_VERSION",
    "API_VERSION_QUERY_NAME",
    "MeerkatClient",
    "add_version_param",
]
