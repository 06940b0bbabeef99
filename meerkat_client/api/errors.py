"""
Meerkat API errors.
"""

from typing import Optional


class MeerkatAPIError(Exception):
    """Meerkat API error."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class TransportError(MeerkatAPIError):
    """Network-level failure issuing or completing a request."""

    pass


class HttpStatusError(MeerkatAPIError):
    """Non-2xx response. The raw body is kept for diagnostics."""

    def __init__(self, status: int, reason: str = "", body: Optional[str] = None):
        super().__init__(f"{status} {reason}".strip(), status=status)
        self.reason = reason
        self.body = body


class ParseError(MeerkatAPIError):
    """Response body is not valid JSON."""

    def __init__(self, message: str, body: Optional[str] = None, status: int = 0):
        super().__init__(message, status=status)
        self.body = body


class DirectiveParseError(MeerkatAPIError):
    """Malformed Cache-Control header. Always recovered locally."""

    def __init__(self, message: str, header: object = None):
        super().__init__(message)
        self.header = header
