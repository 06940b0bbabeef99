"""
HTTP transport.

Issues GET requests against absolute URLs and hands back the raw response.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp

from .errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds
USER_AGENT = "meerkat-client"


@dataclass
class HttpResponse:
    """Status line, headers and text body of a response."""

    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status < 300

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        value = self.headers.get(name)
        if value is not None:
            return value
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default


def _merge_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Flatten headers, joining repeated fields with ', '."""
    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for key, value in headers.items():
        name = names.setdefault(key.lower(), key)
        if name in merged:
            merged[name] = f"{merged[name]}, {value}"
        else:
            merged[name] = value
    return merged


class Transport:
    """Thin wrapper around an aiohttp session."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize transport.

        Args:
            timeout: Total request timeout in seconds
            session: Externally owned session. Not closed by close().
        """
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._closed = False

    async def __aenter__(self) -> "Transport":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def get(self, url: str, headers: Optional[dict[str, str]] = None) -> HttpResponse:
        """
        Issue a GET request.

        Args:
            url: Absolute URL, query string included
            headers: Extra request headers

        Returns:
            The response, whatever its status

        Raises:
            TransportError: If the request could not be completed
        """
        if self._closed:
            raise TransportError(f"Transport is closed: {url}")
        session = self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with session.get(url, headers=headers, timeout=timeout) as resp:
                raw = await resp.read()
                return HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=_merge_headers(resp.headers),
                    body=raw.decode("utf-8", errors="replace"),
                )
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timed out after {self.timeout}s: {url}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request failed: {e}") from e

    async def close(self) -> None:
        """Close the session if this transport created it."""
        self._closed = True
        if self._session and self._owns_session:
            await self._session.close()
            logger.debug("Transport session closed")
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
            self._owns_session = True
        return self._session
