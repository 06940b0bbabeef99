"""
Meerkat API Client.

Resolves endpoint URLs from the live routing map and issues authenticated,
versioned GET requests.
"""

import json
import logging
from typing import Any, Optional

import aiohttp

from meerkat_client.log import ClientLogger
from meerkat_client.routing import RefreshScheduler, RoutingMap
from meerkat_client.routing.scheduler import CallLater

from .errors import HttpStatusError, ParseError, TransportError
from .transport import DEFAULT_TIMEOUT, HttpResponse, Transport

logger = logging.getLogger(__name__)

# The Meerkat API version we support
API_VERSION = "1.0"
API_VERSION_QUERY_NAME = "v"


def add_version_param(target_url: str) -> str:
    """Append the API version query parameter to a URL."""
    separator = "&" if "?" in target_url else "?"
    return f"{target_url}{separator}{API_VERSION_QUERY_NAME}={API_VERSION}"


class MeerkatClient:
    """
    Meerkat REST API client.

    Construction starts the routing map refresh, so the client must be
    created inside a running event loop.

    Usage:
        async with MeerkatClient(token) as client:
            await client.wait_for_routes(timeout=5)
            broadcasts = await client.get_all_broadcasts()
    """

    def __init__(
        self,
        api_token: str,
        write_to_log: bool = True,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        transport: Optional[Transport] = None,
        call_later: Optional[CallLater] = None,
    ):
        """
        Initialize API client.

        Args:
            api_token: Meerkat API token, sent as the Authorization header
            write_to_log: Whether to log client events
            timeout: Request timeout in seconds
            session: Optional aiohttp session to issue requests on
            transport: Optional transport (overrides timeout and session)
            call_later: Optional timer factory for the refresh scheduler
        """
        self._api_token = api_token
        self._log = ClientLogger(logger, enabled=write_to_log)
        self._transport = transport or Transport(timeout=timeout, session=session)
        self.routing_map = RoutingMap()
        self._scheduler = RefreshScheduler(
            self.routing_map,
            self._fetch_routes,
            log=self._log,
            call_later=call_later,
        )

        # Get the routing map for the first time
        self._scheduler.start()

    async def __aenter__(self) -> "MeerkatClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit."""
        await self.aclose()

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def write_to_log(self) -> bool:
        return self._log.enabled

    def dispose(self) -> None:
        """Stop refreshing the routing map. Safe to call more than once."""
        self._scheduler.dispose()

    async def aclose(self) -> None:
        """Dispose, cancel any in-flight routes fetch and release the HTTP session."""
        await self._scheduler.stop()
        await self._transport.close()

    async def wait_for_routes(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the first routing map fetch has finished.

        Returns:
            False if the timeout expired first
        """
        return await self._scheduler.wait_until_refreshed(timeout)

    async def refresh_routes(self) -> dict[str, str]:
        """Refresh the routing map now and return a snapshot of it."""
        await self._scheduler.refresh_now()
        return self.routing_map.as_dict()

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def get_all_broadcasts(self) -> Any:
        """Request the list of live broadcasts."""
        return await self._get_endpoint("ALL_BROADCASTS", "liveNow")

    async def get_scheduled_broadcasts(self) -> Any:
        """Request the list of scheduled broadcasts."""
        return await self._get_endpoint("SCHEDULED_BROADCASTS", "scheduledStreams")

    async def get_broadcast_summary(self, broadcast_id: str) -> Any:
        """
        Request the summary for a specific broadcast.

        Args:
            broadcast_id: Broadcast ID

        Returns:
            Decoded JSON response
        """
        return await self._get_endpoint(
            "BROADCAST_SUMMARY", "streamSummaryTemplate", broadcastId=broadcast_id
        )

    async def get_broadcast_activities(self, broadcast_id: str) -> Any:
        """Request the activities for a specific broadcast."""
        return await self._get_endpoint(
            "BROADCAST_ACTIVITIES", "broadcastActivities", broadcastId=broadcast_id
        )

    async def get_broadcast_restreams(self, broadcast_id: str) -> Any:
        """Request the restreams for a specific broadcast."""
        return await self._get_endpoint(
            "BROADCAST_RESTREAMS", "broadcastRestreams", broadcastId=broadcast_id
        )

    async def get_broadcast_comments(self, broadcast_id: str) -> Any:
        """Request the comments for a specific broadcast."""
        return await self._get_endpoint(
            "BROADCAST_COMMENTS", "broadcastComments", broadcastId=broadcast_id
        )

    async def get_broadcast_likes(self, broadcast_id: str) -> Any:
        """Request the likes for a specific broadcast."""
        return await self._get_endpoint(
            "BROADCAST_LIKES", "broadcastLikes", broadcastId=broadcast_id
        )

    async def get_broadcast_watchers(self, broadcast_id: str) -> Any:
        """Request the watchers for a specific broadcast."""
        return await self._get_endpoint(
            "BROADCAST_WATCHERS", "broadcastWatchers", broadcastId=broadcast_id
        )

    async def get_user_details(self, user_id: str) -> Any:
        """
        Request the profile of a specific user.

        Args:
            user_id: User ID

        Returns:
            Decoded JSON response
        """
        return await self._get_endpoint("USER_DETAILS", "profile", userId=user_id)

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def _get_endpoint(self, endpoint_name: str, route: str, **params: str) -> Any:
        """Resolve a route and return its decoded response body."""
        target_url = self.routing_map.resolve(route, params)
        _, data = await self._issue_get_request(endpoint_name, target_url)
        return data

    async def _fetch_routes(self) -> tuple[HttpResponse, Any]:
        return await self._issue_get_request("ROUTES", self.routing_map["routes"])

    async def _issue_get_request(self, endpoint_name: str, target_url: str) -> tuple[HttpResponse, Any]:
        """
        Issue a GET request to a Meerkat API endpoint.

        Args:
            endpoint_name: Name used in log messages
            target_url: Endpoint URL with any variables already filled in

        Returns:
            The response and its decoded JSON body

        Raises:
            TransportError: If the request could not be completed
            HttpStatusError: On a non-2xx status
            ParseError: If the body is not valid JSON
        """
        url = add_version_param(target_url)
        headers = {"Authorization": self._api_token}

        self._log.info(f"{endpoint_name} Issuing request ...")
        try:
            response = await self._transport.get(url, headers=headers)
        except TransportError as e:
            self._log.error(f"{endpoint_name} Error: {e}")
            raise

        self._log.info(
            f"{endpoint_name} Response received. Status: {response.status} {response.reason}"
        )

        if not response.ok:
            error = HttpStatusError(response.status, response.reason, body=response.body)
            self._log.error(f"{endpoint_name} Error: {error}\n{response.body}")
            raise error

        try:
            data = json.loads(response.body)
        except ValueError as e:
            self._log.error(f"{endpoint_name} JSON parse error: {e}\n{response.body}")
            raise ParseError(
                f"{endpoint_name} returned invalid JSON: {e}",
                body=response.body,
                status=response.status,
            ) from e

        self._log.debug(f"{endpoint_name} Received: {data}")
        return response, data
