"""
Routing map refresh scheduler.

Keeps the routing map up to date by re-fetching the routes resource on a
timer. The next refresh is armed only once the current fetch has finished,
so at most one fetch is ever outstanding.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from meerkat_client.api.errors import MeerkatAPIError
from meerkat_client.api.transport import HttpResponse

from .cache_control import backoff_interval, resolve_refresh_interval
from .routing_map import RoutingMap

logger = logging.getLogger(__name__)

# Fetches the routes resource: (response, decoded body)
RoutesFetcher = Callable[[], Awaitable[tuple[HttpResponse, Any]]]

# Same signature as loop.call_later
CallLater = Callable[[float, Callable[[], None]], asyncio.TimerHandle]


class RefreshPhase(Enum):
    """Scheduler lifecycle phases."""

    IDLE = "idle"
    FETCHING = "fetching"
    SCHEDULED = "scheduled"
    DISPOSED = "disposed"


class RefreshScheduler:
    """
    Drives periodic routing map refreshes.

    Handles:
    - Applying successful responses to the routing map
    - Deriving the next interval from the Cache-Control header
    - Exponential backoff after failed fetches
    - Disposal (cancels the pending timer, in-flight fetches finish quietly)
    """

    def __init__(
        self,
        routing_map: RoutingMap,
        fetch: RoutesFetcher,
        log: Union[logging.Logger, logging.LoggerAdapter, None] = None,
        call_later: Optional[CallLater] = None,
    ):
        """
        Initialize scheduler.

        Args:
            routing_map: Store updated on every successful refresh
            fetch: Coroutine function fetching the routes resource
            log: Logger for refresh events (module logger by default)
            call_later: Timer factory, defaults to the running loop's call_later
        """
        self._routing_map = routing_map
        self._fetch = fetch
        self._log = log or logger
        self._call_later = call_later

        self.retry_count = 0
        self.next_interval_ms: Optional[int] = None
        self._timer_handle: Optional[asyncio.TimerHandle] = None
        self._fetch_task: Optional[asyncio.Task[None]] = None
        self._disposed = False
        self._phase = RefreshPhase.IDLE
        self._refreshed = asyncio.Event()

    @property
    def phase(self) -> RefreshPhase:
        """Current lifecycle phase."""
        return self._phase

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def has_pending_timer(self) -> bool:
        return self._timer_handle is not None

    def start(self) -> None:
        """Kick off the first refresh. Must be called from a running loop."""
        if self._disposed or self._phase is not RefreshPhase.IDLE:
            return
        self._begin_refresh()

    def dispose(self) -> None:
        """Cancel the pending refresh and stop scheduling. Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        self._cancel_timer()
        self._phase = RefreshPhase.DISPOSED
        self._log.info("ROUTES refresh disposed")

    async def stop(self) -> None:
        """Dispose and cancel the in-flight fetch, if any."""
        self.dispose()
        task = self._fetch_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            self._fetch_task = None

    async def refresh_now(self) -> None:
        """
        Refresh immediately and wait for the result.

        Joins the in-flight fetch if there is one, otherwise replaces the
        pending timer with an immediate fetch.
        """
        if self._disposed:
            return
        task = self._fetch_task
        if task is None:
            self._cancel_timer()
            task = self._begin_refresh()
        await asyncio.shield(task)

    async def wait_until_refreshed(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the first refresh attempt to finish, successful or not.

        Returns:
            False if the timeout expired first
        """
        try:
            await asyncio.wait_for(self._refreshed.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def schedule_after_interval(self, interval_ms: int) -> None:
        """Arm the next regular refresh and reset the retry count."""
        if self._disposed:
            return
        self.retry_count = 0
        self._log.info(f"ROUTES Will schedule next refresh in {interval_ms} milliseconds.")
        self._arm_timer(interval_ms)

    def schedule_retry_with_backoff(self) -> int:
        """
        Arm a retry after a failed refresh.

        Returns:
            The retry delay in milliseconds (0 if disposed)
        """
        if self._disposed:
            return 0
        interval_ms = backoff_interval(self.retry_count)
        self.retry_count += 1
        self._log.info(f"ROUTES Will schedule a retry in {interval_ms} milliseconds.")
        self._arm_timer(interval_ms)
        return interval_ms

    # -------------------------------------------------------------------------
    # Refresh cycle
    # -------------------------------------------------------------------------

    def _begin_refresh(self) -> "asyncio.Task[None]":
        self._phase = RefreshPhase.FETCHING
        task = asyncio.get_running_loop().create_task(self._refresh())
        self._fetch_task = task
        return task

    async def _refresh(self) -> None:
        """Fetch the routes resource and schedule the next attempt."""
        try:
            response, data = await self._fetch()
        except MeerkatAPIError as e:
            self._log.error(f"ROUTES refresh failed: {e}")
            self._on_failure()
        except Exception as e:
            self._log.exception(f"ROUTES unexpected refresh error: {e}")
            self._on_failure()
        else:
            self._on_success(response, data)
        finally:
            self._fetch_task = None
            self._refreshed.set()

    def _on_success(self, response: HttpResponse, data: Any) -> None:
        if isinstance(data, dict):
            # Replace only routes we support
            changed = self._routing_map.apply_update(data)
            if changed:
                self._log.debug(f"ROUTES changed: {', '.join(changed)}")
        else:
            self._log.warning("ROUTES response is not an object, keeping current map")
        self._log.info(f"ROUTES updated: {self._routing_map.as_dict()}")

        # Client may have been disposed while waiting for the response
        if self._disposed:
            return

        interval_ms = resolve_refresh_interval(response.header("Cache-Control"), log=self._log)
        self.schedule_after_interval(interval_ms)

    def _on_failure(self) -> None:
        if self._disposed:
            return
        self.schedule_retry_with_backoff()

    # -------------------------------------------------------------------------
    # Timer
    # -------------------------------------------------------------------------

    def _arm_timer(self, interval_ms: int) -> None:
        self._cancel_timer()
        call_later = self._call_later or asyncio.get_running_loop().call_later
        self._timer_handle = call_later(interval_ms / 1000, self._on_timer)
        self.next_interval_ms = interval_ms
        self._phase = RefreshPhase.SCHEDULED

    def _on_timer(self) -> None:
        self._timer_handle = None
        if self._disposed:
            return
        self._begin_refresh()

    def _cancel_timer(self) -> None:
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None
