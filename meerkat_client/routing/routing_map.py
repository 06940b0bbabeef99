"""
Routing map store.

Maps logical endpoint names to URL templates. Seeded with defaults and
selectively overwritten from the server's routes resource.
"""

import re
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

# Default route mapping
DEFAULT_ROUTING_MAP: Mapping[str, str] = MappingProxyType(
    {
        "routes": "https://api.meerkatapp.co/routes",
        "liveNow": "https://resources.meerkatapp.co/broadcasts",
        "scheduledStreams": "https://resources.meerkatapp.co/schedules",
        "streamSummaryTemplate": "https://resources.meerkatapp.co/broadcasts/{broadcastId}/summary",
        "broadcastActivities": "https://resources.meerkatapp.co/broadcasts/{broadcastId}/activities",
        "broadcastRestreams": "https://channels.meerkatapp.co/broadcasts/{broadcastId}/restreams",
        "broadcastWatchers": "https://resources.meerkatapp.co/broadcasts/{broadcastId}/watchers",
        "broadcastLikes": "https://channels.meerkatapp.co/broadcasts/{broadcastId}/likes",
        "broadcastComments": "https://channels.meerkatapp.co/broadcasts/{broadcastId}/comments",
        "profile": "https://resources.meerkatapp.co/users/{userId}/profile",
    }
)

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


class RoutingMap:
    """
    Per-client routing map.

    The key set is fixed at construction; only values of existing keys
    can change.
    """

    def __init__(self, defaults: Optional[Mapping[str, str]] = None):
        self._routes: dict[str, str] = dict(DEFAULT_ROUTING_MAP if defaults is None else defaults)

    def __getitem__(self, key: str) -> str:
        return self._routes[key]

    def __contains__(self, key: object) -> bool:
        return key in self._routes

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RoutingMap({self._routes!r})"

    def keys(self) -> list[str]:
        return list(self._routes)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._routes.get(key, default)

    def as_dict(self) -> dict[str, str]:
        """Snapshot of the current templates."""
        return dict(self._routes)

    def apply_update(self, data: Any) -> list[str]:
        """
        Overwrite known routes with non-empty string templates from server data.

        Unknown keys, empty values and non-string values are ignored.
        Non-mapping input is ignored too.

        Args:
            data: Decoded routes response

        Returns:
            Names of the routes whose template changed
        """
        changed: list[str] = []
        if not isinstance(data, Mapping):
            return changed

        for key in self._routes:
            value = data.get(key)
            if isinstance(value, str) and value:
                if self._routes[key] != value:
                    changed.append(key)
                self._routes[key] = value

        return changed

    def resolve(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Fill a template's ``{name}`` placeholders.

        Placeholders without a matching parameter are left as they are.

        Args:
            key: Route name
            params: Placeholder values

        Returns:
            The URL

        Raises:
            KeyError: If the route name is unknown
        """
        template = self._routes[key]
        if not params:
            return template

        def _substitute(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name in params:
                return str(params[name])
            return match.group(0)

        return _PLACEHOLDER_RE.sub(_substitute, template)
