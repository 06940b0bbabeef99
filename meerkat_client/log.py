"""
Client logging.

All client events are prefixed with LOG_PREFIX and can be switched off per
client instance without touching the logging configuration.
"""

import logging
from typing import Any, MutableMapping

LOG_PREFIX = "Meerkat:"


class ClientLogger(logging.LoggerAdapter):
    """Logger adapter that prefixes messages and can be silenced."""

    def __init__(self, logger: logging.Logger, enabled: bool = True):
        super().__init__(logger, {})
        self.enabled = enabled

    def isEnabledFor(self, level: int) -> bool:
        return self.enabled and self.logger.isEnabledFor(level)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"{LOG_PREFIX} {msg}", kwargs
